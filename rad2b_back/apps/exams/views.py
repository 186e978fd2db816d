from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, extend_schema_view

from apps.common.pagination import StandardPagination
from utils.exceptions import ResourceNotFoundException
from .models import ExamSession
from .serializers import (
    ExamAnswerSerializer,
    ExamItemSerializer,
    ExamNotesSerializer,
    ExamSessionSerializer,
    ExamStateSerializer,
    FinishSummarySerializer,
    PositionSerializer,
)
from .services import ExamService, word_count


@extend_schema_view(
    list=extend_schema(summary="내 시험 이력"),
    create=extend_schema(summary="시험 시작", request=None, responses=ExamStateSerializer),
    retrieve=extend_schema(summary="시험 상태 조회", responses=ExamStateSerializer),
)
class ExamSessionViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    시험 세션 API

    - 시작 시 25문항 배정, 사용자당 진행 중 세션 1개
    - 시간 종료 후에는 제출만 가능
    """
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination
    serializer_class = ExamSessionSerializer
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        return ExamSession.objects.filter(user=self.request.user).order_by('-started_at')

    def get_object(self):
        return ExamService.get_session(self.request.user, self.kwargs['pk'])

    def _state_response(self, session, status_code=status.HTTP_200_OK):
        state = ExamService.get_state(session)
        return Response(ExamStateSerializer(state).data, status=status_code)

    def create(self, request, *args, **kwargs):
        session, created = ExamService.start(request.user)
        return self._state_response(
            session, status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    def retrieve(self, request, *args, **kwargs):
        return self._state_response(self.get_object())

    @extend_schema(summary="진행 중 시험 조회", responses=ExamStateSerializer)
    @action(detail=False, methods=['get'])
    def current(self, request):
        session = ExamService.get_current_session(request.user)
        if session is None:
            raise ResourceNotFoundException(message="진행 중인 시험이 없습니다.")
        return self._state_response(session)

    # =========================================================================
    # 이동
    # =========================================================================

    @extend_schema(summary="문항 선택", request=PositionSerializer, responses=ExamStateSerializer)
    @action(detail=True, methods=['post'])
    def select(self, request, pk=None):
        serializer = PositionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = ExamService.select(self.get_object(), serializer.validated_data['position'])
        return self._state_response(session)

    @extend_schema(summary="다음 문항", request=None, responses=ExamStateSerializer)
    @action(detail=True, methods=['post'])
    def next(self, request, pk=None):
        return self._state_response(ExamService.next(self.get_object()))

    @extend_schema(summary="이전 문항", request=None, responses=ExamStateSerializer)
    @action(detail=True, methods=['post'])
    def previous(self, request, pk=None):
        return self._state_response(ExamService.previous(self.get_object()))

    # =========================================================================
    # 답변 / 메모
    # =========================================================================

    @extend_schema(summary="답변 저장", request=ExamAnswerSerializer, responses=ExamItemSerializer)
    @action(detail=True, methods=['put'])
    def answer(self, request, pk=None):
        serializer = ExamAnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = ExamService.save_answer(
            self.get_object(),
            serializer.validated_data['answer'],
            serializer.validated_data.get('position'),
        )
        return Response(ExamItemSerializer(item).data)

    @extend_schema(summary="메모 저장", request=ExamNotesSerializer)
    @action(detail=True, methods=['put'])
    def notes(self, request, pk=None):
        serializer = ExamNotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = ExamService.save_notes(self.get_object(), serializer.validated_data['notes'])
        return Response({
            'notes': session.notes,
            'word_count': word_count(session.notes),
        })

    # =========================================================================
    # 종료 / 제출
    # =========================================================================

    @extend_schema(summary="종료 요약", responses=FinishSummarySerializer)
    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        summary = ExamService.finish_summary(self.get_object())
        return Response(FinishSummarySerializer(summary).data)

    @extend_schema(summary="시험 제출", request=None, responses=ExamStateSerializer)
    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        session = ExamService.submit(self.get_object())
        return self._state_response(session)
