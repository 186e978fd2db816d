import logging

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.generics import get_object_or_404
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.cases.models import Case
from apps.cases.services import CaseService
from apps.common.permission import IsAdmin
from .models import Answer
from .serializers import (
    AnswerSerializer,
    AnswerSubmitResultSerializer,
    AnswerSubmitSerializer,
    AttemptStatusSerializer,
    CaseAttemptSerializer,
    FeedbackSerializer,
    ProgressSummarySerializer,
    ReviewSerializer,
)
from .services import AttemptService

logger = logging.getLogger(__name__)


class CaseAttemptViewSet(viewsets.GenericViewSet):
    """
    케이스 풀이 API

    /api/attempts/cases/{case_id}/current/   현재 시도 상태
    /api/attempts/cases/{case_id}/start/     시도 시작
    /api/attempts/cases/{case_id}/answers/   답변 제출 / 답변 목록
    /api/attempts/cases/{case_id}/review/    완료 후 리뷰
    """
    permission_classes = [IsAuthenticated]
    pagination_class = None

    def get_queryset(self):
        if self.request.user.is_admin:
            return Case.objects.all()
        return CaseService.get_published_cases()

    @extend_schema(summary="현재 시도 상태", responses=AttemptStatusSerializer)
    @action(detail=True, methods=['get'])
    def current(self, request, pk=None):
        case = self.get_object()
        attempt_status, attempt = AttemptService.get_current_status(case, request.user)
        return Response({
            'case_id': case.id,
            'status': attempt_status,
            'attempt': CaseAttemptSerializer(attempt).data if attempt else None,
        })

    @extend_schema(summary="시도 시작", request=None, responses=CaseAttemptSerializer)
    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        case = self.get_object()
        attempt, created = AttemptService.start_attempt(case, request.user)
        return Response(
            CaseAttemptSerializer(attempt).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(summary="답변 제출 / 질문별 답변 조회", request=AnswerSubmitSerializer, responses=AnswerSubmitResultSerializer)
    @action(detail=True, methods=['get', 'post'])
    def answers(self, request, pk=None):
        case = self.get_object()
        if request.method == 'GET':
            answered = AttemptService.get_answered_map(case, request.user)
            # JSON key 는 문자열
            return Response({str(qid): value for qid, value in answered.items()})

        serializer = AnswerSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        answer, attempt = AttemptService.submit_answer(
            case,
            request.user,
            serializer.validated_data['question_id'],
            serializer.validated_data['response_text'],
        )
        return Response({
            'answer': AnswerSerializer(answer).data,
            'attempt': CaseAttemptSerializer(attempt).data,
        })

    @extend_schema(summary="완료 케이스 리뷰", responses=ReviewSerializer)
    @action(detail=True, methods=['get'])
    def review(self, request, pk=None):
        case = self.get_object()
        attempt, items = AttemptService.get_review(case, request.user)
        return Response(ReviewSerializer({'attempt': attempt, 'items': items}).data)


class ProgressSummaryView(APIView):
    """공개 케이스 기준 내 진행 현황"""
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="진행 현황", responses=ProgressSummarySerializer)
    def get(self, request):
        summary = AttemptService.get_progress_summary(request.user)
        return Response(ProgressSummarySerializer(summary).data)


class AnswerFeedbackView(APIView):
    """관리자 답변 피드백"""
    permission_classes = [IsAdmin]

    @extend_schema(summary="답변 피드백", request=FeedbackSerializer, responses=AnswerSerializer)
    def patch(self, request, pk):
        answer = get_object_or_404(Answer, pk=pk)
        serializer = FeedbackSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        answer = AttemptService.give_feedback(answer, **serializer.validated_data)
        logger.info(f"답변 피드백: answer={answer.id} by={request.user.id}")
        return Response(AnswerSerializer(answer).data)
