import logging

from rest_framework import viewsets, status, filters, mixins
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter

from apps.attempts.services import AttemptService
from apps.common.pagination import CasePagination, StandardPagination
from apps.common.permission import IsAdmin
from utils.exceptions import BusinessLogicException
from .filters import AdminCaseFilter, CaseFilter
from .models import Case
from .serializers import (
    AdminCaseDetailSerializer,
    AdminCaseListSerializer,
    AdminCaseWriteSerializer,
    CaseDetailSerializer,
    CaseListSerializer,
    CaseScanSerializer,
    ContributionSerializer,
    ContributionWriteSerializer,
    PublishSerializer,
    QuestionSerializer,
    QuestionsSyncSerializer,
    RejectSerializer,
    ScansSyncSerializer,
)
from .services import CaseService, CONTRIBUTION_EDITABLE_STATUSES

logger = logging.getLogger(__name__)


# =============================================================================
# 연습 화면 (로그인 사용자)
# =============================================================================

@extend_schema_view(
    list=extend_schema(
        summary="케이스 목록 조회",
        description="공개된 케이스 목록과 내 시도 상태를 조회합니다.",
        parameters=[
            OpenApiParameter(name='region', description='부위 (all = 전체)', type=str),
            OpenApiParameter(name='difficulty', description='난이도 (all = 전체)', type=str),
        ],
    ),
    retrieve=extend_schema(summary="케이스 상세 조회"),
)
class CaseViewSet(viewsets.ReadOnlyModelViewSet):
    """
    케이스 조회 ViewSet

    - 목록: published 케이스만, 페이지당 10건
    - 상세: published 케이스 (관리자는 전체)
    - 모범답안/해설은 관리자 또는 완료한 사용자에게만 노출
    """
    permission_classes = [IsAuthenticated]
    pagination_class = CasePagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_class = CaseFilter
    search_fields = ['title', 'case_number']

    def get_queryset(self):
        if self.action == 'retrieve' and self.request.user.is_admin:
            queryset = Case.objects.all()
        else:
            queryset = CaseService.get_published_cases()

        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('scans', 'questions')

        return queryset.order_by('-created_at')

    def get_serializer_class(self):
        if self.action == 'list':
            return CaseListSerializer
        return CaseDetailSerializer

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        cases = page if page is not None else list(queryset)

        context = self.get_serializer_context()
        context['attempt_status'] = AttemptService.get_status_labels(
            request.user, [case.id for case in cases]
        )
        serializer = CaseListSerializer(cases, many=True, context=context)

        if page is not None:
            return self.get_paginated_response(serializer.data)
        return Response(serializer.data)

    def retrieve(self, request, *args, **kwargs):
        case = self.get_object()
        context = self.get_serializer_context()
        context['show_answers'] = (
            request.user.is_admin or AttemptService.has_completed(case, request.user)
        )
        return Response(CaseDetailSerializer(case, context=context).data)


# =============================================================================
# 관리자 케이스 관리
# =============================================================================

@extend_schema_view(
    list=extend_schema(
        summary="관리자 케이스 목록",
        parameters=[
            OpenApiParameter(name='status', description='all | published | unpublished', type=str),
            OpenApiParameter(name='review_status', description='검토 상태', type=str),
            OpenApiParameter(name='search', description='케이스 번호 / 제목 검색', type=str),
        ],
    ),
    retrieve=extend_schema(summary="관리자 케이스 상세"),
    create=extend_schema(summary="케이스 생성", responses=AdminCaseDetailSerializer),
    update=extend_schema(summary="케이스 수정", responses=AdminCaseDetailSerializer),
    partial_update=extend_schema(summary="케이스 부분 수정", responses=AdminCaseDetailSerializer),
    destroy=extend_schema(summary="케이스 삭제"),
)
class AdminCaseViewSet(viewsets.ModelViewSet):
    """관리자 케이스 라이브러리 관리"""
    permission_classes = [IsAdmin]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_class = AdminCaseFilter
    search_fields = ['case_number', 'title', 'clinical_history']

    def get_queryset(self):
        queryset = CaseService.get_admin_cases()
        if self.action != 'list':
            queryset = queryset.prefetch_related('scans', 'questions')
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return AdminCaseListSerializer
        if self.action in ['create', 'update', 'partial_update']:
            return AdminCaseWriteSerializer
        return AdminCaseDetailSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = serializer.save()
        return Response(AdminCaseDetailSerializer(case).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        case = serializer.save()
        return Response(AdminCaseDetailSerializer(case).data)

    def perform_destroy(self, instance):
        CaseService.delete_case(instance)

    # =========================================================================
    # 공개 전환
    # =========================================================================

    @extend_schema(summary="공개 / 비공개 전환", request=PublishSerializer, responses=AdminCaseDetailSerializer)
    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        case = self.get_object()
        serializer = PublishSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CaseService.set_published(case, serializer.validated_data['published'])
        return Response(AdminCaseDetailSerializer(case).data)

    # =========================================================================
    # 질문 / 영상 관리
    # =========================================================================

    @extend_schema(summary="질문 목록 / 동기화", request=QuestionsSyncSerializer, responses=QuestionSerializer(many=True))
    @action(detail=True, methods=['get', 'put'])
    def questions(self, request, pk=None):
        case = self.get_object()
        if request.method == 'PUT':
            serializer = QuestionsSyncSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            questions = CaseService.sync_questions(case, serializer.validated_data['questions'])
        else:
            questions = case.questions.order_by('display_order', 'id')
        return Response(QuestionSerializer(questions, many=True).data)

    @extend_schema(summary="영상 목록 / 동기화", request=ScansSyncSerializer, responses=CaseScanSerializer(many=True))
    @action(detail=True, methods=['get', 'put'])
    def scans(self, request, pk=None):
        case = self.get_object()
        if request.method == 'PUT':
            serializer = ScansSyncSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            scans = CaseService.sync_scans(case, serializer.validated_data['scans'])
        else:
            scans = case.scans.order_by('display_order', 'id')
        return Response(CaseScanSerializer(scans, many=True).data)

    # =========================================================================
    # 기여 케이스 검토
    # =========================================================================

    @extend_schema(summary="기여 케이스 승인", request=None, responses=AdminCaseDetailSerializer)
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        case = CaseService.approve(self.get_object())
        logger.info(f"기여 케이스 승인: {case.case_number} by={request.user.id}")
        return Response(AdminCaseDetailSerializer(case).data)

    @extend_schema(summary="기여 케이스 반려", request=RejectSerializer, responses=AdminCaseDetailSerializer)
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseService.reject(self.get_object(), serializer.validated_data['reason'])
        logger.info(f"기여 케이스 반려: {case.case_number} by={request.user.id}")
        return Response(AdminCaseDetailSerializer(case).data)


# =============================================================================
# 기여자 제출
# =============================================================================

@extend_schema_view(
    list=extend_schema(summary="내 기여 케이스 목록"),
    retrieve=extend_schema(summary="내 기여 케이스 상세"),
    create=extend_schema(summary="케이스 제출", responses=ContributionSerializer),
    update=extend_schema(summary="제출 케이스 수정", responses=ContributionSerializer),
    partial_update=extend_schema(summary="제출 케이스 부분 수정", responses=ContributionSerializer),
    destroy=extend_schema(summary="임시 저장 케이스 삭제"),
)
class ContributionViewSet(viewsets.ModelViewSet):
    """
    기여자 케이스 제출

    본인이 제출한 케이스만 조회/수정, draft / pending_review 상태에서만 수정 가능
    """
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination

    def get_queryset(self):
        return (
            Case.objects
            .filter(submitted_by=self.request.user)
            .prefetch_related('scans', 'questions')
            .order_by('-created_at')
        )

    def get_serializer_class(self):
        if self.action in ['create', 'update', 'partial_update']:
            return ContributionWriteSerializer
        return ContributionSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = serializer.save()
        return Response(ContributionSerializer(case).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        case = serializer.save()
        return Response(ContributionSerializer(case).data)

    def perform_destroy(self, instance):
        if instance.review_status not in CONTRIBUTION_EDITABLE_STATUSES:
            raise BusinessLogicException(message="검토가 끝난 케이스는 삭제할 수 없습니다.")
        CaseService.delete_case(instance)
