from rest_framework import generics, filters
from rest_framework.response import Response
from rest_framework.views import APIView
from django_filters.rest_framework import DjangoFilterBackend
from django_filters import FilterSet, CharFilter, ChoiceFilter, DateFilter
from django.db.models import Max
from drf_spectacular.utils import extend_schema

from apps.common.pagination import StandardPagination
from apps.common.permission import IsAdmin
from .models import AuditLog, AccessLog
from .serializers import AuditLogSerializer, AccessLogSerializer, AccessLogDetailSerializer


class AuditLogFilter(FilterSet):
    """인증 감사 로그 필터"""
    user_email = CharFilter(field_name='email', lookup_expr='icontains')
    action = ChoiceFilter(choices=AuditLog.Action.choices)
    date = DateFilter(field_name='created_at', lookup_expr='date')
    date_from = DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = AuditLog
        fields = ['user_email', 'action', 'date', 'date_from', 'date_to']


@extend_schema(tags=["Audit"], summary="인증 감사 로그 목록")
class AuditLogListView(generics.ListAPIView):
    """
    인증 감사 로그 목록 조회 API
    - 관리자 전용
    - 필터: user_email, action, date, date_from, date_to
    """
    queryset = AuditLog.objects.select_related('user', 'user__role').order_by('-created_at')
    serializer_class = AuditLogSerializer
    permission_classes = [IsAdmin]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = AuditLogFilter
    ordering_fields = ['created_at', 'action']
    ordering = ['-created_at']


class AccessLogFilter(FilterSet):
    """접근 감사 로그 필터"""
    user_email = CharFilter(field_name='user__email', lookup_expr='icontains')
    user_role = CharFilter(field_name='user_role', lookup_expr='icontains')
    ip_address = CharFilter(field_name='ip_address', lookup_expr='icontains')
    action = ChoiceFilter(choices=AccessLog.Action.choices)
    result = ChoiceFilter(choices=AccessLog.Result.choices)
    date_from = DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = AccessLog
        fields = ['user_email', 'user_role', 'ip_address', 'action', 'result', 'date_from', 'date_to']


@extend_schema(tags=["Audit"], summary="접근 감사 로그 목록")
class AccessLogListView(generics.ListAPIView):
    """접근 감사 로그 목록 조회 API (관리자 전용)"""
    queryset = AccessLog.objects.select_related('user').order_by('-created_at')
    serializer_class = AccessLogSerializer
    permission_classes = [IsAdmin]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = AccessLogFilter
    ordering_fields = ['created_at', 'action', 'result']
    ordering = ['-created_at']


@extend_schema(tags=["Audit"], summary="접근 감사 로그 상세")
class AccessLogDetailView(generics.RetrieveAPIView):
    queryset = AccessLog.objects.select_related('user')
    serializer_class = AccessLogDetailSerializer
    permission_classes = [IsAdmin]


class AccessLogSummaryView(APIView):
    """
    접근 감사 로그 요약 정보 API
    - 총 로그 건수
    - 최근 접근 시간
    - 실패 건수
    """
    permission_classes = [IsAdmin]

    @extend_schema(tags=["Audit"], summary="접근 감사 로그 요약")
    def get(self, request):
        # 목록 화면과 같은 필터 조건 적용
        queryset = AccessLogFilter(request.query_params, queryset=AccessLog.objects.all()).qs

        return Response({
            'total_count': queryset.count(),
            'latest_access': queryset.aggregate(latest=Max('created_at'))['latest'],
            'fail_count': queryset.filter(result=AccessLog.Result.FAIL).count(),
        })
