import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny
from django.utils import timezone
from django.db.models import Count
from django.db import connection, DatabaseError
from datetime import timedelta
from drf_spectacular.utils import extend_schema, OpenApiResponse

from apps.accounts.models import User
from apps.attempts.models import CaseAttempt
from apps.cases.models import Case
from apps.common.permission import IsAdmin

logger = logging.getLogger(__name__)


class HealthCheckView(APIView):
    """
    헬스 체크 엔드포인트
    Docker/Kubernetes 헬스 체크 및 로드밸런서용
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=["Health"],
        summary="서버 헬스 체크",
        description="서버 상태 및 데이터베이스 연결을 확인합니다.",
        responses={
            200: OpenApiResponse(description="정상"),
            503: OpenApiResponse(description="서비스 불가"),
        }
    )
    def get(self, request):
        health_status = {
            "status": "healthy",
            "database": "unknown",
            "timestamp": timezone.now().isoformat(),
        }

        # Database 연결 확인
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            health_status["database"] = "connected"
        except DatabaseError as e:
            logger.error(f"Health check - DB error: {str(e)}")
            health_status["status"] = "unhealthy"
            health_status["database"] = "disconnected"
            return Response(health_status, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(health_status, status=status.HTTP_200_OK)


def _count_by(queryset, field):
    return dict(
        queryset.values(field)
        .annotate(count=Count('id'))
        .values_list(field, 'count')
    )


@extend_schema(
    tags=["Dashboard"],
    summary="관리자 대시보드 통계",
    description="케이스 / 사용자 / 풀이 현황 통계를 조회합니다. ADMIN 역할만 접근 가능합니다.",
    responses={
        200: OpenApiResponse(description="통계 조회 성공"),
        403: OpenApiResponse(description="권한 없음"),
    }
)
class AdminDashboardStatsView(APIView):
    """관리자 대시보드 통계 API"""
    permission_classes = [IsAdmin]

    def get(self, request):
        week_ago = timezone.now() - timedelta(days=7)

        # 케이스 통계
        cases = Case.objects.all()
        published = cases.filter(published=True).count()

        # 사용자 통계
        users = User.objects.filter(is_active=True)

        # 풀이 통계
        attempts = CaseAttempt.objects.all()

        return Response({
            'cases': {
                'total': cases.count(),
                'published': published,
                'unpublished': cases.count() - published,
                'by_review_status': _count_by(cases, 'review_status'),
                'pending_review': cases.filter(review_status=Case.ReviewStatus.PENDING_REVIEW).count(),
            },
            'users': {
                'total': users.count(),
                'by_role': _count_by(users, 'role__code'),
                'recent_logins': users.filter(last_login__gte=week_ago).count(),
            },
            'attempts': {
                'in_progress': attempts.filter(status=CaseAttempt.Status.IN_PROGRESS).count(),
                'completed': attempts.filter(status=CaseAttempt.Status.COMPLETED).count(),
            },
        })
