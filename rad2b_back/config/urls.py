from django.contrib import admin
from django.urls import path, include

from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
)
from apps.cases.urls import (
    admin_urlpatterns as admin_case_urlpatterns,
    contribution_urlpatterns,
    urlpatterns as case_urlpatterns,
)
from apps.common.views import (
    AdminDashboardStatsView,
    HealthCheckView,
)


urlpatterns = [
    # Health Check (Docker/K8s용 - 인증 불필요)
    path("health/", HealthCheckView.as_view(), name="health_check"),

    path("admin/", admin.site.urls),

    # 로그인 / 회원가입 / 토큰 재발급
    path("api/auth/", include("apps.authorization.urls")),

    # 사용자 관리 API
    path("api/users/", include("apps.accounts.urls")),

    # 케이스 라이브러리 API
    path("api/cases/", include(case_urlpatterns)),
    path("api/admin/cases/", include(admin_case_urlpatterns)),
    path("api/contributions/", include(contribution_urlpatterns)),

    # 케이스 풀이 API
    path("api/attempts/", include("apps.attempts.urls")),

    # 모의 시험 API
    path("api/exams/", include("apps.exams.urls")),

    # DICOM 저장소 API
    path("api/imaging/", include("apps.imaging.urls")),

    # 감사 로그 API
    path("api/audit/", include("apps.audit.urls")),

    # Dashboard API
    path("api/dashboard/admin/stats/", AdminDashboardStatsView.as_view(), name="admin_dashboard_stats"),

    # API 문서화 엔드포인트
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path(
        "api/docs/",
        SpectacularSwaggerView.as_view(url_name="schema"),
        name="swagger-ui",
    ),
]
