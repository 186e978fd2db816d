from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import AdminCaseViewSet, CaseViewSet, ContributionViewSet

# 빈 prefix 라우터 (API root 뷰 없음)
# /api/cases/
router = SimpleRouter()
router.register(r'', CaseViewSet, basename='case')

# /api/admin/cases/
admin_router = SimpleRouter()
admin_router.register(r'', AdminCaseViewSet, basename='admin-case')

# /api/contributions/
contribution_router = SimpleRouter()
contribution_router.register(r'', ContributionViewSet, basename='contribution')

urlpatterns = [
    path('', include(router.urls)),
]

admin_urlpatterns = [
    path('', include(admin_router.urls)),
]

contribution_urlpatterns = [
    path('', include(contribution_router.urls)),
]
