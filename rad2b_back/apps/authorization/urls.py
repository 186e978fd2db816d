from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import LoginView, LogoutView, MeView, RoleViewSet, SignupView

router = DefaultRouter()
router.register(r'roles', RoleViewSet)

# 함수형 뷰라면 .as_view() 미작성
# 클래스 기반 뷰라면 .as_view()를 사용
urlpatterns = [
    path("login/", LoginView.as_view(), name="login"),  # 로그인
    path("signup/", SignupView.as_view(), name="signup"),  # 회원가입
    path("logout/", LogoutView.as_view(), name="logout"),  # 로그아웃
    path("me/", MeView.as_view(), name="me"),  # 로그인 사용자 정보 조회
    path("refresh/", TokenRefreshView.as_view(), name="token_refresh"),  # Refresh 토큰 재발급
    path("", include(router.urls)),  # 역할 관리
]
