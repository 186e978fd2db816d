import logging

from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema, OpenApiResponse

from apps.accounts.models import Role
from apps.audit.models import AuditLog
from apps.audit.services import create_audit_log
from apps.common.permission import IsAdmin
from apps.common.utils import get_client_ip
from .serializers import LoginSerializer, MeSerializer, RoleSerializer, SignupSerializer

logger = logging.getLogger(__name__)


def issue_tokens(user):
    """JWT access / refresh 토큰 발급"""
    refresh = RefreshToken.for_user(user)
    return {
        "access": str(refresh.access_token),
        "refresh": str(refresh),
    }


# 로그인
class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=["Auth"],
        summary="로그인",
        request=LoginSerializer,
        responses={
            200: OpenApiResponse(description="토큰 + 사용자 정보"),
            401: OpenApiResponse(description="인증 실패 / 계정 잠금"),
            403: OpenApiResponse(description="비활성 계정"),
        },
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]

        # 로그인 성공 → 실패 횟수 초기화, 접속 정보 갱신
        user.failed_login_count = 0
        user.last_login = timezone.now()
        user.last_login_ip = get_client_ip(request)
        user.save(update_fields=["failed_login_count", "last_login", "last_login_ip"])

        create_audit_log(request, AuditLog.Action.LOGIN_SUCCESS, user)

        return Response({
            **issue_tokens(user),
            "user": MeSerializer(user).data,
        })


# 회원가입 (TRAINEE)
class SignupView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(tags=["Auth"], summary="회원가입", request=SignupSerializer, responses=MeSerializer)
    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"회원가입: id={user.id}")
        return Response(MeSerializer(user).data, status=status.HTTP_201_CREATED)


# 로그아웃 (감사 로그 기록, 토큰 폐기는 클라이언트에서)
class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Auth"], summary="로그아웃", request=None)
    def post(self, request):
        create_audit_log(request, AuditLog.Action.LOGOUT, request.user)
        return Response({"detail": "로그아웃 되었습니다."})


# 로그인 사용자 정보 조회
class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Auth"], summary="내 정보", responses=MeSerializer)
    def get(self, request):
        return Response(MeSerializer(request.user).data)


# 역할 관리 (관리자 전용)
@extend_schema(tags=["Roles"])
class RoleViewSet(viewsets.ModelViewSet):
    queryset = Role.objects.all().order_by("id")
    serializer_class = RoleSerializer
    permission_classes = [IsAdmin]
    pagination_class = None
