# 사용자 관리 API
# apps/accounts/views.py → 요청을 받아서 시리얼라이저/모델 호출
import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics, status, filters
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema

from apps.common.pagination import UserPagination
from apps.common.permission import IsAdmin
from utils.exceptions import BusinessLogicException
from .filters import UserFilter
from .models import User
from .serializers import (
    UserSerializer,
    UserCreateUpdateSerializer,
    UserUpdateSerializer,
    UserRoleChangeSerializer,
    MyProfileSerializer,
    MyProfileUpdateSerializer,
    ChangePasswordSerializer,
)

logger = logging.getLogger(__name__)


# 1. 사용자 목록 조회 & 추가 API (관리자 전용)
@extend_schema(tags=["Users"])
class UserListView(generics.ListCreateAPIView):
    permission_classes = [IsAdmin]
    serializer_class = UserSerializer
    pagination_class = UserPagination

    filter_backends = [
        filters.SearchFilter,
        DjangoFilterBackend,
    ]

    search_fields = ["email", "first_name", "last_name"]  # 검색 필드 설정
    filterset_class = UserFilter  # 필터링 필드 설정
    # /api/users/?search=smith → 이메일/이름 검색
    # /api/users/?role=trainee → 역할 필터링 (all = 전체)
    # /api/users/?is_active=true → 활성 사용자만 조회

    def get_queryset(self):
        return User.objects.select_related("role").order_by("-created_at")

    # 사용자 생성
    def get_serializer_class(self):
        if self.request.method == "POST":
            return UserCreateUpdateSerializer
        return UserSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"사용자 생성: id={user.id} role={user.role_code} by={request.user.id}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


# 2. 사용자 상세 조회(GET) & 수정(PUT) & 삭제(DELETE) API
@extend_schema(tags=["Users"])
class UserDetailView(generics.RetrieveUpdateDestroyAPIView):
    permission_classes = [IsAdmin]
    queryset = User.objects.select_related("role")
    serializer_class = UserSerializer

    def get_serializer_class(self):
        # 사용자 수정(PUT)
        if self.request.method in ["PUT", "PATCH"]:
            return UserUpdateSerializer
        return UserSerializer

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data)

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise BusinessLogicException(message="본인 계정은 삭제할 수 없습니다.")
        logger.info(f"사용자 삭제: id={instance.id} by={self.request.user.id}")
        instance.delete()


# 3. 역할 변경 (admin ↔ trainee)
class UserRoleChangeView(APIView):
    permission_classes = [IsAdmin]

    @extend_schema(tags=["Users"], request=UserRoleChangeSerializer, responses=UserSerializer)
    def patch(self, request, pk):
        user = get_object_or_404(User, pk=pk)
        serializer = UserRoleChangeSerializer(
            data=request.data,
            context={"request": request, "target": user},
        )
        serializer.is_valid(raise_exception=True)

        user.role = serializer.validated_data["role"]
        user.save(update_fields=["role", "updated_at"])
        logger.info(f"역할 변경: id={user.id} role={user.role_code} by={request.user.id}")
        return Response(UserSerializer(user).data)


# 4. 사용자 활성/비활성 토글
class UserToggleActiveView(APIView):
    permission_classes = [IsAdmin]

    @extend_schema(tags=["Users"], request=None)
    def patch(self, request, pk):
        user = get_object_or_404(User, pk=pk)

        if user.pk == request.user.pk:
            raise BusinessLogicException(message="본인 계정은 비활성화할 수 없습니다.")

        user.is_active = not user.is_active
        user.save(update_fields=["is_active", "updated_at"])
        return Response({"id": user.id, "is_active": user.is_active})


# 5. 사용자 계정 잠금 해제
class UnlockUserView(APIView):
    permission_classes = [IsAdmin]

    @extend_schema(tags=["Users"], request=None)
    def patch(self, request, pk):
        user = get_object_or_404(User, pk=pk)

        user.is_locked = False
        user.failed_login_count = 0
        user.locked_at = None
        user.save(update_fields=["is_locked", "failed_login_count", "locked_at", "updated_at"])

        return Response({"detail": "계정 잠금 해제 완료"})


# ========== MyPage Views ==========

# 6. 내 정보 조회 및 수정 (GET /api/users/me/, PUT /api/users/me/)
class MyProfileView(APIView):
    """
    내 프로필 조회 및 수정

    GET: 현재 로그인한 사용자의 정보 조회
    PUT: 이름(first_name, last_name) 수정
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["MyPage"], responses=MyProfileSerializer)
    def get(self, request):
        serializer = MyProfileSerializer(request.user)
        return Response(serializer.data)

    @extend_schema(tags=["MyPage"], request=MyProfileUpdateSerializer, responses=MyProfileSerializer)
    def put(self, request):
        serializer = MyProfileUpdateSerializer(
            request.user,
            data=request.data,
            partial=True
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        # 수정 후 전체 정보 반환
        return Response(MyProfileSerializer(request.user).data)


# 7. 비밀번호 변경 (POST /api/users/me/change-password/)
class ChangePasswordView(APIView):
    """
    비밀번호 변경

    POST: 현재 비밀번호 확인 후 새 비밀번호로 변경
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["MyPage"], request=ChangePasswordSerializer)
    def post(self, request):
        serializer = ChangePasswordSerializer(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"detail": "비밀번호가 성공적으로 변경되었습니다."})
