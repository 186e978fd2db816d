from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from django.utils import timezone
from django.db.models import F

from apps.accounts.models import User, Role
from apps.audit.models import AuditLog
from apps.audit.services import create_audit_log
from utils.exceptions import AuthenticationFailedException, PermissionDeniedException
from utils.validators import validate_role_code, UniqueFieldValidator


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = [
            "id",
            "code",
            "name",
            "description",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_code(self, value):
        return validate_role_code(value)


# 로그인 실패 최대 허용 횟수
MAX_LOGIN_FAIL = 5

LOGIN_LOCKED_MESSAGE = "로그인 실패 횟수 초과로 계정이 잠겼습니다. 관리자에게 문의하세요."


# 로그인 요청 검증 (이메일 + 비밀번호)
class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        request = self.context["request"]
        email = data.get("email")
        password = data.get("password")

        user = authenticate(request, email=email, password=password)

        # 로그인 실패
        if not user:
            qs = User.objects.filter(email__iexact=email)
            # 실패 횟수 증가 (존재하는 계정일 경우만)
            qs.update(
                failed_login_count=F("failed_login_count") + 1
            )

            user_obj = qs.first()
            remain = None

            if user_obj:
                # 로그인 남은 횟수 계산
                remain = max(MAX_LOGIN_FAIL - user_obj.failed_login_count, 0)

                # 로그인 잠금 발생 시
                if user_obj.failed_login_count >= MAX_LOGIN_FAIL:
                    if not user_obj.is_locked:
                        qs.update(
                            is_locked=True,
                            locked_at=timezone.now()
                        )
                        create_audit_log(request, AuditLog.Action.LOGIN_LOCKED, user_obj)

                    raise AuthenticationFailedException(
                        code="LOGIN_LOCKED",
                        message=LOGIN_LOCKED_MESSAGE,
                        detail={"remain": 0},
                    )

            create_audit_log(request, AuditLog.Action.LOGIN_FAIL, user_obj, email=email)

            # 일반 실패
            raise AuthenticationFailedException(
                code="LOGIN_FAIL",
                message="이메일 또는 비밀번호가 올바르지 않습니다.",
                detail={"remain": remain} if remain is not None else None,
            )

        # 이미 잠긴 계정
        if user.is_locked:
            raise AuthenticationFailedException(
                code="LOGIN_LOCKED",
                message=LOGIN_LOCKED_MESSAGE,
                detail={"remain": 0},
            )

        # 비활성 계정
        if not user.is_active:
            raise PermissionDeniedException(
                code="INACTIVE_USER",
                message="비활성화된 계정입니다.",
            )

        data["user"] = user
        return data


# 회원가입 (기본 역할 TRAINEE)
class SignupSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ["email", "password", "first_name", "last_name"]

    def validate_email(self, value):
        return UniqueFieldValidator.validate(self, "email__iexact", value.lower(), "이메일")

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        role = Role.objects.filter(code=Role.TRAINEE, is_active=True).first()
        return User.objects.create_user(
            email=validated_data["email"],
            password=validated_data["password"],
            role=role,
            first_name=validated_data.get("first_name"),
            last_name=validated_data.get("last_name"),
        )


# 현재 사용자 정보(내 정보 조회) 데이터
class MeSerializer(serializers.ModelSerializer):
    role = RoleSerializer(read_only=True)
    role_code = serializers.CharField(read_only=True)
    is_admin = serializers.BooleanField(read_only=True)
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "first_name",
            "last_name",
            "display_name",
            "is_active",
            "role",
            "role_code",
            "is_admin",
            "must_change_password",
        )
