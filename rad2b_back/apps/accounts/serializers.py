import logging

logger = logging.getLogger(__name__)
from rest_framework.exceptions import ValidationError
from rest_framework import serializers
from apps.authorization.serializers import RoleSerializer
from .models import User, Role
from django.db import transaction
from django.core.mail import send_mail
from django.conf import settings
from utils.logging import mask_email
from utils.validators import UniqueFieldValidator
import secrets
import string

# Serialzer는 데이터 변환

def _get_role(role_code):
    """역할 코드(admin / ADMIN)로 Role 조회"""
    try:
        return Role.objects.get(code=role_code.upper(), is_active=True)
    except Role.DoesNotExist:
        raise ValidationError("유효하지 않은 역할입니다.")


# 사용자 모델을 JSON 타입의 데이터로 변환
class UserSerializer(serializers.ModelSerializer):
    role = RoleSerializer(read_only=True)
    role_code = serializers.CharField(read_only=True)
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id"
            , "email"
            , "first_name"
            , "last_name"
            , "display_name"
            , "role"
            , "role_code"
            , "is_active"
            , "is_staff"
            , "last_login"
            , "created_at"
            , "updated_at"
            , "is_locked"
            , "failed_login_count"
            , "last_login_ip"
            , "must_change_password"
        ]


# 사용자 생성/수정 시리얼라이저
# 임시 비밀번호 생성 함수
def generate_temp_password(length=12):
    chars = string.ascii_letters + string.digits + "!@#$%^&*"
    return "".join(secrets.choice(chars) for _ in range(length))

class UserCreateUpdateSerializer(serializers.ModelSerializer):
    role = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = [
            "email"
            , "first_name"
            , "last_name"
            , "role"
            , "is_active"
        ]

    def validate_email(self, value):
        return UniqueFieldValidator.validate(self, "email__iexact", value.lower(), "이메일")

    def validate_role(self, value):
        return _get_role(value)

    @transaction.atomic
    def create(self, validated_data):
        role = validated_data.pop("role")

        # 임시 비밀번호 생성
        temp_password = generate_temp_password()

        user = User(**validated_data)
        user.role = role
        user.set_password(temp_password)
        user.must_change_password = True
        user.save()

        # 이메일 발송
        try :
            send_mail(
                subject="[rad2b] Your account has been created",
                message=(
                    f"Hello {user.display_name},\n\n"
                    f"An account has been created for you on rad2b/assess.\n\n"
                    f"Email: {user.email}\n"
                    f"Temporary password: {temp_password}\n\n"
                    f"You will be asked to change your password on first login."
                ),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[user.email],
                fail_silently=False,
            )
        except Exception as e:
            # 로그만 남기고 사용자 생성은 유지
            logger.error(f"메일 발송 실패 ({mask_email(user.email)}): {e}")

        return user

# 사용자 정보 수정
class UserUpdateSerializer(serializers.ModelSerializer):
    role = serializers.CharField(required=False)
    email = serializers.EmailField(read_only=True)

    class Meta:
        model = User
        fields = [
            "email",
            "first_name",
            "last_name",
            "role",
            "is_active",
        ]

    def validate_role(self, value):
        return _get_role(value)

    @transaction.atomic
    def update(self, instance, validated_data):
        # role 변경
        role = validated_data.pop("role", None)
        if role:
            instance.role = role

        # user 기본 필드
        for key, value in validated_data.items():
            setattr(instance, key, value)

        instance.save()
        return instance


# 역할 변경 (admin ↔ trainee)
class UserRoleChangeSerializer(serializers.Serializer):
    role = serializers.CharField()

    def validate_role(self, value):
        return _get_role(value)

    def validate(self, data):
        request = self.context["request"]
        target = self.context["target"]
        # 관리자 본인 강등 방지
        if target.pk == request.user.pk and data["role"].code != Role.ADMIN:
            raise ValidationError({"role": "본인의 관리자 권한은 해제할 수 없습니다."})
        return data


# ========== MyPage Serializers ==========

class MyProfileSerializer(serializers.ModelSerializer):
    """내 정보 조회용 Serializer"""
    role = RoleSerializer(read_only=True)
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "display_name",
            "role",
            "is_active",
            "last_login",
            "created_at",
        ]
        read_only_fields = ["id", "email", "role", "is_active", "last_login", "created_at"]


class MyProfileUpdateSerializer(serializers.ModelSerializer):
    """내 정보 수정용 Serializer (본인이 수정 가능한 필드만)"""

    class Meta:
        model = User
        fields = [
            "first_name",
            "last_name",
        ]


class ChangePasswordSerializer(serializers.Serializer):
    """비밀번호 변경용 Serializer"""
    current_password = serializers.CharField(write_only=True, required=True)
    new_password = serializers.CharField(write_only=True, required=True, min_length=8)
    confirm_password = serializers.CharField(write_only=True, required=True)

    def validate_current_password(self, value):
        """현재 비밀번호 검증"""
        user = self.context.get('request').user
        if not user.check_password(value):
            raise ValidationError("현재 비밀번호가 일치하지 않습니다.")
        return value

    def validate(self, data):
        """새 비밀번호 확인"""
        if data['new_password'] != data['confirm_password']:
            raise ValidationError({"confirm_password": "새 비밀번호가 일치하지 않습니다."})

        if data['current_password'] == data['new_password']:
            raise ValidationError({"new_password": "현재 비밀번호와 다른 비밀번호를 입력해주세요."})

        return data

    def save(self):
        """비밀번호 변경"""
        user = self.context.get('request').user
        user.set_password(self.validated_data['new_password'])
        user.must_change_password = False
        user.save()
        return user
