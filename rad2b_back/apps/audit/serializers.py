from rest_framework import serializers
from .models import AuditLog, AccessLog


class AuditLogSerializer(serializers.ModelSerializer):
    """인증 감사 로그 조회용 Serializer"""
    user_email = serializers.CharField(source='user.email', read_only=True, allow_null=True)
    user_name = serializers.CharField(source='user.display_name', read_only=True, allow_null=True)
    user_role = serializers.CharField(source='user.role_code', read_only=True, allow_null=True)
    action_display = serializers.CharField(source='get_action_display', read_only=True)

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'user',
            'user_email',
            'user_name',
            'user_role',
            'email',
            'action',
            'action_display',
            'ip_address',
            'user_agent',
            'created_at',
        ]
        read_only_fields = fields


class AccessLogSerializer(serializers.ModelSerializer):
    """접근 감사 로그 목록 조회용 Serializer"""
    user_email = serializers.CharField(source='user.email', read_only=True, allow_null=True)
    action_display = serializers.CharField(source='get_action_display', read_only=True)
    result_display = serializers.CharField(source='get_result_display', read_only=True)

    class Meta:
        model = AccessLog
        fields = [
            'id',
            'user',
            'user_email',
            'user_role',
            'action',
            'action_display',
            'menu_name',
            'request_method',
            'request_path',
            'ip_address',
            'result',
            'result_display',
            'response_status',
            'created_at',
        ]
        read_only_fields = fields


class AccessLogDetailSerializer(AccessLogSerializer):
    """접근 감사 로그 상세 조회용 Serializer"""

    class Meta(AccessLogSerializer.Meta):
        fields = AccessLogSerializer.Meta.fields + [
            'request_params',
            'user_agent',
            'fail_reason',
            'duration_ms',
        ]
        read_only_fields = fields
