from django.db import models
from django.conf import settings


class AuditLog(models.Model):
    """인증 감사 로그 (로그인/로그아웃)"""

    class Action(models.TextChoices):
        LOGIN_SUCCESS = "LOGIN_SUCCESS", "Login Success"  # 로그인 성공
        LOGIN_FAIL = "LOGIN_FAIL", "Login Fail"  # 로그인 실패
        LOGIN_LOCKED = "LOGIN_LOCKED", "Login Locked"  # 로그인 잠금
        LOGOUT = "LOGOUT", "Logout"  # 로그아웃

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
    )
    # 존재하지 않는 계정 로그인 시도 기록용
    email = models.EmailField(null=True, blank=True)

    action = models.CharField(max_length=30, choices=Action.choices)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_log'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.action} - {self.user or self.email}"


class AccessLog(models.Model):
    """API 접근/행위 감사 로그 (AccessLogMiddleware 가 기록)"""

    class Action(models.TextChoices):
        VIEW = "VIEW", "조회"
        CREATE = "CREATE", "생성"
        UPDATE = "UPDATE", "수정"
        DELETE = "DELETE", "삭제"
        EXPORT = "EXPORT", "내보내기"

    class Result(models.TextChoices):
        SUCCESS = "SUCCESS", "성공"
        FAIL = "FAIL", "실패"

    # 사용자 정보
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='access_logs'
    )
    user_role = models.CharField(max_length=50, null=True, blank=True)  # 요청 시점 역할 스냅샷

    # 요청 정보
    request_method = models.CharField(max_length=10)
    request_path = models.CharField(max_length=500)  # /api/cases/12/
    request_params = models.JSONField(null=True, blank=True)

    # 메뉴/기능 정보
    menu_name = models.CharField(max_length=100, null=True, blank=True)
    action = models.CharField(max_length=20, choices=Action.choices)

    # 클라이언트 정보
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)

    # 결과 정보
    result = models.CharField(max_length=10, choices=Result.choices, default=Result.SUCCESS)
    fail_reason = models.TextField(null=True, blank=True)
    response_status = models.IntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    duration_ms = models.IntegerField(null=True, blank=True)  # 처리 시간(ms)

    class Meta:
        db_table = 'access_log'
        indexes = [
            models.Index(fields=['-created_at'], name='access_log_created_idx'),
            models.Index(fields=['user', '-created_at'], name='access_log_user_created_idx'),
            models.Index(fields=['action'], name='access_log_action_idx'),
            models.Index(fields=['result'], name='access_log_result_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.action} - {self.user} - {self.request_path}"
