from django.contrib import admin
from .models import AuditLog, AccessLog


# Admin 사용자가 로그 확인
@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action", "user", "email", "ip_address", "created_at")
    list_filter = ("action",)
    readonly_fields = ("created_at",)


@admin.register(AccessLog)
class AccessLogAdmin(admin.ModelAdmin):
    list_display = ("action", "user", "request_method", "request_path", "result", "created_at")
    list_filter = ("action", "result")
    readonly_fields = ("created_at",)
