from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Role

# admin 페이지 연결
@admin.register(User)
class UserAdmin(BaseUserAdmin):
    # 목록에 표시할 필드
    list_display = ("email", "first_name", "last_name", "role", "is_active", "is_locked", "last_login")
    list_filter = ("role", "is_active", "is_locked")
    search_fields = ("email", "first_name", "last_name")
    ordering = ("email",)

    # 상세 화면에서 보여줄 필드 그룹
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("개인정보", {"fields": ("first_name", "last_name", "role")}),
        ("권한", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
        ("잠금", {"fields": ("is_locked", "failed_login_count", "locked_at")}),
        ("기록", {"fields": ("last_login", "last_login_ip", "created_at", "updated_at")}),
    )
    readonly_fields = ("created_at", "updated_at", "last_login")

    # 사용자 추가 화면에서 보여줄 필드
    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": ("email", "first_name", "last_name", "role", "password1", "password2", "is_active", "is_staff", "is_superuser"),
        }),
    )


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active", "created_at")
    search_fields = ("code", "name")
