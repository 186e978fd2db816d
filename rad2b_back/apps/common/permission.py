from rest_framework.permissions import BasePermission
from apps.accounts.models import Role


class IsAdmin(BasePermission):
    """ADMIN 역할만 접근 가능"""
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if not request.user.role:
            return False
        return request.user.role.code == Role.ADMIN
