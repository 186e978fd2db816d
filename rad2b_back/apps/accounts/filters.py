# apps/accounts/filters.py
import django_filters
from .models import User

# 사용자 검색 필터
class UserFilter(django_filters.FilterSet):
    # ?role=admin | trainee | all (대소문자 무관)
    role = django_filters.CharFilter(method="filter_role")
    is_active = django_filters.BooleanFilter(field_name="is_active")

    class Meta:
        model = User
        fields = ["role", "is_active"]

    def filter_role(self, queryset, name, value):
        if not value or value.lower() == "all":
            return queryset
        return queryset.filter(role__code=value.upper())
