# apps/cases/filters.py
import django_filters
from .models import Case


def _all_or_value(queryset, field, value):
    """all (대소문자 무관) = 필터 없음"""
    if not value or value.lower() == "all":
        return queryset
    return queryset.filter(**{field: value.lower()})


# 연습 화면 케이스 필터
class CaseFilter(django_filters.FilterSet):
    # ?region=chest | all
    region = django_filters.CharFilter(method="filter_region")
    # ?difficulty=easy | medium | hard | all
    difficulty = django_filters.CharFilter(method="filter_difficulty")
    age_group = django_filters.CharFilter(method="filter_age_group")

    class Meta:
        model = Case
        fields = ["region", "difficulty", "age_group"]

    def filter_region(self, queryset, name, value):
        return _all_or_value(queryset, "region", value)

    def filter_difficulty(self, queryset, name, value):
        return _all_or_value(queryset, "difficulty", value)

    def filter_age_group(self, queryset, name, value):
        return _all_or_value(queryset, "age_group", value)


# 관리자 케이스 필터
class AdminCaseFilter(CaseFilter):
    # ?status=all | published | unpublished
    status = django_filters.CharFilter(method="filter_status")
    review_status = django_filters.ChoiceFilter(choices=Case.ReviewStatus.choices)

    class Meta(CaseFilter.Meta):
        fields = CaseFilter.Meta.fields + ["status", "review_status"]

    def filter_status(self, queryset, name, value):
        value = (value or "").lower()
        if value == "published":
            return queryset.filter(published=True)
        if value == "unpublished":
            return queryset.filter(published=False)
        return queryset
