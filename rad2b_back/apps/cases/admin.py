from django.contrib import admin
from .models import Case, CaseScan, Question


class CaseScanInline(admin.TabularInline):
    model = CaseScan
    extra = 0


class QuestionInline(admin.StackedInline):
    model = Question
    extra = 0


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ("case_number", "title", "region", "difficulty", "published", "review_status", "created_at")
    list_filter = ("published", "review_status", "region", "difficulty")
    search_fields = ("case_number", "title")
    inlines = [CaseScanInline, QuestionInline]
