from django.contrib import admin
from .models import ExamItem, ExamSession


class ExamItemInline(admin.TabularInline):
    model = ExamItem
    extra = 0
    fields = ("position", "case", "answer", "is_completed")
    readonly_fields = ("position", "case")


@admin.register(ExamSession)
class ExamSessionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "status", "started_at", "current_position", "submitted_at")
    list_filter = ("status",)
    search_fields = ("user__email",)
    inlines = [ExamItemInline]
