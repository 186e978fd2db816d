from django.contrib import admin
from .models import Answer, CaseAttempt


class AnswerInline(admin.TabularInline):
    model = Answer
    extra = 0
    fields = ("question", "response_text", "is_correct", "score", "feedback")
    readonly_fields = ("question", "response_text")


@admin.register(CaseAttempt)
class CaseAttemptAdmin(admin.ModelAdmin):
    list_display = ("id", "case", "user", "status", "score", "started_at", "completed_at")
    list_filter = ("status",)
    search_fields = ("case__case_number", "user__email")
    inlines = [AnswerInline]
