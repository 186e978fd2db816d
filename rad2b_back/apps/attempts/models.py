from django.db import models
from django.conf import settings
from apps.cases.models import Case, Question


class CaseAttempt(models.Model):
    """케이스 풀이 시도 (사용자 x 케이스)"""

    class Status(models.TextChoices):
        IN_PROGRESS = 'in_progress', '진행 중'
        COMPLETED = 'completed', '완료'
        FAILED = 'failed', '실패'

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name='attempts',
        verbose_name='케이스'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='case_attempts',
        verbose_name='사용자'
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.IN_PROGRESS,
        verbose_name='상태'
    )
    score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name='점수'
    )
    started_at = models.DateTimeField(auto_now_add=True, verbose_name='시작일시')
    completed_at = models.DateTimeField(null=True, blank=True, verbose_name='완료일시')

    class Meta:
        db_table = 'case_attempts'
        ordering = ['-started_at']
        indexes = [
            models.Index(fields=['user', 'case', '-started_at'], name='attempt_user_case_idx'),
        ]

    def __str__(self):
        return f"{self.user} - {self.case.case_number} ({self.status})"


class Answer(models.Model):
    """질문별 답변 (시도마다 질문당 1건)"""
    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name='answers',
        verbose_name='케이스'
    )
    question = models.ForeignKey(
        Question,
        on_delete=models.CASCADE,
        related_name='answers',
        verbose_name='질문'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='answers',
        verbose_name='사용자'
    )
    attempt = models.ForeignKey(
        CaseAttempt,
        on_delete=models.CASCADE,
        related_name='answers',
        verbose_name='시도'
    )
    response_text = models.TextField(verbose_name='답변')

    # 관리자 피드백 (자동 채점 없음)
    is_correct = models.BooleanField(null=True, blank=True, verbose_name='정답 여부')
    score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name='점수'
    )
    feedback = models.TextField(blank=True, default='', verbose_name='피드백')

    submitted_at = models.DateTimeField(auto_now=True, verbose_name='제출일시')

    class Meta:
        db_table = 'answers'
        ordering = ['question__display_order', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['attempt', 'question'],
                name='unique_answer_per_attempt_question'
            ),
        ]

    def __str__(self):
        return f"{self.user} - Q{self.question_id}"
