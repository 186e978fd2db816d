import math
from datetime import timedelta

from django.db import models
from django.conf import settings
from django.utils import timezone
from apps.cases.models import Case


class ExamSession(models.Model):
    """
    시험 세션

    화면 상태(현재 위치, 답변, 메모, 남은 시간)를 새로고침 후 이어가기 위해 저장한다.
    잠금 없음 (마지막 저장 우선).
    """

    class Status(models.TextChoices):
        IN_PROGRESS = 'in_progress', '진행 중'
        SUBMITTED = 'submitted', '제출 완료'
        EXPIRED = 'expired', '시간 종료'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='exam_sessions',
        verbose_name='응시자'
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.IN_PROGRESS,
        verbose_name='상태'
    )
    started_at = models.DateTimeField(default=timezone.now, verbose_name='시작일시')
    duration_seconds = models.PositiveIntegerField(default=1800, verbose_name='제한 시간(초)')
    current_position = models.PositiveSmallIntegerField(default=1, verbose_name='현재 문항')
    notes = models.TextField(blank=True, default='', verbose_name='메모')
    submitted_at = models.DateTimeField(null=True, blank=True, verbose_name='제출일시')

    class Meta:
        db_table = 'exam_sessions'
        ordering = ['-started_at']

    def __str__(self):
        return f"Exam #{self.pk} - {self.user} ({self.status})"

    @property
    def deadline(self):
        return self.started_at + timedelta(seconds=self.duration_seconds)

    def time_remaining(self, now=None):
        """남은 시간(초, 올림), 0 미만은 0"""
        now = now or timezone.now()
        return max(math.ceil((self.deadline - now).total_seconds()), 0)

    @property
    def is_in_progress(self):
        return self.status == self.Status.IN_PROGRESS


class ExamItem(models.Model):
    """시험 문항 (position 1..N, 공개 케이스가 없으면 case = null)"""
    session = models.ForeignKey(
        ExamSession,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name='시험 세션'
    )
    position = models.PositiveSmallIntegerField(verbose_name='문항 번호')
    case = models.ForeignKey(
        Case,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exam_items',
        verbose_name='케이스'
    )
    answer = models.TextField(blank=True, default='', verbose_name='답변')
    is_completed = models.BooleanField(default=False, verbose_name='완료 여부')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'exam_items'
        ordering = ['position']
        constraints = [
            models.UniqueConstraint(
                fields=['session', 'position'],
                name='unique_exam_item_position'
            ),
        ]

    def __str__(self):
        return f"Exam #{self.session_id} - {self.position}"
