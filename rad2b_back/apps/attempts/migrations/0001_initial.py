# Generated manually - 케이스 풀이 시도 / 답변 초기 스키마

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("cases", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CaseAttempt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=[("in_progress", "진행 중"), ("completed", "완료"), ("failed", "실패")], default="in_progress", max_length=20, verbose_name="상태")),
                ("score", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, verbose_name="점수")),
                ("started_at", models.DateTimeField(auto_now_add=True, verbose_name="시작일시")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="완료일시")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attempts", to="cases.case", verbose_name="케이스")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="case_attempts", to=settings.AUTH_USER_MODEL, verbose_name="사용자")),
            ],
            options={
                "db_table": "case_attempts",
                "ordering": ["-started_at"],
                "indexes": [
                    models.Index(fields=["user", "case", "-started_at"], name="attempt_user_case_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Answer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("response_text", models.TextField(verbose_name="답변")),
                ("is_correct", models.BooleanField(blank=True, null=True, verbose_name="정답 여부")),
                ("score", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, verbose_name="점수")),
                ("feedback", models.TextField(blank=True, default="", verbose_name="피드백")),
                ("submitted_at", models.DateTimeField(auto_now=True, verbose_name="제출일시")),
                ("attempt", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="answers", to="attempts.caseattempt", verbose_name="시도")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="answers", to="cases.case", verbose_name="케이스")),
                ("question", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="answers", to="cases.question", verbose_name="질문")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="answers", to=settings.AUTH_USER_MODEL, verbose_name="사용자")),
            ],
            options={
                "db_table": "answers",
                "ordering": ["question__display_order", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("attempt", "question"), name="unique_answer_per_attempt_question"),
                ],
            },
        ),
    ]
