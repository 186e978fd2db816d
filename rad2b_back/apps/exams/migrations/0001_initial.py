# Generated manually - 시험 세션 / 문항 초기 스키마

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("cases", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ExamSession",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=[("in_progress", "진행 중"), ("submitted", "제출 완료"), ("expired", "시간 종료")], default="in_progress", max_length=20, verbose_name="상태")),
                ("started_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="시작일시")),
                ("duration_seconds", models.PositiveIntegerField(default=1800, verbose_name="제한 시간(초)")),
                ("current_position", models.PositiveSmallIntegerField(default=1, verbose_name="현재 문항")),
                ("notes", models.TextField(blank=True, default="", verbose_name="메모")),
                ("submitted_at", models.DateTimeField(blank=True, null=True, verbose_name="제출일시")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="exam_sessions", to=settings.AUTH_USER_MODEL, verbose_name="응시자")),
            ],
            options={
                "db_table": "exam_sessions",
                "ordering": ["-started_at"],
            },
        ),
        migrations.CreateModel(
            name="ExamItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(verbose_name="문항 번호")),
                ("answer", models.TextField(blank=True, default="", verbose_name="답변")),
                ("is_completed", models.BooleanField(default=False, verbose_name="완료 여부")),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("case", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="exam_items", to="cases.case", verbose_name="케이스")),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="exams.examsession", verbose_name="시험 세션")),
            ],
            options={
                "db_table": "exam_items",
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(fields=("session", "position"), name="unique_exam_item_position"),
                ],
            },
        ),
    ]
