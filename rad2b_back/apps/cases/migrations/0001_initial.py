# Generated manually - 케이스 / 영상 / 질문 초기 스키마

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Case",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("case_number", models.CharField(max_length=50, unique=True, verbose_name="케이스 번호")),
                ("title", models.CharField(max_length=200, verbose_name="제목")),
                ("description", models.TextField(blank=True, default="", verbose_name="설명")),
                ("clinical_history", models.TextField(blank=True, default="", verbose_name="임상 병력")),
                ("region", models.CharField(choices=[("chest", "CXR"), ("abdomen", "AXR"), ("head", "Head"), ("musculoskeletal", "MSK"), ("cardiovascular", "CV"), ("neuro", "Neuro"), ("other", "Other")], max_length=20, verbose_name="부위")),
                ("age_group", models.CharField(choices=[("pediatric", "Pediatric"), ("adult", "Adult"), ("geriatric", "Geriatric")], max_length=20, verbose_name="연령대")),
                ("difficulty", models.CharField(choices=[("easy", "Easy"), ("medium", "Medium"), ("hard", "Hard")], default="medium", max_length=10, verbose_name="난이도")),
                ("is_free_trial", models.BooleanField(default=False, verbose_name="무료 체험 여부")),
                ("published", models.BooleanField(default=False, verbose_name="공개 여부")),
                ("review_status", models.CharField(choices=[("draft", "임시 저장"), ("pending_review", "검토 대기"), ("approved", "승인"), ("rejected", "반려")], default="approved", max_length=20, verbose_name="검토 상태")),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="반려 사유")),
                ("dicom_path", models.CharField(blank=True, default="", max_length=255, verbose_name="DICOM 경로")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="생성일시")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="수정일시")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_cases", to=settings.AUTH_USER_MODEL, verbose_name="작성자")),
                ("submitted_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="submitted_cases", to=settings.AUTH_USER_MODEL, verbose_name="제출자")),
            ],
            options={
                "verbose_name": "케이스",
                "verbose_name_plural": "케이스 목록",
                "db_table": "cases",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["published", "created_at"], name="cases_published_created_idx"),
                    models.Index(fields=["review_status"], name="cases_review_status_idx"),
                    models.Index(fields=["region"], name="cases_region_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CaseScan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("dicom_path", models.CharField(max_length=255, verbose_name="DICOM 경로")),
                ("label", models.CharField(default="AP", max_length=50, verbose_name="라벨")),
                ("display_order", models.PositiveIntegerField(default=1, verbose_name="표시 순서")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="scans", to="cases.case", verbose_name="케이스")),
            ],
            options={
                "db_table": "case_scans",
                "ordering": ["display_order", "id"],
            },
        ),
        migrations.CreateModel(
            name="Question",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("question_text", models.TextField(verbose_name="질문")),
                ("type", models.CharField(choices=[("report", "Report"), ("management", "Management"), ("multiple_choice", "Multiple choice"), ("short_answer", "Short answer")], default="report", max_length=20, verbose_name="질문 유형")),
                ("correct_answer", models.TextField(blank=True, default="", verbose_name="모범답안")),
                ("explanation", models.TextField(blank=True, default="", verbose_name="해설")),
                ("display_order", models.PositiveIntegerField(default=1, verbose_name="표시 순서")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="questions", to="cases.case", verbose_name="케이스")),
            ],
            options={
                "db_table": "questions",
                "ordering": ["display_order", "id"],
            },
        ),
    ]
