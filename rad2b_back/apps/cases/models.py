from django.db import models
from django.conf import settings


# =============================================================================
# 케이스 라이브러리
# =============================================================================
# 모든 케이스는 표준 질문 1개(report)를 가지며 correct_answer = 모범답안
# =============================================================================

STANDARD_QUESTION_TEXT = (
    "Please provide a short report for this patient "
    "and include your recommended next step for onward management"
)

# 영상 라벨 (AP / Lateral 외 값은 이전 데이터 라벨로 취급)
STANDARD_LABELS = ("AP", "Lateral")
DEFAULT_SCAN_LABEL = "AP"


class Case(models.Model):
    """
    케이스 모델

    관리자가 작성한 케이스(approved)와 기여자가 제출한 케이스(draft → pending_review → approved/rejected)를
    한 테이블에서 관리한다. 연습/시험 화면에는 published=True 인 케이스만 노출.
    """

    # =========================================================================
    # 부위 (region)
    # =========================================================================
    class Region(models.TextChoices):
        CHEST = 'chest', 'CXR'
        ABDOMEN = 'abdomen', 'AXR'
        HEAD = 'head', 'Head'
        MUSCULOSKELETAL = 'musculoskeletal', 'MSK'
        CARDIOVASCULAR = 'cardiovascular', 'CV'
        NEURO = 'neuro', 'Neuro'
        OTHER = 'other', 'Other'

    class AgeGroup(models.TextChoices):
        PEDIATRIC = 'pediatric', 'Pediatric'
        ADULT = 'adult', 'Adult'
        GERIATRIC = 'geriatric', 'Geriatric'

    class Difficulty(models.TextChoices):
        EASY = 'easy', 'Easy'
        MEDIUM = 'medium', 'Medium'
        HARD = 'hard', 'Hard'

    # =========================================================================
    # 검토 상태 (기여자 제출 흐름)
    # =========================================================================
    class ReviewStatus(models.TextChoices):
        DRAFT = 'draft', '임시 저장'
        PENDING_REVIEW = 'pending_review', '검토 대기'
        APPROVED = 'approved', '승인'
        REJECTED = 'rejected', '반려'

    case_number = models.CharField(
        max_length=50,
        unique=True,
        verbose_name='케이스 번호'
    )
    title = models.CharField(max_length=200, verbose_name='제목')
    description = models.TextField(blank=True, default='', verbose_name='설명')
    clinical_history = models.TextField(blank=True, default='', verbose_name='임상 병력')

    region = models.CharField(
        max_length=20,
        choices=Region.choices,
        verbose_name='부위'
    )
    age_group = models.CharField(
        max_length=20,
        choices=AgeGroup.choices,
        verbose_name='연령대'
    )
    difficulty = models.CharField(
        max_length=10,
        choices=Difficulty.choices,
        default=Difficulty.MEDIUM,
        verbose_name='난이도'
    )

    is_free_trial = models.BooleanField(default=False, verbose_name='무료 체험 여부')
    published = models.BooleanField(default=False, verbose_name='공개 여부')
    review_status = models.CharField(
        max_length=20,
        choices=ReviewStatus.choices,
        default=ReviewStatus.APPROVED,
        verbose_name='검토 상태'
    )
    rejection_reason = models.TextField(blank=True, default='', verbose_name='반려 사유')

    # 대표 DICOM 경로 (스토리지 내부 경로)
    dicom_path = models.CharField(max_length=255, blank=True, default='', verbose_name='DICOM 경로')

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_cases',
        verbose_name='작성자'
    )
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='submitted_cases',
        verbose_name='제출자'
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name='생성일시')
    updated_at = models.DateTimeField(auto_now=True, verbose_name='수정일시')

    class Meta:
        db_table = 'cases'
        verbose_name = '케이스'
        verbose_name_plural = '케이스 목록'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['published', 'created_at'], name='cases_published_created_idx'),
            models.Index(fields=['review_status'], name='cases_review_status_idx'),
            models.Index(fields=['region'], name='cases_region_idx'),
        ]

    def __str__(self):
        return f"{self.case_number} - {self.title}"

    @property
    def region_display(self):
        return region_display_name(self.region)

    @property
    def is_contribution(self):
        return self.submitted_by_id is not None


def region_display_name(region):
    """부위 약어 (정의되지 않은 값은 Other)"""
    try:
        return Case.Region(region).label
    except ValueError:
        return Case.Region.OTHER.label


class CaseScan(models.Model):
    """케이스에 첨부된 영상 (display_order 순 표시)"""
    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name='scans',
        verbose_name='케이스'
    )
    dicom_path = models.CharField(max_length=255, verbose_name='DICOM 경로')
    label = models.CharField(max_length=50, default=DEFAULT_SCAN_LABEL, verbose_name='라벨')
    display_order = models.PositiveIntegerField(default=1, verbose_name='표시 순서')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'case_scans'
        ordering = ['display_order', 'id']

    def __str__(self):
        return f"{self.case.case_number} #{self.display_order} ({self.label})"

    @property
    def is_legacy_label(self):
        return self.label not in STANDARD_LABELS


class Question(models.Model):
    class QuestionType(models.TextChoices):
        REPORT = 'report', 'Report'
        MANAGEMENT = 'management', 'Management'
        MULTIPLE_CHOICE = 'multiple_choice', 'Multiple choice'
        SHORT_ANSWER = 'short_answer', 'Short answer'

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name='questions',
        verbose_name='케이스'
    )
    question_text = models.TextField(verbose_name='질문')
    type = models.CharField(
        max_length=20,
        choices=QuestionType.choices,
        default=QuestionType.REPORT,
        verbose_name='질문 유형'
    )
    correct_answer = models.TextField(blank=True, default='', verbose_name='모범답안')
    explanation = models.TextField(blank=True, default='', verbose_name='해설')
    display_order = models.PositiveIntegerField(default=1, verbose_name='표시 순서')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'questions'
        ordering = ['display_order', 'id']

    def __str__(self):
        return f"{self.case.case_number} Q{self.display_order}"
