from rest_framework import serializers

from apps.accounts.models import get_creator_name
from utils.validators import (
    UniqueFieldValidator,
    validate_case_number,
    validate_dicom_path,
    validate_not_blank,
)
from .models import Case, CaseScan, Question, DEFAULT_SCAN_LABEL
from .services import CaseService


# =============================================================================
# 영상 / 질문
# =============================================================================

class CaseScanSerializer(serializers.ModelSerializer):
    is_legacy_label = serializers.BooleanField(read_only=True)

    class Meta:
        model = CaseScan
        fields = ['id', 'dicom_path', 'label', 'is_legacy_label', 'display_order']
        read_only_fields = fields


class CaseScanWriteSerializer(serializers.Serializer):
    """영상 입력 (dicom_path 없는 항목은 저장 시 건너뜀)"""
    id = serializers.IntegerField(required=False, allow_null=True)
    dicom_path = serializers.CharField(
        max_length=255, required=False, allow_blank=True, validators=[validate_dicom_path]
    )
    label = serializers.CharField(max_length=50, required=False, default=DEFAULT_SCAN_LABEL)


class QuestionSerializer(serializers.ModelSerializer):
    """관리자 / 완료한 사용자용 (모범답안 포함)"""
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Question
        fields = [
            'id',
            'question_text',
            'type',
            'type_display',
            'correct_answer',
            'explanation',
            'display_order',
        ]
        read_only_fields = fields


class QuestionPublicSerializer(serializers.ModelSerializer):
    """풀이 중 사용자용 (모범답안/해설 제외)"""

    class Meta:
        model = Question
        fields = ['id', 'question_text', 'type', 'display_order']
        read_only_fields = fields


class QuestionWriteSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False, allow_null=True)
    question_text = serializers.CharField()
    type = serializers.ChoiceField(choices=Question.QuestionType.choices, default=Question.QuestionType.REPORT)
    correct_answer = serializers.CharField(required=False, allow_blank=True, default='')
    explanation = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_question_text(self, value):
        return validate_not_blank(value, '질문 내용을 입력해주세요.').strip()


class QuestionsSyncSerializer(serializers.Serializer):
    questions = QuestionWriteSerializer(many=True)


class ScansSyncSerializer(serializers.Serializer):
    scans = CaseScanWriteSerializer(many=True)


# =============================================================================
# 연습 화면 (trainee)
# =============================================================================

class CaseListSerializer(serializers.ModelSerializer):
    """케이스 목록 + 내 시도 상태 (context['attempt_status'])"""
    region_display = serializers.CharField(read_only=True)
    attempt_status = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            'id',
            'case_number',
            'title',
            'region',
            'region_display',
            'age_group',
            'difficulty',
            'is_free_trial',
            'attempt_status',
            'created_at',
        ]
        read_only_fields = fields

    def get_attempt_status(self, obj):
        from apps.attempts.services import STATUS_NOT_ATTEMPTED
        return self.context.get('attempt_status', {}).get(obj.id, STATUS_NOT_ATTEMPTED)


class CaseDetailSerializer(serializers.ModelSerializer):
    """
    케이스 상세

    context['show_answers'] 가 False 면 질문의 모범답안/해설을 숨긴다.
    """
    region_display = serializers.CharField(read_only=True)
    scans = CaseScanSerializer(many=True, read_only=True)
    questions = serializers.SerializerMethodField()
    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            'id',
            'case_number',
            'title',
            'description',
            'clinical_history',
            'region',
            'region_display',
            'age_group',
            'difficulty',
            'is_free_trial',
            'published',
            'dicom_path',
            'scans',
            'questions',
            'created_by_name',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_questions(self, obj):
        questions = obj.questions.order_by('display_order', 'id')
        if self.context.get('show_answers'):
            return QuestionSerializer(questions, many=True).data
        return QuestionPublicSerializer(questions, many=True).data

    def get_created_by_name(self, obj):
        return get_creator_name(obj.created_by)


# =============================================================================
# 관리자
# =============================================================================

class AdminCaseListSerializer(serializers.ModelSerializer):
    region_display = serializers.CharField(read_only=True)
    review_status_display = serializers.CharField(source='get_review_status_display', read_only=True)
    created_by_name = serializers.SerializerMethodField()
    submitted_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            'id',
            'case_number',
            'title',
            'region',
            'region_display',
            'age_group',
            'difficulty',
            'is_free_trial',
            'published',
            'review_status',
            'review_status_display',
            'created_by_name',
            'submitted_by_name',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj):
        return get_creator_name(obj.created_by)

    def get_submitted_by_name(self, obj):
        return obj.submitted_by.display_name if obj.submitted_by else None


class AdminCaseDetailSerializer(CaseDetailSerializer):
    model_answer = serializers.SerializerMethodField()
    review_status_display = serializers.CharField(source='get_review_status_display', read_only=True)
    submitted_by_name = serializers.SerializerMethodField()

    class Meta(CaseDetailSerializer.Meta):
        fields = CaseDetailSerializer.Meta.fields + [
            'review_status',
            'review_status_display',
            'rejection_reason',
            'submitted_by_name',
            'model_answer',
        ]
        read_only_fields = fields

    def get_questions(self, obj):
        return QuestionSerializer(obj.questions.order_by('display_order', 'id'), many=True).data

    def get_model_answer(self, obj):
        question = CaseService.get_standard_question(obj)
        return question.correct_answer if question else ''

    def get_submitted_by_name(self, obj):
        return obj.submitted_by.display_name if obj.submitted_by else None


class AdminCaseWriteSerializer(serializers.ModelSerializer):
    """관리자 케이스 생성/수정 (scans, model_answer 포함)"""
    scans = CaseScanWriteSerializer(many=True, required=False)
    model_answer = serializers.CharField(required=False, allow_blank=True)
    explanation = serializers.CharField(required=False, allow_blank=True)
    dicom_path = serializers.CharField(
        max_length=255, required=False, allow_blank=True, validators=[validate_dicom_path]
    )

    class Meta:
        model = Case
        fields = [
            'case_number',
            'title',
            'description',
            'clinical_history',
            'region',
            'age_group',
            'difficulty',
            'is_free_trial',
            'published',
            'dicom_path',
            'scans',
            'model_answer',
            'explanation',
        ]
        extra_kwargs = {
            # 형식/중복 검증은 validate_case_number 에서 처리
            'case_number': {'validators': []},
        }

    def validate_case_number(self, value):
        value = validate_case_number(value)
        return UniqueFieldValidator.validate(self, 'case_number', value, '케이스 번호')

    def validate_title(self, value):
        return validate_not_blank(value, '제목을 입력해주세요.').strip()

    def create(self, validated_data):
        return CaseService.save_case(validated_data, self.context['request'].user)

    def update(self, instance, validated_data):
        return CaseService.save_case(validated_data, self.context['request'].user, instance=instance)


class PublishSerializer(serializers.Serializer):
    published = serializers.BooleanField()


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField()

    def validate_reason(self, value):
        return validate_not_blank(value, '반려 사유를 입력해주세요.').strip()


# =============================================================================
# 기여자 제출
# =============================================================================

class ContributionSerializer(serializers.ModelSerializer):
    """기여자 케이스 조회"""
    region_display = serializers.CharField(read_only=True)
    review_status_display = serializers.CharField(source='get_review_status_display', read_only=True)
    scans = CaseScanSerializer(many=True, read_only=True)
    model_answer = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            'id',
            'case_number',
            'title',
            'description',
            'region',
            'region_display',
            'age_group',
            'clinical_history',
            'review_status',
            'review_status_display',
            'rejection_reason',
            'scans',
            'model_answer',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_model_answer(self, obj):
        question = CaseService.get_standard_question(obj)
        return question.correct_answer if question else ''


class ContributionWriteSerializer(serializers.ModelSerializer):
    """기여자 케이스 제출/수정"""
    scans = CaseScanWriteSerializer(many=True)
    model_answer = serializers.CharField(required=False, allow_blank=True, default='')
    save_as_draft = serializers.BooleanField(required=False, default=False)

    class Meta:
        model = Case
        fields = [
            'title',
            'description',
            'region',
            'age_group',
            'clinical_history',
            'scans',
            'model_answer',
            'save_as_draft',
        ]

    def validate_title(self, value):
        return validate_not_blank(value, '제목을 입력해주세요.').strip()

    def validate_scans(self, value):
        if not any((scan.get('dicom_path') or '').strip() for scan in value):
            raise serializers.ValidationError('DICOM 영상을 1개 이상 업로드해주세요.')
        return value

    def create(self, validated_data):
        return CaseService.save_contribution(validated_data, self.context['request'].user)

    def update(self, instance, validated_data):
        return CaseService.save_contribution(validated_data, self.context['request'].user, instance=instance)
