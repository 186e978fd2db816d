from rest_framework import serializers

from apps.cases.models import Case
from apps.cases.serializers import CaseScanSerializer
from .models import ExamItem, ExamSession


class ExamCaseSerializer(serializers.ModelSerializer):
    """시험 화면용 케이스 (모범답안 제외)"""
    region_display = serializers.CharField(read_only=True)
    scans = CaseScanSerializer(many=True, read_only=True)

    class Meta:
        model = Case
        fields = [
            'id',
            'case_number',
            'title',
            'clinical_history',
            'region',
            'region_display',
            'age_group',
            'dicom_path',
            'scans',
        ]
        read_only_fields = fields


class ExamItemSerializer(serializers.ModelSerializer):
    case = ExamCaseSerializer(read_only=True, allow_null=True)

    class Meta:
        model = ExamItem
        fields = ['position', 'case', 'answer', 'is_completed', 'updated_at']
        read_only_fields = fields


class ExamSessionSerializer(serializers.ModelSerializer):
    """시험 이력 목록"""
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = ExamSession
        fields = [
            'id',
            'status',
            'status_display',
            'started_at',
            'duration_seconds',
            'current_position',
            'submitted_at',
        ]
        read_only_fields = fields


class ExamStateSerializer(serializers.Serializer):
    """시험 화면 상태 (ExamService.get_state 결과)"""
    id = serializers.IntegerField()
    status = serializers.CharField()
    started_at = serializers.DateTimeField()
    deadline = serializers.DateTimeField()
    submitted_at = serializers.DateTimeField(allow_null=True)
    duration_seconds = serializers.IntegerField()
    time_remaining = serializers.IntegerField()
    display = serializers.CharField()
    current_position = serializers.IntegerField()
    total = serializers.IntegerField()
    completed_positions = serializers.ListField(child=serializers.IntegerField())
    answers = serializers.DictField(child=serializers.CharField(allow_blank=True))
    unanswered_count = serializers.IntegerField()
    notes = serializers.CharField(allow_blank=True)
    word_count = serializers.IntegerField()
    items = ExamItemSerializer(many=True)


class PositionSerializer(serializers.Serializer):
    position = serializers.IntegerField(min_value=1)


class ExamAnswerSerializer(serializers.Serializer):
    answer = serializers.CharField(allow_blank=True, trim_whitespace=False)
    position = serializers.IntegerField(required=False, min_value=1)


class ExamNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True, trim_whitespace=False)


class FinishSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    answered = serializers.IntegerField()
    unanswered_count = serializers.IntegerField()
    time_expired = serializers.BooleanField()
    status = serializers.CharField()
