from rest_framework import serializers

from .models import Answer, CaseAttempt


class CaseAttemptSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = CaseAttempt
        fields = [
            'id',
            'case',
            'status',
            'status_display',
            'score',
            'started_at',
            'completed_at',
        ]
        read_only_fields = fields


class AttemptStatusSerializer(serializers.Serializer):
    """현재 시도 상태 응답"""
    case_id = serializers.IntegerField()
    status = serializers.CharField()
    attempt = CaseAttemptSerializer(allow_null=True)


class AnswerSubmitSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    # 공백 검사는 서비스에서 ("Please enter your answer")
    response_text = serializers.CharField(allow_blank=True, trim_whitespace=False)


class AnswerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Answer
        fields = [
            'id',
            'case',
            'question',
            'attempt',
            'response_text',
            'is_correct',
            'score',
            'feedback',
            'submitted_at',
        ]
        read_only_fields = fields


class AnswerSubmitResultSerializer(serializers.Serializer):
    answer = AnswerSerializer()
    attempt = CaseAttemptSerializer()


class ReviewItemSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    question_text = serializers.CharField()
    type = serializers.CharField()
    display_order = serializers.IntegerField()
    response_text = serializers.CharField(allow_null=True)
    is_correct = serializers.BooleanField(allow_null=True)
    score = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)
    feedback = serializers.CharField(allow_blank=True)
    correct_answer = serializers.CharField(allow_blank=True)
    explanation = serializers.CharField(allow_blank=True)


class ReviewSerializer(serializers.Serializer):
    attempt = CaseAttemptSerializer()
    items = ReviewItemSerializer(many=True)


class ProgressSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    attempted = serializers.IntegerField()
    completed = serializers.IntegerField()
    remaining = serializers.IntegerField()
    percentage = serializers.IntegerField()


class FeedbackSerializer(serializers.Serializer):
    """관리자 피드백 입력 (모든 필드 선택)"""
    is_correct = serializers.BooleanField(required=False, allow_null=True)
    score = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, allow_null=True, min_value=0, max_value=100
    )
    feedback = serializers.CharField(required=False, allow_blank=True)
