import logging
import math

from django.db import transaction
from django.utils import timezone

from apps.cases.models import Case, Question
from utils.exceptions import BusinessLogicException, ResourceNotFoundException, ValidationException
from .models import Answer, CaseAttempt

logger = logging.getLogger(__name__)

# 목록 화면 표시용 상태
STATUS_NOT_ATTEMPTED = "Not Attempted"
STATUS_IN_PROGRESS = "In Progress"
STATUS_COMPLETED = "Completed"

NOT_STARTED = "not_started"


def progress_percentage(completed, total):
    """완료율 (%), total = 0 이면 0 (.5 는 올림)"""
    if not total:
        return 0
    return math.floor(completed / total * 100 + 0.5)


class AttemptService:
    """케이스 풀이 시도 / 답변 비즈니스 로직"""

    @staticmethod
    def get_latest_attempt(case, user):
        return (
            CaseAttempt.objects
            .filter(case=case, user=user)
            .order_by("-started_at", "-id")
            .first()
        )

    @staticmethod
    def get_current_status(case, user):
        """
        현재 시도 상태

        최근 시도 기준, 없으면 not_started. failed 는 in_progress 로 보고한다.
        """
        attempt = AttemptService.get_latest_attempt(case, user)
        if attempt is None:
            return NOT_STARTED, None
        if attempt.status == CaseAttempt.Status.FAILED:
            return CaseAttempt.Status.IN_PROGRESS.value, attempt
        return attempt.status, attempt

    @staticmethod
    def get_status_labels(user, case_ids):
        """
        케이스 목록용 상태 라벨 {case_id: "Completed" | "In Progress"}

        완료된 시도가 하나라도 있으면 Completed
        """
        labels = {}
        rows = (
            CaseAttempt.objects
            .filter(user=user, case_id__in=case_ids)
            .values_list("case_id", "status")
        )
        for case_id, status in rows:
            if status == CaseAttempt.Status.COMPLETED:
                labels[case_id] = STATUS_COMPLETED
            else:
                labels.setdefault(case_id, STATUS_IN_PROGRESS)
        return labels

    @staticmethod
    def has_completed(case, user):
        return CaseAttempt.objects.filter(
            case=case, user=user, status=CaseAttempt.Status.COMPLETED
        ).exists()

    @staticmethod
    @transaction.atomic
    def start_attempt(case, user):
        """
        시도 시작

        공개 케이스만 가능, 진행 중 시도가 있으면 그대로 반환
        Returns:
            (attempt, created)
        """
        if not case.published:
            raise BusinessLogicException(message="공개되지 않은 케이스입니다.")

        existing = (
            CaseAttempt.objects
            .select_for_update()
            .filter(case=case, user=user, status=CaseAttempt.Status.IN_PROGRESS)
            .order_by("-started_at")
            .first()
        )
        if existing:
            return existing, False

        attempt = CaseAttempt.objects.create(case=case, user=user)
        logger.info(f"시도 시작: case={case.id} user={user.id} attempt={attempt.id}")
        return attempt, True

    @staticmethod
    @transaction.atomic
    def submit_answer(case, user, question_id, response_text):
        """
        답변 제출

        - 공백만 있는 답변 거부
        - 같은 시도에서 같은 질문 재제출 시 덮어쓰기
        - 모든 질문에 답하면 시도 완료 처리
        """
        if not response_text or not response_text.strip():
            raise ValidationException(message="Please enter your answer", field="response_text")

        try:
            question = Question.objects.get(id=question_id, case=case)
        except Question.DoesNotExist:
            raise ResourceNotFoundException(message="이 케이스의 질문이 아닙니다.", field="question_id")

        attempt = (
            CaseAttempt.objects
            .select_for_update()
            .filter(case=case, user=user, status=CaseAttempt.Status.IN_PROGRESS)
            .order_by("-started_at")
            .first()
        )
        if attempt is None:
            raise BusinessLogicException(message="진행 중인 시도가 없습니다. 먼저 시도를 시작하세요.")

        answer, _ = Answer.objects.update_or_create(
            attempt=attempt,
            question=question,
            defaults={
                "case": case,
                "user": user,
                "response_text": response_text.strip(),
            },
        )

        answered = attempt.answers.count()
        total = case.questions.count()
        if total and answered >= total:
            attempt.status = CaseAttempt.Status.COMPLETED
            attempt.completed_at = timezone.now()
            attempt.save(update_fields=["status", "completed_at"])
            logger.info(f"시도 완료: attempt={attempt.id}")

        return answer, attempt

    @staticmethod
    def get_answered_map(case, user):
        """
        질문별 답변 {question_id: {response_text, is_correct, feedback}}

        같은 질문에 여러 시도가 있으면 최근 답변 기준
        """
        answers = (
            Answer.objects
            .filter(case=case, user=user)
            .order_by("submitted_at", "id")
        )
        return {
            answer.question_id: {
                "response_text": answer.response_text,
                "is_correct": answer.is_correct,
                "feedback": answer.feedback,
            }
            for answer in answers
        }

    @staticmethod
    def get_review(case, user):
        """완료된 시도의 답변 + 모범답안/해설"""
        attempt = (
            CaseAttempt.objects
            .filter(case=case, user=user, status=CaseAttempt.Status.COMPLETED)
            .order_by("-completed_at", "-id")
            .first()
        )
        if attempt is None:
            raise BusinessLogicException(message="완료된 시도가 없습니다.")

        answers = {a.question_id: a for a in attempt.answers.all()}
        items = []
        for question in case.questions.order_by("display_order", "id"):
            answer = answers.get(question.id)
            items.append({
                "question_id": question.id,
                "question_text": question.question_text,
                "type": question.type,
                "display_order": question.display_order,
                "response_text": answer.response_text if answer else None,
                "is_correct": answer.is_correct if answer else None,
                "score": answer.score if answer else None,
                "feedback": answer.feedback if answer else "",
                "correct_answer": question.correct_answer,
                "explanation": question.explanation,
            })
        return attempt, items

    @staticmethod
    def get_progress_summary(user):
        """공개 케이스 기준 진행 현황"""
        published_ids = Case.objects.filter(published=True).values_list("id", flat=True)
        total = published_ids.count()

        attempts = CaseAttempt.objects.filter(user=user, case_id__in=published_ids)
        attempted = attempts.values("case_id").distinct().count()
        completed = (
            attempts.filter(status=CaseAttempt.Status.COMPLETED)
            .values("case_id").distinct().count()
        )

        return {
            "total": total,
            "attempted": attempted,
            "completed": completed,
            "remaining": total - attempted,
            "percentage": progress_percentage(completed, total),
        }

    @staticmethod
    @transaction.atomic
    def give_feedback(answer, is_correct=None, score=None, feedback=None):
        """관리자 피드백 (자동 채점 없음)"""
        if is_correct is not None:
            answer.is_correct = is_correct
        if score is not None:
            answer.score = score
        if feedback is not None:
            answer.feedback = feedback
        answer.save(update_fields=["is_correct", "score", "feedback"])
        return answer
