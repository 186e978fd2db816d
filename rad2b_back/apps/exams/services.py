import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.cases.models import Case
from utils.exceptions import BusinessLogicException, ConflictException, ResourceNotFoundException, ValidationException
from .models import ExamItem, ExamSession

logger = logging.getLogger(__name__)


def format_time(seconds):
    """남은 시간 표시 (m:ss), 1800 → 30:00 / 59 → 0:59"""
    minutes, secs = divmod(max(int(seconds), 0), 60)
    return f"{minutes}:{secs:02d}"


def word_count(text):
    """공백 기준 단어 수, 비어 있으면 0"""
    if not text or not text.strip():
        return 0
    return len(text.split())


def build_exam_cases(count=None):
    """
    시험 문항 배정

    공개 케이스를 created_at 오름차순으로 1..count 에 배치하고, 부족하면 처음부터 반복한다.
    공개 케이스가 없으면 모든 칸이 None.
    """
    count = count or settings.EXAM_CASE_COUNT
    cases = list(Case.objects.filter(published=True).order_by('created_at', 'id'))
    if not cases:
        return [None] * count
    return [cases[i % len(cases)] for i in range(count)]


class ExamService:
    """시험 세션 비즈니스 로직"""

    @staticmethod
    def get_session(user, session_id):
        try:
            return ExamSession.objects.get(id=session_id, user=user)
        except ExamSession.DoesNotExist:
            raise ResourceNotFoundException(message="시험 세션을 찾을 수 없습니다.")

    @staticmethod
    def get_current_session(user):
        session = (
            ExamSession.objects
            .filter(user=user, status=ExamSession.Status.IN_PROGRESS)
            .order_by('-started_at')
            .first()
        )
        if session is not None:
            ExamService.expire_if_due(session)
            if not session.is_in_progress:
                return None
        return session

    @staticmethod
    @transaction.atomic
    def start(user):
        """
        시험 시작

        진행 중 세션이 있으면 그대로 반환 (사용자당 최대 1개)
        Returns:
            (session, created)
        """
        existing = ExamService.get_current_session(user)
        if existing is not None:
            return existing, False

        session = ExamSession.objects.create(
            user=user,
            duration_seconds=settings.EXAM_DURATION_SECONDS,
            current_position=1,
        )
        ExamItem.objects.bulk_create([
            ExamItem(session=session, position=position, case=case)
            for position, case in enumerate(build_exam_cases(), start=1)
        ])
        logger.info(f"시험 시작: session={session.id} user={user.id}")
        return session, True

    @staticmethod
    def expire_if_due(session, now=None):
        """제한 시간이 지난 진행 중 세션은 expired 로 변경"""
        if session.is_in_progress and session.time_remaining(now) <= 0:
            session.status = ExamSession.Status.EXPIRED
            session.save(update_fields=['status'])
            logger.info(f"시험 시간 종료: session={session.id}")
        return session

    @staticmethod
    def _ensure_editable(session):
        """
        답변/메모/이동 가능 여부 (시간 종료 후에는 제출만 가능)

        expired 저장이 예외와 함께 롤백되지 않도록 트랜잭션 밖에서 호출
        """
        ExamService.expire_if_due(session)
        if session.status == ExamSession.Status.SUBMITTED:
            raise ConflictException(code="EXAM_ALREADY_SUBMITTED", message="이미 제출된 시험입니다.")
        if session.status == ExamSession.Status.EXPIRED:
            raise BusinessLogicException(code="EXAM_EXPIRED", message="시험 시간이 종료되었습니다. 제출만 가능합니다.")

    @staticmethod
    def _get_item(session, position):
        total = session.items.count()
        if position is None or not 1 <= position <= total:
            raise ValidationException(message=f"문항 번호는 1에서 {total} 사이여야 합니다.", field="position")
        return session.items.get(position=position)

    # =========================================================================
    # 상태
    # =========================================================================

    @staticmethod
    def get_state(session, now=None):
        now = now or timezone.now()
        ExamService.expire_if_due(session, now)

        items = list(session.items.select_related('case').order_by('position'))
        remaining = session.time_remaining(now) if session.is_in_progress else 0
        if session.status == ExamSession.Status.SUBMITTED and session.submitted_at:
            remaining = session.time_remaining(session.submitted_at)

        return {
            'id': session.id,
            'status': session.status,
            'started_at': session.started_at,
            'deadline': session.deadline,
            'submitted_at': session.submitted_at,
            'duration_seconds': session.duration_seconds,
            'time_remaining': remaining,
            'display': format_time(remaining),
            'current_position': session.current_position,
            'total': len(items),
            'completed_positions': [item.position for item in items if item.is_completed],
            'answers': {item.position: item.answer for item in items},
            'unanswered_count': sum(1 for item in items if not item.answer.strip()),
            'notes': session.notes,
            'word_count': word_count(session.notes),
            'items': items,
        }

    # =========================================================================
    # 이동
    # =========================================================================

    @staticmethod
    def select(session, position):
        ExamService._ensure_editable(session)
        ExamService._get_item(session, position)
        session.current_position = position
        session.save(update_fields=['current_position'])
        return session

    @staticmethod
    def next(session):
        """현재 문항 완료 처리 후 다음 문항 (마지막 문항에서는 아무 변경 없음)"""
        ExamService._ensure_editable(session)
        item = ExamService._get_item(session, session.current_position)
        if session.current_position >= session.items.count():
            return session

        with transaction.atomic():
            if not item.is_completed:
                item.is_completed = True
                item.save(update_fields=['is_completed', 'updated_at'])
            session.current_position += 1
            session.save(update_fields=['current_position'])
        return session

    @staticmethod
    def previous(session):
        ExamService._ensure_editable(session)
        if session.current_position > 1:
            session.current_position -= 1
            session.save(update_fields=['current_position'])
        return session

    # =========================================================================
    # 답변 / 메모
    # =========================================================================

    @staticmethod
    def save_answer(session, answer, position=None):
        """현재 문항(또는 지정 문항) 답변 저장, 마지막 저장 우선"""
        ExamService._ensure_editable(session)
        item = ExamService._get_item(session, position or session.current_position)
        item.answer = answer
        item.save(update_fields=['answer', 'updated_at'])
        return item

    @staticmethod
    def save_notes(session, notes):
        ExamService._ensure_editable(session)
        session.notes = notes
        session.save(update_fields=['notes'])
        return session

    # =========================================================================
    # 종료 / 제출
    # =========================================================================

    @staticmethod
    def finish_summary(session):
        ExamService.expire_if_due(session)
        items = session.items.all()
        total = items.count()
        answered = sum(1 for answer in items.values_list('answer', flat=True) if answer.strip())
        return {
            'total': total,
            'answered': answered,
            'unanswered_count': total - answered,
            'time_expired': session.status == ExamSession.Status.EXPIRED,
            'status': session.status,
        }

    @staticmethod
    @transaction.atomic
    def submit(session):
        """시험 제출 (시간 종료 후에도 가능, 중복 제출 불가)"""
        from .notifications import notify_exam_submitted

        session = ExamSession.objects.select_for_update().get(pk=session.pk)
        if session.status == ExamSession.Status.SUBMITTED:
            raise ConflictException(code="EXAM_ALREADY_SUBMITTED", message="이미 제출된 시험입니다.")

        session.status = ExamSession.Status.SUBMITTED
        session.submitted_at = timezone.now()
        session.save(update_fields=['status', 'submitted_at'])
        logger.info(f"시험 제출: session={session.id} user={session.user_id}")

        session_id = session.id
        transaction.on_commit(lambda: notify_exam_submitted(session_id))
        return session
