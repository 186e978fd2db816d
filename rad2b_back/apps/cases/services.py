import logging
import time

from django.db import transaction

from apps.imaging import storage
from utils.exceptions import BusinessLogicException, StorageException, ValidationException
from .models import Case, CaseScan, Question, STANDARD_QUESTION_TEXT, DEFAULT_SCAN_LABEL

logger = logging.getLogger(__name__)

CASE_FIELDS = (
    "case_number",
    "title",
    "description",
    "clinical_history",
    "region",
    "age_group",
    "difficulty",
    "is_free_trial",
    "published",
    "dicom_path",
)

CONTRIBUTION_EDITABLE_STATUSES = (Case.ReviewStatus.DRAFT, Case.ReviewStatus.PENDING_REVIEW)


def _make_permanent_or_fail(path):
    """temp_ 파일 확정 (실패 시 저장 중단)"""
    permanent = storage.make_permanent(path)
    if permanent is None and storage.is_temporary(path):
        # 같은 요청에서 먼저 확정된 파일 (대표 DICOM = 첫 번째 영상)
        confirmed = path.replace(storage.TEMP_PREFIX, "", 1)
        if not storage.exists(path) and storage.exists(confirmed):
            permanent = confirmed
    if permanent is None:
        raise StorageException(
            code="DICOM_PERMANENT_FAILED",
            message="DICOM 파일을 영구 저장하지 못했습니다.",
            detail={"path": path},
        )
    return permanent


def _remove_unreferenced(paths):
    """케이스/영상 어디에서도 참조하지 않는 파일만 삭제"""
    paths = [p for p in paths if p]
    if not paths:
        return
    still_used = set(CaseScan.objects.filter(dicom_path__in=paths).values_list("dicom_path", flat=True))
    still_used |= set(Case.objects.filter(dicom_path__in=paths).values_list("dicom_path", flat=True))
    storage.remove([p for p in paths if p not in still_used])


class CaseService:
    """케이스 라이브러리 비즈니스 로직"""

    # =========================================================================
    # 조회
    # =========================================================================

    @staticmethod
    def get_published_cases():
        return Case.objects.filter(published=True).select_related("created_by")

    @staticmethod
    def get_admin_cases():
        return Case.objects.select_related("created_by", "submitted_by").order_by("-created_at")

    # =========================================================================
    # 관리자 저장
    # =========================================================================

    @staticmethod
    @transaction.atomic
    def save_case(data, user, instance=None):
        """
        케이스 생성/수정

        - dicom_path 가 temp_ 이면 영구 저장 (실패 시 StorageException, 전체 롤백)
        - 대표 DICOM 이 교체되면 이전 파일은 삭제 시도 (실패는 경고 로그만)
        - scans 가 전달되면 목록 동기화, 표준 질문의 모범답안 갱신
        """
        data = dict(data)
        scans = data.pop("scans", None)
        model_answer = data.pop("model_answer", None)
        explanation = data.pop("explanation", None)

        old_dicom_path = instance.dicom_path if instance else ""
        new_dicom_path = data.get("dicom_path", old_dicom_path) or ""
        if new_dicom_path:
            data["dicom_path"] = _make_permanent_or_fail(new_dicom_path)

        if instance is None:
            case = Case(created_by=user, review_status=Case.ReviewStatus.APPROVED)
        else:
            case = instance

        for field in CASE_FIELDS:
            if field in data:
                setattr(case, field, data[field])
        case.save()

        if scans is not None:
            CaseService.sync_scans(case, scans)

        if old_dicom_path and old_dicom_path != case.dicom_path:
            _remove_unreferenced([old_dicom_path])

        CaseService.ensure_standard_question(case, model_answer, explanation)

        logger.info(f"케이스 저장: {case.case_number} (id={case.id}) by={user.id if user else None}")
        return case

    @staticmethod
    def sync_scans(case, items):
        """
        영상 목록 동기화

        - id 있음: 수정 / id 없음: 생성 / 목록에 없는 기존 영상: 삭제
        - dicom_path 없는 항목은 건너뜀
        - display_order = 목록 순서 (1..n)
        """
        existing = {scan.id: scan for scan in case.scans.all()}
        kept_ids = set()
        order = 0

        for item in items:
            dicom_path = (item.get("dicom_path") or "").strip()
            if not dicom_path:
                continue

            dicom_path = _make_permanent_or_fail(dicom_path)
            order += 1

            scan_id = item.get("id")
            scan = existing.get(scan_id) if scan_id else None
            if scan_id and scan is None:
                raise ValidationException(
                    message="이 케이스의 영상이 아닙니다.",
                    field="scans",
                    detail={"id": scan_id},
                )

            if scan is None:
                scan = CaseScan(case=case)

            scan.dicom_path = dicom_path
            scan.label = item.get("label") or DEFAULT_SCAN_LABEL
            scan.display_order = order
            scan.save()
            kept_ids.add(scan.id)

        removed = [scan for scan_id, scan in existing.items() if scan_id not in kept_ids]
        removed_paths = [scan.dicom_path for scan in removed]
        CaseScan.objects.filter(id__in=[scan.id for scan in removed]).delete()

        # 다른 영상/케이스에서 여전히 참조 중인 파일은 유지
        _remove_unreferenced(removed_paths)

        return list(case.scans.order_by("display_order"))

    @staticmethod
    @transaction.atomic
    def sync_questions(case, items):
        """
        질문 목록 동기화 (id 있음: 수정 / 없음: 생성 / 누락: 삭제)

        display_order 는 1..n 으로 재부여
        """
        existing = {q.id: q for q in case.questions.all()}
        kept_ids = set()

        for index, item in enumerate(items, start=1):
            question_id = item.get("id")
            question = existing.get(question_id) if question_id else None
            if question_id and question is None:
                raise ValidationException(
                    message="이 케이스의 질문이 아닙니다.",
                    field="questions",
                    detail={"id": question_id},
                )

            if question is None:
                question = Question(case=case)

            question.question_text = item["question_text"]
            question.type = item.get("type") or Question.QuestionType.REPORT
            question.correct_answer = item.get("correct_answer") or ""
            question.explanation = item.get("explanation") or ""
            question.display_order = index
            question.save()
            kept_ids.add(question.id)

        Question.objects.filter(case=case).exclude(id__in=kept_ids).delete()
        return list(case.questions.order_by("display_order"))

    @staticmethod
    def ensure_standard_question(case, model_answer=None, explanation=None):
        """표준 report 질문 보장 (모범답안 = correct_answer)"""
        question = (
            case.questions
            .filter(type=Question.QuestionType.REPORT, question_text=STANDARD_QUESTION_TEXT)
            .order_by("display_order", "id")
            .first()
        )

        if question is None:
            next_order = case.questions.count() + 1
            question = Question.objects.create(
                case=case,
                question_text=STANDARD_QUESTION_TEXT,
                type=Question.QuestionType.REPORT,
                correct_answer=model_answer or "",
                explanation=explanation or "",
                display_order=next_order,
            )
            return question

        changed = []
        if model_answer is not None:
            question.correct_answer = model_answer
            changed.append("correct_answer")
        if explanation is not None:
            question.explanation = explanation
            changed.append("explanation")
        if changed:
            question.save(update_fields=changed + ["updated_at"])
        return question

    @staticmethod
    def get_standard_question(case):
        return (
            case.questions
            .filter(type=Question.QuestionType.REPORT, question_text=STANDARD_QUESTION_TEXT)
            .order_by("display_order", "id")
            .first()
        )

    # =========================================================================
    # 공개 / 삭제
    # =========================================================================

    @staticmethod
    def set_published(case, published):
        """공개 전환 (공개 시 검토 상태 approved)"""
        case.published = published
        update_fields = ["published", "updated_at"]
        if published:
            case.review_status = Case.ReviewStatus.APPROVED
            update_fields.append("review_status")
        case.save(update_fields=update_fields)
        logger.info(f"케이스 공개 상태 변경: {case.case_number} published={published}")
        return case

    @staticmethod
    def delete_case(case):
        """케이스 삭제 (영상/질문/시도/답변 cascade) 후 파일 삭제 시도"""
        paths = [case.dicom_path] + list(case.scans.values_list("dicom_path", flat=True))
        case_number = case.case_number

        with transaction.atomic():
            case.delete()

        _remove_unreferenced(paths)
        logger.info(f"케이스 삭제: {case_number}")

    # =========================================================================
    # 기여자 제출
    # =========================================================================

    @staticmethod
    def generate_contrib_number():
        """CONTRIB- + 현재 epoch ms 마지막 6자리 (중복 시 다음 값)"""
        base = int(time.time() * 1000)
        for offset in range(1000):
            candidate = f"CONTRIB-{str(base + offset)[-6:]}"
            if not Case.objects.filter(case_number=candidate).exists():
                return candidate
        raise BusinessLogicException(message="케이스 번호를 생성하지 못했습니다.")

    @staticmethod
    @transaction.atomic
    def save_contribution(data, user, instance=None):
        """
        기여자 케이스 저장

        - 신규: CONTRIB-xxxxxx, 비공개, 난이도 medium
        - save_as_draft 에 따라 draft / pending_review
        - 수정은 본인 제출 + draft/pending_review 상태만
        """
        data = dict(data)
        scans = data.pop("scans", None)
        model_answer = data.pop("model_answer", None)
        save_as_draft = data.pop("save_as_draft", False)

        if instance is None:
            case = Case(
                case_number=CaseService.generate_contrib_number(),
                difficulty=Case.Difficulty.MEDIUM,
                published=False,
                created_by=user,
                submitted_by=user,
            )
        else:
            if instance.submitted_by_id != user.id:
                raise BusinessLogicException(message="본인이 제출한 케이스만 수정할 수 있습니다.")
            if instance.review_status not in CONTRIBUTION_EDITABLE_STATUSES:
                raise BusinessLogicException(message="검토가 끝난 케이스는 수정할 수 없습니다.")
            case = instance

        for field in ("title", "description", "region", "age_group", "clinical_history"):
            if field in data:
                setattr(case, field, data[field])

        case.review_status = (
            Case.ReviewStatus.DRAFT if save_as_draft else Case.ReviewStatus.PENDING_REVIEW
        )
        case.rejection_reason = ""
        case.save()

        if scans is not None:
            saved_scans = CaseService.sync_scans(case, scans)
        else:
            saved_scans = list(case.scans.order_by("display_order"))
        if saved_scans and case.dicom_path != saved_scans[0].dicom_path:
            old_dicom_path = case.dicom_path
            case.dicom_path = saved_scans[0].dicom_path
            case.save(update_fields=["dicom_path", "updated_at"])
            # 첫 번째 영상 교체 시 이전 대표 파일 정리
            _remove_unreferenced([old_dicom_path])

        CaseService.ensure_standard_question(case, model_answer)

        logger.info(f"기여 케이스 저장: {case.case_number} status={case.review_status} by={user.id}")
        return case

    @staticmethod
    @transaction.atomic
    def approve(case):
        if case.review_status != Case.ReviewStatus.PENDING_REVIEW:
            raise BusinessLogicException(message="검토 대기 중인 케이스만 승인할 수 있습니다.")
        case.review_status = Case.ReviewStatus.APPROVED
        case.published = True
        case.rejection_reason = ""
        case.save(update_fields=["review_status", "published", "rejection_reason", "updated_at"])
        return case

    @staticmethod
    @transaction.atomic
    def reject(case, reason):
        if case.review_status != Case.ReviewStatus.PENDING_REVIEW:
            raise BusinessLogicException(message="검토 대기 중인 케이스만 반려할 수 있습니다.")
        case.review_status = Case.ReviewStatus.REJECTED
        case.published = False
        case.rejection_reason = reason
        case.save(update_fields=["review_status", "published", "rejection_reason", "updated_at"])
        return case
