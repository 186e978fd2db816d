from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.accounts.models import Role, User
from apps.cases.models import Case, Question
from apps.cases.services import CaseService
from utils.exceptions import BusinessLogicException, ValidationException
from .models import Answer, CaseAttempt
from .services import AttemptService, NOT_STARTED, progress_percentage


def create_case(case_number, published=True, question_count=1):
    case = Case.objects.create(
        case_number=case_number,
        title=f'Case {case_number}',
        region=Case.Region.CHEST,
        age_group=Case.AgeGroup.ADULT,
        published=published,
    )
    CaseService.ensure_standard_question(case, model_answer='Model answer', explanation='Why')
    for order in range(2, question_count + 1):
        Question.objects.create(case=case, question_text=f'Question {order}', display_order=order)
    return case


class ProgressPercentageTest(TestCase):
    """완료율 계산 테스트"""

    def test_zero_total(self):
        self.assertEqual(progress_percentage(0, 0), 0)

    def test_rounding(self):
        self.assertEqual(progress_percentage(1, 3), 33)
        self.assertEqual(progress_percentage(2, 3), 67)
        self.assertEqual(progress_percentage(1, 8), 13)
        self.assertEqual(progress_percentage(4, 4), 100)


class AttemptServiceTest(TestCase):
    """시도 / 답변 서비스 테스트"""

    def setUp(self):
        self.user = User.objects.create_user(
            email='trainee@test.com', password='testpass123', role=Role.objects.get(code=Role.TRAINEE)
        )
        self.case = create_case('001', question_count=2)
        self.q1, self.q2 = list(self.case.questions.order_by('display_order'))

    def test_status_not_started(self):
        self.assertEqual(AttemptService.get_current_status(self.case, self.user), (NOT_STARTED, None))

    def test_failed_reported_as_in_progress(self):
        CaseAttempt.objects.create(case=self.case, user=self.user, status=CaseAttempt.Status.FAILED)

        attempt_status, attempt = AttemptService.get_current_status(self.case, self.user)

        self.assertEqual(attempt_status, 'in_progress')
        self.assertEqual(attempt.status, CaseAttempt.Status.FAILED)

    def test_start_is_idempotent(self):
        first, created = AttemptService.start_attempt(self.case, self.user)
        second, created_again = AttemptService.start_attempt(self.case, self.user)

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(first.id, second.id)

    def test_start_requires_published(self):
        hidden = create_case('002', published=False)
        with self.assertRaises(BusinessLogicException):
            AttemptService.start_attempt(hidden, self.user)

    def test_resubmit_replaces_answer(self):
        AttemptService.start_attempt(self.case, self.user)
        AttemptService.submit_answer(self.case, self.user, self.q1.id, 'first')
        AttemptService.submit_answer(self.case, self.user, self.q1.id, '  second  ')

        answers = Answer.objects.filter(user=self.user, question=self.q1)
        self.assertEqual(answers.count(), 1)
        self.assertEqual(answers.first().response_text, 'second')

    def test_completes_when_all_answered(self):
        AttemptService.start_attempt(self.case, self.user)
        _, attempt = AttemptService.submit_answer(self.case, self.user, self.q1.id, 'answer 1')
        self.assertEqual(attempt.status, CaseAttempt.Status.IN_PROGRESS)

        _, attempt = AttemptService.submit_answer(self.case, self.user, self.q2.id, 'answer 2')
        self.assertEqual(attempt.status, CaseAttempt.Status.COMPLETED)
        self.assertIsNotNone(attempt.completed_at)

    def test_blank_answer_rejected(self):
        AttemptService.start_attempt(self.case, self.user)
        with self.assertRaises(ValidationException) as ctx:
            AttemptService.submit_answer(self.case, self.user, self.q1.id, '   ')
        self.assertEqual(ctx.exception.message, 'Please enter your answer')

    def test_progress_summary(self):
        create_case('003')
        create_case('004')
        create_case('005', published=False)
        AttemptService.start_attempt(self.case, self.user)
        other, _ = AttemptService.start_attempt(Case.objects.get(case_number='003'), self.user)
        other.status = CaseAttempt.Status.COMPLETED
        other.save()

        summary = AttemptService.get_progress_summary(self.user)

        self.assertEqual(summary, {
            'total': 3,
            'attempted': 2,
            'completed': 1,
            'remaining': 1,
            'percentage': 33,
        })


class AttemptAPITest(APITestCase):
    """케이스 풀이 API 테스트"""

    def setUp(self):
        self.user = User.objects.create_user(
            email='trainee@test.com', password='testpass123', role=Role.objects.get(code=Role.TRAINEE)
        )
        self.admin = User.objects.create_user(
            email='admin@test.com', password='testpass123', role=Role.objects.get(code=Role.ADMIN)
        )
        self.case = create_case('001')
        self.question = self.case.questions.get()
        self.client.force_authenticate(user=self.user)

    def test_full_flow(self):
        """시작 → 답변 → 완료 → 리뷰"""
        response = self.client.get(reverse('case-attempt-current', args=[self.case.id]))
        self.assertEqual(response.data['status'], NOT_STARTED)
        self.assertIsNone(response.data['attempt'])

        response = self.client.post(reverse('case-attempt-start', args=[self.case.id]))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(reverse('case-attempt-start', args=[self.case.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        # 완료 전 리뷰 불가
        response = self.client.get(reverse('case-attempt-review', args=[self.case.id]))
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

        response = self.client.post(reverse('case-attempt-answers', args=[self.case.id]), {
            'question_id': self.question.id,
            'response_text': 'Consolidation in the right lower lobe.',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['attempt']['status'], CaseAttempt.Status.COMPLETED)

        response = self.client.get(reverse('case-attempt-answers', args=[self.case.id]))
        self.assertEqual(
            response.data[str(self.question.id)]['response_text'],
            'Consolidation in the right lower lobe.',
        )

        response = self.client.get(reverse('case-attempt-review', args=[self.case.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item = response.data['items'][0]
        self.assertEqual(item['correct_answer'], 'Model answer')
        self.assertEqual(item['explanation'], 'Why')

    def test_blank_answer(self):
        self.client.post(reverse('case-attempt-start', args=[self.case.id]))

        response = self.client.post(reverse('case-attempt-answers', args=[self.case.id]), {
            'question_id': self.question.id,
            'response_text': '   ',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['message'], 'Please enter your answer')

    def test_answer_without_attempt(self):
        response = self.client.post(reverse('case-attempt-answers', args=[self.case.id]), {
            'question_id': self.question.id,
            'response_text': 'answer',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_question_from_other_case(self):
        other = create_case('002')
        self.client.post(reverse('case-attempt-start', args=[self.case.id]))

        response = self.client.post(reverse('case-attempt-answers', args=[self.case.id]), {
            'question_id': other.questions.get().id,
            'response_text': 'answer',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unpublished_case_not_found(self):
        hidden = create_case('003', published=False)

        response = self.client.post(reverse('case-attempt-start', args=[hidden.id]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_progress(self):
        response = self.client.get(reverse('attempt-progress'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['percentage'], 0)

    def test_admin_feedback(self):
        attempt = CaseAttempt.objects.create(case=self.case, user=self.user)
        answer = Answer.objects.create(
            case=self.case, question=self.question, user=self.user, attempt=attempt, response_text='answer'
        )
        url = reverse('answer-feedback', args=[answer.id])

        response = self.client.patch(url, {'feedback': 'Good'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(url, {'is_correct': True, 'score': '80.00', 'feedback': 'Good'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        answer.refresh_from_db()
        self.assertTrue(answer.is_correct)
        self.assertEqual(str(answer.score), '80.00')
        self.assertEqual(answer.feedback, 'Good')
