from datetime import timedelta
from unittest import mock

from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.test import TestCase, TransactionTestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.accounts.models import Role, User
from apps.cases.models import Case
from config.routing import websocket_urlpatterns
from utils.exceptions import BusinessLogicException, ConflictException, ValidationException
from .models import ExamSession
from .notifications import exam_group_name
from .services import ExamService, build_exam_cases, format_time, word_count


def create_trainee(email='trainee@test.com'):
    role, _ = Role.objects.get_or_create(code=Role.TRAINEE, defaults={'name': 'Trainee'})
    return User.objects.create_user(email=email, password='testpass123', role=role)


def create_case(case_number, published=True):
    return Case.objects.create(
        case_number=case_number,
        title=f'Case {case_number}',
        region=Case.Region.CHEST,
        age_group=Case.AgeGroup.ADULT,
        published=published,
    )


def expire(session):
    """제한 시간이 지난 세션으로 변경"""
    ExamSession.objects.filter(pk=session.pk).update(
        started_at=timezone.now() - timedelta(seconds=session.duration_seconds + 1)
    )
    session.refresh_from_db()


class ExamHelperTest(TestCase):
    """시간 표시 / 단어 수 / 문항 배정 테스트"""

    def test_format_time(self):
        self.assertEqual(format_time(1800), '30:00')
        self.assertEqual(format_time(59), '0:59')
        self.assertEqual(format_time(61), '1:01')
        self.assertEqual(format_time(0), '0:00')
        self.assertEqual(format_time(-5), '0:00')

    def test_word_count(self):
        self.assertEqual(word_count(''), 0)
        self.assertEqual(word_count('   '), 0)
        self.assertEqual(word_count('  right  lower\nlobe '), 3)

    def test_build_exam_cases_cycles(self):
        """공개 케이스를 created_at 순서로 반복 배치"""
        first = create_case('A')
        second = create_case('B')
        create_case('HIDDEN', published=False)

        cases = build_exam_cases()

        self.assertEqual(len(cases), 25)
        self.assertEqual(cases[:4], [first, second, first, second])
        self.assertEqual(cases[24], first)

    def test_build_exam_cases_empty(self):
        self.assertEqual(build_exam_cases(), [None] * 25)


class ExamServiceTest(TestCase):
    """시험 세션 서비스 테스트"""

    def setUp(self):
        self.user = create_trainee()
        create_case('A')
        self.session, _ = ExamService.start(self.user)

    def test_start_creates_items(self):
        self.assertEqual(self.session.items.count(), 25)
        self.assertEqual(self.session.current_position, 1)
        self.assertEqual(self.session.duration_seconds, 1800)

    def test_start_returns_in_progress_session(self):
        again, created = ExamService.start(self.user)

        self.assertFalse(created)
        self.assertEqual(again.id, self.session.id)

    def test_start_after_expiry_creates_new_session(self):
        expire(self.session)

        new_session, created = ExamService.start(self.user)

        self.assertTrue(created)
        self.assertNotEqual(new_session.id, self.session.id)
        self.session.refresh_from_db()
        self.assertEqual(self.session.status, ExamSession.Status.EXPIRED)

    @override_settings(EXAM_DURATION_SECONDS=600)
    def test_duration_from_settings(self):
        other, _ = ExamService.start(create_trainee('other@test.com'))
        self.assertEqual(other.duration_seconds, 600)

    def test_state(self):
        ExamService.save_answer(self.session, 'Pneumothorax')
        ExamService.save_notes(self.session, 'check apex  again')

        state = ExamService.get_state(self.session, now=self.session.started_at + timedelta(seconds=1741))

        self.assertEqual(state['time_remaining'], 59)
        self.assertEqual(state['display'], '0:59')
        self.assertEqual(state['answers'][1], 'Pneumothorax')
        self.assertEqual(state['unanswered_count'], 24)
        self.assertEqual(state['word_count'], 3)
        self.assertEqual(state['total'], 25)

    def test_navigation(self):
        """next 는 현재 문항 완료 처리, 마지막 문항에서는 변경 없음"""
        ExamService.previous(self.session)
        self.assertEqual(self.session.current_position, 1)

        ExamService.next(self.session)
        self.assertEqual(self.session.current_position, 2)
        self.assertEqual(ExamService.get_state(self.session)['completed_positions'], [1])

        ExamService.select(self.session, 25)
        ExamService.next(self.session)
        self.assertEqual(self.session.current_position, 25)
        self.assertEqual(ExamService.get_state(self.session)['completed_positions'], [1])

        ExamService.previous(self.session)
        self.assertEqual(self.session.current_position, 24)

    def test_select_out_of_range(self):
        with self.assertRaises(ValidationException):
            ExamService.select(self.session, 26)

    def test_expired_session_allows_only_submit(self):
        expire(self.session)

        self.assertTrue(ExamService.finish_summary(self.session)['time_expired'])
        with self.assertRaises(BusinessLogicException):
            ExamService.save_answer(self.session, 'late answer')
        with self.assertRaises(BusinessLogicException):
            ExamService.next(self.session)

        submitted = ExamService.submit(self.session)
        self.assertEqual(submitted.status, ExamSession.Status.SUBMITTED)

    def test_expiry_persists_when_edit_refused(self):
        """편집 거부 시에도 expired 상태는 저장됨"""
        expire(self.session)

        for edit in (
            lambda: ExamService.save_answer(self.session, 'late answer'),
            lambda: ExamService.save_notes(self.session, 'late notes'),
            lambda: ExamService.select(self.session, 3),
            lambda: ExamService.next(self.session),
            lambda: ExamService.previous(self.session),
        ):
            ExamSession.objects.filter(pk=self.session.pk).update(status=ExamSession.Status.IN_PROGRESS)
            self.session.refresh_from_db()

            with self.assertRaises(BusinessLogicException):
                edit()

            self.session.refresh_from_db()
            self.assertEqual(self.session.status, ExamSession.Status.EXPIRED)

    def test_submit_twice(self):
        ExamService.submit(self.session)
        with self.assertRaises(ConflictException):
            ExamService.submit(self.session)

    def test_submit_notifies_timer(self):
        with mock.patch('apps.exams.notifications.notify_exam_submitted') as notify:
            with self.captureOnCommitCallbacks(execute=True):
                ExamService.submit(self.session)

        notify.assert_called_once_with(self.session.id)


class ExamAPITest(APITestCase):
    """시험 API 테스트"""

    def setUp(self):
        self.user = create_trainee()
        create_case('A')
        self.client.force_authenticate(user=self.user)

    def _start(self):
        return self.client.post(reverse('exam-list'))

    def test_start_and_resume(self):
        response = self._start()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['display'], '30:00')
        self.assertEqual(len(response.data['items']), 25)
        self.assertEqual(response.data['items'][0]['case']['case_number'], 'A')

        again = self._start()
        self.assertEqual(again.status_code, status.HTTP_200_OK)
        self.assertEqual(again.data['id'], response.data['id'])

        current = self.client.get(reverse('exam-current'))
        self.assertEqual(current.data['id'], response.data['id'])

    def test_no_current_exam(self):
        response = self.client.get(reverse('exam-current'))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_answer_notes_and_navigation(self):
        session_id = self._start().data['id']

        response = self.client.put(reverse('exam-answer', args=[session_id]), {'answer': 'Normal study'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['position'], 1)

        response = self.client.put(
            reverse('exam-answer', args=[session_id]), {'answer': 'Fracture', 'position': 3}, format='json'
        )
        self.assertEqual(response.data['position'], 3)

        response = self.client.put(reverse('exam-notes', args=[session_id]), {'notes': 'one two'}, format='json')
        self.assertEqual(response.data['word_count'], 2)

        response = self.client.post(reverse('exam-next', args=[session_id]))
        self.assertEqual(response.data['current_position'], 2)

        response = self.client.post(reverse('exam-select', args=[session_id]), {'position': 10}, format='json')
        self.assertEqual(response.data['current_position'], 10)

        response = self.client.post(reverse('exam-previous', args=[session_id]))
        self.assertEqual(response.data['current_position'], 9)

        response = self.client.get(reverse('exam-detail', args=[session_id]))
        self.assertEqual(response.data['answers']['3'], 'Fracture')
        self.assertEqual(response.data['unanswered_count'], 23)

        response = self.client.get(reverse('exam-summary', args=[session_id]))
        self.assertEqual(response.data['unanswered_count'], 23)
        self.assertFalse(response.data['time_expired'])

    def test_select_invalid_position(self):
        session_id = self._start().data['id']

        response = self.client.post(reverse('exam-select', args=[session_id]), {'position': 30}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['field'], 'position')

    def test_expired_exam(self):
        session_id = self._start().data['id']
        expire(ExamSession.objects.get(id=session_id))

        response = self.client.get(reverse('exam-detail', args=[session_id]))
        self.assertEqual(response.data['status'], ExamSession.Status.EXPIRED)
        self.assertEqual(response.data['display'], '0:00')

        response = self.client.put(reverse('exam-answer', args=[session_id]), {'answer': 'late'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['error']['code'], 'EXAM_EXPIRED')

        response = self.client.post(reverse('exam-submit', args=[session_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], ExamSession.Status.SUBMITTED)

    def test_submit_twice(self):
        session_id = self._start().data['id']
        self.client.post(reverse('exam-submit', args=[session_id]))

        response = self.client.post(reverse('exam-submit', args=[session_id]))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'EXAM_ALREADY_SUBMITTED')

    def test_other_users_session_not_found(self):
        session_id = self._start().data['id']
        self.client.force_authenticate(user=create_trainee('other@test.com'))

        response = self.client.get(reverse('exam-detail', args=[session_id]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_history(self):
        self._start()
        response = self.client.get(reverse('exam-list'))

        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['status'], ExamSession.Status.IN_PROGRESS)


def with_user(application, user):
    """테스트용 scope 사용자 지정 (JWT 미들웨어 대체)"""
    async def app(scope, receive, send):
        return await application(dict(scope, user=user), receive, send)
    return app


class ExamTimerConsumerTest(TransactionTestCase):
    """시험 타이머 WebSocket 테스트"""

    def setUp(self):
        self.user = create_trainee()
        self.session = ExamSession.objects.create(user=self.user)

    def _communicator(self, user=None, session_id=None):
        application = with_user(URLRouter(websocket_urlpatterns), user or self.user)
        return WebsocketCommunicator(application, f"/ws/exams/{session_id or self.session.id}/")

    async def _receive_until(self, communicator, msg_type, timeout=3):
        while True:
            message = await communicator.receive_json_from(timeout=timeout)
            if message['type'] == msg_type:
                return message

    async def test_tick(self):
        communicator = self._communicator()
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        message = await communicator.receive_json_from(timeout=3)

        self.assertEqual(message['type'], 'tick')
        self.assertIn(message['time_remaining'], (1799, 1800))
        self.assertEqual(message['display'], format_time(message['time_remaining']))
        await communicator.disconnect()

    async def test_rejects_other_user(self):
        other = await database_sync_to_async(create_trainee)('other@test.com')
        communicator = self._communicator(user=other)

        connected, _ = await communicator.connect()

        self.assertFalse(connected)
        await communicator.disconnect()

    async def test_expired_session(self):
        await database_sync_to_async(expire)(self.session)
        communicator = self._communicator()
        await communicator.connect()

        message = await communicator.receive_json_from(timeout=3)

        self.assertEqual(message, {'type': 'expired'})
        await database_sync_to_async(self.session.refresh_from_db)()
        self.assertEqual(self.session.status, ExamSession.Status.EXPIRED)
        await communicator.disconnect()

    async def test_expires_while_connected(self):
        """카운트다운 종료 시 expired 전송 + 세션 만료 처리"""
        await database_sync_to_async(ExamSession.objects.filter(pk=self.session.pk).update)(
            started_at=timezone.now() - timedelta(seconds=self.session.duration_seconds - 1.5)
        )
        communicator = self._communicator()
        await communicator.connect()

        message = await self._receive_until(communicator, 'expired')

        self.assertEqual(message, {'type': 'expired'})
        await database_sync_to_async(self.session.refresh_from_db)()
        self.assertEqual(self.session.status, ExamSession.Status.EXPIRED)
        await communicator.disconnect()

    async def test_relays_submission(self):
        communicator = self._communicator()
        await communicator.connect()
        await communicator.receive_json_from(timeout=3)

        await get_channel_layer().group_send(
            exam_group_name(self.session.id), {'type': 'exam_submitted', 'session_id': self.session.id}
        )

        message = await self._receive_until(communicator, 'submitted')
        self.assertEqual(message, {'type': 'submitted'})
        await communicator.disconnect()
