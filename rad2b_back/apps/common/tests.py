from datetime import timedelta
from unittest import mock

from asgiref.sync import async_to_sync
from django.db import DatabaseError
from django.test import RequestFactory, TestCase, TransactionTestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.models import Role, User
from apps.attempts.models import CaseAttempt
from apps.cases.models import Case
from .middleware import get_user_from_token
from .utils import get_client_ip


def create_user(email, role_code=Role.TRAINEE, password='testpass123', **extra):
    role = Role.objects.get(code=role_code)
    return User.objects.create_user(email=email, password=password, role=role, **extra)


class ClientIpTest(TestCase):

    def test_forwarded_for_first(self):
        request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='1.2.3.4, 5.6.7.8')
        self.assertEqual(get_client_ip(request), '1.2.3.4')

    def test_remote_addr(self):
        request = RequestFactory().get('/', REMOTE_ADDR='9.9.9.9')
        self.assertEqual(get_client_ip(request), '9.9.9.9')


class HealthCheckTest(APITestCase):
    """헬스 체크 테스트"""

    def test_healthy_without_auth(self):
        response = self.client.get(reverse('health_check'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'healthy')
        self.assertEqual(response.data['database'], 'connected')

    def test_database_down(self):
        """DB 연결 실패 시 503"""
        with mock.patch('apps.common.views.connection.cursor', side_effect=DatabaseError('down')):
            response = self.client.get(reverse('health_check'))

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['database'], 'disconnected')


class AdminDashboardStatsTest(APITestCase):
    """관리자 대시보드 통계 테스트"""

    def setUp(self):
        self.admin = create_user('admin@test.com', Role.ADMIN)
        self.trainee = create_user('trainee@test.com')
        create_user('old@test.com', last_login=timezone.now() - timedelta(days=30))
        create_user('inactive@test.com', is_active=False)

        published = Case.objects.create(case_number='001', published=True)
        Case.objects.create(case_number='002', published=False, review_status=Case.ReviewStatus.PENDING_REVIEW)
        Case.objects.create(case_number='003', published=False, review_status=Case.ReviewStatus.DRAFT)

        CaseAttempt.objects.create(case=published, user=self.trainee)
        CaseAttempt.objects.create(
            case=published, user=self.admin, status=CaseAttempt.Status.COMPLETED
        )

    def test_trainee_forbidden(self):
        self.client.force_authenticate(user=self.trainee)
        response = self.client.get(reverse('admin_dashboard_stats'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'ERR_002')

    def test_stats(self):
        User.objects.filter(pk=self.trainee.pk).update(last_login=timezone.now())
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('admin_dashboard_stats'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        cases = response.data['cases']
        self.assertEqual(cases['total'], 3)
        self.assertEqual(cases['published'], 1)
        self.assertEqual(cases['unpublished'], 2)
        self.assertEqual(cases['pending_review'], 1)
        self.assertEqual(cases['by_review_status'], {'approved': 1, 'pending_review': 1, 'draft': 1})

        users = response.data['users']
        self.assertEqual(users['total'], 3)
        self.assertEqual(users['by_role'], {Role.ADMIN: 1, Role.TRAINEE: 2})
        self.assertEqual(users['recent_logins'], 1)

        self.assertEqual(response.data['attempts'], {'in_progress': 1, 'completed': 1})


class JwtTokenUserTest(TransactionTestCase):
    """WebSocket JWT 토큰 사용자 조회"""

    def setUp(self):
        role, _ = Role.objects.get_or_create(code=Role.TRAINEE, defaults={'name': 'Trainee'})
        self.user = User.objects.create_user(email='ws@test.com', password='testpass123', role=role)

    def test_valid_token(self):
        token = str(AccessToken.for_user(self.user))
        user = async_to_sync(get_user_from_token)(token)
        self.assertEqual(user.pk, self.user.pk)

    def test_invalid_token(self):
        user = async_to_sync(get_user_from_token)('not-a-token')
        self.assertFalse(user.is_authenticated)

    def test_inactive_user(self):
        token = str(AccessToken.for_user(self.user))
        User.objects.filter(pk=self.user.pk).update(is_active=False)

        user = async_to_sync(get_user_from_token)(token)
        self.assertFalse(user.is_authenticated)
