from django.test import RequestFactory, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.accounts.models import Role, User
from utils.middleware.access_log import get_menu_name, should_log_access
from .models import AccessLog, AuditLog
from .services import create_audit_log


def create_user(email, role_code=Role.TRAINEE, password='testpass123'):
    role = Role.objects.get(code=role_code)
    return User.objects.create_user(email=email, password=password, role=role)


class AccessLogPathTest(TestCase):
    """AccessLog 기록 대상 경로 판정"""

    def test_logged_paths(self):
        self.assertTrue(should_log_access('/api/cases/'))
        self.assertTrue(should_log_access('/api/admin/cases/3/'))
        self.assertTrue(should_log_access('/api/exams/1/answer/'))

    def test_excluded_paths(self):
        self.assertFalse(should_log_access('/api/auth/login/'))
        self.assertFalse(should_log_access('/api/audit/access/'))
        self.assertFalse(should_log_access('/api/imaging/files/abc/'))
        self.assertFalse(should_log_access('/health/'))

    def test_menu_name(self):
        self.assertEqual(get_menu_name('/api/admin/cases/1/'), '케이스 관리')
        self.assertEqual(get_menu_name('/api/cases/1/'), '케이스 목록')
        self.assertIsNone(get_menu_name('/api/schema/'))


class CreateAuditLogTest(TestCase):

    def test_records_ip_and_email(self):
        user = create_user('trainee@test.com')
        request = RequestFactory().post('/api/auth/login/', HTTP_X_FORWARDED_FOR='10.0.0.5, 10.0.0.1')

        create_audit_log(request, AuditLog.Action.LOGIN_SUCCESS, user=user)

        log = AuditLog.objects.get()
        self.assertEqual(log.email, 'trainee@test.com')
        self.assertEqual(log.ip_address, '10.0.0.5')

    def test_unknown_account(self):
        """존재하지 않는 계정은 이메일만 기록"""
        request = RequestFactory().post('/api/auth/login/')
        create_audit_log(request, AuditLog.Action.LOGIN_FAIL, email='ghost@test.com')

        log = AuditLog.objects.get()
        self.assertIsNone(log.user)
        self.assertEqual(log.email, 'ghost@test.com')


class AuditLogAPITest(APITestCase):
    """감사 로그 조회 API 테스트"""

    def setUp(self):
        self.admin = create_user('admin@test.com', Role.ADMIN)
        self.trainee = create_user('trainee@test.com')
        AuditLog.objects.create(user=self.trainee, email=self.trainee.email, action=AuditLog.Action.LOGIN_SUCCESS)
        AuditLog.objects.create(email='ghost@test.com', action=AuditLog.Action.LOGIN_FAIL)

    def test_admin_only(self):
        self.client.force_authenticate(user=self.trainee)
        response = self.client.get(reverse('audit-log-list'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_and_filter(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('audit-log-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(reverse('audit-log-list'), {'action': 'LOGIN_FAIL'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['email'], 'ghost@test.com')
        self.assertIsNone(response.data['results'][0]['user_email'])

        response = self.client.get(reverse('audit-log-list'), {'user_email': 'trainee'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['user_role'], Role.TRAINEE)


class AccessLogMiddlewareTest(APITestCase):
    """AccessLogMiddleware 기록 테스트"""

    def setUp(self):
        self.admin = create_user('admin@test.com', Role.ADMIN)
        self.trainee = create_user('trainee@test.com')

    def test_records_case_list_view(self):
        self.client.force_authenticate(user=self.trainee)
        self.client.get('/api/cases/', {'region': 'chest'})

        log = AccessLog.objects.get()
        self.assertEqual(log.user, self.trainee)
        self.assertEqual(log.user_role, Role.TRAINEE)
        self.assertEqual(log.action, AccessLog.Action.VIEW)
        self.assertEqual(log.result, AccessLog.Result.SUCCESS)
        self.assertEqual(log.menu_name, '케이스 목록')
        self.assertEqual(log.request_params, {'region': ['chest']})

    def test_records_failure(self):
        self.client.force_authenticate(user=self.trainee)
        self.client.get('/api/cases/99999/')

        log = AccessLog.objects.get()
        self.assertEqual(log.result, AccessLog.Result.FAIL)
        self.assertEqual(log.response_status, 404)
        self.assertIsNotNone(log.fail_reason)

    def test_anonymous_and_excluded_not_recorded(self):
        self.client.get('/api/cases/')
        self.client.force_authenticate(user=self.admin)
        self.client.get(reverse('audit-log-list'))

        self.assertFalse(AccessLog.objects.exists())

    def test_summary_and_detail(self):
        self.client.force_authenticate(user=self.trainee)
        self.client.get('/api/cases/')
        self.client.get('/api/cases/99999/')

        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse('access-log-summary'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_count'], 2)
        self.assertEqual(response.data['fail_count'], 1)

        response = self.client.get(reverse('access-log-list'), {'result': 'FAIL'})
        self.assertEqual(response.data['count'], 1)

        log_id = response.data['results'][0]['id']
        response = self.client.get(reverse('access-log-detail', args=[log_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['response_status'], 404)
