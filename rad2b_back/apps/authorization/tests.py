from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.accounts.models import Role, User
from apps.audit.models import AuditLog
from .serializers import MAX_LOGIN_FAIL


class LoginAPITest(APITestCase):
    """로그인 / 계정 잠금 테스트"""

    def setUp(self):
        self.role = Role.objects.get(code=Role.TRAINEE)
        self.user = User.objects.create_user(
            email='trainee@test.com',
            password='testpass123',
            role=self.role,
        )
        self.url = reverse('login')

    def _login(self, email='trainee@test.com', password='testpass123'):
        return self.client.post(self.url, {'email': email, 'password': password}, format='json')

    def test_login_success(self):
        """로그인 성공 시 토큰 발급 + 실패 횟수 초기화 + 감사 로그"""
        self.user.failed_login_count = 2
        self.user.save()

        response = self._login(email='TRAINEE@test.com')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role_code'], Role.TRAINEE)

        self.user.refresh_from_db()
        self.assertEqual(self.user.failed_login_count, 0)
        self.assertIsNotNone(self.user.last_login)
        self.assertTrue(
            AuditLog.objects.filter(user=self.user, action=AuditLog.Action.LOGIN_SUCCESS).exists()
        )

    def test_login_fail_reports_remaining(self):
        """비밀번호 오류 시 남은 횟수"""
        response = self._login(password='wrong')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'LOGIN_FAIL')
        self.assertEqual(response.data['error']['detail'], {'remain': MAX_LOGIN_FAIL - 1})
        self.assertTrue(
            AuditLog.objects.filter(email='trainee@test.com', action=AuditLog.Action.LOGIN_FAIL).exists()
        )

    def test_login_unknown_email(self):
        response = self._login(email='nobody@test.com')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'LOGIN_FAIL')
        self.assertNotIn('detail', response.data['error'])

    def test_account_locked_after_max_failures(self):
        """5회 실패 시 계정 잠금"""
        for _ in range(MAX_LOGIN_FAIL - 1):
            self._login(password='wrong')

        response = self._login(password='wrong')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'LOGIN_LOCKED')
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_locked)
        self.assertEqual(
            AuditLog.objects.filter(user=self.user, action=AuditLog.Action.LOGIN_LOCKED).count(), 1
        )

        # 잠긴 계정은 올바른 비밀번호로도 로그인 불가
        response = self._login()
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'LOGIN_LOCKED')

    def test_inactive_user(self):
        self.user.is_active = False
        self.user.save()

        response = self._login()

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'INACTIVE_USER')


class SignupAPITest(APITestCase):
    """회원가입 테스트"""

    def test_signup_assigns_trainee_role(self):
        response = self.client.post(reverse('signup'), {
            'email': 'New@Test.com',
            'password': 'longenough1',
            'first_name': 'New',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role_code'], Role.TRAINEE)
        self.assertFalse(response.data['is_admin'])
        self.assertTrue(User.objects.get(email='new@test.com').check_password('longenough1'))

    def test_signup_short_password(self):
        response = self.client.post(reverse('signup'), {
            'email': 'short@test.com',
            'password': 'short',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['field'], 'password')


class SessionAPITest(APITestCase):
    """내 정보 / 로그아웃 / 토큰 재발급 테스트"""

    def setUp(self):
        self.user = User.objects.create_user(
            email='me@test.com',
            password='testpass123',
            role=Role.objects.get(code=Role.ADMIN),
        )

    def test_me_requires_auth(self):
        response = self.client.get(reverse('me'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'ERR_001')

    def test_me_with_bearer_token(self):
        login = self.client.post(
            reverse('login'), {'email': 'me@test.com', 'password': 'testpass123'}, format='json'
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")

        response = self.client.get(reverse('me'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_admin'])

    def test_refresh_token(self):
        login = self.client.post(
            reverse('login'), {'email': 'me@test.com', 'password': 'testpass123'}, format='json'
        )
        response = self.client.post(reverse('token_refresh'), {'refresh': login.data['refresh']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_logout_writes_audit_log(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(reverse('logout'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(user=self.user, action=AuditLog.Action.LOGOUT).exists())

    def test_role_list_admin_only(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get(reverse('role-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        codes = {role['code'] for role in response.data}
        self.assertTrue({Role.ADMIN, Role.TRAINEE} <= codes)
