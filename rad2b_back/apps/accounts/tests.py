from unittest import mock

from django.core import mail
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from .models import Role, User, get_creator_name


def create_user(email, role_code=Role.TRAINEE, password='testpass123', **extra):
    role = Role.objects.get(code=role_code)
    return User.objects.create_user(email=email, password=password, role=role, **extra)


class RoleSeedTest(TestCase):
    """기본 역할 데이터 테스트"""

    def test_default_roles_exist(self):
        """ADMIN / TRAINEE 역할이 마이그레이션으로 생성됨"""
        self.assertTrue(Role.objects.filter(code=Role.ADMIN).exists())
        self.assertTrue(Role.objects.filter(code=Role.TRAINEE).exists())


class UserModelTest(TestCase):
    """User 모델 테스트"""

    def test_display_name(self):
        """이름 표시 규칙"""
        user = User(email='a@test.com', first_name='Jane', last_name='Doe')
        self.assertEqual(user.display_name, 'Jane Doe')

        user.last_name = None
        self.assertEqual(user.display_name, 'Jane')

        user.first_name = None
        user.last_name = 'Doe'
        self.assertEqual(user.display_name, 'Doe')

        user.last_name = ''
        self.assertEqual(user.display_name, 'Unknown')

    def test_creator_name_without_user(self):
        """작성자 없음 = System"""
        self.assertEqual(get_creator_name(None), 'System')

    def test_is_admin(self):
        admin = create_user('admin@test.com', Role.ADMIN)
        trainee = create_user('trainee@test.com')

        self.assertTrue(admin.is_admin)
        self.assertFalse(trainee.is_admin)
        self.assertIsNone(User(email='norole@test.com').role_code)


class UserManagementAPITest(APITestCase):
    """사용자 관리 API 테스트 (관리자)"""

    def setUp(self):
        self.admin = create_user('admin@test.com', Role.ADMIN, first_name='Admin')
        self.trainee = create_user('trainee@test.com', first_name='Tom', last_name='Smith')
        self.client.force_authenticate(user=self.admin)

    def test_list_requires_admin(self):
        """TRAINEE 는 사용자 목록 접근 불가"""
        self.client.force_authenticate(user=self.trainee)
        response = self.client.get(reverse('user-list'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'ERR_002')

    def test_list_filter_by_role(self):
        """역할 필터 (대소문자 무관, all = 전체)"""
        response = self.client.get(reverse('user-list'), {'role': 'trainee'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        emails = [u['email'] for u in response.data['results']]
        self.assertEqual(emails, ['trainee@test.com'])

        response = self.client.get(reverse('user-list'), {'role': 'all'})
        self.assertEqual(response.data['count'], 2)

    def test_list_search(self):
        """이름 검색"""
        response = self.client.get(reverse('user-list'), {'search': 'smith'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['display_name'], 'Tom Smith')

    def test_create_user_sends_temp_password(self):
        """사용자 생성 시 임시 비밀번호 메일 발송 + 비밀번호 변경 필요"""
        response = self.client.post(reverse('user-list'), {
            'email': 'New.User@Test.com',
            'first_name': 'New',
            'last_name': 'User',
            'role': 'trainee',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['email'], 'new.user@test.com')
        self.assertEqual(response.data['role_code'], Role.TRAINEE)
        self.assertTrue(response.data['must_change_password'])
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('Temporary password', mail.outbox[0].body)

    def test_create_user_keeps_user_when_mail_fails(self):
        """메일 발송 실패해도 사용자는 생성"""
        with mock.patch('apps.accounts.serializers.send_mail', side_effect=OSError('smtp down')):
            response = self.client.post(reverse('user-list'), {
                'email': 'mailfail@test.com',
                'role': 'TRAINEE',
            }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.filter(email='mailfail@test.com').exists())

    def test_create_duplicate_email_case_insensitive(self):
        """이메일 중복 (대소문자 무관)"""
        response = self.client.post(reverse('user-list'), {
            'email': 'TRAINEE@test.com',
            'role': 'trainee',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'ERR_101')
        self.assertEqual(response.data['error']['field'], 'email')

    def test_create_invalid_role(self):
        response = self.client.post(reverse('user-list'), {
            'email': 'x@test.com',
            'role': 'doctor',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['field'], 'role')

    def test_change_role(self):
        """역할 변경 trainee → admin"""
        response = self.client.patch(
            reverse('user-role-change', args=[self.trainee.id]), {'role': 'admin'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.trainee.refresh_from_db()
        self.assertTrue(self.trainee.is_admin)

    def test_admin_cannot_demote_self(self):
        """본인 관리자 권한 해제 불가"""
        response = self.client.patch(
            reverse('user-role-change', args=[self.admin.id]), {'role': 'trainee'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.is_admin)

    def test_toggle_active(self):
        response = self.client.patch(reverse('user-toggle-active', args=[self.trainee.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

    def test_cannot_deactivate_or_delete_self(self):
        response = self.client.patch(reverse('user-toggle-active', args=[self.admin.id]))
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

        response = self.client.delete(reverse('user-detail', args=[self.admin.id]))
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_unlock_user(self):
        """잠금 해제 시 실패 횟수 초기화"""
        self.trainee.is_locked = True
        self.trainee.failed_login_count = 5
        self.trainee.save()

        response = self.client.patch(reverse('user-unlock', args=[self.trainee.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.trainee.refresh_from_db()
        self.assertFalse(self.trainee.is_locked)
        self.assertEqual(self.trainee.failed_login_count, 0)


class MyPageAPITest(APITestCase):
    """내 정보 / 비밀번호 변경 테스트"""

    def setUp(self):
        self.user = create_user('me@test.com', must_change_password=True)
        self.client.force_authenticate(user=self.user)

    def test_update_profile(self):
        response = self.client.put(reverse('my-profile'), {'first_name': 'Ann'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['display_name'], 'Ann')

    def test_change_password(self):
        """비밀번호 변경 후 must_change_password 해제"""
        response = self.client.post(reverse('change-password'), {
            'current_password': 'testpass123',
            'new_password': 'newpass456',
            'confirm_password': 'newpass456',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('newpass456'))
        self.assertFalse(self.user.must_change_password)

    def test_change_password_mismatch(self):
        response = self.client.post(reverse('change-password'), {
            'current_password': 'testpass123',
            'new_password': 'newpass456',
            'confirm_password': 'different1',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['field'], 'confirm_password')

    def test_change_password_wrong_current(self):
        response = self.client.post(reverse('change-password'), {
            'current_password': 'wrong-pass',
            'new_password': 'newpass456',
            'confirm_password': 'newpass456',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['field'], 'current_password')
