from unittest import mock

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.accounts.models import Role, User
from apps.attempts.models import CaseAttempt
from apps.imaging import storage
from apps.imaging.tests import TempStorageMixin
from .models import Case, CaseScan, Question, STANDARD_QUESTION_TEXT, region_display_name
from .services import CaseService


def create_case(case_number, published=True, **extra):
    extra.setdefault('title', f'Case {case_number}')
    extra.setdefault('region', Case.Region.CHEST)
    extra.setdefault('age_group', Case.AgeGroup.ADULT)
    case = Case.objects.create(case_number=case_number, published=published, **extra)
    CaseService.ensure_standard_question(case, model_answer='Right lower lobe pneumonia.')
    return case


class CaseModelTest(TestCase):
    """케이스 모델 테스트"""

    def test_region_display(self):
        self.assertEqual(region_display_name('chest'), 'CXR')
        self.assertEqual(region_display_name('musculoskeletal'), 'MSK')
        self.assertEqual(region_display_name('unknown-region'), 'Other')

    def test_scan_legacy_label(self):
        case = create_case('001')
        scan = CaseScan(case=case, dicom_path='a_1.dcm', label='PA')
        self.assertTrue(scan.is_legacy_label)
        scan.label = 'Lateral'
        self.assertFalse(scan.is_legacy_label)

    def test_standard_question_created_once(self):
        case = create_case('002')
        CaseService.ensure_standard_question(case, model_answer='Updated answer')

        questions = case.questions.filter(question_text=STANDARD_QUESTION_TEXT)
        self.assertEqual(questions.count(), 1)
        self.assertEqual(questions.first().correct_answer, 'Updated answer')
        self.assertEqual(questions.first().type, Question.QuestionType.REPORT)


class CaseListAPITest(APITestCase):
    """연습 화면 케이스 조회 테스트"""

    def setUp(self):
        self.trainee = User.objects.create_user(
            email='trainee@test.com', password='testpass123', role=Role.objects.get(code=Role.TRAINEE)
        )
        self.admin = User.objects.create_user(
            email='admin@test.com', password='testpass123', role=Role.objects.get(code=Role.ADMIN)
        )
        self.chest = create_case('CXR-001', region=Case.Region.CHEST, difficulty=Case.Difficulty.EASY)
        self.head = create_case('HEAD-001', region=Case.Region.HEAD, difficulty=Case.Difficulty.HARD)
        self.hidden = create_case('HIDDEN-001', published=False)
        self.client.force_authenticate(user=self.trainee)

    def test_list_published_only(self):
        response = self.client.get(reverse('case-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        numbers = {c['case_number'] for c in response.data['results']}
        self.assertEqual(numbers, {'CXR-001', 'HEAD-001'})

    def test_list_filters(self):
        """부위/난이도 필터 (all = 전체)"""
        response = self.client.get(reverse('case-list'), {'region': 'head'})
        self.assertEqual([c['case_number'] for c in response.data['results']], ['HEAD-001'])

        response = self.client.get(reverse('case-list'), {'region': 'all', 'difficulty': 'EASY'})
        self.assertEqual([c['case_number'] for c in response.data['results']], ['CXR-001'])

    def test_list_page_size(self):
        for i in range(12):
            create_case(f'BULK-{i:03d}')

        response = self.client.get(reverse('case-list'))

        self.assertEqual(response.data['count'], 14)
        self.assertEqual(len(response.data['results']), 10)

    def test_list_attempt_status(self):
        """내 시도 상태 표시 (Not Attempted / In Progress / Completed)"""
        CaseAttempt.objects.create(case=self.chest, user=self.trainee, status=CaseAttempt.Status.COMPLETED)
        CaseAttempt.objects.create(case=self.head, user=self.trainee)

        response = self.client.get(reverse('case-list'))
        statuses = {c['case_number']: c['attempt_status'] for c in response.data['results']}

        self.assertEqual(statuses['CXR-001'], 'Completed')
        self.assertEqual(statuses['HEAD-001'], 'In Progress')

        # 다른 사용자의 시도는 반영하지 않음
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse('case-list'))
        statuses = {c['case_number']: c['attempt_status'] for c in response.data['results']}
        self.assertEqual(statuses['CXR-001'], 'Not Attempted')

    def test_detail_hides_answers_until_completed(self):
        url = reverse('case-detail', args=[self.chest.id])

        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('correct_answer', response.data['questions'][0])

        CaseAttempt.objects.create(case=self.chest, user=self.trainee, status=CaseAttempt.Status.COMPLETED)
        response = self.client.get(url)
        self.assertEqual(response.data['questions'][0]['correct_answer'], 'Right lower lobe pneumonia.')

    def test_unpublished_detail_not_found_for_trainee(self):
        response = self.client.get(reverse('case-detail', args=[self.hidden.id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse('case-detail', args=[self.hidden.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('correct_answer', response.data['questions'][0])

    def test_created_by_name_defaults_to_system(self):
        response = self.client.get(reverse('case-detail', args=[self.chest.id]))
        self.assertEqual(response.data['created_by_name'], 'System')


class AdminCaseAPITest(TempStorageMixin, APITestCase):
    """관리자 케이스 관리 테스트"""

    def setUp(self):
        super().setUp()
        self.admin = User.objects.create_user(
            email='admin@test.com', password='testpass123', role=Role.objects.get(code=Role.ADMIN),
            first_name='Ada',
        )
        self.client.force_authenticate(user=self.admin)

    def _payload(self, **extra):
        payload = {
            'case_number': 'CXR-014',
            'title': 'Pneumothorax',
            'clinical_history': '25M sudden chest pain.',
            'region': 'chest',
            'age_group': 'adult',
            'difficulty': 'hard',
            'published': False,
            'model_answer': 'Left tension pneumothorax.',
        }
        payload.update(extra)
        return payload

    def test_trainee_forbidden(self):
        trainee = User.objects.create_user(
            email='trainee@test.com', password='testpass123', role=Role.objects.get(code=Role.TRAINEE)
        )
        self.client.force_authenticate(user=trainee)

        response = self.client.get(reverse('admin-case-list'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_case_with_temp_dicom(self):
        """임시 DICOM 은 저장 시 영구 경로로 확정"""
        temp_path = self.put_file('temp_abc_1.dcm')

        response = self.client.post(
            reverse('admin-case-list'),
            self._payload(dicom_path=temp_path, scans=[{'dicom_path': temp_path, 'label': 'AP'}]),
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['dicom_path'], 'abc_1.dcm')
        self.assertEqual(response.data['model_answer'], 'Left tension pneumothorax.')
        self.assertEqual(response.data['created_by_name'], 'Ada')
        self.assertEqual(response.data['review_status'], Case.ReviewStatus.APPROVED)
        self.assertTrue(storage.exists('abc_1.dcm'))
        self.assertFalse(storage.exists(temp_path))

    def test_create_case_fails_when_temp_file_missing(self):
        """영구 저장 실패 시 케이스 저장 중단"""
        response = self.client.post(
            reverse('admin-case-list'), self._payload(dicom_path='temp_missing_1.dcm'), format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['error']['code'], 'DICOM_PERMANENT_FAILED')
        self.assertFalse(Case.objects.filter(case_number='CXR-014').exists())

    def test_duplicate_case_number(self):
        create_case('CXR-014')

        response = self.client.post(reverse('admin-case-list'), self._payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['field'], 'case_number')

    def test_update_replaces_dicom(self):
        """대표 DICOM 교체 시 이전 파일 삭제"""
        old_path = self.put_file('old_1.dcm')
        new_path = self.put_file('temp_new_2.dcm')
        case = create_case('CXR-014', dicom_path=old_path)

        response = self.client.patch(
            reverse('admin-case-detail', args=[case.id]), {'dicom_path': new_path}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['dicom_path'], 'new_2.dcm')
        self.assertFalse(storage.exists(old_path))

    def test_publish_sets_approved(self):
        case = create_case('CXR-014', published=False, review_status=Case.ReviewStatus.REJECTED)

        response = self.client.post(
            reverse('admin-case-publish', args=[case.id]), {'published': True}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        case.refresh_from_db()
        self.assertTrue(case.published)
        self.assertEqual(case.review_status, Case.ReviewStatus.APPROVED)

    def test_status_filter(self):
        create_case('PUB-1', published=True)
        create_case('UNPUB-1', published=False)

        response = self.client.get(reverse('admin-case-list'), {'status': 'unpublished'})

        self.assertEqual([c['case_number'] for c in response.data['results']], ['UNPUB-1'])

    def test_sync_questions(self):
        """질문 동기화: 수정 / 추가 / 삭제, 순서 재부여"""
        case = create_case('CXR-014')
        standard = case.questions.get()
        extra = Question.objects.create(case=case, question_text='Old question', display_order=2)

        response = self.client.put(reverse('admin-case-questions', args=[case.id]), {
            'questions': [
                {'question_text': 'New first question', 'type': 'short_answer'},
                {'id': standard.id, 'question_text': standard.question_text, 'correct_answer': 'Edited'},
            ],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([q['display_order'] for q in response.data], [1, 2])
        self.assertEqual(response.data[1]['correct_answer'], 'Edited')
        self.assertFalse(Question.objects.filter(id=extra.id).exists())

    def test_sync_questions_rejects_blank(self):
        case = create_case('CXR-014')

        response = self.client.put(reverse('admin-case-questions', args=[case.id]), {
            'questions': [{'question_text': '   '}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sync_scans(self):
        """영상 동기화: 빈 경로 건너뜀, 누락 영상 파일 삭제"""
        case = create_case('CXR-014')
        removed_path = self.put_file('gone_1.dcm')
        kept_path = self.put_file('kept_2.dcm')
        removed = CaseScan.objects.create(case=case, dicom_path=removed_path, display_order=1)
        kept = CaseScan.objects.create(case=case, dicom_path=kept_path, display_order=2)
        temp_path = self.put_file('temp_added_3.dcm')

        response = self.client.put(reverse('admin-case-scans', args=[case.id]), {
            'scans': [
                {'id': kept.id, 'dicom_path': kept_path, 'label': 'Lateral'},
                {'dicom_path': ''},
                {'dicom_path': temp_path},
            ],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [(s['dicom_path'], s['label'], s['display_order']) for s in response.data],
            [(kept_path, 'Lateral', 1), ('added_3.dcm', 'AP', 2)],
        )
        self.assertFalse(CaseScan.objects.filter(id=removed.id).exists())
        self.assertFalse(storage.exists(removed_path))

    def test_sync_scans_rejects_foreign_scan(self):
        case = create_case('CXR-014')
        other = create_case('CXR-015')
        foreign = CaseScan.objects.create(case=other, dicom_path='x_1.dcm')

        response = self.client.put(reverse('admin-case-scans', args=[case.id]), {
            'scans': [{'id': foreign.id, 'dicom_path': 'x_1.dcm'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_case_removes_files(self):
        path = self.put_file('abc_1.dcm')
        case = create_case('CXR-014', dicom_path=path)

        response = self.client.delete(reverse('admin-case-detail', args=[case.id]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Case.objects.filter(id=case.id).exists())
        self.assertFalse(storage.exists(path))


class ContributionAPITest(TempStorageMixin, APITestCase):
    """기여자 제출 / 관리자 검토 테스트"""

    def setUp(self):
        super().setUp()
        self.contributor = User.objects.create_user(
            email='contrib@test.com', password='testpass123', role=Role.objects.get(code=Role.TRAINEE)
        )
        self.admin = User.objects.create_user(
            email='admin@test.com', password='testpass123', role=Role.objects.get(code=Role.ADMIN)
        )
        self.client.force_authenticate(user=self.contributor)

    def _submit(self, **extra):
        temp_path = self.put_file('temp_contrib_1.dcm')
        payload = {
            'title': 'Scaphoid fracture',
            'region': 'musculoskeletal',
            'age_group': 'adult',
            'clinical_history': 'FOOSH injury.',
            'scans': [{'dicom_path': temp_path, 'label': 'AP'}],
            'model_answer': 'Scaphoid waist fracture.',
        }
        payload.update(extra)
        return self.client.post(reverse('contribution-list'), payload, format='json')

    def test_generate_contrib_number(self):
        with mock.patch('apps.cases.services.time.time', return_value=1700000123.4567):
            number = CaseService.generate_contrib_number()
        self.assertEqual(number, 'CONTRIB-123456')

    def test_generate_contrib_number_skips_existing(self):
        create_case('CONTRIB-123456')
        with mock.patch('apps.cases.services.time.time', return_value=1700000123.4567):
            number = CaseService.generate_contrib_number()
        self.assertEqual(number, 'CONTRIB-123457')

    def test_submit_contribution(self):
        response = self._submit()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['case_number'].startswith('CONTRIB-'))
        self.assertEqual(response.data['review_status'], Case.ReviewStatus.PENDING_REVIEW)
        self.assertEqual(response.data['model_answer'], 'Scaphoid waist fracture.')
        self.assertEqual(response.data['scans'][0]['dicom_path'], 'contrib_1.dcm')

        case = Case.objects.get(id=response.data['id'])
        self.assertFalse(case.published)
        self.assertEqual(case.difficulty, Case.Difficulty.MEDIUM)
        self.assertEqual(case.dicom_path, 'contrib_1.dcm')
        self.assertEqual(case.submitted_by, self.contributor)

    def test_save_as_draft(self):
        response = self._submit(save_as_draft=True)
        self.assertEqual(response.data['review_status'], Case.ReviewStatus.DRAFT)

    def test_submit_requires_scan(self):
        response = self._submit(scans=[{'dicom_path': ''}])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['field'], 'scans')

    def test_approve_publishes(self):
        case_id = self._submit().data['id']
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(reverse('admin-case-approve', args=[case_id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        case = Case.objects.get(id=case_id)
        self.assertTrue(case.published)
        self.assertEqual(case.review_status, Case.ReviewStatus.APPROVED)

        # 승인된 케이스는 다시 승인 불가, 기여자 수정 불가
        response = self.client.post(reverse('admin-case-approve', args=[case_id]))
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

        self.client.force_authenticate(user=self.contributor)
        response = self.client.patch(
            reverse('contribution-detail', args=[case_id]), {'title': 'Changed'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_reject_requires_reason(self):
        case_id = self._submit().data['id']
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(reverse('admin-case-reject', args=[case_id]), {'reason': ' '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            reverse('admin-case-reject', args=[case_id]), {'reason': 'Image quality too low'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['review_status'], Case.ReviewStatus.REJECTED)
        self.assertEqual(response.data['rejection_reason'], 'Image quality too low')

    def test_contributions_are_private(self):
        case_id = self._submit().data['id']
        other = User.objects.create_user(
            email='other@test.com', password='testpass123', role=Role.objects.get(code=Role.TRAINEE)
        )
        self.client.force_authenticate(user=other)

        response = self.client.get(reverse('contribution-detail', args=[case_id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_pending_contribution(self):
        case_id = self._submit().data['id']

        response = self.client.patch(
            reverse('contribution-detail', args=[case_id]), {'title': 'Scaphoid waist fracture'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['title'], 'Scaphoid waist fracture')
        self.assertEqual(response.data['scans'][0]['dicom_path'], 'contrib_1.dcm')

    def test_admin_dicom_replace_keeps_file_used_by_scan(self):
        """대표 DICOM 교체 시 영상이 참조 중인 이전 파일은 유지"""
        case_id = self._submit().data['id']
        new_path = self.put_file('temp_admin_2.dcm')
        self.client.force_authenticate(user=self.admin)

        response = self.client.patch(
            reverse('admin-case-detail', args=[case_id]), {'dicom_path': new_path}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['dicom_path'], 'admin_2.dcm')
        scan = CaseScan.objects.get(case_id=case_id)
        self.assertEqual(scan.dicom_path, 'contrib_1.dcm')
        self.assertTrue(storage.exists('contrib_1.dcm'))

    def test_replace_first_scan_removes_old_file(self):
        """첫 번째 영상 교체 시 이전 대표 파일 정리"""
        case_id = self._submit().data['id']
        new_path = self.put_file('temp_contrib_2.dcm')

        response = self.client.patch(
            reverse('contribution-detail', args=[case_id]),
            {'scans': [{'dicom_path': new_path, 'label': 'AP'}]},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        case = Case.objects.get(id=case_id)
        self.assertEqual(case.dicom_path, 'contrib_2.dcm')
        self.assertEqual(list(case.scans.values_list('dicom_path', flat=True)), ['contrib_2.dcm'])
        self.assertFalse(storage.exists('contrib_1.dcm'))
        self.assertTrue(storage.exists('contrib_2.dcm'))
