import re
import shutil
import tempfile
import time
from io import BytesIO
from pathlib import Path
from unittest import mock

from django.core.files.base import ContentFile
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, override_settings
from django.urls import reverse
from pydicom.dataset import Dataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, SecondaryCaptureImageStorage, generate_uid
from rest_framework import status
from rest_framework.test import APITestCase

from apps.accounts.models import Role, User
from utils.exceptions import PermissionDeniedException
from . import storage
from .dicom_utils import extract_metadata, is_dicom
from .signing import create_signed_token, create_signed_url, verify_signed_token


def make_dicom_bytes(preamble=True, **attrs):
    """테스트용 DICOM 바이트 (픽셀 데이터 없음)"""
    ds = Dataset()
    for keyword, value in attrs.items():
        setattr(ds, keyword, value)

    buffer = BytesIO()
    if preamble:
        ds.SOPClassUID = SecondaryCaptureImageStorage
        ds.SOPInstanceUID = generate_uid()
        file_meta = FileMetaDataset()
        file_meta.MediaStorageSOPClassUID = ds.SOPClassUID
        file_meta.MediaStorageSOPInstanceUID = ds.SOPInstanceUID
        file_meta.TransferSyntaxUID = ExplicitVRLittleEndian
        ds.file_meta = file_meta
        ds.save_as(buffer, enforce_file_format=True)
    else:
        ds.save_as(buffer, implicit_vr=True, little_endian=True)
    return buffer.getvalue()


def chest_xray_bytes(preamble=True):
    return make_dicom_bytes(
        preamble=preamble,
        Modality='CR',
        Rows=512,
        Columns=256,
        PixelSpacing=[0.5, 0.25],
        PatientName='Test^Patient',
    )


class TempStorageMixin:
    """테스트마다 별도 DICOM 저장소 디렉터리"""

    def setUp(self):
        super().setUp()
        self.storage_root = tempfile.mkdtemp(prefix='rad2b-test-')
        self.addCleanup(shutil.rmtree, self.storage_root, ignore_errors=True)
        override = override_settings(DICOM_STORAGE_ROOT=Path(self.storage_root))
        override.enable()
        self.addCleanup(override.disable)

    def put_file(self, name, content=b'dicom-bytes'):
        return storage.get_storage().save(name, ContentFile(content))


class DicomUtilsTest(SimpleTestCase):
    """DICOM 판별 / 메타데이터 추출 테스트"""

    def test_is_dicom_with_preamble(self):
        data = chest_xray_bytes()
        self.assertEqual(data[128:132], b'DICM')
        self.assertTrue(is_dicom(data))

    def test_is_dicom_without_preamble(self):
        """preamble 없이 식별 태그만 있는 경우"""
        data = make_dicom_bytes(preamble=False, Modality='MR')
        self.assertNotEqual(data[128:132], b'DICM')
        self.assertTrue(is_dicom(data))

    def test_is_dicom_rejects_plain_file(self):
        self.assertFalse(is_dicom(b'just a plain text file, not an image'))
        self.assertFalse(is_dicom(b''))

    def test_is_dicom_accepts_file_object(self):
        f = BytesIO(chest_xray_bytes())
        self.assertTrue(is_dicom(f))
        # 판별 후 파일 위치는 처음으로
        self.assertEqual(f.tell(), 0)

    def test_extract_metadata(self):
        metadata = extract_metadata(chest_xray_bytes())

        self.assertEqual(metadata['modality'], 'CR')
        self.assertEqual(metadata['dimensions'], {'width': 256, 'height': 512})
        self.assertEqual(metadata['pixelSpacing'], {'width': 0.25, 'height': 0.5})

    def test_extract_metadata_partial(self):
        """없는 항목은 생략"""
        metadata = extract_metadata(make_dicom_bytes(Modality='MR'))
        self.assertEqual(metadata, {'modality': 'MR'})


class StorageTest(TempStorageMixin, SimpleTestCase):
    """저장소 (임시 파일 확정 / 삭제) 테스트"""

    def test_generate_file_name(self):
        name = storage.generate_file_name('scan.DCM')
        self.assertRegex(name, r'^[a-z0-9]{13}_\d+\.dcm$')

        temp_name = storage.generate_file_name('scan.dcm', temporary=True)
        self.assertTrue(temp_name.startswith('temp_'))
        self.assertTrue(storage.is_temporary(temp_name))

        owned = storage.generate_file_name('scan.dcm', temporary=True, owner_id=7)
        self.assertRegex(owned, r'^temp_u7_[a-z0-9]{13}_\d+\.dcm$')
        self.assertTrue(storage.is_owned_temporary(owned, 7))
        self.assertFalse(storage.is_owned_temporary(owned, 77))
        self.assertFalse(storage.is_owned_temporary(temp_name, 7))

    def test_make_permanent_keeps_permanent_path(self):
        self.assertEqual(storage.make_permanent('abc_123.dcm'), 'abc_123.dcm')
        self.assertIsNone(storage.make_permanent(''))

    def test_make_permanent_moves_temp_file(self):
        temp_path = self.put_file('temp_abc_123.dcm', b'payload')

        permanent = storage.make_permanent(temp_path)

        self.assertEqual(permanent, 'abc_123.dcm')
        self.assertFalse(storage.exists(temp_path))
        with storage.open_file(permanent) as f:
            self.assertEqual(f.read(), b'payload')

    def test_make_permanent_overwrites_existing(self):
        self.put_file('abc_123.dcm', b'old')
        self.put_file('temp_abc_123.dcm', b'new')

        self.assertEqual(storage.make_permanent('temp_abc_123.dcm'), 'abc_123.dcm')
        with storage.open_file('abc_123.dcm') as f:
            self.assertEqual(f.read(), b'new')

    def test_make_permanent_missing_file(self):
        self.assertIsNone(storage.make_permanent('temp_missing_1.dcm'))

    def test_remove(self):
        path = self.put_file('abc_1.dcm')
        removed = storage.remove([path, 'missing_2.dcm', ''])

        self.assertEqual(removed, [path])
        self.assertFalse(storage.exists(path))


class SigningTest(SimpleTestCase):
    """서명 URL 테스트"""

    def test_signed_url_round_trip(self):
        result = create_signed_url('abc_123.dcm')

        self.assertEqual(result['expires_in'], 3600)
        self.assertEqual(result['path'], 'abc_123.dcm')
        token = re.search(r'/files/([^/]+)/$', result['signed_url']).group(1)
        self.assertEqual(verify_signed_token(token), 'abc_123.dcm')

    def test_tampered_token(self):
        token, _ = create_signed_token('abc_123.dcm')

        with self.assertRaises(PermissionDeniedException) as ctx:
            verify_signed_token(token[:-2] + 'xx')
        self.assertEqual(ctx.exception.code, 'SIGNED_URL_INVALID')

    def test_expired_token(self):
        token, _ = create_signed_token('abc_123.dcm', expires_in=60)

        with mock.patch('django.core.signing.time.time', return_value=time.time() + 120):
            with self.assertRaises(PermissionDeniedException) as ctx:
                verify_signed_token(token)
        self.assertEqual(ctx.exception.code, 'SIGNED_URL_EXPIRED')


class ImagingAPITest(TempStorageMixin, APITestCase):
    """DICOM 업로드 / 다운로드 API 테스트"""

    def setUp(self):
        super().setUp()
        self.admin = User.objects.create_user(
            email='admin@test.com', password='testpass123', role=Role.objects.get(code=Role.ADMIN)
        )
        self.trainee = User.objects.create_user(
            email='trainee@test.com', password='testpass123', role=Role.objects.get(code=Role.TRAINEE)
        )
        self.client.force_authenticate(user=self.trainee)

    def _upload(self, content, name='scan.dcm', **extra):
        upload = SimpleUploadedFile(name, content, content_type='application/dicom')
        return self.client.post(reverse('imaging-upload'), {'file': upload, **extra}, format='multipart')

    def test_upload_dicom(self):
        """업로드 기본값은 임시 파일"""
        response = self._upload(chest_xray_bytes())

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['path'].startswith(f'temp_u{self.trainee.id}_'))
        self.assertEqual(response.data['metadata']['modality'], 'CR')
        self.assertIn('signed_url', response.data)
        self.assertTrue(storage.exists(response.data['path']))

    def test_upload_permanent(self):
        response = self._upload(chest_xray_bytes(), temporary='false')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['path'].startswith('temp_'))

    def test_upload_rejects_non_dicom(self):
        response = self._upload(b'this is not a dicom file', name='notes.txt')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_DICOM')
        self.assertEqual(response.data['error']['field'], 'file')

    def test_signed_download(self):
        path = self.put_file('abc_123.dcm', chest_xray_bytes())

        response = self.client.post(reverse('imaging-signed-url'), {'path': path}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        # 서명 URL 은 로그인 없이 접근
        self.client.force_authenticate(user=None)
        download = self.client.get(response.data['signed_url'])

        self.assertEqual(download.status_code, status.HTTP_200_OK)
        self.assertEqual(download['Content-Type'], 'application/dicom')
        self.assertEqual(b''.join(download.streaming_content)[128:132], b'DICM')
        download.close()

    def test_signed_url_missing_file(self):
        response = self.client.post(reverse('imaging-signed-url'), {'path': 'missing_1.dcm'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_signed_download_tampered(self):
        response = self.client.get(reverse('imaging-signed-download', args=['abc:def:ghi']))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_path_traversal_rejected(self):
        response = self.client.post(reverse('imaging-signed-url'), {'path': '../settings.py'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_trainee_removes_temp_files_only(self):
        permanent = self.put_file('abc_1.dcm')
        temp = self.put_file(f'temp_u{self.trainee.id}_abc_2.dcm')

        response = self.client.post(reverse('imaging-remove'), {'paths': [permanent]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.post(reverse('imaging-remove'), {'paths': [temp]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['removed'], [temp])

    def test_trainee_cannot_remove_others_temp_files(self):
        """다른 사용자가 업로드 중인 임시 파일은 삭제 불가"""
        owner = User.objects.create_user(
            email='owner@test.com', password='testpass123', role=Role.objects.get(code=Role.TRAINEE)
        )
        others = self.put_file(f'temp_u{owner.id}_abc_3.dcm')
        legacy = self.put_file('temp_abc_4.dcm')

        for path in (others, legacy):
            response = self.client.post(reverse('imaging-remove'), {'paths': [path]}, format='json')
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
            self.assertTrue(storage.exists(path))

        self.client.force_authenticate(user=owner)
        response = self.client.post(reverse('imaging-remove'), {'paths': [others]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(storage.exists(others))

    def test_admin_removes_any_file(self):
        self.client.force_authenticate(user=self.admin)
        permanent = self.put_file('abc_1.dcm')

        response = self.client.post(reverse('imaging-remove'), {'paths': [permanent]}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(storage.exists(permanent))

    def test_metadata(self):
        path = self.put_file('abc_1.dcm', chest_xray_bytes())

        response = self.client.get(reverse('imaging-metadata'), {'path': path})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['metadata']['dimensions'], {'width': 256, 'height': 512})
