"""
DICOM 파일 저장소

settings.DICOM_STORAGE_ROOT 아래에 평면 구조로 저장한다.
케이스 편집 중 업로드된 파일은 temp_ 접두어를 가지며, 케이스 저장 시 make_permanent 로 확정된다.
"""
import logging
import os
import secrets
import string
import time

from django.conf import settings
from django.core.files.storage import FileSystemStorage

logger = logging.getLogger(__name__)

TEMP_PREFIX = "temp_"

_NAME_CHARS = string.ascii_lowercase + string.digits


def get_storage():
    return FileSystemStorage(location=str(settings.DICOM_STORAGE_ROOT))


def generate_file_name(original_name, temporary=False, owner_id=None):
    """<random13>_<epoch-ms>.<ext> (임시 파일은 temp_ 접두어, 업로더가 있으면 temp_u<id>_)"""
    ext = os.path.splitext(original_name or "")[1].lstrip(".").lower() or "dcm"
    random_part = "".join(secrets.choice(_NAME_CHARS) for _ in range(13))
    name = f"{random_part}_{int(time.time() * 1000)}.{ext}"
    if not temporary:
        return name
    if owner_id is not None:
        name = f"u{owner_id}_{name}"
    return f"{TEMP_PREFIX}{name}"


def is_temporary(path):
    return bool(path) and path.startswith(TEMP_PREFIX)


def is_owned_temporary(path, user_id):
    """업로더 본인의 임시 파일인지 확인"""
    return bool(path) and path.startswith(f"{TEMP_PREFIX}u{user_id}_")


def save_upload(uploaded_file, temporary=False, owner_id=None):
    """업로드 파일 저장 후 저장소 경로 반환"""
    storage = get_storage()
    name = generate_file_name(uploaded_file.name, temporary=temporary, owner_id=owner_id)
    uploaded_file.seek(0)
    saved = storage.save(name, uploaded_file)
    logger.info(f"DICOM 업로드: {saved} ({uploaded_file.size} bytes)")
    return saved


def exists(path):
    if not path:
        return False
    return get_storage().exists(path)


def open_file(path):
    return get_storage().open(path, "rb")


def make_permanent(path):
    """
    temp_ 파일을 영구 경로로 확정

    - temp_ 접두어가 없으면 그대로 반환
    - 첫 번째 temp_ 를 제거한 경로로 복사(덮어쓰기) 후 임시 파일 삭제
    - 실패 시 None
    """
    if not path:
        return None

    if not is_temporary(path):
        return path

    storage = get_storage()
    permanent_path = path.replace(TEMP_PREFIX, "", 1)

    try:
        if storage.exists(permanent_path):
            storage.delete(permanent_path)
        with storage.open(path, "rb") as temp_file:
            saved = storage.save(permanent_path, temp_file)
        storage.delete(path)
    except OSError as e:
        logger.error(f"DICOM 영구 저장 실패 ({path}): {e}")
        return None

    logger.info(f"DICOM 영구 저장: {path} → {saved}")
    return saved


def remove(paths):
    """파일 삭제 (없는 파일은 무시), 삭제한 경로 목록 반환"""
    storage = get_storage()
    removed = []
    for path in paths:
        if not path:
            continue
        try:
            if storage.exists(path):
                storage.delete(path)
                removed.append(path)
        except OSError as e:
            logger.warning(f"DICOM 파일 삭제 실패 ({path}): {e}")
    return removed
