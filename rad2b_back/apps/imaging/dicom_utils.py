"""
DICOM 검증 / 메타데이터 추출

픽셀 디코딩은 하지 않는다 (pydicom 데이터셋 태그만 읽음).
"""
import logging
from io import BytesIO

import pydicom
from pydicom.tag import Tag

logger = logging.getLogger(__name__)

# DICM 매직 넘버가 없을 때 DICOM 으로 인정하는 태그
IDENTIFYING_TAGS = (
    Tag(0x0008, 0x0008),  # ImageType
    Tag(0x0008, 0x0060),  # Modality
    Tag(0x0008, 0x0070),  # Manufacturer
    Tag(0x0010, 0x0010),  # PatientName
    Tag(0x0020, 0x0010),  # StudyID
)


def _read_bytes(source):
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    source.seek(0)
    data = source.read()
    source.seek(0)
    return data


def has_dicm_preamble(data):
    """Part-10 preamble 뒤 128..131 바이트가 DICM 인지"""
    return len(data) >= 132 and data[128:132] == b"DICM"


def read_dataset(data):
    return pydicom.dcmread(BytesIO(data), stop_before_pixels=True, force=True)


def is_dicom(source):
    """bytes 또는 파일 객체가 DICOM 인지 판별"""
    data = _read_bytes(source)
    if has_dicm_preamble(data):
        return True

    # preamble 없는 DICOM: 식별 태그 중 하나라도 있으면 인정
    try:
        ds = read_dataset(data)
        return any(tag in ds for tag in IDENTIFYING_TAGS)
    except Exception as e:
        logger.debug(f"DICOM 파싱 실패: {e}")
        return False


def extract_metadata(source):
    """
    modality / dimensions / pixelSpacing 추출

    항목별로 독립 추출하며 실패한 항목만 생략, 파싱 자체가 실패하면 {}.
    """
    try:
        ds = read_dataset(_read_bytes(source))
    except Exception as e:
        logger.warning(f"DICOM 메타데이터 추출 실패: {e}")
        return {}

    metadata = {}

    try:
        if "Modality" in ds:
            metadata["modality"] = str(ds.Modality)
    except Exception as e:
        logger.warning(f"Modality 추출 실패: {e}")

    try:
        if "Rows" in ds and "Columns" in ds:
            metadata["dimensions"] = {
                "width": int(ds.Columns),
                "height": int(ds.Rows),
            }
    except Exception as e:
        logger.warning(f"영상 크기 추출 실패: {e}")

    # PixelSpacing = [row spacing, column spacing] (mm)
    try:
        if "PixelSpacing" in ds:
            row_spacing, col_spacing = (float(v) for v in ds.PixelSpacing)
            metadata["pixelSpacing"] = {
                "width": col_spacing,
                "height": row_spacing,
            }
    except Exception as e:
        logger.warning(f"PixelSpacing 추출 실패: {e}")

    return metadata
