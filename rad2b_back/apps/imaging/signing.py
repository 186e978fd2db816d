# 저장소 파일 서명 URL (django.core.signing 기반, 기본 만료 3600초)
from django.conf import settings
from django.core import signing
from django.urls import reverse
from django.utils import timezone
from datetime import timedelta

from utils.exceptions import PermissionDeniedException

SIGNING_SALT = "rad2b.imaging.dicom"


def _signer():
    return signing.TimestampSigner(salt=SIGNING_SALT)


def create_signed_token(path, expires_in=None):
    expires_in = int(expires_in or settings.DICOM_SIGNED_URL_TTL)
    return _signer().sign_object({"path": path, "ttl": expires_in}), expires_in


def create_signed_url(path, expires_in=None, request=None):
    """
    서명 URL 발급

    Returns:
        {"signed_url", "path", "expires_in", "expires_at"}
    """
    token, expires_in = create_signed_token(path, expires_in)
    url = reverse("imaging-signed-download", args=[token])
    if request is not None:
        url = request.build_absolute_uri(url)

    return {
        "signed_url": url,
        "path": path,
        "expires_in": expires_in,
        "expires_at": (timezone.now() + timedelta(seconds=expires_in)).isoformat(),
    }


def verify_signed_token(token):
    """서명/만료 검증 후 저장소 경로 반환"""
    signer = _signer()
    try:
        # 만료 시간은 토큰 내부 ttl 기준
        payload = signer.unsign_object(token)
        signer.unsign_object(token, max_age=payload["ttl"])
    except signing.SignatureExpired:
        raise PermissionDeniedException(code="SIGNED_URL_EXPIRED", message="만료된 URL입니다.")
    except (signing.BadSignature, KeyError, TypeError):
        raise PermissionDeniedException(code="SIGNED_URL_INVALID", message="유효하지 않은 URL입니다.")

    return payload["path"]
