import logging

from apps.common.utils import get_client_ip
from .models import AuditLog

logger = logging.getLogger(__name__)


# Audit Log 기록 유틸
def create_audit_log(request, action, user=None, email=None):
    AuditLog.objects.create(
        user=user,
        email=email or (user.email if user else None),
        action=action,
        ip_address=get_client_ip(request),
        user_agent=request.META.get("HTTP_USER_AGENT", ""),
    )
    logger.info(f"[AUDIT] {action} user={user.pk if user else None}")
