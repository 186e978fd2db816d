"""
시험 알림 서비스
- HTTP 로 제출된 시험을 타이머 WebSocket 에 전달

그룹 구조:
- exam_{session_id}: 해당 시험 세션의 타이머 연결
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def exam_group_name(session_id):
    return f"exam_{session_id}"


def notify_exam_submitted(session_id):
    """시험 제출 알림 전송"""
    channel_layer = get_channel_layer()
    if not channel_layer:
        return

    group_name = exam_group_name(session_id)
    async_to_sync(channel_layer.group_send)(group_name, {
        'type': 'exam_submitted',
        'session_id': session_id,
    })
    logger.debug(f"[시험 알림] group={group_name}, type=exam_submitted")
