"""
시험 타이머 WebSocket Consumer
- 1초마다 남은 시간 전송
- 시간 종료 시 세션 expired 처리
- HTTP 제출을 submitted 로 전달

그룹 구조:
- exam_{session_id}: 해당 세션의 타이머 연결
"""
import asyncio
import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from .notifications import exam_group_name
from .services import format_time

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1


class ExamTimerConsumer(AsyncWebsocketConsumer):
    """
    시험 타이머

    메시지:
    - {"type": "tick", "time_remaining", "display"}
    - {"type": "expired"}
    - {"type": "submitted"}
    """

    async def connect(self):
        self.timer_task = None
        self.group_name = None

        self.user = self.scope.get('user')
        if not self.user or not self.user.is_authenticated:
            await self.close()
            return

        self.session_id = int(self.scope['url_route']['kwargs']['session_id'])
        session = await self._get_session()
        if session is None:
            # 본인 세션이 아니면 거부
            await self.close()
            return

        self.group_name = exam_group_name(self.session_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.info(f"시험 타이머 연결: session={self.session_id} user={self.user.id}")

        self.exam_session = session
        if session.status == session.Status.SUBMITTED:
            await self._send_json({'type': 'submitted'})
            return
        if session.status == session.Status.EXPIRED:
            await self._send_json({'type': 'expired'})
            return

        self.timer_task = asyncio.ensure_future(self._run_timer())

    async def disconnect(self, close_code):
        self._stop_timer()
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
        logger.info(f"시험 타이머 종료: session={getattr(self, 'session_id', None)}")

    async def receive(self, text_data=None, bytes_data=None):
        """클라이언트 메시지 (ping/pong)"""
        try:
            data = json.loads(text_data or '{}')
        except json.JSONDecodeError:
            return
        if data.get('type') == 'ping':
            await self._send_json({'type': 'pong'})

    # =========================================================================
    # 그룹 메시지 핸들러
    # =========================================================================

    async def exam_submitted(self, event):
        """HTTP 제출 알림"""
        self._stop_timer()
        await self._send_json({'type': 'submitted'})

    # =========================================================================
    # 타이머
    # =========================================================================

    async def _run_timer(self):
        while True:
            remaining = self.exam_session.time_remaining()
            if remaining <= 0:
                expired = await self._expire_session()
                await self._send_json({'type': 'expired' if expired else 'submitted'})
                return

            await self._send_json({
                'type': 'tick',
                'time_remaining': remaining,
                'display': format_time(remaining),
            })
            await asyncio.sleep(TICK_INTERVAL)

    def _stop_timer(self):
        if self.timer_task is not None and not self.timer_task.done():
            self.timer_task.cancel()
        self.timer_task = None

    async def _send_json(self, content):
        await self.send(text_data=json.dumps(content))

    # =========================================================================
    # 헬퍼 메서드
    # =========================================================================

    @database_sync_to_async
    def _get_session(self):
        from .models import ExamSession
        from .services import ExamService

        session = ExamSession.objects.filter(id=self.session_id, user=self.user).first()
        if session is not None:
            ExamService.expire_if_due(session)
        return session

    @database_sync_to_async
    def _expire_session(self):
        """만료 처리, 이미 제출된 세션이면 False"""
        from .models import ExamSession
        from .services import ExamService

        session = ExamSession.objects.get(id=self.session_id)
        ExamService.expire_if_due(session)
        return session.status == ExamSession.Status.EXPIRED
