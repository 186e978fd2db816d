import time
import logging
import re
from django.utils.deprecation import MiddlewareMixin

from apps.common.utils import get_client_ip
from utils.logging import mask_sensitive_data

logger = logging.getLogger('access')


# AccessLog 기록 대상 경로 패턴 (API 경로만)
ACCESS_LOG_PATTERNS = [
    r'^/api/cases',
    r'^/api/admin/cases',
    r'^/api/contributions',
    r'^/api/attempts',
    r'^/api/exams',
    r'^/api/imaging',
    r'^/api/users',
]

# 제외할 경로 (인증, 감사로그 자체 등)
ACCESS_LOG_EXCLUDE_PATTERNS = [
    r'^/api/auth',
    r'^/api/audit',
    r'^/api/imaging/files',   # Signed URL 다운로드 (토큰 기반, 사용자 없음)
    r'^/static',
    r'^/media',
    r'^/health',
]

# HTTP 메서드 → action 매핑
METHOD_ACTION_MAP = {
    'GET': 'VIEW',
    'POST': 'CREATE',
    'PUT': 'UPDATE',
    'PATCH': 'UPDATE',
    'DELETE': 'DELETE',
}

# 경로 → 메뉴명 매핑
PATH_MENU_MAP = {
    '/api/admin/cases': '케이스 관리',
    '/api/cases': '케이스 목록',
    '/api/contributions': '케이스 제출',
    '/api/attempts': '케이스 풀이',
    '/api/exams': '모의 시험',
    '/api/imaging': '영상 관리',
    '/api/users': '사용자 관리',
}


def get_menu_name(path):
    """경로에서 메뉴명 추출"""
    for prefix, name in PATH_MENU_MAP.items():
        if path.startswith(prefix):
            return name
    return None


def should_log_access(path):
    """AccessLog에 기록할 경로인지 확인"""
    # 제외 패턴 체크
    for pattern in ACCESS_LOG_EXCLUDE_PATTERNS:
        if re.match(pattern, path):
            return False

    # 포함 패턴 체크
    for pattern in ACCESS_LOG_PATTERNS:
        if re.match(pattern, path):
            return True

    return False


class AccessLogMiddleware(MiddlewareMixin):
    """모든 요청과 응답을 로깅하는 미들웨어"""

    def process_request(self, request):
        request.start_time = time.time()

    def process_response(self, request, response):
        # 실행 시간 계산
        duration = time.time() - getattr(request, 'start_time', time.time())
        duration_ms = int(duration * 1000)

        path = request.get_full_path()
        user = getattr(request, 'user', None)
        is_authenticated = bool(user and user.is_authenticated)

        message = (
            f"{get_client_ip(request)} {user if is_authenticated else 'Anonymous'} "
            f"{request.method} {path} {response.status_code} ({duration:.3f}s)"
        )

        if response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        # AccessLog DB 기록 (인증된 사용자 + 대상 경로만)
        if is_authenticated and should_log_access(path.split('?')[0]):
            try:
                self._save_access_log(request, response, duration_ms)
            except Exception as e:
                logger.error(f"AccessLog 저장 실패: {e}")

        return response

    def _save_access_log(self, request, response, duration_ms):
        """AccessLog DB에 저장"""
        from apps.audit.models import AccessLog

        path_without_query = request.path

        action = METHOD_ACTION_MAP.get(request.method, 'VIEW')

        # 다운로드/Signed URL 발급 감지
        if 'signed-url' in path_without_query or 'download' in path_without_query:
            action = 'EXPORT'

        result = 'SUCCESS' if response.status_code < 400 else 'FAIL'

        fail_reason = None
        if result == 'FAIL':
            data = getattr(response, 'data', None)
            fail_reason = str(data)[:500] if data is not None else f"HTTP {response.status_code}"

        # 요청 파라미터 (GET 쿼리만, 민감 정보 마스킹)
        request_params = None
        if request.method == 'GET' and request.GET:
            request_params = mask_sensitive_data(dict(request.GET))

        AccessLog.objects.create(
            user=request.user,
            user_role=request.user.role.code if request.user.role else None,
            request_method=request.method,
            request_path=path_without_query[:500],
            request_params=request_params,
            menu_name=get_menu_name(path_without_query),
            action=action,
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', '')[:500],
            result=result,
            fail_reason=fail_reason,
            response_status=response.status_code,
            duration_ms=duration_ms,
        )
