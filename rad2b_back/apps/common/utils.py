# 요청 공통 유틸 (감사 로그 / 접근 로그에서 사용)

def get_client_ip(request):
    """
    클라이언트 실제 IP 주소 추출
    (리버스 프록시 뒤에서는 X-Forwarded-For 의 첫 번째 값)
    """
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return request.META.get("REMOTE_ADDR")
