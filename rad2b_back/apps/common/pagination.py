from rest_framework.pagination import PageNumberPagination

# Pagination 클래스 추가
class UserPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = "size"   # ?size=20
    page_query_param = "page"        # ?page=1
    max_page_size = 100


class CasePagination(PageNumberPagination):
    """케이스 목록 (연습 화면 한 페이지 10건)"""
    page_size = 10
    page_size_query_param = "size"
    max_page_size = 100


class StandardPagination(PageNumberPagination):
    """관리자 목록 / 감사 로그 공용"""
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100
