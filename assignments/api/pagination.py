from django.conf import settings
from rest_framework.pagination import PageNumberPagination


class StandardPagination(PageNumberPagination):
    """``?page=`` and ``?limit=`` pagination for list endpoints."""
    page_size = settings.ASSIGNMENT_SETTINGS['DEFAULT_PAGE_SIZE']
    page_size_query_param = 'limit'
    max_page_size = 100
