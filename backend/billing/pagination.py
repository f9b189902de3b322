"""
Custom pagination that allows client to override page_size via query param.
Used by the debt and payment listings that need a whole owner's history.
"""
from rest_framework.pagination import PageNumberPagination


class FlexiblePageNumberPagination(PageNumberPagination):
    """PageNumberPagination that accepts page_size from query params."""
    page_size = 25
    page_size_query_param = 'page_size'
    max_page_size = 10000
