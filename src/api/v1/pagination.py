"""Pagination utilities for API v1."""

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """Page number pagination with client-controlled page size.

    ``limit`` and ``page_size`` are both accepted for the page size.
    """

    page_size = 25
    page_size_query_param = "page_size"
    max_page_size = 100

    def get_page_size(self, request):
        if "limit" in request.query_params and self.page_size_query_param not in request.query_params:
            self.page_size_query_param = "limit"
        try:
            return super().get_page_size(request)
        finally:
            self.page_size_query_param = type(self).page_size_query_param


class EnvelopePagination(StandardResultsSetPagination):
    """Render ``{<results_key>: [...], "pagination": {...}}``."""

    results_key = "data"

    def get_paginated_response(self, data):
        return Response(
            {
                self.results_key: data,
                "pagination": {
                    "page": self.page.number,
                    "limit": self.page.paginator.per_page,
                    "total": self.page.paginator.count,
                    "pages": self.page.paginator.num_pages,
                },
            }
        )


class GoalPagination(EnvelopePagination):
    results_key = "data"


class ContentPagination(EnvelopePagination):
    results_key = "content"
