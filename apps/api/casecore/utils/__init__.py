"""Utility modules."""

from casecore.utils.pagination import (
    PaginationParams,
    get_pagination,
    page_payload,
    paginate_query,
)

__all__ = [
    "PaginationParams",
    "get_pagination",
    "page_payload",
    "paginate_query",
]
