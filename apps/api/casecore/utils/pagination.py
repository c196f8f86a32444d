"""Offset pagination shared by the case, appointment and task listings."""

from dataclasses import dataclass
from typing import Any, Sequence

from fastapi import Query
from sqlalchemy.orm import Query as SQLAlchemyQuery

from casecore.core.config import settings


@dataclass
class PaginationParams:
    page: int = 1
    per_page: int = settings.DEFAULT_PER_PAGE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def get_pagination(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: int = Query(
        settings.DEFAULT_PER_PAGE,
        ge=1,
        le=settings.MAX_PER_PAGE,
        description=f"Items per page (max {settings.MAX_PER_PAGE})",
    ),
) -> PaginationParams:
    """Query-string pagination dependency for list endpoints."""
    return PaginationParams(page=page, per_page=per_page)


def page_count(total: int, per_page: int) -> int:
    if per_page <= 0:
        return 0
    return -(-total // per_page)


def paginate_query(query: SQLAlchemyQuery, pagination: PaginationParams) -> tuple[list, int]:
    """
    Count the scoped query, then fetch one page of it.

    Returns:
        (items, total_count)
    """
    total = query.count()
    items = query.offset(pagination.offset).limit(pagination.per_page).all()
    return items, total


def page_payload(items: Sequence[Any], total: int, pagination: PaginationParams) -> dict[str, Any]:
    """Keyword arguments for the *ListResponse schemas."""
    return {
        "items": list(items),
        "total": total,
        "page": pagination.page,
        "per_page": pagination.per_page,
        "pages": page_count(total, pagination.per_page),
    }
