from __future__ import annotations

from pydantic import BaseModel

MAX_PAGE_LIMIT = 100


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


def normalize_paging(page: int, limit: int, default_limit: int) -> tuple[int, int, int]:
    """Clamp page/limit the way list endpoints expect and return (page, limit, offset)."""
    if page < 1:
        page = 1
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        limit = default_limit
    return page, limit, (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    pages = (total + limit - 1) // limit if limit else 0
    return Pagination(page=page, limit=limit, total=total, pages=pages)
