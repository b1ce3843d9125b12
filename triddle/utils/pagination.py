"""
Pagination helpers shared by list endpoints.

Query params: page (1-based) and limit. Responses carry
{"next": {"page", "limit"}, "prev": {...}} only where such a page exists.
"""

from fastapi import Query

DEFAULT_LIMIT = 25
MAX_LIMIT = 100


class PageParams:
    """FastAPI dependency - ?page=&limit= with bounds."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    ):
        self.page = page
        self.limit = limit

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def build_pagination(page: int, limit: int, total: int) -> dict:
    pagination = {}
    if page * limit < total:
        pagination["next"] = {"page": page + 1, "limit": limit}
    if page > 1:
        pagination["prev"] = {"page": page - 1, "limit": limit}
    return pagination
