from dataclasses import dataclass

from fastapi import Query
from pydantic import BaseModel

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageWindow:
    offset: int
    limit: int


def page_window(page: int, limit: int) -> PageWindow:
    """Offset/limit for a 1-indexed page. Inputs are assumed already validated."""
    return PageWindow(offset=(page - 1) * limit, limit=limit)


def page_count(total: int, limit: int) -> int:
    return -(-total // limit)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=page_count(total, limit))


@dataclass
class PageParams:
    page: int
    limit: int

    @property
    def window(self) -> PageWindow:
        return page_window(self.page, self.limit)

    def pagination(self, total: int) -> Pagination:
        return Pagination.build(self.page, self.limit, total)


def page_params(
    page: int = Query(1, ge=1, description="1-indexed page number"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
) -> PageParams:
    return PageParams(page=page, limit=limit)
