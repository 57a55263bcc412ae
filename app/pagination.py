from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def normalize_paging(page: int | None, limit: int | None, max_limit: int) -> tuple[int, int]:
    p = page if page and page > 0 else DEFAULT_PAGE
    size = limit if limit and limit > 0 else DEFAULT_LIMIT
    return p, min(size, max_limit)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


@dataclass(slots=True)
class Page:
    items: list[Any] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.limit)

    def pagination(self) -> dict:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }
