from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Mapping, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping[str, Any], *, default_limit: int = DEFAULT_PAGE_SIZE) -> "PageRequest":
        try:
            page = int(args.get("page", 1))
        except (TypeError, ValueError):
            page = 1
        try:
            limit = int(args.get("limit", default_limit))
        except (TypeError, ValueError):
            limit = default_limit
        return cls(page=max(page, 1), limit=min(max(limit, 1), MAX_PAGE_SIZE))


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    request: PageRequest

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.request.limit) if self.total else 0

    def meta(self) -> dict:
        return {"current": self.request.page, "pages": self.pages, "total": self.total}
