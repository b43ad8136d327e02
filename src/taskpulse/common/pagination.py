from __future__ import annotations

from dataclasses import dataclass, field
from math import ceil
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a listing plus the metadata infinite-scroll UIs need."""

    items: Sequence[T] = field(default_factory=list)
    current_page: int = 1
    page_size: int = 20
    total_items: int = 0

    @property
    def total_pages(self) -> int:
        if self.total_items <= 0:
            return 0
        return ceil(self.total_items / self.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1

    def pagination(self) -> dict:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "pageSize": self.page_size,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


def offset_for(page: int, page_size: int) -> int:
    return (max(page, 1) - 1) * page_size
