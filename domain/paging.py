"""
Domain: paged listings.

Page numbers start at 1. Page sizes are bounded to [1, MAX_PAGE_SIZE]; the
caller-facing layer clamps larger requests down before asking storage.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE: int = 10
MAX_PAGE_SIZE: int = 100


def clamp_page_size(page_size: int) -> int:
    return min(page_size, MAX_PAGE_SIZE)


def require_valid_page(page_number: int, page_size: int) -> None:
    if page_number < 1:
        raise ValueError("page_number must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be within [1, {MAX_PAGE_SIZE}]")


@dataclass(frozen=True, slots=True)
class PagedResult(Generic[T]):
    items: Sequence[T]
    page_number: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages

    @staticmethod
    def empty(page_number: int, page_size: int) -> "PagedResult[T]":
        return PagedResult(items=(), page_number=page_number, page_size=page_size, total_count=0)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "PagedResult",
    "clamp_page_size",
    "require_valid_page",
]
