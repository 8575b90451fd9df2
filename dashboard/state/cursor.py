"""
Pagination Cursor

Tracks page / limit / known totals for one paged subject.

STABILITY CONTRACT:
===================
Ordinal position of an item is (page - 1) * limit + index_within_page.
This only holds while `limit` is constant, so a cursor never changes its
limit; a response reporting another limit is refused.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..dtos.envelope import PageMetaDTO


class PageSizeChanged(ValueError):
    """The service answered with a different page size than requested."""


@dataclass(frozen=True)
class PaginationCursor:
    """
    Immutable pagination state.

    `page` is the highest page merged so far (0 before the first merge).
    `total_pages` is the last value reported by the service; it starts at 1
    so that the first page can always be requested.
    """
    limit: int
    page: int = 0
    total_pages: int = 1
    totals: Tuple[Tuple[str, int], ...] = ()

    def __post_init__(self):
        if self.limit < 1:
            raise ValueError(f"page size must be positive, got {self.limit}")
        if self.page < 0:
            raise ValueError(f"page must not be negative, got {self.page}")

    # =========================================================================
    # REQUEST VALIDATION
    # =========================================================================

    def can_request(self, page: int) -> bool:
        """Pages beyond the last known total are refused before fetching."""
        return 1 <= page <= max(1, self.total_pages)

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages

    @property
    def next_page(self) -> int:
        return self.page + 1

    def total_of(self, kind: str) -> Optional[int]:
        for name, count in self.totals:
            if name == kind:
                return count
        return None

    # =========================================================================
    # UPDATES
    # =========================================================================

    def check_limit(self, meta: PageMetaDTO) -> None:
        if meta.limit and meta.limit != self.limit:
            raise PageSizeChanged(
                f"requested page size {self.limit}, service answered {meta.limit}"
            )

    def advance(self, meta: PageMetaDTO, merged_through: int) -> PaginationCursor:
        """Record a response; `merged_through` comes from the window."""
        self.check_limit(meta)
        return replace(
            self,
            page=merged_through,
            total_pages=max(meta.pages, 0),
            totals=meta.totals() or self.totals,
        )

    # =========================================================================
    # ORDINALS
    # =========================================================================

    def ordinal(self, page: int, index_within_page: int) -> int:
        """0-based position across the whole subject."""
        return (page - 1) * self.limit + index_within_page

    def label(self, page: int, index_within_page: int) -> int:
        """1-based position shown to the user."""
        return self.ordinal(page, index_within_page) + 1
