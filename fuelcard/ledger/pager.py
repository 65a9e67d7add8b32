"""Mini README: Fixed-size pages over a newest-first history.

Structure:
    * HistoryPage - one page of records plus the numbers needed to render a pager.
    * HistoryPager - stateless page derivation and clamped navigation.

Page numbers are 1-based. Every operation clamps into ``[1, total_pages]`` so
a page number kept by an interface stays valid after the history shrinks
(for example after clearing it).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

from .records import TransactionRecord


@dataclass(frozen=True, slots=True)
class HistoryPage:
    """Slice of history for a single page."""

    number: int
    total_pages: int
    page_size: int
    total_records: int
    records: Tuple[TransactionRecord, ...]

    @property
    def has_previous(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages

    @property
    def first_position(self) -> int:
        """1-based position of the first record on the page (0 when empty)."""

        return (self.number - 1) * self.page_size + 1 if self.records else 0

    @property
    def last_position(self) -> int:
        return self.first_position + len(self.records) - 1 if self.records else 0


class HistoryPager:
    """Derive pages of ``page_size`` records from a history sequence."""

    def __init__(self, page_size: int = 20) -> None:
        if page_size < 1:
            raise ValueError("Page size must be at least 1.")
        self.page_size = page_size

    def total_pages(self, history: Sequence[TransactionRecord]) -> int:
        return max(1, math.ceil(len(history) / self.page_size))

    def clamp(self, history: Sequence[TransactionRecord], number: int) -> int:
        return min(max(1, number), self.total_pages(history))

    def page(self, history: Sequence[TransactionRecord], number: int) -> HistoryPage:
        """Return the requested page, clamped to the available range."""

        effective = self.clamp(history, number)
        start = (effective - 1) * self.page_size
        return HistoryPage(
            number=effective,
            total_pages=self.total_pages(history),
            page_size=self.page_size,
            total_records=len(history),
            records=tuple(history[start : start + self.page_size]),
        )

    def next_page(self, history: Sequence[TransactionRecord], current: int) -> int:
        return self.clamp(history, self.clamp(history, current) + 1)

    def previous_page(self, history: Sequence[TransactionRecord], current: int) -> int:
        return self.clamp(history, self.clamp(history, current) - 1)

    def jump_to(self, history: Sequence[TransactionRecord], number: int) -> int:
        return self.clamp(history, number)

    def iter_pages(self, history: Sequence[TransactionRecord]) -> Iterator[HistoryPage]:
        for number in range(1, self.total_pages(history) + 1):
            yield self.page(history, number)
