"""Star events and their per-series ordered sets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, Optional

SENTINEL_LOGIN = ""


@dataclass(frozen=True, order=True, slots=True)
class Star:
    """One stargazer event, ordered by time then account login."""

    time: datetime
    login: str

    @property
    def is_sentinel(self) -> bool:
        return self.login == SENTINEL_LOGIN


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    """A plot-ready cumulative star count at a unix timestamp."""

    timestamp: int
    stars: int


class StarSet:
    """Ordered set of unique stars that only grows."""

    def __init__(self, stars: Iterable[Star] = ()) -> None:
        self._stars: set[Star] = set(stars)
        self._ordered: Optional[list[Star]] = None

    def add(self, star: Star) -> bool:
        """Insert ``star``; return False when it was already present."""
        if star in self._stars:
            return False
        self._stars.add(star)
        self._ordered = None
        return True

    def update(self, stars: Iterable[Star]) -> int:
        return sum(1 for star in stars if self.add(star))

    def first(self) -> Optional[Star]:
        ordered = self._sorted()
        return ordered[0] if ordered else None

    def last(self) -> Optional[Star]:
        ordered = self._sorted()
        return ordered[-1] if ordered else None

    def _sorted(self) -> list[Star]:
        if self._ordered is None:
            self._ordered = sorted(self._stars)
        return self._ordered

    def __contains__(self, star: object) -> bool:
        return star in self._stars

    def __iter__(self) -> Iterator[Star]:
        return iter(list(self._sorted()))

    def __len__(self) -> int:
        return len(self._stars)

    def __repr__(self) -> str:
        return f"<StarSet {len(self._stars)} stars>"
