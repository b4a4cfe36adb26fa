"""Series identity, pagination cursors and pending work items."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional


class Series:
    """A charted identity: an owner or an owner/repo pair.

    Comparison is case-insensitive and every owner sorts before every repo,
    so ``OwnerSeries("Octocat") == OwnerSeries("octocat")`` and both hash the
    same when used as mapping keys.
    """

    __slots__ = ()

    def sort_key(self) -> tuple[int, str, str]:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __lt__(self, other: "Series") -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "Series") -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: "Series") -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: "Series") -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return self.sort_key() >= other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())


class OwnerSeries(Series):
    """All public, non-fork repositories owned by a user or organization."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def sort_key(self) -> tuple[int, str, str]:
        return (0, self.name.lower(), "")

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"OwnerSeries({self.name!r})"


class RepoSeries(Series):
    """A single repository."""

    __slots__ = ("owner", "name")

    def __init__(self, owner: str, name: str) -> None:
        self.owner = owner
        self.name = name

    def sort_key(self) -> tuple[int, str, str]:
        return (1, self.owner.lower(), self.name.lower())

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"

    def __repr__(self) -> str:
        return f"RepoSeries({self.owner!r}, {self.name!r})"


@dataclass(frozen=True, slots=True)
class Cursor:
    """Opaque pagination token; ``None`` starts from the beginning."""

    value: Optional[str] = None

    def to_graphql(self) -> str:
        if self.value is None:
            return "null"
        return json.dumps(self.value)

    def __str__(self) -> str:
        return self.to_graphql()


@dataclass(frozen=True, slots=True)
class WorkItem:
    """A pending pagination request for one series."""

    series: Series
    cursor: Cursor = Cursor()
