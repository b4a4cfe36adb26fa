"""Merges stargazer pages into per-owner and per-repo star sets."""

from __future__ import annotations

from typing import Iterable

from star_history.models.series import OwnerSeries, RepoSeries, Series
from star_history.models.star import Star, StarSet


class StarAggregator:
    """Owns the ``Series -> StarSet`` map for a single run."""

    def __init__(self) -> None:
        self.stars: dict[Series, StarSet] = {}

    def register(self, series: Series) -> StarSet:
        star_set = self.stars.get(series)
        if star_set is None:
            star_set = StarSet()
            self.stars[series] = star_set
        return star_set

    def add_stargazers(self, series: RepoSeries, edges: Iterable[Star]) -> int:
        """Fold stargazer edges into the repo's set and its owner's set.

        An owner's history is the union of its repositories' stars. Returns the
        number of stars that were new to the repo set.
        """

        edges = list(edges)
        self.register(OwnerSeries(series.owner)).update(edges)
        return self.register(series).update(edges)
