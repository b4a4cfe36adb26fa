"""Turns accumulated star sets into plot-ready cumulative series."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Mapping

from star_history.models.series import Series
from star_history.models.star import SENTINEL_LOGIN, SeriesPoint, Star, StarSet


def add_boundary_stars(star_set: StarSet, now: datetime) -> None:
    """Insert the sentinel stars at ``now`` and one second before the earliest star.

    The ``now`` sentinel is skipped when the latest star is already at or after
    ``now``. An empty set ends up with two sentinels, ``now - 1s`` and ``now``.
    """

    last = star_set.last()
    if last is None or last.time < now:
        star_set.add(Star(time=now, login=SENTINEL_LOGIN))

    first = star_set.first()
    if first is not None:
        star_set.add(Star(time=first.time - timedelta(seconds=1), login=SENTINEL_LOGIN))


def cumulative_points(star_set: StarSet, now: datetime) -> list[SeriesPoint]:
    stars = list(star_set)
    points: list[SeriesPoint] = []
    for index, star in enumerate(stars):
        count = index
        if star.is_sentinel and star.time == now and index == len(stars) - 1:
            count = max(index - 1, 0)
        points.append(SeriesPoint(timestamp=int(star.time.timestamp()), stars=count))
    return points


def finalize_series(
    stars: Mapping[Series, StarSet],
    requested: Iterable[Series],
    now: datetime,
) -> dict[Series, list[SeriesPoint]]:
    """Finalize every star set against one shared ``now`` and emit the requested series.

    The result keeps the order of ``requested``.
    """

    for star_set in stars.values():
        add_boundary_stars(star_set, now)

    result: dict[Series, list[SeriesPoint]] = {}
    for series in requested:
        star_set = stars.get(series)
        if star_set is None:
            star_set = StarSet()
            add_boundary_stars(star_set, now)
        result[series] = cumulative_points(star_set, now)
    return result
