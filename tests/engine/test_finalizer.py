from __future__ import annotations

from datetime import datetime, timedelta, timezone

from star_history.models.series import OwnerSeries, RepoSeries
from star_history.models.star import SeriesPoint, Star, StarSet
from star_history.services.aggregator import StarAggregator
from star_history.services.finalizer import add_boundary_stars, finalize_series

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2020, 1, 1, tzinfo=timezone.utc)
T2 = datetime(2020, 1, 2, tzinfo=timezone.utc)


def _ts(moment: datetime) -> int:
    return int(moment.timestamp())


def test_star_set_orders_by_time_then_login_and_ignores_duplicates() -> None:
    star_set = StarSet()

    assert star_set.add(Star(time=T2, login="bob")) is True
    assert star_set.add(Star(time=T2, login="alice")) is True
    assert star_set.add(Star(time=T1, login="zed")) is True
    assert star_set.add(Star(time=T2, login="bob")) is False
    assert star_set.update([Star(time=T1, login="zed"), Star(time=T2, login="carol")]) == 1

    assert [star.login for star in star_set] == ["zed", "alice", "bob", "carol"]
    assert star_set.first().login == "zed"
    assert star_set.last().login == "carol"


def test_aggregator_folds_repo_stars_into_owner() -> None:
    aggregator = StarAggregator()
    edges = [Star(time=T1, login="alice"), Star(time=T2, login="bob")]

    assert aggregator.add_stargazers(RepoSeries("octocat", "a"), edges) == 2
    assert aggregator.add_stargazers(RepoSeries("octocat", "a"), edges) == 0
    aggregator.add_stargazers(RepoSeries("Octocat", "b"), [Star(time=T1, login="alice"), Star(time=T2, login="carol")])

    assert len(aggregator.stars[RepoSeries("octocat", "a")]) == 2
    assert len(aggregator.stars[RepoSeries("octocat", "b")]) == 2
    assert len(aggregator.stars[OwnerSeries("octocat")]) == 3


def test_finalized_series_starts_at_zero_and_extends_to_now() -> None:
    repo = RepoSeries("octocat", "Hello-World")
    stars = {repo: StarSet([Star(T1, "alice"), Star(T2, "bob"), Star(T2, "carol")])}

    result = finalize_series(stars, [repo], NOW)

    assert result[repo] == [
        SeriesPoint(timestamp=_ts(T1) - 1, stars=0),
        SeriesPoint(timestamp=_ts(T1), stars=1),
        SeriesPoint(timestamp=_ts(T2), stars=2),
        SeriesPoint(timestamp=_ts(T2), stars=3),
        SeriesPoint(timestamp=_ts(NOW), stars=3),
    ]


def test_finalized_counts_step_by_one_per_real_star() -> None:
    repo = RepoSeries("octocat", "Spoon-Knife")
    real = [Star(T1 + timedelta(hours=index), f"user{index}") for index in range(25)]
    stars = {repo: StarSet(real)}

    points = finalize_series(stars, [repo], NOW)[repo]

    counts = [point.stars for point in points]
    assert counts[0] == 0
    assert points[0].timestamp < _ts(real[0].time)
    assert all(later >= earlier for earlier, later in zip(counts, counts[1:]))
    assert counts[-1] == len(real)
    assert counts[1:-1] == list(range(1, len(real) + 1))


def test_empty_series_has_two_boundary_points() -> None:
    owner = OwnerSeries("octocat")

    result = finalize_series({owner: StarSet()}, [owner], NOW)

    assert result[owner] == [
        SeriesPoint(timestamp=_ts(NOW) - 1, stars=0),
        SeriesPoint(timestamp=_ts(NOW), stars=0),
    ]


def test_now_boundary_skipped_when_latest_star_is_not_in_the_past() -> None:
    future = NOW + timedelta(seconds=30)
    star_set = StarSet([Star(T1, "alice"), Star(future, "bob")])

    add_boundary_stars(star_set, NOW)

    assert [(star.time, star.login) for star in star_set] == [
        (T1 - timedelta(seconds=1), ""),
        (T1, "alice"),
        (future, "bob"),
    ]


def test_finalize_emits_only_requested_series_in_request_order() -> None:
    owner = OwnerSeries("octocat")
    repo = RepoSeries("octocat", "Hello-World")
    discovered = RepoSeries("octocat", "linguist")
    stars = {
        owner: StarSet([Star(T1, "alice")]),
        repo: StarSet([Star(T1, "alice")]),
        discovered: StarSet([Star(T2, "bob")]),
    }

    result = finalize_series(stars, [repo, owner], NOW)

    assert list(result) == [repo, owner]
    # Every set shares the same boundary at now.
    assert stars[discovered].last() == Star(NOW, "")
