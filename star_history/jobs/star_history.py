"""Star-history job entrypoints and series argument parsing."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from star_history.models.series import OwnerSeries, RepoSeries, Series
from star_history.orchestrator import StarHistoryOrchestrator, StarHistoryResult


def parse_series(raw: str) -> Series:
    """Parse ``owner`` or ``owner/repo`` into a series, splitting on the first slash."""
    text = raw.strip()
    if not text:
        raise ValueError("series must not be empty")

    owner, sep, repo = text.partition("/")
    if not sep:
        return OwnerSeries(owner)
    if not owner or not repo:
        raise ValueError(f"invalid repository series: {raw!r}")
    return RepoSeries(owner, repo)


def parse_series_list(raw: Any) -> list[Series]:
    """Parse a comma-separated string or a sequence into deduplicated series."""
    if raw is None:
        return []

    if isinstance(raw, str):
        values: Iterable[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        values = raw
    else:
        values = [raw]

    parsed: list[Series] = []
    seen: set[Series] = set()
    for value in values:
        text = str(value).strip()
        if not text:
            continue
        series = parse_series(text)
        if series in seen:
            continue
        seen.add(series)
        parsed.append(series)
    return parsed


async def run_star_history(
    series: str | Sequence[str],
    *,
    orchestrator: StarHistoryOrchestrator | None = None,
    now: Optional[datetime] = None,
    on_tick: Optional[Callable[[int], None]] = None,
) -> StarHistoryResult:
    """Fetch and finalize the star history of every requested series."""
    requested = parse_series_list(series)
    if not requested:
        raise ValueError("at least one owner or owner/repo series is required")

    job_orchestrator = orchestrator or StarHistoryOrchestrator()
    return await job_orchestrator.run(requested, now=now, on_tick=on_tick)
