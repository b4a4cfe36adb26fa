"""Star-history run orchestration with a discriminated result."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from star_history.crawlers.client import GitHubGraphQLClient, sanitize_for_log, sanitize_log_extra
from star_history.crawlers.contracts import FetchState
from star_history.crawlers.scheduler import StarHistoryScheduler
from star_history.errors import PartialApiError, StarHistoryError
from star_history.models.series import Series
from star_history.models.star import SeriesPoint
from star_history.services.finalizer import finalize_series

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StarHistoryResult:
    """Outcome of one run: either every requested series or the fatal error."""

    state: FetchState
    series: dict[Series, list[SeriesPoint]] = field(default_factory=dict)
    warnings: list[PartialApiError] = field(default_factory=list)
    rounds: int = 0
    error: Optional[StarHistoryError] = None

    @property
    def success(self) -> bool:
        return self.state == FetchState.OK

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "rounds": self.rounds,
            "warnings": [warning.message for warning in self.warnings],
            "data": [
                {
                    "name": str(series),
                    "values": [{"time": point.timestamp, "stars": point.stars} for point in points],
                }
                for series, points in self.series.items()
            ],
        }
        if self.error is not None:
            payload["error"] = {"code": self.error.code, "message": self.error.message}
        return payload


class StarHistoryOrchestrator:
    """Builds a transport per run and turns scheduler output into plot series."""

    def __init__(
        self,
        *,
        client_factory: Callable[[], Any] = GitHubGraphQLClient,
        batch_size: Optional[int] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._client_factory = client_factory
        self._batch_size = batch_size
        self._clock = clock

    async def run(
        self,
        requested: Sequence[Series],
        *,
        now: Optional[datetime] = None,
        on_tick: Optional[Callable[[int], None]] = None,
    ) -> StarHistoryResult:
        requested = list(requested)
        logger.info(
            "Star history run started",
            extra=sanitize_log_extra(series=[str(series) for series in requested]),
        )

        try:
            async with self._client_factory() as client:
                scheduler = StarHistoryScheduler(client, batch_size=self._batch_size, on_tick=on_tick)
                scheduler_run = await scheduler.run(requested)
        except StarHistoryError as exc:
            logger.warning(
                "Star history run failed",
                extra=sanitize_log_extra(code=exc.code, error=sanitize_for_log(exc.message, key="error")),
            )
            return StarHistoryResult(state=FetchState.FAILED, error=exc)

        finalized = finalize_series(scheduler_run.stars, requested, _as_utc(now or self._clock()))
        logger.info(
            "Star history run completed",
            extra=sanitize_log_extra(
                rounds=scheduler_run.rounds,
                series_count=len(finalized),
                warnings=[warning.message for warning in scheduler_run.warnings],
            ),
        )
        return StarHistoryResult(
            state=FetchState.OK,
            series=finalized,
            warnings=scheduler_run.warnings,
            rounds=scheduler_run.rounds,
        )


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
