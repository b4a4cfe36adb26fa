"""Batched, breadth-first scheduling of paginated star-history queries."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from star_history.config.settings import settings
from star_history.crawlers.client import sanitize_log_extra
from star_history.crawlers.contracts import (
    Data,
    FetchState,
    OwnerData,
    RepoData,
    Response,
    decode_response,
)
from star_history.crawlers.queries import build_query
from star_history.errors import ApiError, DecodeError, NotFoundError, PartialApiError, TransportError
from star_history.models.series import Cursor, OwnerSeries, RepoSeries, Series, WorkItem
from star_history.models.star import StarSet
from star_history.services.aggregator import StarAggregator

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 50


@dataclass(slots=True)
class SchedulerRun:
    """Merged state of a run whose queue drained without a fatal error."""

    stars: dict[Series, StarSet]
    warnings: list[PartialApiError] = field(default_factory=list)
    rounds: int = 0


class StarHistoryScheduler:
    """Drives the work queue until every discovered page has been consumed.

    Each round takes at most ``batch_size`` items from the front of the queue,
    sends them as one combined query and merges the answer before the next
    round is dispatched. Continuations discovered in a response are appended
    to the back of the queue.
    """

    def __init__(
        self,
        transport: Any,
        *,
        batch_size: Optional[int] = None,
        on_tick: Optional[Callable[[int], None]] = None,
    ) -> None:
        size = batch_size or settings.STAR_HISTORY_BATCH_SIZE
        self._transport = transport
        self._batch_size = max(1, min(size, MAX_BATCH_SIZE))
        self._on_tick = on_tick

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def run(self, requested: Sequence[Series]) -> SchedulerRun:
        aggregator = StarAggregator()
        queue: deque[WorkItem] = deque()
        started: set[RepoSeries] = set()
        seeded: set[Series] = set()

        for series in requested:
            aggregator.register(series)
            if series in seeded:
                continue
            seeded.add(series)
            queue.append(WorkItem(series=series, cursor=Cursor()))
            if isinstance(series, RepoSeries):
                started.add(series)

        warnings: list[PartialApiError] = []
        rounds = 0
        while queue:
            batch = [queue.popleft() for _ in range(min(len(queue), self._batch_size))]
            response = await self._dispatch(batch)
            warnings.extend(self._partial_errors(response))
            self._validate(batch, response)
            self._merge(batch, response, aggregator, queue, started)

            rounds += 1
            logger.debug(
                "Star history round merged",
                extra=sanitize_log_extra(round=rounds, batch_size=len(batch), queued=len(queue)),
            )
            self._tick(rounds)

        return SchedulerRun(stars=aggregator.stars, warnings=warnings, rounds=rounds)

    async def _dispatch(self, batch: list[WorkItem]) -> Response:
        result = await self._transport.send(build_query(batch))
        if result.state != FetchState.OK:
            raise TransportError(result.error or "unknown transport failure", result.status_code)

        response = decode_response(result.data)
        if response.message is not None:
            raise ApiError(response.message)
        return response

    @staticmethod
    def _partial_errors(response: Response) -> list[PartialApiError]:
        errors = [PartialApiError(message) for message in response.errors]
        for error in errors:
            logger.warning("GitHub api reported a partial error", extra=sanitize_log_extra(error=error.api_message))
        return errors

    @staticmethod
    def _validate(batch: list[WorkItem], response: Response) -> None:
        if not response.has_data:
            if response.errors:
                raise ApiError(response.errors[0])
            raise DecodeError("response carried neither data nor message")

        answered: set[int] = set()
        for node in response.data:
            if node.slot is None or node.slot >= len(batch):
                raise DecodeError(f"unexpected result slot {node.slot}")
            series = batch[node.slot].series
            expected = OwnerData if isinstance(series, OwnerSeries) else RepoData
            if not isinstance(node, expected):
                raise DecodeError(f"result slot {node.slot} does not match request for {series}")
            if node.missing:
                raise NotFoundError(series)
            answered.add(node.slot)

        if len(answered) != len(batch):
            missing = sorted(set(range(len(batch))) - answered)
            raise DecodeError(f"no result for requested slots {missing}")

    @staticmethod
    def _merge(
        batch: list[WorkItem],
        response: Response,
        aggregator: StarAggregator,
        queue: deque[WorkItem],
        started: set[RepoSeries],
    ) -> None:
        pending: deque[Data] = deque(response.data)
        while pending:
            node = pending.popleft()

            if isinstance(node, OwnerData):
                owner = node.owner
                for repo in owner.repositories.nodes:
                    pending.append(RepoData(slot=None, repo=repo))

                page_info = owner.repositories.page_info
                if page_info.has_next_page:
                    queue.append(
                        WorkItem(series=OwnerSeries(owner.login), cursor=_continuation(page_info.end_cursor, owner.login))
                    )
                continue

            repo = node.repo
            if node.slot is not None:
                series = batch[node.slot].series
            else:
                series = RepoSeries(repo.owner.login, repo.name)

            if repo.stargazers is None:
                if series not in started:
                    started.add(series)
                    queue.append(WorkItem(series=series, cursor=Cursor()))
                continue

            aggregator.add_stargazers(series, repo.stargazers.edges)
            page_info = repo.stargazers.page_info
            if page_info.has_next_page:
                queue.append(WorkItem(series=series, cursor=_continuation(page_info.end_cursor, str(series))))

    def _tick(self, rounds: int) -> None:
        if self._on_tick is None:
            return
        try:
            self._on_tick(rounds)
        except Exception:
            logger.warning("Progress callback failed", exc_info=True)


def _continuation(cursor: Cursor, label: str) -> Cursor:
    if cursor.value is None:
        raise DecodeError(f"{label}: hasNextPage without endCursor")
    return cursor
