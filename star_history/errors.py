"""Error kinds surfaced by the star-history engine."""

from __future__ import annotations

from typing import Optional

from star_history.models.series import OwnerSeries, RepoSeries, Series


class StarHistoryError(Exception):
    """Base exception for all engine errors."""

    code = "star_history_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(StarHistoryError):
    """A requested or discovered owner/repository does not exist."""

    code = "not_found"

    def __init__(self, series: Series) -> None:
        self.series = series
        if isinstance(series, RepoSeries):
            message = f"no such repository: {series.owner}/{series.name}"
        elif isinstance(series, OwnerSeries):
            message = f"no such user: {series.name}"
        else:
            message = f"no such series: {series}"
        super().__init__(message)


class ApiError(StarHistoryError):
    """Top-level ``message`` returned by the API; aborts the run."""

    code = "api_error"

    def __init__(self, message: str) -> None:
        self.api_message = message
        super().__init__(f"Error from GitHub api: {message}")


class PartialApiError(ApiError):
    """Entry of the response ``errors`` list; reported, never fatal."""

    code = "partial_api_error"


class DecodeError(StarHistoryError):
    """Response body did not match the expected schema."""

    code = "decode_error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"failed to decode response body: {detail}")


class TransportError(StarHistoryError):
    """Network or HTTP failure reported by the transport."""

    code = "transport_error"

    def __init__(self, detail: str, status_code: Optional[int] = None) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"GitHub request failed: {detail}")
