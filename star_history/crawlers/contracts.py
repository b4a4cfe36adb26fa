"""Transport result contract and typed decoding of GraphQL responses."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Generic, Optional, TypeVar

from dateutil import parser as date_parser

from star_history.errors import DecodeError
from star_history.models.series import Cursor
from star_history.models.star import Star

T = TypeVar("T")


class FetchState(str, Enum):
    """Outcome of one transport call."""

    OK = "ok"
    FAILED = "failed"


@dataclass(slots=True)
class FetchResult(Generic[T]):
    state: FetchState
    data: Optional[T] = None
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Account:
    login: str


@dataclass(frozen=True, slots=True)
class PageInfo:
    has_next_page: bool
    end_cursor: Cursor


@dataclass(slots=True)
class Stargazers:
    page_info: PageInfo
    edges: list[Star]


@dataclass(slots=True)
class RepoNode:
    name: str
    owner: Account
    stargazers: Optional[Stargazers] = None


@dataclass(slots=True)
class Repositories:
    page_info: PageInfo
    nodes: list[RepoNode]


@dataclass(slots=True)
class OwnerNode:
    login: str
    repositories: Repositories


@dataclass(slots=True)
class Data:
    """One aliased entry of a response's ``data`` object.

    ``slot`` is the position of the originating work item in the dispatched
    batch. Repositories fanned out from an owner listing carry no slot.
    """

    PREFIX: ClassVar[str] = ""

    slot: Optional[int]

    @classmethod
    def alias(cls, slot: int) -> str:
        return f"{cls.PREFIX}{slot}"

    @classmethod
    def decode(cls, slot: int, payload: Any, path: str) -> "Data":
        raise NotImplementedError

    @property
    def missing(self) -> bool:
        raise NotImplementedError


@dataclass(slots=True)
class OwnerData(Data):
    PREFIX: ClassVar[str] = "owner"

    owner: Optional[OwnerNode] = None

    @classmethod
    def decode(cls, slot: int, payload: Any, path: str) -> "OwnerData":
        if payload is None:
            return cls(slot=slot, owner=None)
        return cls(slot=slot, owner=_decode_owner(payload, path))

    @property
    def missing(self) -> bool:
        return self.owner is None


@dataclass(slots=True)
class RepoData(Data):
    PREFIX: ClassVar[str] = "repo"

    repo: Optional[RepoNode] = None

    @classmethod
    def decode(cls, slot: int, payload: Any, path: str) -> "RepoData":
        if payload is None:
            return cls(slot=slot, repo=None)
        return cls(slot=slot, repo=_decode_repo(payload, path))

    @property
    def missing(self) -> bool:
        return self.repo is None


DATA_VARIANTS: dict[str, type[Data]] = {
    OwnerData.PREFIX: OwnerData,
    RepoData.PREFIX: RepoData,
}

_ALIAS_PATTERN = re.compile(r"^(?P<prefix>[A-Za-z_]+?)(?P<slot>\d+)$")


@dataclass(slots=True)
class Response:
    """Decoded top-level GraphQL response."""

    message: Optional[str] = None
    errors: list[str] = field(default_factory=list)
    data: list[Data] = field(default_factory=list)
    has_data: bool = False


def decode_response(body: Any) -> Response:
    """Decode a response body (JSON text or already-parsed object).

    Keys of ``data`` that are not ``<prefix><slot>`` for a declared variant are
    ignored. Null entities decode to variants with no payload so the caller can
    attribute them to their work item.
    """

    if isinstance(body, (str, bytes, bytearray)):
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise DecodeError(f"invalid JSON: {exc}") from exc
    else:
        payload = body

    if not isinstance(payload, dict):
        raise DecodeError("expected a JSON object at the top level")

    message = payload.get("message")
    if message is not None and not isinstance(message, str):
        raise DecodeError("message: expected a string")

    raw_data = payload.get("data")
    return Response(
        message=message,
        errors=_decode_errors(payload.get("errors")),
        data=_decode_data(raw_data),
        has_data=raw_data is not None,
    )


def _decode_errors(raw: Any) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise DecodeError("errors: expected an array")
    messages: list[str] = []
    for index, entry in enumerate(raw):
        messages.append(_field(entry, "message", str, f"errors[{index}]"))
    return messages


def _decode_data(raw: Any) -> list[Data]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise DecodeError("data: expected an object")

    decoded: list[Data] = []
    for key, value in raw.items():
        match = _ALIAS_PATTERN.match(key)
        if match is None:
            continue
        variant = DATA_VARIANTS.get(match.group("prefix"))
        if variant is None:
            continue
        decoded.append(variant.decode(int(match.group("slot")), value, f"data.{key}"))
    return decoded


def _decode_owner(payload: Any, path: str) -> OwnerNode:
    repositories = _field(payload, "repositories", dict, path)
    repositories_path = f"{path}.repositories"
    nodes = _field(repositories, "nodes", list, repositories_path)
    return OwnerNode(
        login=_field(payload, "login", str, path),
        repositories=Repositories(
            page_info=_decode_page_info(repositories, repositories_path),
            nodes=[
                _decode_repo(node, f"{repositories_path}.nodes[{index}]")
                for index, node in enumerate(nodes)
                if node is not None
            ],
        ),
    )


def _decode_repo(payload: Any, path: str) -> RepoNode:
    owner = _field(payload, "owner", dict, path)
    raw_stargazers = payload.get("stargazers")
    stargazers = None
    if raw_stargazers is not None:
        stargazers = _decode_stargazers(raw_stargazers, f"{path}.stargazers")
    return RepoNode(
        name=_field(payload, "name", str, path),
        owner=Account(login=_field(owner, "login", str, f"{path}.owner")),
        stargazers=stargazers,
    )


def _decode_stargazers(payload: Any, path: str) -> Stargazers:
    edges = _field(payload, "edges", list, path)
    stars: list[Star] = []
    for index, edge in enumerate(edges):
        # Deleted accounts come back as null edges or null nodes.
        if edge is None or (isinstance(edge, dict) and edge.get("node") is None):
            continue
        edge_path = f"{path}.edges[{index}]"
        node = _field(edge, "node", dict, edge_path)
        stars.append(
            Star(
                time=_parse_timestamp(_field(edge, "starredAt", str, edge_path), f"{edge_path}.starredAt"),
                login=_field(node, "login", str, f"{edge_path}.node"),
            )
        )
    return Stargazers(page_info=_decode_page_info(payload, path), edges=stars)


def _decode_page_info(payload: Any, path: str) -> PageInfo:
    page_info = _field(payload, "pageInfo", dict, path)
    page_info_path = f"{path}.pageInfo"
    end_cursor = page_info.get("endCursor")
    if end_cursor is not None and not isinstance(end_cursor, str):
        raise DecodeError(f"{page_info_path}.endCursor: expected a string or null")
    return PageInfo(
        has_next_page=_field(page_info, "hasNextPage", bool, page_info_path),
        end_cursor=Cursor(end_cursor),
    )


def _parse_timestamp(raw: str, path: str) -> datetime:
    try:
        parsed = date_parser.isoparse(raw)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"{path}: invalid timestamp {raw!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _field(payload: Any, key: str, expected: type, path: str) -> Any:
    if not isinstance(payload, dict):
        raise DecodeError(f"{path}: expected an object")
    if key not in payload:
        raise DecodeError(f"{path}.{key}: missing field")
    value = payload[key]
    if not isinstance(value, expected):
        raise DecodeError(f"{path}.{key}: expected {expected.__name__}")
    return value
