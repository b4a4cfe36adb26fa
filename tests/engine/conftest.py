from __future__ import annotations

import json
import re
from typing import Any

import pytest

from star_history.crawlers.contracts import FetchResult, FetchState

_OWNER_PATTERN = re.compile(
    r'(owner\d+): repositoryOwner\(login: "([^"]*)"\).*?repositories\(after: (null|"[^"]*")',
    re.DOTALL,
)
_REPO_PATTERN = re.compile(
    r'(repo\d+): repository\(owner: "([^"]*)", name: "([^"]*)"\).*?stargazers\(after: (null|"[^"]*")',
    re.DOTALL,
)


def _canonical(mapping: dict[str, Any], key: str) -> str | None:
    return next((candidate for candidate in mapping if candidate.lower() == key.lower()), None)


def _offset(raw_cursor: str) -> int:
    return 0 if raw_cursor == "null" else int(json.loads(raw_cursor))


class FakeGitHub:
    """In-memory GraphQL endpoint serving repository listings and stargazer pages."""

    def __init__(
        self,
        *,
        owners: dict[str, list[str]] | None = None,
        stargazers: dict[str, list[tuple[str, str]]] | None = None,
        page_size: int = 2,
    ) -> None:
        self.owners = owners or {}
        self.stargazers = stargazers or {}
        self.page_size = page_size
        self.queries: list[str] = []
        self.overrides: list[dict[str, Any] | None] = []
        self.closed = False

    async def __aenter__(self) -> "FakeGitHub":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    def batch_sizes(self) -> list[int]:
        return [len(_OWNER_PATTERN.findall(query)) + len(_REPO_PATTERN.findall(query)) for query in self.queries]

    async def send(self, query: str) -> FetchResult[str]:
        self.queries.append(query)
        if self.overrides:
            override = self.overrides.pop(0)
            if override is not None:
                return FetchResult(state=FetchState.OK, data=json.dumps(override), status_code=200)

        data: dict[str, Any] = {}
        for alias, login, cursor in _OWNER_PATTERN.findall(query):
            data[alias] = self._owner(login, _offset(cursor))
        for alias, owner, name, cursor in _REPO_PATTERN.findall(query):
            data[alias] = self._repo(owner, name, _offset(cursor))

        ordered = dict(sorted(data.items(), key=lambda item: query.index(f"{item[0]}:")))
        return FetchResult(state=FetchState.OK, data=json.dumps({"data": ordered}), status_code=200)

    def _owner(self, login: str, start: int) -> dict[str, Any] | None:
        login = _canonical(self.owners, login)
        if login is None:
            return None
        names = self.owners[login]
        page = names[start:start + self.page_size]
        end = start + len(page)
        return {
            "login": login,
            "repositories": {
                "pageInfo": {"hasNextPage": end < len(names), "endCursor": str(end) if page else None},
                "nodes": [{"name": name, "owner": {"login": login}} for name in page],
            },
        }

    def _repo(self, owner: str, name: str, start: int) -> dict[str, Any] | None:
        full_name = _canonical(self.stargazers, f"{owner}/{name}")
        if full_name is None:
            return None
        owner, name = full_name.split("/", 1)
        stars = self.stargazers[full_name]
        page = stars[start:start + self.page_size]
        end = start + len(page)
        return {
            "name": name,
            "owner": {"login": owner},
            "stargazers": {
                "pageInfo": {"hasNextPage": end < len(stars), "endCursor": str(end) if page else None},
                "edges": [{"node": {"login": login}, "starredAt": starred_at} for login, starred_at in page],
            },
        }


@pytest.fixture
def fake_github():
    return FakeGitHub
