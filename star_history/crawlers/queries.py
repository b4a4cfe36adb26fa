"""GraphQL query documents for owner repository listings and stargazer pages."""

from __future__ import annotations

import json
from typing import Sequence

from star_history.crawlers.contracts import OwnerData, RepoData
from star_history.models.series import OwnerSeries, RepoSeries, WorkItem

PAGE_SIZE = 100

_OWNER_FRAGMENT = """
  {alias}: repositoryOwner(login: {login}) {{
    login
    repositories(after: {cursor}, first: {page_size}, isFork: false, privacy: PUBLIC, ownerAffiliations: [OWNER]) {{
      pageInfo {{
        hasNextPage
        endCursor
      }}
      nodes {{
        name
        owner {{
          login
        }}
      }}
    }}
  }}
"""

_REPO_FRAGMENT = """
  {alias}: repository(owner: {owner}, name: {name}) {{
    name
    owner {{
      login
    }}
    stargazers(after: {cursor}, first: {page_size}) {{
      pageInfo {{
        hasNextPage
        endCursor
      }}
      edges {{
        node {{
          login
        }}
        starredAt
      }}
    }}
  }}
"""


def build_fragment(slot: int, item: WorkItem) -> str:
    """Render the aliased selection for one work item at batch position ``slot``."""

    series = item.series
    if isinstance(series, OwnerSeries):
        return _OWNER_FRAGMENT.format(
            alias=OwnerData.alias(slot),
            login=json.dumps(series.name),
            cursor=item.cursor.to_graphql(),
            page_size=PAGE_SIZE,
        )
    if isinstance(series, RepoSeries):
        return _REPO_FRAGMENT.format(
            alias=RepoData.alias(slot),
            owner=json.dumps(series.owner),
            name=json.dumps(series.name),
            cursor=item.cursor.to_graphql(),
            page_size=PAGE_SIZE,
        )
    raise TypeError(f"Unsupported series type: {type(series).__name__}")


def build_query(batch: Sequence[WorkItem]) -> str:
    """Combine a batch of work items into a single query document."""

    fragments = "".join(build_fragment(slot, item) for slot, item in enumerate(batch))
    return "{" + fragments + "}\n"
