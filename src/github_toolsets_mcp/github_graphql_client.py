"""GitHub GraphQL client.

Projects (v2) have no REST surface, so the projects toolset talks GraphQL. The
transport rules (https only, no redirects, bounded retries, 401/403 mapping)
are the REST client's; this module only adds the GraphQL envelope: a POST of
`{"query", "variables"}` whose answer carries either `data` or `errors`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx

from .config import LimitsConfig
from .errors import SafeError
from .github_client import GitHubClient, RequestBudget


@dataclass(frozen=True, slots=True)
class GraphQLResult:
    data: dict[str, Any]


def _first_error_message(errors: list[Any]) -> str | None:
    first = errors[0]
    if isinstance(first, dict) and isinstance(first.get("message"), str):
        return first["message"]
    return None


class GitHubGraphQLClient:
    """Runs server-owned query and mutation documents against the GraphQL endpoint."""

    def __init__(
        self,
        *,
        token_provider,
        limits: LimitsConfig,
        graphql_url: str = "https://api.github.com/graphql",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        # The endpoint is the whole URL, so requests go to an empty path.
        self._http = GitHubClient(
            token_provider=token_provider,
            limits=limits,
            api_base_url=graphql_url,
            transport=transport,
        )

    async def execute(
        self,
        *,
        query: str,
        variables: dict[str, Any] | None = None,
        budget: RequestBudget,
    ) -> GraphQLResult:
        if not isinstance(query, str) or not query.strip():
            raise SafeError(code="Internal", message="GraphQL query is missing")

        resp = await self._http.request(
            method="POST",
            path="",
            json_body={"query": query, "variables": variables or {}},
            budget=budget,
        )
        try:
            payload = resp.json()
        except json.JSONDecodeError as exc:
            raise SafeError(code="GitHub", message="GitHub returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise SafeError(code="GitHub", message="GitHub returned invalid JSON")

        # GraphQL reports query failures with HTTP 200.
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            raise SafeError(code="GitHub", message="GitHub GraphQL request failed", hint=_first_error_message(errors))

        data = payload.get("data")
        if not isinstance(data, dict):
            raise SafeError(code="GitHub", message="GitHub GraphQL returned no data")
        return GraphQLResult(data=data)
