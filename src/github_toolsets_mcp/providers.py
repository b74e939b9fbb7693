"""Capability provider: hands out authenticated GitHub clients.

Clients are built lazily on first use and reused afterwards. Construction
failures surface as ProviderError, which dispatch treats as a hard call failure.
"""

from __future__ import annotations

import asyncio

import httpx

from .config import AppConfig
from .errors import ProviderError, SafeError
from .github_client import GitHubClient
from .github_graphql_client import GitHubGraphQLClient
from .raw_client import RawContentClient


class ClientProvider:
    """Builds the REST, GraphQL and raw content clients for a server instance."""

    def __init__(self, *, config: AppConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._transport = transport
        self._lock = asyncio.Lock()
        self._rest: GitHubClient | None = None
        self._gql: GitHubGraphQLClient | None = None
        self._raw: RawContentClient | None = None

    async def _token(self) -> str:
        if not self._config.token:
            raise ProviderError("no GitHub token configured")
        return self._config.token

    async def get_client(self) -> GitHubClient:
        """Return the REST client."""
        async with self._lock:
            if self._rest is None:
                try:
                    self._rest = GitHubClient(
                        token_provider=self._token,
                        limits=self._config.limits,
                        api_base_url=self._config.host.api_base_url,
                        transport=self._transport,
                    )
                except SafeError as exc:
                    raise ProviderError(f"failed to get GitHub client: {exc.message}") from exc
            return self._rest

    async def get_gql_client(self) -> GitHubGraphQLClient:
        """Return the GraphQL client."""
        async with self._lock:
            if self._gql is None:
                try:
                    self._gql = GitHubGraphQLClient(
                        token_provider=self._token,
                        limits=self._config.limits,
                        graphql_url=self._config.host.graphql_url,
                        transport=self._transport,
                    )
                except SafeError as exc:
                    raise ProviderError(f"failed to get GitHub GraphQL client: {exc.message}") from exc
            return self._gql

    async def get_raw_client(self) -> RawContentClient:
        """Return the raw content client."""
        async with self._lock:
            if self._raw is None:
                try:
                    self._raw = RawContentClient(
                        token_provider=self._token,
                        limits=self._config.limits,
                        raw_base_url=self._config.host.raw_base_url,
                        transport=self._transport,
                    )
                except SafeError as exc:
                    raise ProviderError(f"failed to get GitHub raw content client: {exc.message}") from exc
            return self._raw

    async def aclose(self) -> None:
        """Release pooled connections held by the raw content client."""
        if self._raw is not None:
            await self._raw.aclose()
