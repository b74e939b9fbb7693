"""Shared test doubles.

Handler tests use in-memory GitHub clients; wire tests use the real clients on
top of `httpx.MockTransport`. Nothing here touches the network.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
from github_toolsets_mcp.audit import AuditEvent
from github_toolsets_mcp.config import AppConfig, HostConfig, LimitsConfig, ToolsetConfig
from github_toolsets_mcp.github_graphql_client import GraphQLResult
from github_toolsets_mcp.providers import ClientProvider
from github_toolsets_mcp.registry import build_group
from github_toolsets_mcp.runtime import Runtime
from github_toolsets_mcp.translations import null_translation


def make_config(
    *,
    toolsets: tuple[str, ...] = ("all",),
    read_only: bool = False,
    dynamic: bool = False,
    host: HostConfig | None = None,
    limits: LimitsConfig | None = None,
    token: str = "tok",
) -> AppConfig:
    return AppConfig(
        token=token,
        host=host or HostConfig(),
        toolsets=ToolsetConfig(enabled_toolsets=toolsets, read_only=read_only, dynamic_toolsets=dynamic),
        audit_log_path=None,
        audit_max_bytes=1024,
        audit_max_backups=1,
        limits=limits or LimitsConfig(max_attempts=1, max_backoff_s=0.0),
    )


@dataclass
class DummyAudit:
    events: list[AuditEvent] = field(default_factory=list)

    def write_event(self, event: AuditEvent) -> None:
        self.events.append(event)

    def start_timer(self) -> float:
        return time.monotonic()

    def elapsed_ms(self, start: float) -> int:
        return int((time.monotonic() - start) * 1000)


class DummyGitHub:
    """REST client stub keyed by (method, path).

    A route value that is an Exception is raised. For `request_status` the value
    is a (status_code, status) tuple; for `request_redirect_location` it is the URL.
    """

    def __init__(
        self,
        routes: dict[tuple[str, str], object | Exception] | None = None,
        downloads: dict[str, str | Exception] | None = None,
    ) -> None:
        self._routes = routes or {}
        self._downloads = downloads or {}
        self.calls: list[dict[str, Any]] = []

    def _route(self, method: str, path: str) -> object:
        key = (method, path)
        if key not in self._routes:
            raise AssertionError(f"Unexpected GitHub call: {key}")
        val = self._routes[key]
        if isinstance(val, Exception):
            raise val
        return val

    async def request_json(self, **kwargs: Any) -> object:
        self.calls.append(dict(kwargs))
        return self._route(str(kwargs.get("method")), str(kwargs.get("path")))

    async def request_status(self, **kwargs: Any) -> tuple[int, str]:
        self.calls.append(dict(kwargs))
        val = self._route(str(kwargs.get("method")), str(kwargs.get("path")))
        assert isinstance(val, tuple)
        return val

    async def request_text(self, **kwargs: Any) -> str:
        self.calls.append({"method": "GET", **kwargs})
        val = self._route("GET", str(kwargs.get("path")))
        assert isinstance(val, str)
        return val

    async def request_redirect_location(self, **kwargs: Any) -> str:
        self.calls.append({"method": "GET", **kwargs})
        val = self._route("GET", str(kwargs.get("path")))
        assert isinstance(val, str)
        return val

    async def download_text(self, **kwargs: Any) -> str:
        self.calls.append({"method": "DOWNLOAD", **kwargs})
        val = self._downloads[str(kwargs.get("url"))]
        if isinstance(val, Exception):
            raise val
        return val


class DummyGraphQL:
    def __init__(self, results: list[GraphQLResult | Exception]) -> None:
        self._results = list(results)
        self.calls: list[dict[str, Any]] = []

    async def execute(self, **kwargs: Any) -> GraphQLResult:
        self.calls.append(dict(kwargs))
        if not self._results:
            raise AssertionError("Unexpected GraphQL call")
        val = self._results.pop(0)
        if isinstance(val, Exception):
            raise val
        return val


class DummyProviders:
    def __init__(self, *, github: Any = None, graphql: Any = None, raw: Any = None) -> None:
        self.github = github
        self.graphql = graphql
        self.raw = raw

    async def get_client(self) -> Any:
        if self.github is None:
            raise AssertionError("REST client not expected")
        return self.github

    async def get_gql_client(self) -> Any:
        if self.graphql is None:
            raise AssertionError("GraphQL client not expected")
        return self.graphql

    async def get_raw_client(self) -> Any:
        if self.raw is None:
            raise AssertionError("raw client not expected")
        return self.raw

    async def aclose(self) -> None:
        return None


def make_runtime(
    *,
    github: Any = None,
    graphql: Any = None,
    providers: Any = None,
    config: AppConfig | None = None,
    audit: DummyAudit | None = None,
) -> Runtime:
    """Runtime over stub clients with every toolset enabled unless `config` says otherwise."""
    config = config or make_config()
    return Runtime(
        config=config,
        audit=audit or DummyAudit(),
        providers=providers or DummyProviders(github=github, graphql=graphql),
        group=build_group(config, null_translation),
        translate=null_translation,
    )


def mock_transport_runtime(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    config: AppConfig | None = None,
    audit: DummyAudit | None = None,
) -> Runtime:
    """Runtime over the real clients, with every request answered by `handler`."""
    config = config or make_config()
    return Runtime(
        config=config,
        audit=audit or DummyAudit(),
        providers=ClientProvider(config=config, transport=httpx.MockTransport(handler)),
        group=build_group(config, null_translation),
        translate=null_translation,
    )
