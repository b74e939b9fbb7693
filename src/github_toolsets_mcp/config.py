"""Configuration loading for github-toolsets-mcp.

Configuration is supplied by the host environment (e.g., MCP client config), not by the agent.
The access token is a secret and must never be emitted to agents, logs, or audit reasons.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from .errors import SafeError

DEFAULT_TOOLSETS: tuple[str, ...] = ("all",)


@dataclass(frozen=True, slots=True)
class HostConfig:
    """Base URLs for the REST, GraphQL and raw content endpoints."""

    api_base_url: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"
    raw_base_url: str = "https://raw.githubusercontent.com/"


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Non-functional safety limits."""

    # Network
    total_timeout_s: float = 60.0
    connect_timeout_s: float = 5.0
    read_timeout_s: float = 30.0

    # Retries
    max_attempts: int = 3
    max_backoff_s: float = 5.0

    # Payload limits
    log_content_max_bytes: int = 1024 * 1024


@dataclass(frozen=True, slots=True)
class ToolsetConfig:
    """Which toolsets start enabled and how the group is policed."""

    enabled_toolsets: tuple[str, ...] = DEFAULT_TOOLSETS
    read_only: bool = False
    dynamic_toolsets: bool = False


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server configuration."""

    token: str
    host: HostConfig
    toolsets: ToolsetConfig
    audit_log_path: Path | None
    audit_max_bytes: int
    audit_max_backups: int
    limits: LimitsConfig


def _parse_bool(value: str | None) -> bool:
    if value is None:
        return False
    normalized = value.strip().lower()
    return normalized in {"1", "true", "yes", "on"}


def parse_toolsets(value: str | None) -> tuple[str, ...]:
    """Split a comma separated toolset list, dropping blanks."""
    if not value:
        return ()
    parts = [p.strip() for p in value.split(",")]
    return tuple(p for p in parts if p)


def host_config_for(host: str | None) -> HostConfig:
    """Derive endpoint base URLs from GITHUB_HOST.

    github.com (or no host) uses the public endpoints. Any other https host is
    treated as GitHub Enterprise Server.
    """
    if not host:
        return HostConfig()

    parsed = urlparse(host if "://" in host else f"https://{host}")
    if parsed.scheme != "https" or not parsed.hostname:
        raise SafeError(code="Config", message="GITHUB_HOST must be an https URL")

    hostname = parsed.hostname.lower()
    if hostname in {"github.com", "www.github.com"}:
        return HostConfig()

    base = f"https://{parsed.netloc}"
    return HostConfig(
        api_base_url=f"{base}/api/v3",
        graphql_url=f"{base}/api/graphql",
        raw_base_url=f"{base}/raw/",
    )


def load_config_from_env() -> AppConfig:
    """Load and validate configuration from environment variables.

    Raises:
        SafeError: If configuration is missing/invalid.
    """
    token = os.getenv("GITHUB_PERSONAL_ACCESS_TOKEN")
    if not token or not token.strip():
        raise SafeError(
            code="Config",
            message="Missing required configuration (GITHUB_PERSONAL_ACCESS_TOKEN)",
        )

    host = host_config_for(os.getenv("GITHUB_HOST"))

    toolsets_raw = os.getenv("GITHUB_TOOLSETS")
    enabled = parse_toolsets(toolsets_raw) if toolsets_raw is not None else DEFAULT_TOOLSETS

    audit_path_raw = os.getenv("GITHUB_MCP_AUDIT_LOG_PATH")
    audit_path: Path | None = None
    if audit_path_raw:
        p = Path(audit_path_raw)
        if not p.is_absolute():
            raise SafeError(code="Config", message="GITHUB_MCP_AUDIT_LOG_PATH must be an absolute path when set")
        audit_path = p

    return AppConfig(
        token=token.strip(),
        host=host,
        toolsets=ToolsetConfig(
            enabled_toolsets=enabled,
            read_only=_parse_bool(os.getenv("GITHUB_READ_ONLY")),
            dynamic_toolsets=_parse_bool(os.getenv("GITHUB_DYNAMIC_TOOLSETS")),
        ),
        audit_log_path=audit_path,
        audit_max_bytes=5 * 1024 * 1024,
        audit_max_backups=2,
        limits=LimitsConfig(),
    )
