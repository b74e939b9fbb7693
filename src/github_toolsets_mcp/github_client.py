"""GitHub REST client wrapper.

Provides:
- https-only base URL and no-redirect behavior
- bounded retries with backoff
- finite timeouts
- safe error translation
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import httpx

from .config import LimitsConfig
from .errors import SafeError, github_auth_forbidden


@dataclass(frozen=True, slots=True)
class RequestBudget:
    """Budget for a single tool call."""

    total_timeout_s: float


def error_hint_from_response(resp: httpx.Response) -> str | None:
    """Extract GitHub's `message` field from an error payload, if any."""
    try:
        err_payload = resp.json()
    except Exception:  # pylint: disable=broad-exception-caught
        return None
    if isinstance(err_payload, dict) and isinstance(err_payload.get("message"), str):
        return err_payload.get("message")
    return None


class GitHubClient:
    """Minimal GitHub REST client."""

    def __init__(
        self,
        *,
        token_provider,
        limits: LimitsConfig,
        api_base_url: str = "https://api.github.com",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a GitHub REST client.

        Args:
            token_provider: Async callable that returns an access token.
            limits: Timeouts/retry limits.
            api_base_url: REST API root; must be https.
            transport: Optional httpx transport for tests.
        """
        self._token_provider = token_provider
        self._limits = limits
        self._api_base_url = api_base_url.rstrip("/")
        self._transport = transport

        if not self._api_base_url.startswith("https://"):
            raise SafeError(code="Config", message="Only https GitHub API endpoints are allowed")

    def _headers(self, token: str, accept: str | None = None) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": accept or "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _timeout(self, budget: RequestBudget) -> httpx.Timeout:
        return httpx.Timeout(
            timeout=min(budget.total_timeout_s, self._limits.total_timeout_s),
            connect=self._limits.connect_timeout_s,
            read=self._limits.read_timeout_s,
        )

    def _compute_backoff_s(self, attempt_index: int) -> float:
        # attempt_index: 1 for first retry, 2 for second retry...
        base = min(self._limits.max_backoff_s, 0.5 * (2 ** (attempt_index - 1)))
        jitter = min(0.05, 0.01 * attempt_index)
        return min(self._limits.max_backoff_s, base + jitter)

    def _should_retry(self, attempt: int, *, status_code: int | None = None, exc: Exception | None = None) -> bool:
        if attempt >= self._limits.max_attempts:
            return False
        if exc is not None:
            return isinstance(exc, (httpx.TimeoutException, httpx.TransportError))
        return status_code == 429 or (status_code is not None and 500 <= status_code <= 599)

    async def request(
        self,
        *,
        method: str,
        path: str,
        json_body: dict | None = None,
        params: dict[str, str] | None = None,
        accept: str | None = None,
        budget: RequestBudget,
    ) -> httpx.Response:
        """Send a request and return the (fully read) response.

        Status codes >= 400 are translated into SafeError. Redirects are returned,
        not followed.
        """
        url = f"{self._api_base_url}{path}"
        token = await self._token_provider()

        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=self._timeout(budget),
            transport=self._transport,
        ) as client:
            for attempt in range(1, self._limits.max_attempts + 1):
                try:
                    resp = await client.request(
                        method,
                        url,
                        headers=self._headers(token, accept),
                        json=json_body,
                        params=params,
                    )
                except httpx.HTTPError as exc:
                    if self._should_retry(attempt, exc=exc):
                        await asyncio.sleep(self._compute_backoff_s(attempt))
                        continue
                    raise SafeError(code="Network", message="Network request failed") from exc

                if resp.status_code < 400:
                    return resp
                if resp.status_code in (401, 403):
                    raise github_auth_forbidden(status_code=resp.status_code)
                if self._should_retry(attempt, status_code=resp.status_code):
                    await asyncio.sleep(self._compute_backoff_s(attempt))
                    continue
                raise SafeError(
                    code="GitHub",
                    message="GitHub request failed",
                    hint=error_hint_from_response(resp),
                    status_code=resp.status_code,
                )

        raise SafeError(code="Config", message="max_attempts must be at least 1")

    async def request_json(
        self,
        *,
        method: str,
        path: str,
        json_body: dict | None = None,
        params: dict[str, str] | None = None,
        budget: RequestBudget,
    ) -> Any:
        """Make a request and return decoded JSON.

        GitHub APIs may return either an object (dict) or an array (list). Empty
        bodies (204 No Content) decode to None.
        """
        resp = await self.request(method=method, path=path, json_body=json_body, params=params, budget=budget)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except json.JSONDecodeError as exc:
            raise SafeError(code="GitHub", message="GitHub returned invalid JSON") from exc

    async def request_status(
        self,
        *,
        method: str,
        path: str,
        json_body: dict | None = None,
        budget: RequestBudget,
    ) -> tuple[int, str]:
        """Make a request whose only result is its status (e.g. 202/204 actions endpoints)."""
        resp = await self.request(method=method, path=path, json_body=json_body, budget=budget)
        return resp.status_code, f"{resp.status_code} {resp.reason_phrase}".strip()

    async def request_text(self, *, path: str, accept: str, budget: RequestBudget) -> str:
        """GET a media type GitHub serves as plain text (diffs, patches)."""
        resp = await self.request(method="GET", path=path, accept=accept, budget=budget)
        return resp.text

    async def request_redirect_location(self, *, path: str, budget: RequestBudget) -> str:
        """GET an endpoint that answers with a redirect and return its Location.

        Used for log and artifact archives, whose download URLs are short-lived.
        """
        resp = await self.request(method="GET", path=path, budget=budget)
        location = resp.headers.get("Location")
        if resp.status_code not in (301, 302, 303, 307, 308) or not location:
            raise SafeError(code="GitHub", message="GitHub did not return a download URL", status_code=resp.status_code)
        return location

    async def download_text(self, *, url: str, max_bytes: int, budget: RequestBudget) -> str:
        """Download a plain-text document from a pre-signed URL (no Authorization header)."""
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=self._timeout(budget),
            transport=self._transport,
        ) as client:
            try:
                resp = await client.get(url)
            except httpx.HTTPError as exc:
                raise SafeError(code="Network", message="failed to download logs") from exc

        if resp.status_code != 200:
            raise SafeError(
                code="GitHub",
                message=f"failed to download logs: HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        content = resp.content[:max_bytes]
        return content.decode("utf-8", errors="replace").strip()
