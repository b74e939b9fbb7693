"""GitHub REST client error-path coverage.

JSON decode failures, non-retryable statuses, auth failures and endpoint checks.
"""

from __future__ import annotations

import httpx
import pytest
from github_toolsets_mcp.config import LimitsConfig
from github_toolsets_mcp.errors import SafeError
from github_toolsets_mcp.github_client import GitHubClient, RequestBudget


SECRET_TOKEN = "ghp_secretvalue123"


async def token_provider() -> str:
    return SECRET_TOKEN


def _client(handler, **limits) -> GitHubClient:
    return GitHubClient(
        token_provider=token_provider,
        limits=LimitsConfig(**({"max_attempts": 1} | limits)),
        transport=httpx.MockTransport(handler),
    )


def test_github_client_rejects_plain_http_endpoint() -> None:
    with pytest.raises(SafeError) as exc:
        _ = GitHubClient(token_provider=token_provider, limits=LimitsConfig(), api_base_url="http://api.github.com")

    assert exc.value.code == "Config"


@pytest.mark.asyncio
async def test_github_client_raises_on_invalid_json() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not-json")

    with pytest.raises(SafeError) as exc:
        _ = await _client(handler).request_json(method="GET", path="/repos/octo/repo", budget=RequestBudget(total_timeout_s=1.0))

    assert exc.value.code == "GitHub"
    assert "invalid json" in exc.value.message.lower()


@pytest.mark.asyncio
async def test_github_client_non_retryable_404_provides_hint() -> None:
    calls = {"n": 0}

    def handler(_request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(404, json={"message": "Not Found"})

    with pytest.raises(SafeError) as exc:
        _ = await _client(handler, max_attempts=3, max_backoff_s=0.0).request_json(
            method="GET", path="/repos/octo/repo", budget=RequestBudget(total_timeout_s=1.0)
        )

    assert calls["n"] == 1
    assert exc.value.code == "GitHub"
    assert exc.value.status_code == 404
    assert exc.value.hint == "Not Found"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_github_client_maps_auth_failures_to_forbidden(status: int) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"message": "bad"})

    with pytest.raises(SafeError) as exc:
        _ = await _client(handler).request_json(method="GET", path="/repos/octo/repo", budget=RequestBudget(total_timeout_s=1.0))

    assert exc.value.code == "Forbidden"
    assert exc.value.status_code == status
    assert SECRET_TOKEN not in exc.value.message
    assert SECRET_TOKEN not in (exc.value.hint or "")


@pytest.mark.asyncio
async def test_github_client_wraps_network_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(SafeError) as exc:
        _ = await _client(handler).request_json(method="GET", path="/user", budget=RequestBudget(total_timeout_s=1.0))

    assert exc.value.code == "Network"


@pytest.mark.asyncio
async def test_request_redirect_location_requires_redirect() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    with pytest.raises(SafeError) as exc:
        _ = await _client(handler).request_redirect_location(path="/repos/o/r/actions/runs/1/logs", budget=RequestBudget(total_timeout_s=1.0))

    assert exc.value.code == "GitHub"
    assert exc.value.status_code == 200


@pytest.mark.asyncio
async def test_download_text_reports_http_status() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(410)

    with pytest.raises(SafeError) as exc:
        _ = await _client(handler).download_text(url="https://logs.example.com/x", max_bytes=10, budget=RequestBudget(total_timeout_s=1.0))

    assert exc.value.message == "failed to download logs: HTTP 410"
