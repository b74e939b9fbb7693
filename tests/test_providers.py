"""Client provider tests."""

from __future__ import annotations

import httpx
import pytest
from github_toolsets_mcp.config import HostConfig
from github_toolsets_mcp.dispatch import dispatch_tool
from github_toolsets_mcp.errors import ProviderError
from github_toolsets_mcp.providers import ClientProvider
from support import make_config, mock_transport_runtime


@pytest.mark.asyncio
async def test_clients_are_built_once_and_reused() -> None:
    provider = ClientProvider(config=make_config())

    assert await provider.get_client() is await provider.get_client()
    assert await provider.get_gql_client() is await provider.get_gql_client()
    assert await provider.get_raw_client() is await provider.get_raw_client()
    await provider.aclose()


@pytest.mark.asyncio
async def test_invalid_endpoint_becomes_provider_error() -> None:
    config = make_config(host=HostConfig(api_base_url="http://insecure.example.com"))
    provider = ClientProvider(config=config)

    with pytest.raises(ProviderError) as exc:
        await provider.get_client()

    assert "failed to get GitHub client" in str(exc.value)


@pytest.mark.asyncio
async def test_missing_token_fails_the_call() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no request expected")

    runtime = mock_transport_runtime(handler, config=make_config(token=""))

    with pytest.raises(ProviderError):
        await dispatch_tool(runtime, "get_me", {})
