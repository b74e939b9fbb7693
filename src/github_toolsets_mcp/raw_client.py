"""Client for GitHub's raw file host.

Raw content is addressed as `<base>/<owner>/<repo>/<sha|ref|HEAD>/<path>`. The
client builds that URL and issues the GET; it never reads the body itself so
large files can be streamed by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from .config import LimitsConfig
from .errors import SafeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RawContentOpts:
    """Revision selector for a raw fetch.

    `ref` already carries its `refs/heads/` or `refs/tags/` prefix. When both are
    set `sha` wins; when neither is set the default branch (HEAD) is used.
    """

    ref: str = ""
    sha: str = ""


class RawContentClient:
    """Raw content client sharing one authenticated httpx.AsyncClient."""

    def __init__(
        self,
        *,
        token_provider,
        limits: LimitsConfig,
        raw_base_url: str = "https://raw.githubusercontent.com/",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._limits = limits
        self._base_url = raw_base_url.rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self._base_url.startswith("https://"):
            raise SafeError(code="Config", message="Only https raw content endpoints are allowed")

    def _join(self, *parts: str) -> str:
        segments = [quote(p.strip("/"), safe="/") for p in parts if p.strip("/")]
        return "/".join([self._base_url, *segments])

    def url_from_opts(self, opts: RawContentOpts | None, owner: str, repo: str, path: str) -> str:
        """Return the canonical raw URL for a file at the selected revision."""
        if opts is None:
            opts = RawContentOpts()
        if opts.sha:
            return self._join(owner, repo, opts.sha, path)
        if opts.ref:
            return self._join(owner, repo, opts.ref, path)
        return self._join(owner, repo, "HEAD", path)

    def _http_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=httpx.Timeout(
                    timeout=self._limits.total_timeout_s,
                    connect=self._limits.connect_timeout_s,
                    read=self._limits.read_timeout_s,
                ),
                transport=self._transport,
            )
        return self._client

    async def get_raw_content(
        self, owner: str, repo: str, path: str, opts: RawContentOpts | None = None
    ) -> httpx.Response:
        """GET the raw file and return the unread, streaming response.

        The caller must close it (`await resp.aclose()`).
        """
        url = self.url_from_opts(opts, owner, repo, path)
        token = await self._token_provider()
        client = self._http_client()
        request = client.build_request("GET", url, headers={"Authorization": f"Bearer {token}"})
        logger.debug("Fetching raw content for %s/%s", owner, repo)
        try:
            return await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise SafeError(code="Network", message="failed to get raw content") from exc

    async def aclose(self) -> None:
        """Close the shared HTTP client, if it was ever opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
