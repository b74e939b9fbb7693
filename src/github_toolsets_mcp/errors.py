"""Error types shared by the clients, the toolset group and dispatch.

Two kinds of failure leave a tool call:

- `SafeError`: reported back to the caller inside the result envelope
  (`{"ok": false, "code": ..., "message": ...}`). Messages are stable and never
  carry the token or Authorization header.
- `ProviderError`: the server could not build a GitHub client at all. Dispatch
  audits it and lets it propagate so the call fails outright.

Codes in use: UserInput, Forbidden, NotFound, GitHub, Network, Config, Internal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SafeError(Exception):
    code: str
    message: str
    hint: str | None = None
    status_code: int | None = None

    def to_result(self) -> dict[str, Any]:
        out: dict[str, Any] = {"ok": False, "code": self.code, "message": self.message}
        if self.hint:
            out["hint"] = self.hint
        if self.status_code is not None:
            out["status_code"] = self.status_code
        return out


class ProviderError(Exception):
    """Client construction failed (missing token, bad endpoint configuration)."""


def github_auth_forbidden(*, status_code: int) -> SafeError:
    """GitHub answered 401/403 for this token."""
    return SafeError(
        code="Forbidden",
        message="GitHub token is not authorized for this repository or operation",
        hint="The token may be expired, revoked, or missing required scopes",
        status_code=status_code,
    )
