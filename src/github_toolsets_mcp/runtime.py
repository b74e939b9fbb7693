"""Per-server runtime dependencies shared across tool calls."""

from __future__ import annotations

from dataclasses import dataclass

from .audit import AuditLogger
from .config import AppConfig
from .github_client import RequestBudget
from .providers import ClientProvider
from .toolsets import ToolsetGroup
from .translations import TranslationHelper


@dataclass(frozen=True, slots=True)
class Runtime:
    """Everything a tool or resource handler may reach."""

    config: AppConfig
    audit: AuditLogger
    providers: ClientProvider
    group: ToolsetGroup
    translate: TranslationHelper

    def budget(self) -> RequestBudget:
        """Request budget for one outbound call."""
        return RequestBudget(total_timeout_s=self.config.limits.total_timeout_s)
