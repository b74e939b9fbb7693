"""User-facing string lookup.

Every tool description and title goes through a `translate(key, default)`
function so hosts can override wording without code changes.
"""

from __future__ import annotations

import os
from typing import Callable

TranslationHelper = Callable[[str, str], str]


def null_translation(_key: str, default: str) -> str:
    """Return the default text unchanged."""
    return default


def env_translation_helper(prefix: str = "GITHUB_MCP_") -> TranslationHelper:
    """Return a translate function that reads overrides from the environment.

    The key `TOOL_GET_ME_DESCRIPTION` is overridden by `GITHUB_MCP_TOOL_GET_ME_DESCRIPTION`.
    Lookups are cached per helper.
    """
    cache: dict[str, str] = {}

    def translate(key: str, default: str) -> str:
        normalized = key.upper()
        if normalized not in cache:
            cache[normalized] = os.getenv(f"{prefix}{normalized}", default)
        return cache[normalized]

    return translate
