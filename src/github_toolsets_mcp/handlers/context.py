"""Context toolset: who the server is acting as."""

from __future__ import annotations

from typing import Any

from ..errors import SafeError
from ..runtime import Runtime
from ..toolsets import Tool, ToolAnnotations
from ..translations import TranslationHelper
from . import object_schema


async def _tool_get_me(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    client = await runtime.providers.get_client()
    data = await client.request_json(method="GET", path="/user", budget=runtime.budget())
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected user response")
    return {"user": data}


def read_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="get_me",
            description=t(
                "TOOL_GET_ME_DESCRIPTION",
                "Get details of the authenticated GitHub user. Use this when a request includes \"me\", \"my\".",
            ),
            input_schema=object_schema({}),
            handler=_tool_get_me,
            annotations=ToolAnnotations(title=t("TOOL_GET_ME_USER_TITLE", "Get my user profile"), read_only_hint=True),
        ),
    ]


def write_tools(t: TranslationHelper) -> list[Tool]:
    return []
