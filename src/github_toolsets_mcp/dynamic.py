"""Dynamic toolset discovery.

These tools let an agent start with a small surface and switch toolsets on as
it needs them. They live in the always-enabled "dynamic" toolset, which is only
registered when dynamic toolsets are turned on.
"""

from __future__ import annotations

from typing import Any

from .params import require_str
from .runtime import Runtime
from .toolsets import Tool, ToolAnnotations, Toolset
from .translations import TranslationHelper

DYNAMIC_TOOLSET = "dynamic"

_TOOLSET_PROPERTY = {
    "type": "string",
    "minLength": 1,
    "description": "The name of the toolset",
}


async def _tool_list_available_toolsets(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    return {
        "toolsets": [
            {
                "name": info.name,
                "description": info.description,
                "can_enable": True,
                "currently_enabled": info.enabled,
            }
            for info in runtime.group.snapshot()
            if info.name != DYNAMIC_TOOLSET
        ]
    }


async def _tool_get_toolset_tools(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    name = require_str(arguments, "toolset")
    tools = runtime.group.toolset_tools(name)
    return {
        "toolset": name,
        "tools": [{"name": tool.name, "description": tool.description, "can_enable": True} for tool in tools],
    }


async def _tool_enable_toolset(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    name = require_str(arguments, "toolset")
    changed = runtime.group.enable_toolset(name)
    if not changed:
        return {"toolset": name, "already_enabled": True, "message": f"Toolset {name} is already enabled"}
    return {"toolset": name, "already_enabled": False, "message": f"Toolset {name} enabled"}


def dynamic_tools(t: TranslationHelper) -> list[Tool]:
    schema = {
        "type": "object",
        "required": ["toolset"],
        "properties": {"toolset": _TOOLSET_PROPERTY},
        "additionalProperties": False,
    }
    return [
        Tool(
            name="list_available_toolsets",
            description=t(
                "TOOL_LIST_AVAILABLE_TOOLSETS_DESCRIPTION",
                "List available toolsets this GitHub MCP server can offer, providing the enabled status of each. "
                "Use this when a task could be achieved with a GitHub tool and the currently available tools aren't enough.",
            ),
            input_schema={"type": "object", "properties": {}, "additionalProperties": False},
            handler=_tool_list_available_toolsets,
            annotations=ToolAnnotations(
                title=t("TOOL_LIST_AVAILABLE_TOOLSETS_USER_TITLE", "List available toolsets"), read_only_hint=True
            ),
        ),
        Tool(
            name="get_toolset_tools",
            description=t(
                "TOOL_GET_TOOLSET_TOOLS_DESCRIPTION",
                "Lists all the capabilities that are enabled with the specified toolset.",
            ),
            input_schema=schema,
            handler=_tool_get_toolset_tools,
            annotations=ToolAnnotations(
                title=t("TOOL_GET_TOOLSET_TOOLS_USER_TITLE", "List all tools in a toolset"), read_only_hint=True
            ),
        ),
        Tool(
            name="enable_toolset",
            description=t(
                "TOOL_ENABLE_TOOLSET_DESCRIPTION",
                "Enable one of the sets of tools the GitHub MCP server provides. "
                "Use get_toolset_tools and list_available_toolsets first to see what this will enable.",
            ),
            input_schema=schema,
            handler=_tool_enable_toolset,
            # Enabling only widens the tool list; it never touches GitHub.
            annotations=ToolAnnotations(title=t("TOOL_ENABLE_TOOLSET_USER_TITLE", "Enable a toolset"), read_only_hint=True),
        ),
    ]


def init_dynamic_toolset(t: TranslationHelper) -> Toolset:
    """Build the enabled "dynamic" toolset holding the discovery tools."""
    toolset = Toolset(
        DYNAMIC_TOOLSET,
        "Discover GitHub MCP tools that can help achieve tasks by enabling additional sets of tools, "
        "you can control the enablement of any toolset to access its tools when this toolset is enabled.",
        enabled=True,
    )
    return toolset.add_read_tools(*dynamic_tools(t))
