"""MCP server wiring for github-toolsets-mcp.

One server instance owns one Runtime (and so one toolset group). Listing,
dispatch and resource reads all go through that group, so enabling a toolset
is visible on the next request.
"""

from __future__ import annotations

import base64
import dataclasses
import json
import logging
import sys
from typing import Any, Awaitable, Callable

try:
    from mcp import types
    from mcp.server.lowlevel import NotificationOptions, Server
    from mcp.server.lowlevel.helper_types import ReadResourceContents
    from mcp.shared.exceptions import McpError
except ImportError as exc:  # pragma: no cover
    raise ImportError("MCP library not installed. Install with: pip install mcp") from exc

from . import __version__
from .config import AppConfig, load_config_from_env
from .dispatch import dispatch_tool
from .dynamic import DYNAMIC_TOOLSET
from .errors import SafeError
from .registry import build_runtime, default_toolset_group
from .repository_resource import ResourceContent
from .runtime import Runtime
from .toolsets import ALL_TOOLSETS, ResourceTemplate, Tool
from .translations import null_translation

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

SERVER_NAME = "github-toolsets-mcp"

ToolsChangedCallback = Callable[[], Awaitable[None]]

# MCP reserves -32002 for "resource not found".
RESOURCE_NOT_FOUND = -32002


def to_mcp_tool(tool: Tool) -> types.Tool:
    """Convert a registered tool into its MCP wire form."""
    return types.Tool(
        name=tool.name,
        description=tool.description,
        inputSchema=tool.input_schema,
        annotations=types.ToolAnnotations(
            title=tool.annotations.title,
            readOnlyHint=tool.annotations.read_only_hint,
            destructiveHint=tool.annotations.destructive_hint,
        ),
    )


def to_mcp_resource_template(template: ResourceTemplate) -> types.ResourceTemplate:
    """Convert a registered resource template into its MCP wire form."""
    return types.ResourceTemplate(
        uriTemplate=template.uri_template,
        name=template.name,
        description=template.description,
    )


def to_read_resource_contents(content: ResourceContent) -> ReadResourceContents:
    """Text stays text; blobs go back to raw bytes for the SDK to re-encode."""
    if content.text is not None:
        return ReadResourceContents(content=content.text, mime_type=content.mime_type or None)
    return ReadResourceContents(content=base64.b64decode(content.blob or ""), mime_type=content.mime_type or None)


async def list_tools(runtime: Runtime) -> list[types.Tool]:
    """List the tools currently exposed by the toolset group."""
    tools = [to_mcp_tool(t) for t in runtime.group.available_tools()]
    logger.info("Listed %s tools", len(tools))
    return tools


async def call_tool(
    runtime: Runtime,
    name: str,
    arguments: dict[str, Any] | None,
    on_tools_changed: ToolsChangedCallback | None = None,
) -> list[types.TextContent]:
    """Dispatch a tool call and serialize the envelope as TextContent.

    Exceptions other than SafeError propagate; the SDK reports them as a
    failed call.
    """
    if not isinstance(arguments, dict):
        arguments = {}

    logger.info("Tool called: %s", name)
    result = await dispatch_tool(runtime, name, arguments)

    if (
        name == "enable_toolset"
        and result.get("ok")
        and result.get("already_enabled") is False
        and on_tools_changed is not None
    ):
        await on_tools_changed()

    return [types.TextContent(type="text", text=json.dumps(result, indent=2, default=str))]


async def list_resource_templates(runtime: Runtime) -> list[types.ResourceTemplate]:
    """List resource templates of enabled toolsets."""
    return [to_mcp_resource_template(t) for t in runtime.group.available_resource_templates()]


def _mcp_error(err: SafeError, uri: str) -> McpError:
    if err.code == "NotFound":
        return McpError(types.ErrorData(code=RESOURCE_NOT_FOUND, message=err.message, data={"uri": uri}))
    code = types.INVALID_PARAMS if err.code == "UserInput" else types.INTERNAL_ERROR
    return McpError(types.ErrorData(code=code, message=err.message))


async def read_resource(runtime: Runtime, uri: str) -> list[ReadResourceContents]:
    """Read a resource by URI through the first matching template.

    Raises:
        McpError: Unknown URI, or the handler failed with a SafeError.
    """
    for template in runtime.group.available_resource_templates():
        variables = template.match(uri)
        if variables is None:
            continue
        logger.info("Resource read: %s", template.name)
        try:
            contents = await template.handler(runtime, uri, variables)
        except SafeError as err:
            logger.warning("Resource %s failed: %s", template.name, err.message)
            raise _mcp_error(err, uri) from err
        return [to_read_resource_contents(c) for c in contents]

    raise McpError(types.ErrorData(code=RESOURCE_NOT_FOUND, message=f"Unknown resource: {uri}", data={"uri": uri}))


def create_server(runtime: Runtime) -> Server:
    """Build an MCP server bound to `runtime`."""
    server: Server = Server(SERVER_NAME, version=__version__)

    async def notify_tools_changed() -> None:
        await server.request_context.session.send_tool_list_changed()

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return await list_tools(runtime)

    @server.call_tool()
    async def _call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        return await call_tool(runtime, name, arguments, notify_tools_changed)

    @server.list_resource_templates()
    async def _list_resource_templates() -> list[types.ResourceTemplate]:
        return await list_resource_templates(runtime)

    @server.read_resource()
    async def _read_resource(uri: Any) -> list[ReadResourceContents]:
        return await read_resource(runtime, str(uri))

    return server


def apply_cli_overrides(
    config: AppConfig,
    *,
    toolsets: tuple[str, ...] | None = None,
    read_only: bool = False,
    dynamic_toolsets: bool = False,
) -> AppConfig:
    """Layer CLI flags over environment configuration; flags only ever switch things on."""
    ts = config.toolsets
    ts = dataclasses.replace(
        ts,
        enabled_toolsets=toolsets if toolsets is not None else ts.enabled_toolsets,
        read_only=ts.read_only or read_only,
        dynamic_toolsets=ts.dynamic_toolsets or dynamic_toolsets,
    )
    return dataclasses.replace(config, toolsets=ts)


async def run_server(
    *,
    toolsets: tuple[str, ...] | None = None,
    read_only: bool = False,
    dynamic_toolsets: bool = False,
) -> None:
    """Run the server over stdio."""
    # Fail fast on invalid/missing host configuration.
    try:
        config = apply_cli_overrides(
            load_config_from_env(),
            toolsets=toolsets,
            read_only=read_only,
            dynamic_toolsets=dynamic_toolsets,
        )
        runtime = build_runtime(config)
    except SafeError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    from mcp.server.stdio import stdio_server

    server = create_server(runtime)
    options = server.create_initialization_options(
        notification_options=NotificationOptions(tools_changed=config.toolsets.dynamic_toolsets),
    )
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, options)
    finally:
        await runtime.providers.aclose()


async def test_server() -> None:
    """Lightweight self-test: build every toolset and convert it to MCP types."""
    group = default_toolset_group(False, null_translation)
    group.enable_toolsets([ALL_TOOLSETS])
    tools = [to_mcp_tool(t) for t in group.available_tools()]
    templates = [to_mcp_resource_template(t) for t in group.available_resource_templates()]
    toolsets = [info.name for info in group.snapshot() if info.name != DYNAMIC_TOOLSET]
    print(
        f"{SERVER_NAME} {__version__}: {len(toolsets)} toolsets, {len(tools)} tools, {len(templates)} resource templates",
        file=sys.stderr,
    )
