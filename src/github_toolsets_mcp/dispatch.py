"""Tool dispatch layer.

This module:
- re-checks on every call that the tool is exposed (toolset enabled, read-only policy)
- validates arguments against the tool's declared input schema
- creates a correlation_id per call and writes exactly one audit event
- turns SafeError into the standard error envelope
"""

from __future__ import annotations

import logging
from typing import Any

from .audit import AuditEvent, new_correlation_id
from .errors import SafeError
from .runtime import Runtime
from .toolsets import OperationKind, Tool, UnknownToolError

logger = logging.getLogger(__name__)

_DENIED_CODES = frozenset({"UserInput", "Forbidden"})


def _type_ok(expected: str, v: Any) -> bool:
    if expected == "string":
        return isinstance(v, str)
    if expected == "integer":
        return isinstance(v, int) and not isinstance(v, bool)
    if expected == "number":
        return isinstance(v, (int, float)) and not isinstance(v, bool)
    if expected == "boolean":
        return isinstance(v, bool)
    if expected == "array":
        return isinstance(v, list)
    if expected == "object":
        return isinstance(v, dict)
    return True


def validate_tool_arguments(tool: Tool, arguments: dict[str, Any]) -> None:
    """Validate tool arguments against the tool's declared input schema.

    This is intentionally a minimal validator that enforces:
    - required fields
    - basic JSON types (string/integer/number/boolean/array/object)
    - enum membership

    It does NOT implement full JSON Schema.
    """
    schema = tool.input_schema
    props: dict[str, Any] = schema.get("properties", {})
    required: list[str] = schema.get("required", [])

    for k in required:
        if k not in arguments or arguments[k] is None:
            raise SafeError(code="UserInput", message=f"missing required parameter: {k}")

    if schema.get("additionalProperties") is False:
        extras = sorted(k for k in arguments if k not in props)
        if extras:
            raise SafeError(code="UserInput", message=f"unexpected parameters: {', '.join(extras)}")

    for k, prop in props.items():
        if k not in arguments or arguments[k] is None:
            continue
        v = arguments[k]
        expected = prop.get("type")
        if isinstance(expected, str) and not _type_ok(expected, v):
            raise SafeError(code="UserInput", message=f"parameter {k} is not of type {expected}")
        allowed = prop.get("enum")
        if isinstance(allowed, list) and v not in allowed:
            raise SafeError(code="UserInput", message=f"parameter {k} must be one of: {', '.join(map(str, allowed))}")


def _target_repo_from_args(arguments: dict[str, Any]) -> str:
    owner = arguments.get("owner")
    repo = arguments.get("repo")
    if isinstance(owner, str) and isinstance(repo, str) and owner and repo:
        return f"{owner}/{repo}"
    return "<none>"


async def dispatch_tool(runtime: Runtime, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Dispatch a tool call.

    SafeErrors come back as an error envelope; anything else (e.g. ProviderError)
    is audited and re-raised for the server to report as a failed call.
    """
    correlation_id = new_correlation_id()
    repo = _target_repo_from_args(arguments)
    toolset = runtime.group.owning_toolset(name)
    kind: OperationKind | None = None
    start = runtime.audit.start_timer()

    def audit(outcome: str, reason: str | None) -> None:
        runtime.audit.write_event(
            AuditEvent(
                correlation_id=correlation_id,
                tool=name,
                repo=repo,
                outcome=outcome,
                toolset=toolset,
                kind=kind.value if kind is not None else None,
                reason=reason,
                duration_ms=runtime.audit.elapsed_ms(start),
            )
        )

    try:
        try:
            tool = runtime.group.resolve_tool(name)
        except UnknownToolError as err:
            available = ", ".join(t.name for t in runtime.group.available_tools())
            raise UnknownToolError(code=err.code, message=err.message, hint=f"Available tools: {available}") from err
        kind = tool.kind
        validate_tool_arguments(tool, arguments)
        result = await tool.handler(runtime, arguments)

        audit("succeeded", None)
        out: dict[str, Any] = {"ok": True, "correlation_id": correlation_id}
        out.update(result)
        return out

    except SafeError as err:
        audit("denied" if err.code in _DENIED_CODES else "failed", err.message)
        result = err.to_result()
        result["correlation_id"] = correlation_id
        return result
    except Exception as exc:
        logger.error("Tool %s failed: %s", name, type(exc).__name__)
        audit("failed", type(exc).__name__)
        raise
