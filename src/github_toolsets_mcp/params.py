"""Type-checked accessors for tool call arguments.

Every accessor raises SafeError(code="UserInput") so a bad argument becomes a
tool-level failure rather than a transport fault.
"""

from __future__ import annotations

from typing import Any

from .errors import SafeError


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _as_int(key: str, v: Any) -> int:
    # JSON numbers may arrive as floats; accept them only when integral.
    if _is_int(v):
        return v
    if isinstance(v, float) and v.is_integer():
        return int(v)
    raise SafeError(code="UserInput", message=f"parameter {key} is not of type int")


def require_str(arguments: dict[str, Any], key: str) -> str:
    """Return a required, non-empty string argument."""
    if key not in arguments:
        raise SafeError(code="UserInput", message=f"missing required parameter: {key}")
    v = arguments[key]
    if not isinstance(v, str):
        raise SafeError(code="UserInput", message=f"parameter {key} is not of type string")
    if not v:
        raise SafeError(code="UserInput", message=f"missing required parameter: {key}")
    return v


def optional_str(arguments: dict[str, Any], key: str, default: str = "") -> str:
    """Return an optional string argument, or `default` when absent."""
    v = arguments.get(key)
    if v is None:
        return default
    if not isinstance(v, str):
        raise SafeError(code="UserInput", message=f"parameter {key} is not of type string")
    return v


def require_int(arguments: dict[str, Any], key: str) -> int:
    """Return a required integer argument."""
    if key not in arguments or arguments[key] is None:
        raise SafeError(code="UserInput", message=f"missing required parameter: {key}")
    return _as_int(key, arguments[key])


def optional_int(arguments: dict[str, Any], key: str, default: int = 0) -> int:
    """Return an optional integer argument, or `default` when absent."""
    v = arguments.get(key)
    if v is None:
        return default
    return _as_int(key, v)


def optional_bool(arguments: dict[str, Any], key: str, default: bool = False) -> bool:
    """Return an optional boolean argument, or `default` when absent."""
    v = arguments.get(key)
    if v is None:
        return default
    if not isinstance(v, bool):
        raise SafeError(code="UserInput", message=f"parameter {key} is not of type bool")
    return v


def optional_str_list(arguments: dict[str, Any], key: str) -> list[str] | None:
    """Return an optional list of strings, or None when absent."""
    v = arguments.get(key)
    if v is None:
        return None
    if not isinstance(v, list) or not all(isinstance(item, str) for item in v):
        raise SafeError(code="UserInput", message=f"parameter {key} is not of type []string")
    return v


def optional_object(arguments: dict[str, Any], key: str) -> dict[str, Any] | None:
    """Return an optional JSON object argument, or None when absent."""
    v = arguments.get(key)
    if v is None:
        return None
    if not isinstance(v, dict):
        raise SafeError(code="UserInput", message=f"parameter {key} is not of type object")
    return v


def pagination_params(arguments: dict[str, Any]) -> dict[str, str]:
    """Return GitHub list query params from optional `page` / `per_page` arguments."""
    page = optional_int(arguments, "page", 1)
    per_page = optional_int(arguments, "per_page", 30)
    if page < 1:
        raise SafeError(code="UserInput", message="parameter page must be >= 1")
    if not 1 <= per_page <= 100:
        raise SafeError(code="UserInput", message="parameter per_page must be between 1 and 100")
    return {"page": str(page), "per_page": str(per_page)}


PAGINATION_PROPERTIES: dict[str, Any] = {
    "page": {"type": "number", "minimum": 1, "description": "Page number for pagination (min 1)"},
    "per_page": {
        "type": "number",
        "minimum": 1,
        "maximum": 100,
        "description": "Results per page for pagination (min 1, max 100)",
    },
}
