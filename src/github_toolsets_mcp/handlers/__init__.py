"""Tool handlers, one module per toolset.

Each module exposes `read_tools(t)` and `write_tools(t)` returning Tool
definitions; the registry files them into toolsets.
"""

from __future__ import annotations

from typing import Any

from ..params import PAGINATION_PROPERTIES

OWNER_PROPERTY: dict[str, Any] = {"type": "string", "minLength": 1, "description": "Repository owner"}
REPO_PROPERTY: dict[str, Any] = {"type": "string", "minLength": 1, "description": "Repository name"}


def object_schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    """Build a closed JSON object schema."""
    return {
        "type": "object",
        "required": list(required or []),
        "properties": properties,
        "additionalProperties": False,
    }


def repo_schema(
    properties: dict[str, Any] | None = None,
    required: list[str] | None = None,
    *,
    paginated: bool = False,
) -> dict[str, Any]:
    """Schema for a repository-scoped tool; `owner` and `repo` are always required."""
    props: dict[str, Any] = {"owner": OWNER_PROPERTY, "repo": REPO_PROPERTY}
    props.update(properties or {})
    if paginated:
        props.update(PAGINATION_PROPERTIES)
    return object_schema(props, ["owner", "repo", *(required or [])])
