"""Toolsets: named groups of tools with read-only filtering and runtime enablement.

A ToolsetGroup owns every toolset of one server instance. Each tool carries an
OperationKind; whether it is exposed is decided by `is_exposed` from the owning
toolset's enabled flag, the group's read-only flag and the tool's kind. The same
function backs listing (`available_tools`) and dispatch (`resolve_tool`), so a tool
listed earlier is still re-checked when it is invoked.

Enabled flags can change at run time (dynamic toolsets), so every access to the
toolset map and flags goes through the group's lock.
"""

from __future__ import annotations

import dataclasses
import enum
import re
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable
from urllib.parse import unquote

from .errors import SafeError

if TYPE_CHECKING:
    from .runtime import Runtime

ALL_TOOLSETS = "all"


class OperationKind(str, enum.Enum):
    """Whether a tool only reads, or mutates, GitHub state."""

    READ = "read"
    WRITE = "write"


def is_exposed(enabled: bool, read_only: bool, kind: OperationKind) -> bool:
    """Return True if a tool of `kind` in a toolset with `enabled` is visible to callers."""
    if not enabled:
        return False
    return kind is OperationKind.READ or not read_only


class UnknownToolsetError(SafeError):
    """The toolset name is not registered in the group."""


class UnknownToolError(SafeError):
    """No toolset in the group registers a tool with this name."""


class ToolsetDisabledError(SafeError):
    """The tool exists but its toolset is not enabled."""


class ReadOnlyModeError(SafeError):
    """A write tool was requested while the group is read-only."""


class DuplicateToolsetError(ValueError):
    """A toolset with the same name is already registered."""


class DuplicateToolError(ValueError):
    """A tool with the same name is already registered in the group."""


ToolHandler = Callable[["Runtime", dict[str, Any]], Awaitable[dict[str, Any]]]
ResourceHandler = Callable[["Runtime", str, dict[str, str]], Awaitable[list[Any]]]


@dataclass(frozen=True, slots=True)
class ToolAnnotations:
    """Hints shown to the host about a tool's behavior."""

    title: str
    read_only_hint: bool | None = None
    destructive_hint: bool | None = None


@dataclass(frozen=True, slots=True)
class Tool:
    """A named, invokable operation."""

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler
    annotations: ToolAnnotations
    kind: OperationKind = OperationKind.READ


_TEMPLATE_VAR_RE = re.compile(r"\{(/?)([A-Za-z_][A-Za-z0-9_]*)(\*?)\}")


def compile_uri_template(template: str) -> re.Pattern[str]:
    """Compile the RFC 6570 subset used by resource templates into a regex.

    `{name}` matches one path segment; `{/name*}` matches an optional
    slash-prefixed remainder (the exploded path).
    """
    pattern = []
    pos = 0
    for m in _TEMPLATE_VAR_RE.finditer(template):
        pattern.append(re.escape(template[pos : m.start()]))
        slash, name, explode = m.groups()
        if slash and explode:
            pattern.append(f"(?:/(?P<{name}>.*))?")
        elif slash:
            pattern.append(f"(?:/(?P<{name}>[^/]*))?")
        else:
            pattern.append(f"(?P<{name}>[^/]+)")
        pos = m.end()
    pattern.append(re.escape(template[pos:]))
    return re.compile("^" + "".join(pattern) + "$")


@dataclass(frozen=True)
class ResourceTemplate:
    """A URI template bound to a handler that reads the addressed content."""

    uri_template: str
    name: str
    description: str
    handler: ResourceHandler
    _pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_pattern", compile_uri_template(self.uri_template))

    def match(self, uri: str) -> dict[str, str] | None:
        """Return the template variables for `uri`, or None if it does not match."""
        m = self._pattern.match(uri)
        if m is None:
            return None
        return {k: unquote(v) for k, v in m.groupdict().items() if v is not None}


@dataclass(frozen=True, slots=True)
class ToolsetInfo:
    """Point-in-time view of a toolset for discovery tools."""

    name: str
    description: str
    enabled: bool


class Toolset:
    """A named group of tools that is enabled or disabled as a unit.

    Once added to a ToolsetGroup, later registrations go through the group so
    tool names stay unique across it.
    """

    def __init__(self, name: str, description: str, *, enabled: bool = False) -> None:
        self.name = name
        self.description = description
        self.enabled = enabled
        self._tools: list[Tool] = []
        self._templates: list[ResourceTemplate] = []
        self._group: ToolsetGroup | None = None

    def _check_new_tools(self, tools: list[Tool]) -> None:
        names = {t.name for t in self._tools}
        for tool in tools:
            if tool.name in names:
                raise DuplicateToolError(f"tool {tool.name} is already registered in toolset {self.name}")
            names.add(tool.name)

    def _add_tools(self, kind: OperationKind, tools: Iterable[Tool]) -> Toolset:
        tagged = [dataclasses.replace(tool, kind=kind) for tool in tools]
        if self._group is not None:
            self._group._attach_tools(self, tagged)
        else:
            self._check_new_tools(tagged)
            self._tools.extend(tagged)
        return self

    def add_read_tools(self, *tools: Tool) -> Toolset:
        """Register read tools; always exposed while the toolset is enabled."""
        return self._add_tools(OperationKind.READ, tools)

    def add_write_tools(self, *tools: Tool) -> Toolset:
        """Register write tools.

        They are kept even for read-only groups; listing filters them out.
        """
        return self._add_tools(OperationKind.WRITE, tools)

    def add_resource_templates(self, *templates: ResourceTemplate) -> Toolset:
        """Register resource templates."""
        if self._group is not None:
            with self._group._lock:
                self._templates.extend(templates)
        else:
            self._templates.extend(templates)
        return self

    @property
    def tools(self) -> tuple[Tool, ...]:
        """All tools in registration order, regardless of kind."""
        return tuple(self._tools)

    @property
    def resource_templates(self) -> tuple[ResourceTemplate, ...]:
        """Resource templates in registration order."""
        return tuple(self._templates)

    def tools_for(self, read_only: bool) -> list[Tool]:
        """Tools this toolset exposes when enabled under the given read-only policy."""
        return [t for t in self._tools if is_exposed(True, read_only, t.kind)]


class ToolsetGroup:
    """All toolsets of a server instance plus the read-only policy."""

    def __init__(self, read_only: bool) -> None:
        self._read_only = read_only
        self._toolsets: dict[str, Toolset] = {}
        self._tool_owner: dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def read_only(self) -> bool:
        """Return whether write tools are hidden."""
        return self._read_only

    def add_toolset(self, toolset: Toolset) -> None:
        """Register a toolset.

        Raises:
            DuplicateToolsetError: A toolset with that name exists, or the toolset
                already belongs to a group.
            DuplicateToolError: One of its tools clashes with a tool already in the group.
        """
        with self._lock:
            if toolset.name in self._toolsets or toolset._group is not None:
                raise DuplicateToolsetError(f"toolset {toolset.name} is already registered")
            self._check_unclaimed(toolset.tools)
            self._toolsets[toolset.name] = toolset
            toolset._group = self
            for tool in toolset.tools:
                self._tool_owner[tool.name] = toolset.name

    def _check_unclaimed(self, tools: Iterable[Tool]) -> None:
        for tool in tools:
            owner = self._tool_owner.get(tool.name)
            if owner is not None:
                raise DuplicateToolError(f"tool {tool.name} is already registered by toolset {owner}")

    def _attach_tools(self, toolset: Toolset, tools: list[Tool]) -> None:
        """Add tools to a toolset that is already registered; all or nothing."""
        with self._lock:
            toolset._check_new_tools(tools)
            self._check_unclaimed(tools)
            toolset._tools.extend(tools)
            for tool in tools:
                self._tool_owner[tool.name] = toolset.name

    def toolset_names(self) -> list[str]:
        """Registered toolset names in registration order."""
        with self._lock:
            return list(self._toolsets)

    def has_toolset(self, name: str) -> bool:
        """Return True if the toolset is registered."""
        with self._lock:
            return name in self._toolsets

    def is_enabled(self, name: str) -> bool:
        """Return whether the named toolset is enabled (False for unknown names)."""
        with self._lock:
            ts = self._toolsets.get(name)
            return ts is not None and ts.enabled

    def enable_toolset(self, name: str) -> bool:
        """Enable a toolset by name.

        Returns True if the toolset was newly enabled, False if it already was.

        Raises:
            UnknownToolsetError: No toolset has that name; nothing changes.
        """
        with self._lock:
            ts = self._toolsets.get(name)
            if ts is None:
                raise UnknownToolsetError(
                    code="UserInput",
                    message=f"toolset {name} does not exist",
                    hint=f"Available toolsets: {', '.join(self._toolsets)}",
                )
            changed = not ts.enabled
            ts.enabled = True
            return changed

    def enable_toolsets(self, names: Iterable[str]) -> None:
        """Enable several toolsets; `all` enables every registered toolset."""
        names = list(names)
        if ALL_TOOLSETS in names:
            with self._lock:
                for ts in self._toolsets.values():
                    ts.enabled = True
            return
        for name in names:
            self.enable_toolset(name)

    def snapshot(self) -> list[ToolsetInfo]:
        """Name, description and enabled state of every toolset."""
        with self._lock:
            return [ToolsetInfo(ts.name, ts.description, ts.enabled) for ts in self._toolsets.values()]

    def toolset_tools(self, name: str) -> list[Tool]:
        """Tools a toolset would expose once enabled (write tools hidden when read-only)."""
        with self._lock:
            ts = self._toolsets.get(name)
            if ts is None:
                raise UnknownToolsetError(code="UserInput", message=f"toolset {name} does not exist")
            return ts.tools_for(self._read_only)

    def available_tools(self) -> list[Tool]:
        """Every exposed tool, in toolset then tool registration order."""
        with self._lock:
            return [
                tool
                for ts in self._toolsets.values()
                for tool in ts.tools
                if is_exposed(ts.enabled, self._read_only, tool.kind)
            ]

    def available_resource_templates(self) -> list[ResourceTemplate]:
        """Resource templates of enabled toolsets."""
        with self._lock:
            return [tpl for ts in self._toolsets.values() if ts.enabled for tpl in ts.resource_templates]

    def owning_toolset(self, tool_name: str) -> str | None:
        """Name of the toolset registering `tool_name`, if any."""
        with self._lock:
            return self._tool_owner.get(tool_name)

    def resolve_tool(self, name: str) -> Tool:
        """Return the tool if it is currently exposed.

        Dispatch calls this on every invocation.

        Raises:
            UnknownToolError, ToolsetDisabledError, ReadOnlyModeError
        """
        with self._lock:
            owner = self._tool_owner.get(name)
            if owner is None:
                raise UnknownToolError(code="UserInput", message=f"Unknown tool: {name}")
            ts = self._toolsets[owner]
            tool = next(t for t in ts.tools if t.name == name)
            if is_exposed(ts.enabled, self._read_only, tool.kind):
                return tool
            if not ts.enabled:
                raise ToolsetDisabledError(
                    code="Forbidden",
                    message=f"Tool {name} belongs to toolset {owner}, which is not enabled",
                    hint="Enable the toolset first",
                )
            raise ReadOnlyModeError(
                code="Forbidden",
                message=f"Tool {name} modifies GitHub state and the server is in read-only mode",
            )
