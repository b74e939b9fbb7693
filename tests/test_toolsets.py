"""Toolset group tests: registration, read-only filtering, enablement, resolution."""

from __future__ import annotations

import threading
from typing import Any

import pytest
from github_toolsets_mcp.toolsets import (
    DuplicateToolError,
    DuplicateToolsetError,
    OperationKind,
    ReadOnlyModeError,
    ResourceTemplate,
    Tool,
    ToolAnnotations,
    Toolset,
    ToolsetDisabledError,
    ToolsetGroup,
    UnknownToolError,
    UnknownToolsetError,
    compile_uri_template,
    is_exposed,
)


async def _noop(_runtime: Any, _arguments: dict[str, Any]) -> dict[str, Any]:
    return {}


def _tool(name: str) -> Tool:
    return Tool(
        name=name,
        description=f"{name} tool",
        input_schema={"type": "object", "properties": {}},
        handler=_noop,
        annotations=ToolAnnotations(title=name),
    )


def _group(read_only: bool = False) -> ToolsetGroup:
    group = ToolsetGroup(read_only)
    group.add_toolset(Toolset("repos", "Repos").add_read_tools(_tool("get_file")).add_write_tools(_tool("create_file")))
    group.add_toolset(Toolset("issues", "Issues").add_read_tools(_tool("get_issue")).add_write_tools(_tool("create_issue")))
    return group


@pytest.mark.parametrize(
    ("enabled", "read_only", "kind", "expected"),
    [
        (False, False, OperationKind.READ, False),
        (False, True, OperationKind.WRITE, False),
        (True, False, OperationKind.READ, True),
        (True, False, OperationKind.WRITE, True),
        (True, True, OperationKind.READ, True),
        (True, True, OperationKind.WRITE, False),
    ],
)
def test_is_exposed_truth_table(enabled: bool, read_only: bool, kind: OperationKind, expected: bool) -> None:
    assert is_exposed(enabled, read_only, kind) is expected


def test_toolset_tags_tools_with_their_kind() -> None:
    ts = Toolset("repos", "Repos").add_read_tools(_tool("a")).add_write_tools(_tool("b"))
    assert [(t.name, t.kind) for t in ts.tools] == [("a", OperationKind.READ), ("b", OperationKind.WRITE)]
    assert [t.name for t in ts.tools_for(read_only=True)] == ["a"]
    assert [t.name for t in ts.tools_for(read_only=False)] == ["a", "b"]


def test_toolset_rejects_duplicate_tool_names() -> None:
    ts = Toolset("repos", "Repos").add_read_tools(_tool("a"))
    with pytest.raises(DuplicateToolError):
        ts.add_write_tools(_tool("a"))


def test_group_rejects_duplicate_toolset_and_tool_names() -> None:
    group = _group()
    with pytest.raises(DuplicateToolsetError):
        group.add_toolset(Toolset("repos", "again"))
    with pytest.raises(DuplicateToolError):
        group.add_toolset(Toolset("other", "Other").add_read_tools(_tool("get_issue")))
    assert group.toolset_names() == ["repos", "issues"]


def test_toolsets_start_disabled_and_expose_nothing() -> None:
    group = _group()
    assert group.available_tools() == []
    assert [i.enabled for i in group.snapshot()] == [False, False]


def test_enable_toolset_exposes_read_and_write_tools_in_order() -> None:
    group = _group()
    assert group.enable_toolset("issues") is True
    assert [t.name for t in group.available_tools()] == ["get_issue", "create_issue"]

    group.enable_toolset("repos")
    # Registration order, not enable order.
    assert [t.name for t in group.available_tools()] == ["get_file", "create_file", "get_issue", "create_issue"]


def test_read_only_group_never_exposes_write_tools() -> None:
    group = _group(read_only=True)
    group.enable_toolsets(["all"])
    names = [t.name for t in group.available_tools()]
    assert names == ["get_file", "get_issue"]
    assert all(t.kind is OperationKind.READ for t in group.available_tools())


def test_enable_toolset_is_idempotent() -> None:
    group = _group()
    assert group.enable_toolset("repos") is True
    assert group.enable_toolset("repos") is False
    assert group.is_enabled("repos")


def test_enable_unknown_toolset_leaves_group_unchanged() -> None:
    group = _group()
    group.enable_toolset("repos")
    before = group.snapshot()

    with pytest.raises(UnknownToolsetError) as exc:
        group.enable_toolset("nope")

    assert exc.value.code == "UserInput"
    assert exc.value.message == "toolset nope does not exist"
    assert "repos" in (exc.value.hint or "")
    assert group.snapshot() == before


def test_enable_toolsets_all_enables_everything() -> None:
    group = _group()
    group.enable_toolsets(["all"])
    assert all(i.enabled for i in group.snapshot())


def test_resolve_tool_checks_exposure_on_every_call() -> None:
    group = _group(read_only=True)

    with pytest.raises(UnknownToolError):
        group.resolve_tool("missing")

    with pytest.raises(ToolsetDisabledError) as disabled:
        group.resolve_tool("get_file")
    assert disabled.value.code == "Forbidden"

    group.enable_toolset("repos")
    assert group.resolve_tool("get_file").name == "get_file"

    with pytest.raises(ReadOnlyModeError) as ro:
        group.resolve_tool("create_file")
    assert ro.value.code == "Forbidden"


def test_toolset_tools_hides_write_tools_when_read_only() -> None:
    group = _group(read_only=True)
    assert [t.name for t in group.toolset_tools("repos")] == ["get_file"]
    with pytest.raises(UnknownToolsetError):
        group.toolset_tools("nope")


def test_owning_toolset() -> None:
    group = _group()
    assert group.owning_toolset("create_issue") == "issues"
    assert group.owning_toolset("missing") is None


def test_resource_templates_follow_enabled_flag() -> None:
    async def handler(_runtime: Any, _uri: str, _vars: dict[str, str]) -> list[Any]:
        return []

    tpl = ResourceTemplate(uri_template="repo://{owner}/{repo}/contents{/path*}", name="c", description="d", handler=handler)
    group = ToolsetGroup(read_only=False)
    group.add_toolset(Toolset("repos", "Repos").add_resource_templates(tpl))

    assert group.available_resource_templates() == []
    group.enable_toolset("repos")
    assert group.available_resource_templates() == [tpl]


def test_uri_template_matching() -> None:
    async def handler(_runtime: Any, _uri: str, _vars: dict[str, str]) -> list[Any]:
        return []

    tpl = ResourceTemplate(
        uri_template="repo://{owner}/{repo}/refs/heads/{branch}/contents{/path*}",
        name="branch",
        description="d",
        handler=handler,
    )
    assert tpl.match("repo://octo/hello/refs/heads/main/contents/docs/a%20b.md") == {
        "owner": "octo",
        "repo": "hello",
        "branch": "main",
        "path": "docs/a b.md",
    }
    assert tpl.match("repo://octo/hello/refs/heads/main/contents") == {"owner": "octo", "repo": "hello", "branch": "main"}
    assert tpl.match("repo://octo/hello/contents/README.md") is None
    assert compile_uri_template("x://{a}").match("x://b/c") is None


def test_concurrent_enable_and_listing_is_consistent() -> None:
    group = ToolsetGroup(read_only=False)
    for i in range(20):
        group.add_toolset(Toolset(f"ts{i}", "t").add_read_tools(_tool(f"tool{i}")))

    errors: list[BaseException] = []

    def enable(i: int) -> None:
        try:
            group.enable_toolset(f"ts{i}")
        except BaseException as exc:  # pragma: no cover
            errors.append(exc)

    def listing() -> None:
        try:
            for _ in range(50):
                names = [t.name for t in group.available_tools()]
                assert len(names) == len(set(names))
        except BaseException as exc:  # pragma: no cover
            errors.append(exc)

    threads = [threading.Thread(target=enable, args=(i,)) for i in range(20)]
    threads += [threading.Thread(target=listing) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(group.available_tools()) == 20


def test_tools_added_after_registration_are_resolvable() -> None:
    group = ToolsetGroup(read_only=False)
    ts = Toolset("late", "Late")
    group.add_toolset(ts)
    group.enable_toolset("late")

    ts.add_read_tools(_tool("late_tool"))

    assert [t.name for t in group.available_tools()] == ["late_tool"]
    assert group.resolve_tool("late_tool").name == "late_tool"
    assert group.owning_toolset("late_tool") == "late"


def test_late_tool_cannot_reuse_a_name_from_another_toolset() -> None:
    group = ToolsetGroup(read_only=False)
    a = Toolset("a", "A").add_read_tools(_tool("x"))
    b = Toolset("b", "B")
    group.add_toolset(a)
    group.add_toolset(b)
    group.enable_toolsets(["all"])

    with pytest.raises(DuplicateToolError):
        b.add_write_tools(_tool("y"), _tool("x"))

    # Nothing from the rejected batch is registered.
    assert [t.name for t in group.available_tools()] == ["x"]
    assert group.owning_toolset("y") is None
    assert b.tools == ()


def test_toolset_belongs_to_one_group() -> None:
    ts = Toolset("repos", "Repos")
    ToolsetGroup(read_only=False).add_toolset(ts)
    with pytest.raises(DuplicateToolsetError):
        ToolsetGroup(read_only=False).add_toolset(ts)
