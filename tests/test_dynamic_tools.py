"""Dynamic toolset discovery tools."""

from __future__ import annotations

import pytest
from github_toolsets_mcp.dispatch import dispatch_tool
from support import DummyGitHub, make_config, make_runtime


def _dynamic_runtime(*, read_only: bool = False, github: DummyGitHub | None = None):
    return make_runtime(github=github, config=make_config(toolsets=(), dynamic=True, read_only=read_only))


@pytest.mark.asyncio
async def test_list_available_toolsets_excludes_dynamic() -> None:
    out = await dispatch_tool(_dynamic_runtime(), "list_available_toolsets", {})

    assert out["ok"] is True
    names = [ts["name"] for ts in out["toolsets"]]
    assert "dynamic" not in names
    assert names[0] == "context"
    context = next(ts for ts in out["toolsets"] if ts["name"] == "context")
    assert context == {
        "name": "context",
        "description": "Tools that provide context about the current user and GitHub context you are operating in",
        "can_enable": True,
        "currently_enabled": True,
    }


@pytest.mark.asyncio
async def test_get_toolset_tools_hides_write_tools_when_read_only() -> None:
    out = await dispatch_tool(_dynamic_runtime(read_only=True), "get_toolset_tools", {"toolset": "issues"})

    names = [t["name"] for t in out["tools"]]
    assert out["toolset"] == "issues"
    assert "get_issue" in names
    assert "create_issue" not in names
    assert all(t["can_enable"] is True for t in out["tools"])


@pytest.mark.asyncio
async def test_get_toolset_tools_unknown_toolset() -> None:
    out = await dispatch_tool(_dynamic_runtime(), "get_toolset_tools", {"toolset": "wiki"})

    assert out["ok"] is False
    assert out["code"] == "UserInput"
    assert out["message"] == "toolset wiki does not exist"


@pytest.mark.asyncio
async def test_enable_toolset_makes_tools_callable() -> None:
    gh = DummyGitHub({("GET", "/repos/octo/repo/issues/1"): {"number": 1}})
    runtime = _dynamic_runtime(github=gh)

    before = await dispatch_tool(runtime, "get_issue", {"owner": "octo", "repo": "repo", "issue_number": 1})
    assert before["ok"] is False
    assert before["code"] == "Forbidden"

    enabled = await dispatch_tool(runtime, "enable_toolset", {"toolset": "issues"})
    assert enabled["already_enabled"] is False
    assert enabled["message"] == "Toolset issues enabled"

    after = await dispatch_tool(runtime, "get_issue", {"owner": "octo", "repo": "repo", "issue_number": 1})
    assert after["ok"] is True


@pytest.mark.asyncio
async def test_enable_toolset_twice_reports_already_enabled() -> None:
    runtime = _dynamic_runtime()
    await dispatch_tool(runtime, "enable_toolset", {"toolset": "repos"})

    again = await dispatch_tool(runtime, "enable_toolset", {"toolset": "repos"})

    assert again["ok"] is True
    assert again["already_enabled"] is True
    assert again["message"] == "Toolset repos is already enabled"


@pytest.mark.asyncio
async def test_enable_unknown_toolset_changes_nothing() -> None:
    runtime = _dynamic_runtime()
    before = runtime.group.snapshot()

    out = await dispatch_tool(runtime, "enable_toolset", {"toolset": "wiki"})

    assert out["ok"] is False
    assert out["code"] == "UserInput"
    assert runtime.group.snapshot() == before


@pytest.mark.asyncio
async def test_enabling_in_read_only_mode_still_hides_writes() -> None:
    runtime = _dynamic_runtime(read_only=True)
    await dispatch_tool(runtime, "enable_toolset", {"toolset": "repos"})

    names = {t.name for t in runtime.group.available_tools()}
    assert "get_file_contents" in names
    assert "create_branch" not in names
