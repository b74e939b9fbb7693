"""Default toolset group assembly and startup enablement."""

from __future__ import annotations

import pytest
from github_toolsets_mcp.config import ToolsetConfig
from github_toolsets_mcp.registry import build_group, build_runtime, default_toolset_group, startup_toolsets
from github_toolsets_mcp.toolsets import OperationKind, UnknownToolsetError
from github_toolsets_mcp.translations import env_translation_helper, null_translation
from support import DummyAudit, make_config

EXPECTED_TOOLSETS = ["context", "repos", "issues", "pull_requests", "actions", "projects", "experiments"]


def test_default_group_registers_toolsets_in_order() -> None:
    group = default_toolset_group(False, null_translation)

    assert group.toolset_names() == EXPECTED_TOOLSETS
    assert [i.name for i in group.snapshot() if i.enabled] == ["context"]


def test_context_tools_are_listed_first() -> None:
    group = build_group(make_config(), null_translation)
    assert group.available_tools()[0].name == "get_me"


def test_all_tool_names_are_unique_and_kinds_are_set() -> None:
    group = default_toolset_group(False, null_translation)
    group.enable_toolsets(["all"])
    tools = group.available_tools()

    names = [t.name for t in tools]
    assert len(names) == len(set(names))
    assert group.resolve_tool("get_file_contents").kind is OperationKind.READ
    assert group.resolve_tool("create_branch").kind is OperationKind.WRITE
    assert group.resolve_tool("delete_project_item").kind is OperationKind.WRITE


def test_every_tool_schema_is_a_closed_object() -> None:
    group = default_toolset_group(False, null_translation)
    group.enable_toolsets(["all"])
    for tool in group.available_tools():
        assert tool.input_schema["type"] == "object", tool.name
        assert tool.input_schema.get("additionalProperties") is False, tool.name
        for req in tool.input_schema.get("required", []):
            assert req in tool.input_schema["properties"], (tool.name, req)


def test_read_only_group_exposes_no_write_tools() -> None:
    group = build_group(make_config(read_only=True), null_translation)

    tools = group.available_tools()
    assert tools
    assert all(t.kind is OperationKind.READ for t in tools)
    assert "create_issue" not in {t.name for t in tools}


def test_repos_toolset_carries_resource_templates() -> None:
    group = build_group(make_config(toolsets=("repos",)), null_translation)

    names = [tpl.name for tpl in group.available_resource_templates()]
    assert names == [
        "repository_content",
        "repository_content_branch",
        "repository_content_commit",
        "repository_content_tag",
        "repository_content_pr",
    ]


def test_resource_templates_hidden_while_repos_disabled() -> None:
    group = build_group(make_config(toolsets=("issues",)), null_translation)
    assert group.available_resource_templates() == []


@pytest.mark.parametrize(
    ("toolsets", "dynamic", "expected"),
    [
        (("all",), False, ["all"]),
        (("all",), True, []),
        (("repos", "all"), True, ["repos"]),
        (("repos", "issues"), False, ["repos", "issues"]),
    ],
)
def test_startup_toolsets(toolsets: tuple[str, ...], dynamic: bool, expected: list[str]) -> None:
    cfg = ToolsetConfig(enabled_toolsets=toolsets, dynamic_toolsets=dynamic)
    assert startup_toolsets(cfg) == expected


def test_dynamic_mode_starts_small_and_adds_discovery_toolset() -> None:
    group = build_group(make_config(toolsets=("all",), dynamic=True), null_translation)

    enabled = [i.name for i in group.snapshot() if i.enabled]
    assert enabled == ["context", "dynamic"]
    names = {t.name for t in group.available_tools()}
    assert {"list_available_toolsets", "get_toolset_tools", "enable_toolset", "get_me"} == names


def test_dynamic_toolset_absent_without_dynamic_mode() -> None:
    group = build_group(make_config(), null_translation)
    assert "dynamic" not in group.toolset_names()


def test_unknown_configured_toolset_fails_startup() -> None:
    with pytest.raises(UnknownToolsetError) as exc:
        build_group(make_config(toolsets=("repos", "wiki")), null_translation)
    assert exc.value.message == "toolset wiki does not exist"


def test_env_translation_overrides_descriptions(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_MCP_TOOL_GET_ME_DESCRIPTION", "Who am I")
    group = build_group(make_config(toolsets=("context",)), env_translation_helper())

    assert group.resolve_tool("get_me").description == "Who am I"


def test_build_runtime_wires_group_and_providers() -> None:
    audit = DummyAudit()
    runtime = build_runtime(make_config(toolsets=("issues",)), translate=null_translation, audit=audit)  # type: ignore[arg-type]

    assert runtime.audit is audit
    assert runtime.group.is_enabled("issues")
    assert not runtime.group.is_enabled("repos")
    assert runtime.budget().total_timeout_s == runtime.config.limits.total_timeout_s
