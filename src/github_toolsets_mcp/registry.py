"""Assembles the default toolset group and the per-server runtime."""

from __future__ import annotations

import logging

import httpx

from .audit import AuditLogger
from .config import AppConfig, ToolsetConfig
from .dynamic import init_dynamic_toolset
from .handlers import actions, context, issues, projects, pull_requests, repos
from .providers import ClientProvider
from .repository_resource import resource_templates
from .runtime import Runtime
from .toolsets import ALL_TOOLSETS, Toolset, ToolsetGroup
from .translations import TranslationHelper, env_translation_helper

logger = logging.getLogger(__name__)

CONTEXT_TOOLSET = "context"


def default_toolset_group(read_only: bool, t: TranslationHelper) -> ToolsetGroup:
    """Build every GitHub toolset, all disabled except "context"."""
    group = ToolsetGroup(read_only)

    group.add_toolset(
        Toolset(
            CONTEXT_TOOLSET,
            "Tools that provide context about the current user and GitHub context you are operating in",
            enabled=True,
        ).add_read_tools(*context.read_tools(t))
    )
    group.add_toolset(
        Toolset("repos", "GitHub Repository related tools")
        .add_read_tools(*repos.read_tools(t))
        .add_write_tools(*repos.write_tools(t))
        .add_resource_templates(*resource_templates(t))
    )
    group.add_toolset(
        Toolset("issues", "GitHub Issues related tools")
        .add_read_tools(*issues.read_tools(t))
        .add_write_tools(*issues.write_tools(t))
    )
    group.add_toolset(
        Toolset("pull_requests", "GitHub Pull Request related tools")
        .add_read_tools(*pull_requests.read_tools(t))
        .add_write_tools(*pull_requests.write_tools(t))
    )
    group.add_toolset(
        Toolset("actions", "GitHub Actions workflows and CI/CD operations")
        .add_read_tools(*actions.read_tools(t))
        .add_write_tools(*actions.write_tools(t))
    )
    group.add_toolset(
        Toolset("projects", "GitHub Projects V2 management tools")
        .add_read_tools(*projects.read_tools(t))
        .add_write_tools(*projects.write_tools(t))
    )
    group.add_toolset(Toolset("experiments", "Experimental features that are not considered stable yet"))
    return group


def startup_toolsets(toolsets: ToolsetConfig) -> list[str]:
    """Toolset names to enable at startup.

    With dynamic toolsets on, `all` is dropped so the agent starts small and
    enables the rest itself.
    """
    names = list(toolsets.enabled_toolsets)
    if toolsets.dynamic_toolsets:
        names = [n for n in names if n != ALL_TOOLSETS]
    return names


def build_group(config: AppConfig, t: TranslationHelper) -> ToolsetGroup:
    """Build the group, enable the configured toolsets and add "dynamic" if requested.

    Raises:
        UnknownToolsetError: A configured toolset name does not exist.
    """
    group = default_toolset_group(config.toolsets.read_only, t)
    group.enable_toolsets(startup_toolsets(config.toolsets))
    if config.toolsets.dynamic_toolsets:
        group.add_toolset(init_dynamic_toolset(t))
    return group


def build_runtime(
    config: AppConfig,
    *,
    translate: TranslationHelper | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    audit: AuditLogger | None = None,
) -> Runtime:
    """Create the runtime for one server instance."""
    t = translate or env_translation_helper()
    group = build_group(config, t)
    enabled = [info.name for info in group.snapshot() if info.enabled]
    logger.info("Enabled toolsets: %s (read_only=%s)", ", ".join(enabled), group.read_only)
    return Runtime(
        config=config,
        audit=audit
        or AuditLogger(
            sink_path=config.audit_log_path,
            max_bytes=config.audit_max_bytes,
            max_backups=config.audit_max_backups,
        ),
        providers=ClientProvider(config=config, transport=transport),
        group=group,
        translate=t,
    )
