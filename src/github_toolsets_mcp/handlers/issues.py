"""Issues toolset."""

from __future__ import annotations

from typing import Any

from ..errors import SafeError
from ..params import (
    PAGINATION_PROPERTIES,
    optional_int,
    optional_str,
    optional_str_list,
    pagination_params,
    require_int,
    require_str,
)
from ..runtime import Runtime
from ..toolsets import Tool, ToolAnnotations
from ..translations import TranslationHelper
from . import object_schema, repo_schema

_ISSUE_NUMBER = {"type": "number", "minimum": 1, "description": "Issue number"}
_STATE_ENUM = ["open", "closed", "all"]


def _require_issue_number(arguments: dict[str, Any]) -> int:
    number = require_int(arguments, "issue_number")
    if number < 1:
        raise SafeError(code="UserInput", message="parameter issue_number must be >= 1")
    return number


async def _request_issue(runtime: Runtime, *, method: str, path: str, json_body: dict | None = None) -> dict[str, Any]:
    client = await runtime.providers.get_client()
    data = await client.request_json(method=method, path=path, json_body=json_body, budget=runtime.budget())
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected issue response")
    return data


async def _tool_get_issue(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_issue_number(arguments)
    data = await _request_issue(runtime, method="GET", path=f"/repos/{owner}/{repo}/issues/{number}")
    return {"issue": data}


async def _tool_list_issues(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    params = pagination_params(arguments)
    params["state"] = optional_str(arguments, "state", "open")
    labels = optional_str_list(arguments, "labels")
    if labels:
        params["labels"] = ",".join(labels)
    for key in ("sort", "direction", "since"):
        value = optional_str(arguments, key)
        if value:
            params[key] = value

    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/issues",
        params=params,
        budget=runtime.budget(),
    )
    if not isinstance(data, list):
        raise SafeError(code="GitHub", message="Unexpected issues response")
    # The issues endpoint also returns pull requests.
    return {"issues": [it for it in data if isinstance(it, dict) and "pull_request" not in it]}


async def _tool_get_issue_comments(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_issue_number(arguments)
    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/issues/{number}/comments",
        params=pagination_params(arguments),
        budget=runtime.budget(),
    )
    if not isinstance(data, list):
        raise SafeError(code="GitHub", message="Unexpected comments response")
    return {"comments": data}


async def _tool_search_issues(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    query = require_str(arguments, "q")
    if "is:issue" not in query:
        query = f"is:issue {query}"
    params = pagination_params(arguments)
    params["q"] = query
    for key in ("sort", "order"):
        value = optional_str(arguments, key)
        if value:
            params[key] = value

    client = await runtime.providers.get_client()
    data = await client.request_json(method="GET", path="/search/issues", params=params, budget=runtime.budget())
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected search response")
    return {
        "total_count": data.get("total_count"),
        "incomplete_results": data.get("incomplete_results"),
        "items": data.get("items") or [],
    }


async def _tool_create_issue(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    title = require_str(arguments, "title")

    payload: dict[str, Any] = {"title": title}
    body = optional_str(arguments, "body")
    if body:
        payload["body"] = body
    for key in ("labels", "assignees"):
        values = optional_str_list(arguments, key)
        if values:
            payload[key] = values
    milestone = optional_int(arguments, "milestone")
    if milestone:
        payload["milestone"] = milestone

    data = await _request_issue(runtime, method="POST", path=f"/repos/{owner}/{repo}/issues", json_body=payload)
    return {"issue": data}


async def _tool_add_issue_comment(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_issue_number(arguments)
    body = require_str(arguments, "body")

    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="POST",
        path=f"/repos/{owner}/{repo}/issues/{number}/comments",
        json_body={"body": body},
        budget=runtime.budget(),
    )
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected comment response")
    return {"comment": data}


async def _tool_update_issue(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_issue_number(arguments)

    payload: dict[str, Any] = {}
    for key in ("title", "body"):
        if key in arguments:
            payload[key] = optional_str(arguments, key)
    if "state" in arguments:
        state = optional_str(arguments, "state").strip().lower()
        if state not in {"open", "closed"}:
            raise SafeError(code="UserInput", message="parameter state must be 'open' or 'closed'")
        payload["state"] = state
    for key in ("labels", "assignees"):
        values = optional_str_list(arguments, key)
        if values is not None:
            payload[key] = values
    if "milestone" in arguments:
        payload["milestone"] = optional_int(arguments, "milestone")

    if not payload:
        raise SafeError(code="UserInput", message="no fields to update")

    data = await _request_issue(
        runtime, method="PATCH", path=f"/repos/{owner}/{repo}/issues/{number}", json_body=payload
    )
    return {"issue": data}


def read_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="get_issue",
            description=t("TOOL_GET_ISSUE_DESCRIPTION", "Get details of a specific issue in a GitHub repository."),
            input_schema=repo_schema({"issue_number": _ISSUE_NUMBER}, ["issue_number"]),
            handler=_tool_get_issue,
            annotations=ToolAnnotations(title=t("TOOL_GET_ISSUE_USER_TITLE", "Get issue details"), read_only_hint=True),
        ),
        Tool(
            name="list_issues",
            description=t("TOOL_LIST_ISSUES_DESCRIPTION", "List issues in a GitHub repository."),
            input_schema=repo_schema(
                {
                    "state": {"type": "string", "enum": _STATE_ENUM, "description": "Filter by state"},
                    "labels": {"type": "array", "items": {"type": "string"}, "description": "Filter by labels"},
                    "sort": {"type": "string", "enum": ["created", "updated", "comments"], "description": "Sort order"},
                    "direction": {"type": "string", "enum": ["asc", "desc"], "description": "Sort direction"},
                    "since": {"type": "string", "description": "Filter by date (ISO 8601 timestamp)"},
                },
                paginated=True,
            ),
            handler=_tool_list_issues,
            annotations=ToolAnnotations(title=t("TOOL_LIST_ISSUES_USER_TITLE", "List issues"), read_only_hint=True),
        ),
        Tool(
            name="get_issue_comments",
            description=t("TOOL_GET_ISSUE_COMMENTS_DESCRIPTION", "Get comments for a specific issue in a GitHub repository."),
            input_schema=repo_schema({"issue_number": _ISSUE_NUMBER}, ["issue_number"], paginated=True),
            handler=_tool_get_issue_comments,
            annotations=ToolAnnotations(title=t("TOOL_GET_ISSUE_COMMENTS_USER_TITLE", "Get issue comments"), read_only_hint=True),
        ),
        Tool(
            name="search_issues",
            description=t("TOOL_SEARCH_ISSUES_DESCRIPTION", "Search for issues in GitHub repositories."),
            input_schema=object_schema(
                {
                    "q": {"type": "string", "minLength": 1, "description": "Search query using GitHub issues search syntax"},
                    "sort": {
                        "type": "string",
                        "enum": ["comments", "reactions", "created", "updated"],
                        "description": "Sort field by number of matches of categories",
                    },
                    "order": {"type": "string", "enum": ["asc", "desc"], "description": "Sort order"},
                    **PAGINATION_PROPERTIES,
                },
                ["q"],
            ),
            handler=_tool_search_issues,
            annotations=ToolAnnotations(title=t("TOOL_SEARCH_ISSUES_USER_TITLE", "Search issues"), read_only_hint=True),
        ),
    ]


def write_tools(t: TranslationHelper) -> list[Tool]:
    str_list = {"type": "array", "items": {"type": "string"}}
    return [
        Tool(
            name="create_issue",
            description=t("TOOL_CREATE_ISSUE_DESCRIPTION", "Create a new issue in a GitHub repository."),
            input_schema=repo_schema(
                {
                    "title": {"type": "string", "minLength": 1, "description": "Issue title"},
                    "body": {"type": "string", "description": "Issue body content"},
                    "assignees": {**str_list, "description": "Usernames to assign to this issue"},
                    "labels": {**str_list, "description": "Labels to apply to this issue"},
                    "milestone": {"type": "number", "description": "Milestone number"},
                },
                ["title"],
            ),
            handler=_tool_create_issue,
            annotations=ToolAnnotations(title=t("TOOL_CREATE_ISSUE_USER_TITLE", "Open new issue"), read_only_hint=False),
        ),
        Tool(
            name="add_issue_comment",
            description=t("TOOL_ADD_ISSUE_COMMENT_DESCRIPTION", "Add a comment to a specific issue in a GitHub repository."),
            input_schema=repo_schema(
                {
                    "issue_number": _ISSUE_NUMBER,
                    "body": {"type": "string", "minLength": 1, "description": "Comment content"},
                },
                ["issue_number", "body"],
            ),
            handler=_tool_add_issue_comment,
            annotations=ToolAnnotations(title=t("TOOL_ADD_ISSUE_COMMENT_USER_TITLE", "Add comment to issue"), read_only_hint=False),
        ),
        Tool(
            name="update_issue",
            description=t("TOOL_UPDATE_ISSUE_DESCRIPTION", "Update an existing issue in a GitHub repository."),
            input_schema=repo_schema(
                {
                    "issue_number": _ISSUE_NUMBER,
                    "title": {"type": "string", "description": "New title"},
                    "body": {"type": "string", "description": "New description"},
                    "state": {"type": "string", "enum": ["open", "closed"], "description": "New state"},
                    "labels": {**str_list, "description": "New labels"},
                    "assignees": {**str_list, "description": "New assignees"},
                    "milestone": {"type": "number", "description": "New milestone number"},
                },
                ["issue_number"],
            ),
            handler=_tool_update_issue,
            annotations=ToolAnnotations(title=t("TOOL_UPDATE_ISSUE_USER_TITLE", "Edit issue"), read_only_hint=False),
        ),
    ]
