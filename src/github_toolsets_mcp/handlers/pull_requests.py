"""Pull requests toolset."""

from __future__ import annotations

from typing import Any

from ..errors import SafeError
from ..params import optional_bool, optional_str, pagination_params, require_int, require_str
from ..runtime import Runtime
from ..toolsets import Tool, ToolAnnotations
from ..translations import TranslationHelper
from . import repo_schema

_PULL_NUMBER = {"type": "number", "minimum": 1, "description": "Pull request number"}


def _require_pull_number(arguments: dict[str, Any]) -> int:
    number = require_int(arguments, "pull_number")
    if number < 1:
        raise SafeError(code="UserInput", message="parameter pull_number must be >= 1")
    return number


async def _tool_get_pull_request(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_pull_number(arguments)
    client = await runtime.providers.get_client()
    data = await client.request_json(method="GET", path=f"/repos/{owner}/{repo}/pulls/{number}", budget=runtime.budget())
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected pull request response")
    return {"pull_request": data}


async def _tool_list_pull_requests(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    params = pagination_params(arguments)
    params["state"] = optional_str(arguments, "state", "open")
    for key in ("head", "base", "sort", "direction"):
        value = optional_str(arguments, key)
        if value:
            params[key] = value

    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/pulls",
        params=params,
        budget=runtime.budget(),
    )
    if not isinstance(data, list):
        raise SafeError(code="GitHub", message="Unexpected pull requests response")
    return {"pull_requests": data}


async def _tool_get_pull_request_files(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_pull_number(arguments)
    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/pulls/{number}/files",
        params=pagination_params(arguments),
        budget=runtime.budget(),
    )
    if not isinstance(data, list):
        raise SafeError(code="GitHub", message="Unexpected pull request files response")
    return {"files": data}


async def _pull_list(runtime: Runtime, arguments: dict[str, Any], suffix: str, what: str) -> list[Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_pull_number(arguments)
    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/pulls/{number}/{suffix}",
        params=pagination_params(arguments),
        budget=runtime.budget(),
    )
    if not isinstance(data, list):
        raise SafeError(code="GitHub", message=f"Unexpected pull request {what} response")
    return data


async def _tool_get_pull_request_status(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_pull_number(arguments)
    client = await runtime.providers.get_client()
    pr = await client.request_json(method="GET", path=f"/repos/{owner}/{repo}/pulls/{number}", budget=runtime.budget())
    head = pr.get("head") if isinstance(pr, dict) else None
    if not isinstance(head, dict) or not isinstance(head.get("sha"), str):
        raise SafeError(code="GitHub", message="Unexpected pull request response")
    # Combined status of the head commit.
    status = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/commits/{head['sha']}/status",
        budget=runtime.budget(),
    )
    if not isinstance(status, dict):
        raise SafeError(code="GitHub", message="Unexpected status response")
    return {"status": status}


async def _tool_get_pull_request_comments(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    return {"comments": await _pull_list(runtime, arguments, "comments", "comments")}


async def _tool_get_pull_request_reviews(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    return {"reviews": await _pull_list(runtime, arguments, "reviews", "reviews")}


async def _tool_get_pull_request_diff(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_pull_number(arguments)
    client = await runtime.providers.get_client()
    diff = await client.request_text(
        path=f"/repos/{owner}/{repo}/pulls/{number}",
        accept="application/vnd.github.v3.diff",
        budget=runtime.budget(),
    )
    return {"diff": diff}


async def _tool_create_pull_request(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    payload: dict[str, Any] = {
        "title": require_str(arguments, "title"),
        "head": require_str(arguments, "head"),
        "base": require_str(arguments, "base"),
        "draft": optional_bool(arguments, "draft"),
    }
    body = optional_str(arguments, "body")
    if body:
        payload["body"] = body
    if "maintainer_can_modify" in arguments:
        payload["maintainer_can_modify"] = optional_bool(arguments, "maintainer_can_modify")

    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="POST",
        path=f"/repos/{owner}/{repo}/pulls",
        json_body=payload,
        budget=runtime.budget(),
    )
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected pull request response")
    return {"pull_request": data}


async def _tool_merge_pull_request(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_pull_number(arguments)
    payload: dict[str, Any] = {}
    for key in ("commit_title", "commit_message", "merge_method"):
        value = optional_str(arguments, key)
        if value:
            payload[key] = value

    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="PUT",
        path=f"/repos/{owner}/{repo}/pulls/{number}/merge",
        json_body=payload,
        budget=runtime.budget(),
    )
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected merge response")
    return {"merge": data}


async def _tool_update_pull_request(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_pull_number(arguments)

    payload: dict[str, Any] = {}
    for key in ("title", "body", "state", "base"):
        if key in arguments:
            payload[key] = optional_str(arguments, key)
    if "maintainer_can_modify" in arguments:
        payload["maintainer_can_modify"] = optional_bool(arguments, "maintainer_can_modify")
    if not payload:
        raise SafeError(code="UserInput", message="No update parameters provided.")

    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="PATCH",
        path=f"/repos/{owner}/{repo}/pulls/{number}",
        json_body=payload,
        budget=runtime.budget(),
    )
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected pull request response")
    return {"pull_request": data}


async def _tool_update_pull_request_branch(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    number = _require_pull_number(arguments)
    payload: dict[str, Any] = {}
    expected = optional_str(arguments, "expected_head_sha")
    if expected:
        payload["expected_head_sha"] = expected

    client = await runtime.providers.get_client()
    # GitHub answers 202: the update is queued, not finished.
    data = await client.request_json(
        method="PUT",
        path=f"/repos/{owner}/{repo}/pulls/{number}/update-branch",
        json_body=payload,
        budget=runtime.budget(),
    )
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected update branch response")
    return {"message": data.get("message"), "url": data.get("url")}


def read_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="get_pull_request",
            description=t("TOOL_GET_PULL_REQUEST_DESCRIPTION", "Get details of a specific pull request in a GitHub repository."),
            input_schema=repo_schema({"pull_number": _PULL_NUMBER}, ["pull_number"]),
            handler=_tool_get_pull_request,
            annotations=ToolAnnotations(title=t("TOOL_GET_PULL_REQUEST_USER_TITLE", "Get pull request details"), read_only_hint=True),
        ),
        Tool(
            name="list_pull_requests",
            description=t("TOOL_LIST_PULL_REQUESTS_DESCRIPTION", "List pull requests in a GitHub repository."),
            input_schema=repo_schema(
                {
                    "state": {"type": "string", "enum": ["open", "closed", "all"], "description": "Filter by state"},
                    "head": {"type": "string", "description": "Filter by head user/org and branch"},
                    "base": {"type": "string", "description": "Filter by base branch"},
                    "sort": {
                        "type": "string",
                        "enum": ["created", "updated", "popularity", "long-running"],
                        "description": "Sort by",
                    },
                    "direction": {"type": "string", "enum": ["asc", "desc"], "description": "Sort direction"},
                },
                paginated=True,
            ),
            handler=_tool_list_pull_requests,
            annotations=ToolAnnotations(title=t("TOOL_LIST_PULL_REQUESTS_USER_TITLE", "List pull requests"), read_only_hint=True),
        ),
        Tool(
            name="get_pull_request_files",
            description=t("TOOL_GET_PULL_REQUEST_FILES_DESCRIPTION", "Get the files changed in a specific pull request."),
            input_schema=repo_schema({"pull_number": _PULL_NUMBER}, ["pull_number"], paginated=True),
            handler=_tool_get_pull_request_files,
            annotations=ToolAnnotations(
                title=t("TOOL_GET_PULL_REQUEST_FILES_USER_TITLE", "Get pull request files"), read_only_hint=True
            ),
        ),
        Tool(
            name="get_pull_request_status",
            description=t(
                "TOOL_GET_PULL_REQUEST_STATUS_DESCRIPTION",
                "Get the combined status of all status checks for a pull request.",
            ),
            input_schema=repo_schema({"pull_number": _PULL_NUMBER}, ["pull_number"]),
            handler=_tool_get_pull_request_status,
            annotations=ToolAnnotations(
                title=t("TOOL_GET_PULL_REQUEST_STATUS_USER_TITLE", "Get pull request status checks"), read_only_hint=True
            ),
        ),
        Tool(
            name="get_pull_request_comments",
            description=t("TOOL_GET_PULL_REQUEST_COMMENTS_DESCRIPTION", "Get comments for a specific pull request."),
            input_schema=repo_schema({"pull_number": _PULL_NUMBER}, ["pull_number"], paginated=True),
            handler=_tool_get_pull_request_comments,
            annotations=ToolAnnotations(
                title=t("TOOL_GET_PULL_REQUEST_COMMENTS_USER_TITLE", "Get pull request comments"), read_only_hint=True
            ),
        ),
        Tool(
            name="get_pull_request_reviews",
            description=t("TOOL_GET_PULL_REQUEST_REVIEWS_DESCRIPTION", "Get reviews for a specific pull request."),
            input_schema=repo_schema({"pull_number": _PULL_NUMBER}, ["pull_number"], paginated=True),
            handler=_tool_get_pull_request_reviews,
            annotations=ToolAnnotations(
                title=t("TOOL_GET_PULL_REQUEST_REVIEWS_USER_TITLE", "Get pull request reviews"), read_only_hint=True
            ),
        ),
        Tool(
            name="get_pull_request_diff",
            description=t("TOOL_GET_PULL_REQUEST_DIFF_DESCRIPTION", "Get the diff of a pull request."),
            input_schema=repo_schema({"pull_number": _PULL_NUMBER}, ["pull_number"]),
            handler=_tool_get_pull_request_diff,
            annotations=ToolAnnotations(
                title=t("TOOL_GET_PULL_REQUEST_DIFF_USER_TITLE", "Get pull request diff"), read_only_hint=True
            ),
        ),
    ]


def write_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="create_pull_request",
            description=t("TOOL_CREATE_PULL_REQUEST_DESCRIPTION", "Create a new pull request in a GitHub repository."),
            input_schema=repo_schema(
                {
                    "title": {"type": "string", "minLength": 1, "description": "PR title"},
                    "body": {"type": "string", "description": "PR description"},
                    "head": {"type": "string", "minLength": 1, "description": "Branch containing changes"},
                    "base": {"type": "string", "minLength": 1, "description": "Branch to merge into"},
                    "draft": {"type": "boolean", "description": "Create as draft PR"},
                    "maintainer_can_modify": {"type": "boolean", "description": "Allow maintainer edits"},
                },
                ["title", "head", "base"],
            ),
            handler=_tool_create_pull_request,
            annotations=ToolAnnotations(title=t("TOOL_CREATE_PULL_REQUEST_USER_TITLE", "Open new pull request"), read_only_hint=False),
        ),
        Tool(
            name="merge_pull_request",
            description=t("TOOL_MERGE_PULL_REQUEST_DESCRIPTION", "Merge a pull request in a GitHub repository."),
            input_schema=repo_schema(
                {
                    "pull_number": _PULL_NUMBER,
                    "commit_title": {"type": "string", "description": "Title for merge commit"},
                    "commit_message": {"type": "string", "description": "Extra detail for merge commit"},
                    "merge_method": {"type": "string", "enum": ["merge", "squash", "rebase"], "description": "Merge method"},
                },
                ["pull_number"],
            ),
            handler=_tool_merge_pull_request,
            annotations=ToolAnnotations(title=t("TOOL_MERGE_PULL_REQUEST_USER_TITLE", "Merge pull request"), read_only_hint=False),
        ),
        Tool(
            name="update_pull_request_branch",
            description=t(
                "TOOL_UPDATE_PULL_REQUEST_BRANCH_DESCRIPTION",
                "Update the branch of a pull request with the latest changes from the base branch.",
            ),
            input_schema=repo_schema(
                {
                    "pull_number": _PULL_NUMBER,
                    "expected_head_sha": {"type": "string", "description": "The expected SHA of the pull request's HEAD ref"},
                },
                ["pull_number"],
            ),
            handler=_tool_update_pull_request_branch,
            annotations=ToolAnnotations(
                title=t("TOOL_UPDATE_PULL_REQUEST_BRANCH_USER_TITLE", "Update pull request branch"), read_only_hint=False
            ),
        ),
        Tool(
            name="update_pull_request",
            description=t("TOOL_UPDATE_PULL_REQUEST_DESCRIPTION", "Update an existing pull request in a GitHub repository."),
            input_schema=repo_schema(
                {
                    "pull_number": _PULL_NUMBER,
                    "title": {"type": "string", "description": "New title"},
                    "body": {"type": "string", "description": "New description"},
                    "state": {"type": "string", "enum": ["open", "closed"], "description": "New state"},
                    "base": {"type": "string", "description": "New base branch name"},
                    "maintainer_can_modify": {"type": "boolean", "description": "Allow maintainer edits"},
                },
                ["pull_number"],
            ),
            handler=_tool_update_pull_request,
            annotations=ToolAnnotations(title=t("TOOL_UPDATE_PULL_REQUEST_USER_TITLE", "Edit pull request"), read_only_hint=False),
        ),
    ]
