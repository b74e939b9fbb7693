"""Repos toolset: files, branches, commits, tags, code search, repository creation and forks."""

from __future__ import annotations

import base64
from typing import Any
from urllib.parse import quote

from ..errors import SafeError
from ..params import PAGINATION_PROPERTIES, optional_bool, optional_str, pagination_params, require_str
from ..raw_client import RawContentOpts
from ..repository_resource import RawContentNotFoundError, ResourceContent, fetch_raw_file
from ..runtime import Runtime
from ..toolsets import Tool, ToolAnnotations
from ..translations import TranslationHelper
from . import object_schema, repo_schema


def _content_uri(owner: str, repo: str, path: str, opts: RawContentOpts) -> str:
    if opts.sha:
        return f"repo://{owner}/{repo}/sha/{opts.sha}/contents/{path}"
    if opts.ref:
        return f"repo://{owner}/{repo}/{opts.ref}/contents/{path}"
    return f"repo://{owner}/{repo}/contents/{path}"


def _content_to_dict(content: ResourceContent) -> dict[str, Any]:
    out: dict[str, Any] = {"uri": content.uri, "mime_type": content.mime_type}
    if content.text is not None:
        out["text"] = content.text
    else:
        out["blob"] = content.blob
    return out


async def _contents_api(runtime: Runtime, owner: str, repo: str, path: str, opts: RawContentOpts) -> Any:
    client = await runtime.providers.get_client()
    ref = opts.sha or opts.ref
    return await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/contents/{quote(path.strip('/'), safe='/')}",
        params={"ref": ref} if ref else None,
        budget=runtime.budget(),
    )


async def _tool_get_file_contents(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    path = optional_str(arguments, "path", "/")
    ref = optional_str(arguments, "ref")
    sha = optional_str(arguments, "sha")
    opts = RawContentOpts(ref=ref, sha=sha)

    # Directories are listed through the contents API.
    if path and not path.endswith("/"):
        rel = path.lstrip("/")
        try:
            content = await fetch_raw_file(
                runtime,
                uri=_content_uri(owner, repo, rel, opts),
                owner=owner,
                repo=repo,
                path=rel,
                opts=opts,
            )
            return {"content": _content_to_dict(content)}
        except RawContentNotFoundError:
            pass

    data = await _contents_api(runtime, owner, repo, path, opts)
    if isinstance(data, list):
        return {"directory": data}
    if isinstance(data, dict):
        return {"file": data}
    raise SafeError(code="GitHub", message="Unexpected contents response")


async def _list(runtime: Runtime, path: str, params: dict[str, str], what: str) -> list[Any]:
    client = await runtime.providers.get_client()
    data = await client.request_json(method="GET", path=path, params=params, budget=runtime.budget())
    if not isinstance(data, list):
        raise SafeError(code="GitHub", message=f"Unexpected {what} response")
    return data


async def _tool_list_branches(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    branches = await _list(runtime, f"/repos/{owner}/{repo}/branches", pagination_params(arguments), "branches")
    return {"branches": branches}


async def _tool_list_commits(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    params = pagination_params(arguments)
    sha = optional_str(arguments, "sha")
    if sha:
        params["sha"] = sha
    author = optional_str(arguments, "author")
    if author:
        params["author"] = author
    commits = await _list(runtime, f"/repos/{owner}/{repo}/commits", params, "commits")
    return {"commits": commits}


async def _tool_get_commit(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    sha = require_str(arguments, "sha")
    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/commits/{sha}",
        params=pagination_params(arguments),
        budget=runtime.budget(),
    )
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected commit response")
    return {"commit": data}


async def _tool_list_tags(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    tags = await _list(runtime, f"/repos/{owner}/{repo}/tags", pagination_params(arguments), "tags")
    return {"tags": tags}


async def _tool_search_repositories(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    query = require_str(arguments, "query")
    params = pagination_params(arguments)
    params["q"] = query
    client = await runtime.providers.get_client()
    data = await client.request_json(method="GET", path="/search/repositories", params=params, budget=runtime.budget())
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected search response")
    return {
        "total_count": data.get("total_count"),
        "incomplete_results": data.get("incomplete_results"),
        "items": data.get("items") or [],
    }


async def _tool_search_code(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    params = pagination_params(arguments)
    params["q"] = require_str(arguments, "q")
    for key in ("sort", "order"):
        value = optional_str(arguments, key)
        if value:
            params[key] = value
    client = await runtime.providers.get_client()
    data = await client.request_json(method="GET", path="/search/code", params=params, budget=runtime.budget())
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected search response")
    return {
        "total_count": data.get("total_count"),
        "incomplete_results": data.get("incomplete_results"),
        "items": data.get("items") or [],
    }


async def _tool_get_tag(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    tag = require_str(arguments, "tag")
    client = await runtime.providers.get_client()
    ref_data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/git/ref/tags/{quote(tag, safe='')}",
        budget=runtime.budget(),
    )
    obj = ref_data.get("object") if isinstance(ref_data, dict) else None
    if not isinstance(obj, dict) or not isinstance(obj.get("sha"), str):
        raise SafeError(code="GitHub", message="Unexpected tag reference response")
    # Lightweight tags point straight at a commit and have no tag object.
    if obj.get("type") != "tag":
        return {"tag": {"tag": tag, "object": obj}}
    data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/git/tags/{obj['sha']}",
        budget=runtime.budget(),
    )
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected tag response")
    return {"tag": data}


async def _resolve_branch_sha(runtime: Runtime, *, owner: str, repo: str, branch: str) -> str:
    client = await runtime.providers.get_client()
    ref_data = await client.request_json(
        method="GET",
        path=f"/repos/{owner}/{repo}/git/ref/heads/{branch}",
        budget=runtime.budget(),
    )
    obj = ref_data.get("object") if isinstance(ref_data, dict) else None
    if not isinstance(obj, dict) or not isinstance(obj.get("sha"), str):
        raise SafeError(code="GitHub", message="Unexpected ref response")
    return obj["sha"]


async def _default_branch(runtime: Runtime, *, owner: str, repo: str) -> str:
    client = await runtime.providers.get_client()
    data = await client.request_json(method="GET", path=f"/repos/{owner}/{repo}", budget=runtime.budget())
    branch = data.get("default_branch") if isinstance(data, dict) else None
    if not isinstance(branch, str) or not branch:
        raise SafeError(code="GitHub", message="Unexpected repository response")
    return branch


async def _tool_create_branch(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    branch = require_str(arguments, "branch")
    from_branch = optional_str(arguments, "from_branch")
    if not from_branch:
        from_branch = await _default_branch(runtime, owner=owner, repo=repo)

    sha = await _resolve_branch_sha(runtime, owner=owner, repo=repo, branch=from_branch)

    client = await runtime.providers.get_client()
    try:
        data = await client.request_json(
            method="POST",
            path=f"/repos/{owner}/{repo}/git/refs",
            json_body={"ref": f"refs/heads/{branch}", "sha": sha},
            budget=runtime.budget(),
        )
    except SafeError as exc:
        if exc.status_code == 422 and exc.hint and "reference already exists" in exc.hint.lower():
            raise SafeError(code="UserInput", message="Branch already exists") from exc
        raise
    return {"ref": data if isinstance(data, dict) else {"ref": f"refs/heads/{branch}", "sha": sha}}


async def _tool_create_or_update_file(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    path = require_str(arguments, "path")
    content = optional_str(arguments, "content")
    message = require_str(arguments, "message")
    branch = require_str(arguments, "branch")
    sha = optional_str(arguments, "sha")

    body: dict[str, Any] = {
        "message": message,
        "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        "branch": branch,
    }
    # Updating an existing file requires its current blob SHA.
    if sha:
        body["sha"] = sha

    client = await runtime.providers.get_client()
    data = await client.request_json(
        method="PUT",
        path=f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'), safe='/')}",
        json_body=body,
        budget=runtime.budget(),
    )
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected contents response")
    return {"content": data.get("content"), "commit": data.get("commit")}


async def _tool_create_repository(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    body: dict[str, Any] = {
        "name": require_str(arguments, "name"),
        "private": optional_bool(arguments, "private"),
        "auto_init": optional_bool(arguments, "auto_init"),
    }
    description = optional_str(arguments, "description")
    if description:
        body["description"] = description
    client = await runtime.providers.get_client()
    data = await client.request_json(method="POST", path="/user/repos", json_body=body, budget=runtime.budget())
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected repository response")
    return {"repository": data}


def _files_arg(arguments: dict[str, Any]) -> list[dict[str, str]]:
    files = arguments.get("files")
    if not isinstance(files, list) or not files:
        raise SafeError(code="UserInput", message="files parameter must be a non-empty array of objects with path and content")
    out = []
    for item in files:
        if not isinstance(item, dict):
            raise SafeError(code="UserInput", message="each file must be an object with path and content")
        path = item.get("path")
        content = item.get("content")
        if not isinstance(path, str) or not path or not isinstance(content, str):
            raise SafeError(code="UserInput", message="each file must have a string path and content")
        out.append({"path": path.lstrip("/"), "content": content})
    return out


async def _commit_tree(
    runtime: Runtime, *, owner: str, repo: str, branch: str, message: str, entries: list[dict[str, Any]]
) -> dict[str, Any]:
    """Commit tree entries on top of `branch` and move the branch to the new commit.

    Returns the updated ref.
    """
    client = await runtime.providers.get_client()
    base_sha = await _resolve_branch_sha(runtime, owner=owner, repo=repo, branch=branch)
    base_commit = await client.request_json(
        method="GET", path=f"/repos/{owner}/{repo}/git/commits/{base_sha}", budget=runtime.budget()
    )
    tree = base_commit.get("tree") if isinstance(base_commit, dict) else None
    if not isinstance(tree, dict) or not isinstance(tree.get("sha"), str):
        raise SafeError(code="GitHub", message="Unexpected commit response")

    new_tree = await client.request_json(
        method="POST",
        path=f"/repos/{owner}/{repo}/git/trees",
        json_body={"base_tree": tree["sha"], "tree": entries},
        budget=runtime.budget(),
    )
    if not isinstance(new_tree, dict) or not isinstance(new_tree.get("sha"), str):
        raise SafeError(code="GitHub", message="Unexpected tree response")

    commit = await client.request_json(
        method="POST",
        path=f"/repos/{owner}/{repo}/git/commits",
        json_body={"message": message, "tree": new_tree["sha"], "parents": [base_sha]},
        budget=runtime.budget(),
    )
    if not isinstance(commit, dict) or not isinstance(commit.get("sha"), str):
        raise SafeError(code="GitHub", message="Unexpected commit response")

    ref = await client.request_json(
        method="PATCH",
        path=f"/repos/{owner}/{repo}/git/refs/heads/{branch}",
        json_body={"sha": commit["sha"], "force": False},
        budget=runtime.budget(),
    )
    if not isinstance(ref, dict):
        raise SafeError(code="GitHub", message="Unexpected ref response")
    return {"ref": ref, "commit": commit}


async def _tool_push_files(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    branch = require_str(arguments, "branch")
    message = require_str(arguments, "message")
    entries = [
        {"path": f["path"], "mode": "100644", "type": "blob", "content": f["content"]} for f in _files_arg(arguments)
    ]
    return await _commit_tree(runtime, owner=owner, repo=repo, branch=branch, message=message, entries=entries)


async def _tool_delete_file(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    path = require_str(arguments, "path").lstrip("/")
    message = require_str(arguments, "message")
    branch = require_str(arguments, "branch")
    # A tree entry with a null sha removes the path.
    entries = [{"path": path, "mode": "100644", "type": "blob", "sha": None}]
    return await _commit_tree(runtime, owner=owner, repo=repo, branch=branch, message=message, entries=entries)


async def _tool_fork_repository(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    organization = optional_str(arguments, "organization")

    client = await runtime.providers.get_client()
    resp = await client.request(
        method="POST",
        path=f"/repos/{owner}/{repo}/forks",
        json_body={"organization": organization} if organization else {},
        budget=runtime.budget(),
    )
    # 202 means the fork is still being created.
    if resp.status_code == 202:
        return {"message": "Fork is in progress"}
    data = resp.json() if resp.content else None
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected fork response")
    return {"repository": data}


def read_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="get_file_contents",
            description=t(
                "TOOL_GET_FILE_CONTENTS_DESCRIPTION",
                "Get the contents of a file or directory from a GitHub repository",
            ),
            input_schema=repo_schema(
                {
                    "path": {"type": "string", "description": "Path to file/directory (directories must end with a slash '/')"},
                    "ref": {"type": "string", "description": "Accepts optional git refs such as `refs/tags/{tag}`, `refs/heads/{branch}`"},
                    "sha": {"type": "string", "description": "Accepts optional commit SHA. If specified, it will be used instead of ref"},
                }
            ),
            handler=_tool_get_file_contents,
            annotations=ToolAnnotations(title=t("TOOL_GET_FILE_CONTENTS_USER_TITLE", "Get file or directory contents"), read_only_hint=True),
        ),
        Tool(
            name="list_branches",
            description=t("TOOL_LIST_BRANCHES_DESCRIPTION", "List branches in a GitHub repository"),
            input_schema=repo_schema(paginated=True),
            handler=_tool_list_branches,
            annotations=ToolAnnotations(title=t("TOOL_LIST_BRANCHES_USER_TITLE", "List branches"), read_only_hint=True),
        ),
        Tool(
            name="list_commits",
            description=t("TOOL_LIST_COMMITS_DESCRIPTION", "Get list of commits of a branch in a GitHub repository"),
            input_schema=repo_schema(
                {
                    "sha": {"type": "string", "description": "SHA or branch name to list commits of"},
                    "author": {"type": "string", "description": "Author username or email address to filter commits by"},
                },
                paginated=True,
            ),
            handler=_tool_list_commits,
            annotations=ToolAnnotations(title=t("TOOL_LIST_COMMITS_USER_TITLE", "List commits"), read_only_hint=True),
        ),
        Tool(
            name="get_commit",
            description=t("TOOL_GET_COMMITS_DESCRIPTION", "Get details for a commit from a GitHub repository"),
            input_schema=repo_schema(
                {"sha": {"type": "string", "minLength": 1, "description": "Commit SHA, branch name, or tag name"}},
                ["sha"],
                paginated=True,
            ),
            handler=_tool_get_commit,
            annotations=ToolAnnotations(title=t("TOOL_GET_COMMITS_USER_TITLE", "Get commit details"), read_only_hint=True),
        ),
        Tool(
            name="list_tags",
            description=t("TOOL_LIST_TAGS_DESCRIPTION", "List git tags in a GitHub repository"),
            input_schema=repo_schema(paginated=True),
            handler=_tool_list_tags,
            annotations=ToolAnnotations(title=t("TOOL_LIST_TAGS_USER_TITLE", "List tags"), read_only_hint=True),
        ),
        Tool(
            name="get_tag",
            description=t("TOOL_GET_TAG_DESCRIPTION", "Get details about a specific git tag in a GitHub repository"),
            input_schema=repo_schema({"tag": {"type": "string", "minLength": 1, "description": "Tag name"}}, ["tag"]),
            handler=_tool_get_tag,
            annotations=ToolAnnotations(title=t("TOOL_GET_TAG_USER_TITLE", "Get tag details"), read_only_hint=True),
        ),
        Tool(
            name="search_repositories",
            description=t("TOOL_SEARCH_REPOSITORIES_DESCRIPTION", "Search for GitHub repositories"),
            input_schema=object_schema(
                {
                    "query": {"type": "string", "minLength": 1, "description": "Search query"},
                    **PAGINATION_PROPERTIES,
                },
                ["query"],
            ),
            handler=_tool_search_repositories,
            annotations=ToolAnnotations(title=t("TOOL_SEARCH_REPOSITORIES_USER_TITLE", "Search repositories"), read_only_hint=True),
        ),
        Tool(
            name="search_code",
            description=t("TOOL_SEARCH_CODE_DESCRIPTION", "Search for code across GitHub repositories"),
            input_schema=object_schema(
                {
                    "q": {"type": "string", "minLength": 1, "description": "Search query using GitHub code search syntax"},
                    "sort": {"type": "string", "description": "Sort field ('indexed' only)"},
                    "order": {"type": "string", "enum": ["asc", "desc"], "description": "Sort order"},
                    **PAGINATION_PROPERTIES,
                },
                ["q"],
            ),
            handler=_tool_search_code,
            annotations=ToolAnnotations(title=t("TOOL_SEARCH_CODE_USER_TITLE", "Search code"), read_only_hint=True),
        ),
    ]


def write_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="create_branch",
            description=t("TOOL_CREATE_BRANCH_DESCRIPTION", "Create a new branch in a GitHub repository"),
            input_schema=repo_schema(
                {
                    "branch": {"type": "string", "minLength": 1, "description": "Name for new branch"},
                    "from_branch": {"type": "string", "description": "Source branch (defaults to repo default)"},
                },
                ["branch"],
            ),
            handler=_tool_create_branch,
            annotations=ToolAnnotations(title=t("TOOL_CREATE_BRANCH_USER_TITLE", "Create branch"), read_only_hint=False),
        ),
        Tool(
            name="create_or_update_file",
            description=t(
                "TOOL_CREATE_OR_UPDATE_FILE_DESCRIPTION",
                "Create or update a single file in a GitHub repository. If updating, you must provide the SHA of the file you want to update.",
            ),
            input_schema=repo_schema(
                {
                    "path": {"type": "string", "minLength": 1, "description": "Path where to create/update the file"},
                    "content": {"type": "string", "description": "Content of the file"},
                    "message": {"type": "string", "minLength": 1, "description": "Commit message"},
                    "branch": {"type": "string", "minLength": 1, "description": "Branch to create/update the file in"},
                    "sha": {"type": "string", "description": "SHA of file being replaced (for updates)"},
                },
                ["path", "content", "message", "branch"],
            ),
            handler=_tool_create_or_update_file,
            annotations=ToolAnnotations(
                title=t("TOOL_CREATE_OR_UPDATE_FILE_USER_TITLE", "Create or update file"), read_only_hint=False
            ),
        ),
        Tool(
            name="create_repository",
            description=t("TOOL_CREATE_REPOSITORY_DESCRIPTION", "Create a new GitHub repository in your account"),
            input_schema=object_schema(
                {
                    "name": {"type": "string", "minLength": 1, "description": "Repository name"},
                    "description": {"type": "string", "description": "Repository description"},
                    "private": {"type": "boolean", "description": "Whether repo should be private"},
                    "auto_init": {"type": "boolean", "description": "Initialize with README"},
                },
                ["name"],
            ),
            handler=_tool_create_repository,
            annotations=ToolAnnotations(title=t("TOOL_CREATE_REPOSITORY_USER_TITLE", "Create repository"), read_only_hint=False),
        ),
        Tool(
            name="push_files",
            description=t("TOOL_PUSH_FILES_DESCRIPTION", "Push multiple files to a GitHub repository in a single commit"),
            input_schema=repo_schema(
                {
                    "branch": {"type": "string", "minLength": 1, "description": "Branch to push to"},
                    "files": {
                        "type": "array",
                        "description": "Array of file objects to push, each object with path (string) and content (string)",
                        "items": {
                            "type": "object",
                            "required": ["path", "content"],
                            "properties": {
                                "path": {"type": "string", "description": "path to the file"},
                                "content": {"type": "string", "description": "file content"},
                            },
                            "additionalProperties": False,
                        },
                    },
                    "message": {"type": "string", "minLength": 1, "description": "Commit message"},
                },
                ["branch", "files", "message"],
            ),
            handler=_tool_push_files,
            annotations=ToolAnnotations(title=t("TOOL_PUSH_FILES_USER_TITLE", "Push files to repository"), read_only_hint=False),
        ),
        Tool(
            name="delete_file",
            description=t("TOOL_DELETE_FILE_DESCRIPTION", "Delete a file from a GitHub repository"),
            input_schema=repo_schema(
                {
                    "path": {"type": "string", "minLength": 1, "description": "Path to the file to delete"},
                    "message": {"type": "string", "minLength": 1, "description": "Commit message"},
                    "branch": {"type": "string", "minLength": 1, "description": "Branch to delete the file from"},
                },
                ["path", "message", "branch"],
            ),
            handler=_tool_delete_file,
            annotations=ToolAnnotations(
                title=t("TOOL_DELETE_FILE_USER_TITLE", "Delete file"), read_only_hint=False, destructive_hint=True
            ),
        ),
        Tool(
            name="fork_repository",
            description=t("TOOL_FORK_REPOSITORY_DESCRIPTION", "Fork a GitHub repository to your account or specified organization"),
            input_schema=repo_schema({"organization": {"type": "string", "description": "Organization to fork to"}}),
            handler=_tool_fork_repository,
            annotations=ToolAnnotations(title=t("TOOL_FORK_REPOSITORY_USER_TITLE", "Fork repository"), read_only_hint=False),
        ),
    ]
