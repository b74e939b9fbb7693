"""Projects toolset (Projects v2, GraphQL only).

Reads take an owner login plus `owner_type`; the owner defaults to an
organization because most shared projects live there.
"""

from __future__ import annotations

from typing import Any

from ..errors import SafeError
from ..params import optional_str, require_int, require_str
from ..runtime import Runtime
from ..toolsets import Tool, ToolAnnotations
from ..translations import TranslationHelper
from . import object_schema

_OWNER_TYPES = ("user", "organization")

_QUERY_LIST_PROJECTS = """
query($login: String!) {
  {owner}(login: $login) {
    projectsV2(first: 100) {
      nodes { id title number }
    }
  }
}
"""

_QUERY_PROJECT_FIELDS = """
query($login: String!, $number: Int!) {
  {owner}(login: $login) {
    projectV2(number: $number) {
      fields(first: 100) {
        nodes {
          ... on ProjectV2FieldCommon { id name dataType }
        }
      }
    }
  }
}
"""

_QUERY_PROJECT_ITEMS = """
query($login: String!, $number: Int!) {
  {owner}(login: $login) {
    projectV2(number: $number) {
      items(first: 100) {
        nodes { id }
      }
    }
  }
}
"""

_QUERY_REPOSITORY_ID = """
query($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) { id }
}
"""

_MUTATION_CREATE_ISSUE = """
mutation($input: CreateIssueInput!) {
  createIssue(input: $input) { issue { id } }
}
"""

_MUTATION_ADD_ITEM = """
mutation($input: AddProjectV2ItemByIdInput!) {
  addProjectV2ItemById(input: $input) { item { id } }
}
"""

_MUTATION_UPDATE_ITEM_FIELD = """
mutation($input: UpdateProjectV2ItemFieldValueInput!) {
  updateProjectV2ItemFieldValue(input: $input) { __typename }
}
"""

_MUTATION_ADD_DRAFT_ISSUE = """
mutation($input: AddProjectV2DraftIssueInput!) {
  addProjectV2DraftIssue(input: $input) { projectItem { id } }
}
"""

_MUTATION_DELETE_ITEM = """
mutation($input: DeleteProjectV2ItemInput!) {
  deleteProjectV2Item(input: $input) { deletedItemId }
}
"""


def _owner_type(arguments: dict[str, Any]) -> str:
    owner_type = optional_str(arguments, "owner_type") or "organization"
    if owner_type not in _OWNER_TYPES:
        raise SafeError(code="UserInput", message="parameter owner_type must be one of: user, organization")
    return owner_type


def _owner_query(template: str, owner_type: str) -> str:
    # str.format would trip over the GraphQL braces.
    return template.replace("{owner}", owner_type)


async def _execute(runtime: Runtime, query: str, variables: dict[str, Any]) -> dict[str, Any]:
    client = await runtime.providers.get_gql_client()
    result = await client.execute(query=query, variables=variables, budget=runtime.budget())
    return result.data


def _project_node(data: dict[str, Any], owner_type: str) -> dict[str, Any]:
    owner = data.get(owner_type)
    project = owner.get("projectV2") if isinstance(owner, dict) else None
    if not isinstance(project, dict):
        raise SafeError(code="UserInput", message="Project not found")
    return project


async def _tool_list_projects(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    owner_type = _owner_type(arguments)
    data = await _execute(runtime, _owner_query(_QUERY_LIST_PROJECTS, owner_type), {"login": owner})
    owner_obj = data.get(owner_type)
    projects = owner_obj.get("projectsV2") if isinstance(owner_obj, dict) else None
    nodes = projects.get("nodes") if isinstance(projects, dict) else None
    if not isinstance(nodes, list):
        raise SafeError(code="GitHub", message="Unexpected projects response")
    return {"projects": [n for n in nodes if isinstance(n, dict)]}


async def _tool_get_project_fields(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    number = require_int(arguments, "number")
    owner_type = _owner_type(arguments)
    data = await _execute(
        runtime, _owner_query(_QUERY_PROJECT_FIELDS, owner_type), {"login": owner, "number": number}
    )
    fields = _project_node(data, owner_type).get("fields")
    nodes = fields.get("nodes") if isinstance(fields, dict) else None
    if not isinstance(nodes, list):
        raise SafeError(code="GitHub", message="Unexpected project fields response")
    return {"fields": [n for n in nodes if isinstance(n, dict)]}


async def _tool_get_project_items(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    number = require_int(arguments, "number")
    owner_type = _owner_type(arguments)
    data = await _execute(
        runtime, _owner_query(_QUERY_PROJECT_ITEMS, owner_type), {"login": owner, "number": number}
    )
    items = _project_node(data, owner_type).get("items")
    nodes = items.get("nodes") if isinstance(items, dict) else None
    if not isinstance(nodes, list):
        raise SafeError(code="GitHub", message="Unexpected project items response")
    return {"items": [n for n in nodes if isinstance(n, dict)]}


async def _tool_create_project_issue(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    title = require_str(arguments, "title")
    body = optional_str(arguments, "body")

    repo_data = await _execute(runtime, _QUERY_REPOSITORY_ID, {"owner": owner, "name": repo})
    repository = repo_data.get("repository")
    repository_id = repository.get("id") if isinstance(repository, dict) else None
    if not isinstance(repository_id, str):
        raise SafeError(code="GitHub", message="Unexpected repository response")

    issue_input: dict[str, Any] = {"repositoryId": repository_id, "title": title}
    if body:
        issue_input["body"] = body
    data = await _execute(runtime, _MUTATION_CREATE_ISSUE, {"input": issue_input})

    payload = data.get("createIssue")
    issue = payload.get("issue") if isinstance(payload, dict) else None
    issue_id = issue.get("id") if isinstance(issue, dict) else None
    if not isinstance(issue_id, str):
        raise SafeError(code="GitHub", message="Unexpected create-issue response")
    return {"issue": {"id": issue_id}}


async def _tool_add_issue_to_project(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    project_id = require_str(arguments, "project_id")
    issue_id = require_str(arguments, "issue_id")
    data = await _execute(runtime, _MUTATION_ADD_ITEM, {"input": {"projectId": project_id, "contentId": issue_id}})

    payload = data.get("addProjectV2ItemById")
    item = payload.get("item") if isinstance(payload, dict) else None
    item_id = item.get("id") if isinstance(item, dict) else None
    if not isinstance(item_id, str):
        raise SafeError(code="GitHub", message="Unexpected add-to-project response")
    return {"item": {"id": item_id}}


async def _tool_update_project_item_field(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    project_id = require_str(arguments, "project_id")
    item_id = require_str(arguments, "item_id")
    field_id = require_str(arguments, "field_id")
    text_value = optional_str(arguments, "text_value")

    value: dict[str, Any] = {}
    if text_value:
        value["text"] = text_value
    await _execute(
        runtime,
        _MUTATION_UPDATE_ITEM_FIELD,
        {"input": {"projectId": project_id, "itemId": item_id, "fieldId": field_id, "value": value}},
    )
    return {"item": {"id": item_id, "field_id": field_id}}


async def _tool_create_draft_issue(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    project_id = require_str(arguments, "project_id")
    title = require_str(arguments, "title")
    body = optional_str(arguments, "body")

    draft_input: dict[str, Any] = {"projectId": project_id, "title": title}
    if body:
        draft_input["body"] = body
    data = await _execute(runtime, _MUTATION_ADD_DRAFT_ISSUE, {"input": draft_input})

    payload = data.get("addProjectV2DraftIssue")
    item = payload.get("projectItem") if isinstance(payload, dict) else None
    item_id = item.get("id") if isinstance(item, dict) else None
    if not isinstance(item_id, str):
        raise SafeError(code="GitHub", message="Unexpected draft issue response")
    return {"item": {"id": item_id}}


async def _tool_delete_project_item(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    project_id = require_str(arguments, "project_id")
    item_id = require_str(arguments, "item_id")
    data = await _execute(runtime, _MUTATION_DELETE_ITEM, {"input": {"projectId": project_id, "itemId": item_id}})

    payload = data.get("deleteProjectV2Item")
    deleted = payload.get("deletedItemId") if isinstance(payload, dict) else None
    return {"deleted_item_id": deleted if isinstance(deleted, str) else item_id}


_OWNER = {"type": "string", "minLength": 1, "description": "Owner login (user or organization)"}
_OWNER_TYPE = {"type": "string", "enum": list(_OWNER_TYPES), "description": "Owner type"}
_PROJECT_NUMBER = {"type": "number", "description": "Project number"}
_PROJECT_ID = {"type": "string", "minLength": 1, "description": "Project ID"}
_ITEM_ID = {"type": "string", "minLength": 1, "description": "Item ID"}


def read_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="list_projects",
            description=t("TOOL_LIST_PROJECTS_DESCRIPTION", "List Projects for a user or organization"),
            input_schema=object_schema({"owner": _OWNER, "owner_type": _OWNER_TYPE}, ["owner"]),
            handler=_tool_list_projects,
            annotations=ToolAnnotations(title=t("TOOL_LIST_PROJECTS_USER_TITLE", "List projects"), read_only_hint=True),
        ),
        Tool(
            name="get_project_fields",
            description=t("TOOL_GET_PROJECT_FIELDS_DESCRIPTION", "Get fields for a project"),
            input_schema=object_schema(
                {"owner": _OWNER, "owner_type": _OWNER_TYPE, "number": _PROJECT_NUMBER}, ["owner", "number"]
            ),
            handler=_tool_get_project_fields,
            annotations=ToolAnnotations(title=t("TOOL_GET_PROJECT_FIELDS_USER_TITLE", "Get project fields"), read_only_hint=True),
        ),
        Tool(
            name="get_project_items",
            description=t("TOOL_GET_PROJECT_ITEMS_DESCRIPTION", "Get items for a project"),
            input_schema=object_schema(
                {"owner": _OWNER, "owner_type": _OWNER_TYPE, "number": _PROJECT_NUMBER}, ["owner", "number"]
            ),
            handler=_tool_get_project_items,
            annotations=ToolAnnotations(title=t("TOOL_GET_PROJECT_ITEMS_USER_TITLE", "Get project items"), read_only_hint=True),
        ),
    ]


def write_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="create_project_issue",
            description=t("TOOL_CREATE_PROJECT_ISSUE_DESCRIPTION", "Create a new issue"),
            input_schema=object_schema(
                {
                    "owner": {"type": "string", "minLength": 1, "description": "Repository owner"},
                    "repo": {"type": "string", "minLength": 1, "description": "Repository name"},
                    "title": {"type": "string", "minLength": 1, "description": "Issue title"},
                    "body": {"type": "string", "description": "Issue body"},
                },
                ["owner", "repo", "title"],
            ),
            handler=_tool_create_project_issue,
            annotations=ToolAnnotations(title=t("TOOL_CREATE_PROJECT_ISSUE_USER_TITLE", "Create issue"), read_only_hint=False),
        ),
        Tool(
            name="add_issue_to_project",
            description=t("TOOL_ADD_ISSUE_TO_PROJECT_DESCRIPTION", "Add an issue to a project"),
            input_schema=object_schema(
                {"project_id": _PROJECT_ID, "issue_id": {"type": "string", "minLength": 1, "description": "Issue node ID"}},
                ["project_id", "issue_id"],
            ),
            handler=_tool_add_issue_to_project,
            annotations=ToolAnnotations(
                title=t("TOOL_ADD_ISSUE_TO_PROJECT_USER_TITLE", "Add issue to project"), read_only_hint=False
            ),
        ),
        Tool(
            name="update_project_item_field",
            description=t("TOOL_UPDATE_PROJECT_ITEM_FIELD_DESCRIPTION", "Update a project item field"),
            input_schema=object_schema(
                {
                    "project_id": _PROJECT_ID,
                    "item_id": _ITEM_ID,
                    "field_id": {"type": "string", "minLength": 1, "description": "Field ID"},
                    "text_value": {"type": "string", "description": "Text value"},
                },
                ["project_id", "item_id", "field_id"],
            ),
            handler=_tool_update_project_item_field,
            annotations=ToolAnnotations(
                title=t("TOOL_UPDATE_PROJECT_ITEM_FIELD_USER_TITLE", "Update project item field"), read_only_hint=False
            ),
        ),
        Tool(
            name="create_draft_issue",
            description=t("TOOL_CREATE_DRAFT_ISSUE_DESCRIPTION", "Create a draft issue in a project"),
            input_schema=object_schema(
                {
                    "project_id": _PROJECT_ID,
                    "title": {"type": "string", "minLength": 1, "description": "Issue title"},
                    "body": {"type": "string", "description": "Issue body"},
                },
                ["project_id", "title"],
            ),
            handler=_tool_create_draft_issue,
            annotations=ToolAnnotations(title=t("TOOL_CREATE_DRAFT_ISSUE_USER_TITLE", "Create draft issue"), read_only_hint=False),
        ),
        Tool(
            name="delete_project_item",
            description=t("TOOL_DELETE_PROJECT_ITEM_DESCRIPTION", "Delete a project item"),
            input_schema=object_schema({"project_id": _PROJECT_ID, "item_id": _ITEM_ID}, ["project_id", "item_id"]),
            handler=_tool_delete_project_item,
            annotations=ToolAnnotations(title=t("TOOL_DELETE_PROJECT_ITEM_USER_TITLE", "Delete project item"), read_only_hint=False),
        ),
    ]
