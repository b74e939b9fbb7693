"""Actions toolset: workflows, runs, jobs, logs and artifacts.

Log and artifact archives are not proxied. GitHub answers those endpoints with a
redirect to a short-lived URL, which is returned to the caller; only job logs
can optionally be downloaded inline (`return_content`).
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import SafeError
from ..params import optional_bool, optional_int, optional_object, optional_str, pagination_params, require_int, require_str
from ..runtime import Runtime
from ..toolsets import Tool, ToolAnnotations
from ..translations import TranslationHelper
from . import repo_schema

logger = logging.getLogger(__name__)

_RUN_ID = {"type": "number", "description": "The unique identifier of the workflow run"}

_WORKFLOW_RUN_EVENTS = [
    "branch_protection_rule",
    "check_run",
    "check_suite",
    "create",
    "delete",
    "deployment",
    "deployment_status",
    "discussion",
    "discussion_comment",
    "fork",
    "gollum",
    "issue_comment",
    "issues",
    "label",
    "merge_group",
    "milestone",
    "page_build",
    "public",
    "pull_request",
    "pull_request_review",
    "pull_request_review_comment",
    "pull_request_target",
    "push",
    "registry_package",
    "release",
    "repository_dispatch",
    "schedule",
    "status",
    "watch",
    "workflow_call",
    "workflow_dispatch",
    "workflow_run",
]


async def _get_json(runtime: Runtime, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
    client = await runtime.providers.get_client()
    data = await client.request_json(method="GET", path=path, params=params, budget=runtime.budget())
    if not isinstance(data, dict):
        raise SafeError(code="GitHub", message="Unexpected actions response")
    return data


async def _post_status(runtime: Runtime, path: str, json_body: dict | None = None) -> tuple[int, str]:
    client = await runtime.providers.get_client()
    return await client.request_status(method="POST", path=path, json_body=json_body, budget=runtime.budget())


async def _tool_list_workflows(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    data = await _get_json(runtime, f"/repos/{owner}/{repo}/actions/workflows", pagination_params(arguments))
    return {"total_count": data.get("total_count"), "workflows": data.get("workflows") or []}


async def _tool_list_workflow_runs(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    workflow_id = require_str(arguments, "workflow_id")
    params = pagination_params(arguments)
    for key in ("actor", "branch", "event", "status"):
        value = optional_str(arguments, key)
        if value:
            params[key] = value

    data = await _get_json(runtime, f"/repos/{owner}/{repo}/actions/workflows/{workflow_id}/runs", params)
    return {"total_count": data.get("total_count"), "workflow_runs": data.get("workflow_runs") or []}


async def _tool_run_workflow(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    workflow_id = require_str(arguments, "workflow_id")
    ref = require_str(arguments, "ref")
    inputs = optional_object(arguments, "inputs")

    # Numeric ids and file names (e.g. ci.yml) share the same endpoint shape.
    workflow_type = "workflow_id" if workflow_id.isdigit() else "workflow_file"

    body: dict[str, Any] = {"ref": ref}
    if inputs is not None:
        body["inputs"] = inputs
    status_code, status = await _post_status(
        runtime, f"/repos/{owner}/{repo}/actions/workflows/{workflow_id}/dispatches", body
    )
    return {
        "message": "Workflow run has been queued",
        "workflow_type": workflow_type,
        "workflow_id": workflow_id,
        "ref": ref,
        "inputs": inputs,
        "status": status,
        "status_code": status_code,
    }


async def _tool_get_workflow_run(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    run_id = require_int(arguments, "run_id")
    data = await _get_json(runtime, f"/repos/{owner}/{repo}/actions/runs/{run_id}")
    return {"workflow_run": data}


async def _tool_get_workflow_run_logs(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    run_id = require_int(arguments, "run_id")
    client = await runtime.providers.get_client()
    url = await client.request_redirect_location(
        path=f"/repos/{owner}/{repo}/actions/runs/{run_id}/logs",
        budget=runtime.budget(),
    )
    return {
        "logs_url": url,
        "message": "Workflow run logs are available for download",
        "note": (
            "The logs_url provides a download link for the complete workflow run logs as a ZIP archive. "
            "You can download this archive to extract and examine individual job logs."
        ),
        "warning": (
            "This downloads ALL logs as a ZIP file which can be large and expensive. For debugging failed jobs, "
            "consider using get_job_logs with failed_only=true and run_id instead."
        ),
        "optimization_tip": (
            f"Use: get_job_logs with parameters {{run_id: {run_id}, failed_only: true}} "
            "for more efficient failed job debugging"
        ),
    }


async def _tool_list_workflow_jobs(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    run_id = require_int(arguments, "run_id")
    params = pagination_params(arguments)
    job_filter = optional_str(arguments, "filter")
    if job_filter:
        params["filter"] = job_filter

    data = await _get_json(runtime, f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs", params)
    return {
        "jobs": {"total_count": data.get("total_count"), "jobs": data.get("jobs") or []},
        "optimization_tip": (
            f"For debugging failed jobs, consider using get_job_logs with failed_only=true and run_id={run_id} "
            "to get logs directly without needing to list jobs first"
        ),
    }


async def _job_log_data(
    runtime: Runtime, *, owner: str, repo: str, job_id: int, job_name: str, return_content: bool
) -> dict[str, Any]:
    """Log location (or content) for one job; SafeError messages name the job."""
    client = await runtime.providers.get_client()
    try:
        url = await client.request_redirect_location(
            path=f"/repos/{owner}/{repo}/actions/jobs/{job_id}/logs",
            budget=runtime.budget(),
        )
    except SafeError as exc:
        raise SafeError(
            code=exc.code,
            message=f"failed to get job logs for job {job_id}: {exc.message}",
            hint=exc.hint,
            status_code=exc.status_code,
        ) from exc

    result: dict[str, Any] = {"job_id": job_id}
    if job_name:
        result["job_name"] = job_name

    if return_content:
        try:
            content = await client.download_text(
                url=url,
                max_bytes=runtime.config.limits.log_content_max_bytes,
                budget=runtime.budget(),
            )
        except SafeError as exc:
            raise SafeError(
                code=exc.code,
                message=f"failed to download log content for job {job_id}: {exc.message}",
                status_code=exc.status_code,
            ) from exc
        result["logs_content"] = content
        result["message"] = "Job logs content retrieved successfully"
    else:
        result["logs_url"] = url
        result["message"] = "Job logs are available for download"
        result["note"] = (
            "The logs_url provides a download link for the individual job logs in plain text format. "
            "Use return_content=true to get the actual log content."
        )
    return result


async def _failed_job_logs(
    runtime: Runtime, *, owner: str, repo: str, run_id: int, return_content: bool
) -> dict[str, Any]:
    try:
        data = await _get_json(
            runtime,
            f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs",
            {"filter": "latest", "per_page": "100"},
        )
    except SafeError as exc:
        raise SafeError(
            code=exc.code,
            message=f"failed to list workflow jobs: {exc.message}",
            hint=exc.hint,
            status_code=exc.status_code,
        ) from exc

    jobs = [j for j in data.get("jobs") or [] if isinstance(j, dict)]
    failed = [j for j in jobs if j.get("conclusion") == "failure"]
    if not failed:
        return {
            "message": "No failed jobs found in this workflow run",
            "run_id": run_id,
            "total_jobs": len(jobs),
            "failed_jobs": 0,
        }

    logs: list[dict[str, Any]] = []
    for job in failed:
        job_id = job.get("id")
        job_name = job.get("name") if isinstance(job.get("name"), str) else ""
        try:
            entry = await _job_log_data(
                runtime,
                owner=owner,
                repo=repo,
                job_id=job_id,
                job_name=job_name,
                return_content=return_content,
            )
        except SafeError as exc:
            # Keep going; one unreadable job must not hide the others.
            logger.warning("Job %s logs unavailable: %s", job_id, exc.message)
            entry = {"job_id": job_id, "job_name": job_name, "error": exc.message}
        logs.append(entry)

    return {
        "message": f"Retrieved logs for {len(failed)} failed jobs",
        "run_id": run_id,
        "total_jobs": len(jobs),
        "failed_jobs": len(failed),
        "logs": logs,
        "return_format": {"content": return_content, "urls": not return_content},
    }


async def _tool_get_job_logs(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    job_id = optional_int(arguments, "job_id")
    run_id = optional_int(arguments, "run_id")
    failed_only = optional_bool(arguments, "failed_only")
    return_content = optional_bool(arguments, "return_content")

    if failed_only and run_id == 0:
        raise SafeError(code="UserInput", message="run_id is required when failed_only is true")
    if not failed_only and job_id == 0:
        raise SafeError(code="UserInput", message="job_id is required when failed_only is false")

    if failed_only and run_id > 0:
        return await _failed_job_logs(runtime, owner=owner, repo=repo, run_id=run_id, return_content=return_content)
    if job_id > 0:
        return await _job_log_data(
            runtime, owner=owner, repo=repo, job_id=job_id, job_name="", return_content=return_content
        )
    raise SafeError(
        code="UserInput",
        message=(
            "Either job_id must be provided for single job logs, "
            "or run_id with failed_only=true for failed job logs"
        ),
    )


async def _run_action(runtime: Runtime, arguments: dict[str, Any], *, suffix: str, message: str) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    run_id = require_int(arguments, "run_id")
    status_code, status = await _post_status(runtime, f"/repos/{owner}/{repo}/actions/runs/{run_id}/{suffix}")
    return {"message": message, "run_id": run_id, "status": status, "status_code": status_code}


async def _tool_rerun_workflow_run(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    return await _run_action(runtime, arguments, suffix="rerun", message="Workflow run has been queued for re-run")


async def _tool_rerun_failed_jobs(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    return await _run_action(
        runtime, arguments, suffix="rerun-failed-jobs", message="Failed jobs have been queued for re-run"
    )


async def _tool_cancel_workflow_run(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    return await _run_action(runtime, arguments, suffix="cancel", message="Workflow run has been cancelled")


async def _tool_list_workflow_run_artifacts(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    run_id = require_int(arguments, "run_id")
    data = await _get_json(
        runtime, f"/repos/{owner}/{repo}/actions/runs/{run_id}/artifacts", pagination_params(arguments)
    )
    return {"total_count": data.get("total_count"), "artifacts": data.get("artifacts") or []}


async def _tool_download_workflow_run_artifact(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    artifact_id = require_int(arguments, "artifact_id")
    client = await runtime.providers.get_client()
    url = await client.request_redirect_location(
        path=f"/repos/{owner}/{repo}/actions/artifacts/{artifact_id}/zip",
        budget=runtime.budget(),
    )
    return {
        "download_url": url,
        "message": "Artifact is available for download",
        "note": (
            "The download_url provides a download link for the artifact as a ZIP archive. "
            "The link is temporary and expires after a short time."
        ),
        "artifact_id": artifact_id,
    }


async def _tool_delete_workflow_run_logs(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    run_id = require_int(arguments, "run_id")
    client = await runtime.providers.get_client()
    status_code, status = await client.request_status(
        method="DELETE",
        path=f"/repos/{owner}/{repo}/actions/runs/{run_id}/logs",
        budget=runtime.budget(),
    )
    return {
        "message": "Workflow run logs have been deleted",
        "run_id": run_id,
        "status": status,
        "status_code": status_code,
    }


async def _tool_get_workflow_run_usage(runtime: Runtime, arguments: dict[str, Any]) -> dict[str, Any]:
    owner = require_str(arguments, "owner")
    repo = require_str(arguments, "repo")
    run_id = require_int(arguments, "run_id")
    data = await _get_json(runtime, f"/repos/{owner}/{repo}/actions/runs/{run_id}/timing")
    return {"usage": data}


def _run_tool(name: str, key: str, description: str, title: str, handler, t: TranslationHelper, **hints) -> Tool:
    return Tool(
        name=name,
        description=t(f"TOOL_{key}_DESCRIPTION", description),
        input_schema=repo_schema({"run_id": _RUN_ID}, ["run_id"]),
        handler=handler,
        annotations=ToolAnnotations(title=t(f"TOOL_{key}_USER_TITLE", title), **hints),
    )


def read_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="list_workflows",
            description=t("TOOL_LIST_WORKFLOWS_DESCRIPTION", "List workflows in a repository"),
            input_schema=repo_schema(paginated=True),
            handler=_tool_list_workflows,
            annotations=ToolAnnotations(title=t("TOOL_LIST_WORKFLOWS_USER_TITLE", "List workflows"), read_only_hint=True),
        ),
        Tool(
            name="list_workflow_runs",
            description=t("TOOL_LIST_WORKFLOW_RUNS_DESCRIPTION", "List workflow runs for a specific workflow"),
            input_schema=repo_schema(
                {
                    "workflow_id": {"type": "string", "minLength": 1, "description": "The workflow ID or workflow file name"},
                    "actor": {
                        "type": "string",
                        "description": "Returns someone's workflow runs. Use the login for the user who created the workflow run.",
                    },
                    "branch": {
                        "type": "string",
                        "description": "Returns workflow runs associated with a branch. Use the name of the branch.",
                    },
                    "event": {
                        "type": "string",
                        "enum": _WORKFLOW_RUN_EVENTS,
                        "description": "Returns workflow runs for a specific event type",
                    },
                    "status": {
                        "type": "string",
                        "enum": ["queued", "in_progress", "completed", "requested", "waiting"],
                        "description": "Returns workflow runs with the check run status",
                    },
                },
                ["workflow_id"],
                paginated=True,
            ),
            handler=_tool_list_workflow_runs,
            annotations=ToolAnnotations(title=t("TOOL_LIST_WORKFLOW_RUNS_USER_TITLE", "List workflow runs"), read_only_hint=True),
        ),
        _run_tool(
            "get_workflow_run",
            "GET_WORKFLOW_RUN",
            "Get details of a specific workflow run",
            "Get workflow run",
            _tool_get_workflow_run,
            t,
            read_only_hint=True,
        ),
        _run_tool(
            "get_workflow_run_logs",
            "GET_WORKFLOW_RUN_LOGS",
            "Download logs for a specific workflow run (EXPENSIVE: downloads ALL logs as ZIP. "
            "Consider using get_job_logs with failed_only=true for debugging failed jobs)",
            "Get workflow run logs",
            _tool_get_workflow_run_logs,
            t,
            read_only_hint=True,
        ),
        Tool(
            name="list_workflow_jobs",
            description=t("TOOL_LIST_WORKFLOW_JOBS_DESCRIPTION", "List jobs for a specific workflow run"),
            input_schema=repo_schema(
                {
                    "run_id": _RUN_ID,
                    "filter": {
                        "type": "string",
                        "enum": ["latest", "all"],
                        "description": "Filters jobs by their completed_at timestamp",
                    },
                },
                ["run_id"],
                paginated=True,
            ),
            handler=_tool_list_workflow_jobs,
            annotations=ToolAnnotations(title=t("TOOL_LIST_WORKFLOW_JOBS_USER_TITLE", "List workflow jobs"), read_only_hint=True),
        ),
        Tool(
            name="get_job_logs",
            description=t(
                "TOOL_GET_JOB_LOGS_DESCRIPTION",
                "Download logs for a specific workflow job or efficiently get all failed job logs for a workflow run",
            ),
            input_schema=repo_schema(
                {
                    "job_id": {
                        "type": "number",
                        "description": "The unique identifier of the workflow job (required for single job logs)",
                    },
                    "run_id": {"type": "number", "description": "Workflow run ID (required when using failed_only)"},
                    "failed_only": {"type": "boolean", "description": "When true, gets logs for all failed jobs in run_id"},
                    "return_content": {"type": "boolean", "description": "Returns actual log content instead of URLs"},
                }
            ),
            handler=_tool_get_job_logs,
            annotations=ToolAnnotations(title=t("TOOL_GET_JOB_LOGS_USER_TITLE", "Get job logs"), read_only_hint=True),
        ),
        Tool(
            name="list_workflow_run_artifacts",
            description=t("TOOL_LIST_WORKFLOW_RUN_ARTIFACTS_DESCRIPTION", "List artifacts for a workflow run"),
            input_schema=repo_schema({"run_id": _RUN_ID}, ["run_id"], paginated=True),
            handler=_tool_list_workflow_run_artifacts,
            annotations=ToolAnnotations(
                title=t("TOOL_LIST_WORKFLOW_RUN_ARTIFACTS_USER_TITLE", "List workflow artifacts"), read_only_hint=True
            ),
        ),
        Tool(
            name="download_workflow_run_artifact",
            description=t("TOOL_DOWNLOAD_WORKFLOW_RUN_ARTIFACT_DESCRIPTION", "Get download URL for a workflow run artifact"),
            input_schema=repo_schema(
                {"artifact_id": {"type": "number", "description": "The unique identifier of the artifact"}},
                ["artifact_id"],
            ),
            handler=_tool_download_workflow_run_artifact,
            annotations=ToolAnnotations(
                title=t("TOOL_DOWNLOAD_WORKFLOW_RUN_ARTIFACT_USER_TITLE", "Download workflow artifact"), read_only_hint=True
            ),
        ),
        _run_tool(
            "get_workflow_run_usage",
            "GET_WORKFLOW_RUN_USAGE",
            "Get usage metrics for a workflow run",
            "Get workflow usage",
            _tool_get_workflow_run_usage,
            t,
            read_only_hint=True,
        ),
    ]


def write_tools(t: TranslationHelper) -> list[Tool]:
    return [
        Tool(
            name="run_workflow",
            description=t("TOOL_RUN_WORKFLOW_DESCRIPTION", "Run an Actions workflow by workflow ID or filename"),
            input_schema=repo_schema(
                {
                    "workflow_id": {
                        "type": "string",
                        "minLength": 1,
                        "description": "The workflow ID (numeric) or workflow file name (e.g., main.yml, ci.yaml)",
                    },
                    "ref": {
                        "type": "string",
                        "minLength": 1,
                        "description": "The git reference for the workflow. The reference can be a branch or tag name.",
                    },
                    "inputs": {"type": "object", "description": "Inputs the workflow accepts"},
                },
                ["workflow_id", "ref"],
            ),
            handler=_tool_run_workflow,
            annotations=ToolAnnotations(title=t("TOOL_RUN_WORKFLOW_USER_TITLE", "Run workflow"), read_only_hint=False),
        ),
        _run_tool(
            "rerun_workflow_run",
            "RERUN_WORKFLOW_RUN",
            "Re-run an entire workflow run",
            "Rerun workflow run",
            _tool_rerun_workflow_run,
            t,
            read_only_hint=False,
        ),
        _run_tool(
            "rerun_failed_jobs",
            "RERUN_FAILED_JOBS",
            "Re-run only the failed jobs in a workflow run",
            "Rerun failed jobs",
            _tool_rerun_failed_jobs,
            t,
            read_only_hint=False,
        ),
        _run_tool(
            "cancel_workflow_run",
            "CANCEL_WORKFLOW_RUN",
            "Cancel a workflow run",
            "Cancel workflow run",
            _tool_cancel_workflow_run,
            t,
            read_only_hint=False,
        ),
        _run_tool(
            "delete_workflow_run_logs",
            "DELETE_WORKFLOW_RUN_LOGS",
            "Delete logs for a workflow run",
            "Delete workflow logs",
            _tool_delete_workflow_run_logs,
            t,
            read_only_hint=False,
            destructive_hint=True,
        ),
    ]
