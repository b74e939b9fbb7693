"""Actions toolset tests: workflows, runs, job logs and artifacts."""

from __future__ import annotations

import pytest
from github_toolsets_mcp.config import LimitsConfig
from github_toolsets_mcp.dispatch import dispatch_tool
from github_toolsets_mcp.errors import SafeError
from support import DummyGitHub, make_config, make_runtime

BASE = "/repos/octo/repo/actions"
REPO = {"owner": "octo", "repo": "repo"}


@pytest.mark.asyncio
async def test_list_workflows() -> None:
    gh = DummyGitHub({("GET", f"{BASE}/workflows"): {"total_count": 1, "workflows": [{"id": 1}]}})

    out = await dispatch_tool(make_runtime(github=gh), "list_workflows", dict(REPO))

    assert out["total_count"] == 1
    assert out["workflows"] == [{"id": 1}]


@pytest.mark.asyncio
async def test_list_workflow_runs_filters() -> None:
    gh = DummyGitHub({("GET", f"{BASE}/workflows/ci.yml/runs"): {"total_count": 0, "workflow_runs": []}})

    out = await dispatch_tool(
        make_runtime(github=gh),
        "list_workflow_runs",
        {**REPO, "workflow_id": "ci.yml", "event": "push", "status": "completed", "branch": "main"},
    )

    assert out["workflow_runs"] == []
    assert gh.calls[0]["params"] == {"page": "1", "per_page": "30", "branch": "main", "event": "push", "status": "completed"}


@pytest.mark.asyncio
async def test_list_workflow_runs_rejects_unknown_event() -> None:
    out = await dispatch_tool(make_runtime(github=DummyGitHub()), "list_workflow_runs", {**REPO, "workflow_id": "1", "event": "nope"})

    assert out["ok"] is False
    assert out["code"] == "UserInput"


@pytest.mark.asyncio
@pytest.mark.parametrize(("workflow_id", "workflow_type"), [("123", "workflow_id"), ("ci.yml", "workflow_file")])
async def test_run_workflow(workflow_id: str, workflow_type: str) -> None:
    gh = DummyGitHub({("POST", f"{BASE}/workflows/{workflow_id}/dispatches"): (204, "204 No Content")})

    out = await dispatch_tool(
        make_runtime(github=gh), "run_workflow", {**REPO, "workflow_id": workflow_id, "ref": "main", "inputs": {"env": "prod"}}
    )

    assert out["ok"] is True
    assert out["message"] == "Workflow run has been queued"
    assert out["workflow_type"] == workflow_type
    assert out["status_code"] == 204
    assert gh.calls[0]["json_body"] == {"ref": "main", "inputs": {"env": "prod"}}


@pytest.mark.asyncio
async def test_get_workflow_run_logs_returns_url_and_tip() -> None:
    gh = DummyGitHub({("GET", f"{BASE}/runs/42/logs"): "https://logs.example.com/run42.zip"})

    out = await dispatch_tool(make_runtime(github=gh), "get_workflow_run_logs", {**REPO, "run_id": 42})

    assert out["logs_url"] == "https://logs.example.com/run42.zip"
    assert "failed_only: true" in out["optimization_tip"]
    assert "run_id: 42" in out["optimization_tip"]


@pytest.mark.asyncio
async def test_list_workflow_jobs() -> None:
    gh = DummyGitHub({("GET", f"{BASE}/runs/42/jobs"): {"total_count": 2, "jobs": [{"id": 1}, {"id": 2}]}})

    out = await dispatch_tool(make_runtime(github=gh), "list_workflow_jobs", {**REPO, "run_id": 42, "filter": "latest"})

    assert out["jobs"] == {"total_count": 2, "jobs": [{"id": 1}, {"id": 2}]}
    assert gh.calls[0]["params"]["filter"] == "latest"


@pytest.mark.asyncio
async def test_get_job_logs_single_job_url() -> None:
    gh = DummyGitHub({("GET", f"{BASE}/jobs/7/logs"): "https://logs.example.com/job7"})

    out = await dispatch_tool(make_runtime(github=gh), "get_job_logs", {**REPO, "job_id": 7})

    assert out["ok"] is True
    assert out["job_id"] == 7
    assert out["logs_url"] == "https://logs.example.com/job7"
    assert out["message"] == "Job logs are available for download"


@pytest.mark.asyncio
async def test_get_job_logs_single_job_content_respects_limit() -> None:
    gh = DummyGitHub(
        {("GET", f"{BASE}/jobs/7/logs"): "https://logs.example.com/job7"},
        downloads={"https://logs.example.com/job7": "step 1 ok"},
    )
    config = make_config(limits=LimitsConfig(max_attempts=1, max_backoff_s=0.0, log_content_max_bytes=123))

    out = await dispatch_tool(make_runtime(github=gh, config=config), "get_job_logs", {**REPO, "job_id": 7, "return_content": True})

    assert out["logs_content"] == "step 1 ok"
    assert out["message"] == "Job logs content retrieved successfully"
    assert gh.calls[-1]["max_bytes"] == 123


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("arguments", "message"),
    [
        ({"failed_only": True}, "run_id is required when failed_only is true"),
        ({}, "job_id is required when failed_only is false"),
        ({"run_id": 1}, "job_id is required when failed_only is false"),
    ],
)
async def test_get_job_logs_argument_rules(arguments: dict, message: str) -> None:
    out = await dispatch_tool(make_runtime(github=DummyGitHub()), "get_job_logs", {**REPO, **arguments})

    assert out["ok"] is False
    assert out["code"] == "UserInput"
    assert out["message"] == message


@pytest.mark.asyncio
async def test_get_job_logs_failed_only_without_failures() -> None:
    gh = DummyGitHub({("GET", f"{BASE}/runs/9/jobs"): {"jobs": [{"id": 1, "conclusion": "success"}]}})

    out = await dispatch_tool(make_runtime(github=gh), "get_job_logs", {**REPO, "run_id": 9, "failed_only": True})

    assert out["message"] == "No failed jobs found in this workflow run"
    assert out["total_jobs"] == 1
    assert out["failed_jobs"] == 0
    assert gh.calls[0]["params"] == {"filter": "latest", "per_page": "100"}


@pytest.mark.asyncio
async def test_get_job_logs_failed_only_reports_partial_failures_inline() -> None:
    gh = DummyGitHub(
        {
            ("GET", f"{BASE}/runs/9/jobs"): {
                "jobs": [
                    {"id": 1, "name": "lint", "conclusion": "failure"},
                    {"id": 2, "name": "test", "conclusion": "failure"},
                    {"id": 3, "name": "build", "conclusion": "success"},
                ]
            },
            ("GET", f"{BASE}/jobs/1/logs"): "https://logs.example.com/1",
            ("GET", f"{BASE}/jobs/2/logs"): SafeError(code="GitHub", message="GitHub request failed", status_code=410),
        }
    )

    out = await dispatch_tool(make_runtime(github=gh), "get_job_logs", {**REPO, "run_id": 9, "failed_only": True})

    assert out["ok"] is True
    assert out["message"] == "Retrieved logs for 2 failed jobs"
    assert out["total_jobs"] == 3
    assert out["failed_jobs"] == 2
    assert out["return_format"] == {"content": False, "urls": True}
    assert out["logs"][0]["logs_url"] == "https://logs.example.com/1"
    assert out["logs"][0]["job_name"] == "lint"
    assert out["logs"][1] == {
        "job_id": 2,
        "job_name": "test",
        "error": "failed to get job logs for job 2: GitHub request failed",
    }


@pytest.mark.asyncio
async def test_get_job_logs_failed_only_listing_error_is_wrapped() -> None:
    gh = DummyGitHub({("GET", f"{BASE}/runs/9/jobs"): SafeError(code="GitHub", message="GitHub request failed", status_code=404)})

    out = await dispatch_tool(make_runtime(github=gh), "get_job_logs", {**REPO, "run_id": 9, "failed_only": True})

    assert out["ok"] is False
    assert out["message"] == "failed to list workflow jobs: GitHub request failed"
    assert out["status_code"] == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("tool", "suffix", "message"),
    [
        ("rerun_workflow_run", "rerun", "Workflow run has been queued for re-run"),
        ("rerun_failed_jobs", "rerun-failed-jobs", "Failed jobs have been queued for re-run"),
        ("cancel_workflow_run", "cancel", "Workflow run has been cancelled"),
    ],
)
async def test_run_actions(tool: str, suffix: str, message: str) -> None:
    gh = DummyGitHub({("POST", f"{BASE}/runs/5/{suffix}"): (202, "202 Accepted")})

    out = await dispatch_tool(make_runtime(github=gh), tool, {**REPO, "run_id": 5})

    assert out["message"] == message
    assert out["run_id"] == 5
    assert out["status"] == "202 Accepted"


@pytest.mark.asyncio
async def test_artifacts_and_usage() -> None:
    gh = DummyGitHub(
        {
            ("GET", f"{BASE}/runs/5/artifacts"): {"total_count": 1, "artifacts": [{"id": 77}]},
            ("GET", f"{BASE}/artifacts/77/zip"): "https://blob.example.com/77.zip",
            ("GET", f"{BASE}/runs/5/timing"): {"billable": {}, "run_duration_ms": 1000},
        }
    )
    runtime = make_runtime(github=gh)

    artifacts = await dispatch_tool(runtime, "list_workflow_run_artifacts", {**REPO, "run_id": 5})
    download = await dispatch_tool(runtime, "download_workflow_run_artifact", {**REPO, "artifact_id": 77})
    usage = await dispatch_tool(runtime, "get_workflow_run_usage", {**REPO, "run_id": 5})

    assert artifacts["artifacts"] == [{"id": 77}]
    assert download["download_url"] == "https://blob.example.com/77.zip"
    assert download["artifact_id"] == 77
    assert usage["usage"]["run_duration_ms"] == 1000


@pytest.mark.asyncio
async def test_delete_workflow_run_logs() -> None:
    gh = DummyGitHub({("DELETE", f"{BASE}/runs/5/logs"): (204, "204 No Content")})

    out = await dispatch_tool(make_runtime(github=gh), "delete_workflow_run_logs", {**REPO, "run_id": 5})

    assert out["message"] == "Workflow run logs have been deleted"
    assert out["status_code"] == 204


def test_delete_workflow_run_logs_is_marked_destructive() -> None:
    runtime = make_runtime()
    tool = runtime.group.resolve_tool("delete_workflow_run_logs")
    assert tool.annotations.destructive_hint is True
    assert tool.annotations.read_only_hint is False
