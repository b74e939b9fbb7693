"""Repository file content: revision selection, raw fetch and text/binary classification.

Serves the `repo://` resource templates and backs the `get_file_contents` tool.
Exactly one revision selector (sha, branch, tag, pull request number) or none is
accepted; it is resolved once into RawContentOpts before the raw URL is built.
"""

from __future__ import annotations

import base64
import mimetypes
import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from .errors import SafeError
from .raw_client import RawContentOpts
from .toolsets import ResourceTemplate
from .translations import TranslationHelper

if TYPE_CHECKING:
    from .runtime import Runtime


@dataclass(frozen=True, slots=True)
class Head:
    """The repository's default branch."""


@dataclass(frozen=True, slots=True)
class Branch:
    name: str


@dataclass(frozen=True, slots=True)
class Tag:
    name: str


@dataclass(frozen=True, slots=True)
class Sha:
    sha: str


@dataclass(frozen=True, slots=True)
class PullRequest:
    """Head commit of a pull request, looked up via the REST API."""

    number: int


RefSelector = Union[Head, Branch, Tag, Sha, PullRequest]


@dataclass(frozen=True, slots=True)
class ResourceContent:
    """One piece of resource content; exactly one of `text` / `blob` is set."""

    uri: str
    mime_type: str
    text: str | None = None
    blob: str | None = None


class RawContentNotFoundError(SafeError):
    """The raw host answered 404 for the path (it may be a directory, or missing)."""


class RawContentError(SafeError):
    """The raw host answered with an error status other than 404."""


def ref_selector_from_args(
    *, sha: str = "", branch: str = "", tag: str = "", pr_number: int | None = None
) -> RefSelector:
    """Build a selector from caller-supplied options; at most one may be set."""
    supplied = [
        s
        for s in (
            Sha(sha) if sha else None,
            Branch(branch) if branch else None,
            Tag(tag) if tag else None,
            PullRequest(pr_number) if pr_number is not None else None,
        )
        if s is not None
    ]
    if len(supplied) > 1:
        raise SafeError(code="UserInput", message="only one of sha, branch, tag or pull request number may be specified")
    return supplied[0] if supplied else Head()


async def resolve_ref_selector(runtime: Runtime, owner: str, repo: str, selector: RefSelector) -> RawContentOpts:
    """Turn a selector into the sha/ref pair the raw client understands."""
    if isinstance(selector, Sha):
        return RawContentOpts(sha=selector.sha)
    if isinstance(selector, Branch):
        return RawContentOpts(ref=f"refs/heads/{selector.name}")
    if isinstance(selector, Tag):
        return RawContentOpts(ref=f"refs/tags/{selector.name}")
    if isinstance(selector, PullRequest):
        client = await runtime.providers.get_client()
        pr = await client.request_json(
            method="GET",
            path=f"/repos/{owner}/{repo}/pulls/{selector.number}",
            budget=runtime.budget(),
        )
        head = pr.get("head") if isinstance(pr, dict) else None
        head_sha = head.get("sha") if isinstance(head, dict) else None
        if not isinstance(head_sha, str) or not head_sha:
            raise SafeError(code="GitHub", message="Unexpected pull request response")
        return RawContentOpts(sha=head_sha)
    return RawContentOpts()


def ensure_file_path(path: str) -> None:
    """Reject directory paths; only single files can be fetched raw."""
    if not path or path.endswith("/"):
        raise SafeError(code="UserInput", message=f"directories are not supported: {path}")


def content_mime_type(path: str, content_type: str | None) -> str:
    """Pick the MIME type for a fetched file.

    `.md` is always text/markdown; otherwise the server's Content-Type, then the
    extension, then empty.
    """
    ext = posixpath.splitext(path)[1]
    if ext == ".md":
        return "text/markdown"
    if content_type:
        return content_type
    guessed, _ = mimetypes.guess_type(path)
    return guessed or ""


def classify_content(uri: str, path: str, content_type: str | None, body: bytes) -> ResourceContent:
    """Return text content for text/* and application/* types, a base64 blob otherwise."""
    mime_type = content_mime_type(path, content_type)
    if mime_type.startswith("text") or mime_type.startswith("application"):
        return ResourceContent(uri=uri, mime_type=mime_type, text=body.decode("utf-8", errors="replace"))
    return ResourceContent(uri=uri, mime_type=mime_type, blob=base64.b64encode(body).decode("ascii"))


async def fetch_raw_file(
    runtime: Runtime, *, uri: str, owner: str, repo: str, path: str, opts: RawContentOpts
) -> ResourceContent:
    """Fetch one file from the raw host and classify it.

    Raises:
        RawContentNotFoundError: 404 from the raw host.
        RawContentError: Any other non-200 status; carries the response body text.
    """
    raw = await runtime.providers.get_raw_client()
    resp = await raw.get_raw_content(owner, repo, path, opts)
    try:
        if resp.status_code == 200:
            body = await resp.aread()
            return classify_content(uri, path, resp.headers.get("Content-Type"), body)
        if resp.status_code == 404:
            raise RawContentNotFoundError(code="NotFound", message="404 Not Found", status_code=404)
        body = await resp.aread()
        raise RawContentError(
            code="GitHub",
            message=f"failed to fetch raw content: {body.decode('utf-8', errors='replace')}",
            status_code=resp.status_code,
        )
    finally:
        await resp.aclose()


def _selector_from_uri_vars(variables: dict[str, str]) -> RefSelector:
    pr_raw = variables.get("prNumber")
    pr_number: int | None = None
    if pr_raw is not None:
        try:
            pr_number = int(pr_raw)
        except ValueError as exc:
            raise SafeError(code="UserInput", message=f"invalid pull request number: {pr_raw}") from exc
    return ref_selector_from_args(
        sha=variables.get("sha", ""),
        branch=variables.get("branch", ""),
        tag=variables.get("tag", ""),
        pr_number=pr_number,
    )


async def read_repository_content(runtime: Runtime, uri: str, variables: dict[str, str]) -> list[ResourceContent]:
    """Resource handler shared by every `repo://` template.

    A 404 from the raw host is reported as is; directories are not listed here.
    """
    owner = variables.get("owner")
    if not owner:
        raise SafeError(code="UserInput", message="owner is required")
    repo = variables.get("repo")
    if not repo:
        raise SafeError(code="UserInput", message="repo is required")
    path = variables.get("path", "")

    selector = _selector_from_uri_vars(variables)
    ensure_file_path(path)
    opts = await resolve_ref_selector(runtime, owner, repo, selector)
    content = await fetch_raw_file(runtime, uri=uri, owner=owner, repo=repo, path=path, opts=opts)
    return [content]


def resource_templates(t: TranslationHelper) -> list[ResourceTemplate]:
    """The repository content templates, one per revision selector."""
    return [
        ResourceTemplate(
            uri_template="repo://{owner}/{repo}/contents{/path*}",
            name="repository_content",
            description=t("RESOURCE_REPOSITORY_CONTENT_DESCRIPTION", "Repository Content"),
            handler=read_repository_content,
        ),
        ResourceTemplate(
            uri_template="repo://{owner}/{repo}/refs/heads/{branch}/contents{/path*}",
            name="repository_content_branch",
            description=t("RESOURCE_REPOSITORY_CONTENT_BRANCH_DESCRIPTION", "Repository Content for specific branch"),
            handler=read_repository_content,
        ),
        ResourceTemplate(
            uri_template="repo://{owner}/{repo}/sha/{sha}/contents{/path*}",
            name="repository_content_commit",
            description=t("RESOURCE_REPOSITORY_CONTENT_COMMIT_DESCRIPTION", "Repository Content for specific commit"),
            handler=read_repository_content,
        ),
        ResourceTemplate(
            uri_template="repo://{owner}/{repo}/refs/tags/{tag}/contents{/path*}",
            name="repository_content_tag",
            description=t("RESOURCE_REPOSITORY_CONTENT_TAG_DESCRIPTION", "Repository Content for specific tag"),
            handler=read_repository_content,
        ),
        ResourceTemplate(
            uri_template="repo://{owner}/{repo}/refs/pull/{prNumber}/head/contents{/path*}",
            name="repository_content_pr",
            description=t("RESOURCE_REPOSITORY_CONTENT_PR_DESCRIPTION", "Repository Content for specific pull request"),
            handler=read_repository_content,
        ),
    ]
