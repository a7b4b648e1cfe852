"""Commit and commit-comment operations."""

from __future__ import annotations

from typing import Any, Dict

from .base import (
    PAGINATION,
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    path_segment,
    segment,
    single,
)

_COMMIT = {
    **REPOSITORY,
    "commitId": {"type": "string", "description": "Commit hash"},
}


def _commit_path(call: OperationCall, *parts: str) -> str:
    collection = "commit" if call.is_cloud else "commits"
    return call.repo_path(collection, segment(call.args["commitId"]), *parts)


def _cloud_list(call: OperationCall) -> RequestPlan:
    branch = call.arg("branch")
    path = call.repo_path("commits", path_segment(branch)) if branch else call.repo_path("commits")
    return single("GET", path, params=call.page_params())


def _server_list(call: OperationCall) -> RequestPlan:
    params: Dict[str, Any] = call.page_params()
    branch = call.arg("branch")
    if branch:
        params["until"] = branch
    return single("GET", call.repo_path("commits"), params=params)


def _get(call: OperationCall) -> RequestPlan:
    return single("GET", _commit_path(call))


def _list_comments(call: OperationCall) -> RequestPlan:
    return single("GET", _commit_path(call, "comments"))


def _cloud_comment(call: OperationCall) -> RequestPlan:
    body: Dict[str, Any] = {"content": {"raw": call.args["content"], "markup": "markdown"}}
    path, line = call.arg("path"), call.arg("line")
    if path and line:
        body["inline"] = {"path": path, "from": line, "to": line}
    return single("POST", _commit_path(call, "comments"), json_body=body)


def _server_comment(call: OperationCall) -> RequestPlan:
    body: Dict[str, Any] = {"text": call.args["content"]}
    path, line = call.arg("path"), call.arg("line")
    if path and line:
        body["anchor"] = {"path": path, "line": line}
    return single("POST", _commit_path(call, "comments"), json_body=body)


OPERATIONS = [
    Operation(
        name="list_commits",
        description="List commits, optionally starting from a branch",
        properties={
            **REPOSITORY,
            "branch": {"type": "string", "description": "Branch or ref to list from"},
            **PAGINATION,
        },
        required=("repository",),
        cloud=PlatformBinding(_cloud_list),
        server=PlatformBinding(_server_list),
        read_only=True,
    ),
    Operation(
        name="get_commit",
        description="Get a single commit",
        properties=dict(_COMMIT),
        required=("repository", "commitId"),
        cloud=PlatformBinding(_get),
        server=PlatformBinding(_get),
        read_only=True,
    ),
    Operation(
        name="list_commit_comments",
        description="List comments on a commit",
        properties=dict(_COMMIT),
        required=("repository", "commitId"),
        cloud=PlatformBinding(_list_comments),
        server=PlatformBinding(_list_comments),
        read_only=True,
    ),
    Operation(
        name="create_commit_comment",
        description="Comment on a commit, optionally inline on a file line",
        properties={
            **_COMMIT,
            "content": {"type": "string", "description": "Comment text (markdown)"},
            "path": {"type": "string", "description": "File path for an inline comment"},
            "line": {"type": "integer", "minimum": 1, "description": "Line number for an inline comment"},
        },
        required=("repository", "commitId", "content"),
        cloud=PlatformBinding(_cloud_comment),
        server=PlatformBinding(_server_comment),
    ),
]
