"""Commit build statuses (Bitbucket Server/Data Center only)."""

from __future__ import annotations

from .base import (
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    compact,
    segment,
    single,
)

_COMMIT = {**REPOSITORY, "commitId": {"type": "string", "description": "Commit hash"}}


def _builds_path(call: OperationCall) -> str:
    return call.repo_path("commits", segment(call.args["commitId"]), "builds")


def _get(call: OperationCall) -> RequestPlan:
    return single("GET", _builds_path(call))


def _set(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "state": call.args["state"],
            "key": call.args["key"],
            "name": call.arg("name"),
            "url": call.arg("url"),
            "description": call.arg("description"),
        }
    )
    return single("POST", _builds_path(call), json_body=body)


OPERATIONS = [
    Operation(
        name="get_build_status",
        description="Get build statuses for a commit (Bitbucket Server/Data Center only)",
        properties=dict(_COMMIT),
        required=("repository", "commitId"),
        server=PlatformBinding(_get),
        read_only=True,
    ),
    Operation(
        name="set_build_status",
        description="Report a build status for a commit (Bitbucket Server/Data Center only)",
        properties={
            **_COMMIT,
            "state": {"type": "string", "enum": ["SUCCESSFUL", "FAILED", "INPROGRESS"]},
            "key": {"type": "string", "description": "Unique build key"},
            "name": {"type": "string", "description": "Build name"},
            "url": {"type": "string", "description": "Link to the build"},
            "description": {"type": "string", "description": "Build description"},
        },
        required=("repository", "commitId", "state", "key"),
        server=PlatformBinding(_set),
    ),
]
