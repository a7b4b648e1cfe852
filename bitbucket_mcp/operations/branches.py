"""Branch and branch-restriction operations."""

from __future__ import annotations

from .base import (
    PAGINATION,
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    path_segment,
    single,
)

_BRANCH = {
    **REPOSITORY,
    "branchName": {"type": "string", "description": "Branch name"},
}


def _branches_path(call: OperationCall, *parts: str) -> str:
    if call.is_cloud:
        return call.repo_path("refs", "branches", *parts)
    return call.repo_path("branches", *parts)


def _list(call: OperationCall) -> RequestPlan:
    return single("GET", _branches_path(call), params=call.page_params())


def _cloud_create(call: OperationCall) -> RequestPlan:
    body = {
        "name": call.args["branchName"],
        "target": {"hash": call.arg("startPoint") or "main"},
    }
    return single("POST", _branches_path(call), json_body=body)


def _server_create(call: OperationCall) -> RequestPlan:
    body = {
        "name": call.args["branchName"],
        "startPoint": call.arg("startPoint") or "refs/heads/master",
    }
    return single("POST", _branches_path(call), json_body=body)


def _delete(call: OperationCall) -> RequestPlan:
    return single(
        "DELETE",
        _branches_path(call, path_segment(call.args["branchName"])),
        message="Branch deleted successfully",
    )


def _restrictions_path(call: OperationCall) -> str:
    return call.repo_path("branch-restrictions" if call.is_cloud else "restrictions")


def _list_restrictions(call: OperationCall) -> RequestPlan:
    return single("GET", _restrictions_path(call))


def _cloud_create_restriction(call: OperationCall) -> RequestPlan:
    body = {
        "kind": call.args["kind"],
        "pattern": call.args["pattern"],
        "users": call.arg("users", []),
        "groups": call.arg("groups", []),
    }
    return single("POST", _restrictions_path(call), json_body=body)


def _server_create_restriction(call: OperationCall) -> RequestPlan:
    body = {
        "type": call.args["kind"],
        "matcher": {"id": call.args["pattern"], "type": {"id": "PATTERN"}},
        "users": call.arg("users", []),
        "groups": call.arg("groups", []),
    }
    return single("POST", _restrictions_path(call), json_body=body)


OPERATIONS = [
    Operation(
        name="list_branches",
        description="List branches in a repository",
        properties={**REPOSITORY, **PAGINATION},
        required=("repository",),
        cloud=PlatformBinding(_list),
        server=PlatformBinding(_list),
        read_only=True,
    ),
    Operation(
        name="create_branch",
        description="Create a branch",
        properties={
            **_BRANCH,
            "startPoint": {
                "type": "string",
                "description": "Commit or ref to branch from (Cloud default main, Server default refs/heads/master)",
            },
        },
        required=("repository", "branchName"),
        cloud=PlatformBinding(_cloud_create),
        server=PlatformBinding(_server_create),
    ),
    Operation(
        name="delete_branch",
        description="Delete a branch",
        properties=dict(_BRANCH),
        required=("repository", "branchName"),
        cloud=PlatformBinding(_delete),
        server=PlatformBinding(_delete),
    ),
    Operation(
        name="list_branch_restrictions",
        description="List branch restrictions (branch permissions)",
        properties=dict(REPOSITORY),
        required=("repository",),
        cloud=PlatformBinding(_list_restrictions),
        server=PlatformBinding(_list_restrictions),
        read_only=True,
    ),
    Operation(
        name="create_branch_restriction",
        description="Create a branch restriction",
        properties={
            **REPOSITORY,
            "kind": {
                "type": "string",
                "description": "Cloud kind (push, force, delete, ...) or Server type (read-only, no-deletes, ...)",
            },
            "pattern": {"type": "string", "description": "Branch pattern, e.g. main or release/*"},
            "users": {"type": "array", "items": {}, "description": "Users exempt from the restriction"},
            "groups": {"type": "array", "items": {}, "description": "Groups exempt from the restriction"},
        },
        required=("repository", "kind", "pattern"),
        cloud=PlatformBinding(_cloud_create_restriction),
        server=PlatformBinding(_server_create_restriction),
    ),
]
