"""Repository permission lookups."""

from __future__ import annotations

from .base import (
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    segment,
    single,
)


def _cloud_permissions(call: OperationCall) -> RequestPlan:
    user = call.arg("user")
    if user:
        return single("GET", call.repo_path("permissions-config", "users", segment(user)))
    return single("GET", call.repo_path())


def _server_permissions(call: OperationCall) -> RequestPlan:
    user = call.arg("user")
    if user:
        return single("GET", call.repo_path("permissions", "users"), params={"filter": user})
    return single("GET", call.repo_path("permissions"))


OPERATIONS = [
    Operation(
        name="get_repository_permissions",
        description="Get repository permissions, optionally for a single user",
        properties={
            **REPOSITORY,
            "user": {"type": "string", "description": "Username (Server) or account id/uuid (Cloud)"},
        },
        required=("repository",),
        cloud=PlatformBinding(_cloud_permissions),
        server=PlatformBinding(_server_permissions),
        read_only=True,
    ),
]
