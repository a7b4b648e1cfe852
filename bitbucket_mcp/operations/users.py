"""User lookups."""

from __future__ import annotations

from .base import (
    CONTEXT_NONE,
    PAGINATION,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    segment,
    single,
)


def _get_user(call: OperationCall) -> RequestPlan:
    return single("GET", f"/users/{segment(call.args['username'])}")


def _cloud_list_users(call: OperationCall) -> RequestPlan:
    return single("GET", f"/workspaces/{segment(call.context)}/members", params=call.page_params())


def _server_list_users(call: OperationCall) -> RequestPlan:
    return single("GET", "/admin/users", params=call.page_params())


OPERATIONS = [
    Operation(
        name="get_user",
        description="Get a user by username (Cloud also accepts a uuid or account id)",
        properties={"username": {"type": "string", "description": "Username"}},
        required=("username",),
        cloud=PlatformBinding(_get_user, context=CONTEXT_NONE),
        server=PlatformBinding(_get_user, context=CONTEXT_NONE),
        read_only=True,
    ),
    Operation(
        name="list_users",
        description="List workspace members (Cloud) or instance users (Server/Data Center, admin only)",
        properties=dict(PAGINATION),
        cloud=PlatformBinding(_cloud_list_users),
        server=PlatformBinding(_server_list_users, context=CONTEXT_NONE),
        read_only=True,
    ),
]
