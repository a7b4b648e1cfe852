"""Repository webhook operations."""

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

_WEBHOOK_ID = {"webhookId": {"type": ["integer", "string"], "description": "Webhook id (Cloud uuid or Server id)"}}

_WEBHOOK_FIELDS = {
    "url": {"type": "string", "description": "Callback URL"},
    "description": {"type": "string", "description": "Description (Server: webhook name)"},
    "active": {"type": "boolean", "description": "Whether the webhook is active (default true)"},
    "events": {"type": "array", "items": {"type": "string"}, "description": "Event keys, e.g. repo:push"},
    "secret": {"type": "string", "description": "Signing secret (Cloud only)"},
}


def _hooks_path(call: OperationCall, *parts: str) -> str:
    return call.repo_path("hooks" if call.is_cloud else "webhooks", *parts)


def _webhook_path(call: OperationCall) -> str:
    return _hooks_path(call, segment(call.args["webhookId"]))


def _list(call: OperationCall) -> RequestPlan:
    return single("GET", _hooks_path(call))


def _cloud_create(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "description": call.arg("description"),
            "url": call.args["url"],
            "active": call.arg("active", True),
            "events": call.args["events"],
            "secret": call.arg("secret"),
        }
    )
    return single("POST", _hooks_path(call), json_body=body)


def _server_create(call: OperationCall) -> RequestPlan:
    body = {
        "name": call.arg("description") or "Webhook",
        "url": call.args["url"],
        "active": call.arg("active", True),
        "events": call.args["events"],
    }
    return single("POST", _hooks_path(call), json_body=body)


def _get(call: OperationCall) -> RequestPlan:
    return single("GET", _webhook_path(call))


def _cloud_update(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "description": call.arg("description"),
            "url": call.arg("url") or None,
            "active": call.arg("active"),
            "events": call.arg("events") or None,
            "secret": call.arg("secret"),
        }
    )
    return single("PUT", _webhook_path(call), json_body=body)


def _server_update(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "name": call.arg("description") or None,
            "url": call.arg("url") or None,
            "active": call.arg("active"),
            "events": call.arg("events") or None,
        }
    )
    return single("PUT", _webhook_path(call), json_body=body)


def _delete(call: OperationCall) -> RequestPlan:
    return single("DELETE", _webhook_path(call), message="Webhook deleted successfully")


OPERATIONS = [
    Operation(
        name="list_webhooks",
        description="List repository webhooks",
        properties=dict(REPOSITORY),
        required=("repository",),
        cloud=PlatformBinding(_list),
        server=PlatformBinding(_list),
        read_only=True,
    ),
    Operation(
        name="create_webhook",
        description="Create a repository webhook",
        properties={**REPOSITORY, **_WEBHOOK_FIELDS},
        required=("repository", "url", "events"),
        cloud=PlatformBinding(_cloud_create),
        server=PlatformBinding(_server_create),
    ),
    Operation(
        name="get_webhook",
        description="Get a repository webhook",
        properties={**REPOSITORY, **_WEBHOOK_ID},
        required=("repository", "webhookId"),
        cloud=PlatformBinding(_get),
        server=PlatformBinding(_get),
        read_only=True,
    ),
    Operation(
        name="update_webhook",
        description="Update a repository webhook",
        properties={**REPOSITORY, **_WEBHOOK_ID, **_WEBHOOK_FIELDS},
        required=("repository", "webhookId"),
        cloud=PlatformBinding(_cloud_update),
        server=PlatformBinding(_server_update),
    ),
    Operation(
        name="delete_webhook",
        description="Delete a repository webhook",
        properties={**REPOSITORY, **_WEBHOOK_ID},
        required=("repository", "webhookId"),
        cloud=PlatformBinding(_delete),
        server=PlatformBinding(_delete),
    ),
]
