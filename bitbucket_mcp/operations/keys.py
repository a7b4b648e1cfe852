"""Account SSH keys and repository deploy keys."""

from __future__ import annotations

from .base import (
    CONTEXT_NONE,
    PAGINATION,
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    segment,
    single,
)

_KEY_FIELDS = {
    "key": {"type": "string", "description": "Public key text, e.g. ssh-ed25519 AAAA... comment"},
    "label": {"type": "string", "description": "Key label"},
}

_KEY_ID = {"keyId": {"type": ["integer", "string"], "description": "Key id"}}


def _ssh_keys_path(call: OperationCall) -> str:
    return "/user/ssh-keys" if call.is_cloud else "/ssh/keys"


def _list_ssh_keys(call: OperationCall) -> RequestPlan:
    return single("GET", _ssh_keys_path(call), params=call.page_params())


def _add_ssh_key(call: OperationCall) -> RequestPlan:
    key_field = "key" if call.is_cloud else "text"
    body = {key_field: call.args["key"], "label": call.args["label"]}
    return single("POST", _ssh_keys_path(call), json_body=body)


def _delete_ssh_key(call: OperationCall) -> RequestPlan:
    return single(
        "DELETE",
        f"{_ssh_keys_path(call)}/{segment(call.args['keyId'])}",
        message="SSH key deleted successfully",
    )


def _deploy_keys_path(call: OperationCall, *parts: str) -> str:
    return call.repo_path("deploy-keys" if call.is_cloud else "ssh", *parts)


def _list_deploy_keys(call: OperationCall) -> RequestPlan:
    return single("GET", _deploy_keys_path(call))


def _cloud_add_deploy_key(call: OperationCall) -> RequestPlan:
    body = {"key": call.args["key"], "label": call.args["label"]}
    return single("POST", _deploy_keys_path(call), json_body=body)


def _server_add_deploy_key(call: OperationCall) -> RequestPlan:
    body = {
        "key": {"text": call.args["key"], "label": call.args["label"]},
        "permission": "REPO_READ",
    }
    return single("POST", _deploy_keys_path(call), json_body=body)


def _delete_deploy_key(call: OperationCall) -> RequestPlan:
    return single(
        "DELETE",
        _deploy_keys_path(call, segment(call.args["keyId"])),
        message="Deploy key deleted successfully",
    )


OPERATIONS = [
    Operation(
        name="list_ssh_keys",
        description="List SSH keys of the authenticated user",
        properties=dict(PAGINATION),
        cloud=PlatformBinding(_list_ssh_keys, context=CONTEXT_NONE),
        server=PlatformBinding(_list_ssh_keys, context=CONTEXT_NONE),
        read_only=True,
    ),
    Operation(
        name="add_ssh_key",
        description="Add an SSH key to the authenticated user",
        properties=dict(_KEY_FIELDS),
        required=("key", "label"),
        cloud=PlatformBinding(_add_ssh_key, context=CONTEXT_NONE),
        server=PlatformBinding(_add_ssh_key, context=CONTEXT_NONE),
    ),
    Operation(
        name="delete_ssh_key",
        description="Delete an SSH key of the authenticated user",
        properties=dict(_KEY_ID),
        required=("keyId",),
        cloud=PlatformBinding(_delete_ssh_key, context=CONTEXT_NONE),
        server=PlatformBinding(_delete_ssh_key, context=CONTEXT_NONE),
    ),
    Operation(
        name="list_deploy_keys",
        description="List repository deploy keys",
        properties=dict(REPOSITORY),
        required=("repository",),
        cloud=PlatformBinding(_list_deploy_keys),
        server=PlatformBinding(_list_deploy_keys),
        read_only=True,
    ),
    Operation(
        name="add_deploy_key",
        description="Add a read-only deploy key to a repository",
        properties={**REPOSITORY, **_KEY_FIELDS},
        required=("repository", "key", "label"),
        cloud=PlatformBinding(_cloud_add_deploy_key),
        server=PlatformBinding(_server_add_deploy_key),
    ),
    Operation(
        name="delete_deploy_key",
        description="Delete a repository deploy key",
        properties={**REPOSITORY, **_KEY_ID},
        required=("repository", "keyId"),
        cloud=PlatformBinding(_delete_deploy_key),
        server=PlatformBinding(_delete_deploy_key),
    ),
]
