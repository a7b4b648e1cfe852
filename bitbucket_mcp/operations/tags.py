"""Tag operations."""

from __future__ import annotations

from .base import (
    PAGINATION,
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    compact,
    path_segment,
    single,
)

_TAG_NAME = {"name": {"type": "string", "description": "Tag name"}}


def _tags_path(call: OperationCall, *parts: str) -> str:
    if call.is_cloud:
        return call.repo_path("refs", "tags", *parts)
    return call.repo_path("tags", *parts)


def _list(call: OperationCall) -> RequestPlan:
    return single("GET", _tags_path(call), params=call.page_params())


def _cloud_create(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "name": call.args["name"],
            "target": {"hash": call.args["target"]},
            "message": call.arg("message"),
        }
    )
    return single("POST", _tags_path(call), json_body=body)


def _server_create(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "name": call.args["name"],
            "startPoint": call.args["target"],
            "message": call.arg("message"),
        }
    )
    return single("POST", _tags_path(call), json_body=body)


def _delete(call: OperationCall) -> RequestPlan:
    return single("DELETE", _tags_path(call, path_segment(call.args["name"])), message="Tag deleted successfully")


OPERATIONS = [
    Operation(
        name="list_tags",
        description="List tags",
        properties={**REPOSITORY, **PAGINATION},
        required=("repository",),
        cloud=PlatformBinding(_list),
        server=PlatformBinding(_list),
        read_only=True,
    ),
    Operation(
        name="create_tag",
        description="Create a tag",
        properties={
            **REPOSITORY,
            **_TAG_NAME,
            "target": {"type": "string", "description": "Commit hash (or ref on Server) to tag"},
            "message": {"type": "string", "description": "Annotated tag message"},
        },
        required=("repository", "name", "target"),
        cloud=PlatformBinding(_cloud_create),
        server=PlatformBinding(_server_create),
    ),
    Operation(
        name="delete_tag",
        description="Delete a tag",
        properties={**REPOSITORY, **_TAG_NAME},
        required=("repository", "name"),
        cloud=PlatformBinding(_delete),
        server=PlatformBinding(_delete),
    ),
]
