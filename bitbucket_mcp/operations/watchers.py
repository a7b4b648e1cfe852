"""Repository watcher operations (Bitbucket Cloud only).

Watching needs the caller's own account id, so watch/unwatch first fetch
``/user`` and then address ``watchers/{uuid}`` with the result.
"""

from __future__ import annotations

from typing import Any, List

from .base import (
    PAGINATION,
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    PlatformRequest,
    RequestPlan,
    segment,
    single,
)


def _list(call: OperationCall) -> RequestPlan:
    return single("GET", call.repo_path("watchers"), params=call.page_params())


def _current_user_id(results: List[Any]) -> str:
    user = results[0] or {}
    return str(user.get("uuid") or user.get("account_id") or user.get("username"))


def _watch(call: OperationCall) -> RequestPlan:
    def _then(results: List[Any]) -> RequestPlan:
        return single(
            "PUT",
            call.repo_path("watchers", segment(_current_user_id(results))),
            message="Repository watched successfully",
        )

    return RequestPlan(requests=(PlatformRequest("GET", "/user"),), then=_then)


def _unwatch(call: OperationCall) -> RequestPlan:
    def _then(results: List[Any]) -> RequestPlan:
        return single(
            "DELETE",
            call.repo_path("watchers", segment(_current_user_id(results))),
            message="Repository unwatched successfully",
        )

    return RequestPlan(requests=(PlatformRequest("GET", "/user"),), then=_then)


OPERATIONS = [
    Operation(
        name="list_watchers",
        description="List users watching a repository (Bitbucket Cloud only)",
        properties={**REPOSITORY, **PAGINATION},
        required=("repository",),
        cloud=PlatformBinding(_list),
        read_only=True,
    ),
    Operation(
        name="watch_repository",
        description="Watch a repository as the authenticated user (Bitbucket Cloud only)",
        properties=dict(REPOSITORY),
        required=("repository",),
        cloud=PlatformBinding(_watch),
    ),
    Operation(
        name="unwatch_repository",
        description="Stop watching a repository (Bitbucket Cloud only)",
        properties=dict(REPOSITORY),
        required=("repository",),
        cloud=PlatformBinding(_unwatch),
    ),
]
