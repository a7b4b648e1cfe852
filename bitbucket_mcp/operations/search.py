"""Code search."""

from __future__ import annotations

from typing import Any, Dict

from .base import (
    PAGINATION,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    segment,
    single,
)


def _cloud_search(call: OperationCall) -> RequestPlan:
    repository = call.arg("repository")
    if repository:
        path = f"/repositories/{segment(call.context)}/{segment(repository)}/search/code"
    else:
        path = f"/workspaces/{segment(call.context)}/search/code"
    params: Dict[str, Any] = {"search_query": call.args["query"]}
    params.update(call.page_params())
    return single("GET", path, params=params)


def _server_search(call: OperationCall) -> RequestPlan:
    params: Dict[str, Any] = {"query": call.args["query"], "type": "code"}
    params.update(call.page_params())
    repository = call.arg("repository")
    if repository:
        params["repositorySlug"] = repository
        params["projectKey"] = call.context
    return single("GET", "/search", params=params)


OPERATIONS = [
    Operation(
        name="search_code",
        description="Search code in a workspace/project, optionally narrowed to one repository",
        properties={
            "query": {"type": "string", "description": "Search query"},
            "repository": {"type": "string", "description": "Restrict the search to this repository"},
            **PAGINATION,
        },
        required=("query",),
        cloud=PlatformBinding(_cloud_search),
        server=PlatformBinding(_server_search),
        read_only=True,
    ),
]
