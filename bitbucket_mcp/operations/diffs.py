"""Diffs between arbitrary revisions. Returned as literal patch text."""

from __future__ import annotations

from typing import Any, Dict

from ..exceptions import InvalidArgumentsError
from .base import (
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    path_segment,
    single,
)


def _cloud_diff(call: OperationCall) -> RequestPlan:
    params: Dict[str, Any] = {"context": call.arg("context", 3)}
    if call.arg("path"):
        params["path"] = call.args["path"]
    if call.arg("ignore_whitespace"):
        params["ignore_whitespace"] = "true"
    return single("GET", call.repo_path("diff", path_segment(call.args["spec"])), params=params, text=True)


def _server_diff(call: OperationCall) -> RequestPlan:
    source, sep, target = str(call.args["spec"]).partition("..")
    if not sep or not source or not target:
        raise InvalidArgumentsError(call.operation, 'spec must be in the form "from..to"', fields=["spec"])
    params: Dict[str, Any] = {"from": source, "to": target, "contextLines": call.arg("context", 3)}
    if call.arg("path"):
        params["path"] = call.args["path"]
    if call.arg("ignore_whitespace"):
        params["whitespace"] = "ignore-all"
    return single("GET", call.repo_path("compare", "diff"), params=params, text=True)


OPERATIONS = [
    Operation(
        name="get_diff",
        description="Get the diff between two revisions as plain text",
        properties={
            **REPOSITORY,
            "spec": {
                "type": "string",
                "description": "Cloud: a commit or a..b spec. Server: from..to (required form)",
            },
            "path": {"type": "string", "description": "Limit the diff to this path"},
            "context": {"type": "integer", "minimum": 0, "description": "Context lines (default 3)"},
            "ignore_whitespace": {"type": "boolean", "description": "Ignore whitespace changes"},
        },
        required=("repository", "spec"),
        cloud=PlatformBinding(_cloud_diff),
        server=PlatformBinding(_server_diff),
        read_only=True,
    ),
]
