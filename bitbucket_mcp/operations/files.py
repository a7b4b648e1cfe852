"""Repository file browsing."""

from __future__ import annotations

from .base import (
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    compact,
    path_segment,
    single,
)

_REF = {"ref": {"type": "string", "description": "Branch, tag or commit (default: the default branch)"}}


def _cloud_src_path(call: OperationCall, path: str) -> str:
    ref = path_segment(call.arg("ref") or "HEAD")
    parts = ["src", ref]
    if path.strip("/"):
        parts.append(path_segment(path))
    return call.repo_path(*parts)


def _cloud_file(call: OperationCall) -> RequestPlan:
    return single("GET", _cloud_src_path(call, call.args["path"]), text=True)


def _server_file(call: OperationCall) -> RequestPlan:
    params = compact({"at": call.arg("ref") or None})
    return single("GET", call.repo_path("raw", path_segment(call.args["path"])), params=params or None, text=True)


def _cloud_directory(call: OperationCall) -> RequestPlan:
    path = call.arg("path", "")
    # A trailing slash makes /src return a directory listing.
    return single("GET", _cloud_src_path(call, path) + "/")


def _server_directory(call: OperationCall) -> RequestPlan:
    path = call.arg("path", "")
    parts = ["browse"]
    if path.strip("/"):
        parts.append(path_segment(path))
    params = compact({"at": call.arg("ref") or None})
    return single("GET", call.repo_path(*parts), params=params or None)


OPERATIONS = [
    Operation(
        name="get_file_content",
        description="Get the raw content of a file",
        properties={**REPOSITORY, "path": {"type": "string", "description": "File path"}, **_REF},
        required=("repository", "path"),
        cloud=PlatformBinding(_cloud_file),
        server=PlatformBinding(_server_file),
        read_only=True,
    ),
    Operation(
        name="list_directory",
        description="List the entries of a directory",
        properties={**REPOSITORY, "path": {"type": "string", "description": "Directory path (default root)"}, **_REF},
        required=("repository",),
        cloud=PlatformBinding(_cloud_directory),
        server=PlatformBinding(_server_directory),
        read_only=True,
    ),
]
