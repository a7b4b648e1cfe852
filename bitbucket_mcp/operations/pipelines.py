"""Bitbucket Pipelines (Cloud only)."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .base import (
    PAGINATION,
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    RequestPlan,
    compact,
    segment,
    single,
)

_REF_TARGET = "pipeline_ref_name"
_COMMIT_TARGET = "pipeline_commit_sha"

_TARGET = {
    "type": "object",
    "description": "What to build: {type: pipeline_ref_name | pipeline_commit_sha, name: branch or hash}",
    "properties": {
        "type": {"type": "string", "enum": [_REF_TARGET, _COMMIT_TARGET]},
        "name": {"type": "string"},
    },
    "required": ["type", "name"],
}

_PIPELINE_ID = {"pipelineId": {"type": "string", "description": "Pipeline uuid or build number"}}


def _pipelines_path(call: OperationCall, *parts: str) -> str:
    if not parts:
        return call.repo_path("pipelines") + "/"
    return call.repo_path("pipelines", *parts)


def _list(call: OperationCall) -> RequestPlan:
    params: Dict[str, Any] = call.page_params()
    target = call.arg("target")
    if isinstance(target, Mapping):
        if target.get("type") == _REF_TARGET:
            params["target.ref_name"] = target.get("name")
        elif target.get("type") == _COMMIT_TARGET:
            params["target.commit.hash"] = target.get("name")
    return single("GET", _pipelines_path(call), params=params)


def _get(call: OperationCall) -> RequestPlan:
    return single("GET", _pipelines_path(call, segment(call.args["pipelineId"])))


def _trigger(call: OperationCall) -> RequestPlan:
    target = call.args["target"]
    kind = target.get("type")
    body: Dict[str, Any] = {
        "target": compact(
            {
                "type": kind,
                "ref_name": target.get("name") if kind == _REF_TARGET else None,
                "commit": {"hash": target.get("name")} if kind == _COMMIT_TARGET else None,
            }
        )
    }
    variables = call.arg("variables")
    if variables:
        body["variables"] = variables
    return single("POST", _pipelines_path(call), json_body=body)


def _stop(call: OperationCall) -> RequestPlan:
    return single("POST", _pipelines_path(call, segment(call.args["pipelineId"]), "stopPipeline"))


OPERATIONS = [
    Operation(
        name="list_pipelines",
        description="List pipeline runs (Bitbucket Cloud only)",
        properties={**REPOSITORY, "target": _TARGET, **PAGINATION},
        required=("repository",),
        cloud=PlatformBinding(_list),
        read_only=True,
    ),
    Operation(
        name="get_pipeline",
        description="Get a pipeline run (Bitbucket Cloud only)",
        properties={**REPOSITORY, **_PIPELINE_ID},
        required=("repository", "pipelineId"),
        cloud=PlatformBinding(_get),
        read_only=True,
    ),
    Operation(
        name="trigger_pipeline",
        description="Run a pipeline for a branch or commit (Bitbucket Cloud only)",
        properties={
            **REPOSITORY,
            "target": _TARGET,
            "variables": {
                "type": "array",
                "description": "Pipeline variables: [{key, value, secured}]",
                "items": {"type": "object"},
            },
        },
        required=("repository", "target"),
        cloud=PlatformBinding(_trigger),
    ),
    Operation(
        name="stop_pipeline",
        description="Stop a running pipeline (Bitbucket Cloud only)",
        properties={**REPOSITORY, **_PIPELINE_ID},
        required=("repository", "pipelineId"),
        cloud=PlatformBinding(_stop),
    ),
]
