"""Pull request operations.

Cloud nests refs as ``source.branch.name``; Server addresses them as flat
``refs/heads/<name>`` ids on ``fromRef``/``toRef``. Server mutations send
``version: -1`` so the latest revision is used.
"""

from __future__ import annotations

from typing import Any, Dict, List

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

_PR = {
    **REPOSITORY,
    "prId": {"type": ["integer", "string"], "description": "Pull request id"},
}

_REVIEW_ACTIONS = {"APPROVED", "REVIEWED"}


def _pr_path(call: OperationCall, *parts: str) -> str:
    collection = "pullrequests" if call.is_cloud else "pull-requests"
    return call.repo_path(collection, segment(call.args["prId"]), *parts)


def _server_ref(call: OperationCall, branch: str) -> Dict[str, Any]:
    return {
        "id": f"refs/heads/{branch}",
        "repository": {"slug": call.repository, "project": {"key": call.context}},
    }


def _cloud_create(call: OperationCall) -> RequestPlan:
    reviewers = call.arg("reviewers")
    body = compact(
        {
            "title": call.args["title"],
            "description": call.arg("description"),
            "source": {"branch": {"name": call.args["sourceBranch"]}},
            "destination": {"branch": {"name": call.args["targetBranch"]}},
            "reviewers": [{"username": r} for r in reviewers] if reviewers else None,
        }
    )
    return single("POST", call.repo_path("pullrequests"), json_body=body)


def _server_create(call: OperationCall) -> RequestPlan:
    reviewers = call.arg("reviewers")
    body = compact(
        {
            "title": call.args["title"],
            "description": call.arg("description"),
            "fromRef": _server_ref(call, call.args["sourceBranch"]),
            "toRef": _server_ref(call, call.args["targetBranch"]),
            "reviewers": [{"user": {"name": r}} for r in reviewers] if reviewers else None,
        }
    )
    return single("POST", call.repo_path("pull-requests"), json_body=body)


def _get(call: OperationCall) -> RequestPlan:
    return single("GET", _pr_path(call))


def _cloud_merge(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "message": call.arg("message"),
            "merge_strategy": call.arg("strategy", "merge_commit"),
        }
    )
    return single("POST", _pr_path(call, "merge"), json_body=body)


def _server_merge(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "version": -1,
            "message": call.arg("message"),
            "strategy": call.arg("strategy", "merge-commit"),
        }
    )
    return single("POST", _pr_path(call, "merge"), json_body=body)


def _cloud_decline(call: OperationCall) -> RequestPlan:
    message = call.arg("message")
    return single("POST", _pr_path(call, "decline"), json_body={"reason": message} if message else {})


def _server_decline(call: OperationCall) -> RequestPlan:
    body = compact({"version": -1, "message": call.arg("message")})
    return single("POST", _pr_path(call, "decline"), json_body=body)


def _cloud_comment(call: OperationCall) -> RequestPlan:
    parent = call.arg("parentId")
    body = compact(
        {
            "content": {"raw": call.args["text"]},
            "parent": {"id": parent} if parent is not None else None,
        }
    )
    return single("POST", _pr_path(call, "comments"), json_body=body)


def _server_comment(call: OperationCall) -> RequestPlan:
    parent = call.arg("parentId")
    body = compact(
        {
            "text": call.args["text"],
            "parent": {"id": parent} if parent is not None else None,
        }
    )
    return single("POST", _pr_path(call, "comments"), json_body=body)


def _diff(call: OperationCall) -> RequestPlan:
    context_lines = call.arg("contextLines", 10)
    key = "context" if call.is_cloud else "contextLines"
    return single("GET", _pr_path(call, "diff"), params={key: context_lines}, text=True)


def _cloud_reviews(call: OperationCall) -> RequestPlan:
    def _combine(results: List[Any]) -> Dict[str, Any]:
        pr = results[0] or {}
        return {
            "participants": pr.get("participants") or [],
            "reviewers": pr.get("reviewers") or [],
        }

    return single("GET", _pr_path(call), combine=_combine)


def _server_reviews(call: OperationCall) -> RequestPlan:
    def _combine(results: List[Any]) -> List[Any]:
        activities = (results[0] or {}).get("values") or []
        return [a for a in activities if a.get("action") in _REVIEW_ACTIONS]

    return single("GET", _pr_path(call, "activities"), combine=_combine)


def _activity(call: OperationCall) -> RequestPlan:
    return single("GET", _pr_path(call, "activity" if call.is_cloud else "activities"))


def _commits(call: OperationCall) -> RequestPlan:
    return single("GET", _pr_path(call, "commits"), params=call.page_params())


OPERATIONS = [
    Operation(
        name="create_pull_request",
        description="Create a pull request",
        properties={
            **REPOSITORY,
            "title": {"type": "string", "description": "Pull request title"},
            "description": {"type": "string", "description": "Pull request description"},
            "sourceBranch": {"type": "string", "description": "Branch to merge from"},
            "targetBranch": {"type": "string", "description": "Branch to merge into"},
            "reviewers": {"type": "array", "items": {"type": "string"}, "description": "Reviewer usernames"},
        },
        required=("repository", "title", "sourceBranch", "targetBranch"),
        cloud=PlatformBinding(_cloud_create),
        server=PlatformBinding(_server_create),
    ),
    Operation(
        name="get_pull_request",
        description="Get a pull request",
        properties=dict(_PR),
        required=("repository", "prId"),
        cloud=PlatformBinding(_get),
        server=PlatformBinding(_get),
        read_only=True,
    ),
    Operation(
        name="merge_pull_request",
        description="Merge a pull request",
        properties={
            **_PR,
            "message": {"type": "string", "description": "Merge commit message"},
            "strategy": {
                "type": "string",
                "description": "Cloud: merge_commit | squash | fast_forward. Server: merge-commit | squash | ff-only",
            },
        },
        required=("repository", "prId"),
        cloud=PlatformBinding(_cloud_merge),
        server=PlatformBinding(_server_merge),
    ),
    Operation(
        name="decline_pull_request",
        description="Decline a pull request",
        properties={**_PR, "message": {"type": "string", "description": "Reason for declining"}},
        required=("repository", "prId"),
        cloud=PlatformBinding(_cloud_decline),
        server=PlatformBinding(_server_decline),
    ),
    Operation(
        name="add_comment",
        description="Comment on a pull request",
        properties={
            **_PR,
            "text": {"type": "string", "description": "Comment text"},
            "parentId": {"type": ["integer", "string"], "description": "Reply to this comment id"},
        },
        required=("repository", "prId", "text"),
        cloud=PlatformBinding(_cloud_comment),
        server=PlatformBinding(_server_comment),
    ),
    Operation(
        name="get_pull_request_diff",
        description="Get a pull request diff as plain text",
        properties={
            **_PR,
            "contextLines": {"type": "integer", "minimum": 0, "description": "Context lines (default 10)"},
        },
        required=("repository", "prId"),
        cloud=PlatformBinding(_diff),
        server=PlatformBinding(_diff),
        read_only=True,
    ),
    Operation(
        name="get_reviews",
        description="Get review state for a pull request",
        properties=dict(_PR),
        required=("repository", "prId"),
        cloud=PlatformBinding(_cloud_reviews),
        server=PlatformBinding(_server_reviews),
        read_only=True,
    ),
    Operation(
        name="get_pull_request_activity",
        description="Get the activity stream of a pull request",
        properties=dict(_PR),
        required=("repository", "prId"),
        cloud=PlatformBinding(_activity),
        server=PlatformBinding(_activity),
        read_only=True,
    ),
    Operation(
        name="get_pull_request_commits",
        description="List commits in a pull request",
        properties={**_PR, **PAGINATION},
        required=("repository", "prId"),
        cloud=PlatformBinding(_commits),
        server=PlatformBinding(_commits),
        read_only=True,
    ),
]
