"""Issue tracker operations. Bitbucket Server has no issue tracker, so these are Cloud only."""

from __future__ import annotations

from typing import Any, Dict

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

_ISSUE_FIELDS = {
    "title": {"type": "string", "description": "Issue title"},
    "content": {"type": "string", "description": "Issue body (markdown)"},
    "kind": {"type": "string", "description": "bug | enhancement | proposal | task"},
    "priority": {"type": "string", "description": "trivial | minor | major | critical | blocker"},
    "assignee": {"type": "string", "description": "Assignee username"},
    "milestone": {"type": "string", "description": "Milestone name"},
}

_ISSUE_ID = {"issueId": {"type": ["integer", "string"], "description": "Issue id"}}


def _issue_body(call: OperationCall) -> Dict[str, Any]:
    content = call.arg("content")
    assignee = call.arg("assignee")
    milestone = call.arg("milestone")
    return compact(
        {
            "title": call.arg("title") or None,
            "content": {"raw": content, "markup": "markdown"} if content else None,
            "state": call.arg("state") or None,
            "priority": call.arg("priority") or None,
            "kind": call.arg("kind") or None,
            "assignee": {"username": assignee} if assignee else None,
            "milestone": {"name": milestone} if milestone else None,
        }
    )


def _list(call: OperationCall) -> RequestPlan:
    params: Dict[str, Any] = call.page_params()
    params.update(compact({"state": call.arg("state") or None, "assignee": call.arg("assignee") or None}))
    return single("GET", call.repo_path("issues"), params=params)


def _create(call: OperationCall) -> RequestPlan:
    return single("POST", call.repo_path("issues"), json_body=_issue_body(call))


def _get(call: OperationCall) -> RequestPlan:
    return single("GET", call.repo_path("issues", segment(call.args["issueId"])))


def _update(call: OperationCall) -> RequestPlan:
    return single("PUT", call.repo_path("issues", segment(call.args["issueId"])), json_body=_issue_body(call))


OPERATIONS = [
    Operation(
        name="list_issues",
        description="List issues (Bitbucket Cloud only)",
        properties={
            **REPOSITORY,
            "state": {"type": "string", "description": "Filter by state (new, open, resolved, ...)"},
            "assignee": {"type": "string", "description": "Filter by assignee"},
            **PAGINATION,
        },
        required=("repository",),
        cloud=PlatformBinding(_list),
        read_only=True,
    ),
    Operation(
        name="create_issue",
        description="Create an issue (Bitbucket Cloud only)",
        properties={**REPOSITORY, **_ISSUE_FIELDS},
        required=("repository", "title"),
        cloud=PlatformBinding(_create),
    ),
    Operation(
        name="get_issue",
        description="Get an issue (Bitbucket Cloud only)",
        properties={**REPOSITORY, **_ISSUE_ID},
        required=("repository", "issueId"),
        cloud=PlatformBinding(_get),
        read_only=True,
    ),
    Operation(
        name="update_issue",
        description="Update an issue (Bitbucket Cloud only)",
        properties={
            **REPOSITORY,
            **_ISSUE_ID,
            **_ISSUE_FIELDS,
            "state": {"type": "string", "description": "New state"},
        },
        required=("repository", "issueId"),
        cloud=PlatformBinding(_update),
    ),
]
