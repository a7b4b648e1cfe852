"""Project/workspace and repository operations."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from ..exceptions import InvalidArgumentsError
from .base import (
    CONTEXT_NONE,
    CONTEXT_OPTIONAL,
    PAGINATION,
    REPOSITORY,
    Operation,
    OperationCall,
    PlatformBinding,
    PlatformRequest,
    RequestPlan,
    compact,
    segment,
    single,
    static,
)

_REPO_FIELDS: Dict[str, Any] = {
    "description": {"type": "string", "description": "Repository description"},
    "isPrivate": {"type": "boolean", "description": "Whether the repository is private"},
    "forkPolicy": {
        "type": "string",
        "description": "Cloud: allow_forks | no_public_forks | no_forks. Server: no_forks disables forking",
    },
    "language": {"type": "string", "description": "Primary language (Cloud only)"},
    "hasIssues": {"type": "boolean", "description": "Enable the issue tracker (Cloud only)"},
    "hasWiki": {"type": "boolean", "description": "Enable the wiki (Cloud only)"},
}


def _values(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, Mapping):
        values = payload.get("values")
        if isinstance(values, list):
            return values
    return []


def _total(payload: Any, values: List[Dict[str, Any]]) -> int:
    if isinstance(payload, Mapping) and payload.get("size"):
        return payload["size"]
    return len(values)


def _clone_href(repo: Mapping[str, Any], name: str) -> Optional[str]:
    links = repo.get("links") or {}
    for link in links.get("clone") or []:
        if link.get("name") == name:
            return link.get("href")
    return None


def slugify(name: str) -> str:
    """Cloud repository slug derived from a display name."""

    return re.sub(r"[^a-z0-9-]", "-", name.lower())


# Projects / workspaces
# ------------------------------------------------------------------------------


def _list_workspaces(payload: Any) -> Dict[str, Any]:
    workspaces = _values(payload)
    return {
        "total": _total(payload, workspaces),
        "showing": len(workspaces),
        "workspaces": [
            {
                "slug": ws.get("slug"),
                "name": ws.get("name"),
                "uuid": ws.get("uuid"),
                "private": ws.get("is_private"),
            }
            for ws in workspaces
        ],
    }


def _list_server_projects(payload: Any) -> Dict[str, Any]:
    projects = _values(payload)
    return {
        "total": _total(payload, projects),
        "showing": len(projects),
        "projects": [
            {
                "key": project.get("key"),
                "name": project.get("name"),
                "description": project.get("description"),
                "public": project.get("public"),
                "type": project.get("type"),
            }
            for project in projects
        ],
    }


def _cloud_list_projects(call: OperationCall) -> RequestPlan:
    return single(
        "GET",
        "/workspaces",
        params=call.page_params(),
        combine=lambda results: _list_workspaces(results[0]),
    )


def _server_list_projects(call: OperationCall) -> RequestPlan:
    return single(
        "GET",
        "/projects",
        params=call.page_params(),
        combine=lambda results: _list_server_projects(results[0]),
    )


# Repositories
# ------------------------------------------------------------------------------


def _cloud_list_repositories(call: OperationCall) -> RequestPlan:
    params: Dict[str, Any] = call.page_params()
    if call.context:
        path = f"/repositories/{segment(call.context)}"
    else:
        path = "/repositories"
        params["role"] = "member"

    def _combine(results: List[Any]) -> Dict[str, Any]:
        repos = _values(results[0])
        return {
            "workspace": call.context or "all",
            "total": _total(results[0], repos),
            "showing": len(repos),
            "repositories": [
                {
                    "name": repo.get("name"),
                    "full_name": repo.get("full_name"),
                    "description": repo.get("description"),
                    "private": repo.get("is_private"),
                    "cloneUrl": _clone_href(repo, "https"),
                    "owner": (repo.get("owner") or {}).get("username"),
                }
                for repo in repos
            ],
        }

    return single("GET", path, params=params, combine=_combine)


def _server_list_repositories(call: OperationCall) -> RequestPlan:
    if call.context:
        path = f"/projects/{segment(call.context)}/repos"
    else:
        path = "/repos"

    def _combine(results: List[Any]) -> Dict[str, Any]:
        repos = _values(results[0])
        return {
            "project": call.context or "all",
            "total": _total(results[0], repos),
            "showing": len(repos),
            "repositories": [
                {
                    "slug": repo.get("slug"),
                    "name": repo.get("name"),
                    "description": repo.get("description"),
                    "project": (repo.get("project") or {}).get("key"),
                    "public": repo.get("public"),
                    "cloneUrl": _clone_href(repo, "http"),
                    "state": repo.get("state"),
                }
                for repo in repos
            ],
        }

    return single("GET", path, params=call.page_params(), combine=_combine)


def _cloud_create_repository(call: OperationCall) -> RequestPlan:
    name = call.args["name"]
    slug = slugify(name)
    body = compact(
        {
            "name": name,
            "slug": slug,
            "is_private": call.arg("isPrivate") is not False,
            "fork_policy": call.arg("forkPolicy", "allow_forks"),
            "has_issues": call.arg("hasIssues") is not False,
            "has_wiki": bool(call.arg("hasWiki", False)),
            "project": {"key": call.context},
            "description": call.arg("description") or None,
            "language": call.arg("language") or None,
        }
    )
    return single("POST", f"/repositories/{segment(call.context)}/{segment(slug)}", json_body=body)


def _server_create_repository(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "name": call.args["name"],
            "forkable": call.arg("forkPolicy") != "no_forks",
            "public": not call.arg("isPrivate", False),
            "description": call.arg("description") or None,
        }
    )
    return single("POST", f"/projects/{segment(call.context)}/repos", json_body=body)


def _cloud_update_repository(call: OperationCall) -> RequestPlan:
    body = compact(
        {
            "name": call.arg("name") or None,
            "description": call.arg("description"),
            "is_private": call.arg("isPrivate"),
            "fork_policy": call.arg("forkPolicy") or None,
            "language": call.arg("language") or None,
            "has_issues": call.arg("hasIssues"),
            "has_wiki": call.arg("hasWiki"),
        }
    )
    return single("PUT", call.repo_path(), json_body=body)


def _server_update_repository(call: OperationCall) -> RequestPlan:
    is_private = call.arg("isPrivate")
    body = compact(
        {
            "name": call.arg("name") or None,
            "description": call.arg("description"),
            "public": None if is_private is None else not is_private,
            "forkPolicy": call.arg("forkPolicy") or None,
        }
    )
    return single("PUT", call.repo_path(), json_body=body)


def _cloud_fork_repository(call: OperationCall) -> RequestPlan:
    source = call.args["sourceWorkspace"]
    body: Dict[str, Any] = compact({"name": call.arg("name") or None})
    if call.context:
        body["parent"] = {"full_name": f"{source}/{call.repository}"}
        body["workspace"] = {"slug": call.context}
    return single(
        "POST",
        f"/repositories/{segment(source)}/{segment(call.repository)}/forks",
        json_body=body,
    )


def _server_fork_repository(call: OperationCall) -> RequestPlan:
    source = call.args["sourceWorkspace"]
    body: Dict[str, Any] = {"slug": call.arg("name") or call.repository}
    if call.context:
        body["project"] = {"key": call.context}
    return single(
        "POST",
        f"/projects/{segment(source)}/repos/{segment(call.repository)}",
        json_body=body,
    )


def _get_repository(call: OperationCall) -> RequestPlan:
    return single("GET", call.repo_path())


def _settings(call: OperationCall) -> Mapping[str, Any]:
    settings = call.arg("settings", {})
    return settings if isinstance(settings, Mapping) else {}


def _cloud_update_settings(call: OperationCall) -> RequestPlan:
    settings = _settings(call)
    body = compact(
        {
            "name": settings.get("name") or None,
            "description": settings.get("description") or None,
            "is_private": settings.get("isPrivate"),
            "has_issues": settings.get("hasIssues"),
            "has_wiki": settings.get("hasWiki"),
            "fork_policy": settings.get("forkPolicy") or None,
            "language": settings.get("language") or None,
            "website": settings.get("website") or None,
        }
    )
    return single("PUT", call.repo_path(), json_body=body)


def _server_update_settings(call: OperationCall) -> RequestPlan:
    settings = _settings(call)
    is_private = settings.get("isPrivate")
    fork_policy = settings.get("forkPolicy")
    body = compact(
        {
            "name": settings.get("name") or None,
            "description": settings.get("description") or None,
            "public": None if is_private is None else not is_private,
            "forkable": (fork_policy != "no_forks") if fork_policy else None,
        }
    )
    return single("PUT", call.repo_path(), json_body=body)


def _delete_repository(call: OperationCall) -> RequestPlan:
    if call.args["confirmName"] != call.repository:
        raise InvalidArgumentsError(
            call.operation,
            "confirmName must exactly match the repository name",
            fields=["confirmName"],
        )
    return single(
        "DELETE",
        call.repo_path(),
        message=f"Repository {call.repository} deleted permanently",
    )


def _cloud_repository_stats(call: OperationCall) -> RequestPlan:
    def _combine(results: List[Any]) -> Dict[str, Any]:
        repo, commits = results
        repo = repo or {}
        return {
            "repository": repo,
            "totalCommits": (commits or {}).get("size") or 0,
            "lastUpdated": repo.get("updated_on"),
            "size": repo.get("size"),
            "language": repo.get("language"),
            "forkPolicy": repo.get("fork_policy"),
        }

    return RequestPlan(
        requests=(
            PlatformRequest("GET", call.repo_path()),
            PlatformRequest("GET", call.repo_path("commits"), params={"pagelen": 1}),
        ),
        combine=_combine,
    )


def _archive(call: OperationCall) -> RequestPlan:
    ref = call.arg("ref", "HEAD")
    fmt = call.arg("format", "zip")
    if call.is_cloud:
        url = f"{call.api_base_url}{call.repo_path('downloads', segment(f'{ref}.{fmt}'))}"
    else:
        url = f"{call.api_base_url}{call.repo_path('archive')}?at={segment(ref)}&format={fmt.upper()}"
    return static({"downloadUrl": url, "ref": ref, "format": fmt})


OPERATIONS = [
    Operation(
        name="list_projects",
        description="List workspaces (Cloud) or projects (Server/Data Center) visible to the configured account",
        properties=dict(PAGINATION),
        cloud=PlatformBinding(_cloud_list_projects, context=CONTEXT_NONE),
        server=PlatformBinding(_server_list_projects, context=CONTEXT_NONE),
        read_only=True,
    ),
    Operation(
        name="list_repositories",
        description="List repositories in a workspace/project, or every repository the account can see",
        properties=dict(PAGINATION),
        cloud=PlatformBinding(_cloud_list_repositories, context=CONTEXT_OPTIONAL),
        server=PlatformBinding(_server_list_repositories, context=CONTEXT_OPTIONAL),
        read_only=True,
    ),
    Operation(
        name="create_repository",
        description="Create a repository",
        properties={"name": {"type": "string", "description": "Repository name"}, **_REPO_FIELDS},
        required=("name",),
        cloud=PlatformBinding(_cloud_create_repository),
        server=PlatformBinding(_server_create_repository),
    ),
    Operation(
        name="update_repository",
        description="Update repository metadata",
        properties={
            **REPOSITORY,
            "name": {"type": "string", "description": "New display name"},
            **_REPO_FIELDS,
        },
        required=("repository",),
        cloud=PlatformBinding(_cloud_update_repository),
        server=PlatformBinding(_server_update_repository),
    ),
    Operation(
        name="fork_repository",
        description="Fork a repository into the given (or default) workspace/project",
        properties={
            "sourceWorkspace": {"type": "string", "description": "Workspace/project that owns the source repository"},
            **REPOSITORY,
            "name": {"type": "string", "description": "Name for the fork"},
        },
        required=("sourceWorkspace", "repository"),
        cloud=PlatformBinding(_cloud_fork_repository, context=CONTEXT_OPTIONAL),
        server=PlatformBinding(_server_fork_repository, context=CONTEXT_OPTIONAL),
    ),
    Operation(
        name="get_repository_settings",
        description="Get repository settings",
        properties=dict(REPOSITORY),
        required=("repository",),
        cloud=PlatformBinding(_get_repository),
        server=PlatformBinding(_get_repository),
        read_only=True,
    ),
    Operation(
        name="update_repository_settings",
        description="Update repository settings",
        properties={
            **REPOSITORY,
            "settings": {
                "type": "object",
                "description": "Settings to change",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "isPrivate": {"type": "boolean"},
                    "hasIssues": {"type": "boolean"},
                    "hasWiki": {"type": "boolean"},
                    "forkPolicy": {"type": "string"},
                    "language": {"type": "string"},
                    "website": {"type": "string"},
                },
            },
        },
        required=("repository", "settings"),
        cloud=PlatformBinding(_cloud_update_settings),
        server=PlatformBinding(_server_update_settings),
    ),
    Operation(
        name="delete_repository",
        description="Permanently delete a repository. Requires confirmName to equal the repository name",
        properties={
            **REPOSITORY,
            "confirmName": {"type": "string", "description": "Repeat the repository name to confirm"},
        },
        required=("repository", "confirmName"),
        cloud=PlatformBinding(_delete_repository),
        server=PlatformBinding(_delete_repository),
    ),
    Operation(
        name="get_repository_stats",
        description="Repository statistics: metadata plus commit count (Cloud)",
        properties=dict(REPOSITORY),
        required=("repository",),
        cloud=PlatformBinding(_cloud_repository_stats),
        server=PlatformBinding(_get_repository),
        read_only=True,
    ),
    Operation(
        name="get_repository_archive",
        description="Build a download URL for a repository archive",
        properties={
            **REPOSITORY,
            "ref": {"type": "string", "description": "Branch, tag or commit (default HEAD)"},
            "format": {"type": "string", "description": "zip | tar.gz (default zip)"},
        },
        required=("repository",),
        cloud=PlatformBinding(_archive),
        server=PlatformBinding(_archive),
        read_only=True,
    ),
]
