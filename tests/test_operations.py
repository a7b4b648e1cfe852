"""Binding-level checks: plans are built without sending anything."""

import httpx
import pytest

from bitbucket_mcp.operations import OPERATIONS
from bitbucket_mcp.platform_config import resolve_config
from bitbucket_mcp.translator import OperationTranslator

CLOUD = resolve_config(
    {
        "base_url": "https://bitbucket.org",
        "username": "alice",
        "token": "tok",
        "default_context": "acme",
    }
)
SERVER = resolve_config(
    {"base_url": "https://git.example.com", "token": "tok", "default_context": "PROJ"}
)


def _plan(config, name, args):
    translator = OperationTranslator(config, httpx.AsyncClient())
    binding, call = translator.prepare(name, args)
    return binding.build(call)


def _only_request(config, name, args):
    plan = _plan(config, name, args)
    (request,) = plan.requests
    return request


def test_operation_names_are_unique_and_complete():
    assert len(OPERATIONS) == 62
    assert {"list_projects", "get_repository_stats", "watch_repository", "get_build_status"} <= set(OPERATIONS)


@pytest.mark.parametrize(
    "config, expected_path, expected_body",
    [
        (CLOUD, "/user/ssh-keys", {"key": "ssh-ed25519 AAAA", "label": "laptop"}),
        (SERVER, "/ssh/keys", {"text": "ssh-ed25519 AAAA", "label": "laptop"}),
    ],
)
def test_add_ssh_key_needs_no_context(config, expected_path, expected_body):
    request = _only_request(config, "add_ssh_key", {"key": "ssh-ed25519 AAAA", "label": "laptop"})

    assert request.path == expected_path
    assert request.json_body == expected_body


def test_server_deploy_key_is_read_only_access_key():
    request = _only_request(SERVER, "add_deploy_key", {"repository": "web", "key": "ssh-rsa X", "label": "ci"})

    assert request.path == "/projects/PROJ/repos/web/ssh"
    assert request.json_body == {"key": {"text": "ssh-rsa X", "label": "ci"}, "permission": "REPO_READ"}


def test_server_webhook_name_defaults():
    request = _only_request(
        SERVER, "create_webhook", {"repository": "web", "url": "https://ci.example.com/hook", "events": ["repo:refs_changed"]}
    )

    assert request.path == "/projects/PROJ/repos/web/webhooks"
    assert request.json_body["name"] == "Webhook"
    assert request.json_body["active"] is True


def test_cloud_webhook_path():
    request = _only_request(CLOUD, "get_webhook", {"repository": "web", "webhookId": "{abc}"})

    assert request.path == "/repositories/acme/web/hooks/%7Babc%7D"


def test_search_code_shapes():
    cloud = _only_request(CLOUD, "search_code", {"query": "TODO", "repository": "web"})
    assert cloud.path == "/repositories/acme/web/search/code"
    assert cloud.params["search_query"] == "TODO"

    cloud_ws = _only_request(CLOUD, "search_code", {"query": "TODO"})
    assert cloud_ws.path == "/workspaces/acme/search/code"

    server = _only_request(SERVER, "search_code", {"query": "TODO", "repository": "web"})
    assert server.path == "/search"
    assert server.params["type"] == "code"
    assert server.params["repositorySlug"] == "web"
    assert server.params["projectKey"] == "PROJ"


def test_file_content_paths_keep_slashes():
    cloud = _only_request(CLOUD, "get_file_content", {"repository": "web", "path": "src/app/main.py", "ref": "dev"})
    assert cloud.path == "/repositories/acme/web/src/dev/src/app/main.py"
    assert cloud.text is True

    server = _only_request(SERVER, "get_file_content", {"repository": "web", "path": "src/app/main.py", "ref": "dev"})
    assert server.path == "/projects/PROJ/repos/web/raw/src/app/main.py"
    assert server.params == {"at": "dev"}


def test_cloud_directory_listing_has_trailing_slash():
    request = _only_request(CLOUD, "list_directory", {"repository": "web"})

    assert request.path == "/repositories/acme/web/src/HEAD/"
    assert request.text is False


def test_commit_paths_differ_per_platform():
    assert _only_request(CLOUD, "get_commit", {"repository": "web", "commitId": "abc"}).path == (
        "/repositories/acme/web/commit/abc"
    )
    assert _only_request(SERVER, "get_commit", {"repository": "web", "commitId": "abc"}).path == (
        "/projects/PROJ/repos/web/commits/abc"
    )


def test_server_list_commits_uses_until():
    request = _only_request(SERVER, "list_commits", {"repository": "web", "branch": "develop"})

    assert request.params == {"limit": 25, "start": 0, "until": "develop"}


def test_inline_commit_comment_shapes():
    args = {"repository": "web", "commitId": "abc", "content": "nit", "path": "a.py", "line": 4}

    cloud = _only_request(CLOUD, "create_commit_comment", args)
    assert cloud.json_body["inline"] == {"path": "a.py", "from": 4, "to": 4}

    server = _only_request(SERVER, "create_commit_comment", args)
    assert server.json_body == {"text": "nit", "anchor": {"path": "a.py", "line": 4}}


def test_list_users_context_differs_per_platform():
    assert _only_request(CLOUD, "list_users", {}).path == "/workspaces/acme/members"
    assert _only_request(SERVER, "list_users", {}).path == "/admin/users"


def test_stop_pipeline_path():
    request = _only_request(CLOUD, "stop_pipeline", {"repository": "web", "pipelineId": "{p1}"})

    assert request.method == "POST"
    assert request.path == "/repositories/acme/web/pipelines/%7Bp1%7D/stopPipeline"


def test_server_fork_targets_source_project():
    request = _only_request(
        SERVER, "fork_repository", {"sourceWorkspace": "UPSTREAM", "repository": "web"}
    )

    assert request.path == "/projects/UPSTREAM/repos/web"
    assert request.json_body == {"slug": "web", "project": {"key": "PROJ"}}


def test_server_branch_restriction_body():
    request = _only_request(
        SERVER,
        "create_branch_restriction",
        {"repository": "web", "kind": "no-deletes", "pattern": "release/*"},
    )

    assert request.path == "/projects/PROJ/repos/web/restrictions"
    assert request.json_body == {
        "type": "no-deletes",
        "matcher": {"id": "release/*", "type": {"id": "PATTERN"}},
        "users": [],
        "groups": [],
    }


CLOUD_REPO = "/repositories/acme/web"
SERVER_REPO = "/projects/PROJ/repos/web"
CLOUD_PAGE = {"pagelen": 25, "page": 1}
SERVER_PAGE = {"limit": 25, "start": 0}


def _case(config, name, args, method, path, params=None, body=None, message=None):
    platform = "cloud" if config is CLOUD else "server"
    return pytest.param(config, name, args, method, path, params, body, message, id=f"{platform}-{name}")


REQUEST_SHAPES = [
    # branches
    _case(CLOUD, "list_branch_restrictions", {"repository": "web"}, "GET", f"{CLOUD_REPO}/branch-restrictions"),
    _case(SERVER, "list_branch_restrictions", {"repository": "web"}, "GET", f"{SERVER_REPO}/restrictions"),
    # build status
    _case(
        SERVER,
        "set_build_status",
        {"repository": "web", "commitId": "abc123", "state": "SUCCESSFUL", "key": "ci", "url": "https://ci.example.com/1"},
        "POST",
        f"{SERVER_REPO}/commits/abc123/builds",
        body={"state": "SUCCESSFUL", "key": "ci", "url": "https://ci.example.com/1"},
    ),
    # commits
    _case(
        CLOUD,
        "list_commit_comments",
        {"repository": "web", "commitId": "abc123"},
        "GET",
        f"{CLOUD_REPO}/commit/abc123/comments",
    ),
    _case(
        SERVER,
        "list_commit_comments",
        {"repository": "web", "commitId": "abc123"},
        "GET",
        f"{SERVER_REPO}/commits/abc123/comments",
    ),
    # issues
    _case(
        CLOUD,
        "create_issue",
        {"repository": "web", "title": "Crash", "content": "Steps", "kind": "bug", "assignee": "bob"},
        "POST",
        f"{CLOUD_REPO}/issues",
        body={
            "title": "Crash",
            "content": {"raw": "Steps", "markup": "markdown"},
            "kind": "bug",
            "assignee": {"username": "bob"},
        },
    ),
    _case(CLOUD, "get_issue", {"repository": "web", "issueId": 12}, "GET", f"{CLOUD_REPO}/issues/12"),
    _case(
        CLOUD,
        "update_issue",
        {"repository": "web", "issueId": 12, "state": "resolved", "milestone": "v1"},
        "PUT",
        f"{CLOUD_REPO}/issues/12",
        body={"state": "resolved", "milestone": {"name": "v1"}},
    ),
    # keys
    _case(CLOUD, "list_ssh_keys", {}, "GET", "/user/ssh-keys", params=CLOUD_PAGE),
    _case(SERVER, "list_ssh_keys", {}, "GET", "/ssh/keys", params=SERVER_PAGE),
    _case(
        CLOUD, "delete_ssh_key", {"keyId": "{k1}"}, "DELETE", "/user/ssh-keys/%7Bk1%7D",
        message="SSH key deleted successfully",
    ),
    _case(SERVER, "delete_ssh_key", {"keyId": 7}, "DELETE", "/ssh/keys/7", message="SSH key deleted successfully"),
    _case(CLOUD, "list_deploy_keys", {"repository": "web"}, "GET", f"{CLOUD_REPO}/deploy-keys"),
    _case(SERVER, "list_deploy_keys", {"repository": "web"}, "GET", f"{SERVER_REPO}/ssh"),
    _case(
        CLOUD, "delete_deploy_key", {"repository": "web", "keyId": 3}, "DELETE", f"{CLOUD_REPO}/deploy-keys/3",
        message="Deploy key deleted successfully",
    ),
    _case(
        SERVER, "delete_deploy_key", {"repository": "web", "keyId": 3}, "DELETE", f"{SERVER_REPO}/ssh/3",
        message="Deploy key deleted successfully",
    ),
    # permissions
    _case(CLOUD, "get_repository_permissions", {"repository": "web"}, "GET", CLOUD_REPO),
    _case(
        CLOUD,
        "get_repository_permissions",
        {"repository": "web", "user": "{u1}"},
        "GET",
        f"{CLOUD_REPO}/permissions-config/users/%7Bu1%7D",
    ),
    _case(SERVER, "get_repository_permissions", {"repository": "web"}, "GET", f"{SERVER_REPO}/permissions"),
    _case(
        SERVER,
        "get_repository_permissions",
        {"repository": "web", "user": "alice"},
        "GET",
        f"{SERVER_REPO}/permissions/users",
        params={"filter": "alice"},
    ),
    # pipelines
    _case(CLOUD, "get_pipeline", {"repository": "web", "pipelineId": "42"}, "GET", f"{CLOUD_REPO}/pipelines/42"),
    _case(
        CLOUD,
        "trigger_pipeline",
        {"repository": "web", "target": {"type": "pipeline_ref_name", "name": "main"}},
        "POST",
        f"{CLOUD_REPO}/pipelines/",
        body={"target": {"type": "pipeline_ref_name", "ref_name": "main"}},
    ),
    _case(
        CLOUD,
        "trigger_pipeline",
        {
            "repository": "web",
            "target": {"type": "pipeline_commit_sha", "name": "abc123"},
            "variables": [{"key": "ENV", "value": "staging"}],
        },
        "POST",
        f"{CLOUD_REPO}/pipelines/",
        body={
            "target": {"type": "pipeline_commit_sha", "commit": {"hash": "abc123"}},
            "variables": [{"key": "ENV", "value": "staging"}],
        },
    ),
    # pull requests
    _case(CLOUD, "get_pull_request", {"repository": "web", "prId": 7}, "GET", f"{CLOUD_REPO}/pullrequests/7"),
    _case(SERVER, "get_pull_request", {"repository": "web", "prId": 7}, "GET", f"{SERVER_REPO}/pull-requests/7"),
    _case(
        CLOUD,
        "decline_pull_request",
        {"repository": "web", "prId": 7, "message": "stale"},
        "POST",
        f"{CLOUD_REPO}/pullrequests/7/decline",
        body={"reason": "stale"},
    ),
    _case(
        CLOUD,
        "decline_pull_request",
        {"repository": "web", "prId": 7},
        "POST",
        f"{CLOUD_REPO}/pullrequests/7/decline",
        body={},
    ),
    _case(
        SERVER,
        "decline_pull_request",
        {"repository": "web", "prId": 7, "message": "stale"},
        "POST",
        f"{SERVER_REPO}/pull-requests/7/decline",
        body={"version": -1, "message": "stale"},
    ),
    _case(
        SERVER,
        "decline_pull_request",
        {"repository": "web", "prId": 7},
        "POST",
        f"{SERVER_REPO}/pull-requests/7/decline",
        body={"version": -1},
    ),
    _case(
        CLOUD,
        "add_comment",
        {"repository": "web", "prId": 7, "text": "LGTM", "parentId": 3},
        "POST",
        f"{CLOUD_REPO}/pullrequests/7/comments",
        body={"content": {"raw": "LGTM"}, "parent": {"id": 3}},
    ),
    _case(
        SERVER,
        "add_comment",
        {"repository": "web", "prId": 7, "text": "LGTM"},
        "POST",
        f"{SERVER_REPO}/pull-requests/7/comments",
        body={"text": "LGTM"},
    ),
    _case(
        CLOUD,
        "get_pull_request_activity",
        {"repository": "web", "prId": 7},
        "GET",
        f"{CLOUD_REPO}/pullrequests/7/activity",
    ),
    _case(
        SERVER,
        "get_pull_request_activity",
        {"repository": "web", "prId": 7},
        "GET",
        f"{SERVER_REPO}/pull-requests/7/activities",
    ),
    _case(
        CLOUD,
        "get_pull_request_commits",
        {"repository": "web", "prId": 7},
        "GET",
        f"{CLOUD_REPO}/pullrequests/7/commits",
        params=CLOUD_PAGE,
    ),
    _case(
        SERVER,
        "get_pull_request_commits",
        {"repository": "web", "prId": 7},
        "GET",
        f"{SERVER_REPO}/pull-requests/7/commits",
        params=SERVER_PAGE,
    ),
    # repositories
    _case(
        CLOUD,
        "update_repository",
        {"repository": "web", "description": "svc", "forkPolicy": "no_forks"},
        "PUT",
        CLOUD_REPO,
        body={"description": "svc", "fork_policy": "no_forks"},
    ),
    _case(
        SERVER,
        "update_repository",
        {"repository": "web", "name": "web2", "forkPolicy": "no_forks"},
        "PUT",
        SERVER_REPO,
        body={"name": "web2", "forkPolicy": "no_forks"},
    ),
    _case(
        CLOUD,
        "update_repository_settings",
        {"repository": "web", "settings": {"hasIssues": True, "website": "https://example.com"}},
        "PUT",
        CLOUD_REPO,
        body={"has_issues": True, "website": "https://example.com"},
    ),
    _case(
        SERVER,
        "update_repository_settings",
        {"repository": "web", "settings": {"name": "web2", "forkPolicy": "no_forks"}},
        "PUT",
        SERVER_REPO,
        body={"name": "web2", "forkable": False},
    ),
    # users and watchers
    _case(CLOUD, "get_user", {"username": "alice"}, "GET", "/users/alice"),
    _case(SERVER, "get_user", {"username": "alice"}, "GET", "/users/alice"),
    _case(CLOUD, "list_watchers", {"repository": "web"}, "GET", f"{CLOUD_REPO}/watchers", params=CLOUD_PAGE),
    # webhooks
    _case(CLOUD, "list_webhooks", {"repository": "web"}, "GET", f"{CLOUD_REPO}/hooks"),
    _case(SERVER, "list_webhooks", {"repository": "web"}, "GET", f"{SERVER_REPO}/webhooks"),
    _case(
        CLOUD,
        "update_webhook",
        {"repository": "web", "webhookId": "{h1}", "active": False},
        "PUT",
        f"{CLOUD_REPO}/hooks/%7Bh1%7D",
        body={"active": False},
    ),
    _case(
        SERVER,
        "update_webhook",
        {"repository": "web", "webhookId": 5, "description": "CI", "events": ["repo:refs_changed"]},
        "PUT",
        f"{SERVER_REPO}/webhooks/5",
        body={"name": "CI", "events": ["repo:refs_changed"]},
    ),
    _case(
        CLOUD, "delete_webhook", {"repository": "web", "webhookId": 5}, "DELETE", f"{CLOUD_REPO}/hooks/5",
        message="Webhook deleted successfully",
    ),
    _case(
        SERVER, "delete_webhook", {"repository": "web", "webhookId": 5}, "DELETE", f"{SERVER_REPO}/webhooks/5",
        message="Webhook deleted successfully",
    ),
]


@pytest.mark.parametrize("config, name, args, method, path, params, body, message", REQUEST_SHAPES)
def test_request_shape(config, name, args, method, path, params, body, message):
    plan = _plan(config, name, args)
    (request,) = plan.requests

    assert request.method == method
    assert request.path == path
    assert request.params == params
    assert request.json_body == body
    assert request.text is False
    assert plan.message == message


def test_unwatch_repository_resolves_caller_before_delete():
    plan = _plan(CLOUD, "unwatch_repository", {"repository": "web"})

    (lookup,) = plan.requests
    assert (lookup.method, lookup.path) == ("GET", "/user")

    follow_up = plan.then([{"uuid": "{u1}", "username": "alice"}])
    (request,) = follow_up.requests
    assert request.method == "DELETE"
    assert request.path == f"{CLOUD_REPO}/watchers/%7Bu1%7D"
    assert follow_up.message == "Repository unwatched successfully"


def test_request_shape_table_covers_both_platforms_where_bound():
    covered = {(case.values[0] is CLOUD, case.values[1]) for case in REQUEST_SHAPES}

    for name in {name for _, name in covered}:
        operation = OPERATIONS[name]
        if operation.cloud is not None:
            assert (True, name) in covered, f"no cloud shape for {name}"
        if operation.server is not None:
            assert (False, name) in covered, f"no server shape for {name}"
