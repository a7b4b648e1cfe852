import httpx

from bitbucket_mcp import metrics


def test_tool_call_metrics_accumulate():
    metrics._reset_metrics_for_tests()

    metrics._record_tool_call("create_tag", write_action=True, duration_ms=10, errored=False)
    metrics._record_tool_call("create_tag", write_action=True, duration_ms=-5, errored=True)

    bucket = metrics._metrics_snapshot()["tools"]["create_tag"]
    assert bucket == {
        "calls_total": 2,
        "errors_total": 1,
        "write_calls_total": 2,
        "latency_ms_sum": 10,
    }


def test_bitbucket_request_metrics_count_auth_failures_and_timeouts():
    metrics._reset_metrics_for_tests()

    metrics._record_bitbucket_request(status_code=200, duration_ms=5, error=False)
    metrics._record_bitbucket_request(status_code=401, duration_ms=5, error=True)
    metrics._record_bitbucket_request(
        status_code=None, duration_ms=30000, error=True, exc=httpx.ReadTimeout("slow")
    )

    assert metrics._metrics_snapshot()["bitbucket"] == {
        "requests_total": 3,
        "errors_total": 2,
        "auth_failures_total": 1,
        "timeouts_total": 1,
    }
