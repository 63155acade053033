import re

import pytest

from geoapi import (
    GeoApiContext,
    InvalidRequestError,
    NetworkError,
    OverQueryLimitError,
    RequestDescriptor,
    ServerError,
    ValidationError,
)

OVER_QUERY_LIMIT_BODY = {
    "error_message": "You have exceeded your rate-limit for this API.",
    "results": [],
    "status": "OVER_QUERY_LIMIT",
}


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def test_construct_requires_exactly_one_credential_form():
    with pytest.raises(ValidationError):
        GeoApiContext()
    with pytest.raises(ValidationError):
        GeoApiContext(api_key="k", client_id="c", client_secret="c2VjcmV0")


def test_get_includes_default_user_agent(server):
    server.enqueue(200, {"status": "OK"})
    ctx = server.context()
    ctx.get(RequestDescriptor.of("/", "key", "value")).wait_ignore_error()

    ua = server.requests[0].headers["User-Agent"]
    assert re.fullmatch(r"GeoApiClientPython/\S+", ua)


def test_error_response_retries(server):
    server.enqueue_server_error()
    server.enqueue_good()
    pending = server.context().get(RequestDescriptor.of("/", "k", "v"))

    body = pending.wait()
    assert len(body["results"]) == 1
    assert body["results"][0]["formatted_address"].startswith("1600 Amphitheatre Parkway")
    assert pending.attempts == 2  # noqa: PLR2004
    assert server.request_count == 2  # noqa: PLR2004


def test_setting_max_retries(server):
    for _ in range(3):
        server.enqueue_server_error()
    server.enqueue_good()
    pending = server.context(max_retries=2).get(RequestDescriptor.of("/", "k", "v"))

    with pytest.raises(ServerError):
        pending.wait()
    assert pending.attempts == 3  # noqa: PLR2004
    assert server.request_count == 3  # noqa: PLR2004


def test_retry_can_be_disabled(server):
    server.enqueue_server_error()
    server.enqueue(200, {"results": [], "status": "ZERO_RESULTS"})
    pending = server.context(disable_retries=True).get(RequestDescriptor.of("/", "k", "v"))

    with pytest.raises(ServerError):
        pending.wait()
    assert server.request_count == 1


def test_retry_eventually_returns_the_right_exception(server):
    server.enqueue_server_error()
    clock = FakeClock()
    ctx = server.context(clock=clock, sleep=clock.sleep, max_retries=None, retry_timeout=5.0)
    start = clock.now

    with pytest.raises(ServerError) as ei:
        ctx.get(RequestDescriptor.of("/", "k", "v")).wait()
    assert str(ei.value) == "Server Error: 500 Internal server error"
    assert clock.now - start >= 5.0  # noqa: PLR2004
    assert server.request_count > 2  # noqa: PLR2004


def test_query_params_have_order_preserved(server):
    server.enqueue(200, {"status": "OK"})
    ctx = server.context()
    ctx.get(RequestDescriptor.of("/", "a", "1", "a", "2", "a", "3")).wait_ignore_error()

    assert "a=1&a=2&a=3" in str(server.requests[0].url)


def test_api_key_is_appended_after_params(server):
    server.enqueue(200, {"status": "OK"})
    server.context(api_key="AIza-123").get(RequestDescriptor.of("/geo", "q", "x y")).wait()

    assert str(server.requests[0].url) == "http://127.0.0.1:8080/geo?q=x+y&key=AIza-123"


def test_zero_results_is_success(server):
    server.enqueue(200, {"results": [], "status": "ZERO_RESULTS"})
    pending = server.context().get(RequestDescriptor.of("/", "k", "v"))

    assert pending.wait()["results"] == []
    assert pending.attempts == 1


def _over_query_limit_call(server, **kwargs):
    server.enqueue(400, OVER_QUERY_LIMIT_BODY)
    clock = FakeClock()
    ctx = server.context(max_retries=10, clock=clock, sleep=clock.sleep, **kwargs)
    return ctx.get(RequestDescriptor.of("/", "any-key", "any-value"))


def test_toggle_if_exception_is_allowed_to_retry(server):
    pending = _over_query_limit_call(server, retry_toggles={OverQueryLimitError: False})

    with pytest.raises(OverQueryLimitError) as ei:
        pending.wait(5)
    assert "exceeded your rate-limit" in str(ei.value)
    assert server.request_count == 1
    assert pending.attempts == 1


def test_same_call_without_toggle_is_retried(server):
    pending = _over_query_limit_call(server)

    with pytest.raises(OverQueryLimitError):
        pending.wait(5)
    assert server.request_count > 1
    assert pending.attempts == server.request_count


def test_over_query_limit_retried_by_default(server):
    server.enqueue(200, OVER_QUERY_LIMIT_BODY)
    server.enqueue(200, {"status": "OK", "results": []})
    pending = server.context().get(RequestDescriptor.of("/", "k", "v"))

    assert pending.wait()["status"] == "OK"
    assert pending.attempts == 2  # noqa: PLR2004


def test_status_field_takes_precedence_over_http_code(server):
    server.enqueue(500, {"status": "INVALID_REQUEST", "error_message": "bad param"})
    pending = server.context().get(RequestDescriptor.of("/", "k", "v"))

    with pytest.raises(InvalidRequestError, match="bad param"):
        pending.wait()
    assert pending.attempts == 1


def test_malformed_body_is_retried_as_network_error(server):
    server.enqueue(200, "{not json")
    server.enqueue(200, {"status": "OK"})
    pending = server.context().get(RequestDescriptor.of("/", "k", "v"))

    assert pending.wait() == {"status": "OK"}
    assert pending.attempts == 2  # noqa: PLR2004


def test_malformed_body_surfaces_network_error_when_exhausted(server):
    server.enqueue(200, "<html>oops</html>")
    pending = server.context(max_retries=1).get(RequestDescriptor.of("/", "k", "v"))

    with pytest.raises(NetworkError, match="Malformed response"):
        pending.wait()
    assert pending.attempts == 2  # noqa: PLR2004


def test_retries_reacquire_rate_limit_permits(server):
    server.enqueue_server_error()
    server.enqueue_good()
    ctx = server.context()
    calls = {"n": 0}
    orig = ctx.rate_limiter.acquire

    def _acquire():
        calls["n"] += 1
        return orig()

    ctx.rate_limiter.acquire = _acquire
    ctx.get(RequestDescriptor.of("/", "k", "v")).wait()
    assert calls["n"] == 2  # noqa: PLR2004


def test_convert_receives_parsed_body(server):
    server.enqueue_good()
    pending = server.context().get(
        RequestDescriptor.of("/", "k", "v"), convert=lambda body: len(body["results"])
    )
    assert pending.wait() == 1


def test_signed_request_carries_client_and_signature(server):
    server.enqueue(200, {"status": "OK"})
    ctx = server.context(
        api_key=None, client_id="clientID", client_secret="vNIXE0xscrmjlyV-12Nj_BvUPaw="
    )
    ctx.get(RequestDescriptor.of("/maps/api/geocode/json", "address", "New York")).wait()

    url = server.requests[0].url
    assert url.path == "/maps/api/geocode/json"
    assert [k for k, _ in url.params.multi_items()] == ["address", "client", "signature"]
    assert url.params["address"] == "New York"
    assert url.params["client"] == "clientID"
    assert url.params["signature"] == "chaRF2hTJKOScPr-RQCEhZbSzIE="
    assert "key" not in url.params


def test_closed_context_rejects_new_calls(server):
    ctx = server.context()
    ctx.close()
    with pytest.raises(RuntimeError):
        ctx.get(RequestDescriptor.of("/"))


def test_from_env(monkeypatch, server):
    monkeypatch.setenv("GEOAPI_API_KEY", "AIza-env")
    ctx = GeoApiContext.from_env(transport=server.context().transport)
    assert ctx.credentials.api_key == "AIza-env"
    ctx.close()
