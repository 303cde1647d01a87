from __future__ import annotations

import json
import time

import pytest
import requests

from querywait.infrastructure.http_client import get_json_with_retries, post_json_with_retries
from querywait.infrastructure.retry import RetryConfig, create_retry_decorator, retry_config_from_dict


def _make_response(status_code: int, payload: dict | None = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status_code
    r.url = "http://example.test"
    if payload is None:
        payload = {}
    r._content = json.dumps(payload).encode("utf-8")  # type: ignore[attr-defined]
    r.headers["Content-Type"] = "application/json"
    return r


@pytest.fixture
def sleeps(monkeypatch):
    """Record tenacity sleeps instead of sleeping"""
    calls = []
    monkeypatch.setattr(time, "sleep", calls.append)
    return calls


def test_post_json_retries_on_5xx(monkeypatch, sleeps):
    calls = {"n": 0}

    def fake_post(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            return _make_response(500, {"error": "boom"})
        return _make_response(200, {"ok": True})

    monkeypatch.setattr(requests, "post", fake_post)

    resp = post_json_with_retries(
        "http://example.test",
        payload={"query": "fetch logs"},
        headers={"Content-Type": "application/json"},
        timeout=1,
        retry=RetryConfig(max_attempts=2, initial_delay=0, backoff_multiplier=2, jitter=0),
    )
    assert resp.status_code == 200
    assert calls["n"] == 2


def test_post_json_retries_on_429(monkeypatch, sleeps):
    responses = [_make_response(429), _make_response(200, {"ok": True})]
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: responses.pop(0))

    resp = post_json_with_retries(
        "http://example.test",
        payload={},
        headers={},
        timeout=1,
        retry=RetryConfig(max_attempts=3, initial_delay=0, jitter=0),
    )
    assert resp.status_code == 200


@pytest.mark.parametrize("status_code", [400, 401, 403, 404])
def test_post_json_does_not_retry_on_4xx(monkeypatch, sleeps, status_code):
    calls = {"n": 0}

    def fake_post(*args, **kwargs):
        calls["n"] += 1
        return _make_response(status_code, {"error": "nope"})

    monkeypatch.setattr(requests, "post", fake_post)

    with pytest.raises(requests.HTTPError):
        post_json_with_retries(
            "http://example.test",
            payload={"x": 1},
            headers={"Content-Type": "application/json"},
            timeout=1,
            retry=RetryConfig(max_attempts=3, initial_delay=0, backoff_multiplier=2, jitter=0),
        )
    assert calls["n"] == 1


def test_network_error_retried_then_wrapped(monkeypatch, sleeps):
    calls = {"n": 0}

    def fake_get(*args, **kwargs):
        calls["n"] += 1
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", fake_get)

    with pytest.raises(RuntimeError, match="HTTP request failed"):
        get_json_with_retries(
            "http://example.test",
            params={"request-token": "t"},
            headers={},
            timeout=1,
            retry=RetryConfig(max_attempts=3, initial_delay=0, jitter=0),
        )
    assert calls["n"] == 3


def test_get_passes_params(monkeypatch):
    seen = {}

    def fake_get(url, **kwargs):
        seen.update(kwargs, url=url)
        return _make_response(200, {"state": "SUCCEEDED"})

    monkeypatch.setattr(requests, "get", fake_get)

    resp = get_json_with_retries(
        "http://example.test/poll",
        params={"request-token": "abc"},
        headers={"Authorization": "Bearer t"},
        timeout=5,
        retry=RetryConfig(max_attempts=1),
    )
    assert resp.json() == {"state": "SUCCEEDED"}
    assert seen["url"] == "http://example.test/poll"
    assert seen["params"] == {"request-token": "abc"}
    assert seen["timeout"] == 5


def test_post_json_with_jitter(monkeypatch, sleeps):
    """Test that jitter adds randomness to retry delays"""
    calls = {"n": 0}

    def fake_post(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] < 3:
            return _make_response(500, {"error": "boom"})
        return _make_response(200, {"ok": True})

    monkeypatch.setattr(requests, "post", fake_post)

    resp = post_json_with_retries(
        "http://example.test",
        payload={"x": 1},
        headers={"Content-Type": "application/json"},
        timeout=1,
        retry=RetryConfig(max_attempts=3, initial_delay=1.0, backoff_multiplier=2, jitter=0.1),
    )
    assert resp.status_code == 200
    assert calls["n"] == 3
    assert len(sleeps) == 2
    # First delay: 1.0 +/- 0.1
    assert 0.9 <= sleeps[0] <= 1.1
    # Second delay: 2.0 +/- 0.1
    assert 1.9 <= sleeps[1] <= 2.1


def test_custom_backoff_multiplier():
    """Test that custom backoff_multiplier shapes the delays"""
    delays = []
    calls = {"n": 0}

    @create_retry_decorator(
        RetryConfig(max_attempts=3, initial_delay=0.01, backoff_multiplier=3, jitter=0),
        retry_condition=lambda e: isinstance(e, ValueError),
        before_sleep=lambda state: delays.append(state.next_action.sleep),
    )
    def flaky():
        calls["n"] += 1
        if calls["n"] < 3:
            raise ValueError("again")
        return "ok"

    assert flaky() == "ok"
    assert delays == [pytest.approx(0.01), pytest.approx(0.03)]


def test_retry_config_from_dict_clamps_values():
    config = retry_config_from_dict(
        {"max_attempts": 0, "initial_delay": -1, "backoff_multiplier": 0.5, "jitter": "bad"}
    )
    assert config == RetryConfig(max_attempts=1, initial_delay=0.0, backoff_multiplier=1.0, jitter=0.1)


def test_retry_config_from_dict_defaults():
    assert retry_config_from_dict({}) == RetryConfig()


def test_deadline_stops_retries_and_bounds_sleep(monkeypatch):
    """Test retry sleeps are clamped to the deadline and no retry starts after it"""
    calls = {"n": 0}

    def fake_post(*args, **kwargs):
        calls["n"] += 1
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(requests, "post", fake_post)

    started = time.monotonic()
    with pytest.raises(RuntimeError, match="HTTP request failed"):
        post_json_with_retries(
            "http://example.test",
            payload={},
            headers={},
            timeout=30,
            retry=RetryConfig(max_attempts=10, initial_delay=1.0, jitter=0),
            deadline=started + 0.3,
        )

    assert time.monotonic() - started < 1.0
    assert calls["n"] <= 2


def test_request_timeout_recomputed_per_attempt(monkeypatch):
    """Test every retry gets only the time left before the deadline"""
    timeouts = []

    def fake_post(*args, **kwargs):
        timeouts.append(kwargs["timeout"])
        if len(timeouts) == 1:
            raise requests.exceptions.ConnectionError("reset")
        return _make_response(200, {"ok": True})

    monkeypatch.setattr(requests, "post", fake_post)

    resp = post_json_with_retries(
        "http://example.test",
        payload={},
        headers={},
        timeout=30,
        retry=RetryConfig(max_attempts=3, initial_delay=0.2, jitter=0),
        deadline=time.monotonic() + 5.0,
    )

    assert resp.status_code == 200
    assert timeouts[0] <= 5.0
    assert timeouts[1] < timeouts[0] - 0.15


def test_request_timeout_unchanged_without_deadline(monkeypatch):
    seen = {}

    def fake_post(*args, **kwargs):
        seen.update(kwargs)
        return _make_response(200)

    monkeypatch.setattr(requests, "post", fake_post)

    post_json_with_retries(
        "http://example.test", payload={}, headers={}, timeout=30, retry=RetryConfig(max_attempts=1)
    )

    assert seen["timeout"] == 30
