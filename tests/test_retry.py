from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from bugwatch import retry

EXPECTED_ATTEMPTS = 3


@dataclass
class _Response:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)


def _sequence(*responses: _Response):
    queue = list(responses)
    calls: list[int] = []

    def fn():
        calls.append(1)
        return queue.pop(0)

    return fn, calls


def test_transient_then_success():
    fn, calls = _sequence(_Response(503), _Response(200))
    sleeps: list[float] = []
    result = retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=3, base_sleep=0.0), sleep=sleeps.append)
    assert result.status_code == 200
    assert len(calls) == 2
    assert len(sleeps) == 1


def test_non_transient_returned_immediately():
    fn, calls = _sequence(_Response(404))
    result = retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=3, base_sleep=0.0), sleep=lambda s: None)
    assert result.status_code == 404
    assert len(calls) == 1


def test_transient_exhausts_and_returns_last_response():
    fn, calls = _sequence(_Response(429), _Response(502), _Response(504))
    result = retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=3, base_sleep=0.0), sleep=lambda s: None)
    assert result.status_code == 504
    assert len(calls) == EXPECTED_ATTEMPTS


def test_retry_after_header_is_honoured():
    fn, _ = _sequence(_Response(429, {"Retry-After": "7"}), _Response(200))
    sleeps: list[float] = []
    retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=2, base_sleep=0.0), sleep=sleeps.append)
    assert sleeps == [7.0]


def test_max_sleep_cap(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BUGWATCH_RETRY_MAX_SLEEP", "1")
    fn, _ = _sequence(_Response(429, {"Retry-After": "30"}), _Response(200))
    sleeps: list[float] = []
    retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=2, base_sleep=0.0), sleep=sleeps.append)
    assert sleeps == [1.0]


def test_env_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BUGWATCH_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("BUGWATCH_RETRY_BASE", "0.1")
    cfg = retry.RetryConfig()
    assert cfg.attempts == 5
    assert cfg.base_sleep == 0.1
