"""Centralized retry / backoff helpers for the HTTP transports.

``run_with_retries`` performs a request thunk and retries it with exponential
backoff and jitter when the response carries a transient status (rate limit
or gateway trouble). Other responses, and any raised exception, are returned
or propagated untouched: deciding whether a cycle fails is the caller's job.

Environment overrides:
  BUGWATCH_RETRY_ATTEMPTS (default 3)
  BUGWATCH_RETRY_BASE (seconds base, default 0.5)
  BUGWATCH_RETRY_MAX_SLEEP (cap on a single sleep, unset by default)
"""

from __future__ import annotations

import os
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import requests

TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})

_JITTER = random.SystemRandom()


def _env_int(name: str, default: str) -> int:
    return int(os.environ.get(name, default))


def _env_float(name: str, default: str) -> float:
    return float(os.environ.get(name, default))


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("BUGWATCH_RETRY_ATTEMPTS", "3"))
    base_sleep: float = field(default_factory=lambda: _env_float("BUGWATCH_RETRY_BASE", "0.5"))


def is_transient(response: requests.Response) -> bool:
    return response.status_code in TRANSIENT_STATUSES


def _explicit_backoff(response: requests.Response) -> float | None:
    value = response.headers.get("Retry-After") if response.headers else None
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds > 0 else None


def _compute_sleep(attempt: int, cfg: RetryConfig, response: requests.Response) -> float:
    explicit = _explicit_backoff(response)
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for = explicit if explicit is not None else backoff
    max_cap_env = os.environ.get("BUGWATCH_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
        except ValueError:
            return sleep_for
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def run_with_retries(
    fn: Callable[[], requests.Response],
    *,
    cfg: RetryConfig | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> requests.Response:
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    response = fn()
    for attempt in range(1, attempts):
        if not is_transient(response):
            return response
        sleep_for = _compute_sleep(attempt, cfg, response)
        print(f"[retry] HTTP {response.status_code}, attempt {attempt}/{attempts}, sleeping {sleep_for:.2f}s")
        sleep(sleep_for)
        response = fn()
    return response


__all__ = ["RetryConfig", "TRANSIENT_STATUSES", "is_transient", "run_with_retries"]
