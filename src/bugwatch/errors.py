"""Error taxonomy & redaction.

Transport failures (tracker search, chat delivery), state store failures and
everything else are kept apart so reporters can decide what aborts a cycle
and what is only recorded.

Public API:
- BugwatchError and subclasses
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"xox[abposr]-[A-Za-z0-9-]{10,}"),  # Slack tokens
    re.compile(r"(?i)(api_key|Bugzilla_api_key)=[^&\s]+"),  # query string API keys
    re.compile(r"(?i)(X-BUGZILLA-API-KEY['\"]?:\s*['\"]?)[A-Za-z0-9]{16,}"),
]

_REDACTION_PLACEHOLDER = "<redacted>"


class BugwatchError(RuntimeError):
    """Base class for failures raised by bugwatch collaborators."""


class TrackerError(BugwatchError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class DeliveryError(BugwatchError):
    def __init__(self, message: str, *, recipient: str | None = None) -> None:
        super().__init__(message)
        self.recipient = recipient


class StateError(BugwatchError):
    pass


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Replace tokens and API keys in arbitrary text with a placeholder."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    - HTTP 429 / "rate limit" -> 'rate_limit', transient
    - connection problems and timeouts -> 'network', transient
    - TrackerError / DeliveryError / StateError -> 'tracker' / 'delivery' / 'state'
    - Fallback -> 'generic'
    """
    msg = str(exc) if exc else ""
    name = exc.__class__.__name__
    low = msg.lower()
    status = getattr(exc, "status", None)

    if status == 429 or "rate limit" in low or "ratelimited" in low:
        return ErrorInfo("rate_limit", redact(msg), name, transient=True)
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)) or any(
        k in low for k in ("timeout", "timed out", "connection reset")
    ):
        return ErrorInfo("network", redact(msg), name, transient=True)
    if isinstance(exc, TrackerError):
        return ErrorInfo("tracker", redact(msg), name, details={"status": exc.status})
    if isinstance(exc, DeliveryError):
        return ErrorInfo("delivery", redact(msg), name, details={"recipient": exc.recipient})
    if isinstance(exc, StateError):
        return ErrorInfo("state", redact(msg), name)
    return ErrorInfo("generic", redact(msg), name)


__all__ = [
    "BugwatchError",
    "DeliveryError",
    "ErrorInfo",
    "StateError",
    "TrackerError",
    "classify_error",
    "redact",
]
