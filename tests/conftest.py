"""Pytest configuration for bugwatch tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install, and provides in-memory fakes for the
tracker and the notification channel.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from bugwatch import logging as bw_logging  # noqa: E402
from bugwatch.config import ComponentConfig, OperatorConfig, ReleaseConfig  # noqa: E402
from bugwatch.errors import DeliveryError, TrackerError  # noqa: E402
from bugwatch.events import EventRecorder  # noqa: E402
from bugwatch.models import Issue  # noqa: E402
from bugwatch.query import Query  # noqa: E402
from bugwatch.reporters import ReporterContext  # noqa: E402
from bugwatch.store import MemoryStore  # noqa: E402

CURRENT_RELEASE = "4.6.0"


class FakeTracker:
    def __init__(self, issues: list[Issue] | None = None, error: Exception | None = None):
        self.issues = list(issues or [])
        self.error = error
        self.queries: list[Query] = []

    def search(self, query: Query) -> list[Issue]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.issues)


class FakeChannel:
    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.channel: list[str] = []
        self.admin: list[str] = []
        self.emails: list[tuple[str, str]] = []

    def message_channel(self, text: str) -> None:
        if "channel" in self.failing:
            raise DeliveryError("channel down", recipient="channel")
        self.channel.append(text)

    def message_admin_channel(self, text: str) -> None:
        if "admin" in self.failing:
            raise DeliveryError("admin channel down", recipient="admin")
        self.admin.append(text)

    def message_email(self, email: str, text: str) -> None:
        if email in self.failing:
            raise DeliveryError(f"cannot reach {email}", recipient=email)
        self.emails.append((email, text))


@pytest.fixture(autouse=True)
def _reset_global_logger():
    bw_logging._GLOBAL = None
    yield
    bw_logging._GLOBAL = None


@pytest.fixture
def operator_config() -> OperatorConfig:
    return OperatorConfig(
        release=ReleaseConfig(
            current_target_release=CURRENT_RELEASE, target_releases=[CURRENT_RELEASE, "4.5.z"]
        ),
        components={
            "kube-apiserver": ComponentConfig(
                lead="lead-a", developers=["dev-1", "group:apiserver"]
            ),
            "etcd": ComponentConfig(lead="lead-b", developers=["dev-9"]),
        },
        groups={"apiserver": ["dev-2", "dev-3"]},
        reporter_components={"new": ["kube-apiserver"]},
    )


@pytest.fixture
def make_context(operator_config: OperatorConfig) -> Callable[..., ReporterContext]:
    def _make(
        issues: list[Issue] | None = None,
        *,
        tracker_error: Exception | None = None,
        failing: set[str] | None = None,
        store: MemoryStore | None = None,
        config: Any = None,
    ) -> ReporterContext:
        return ReporterContext(
            config=config or operator_config,
            tracker=FakeTracker(issues, tracker_error),
            channel=FakeChannel(failing),
            store=store if store is not None else MemoryStore(),
            recorder=EventRecorder("test"),
        )

    return _make


@pytest.fixture
def tracker_failure() -> TrackerError:
    return TrackerError("Bugzilla GET https://bugzilla.example/rest/bug failed with 503", status=503)
