from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from .errors import TrackerError
from .models import Issue
from .query import Query
from .retry import run_with_retries

DEFAULT_BUGZILLA_URL = "https://bugzilla.redhat.com"
USER_AGENT = "bugwatch/0.1.0"
HTTP_ERROR_STATUS = 400

logger = logging.getLogger(__name__)


class TrackerClient(Protocol):
    def search(self, query: Query) -> list[Issue]: ...


@dataclass
class BugzillaClient:
    """Minimal Bugzilla REST client: just the bug search the reporters need."""

    api_key: str | None = None
    base_url: str = DEFAULT_BUGZILLA_URL
    timeout: float = 30.0
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        if self.api_key:
            self._session.headers.setdefault("X-BUGZILLA-API-KEY", self.api_key)

    def _get(self, path: str, params: list[tuple[str, str]]) -> Any:
        url = f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

        def _run() -> requests.Response:
            return self._session.request(
                "GET",
                url,
                params=params,
                headers=self._session.headers,
                timeout=self.timeout,
            )

        try:
            response = run_with_retries(_run)
        except requests.RequestException as exc:
            raise TrackerError(f"Bugzilla GET {url} failed: {exc}") from exc
        if response.status_code >= HTTP_ERROR_STATUS:
            raise TrackerError(
                f"Bugzilla GET {url} failed with {response.status_code}",
                status=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise TrackerError(f"Bugzilla GET {url} returned invalid JSON") from exc
        if isinstance(data, dict) and data.get("error"):
            raise TrackerError(f"Bugzilla error {data.get('code')}: {data.get('message')}")
        return data

    def search(self, query: Query) -> list[Issue]:
        data = self._get("/rest/bug", query.values())
        bugs_any = data.get("bugs") if isinstance(data, dict) else None
        if not isinstance(bugs_any, list):
            raise TrackerError("Bugzilla search response has no 'bugs' list")
        issues: list[Issue] = []
        for entry in bugs_any:
            if not isinstance(entry, dict) or "id" not in entry:
                logger.debug("skipping malformed bug entry: %r", entry)
                continue
            issues.append(Issue.from_payload(entry))
        return issues


__all__ = ["BugzillaClient", "TrackerClient"]
