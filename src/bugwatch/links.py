"""Slack-flavoured hyperlinks into Bugzilla.

The rendered strings are user visible and consumed by existing bookmarks and
message parsers, so their exact shape must not drift.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .models import Issue

BUGZILLA_URL = "https://bugzilla.redhat.com"
SHOW_BUG_URL = BUGZILLA_URL + "/show_bug.cgi?id={id}"
BUGLIST_URL = BUGZILLA_URL + "/buglist.cgi?"
AGGREGATE_BASE_URL = (
    BUGZILLA_URL
    + "/buglist.cgi?f1=bug_id&list_id=11100046&o1=anyexact&query_format=advanced"
)
STALE_SEARCH_URL = (
    BUGZILLA_URL
    + "/buglist.cgi?cmdtype=dorem&remaction=run"
    + "&namedcmd=openshift-group-b-lifecycle-stale&sharer_id=290313"
)


def issue_link(issue_id: int) -> str:
    return f"<{SHOW_BUG_URL.format(id=issue_id)}|#{issue_id}>"


def aggregate_url(ids: Iterable[int]) -> str:
    """Buglist URL selecting every id through a single ``v1`` parameter."""
    parts = urlsplit(AGGREGATE_BASE_URL)
    params = parse_qsl(parts.query, keep_blank_values=True)
    params.append(("v1", ",".join(str(i) for i in ids)))
    query = urlencode(sorted(params, key=lambda kv: kv[0]))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def aggregate_link(text: str, ids: Iterable[int]) -> str:
    return f"<{aggregate_url(ids)}|{text}>"


def format_issue_line(issue: Issue) -> str:
    return f"{issue_link(issue.id)} [*{issue.status}*] {issue.summary}"


__all__ = [
    "AGGREGATE_BASE_URL",
    "BUGLIST_URL",
    "STALE_SEARCH_URL",
    "aggregate_link",
    "aggregate_url",
    "format_issue_line",
    "issue_link",
]
