"""Notification text for the reporter cycles.

Rendering only: nothing here sends messages or decides who gets them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .classifier import ClassificationResult
from .escalation import EscalationResult
from .links import BUGLIST_URL, STALE_SEARCH_URL, aggregate_link, format_issue_line, issue_link
from .models import Issue
from .query import Query

SORTED_PRIORITY_NAMES = ("urgent", "high", "medium", "low", "unspecified")
NEW_BUGS_ADMIN_LIMIT = 50
NEW_BUGS_REPORT_LIMIT = 20


@dataclass(frozen=True)
class Template:
    intro: str
    outro: str

    def render(self, lines: Sequence[str], suffix: str = "") -> str:
        return self.intro.format(count=len(lines), suffix=suffix) + "\n".join(lines) + self.outro


URGENT_TEMPLATE = Template(
    intro="You have *{count} urgent bugs*{suffix}:\n\n",
    outro="\n\nWe are expected to actively work on these before anything else!",
)
BLOCKER_TEMPLATE = Template(
    intro="You have *{count} blocker+ bugs*{suffix}:\n\n",
    outro="\n\nPlease keep eyes on these, they will risk the upcoming release if not finished in time!",
)
TRIAGE_TEMPLATE = Template(
    intro="You have *{count} untriaged bugs*{suffix}:\n\n",
    outro=(
        "\n\nPlease make sure all these have the _Severity_, _Priority_ and _Target Release_ set,"
        " and move to ASSIGNED, so I can stop bothering you :-)\n\n"
    ),
)


def release_suffix(release: str) -> str:
    return f" for the {release} release"


def per_person_messages(
    template: Template, groups: Mapping[str, Sequence[str]], suffix: str = ""
) -> dict[str, str]:
    """One message per assignee; empty groups produce no entry."""
    return {
        person: template.render(lines, suffix)
        for person, lines in groups.items()
        if lines
    }


def _breakdown(counts: Mapping[str, int]) -> str:
    return ", ".join(
        f"{counts[name]} _{name}_" for name in SORTED_PRIORITY_NAMES if counts.get(name, 0) > 0
    )


def channel_stats(
    summary: ClassificationResult,
    all_releases_query: Query,
    current_release_query: Query,
) -> list[str]:
    release = summary.reference_release
    lines = [
        f"> All active 4.x and 3.11 Bugs: <{BUGLIST_URL}{all_releases_query.encode()}|{summary.total}>",
        f"> All active {release} Bugs: <{BUGLIST_URL}{current_release_query.encode()}|{summary.current_release_count}>",
        f"> Bugs Severity Breakdown: {_breakdown(summary.severity_count)}",
        f"> Bugs Priority Breakdown: {_breakdown(summary.priority_count)}",
        f"> Bugs Marked as _LifecycleStale_: <{STALE_SEARCH_URL}|{summary.stale_count}>",
    ]
    for keyword, ids in summary.serious.items():
        if ids:
            lines.append(f"> Bugs with _{keyword}_: {aggregate_link(str(len(ids)), ids)}")
    return lines


def channel_report(
    summary: ClassificationResult,
    all_releases_query: Query,
    current_release_query: Query,
) -> str:
    stats = channel_stats(summary, all_releases_query, current_release_query)
    return "\n:bug: *Today 4.x Bug Report:* :bug:\n" + "\n".join(stats) + "\n"


def admin_debug_stats(
    blocker_ids: Mapping[str, Sequence[int]],
    triage_ids: Mapping[str, Sequence[int]],
    urgent_ids: Mapping[str, Sequence[int]],
) -> str:
    messages: list[str] = []
    for groups, label in (
        (blocker_ids, "blocker+ bugs"),
        (triage_ids, "bugs that need triage"),
        (urgent_ids, "urgent bugs"),
    ):
        for person, ids in groups.items():
            if ids:
                messages.append(f"> {aggregate_link(person, ids)}: {len(ids)} {label}")
    return "\n".join(messages)


def _escalation_line(issue: Issue) -> str:
    return f"> {issue_link(issue.id)} {issue.status} @ {issue.assigned_to}: {issue.summary}"


def escalation_report(result: EscalationResult) -> str:
    """Lead quotas, multi-escalation assignees and silenced bugs; "" when nothing to say."""
    if result.empty:
        return ""
    lines = ["Escalation report:", ""]
    for verdict in result.leads.values():
        count = len(verdict.issues)
        if verdict.over_quota:
            lines.append(
                f":red-siren: {verdict.lead}'s team with {count} bugs, above the quota of {verdict.quota}"
            )
        else:
            lines.append(f"{verdict.lead}'s team with {count} bug")
        lines.extend(_escalation_line(issue) for issue in verdict.issues)

    first = True
    for assignee, issues in result.assigned.items():
        if len(issues) <= 1:
            continue
        if first:
            lines.extend(["", "Assignees with more than one escalation:"])
            first = False
        links = " ".join(issue_link(issue.id) for issue in issues)
        lines.append(f"> :red-siren: {assignee}: {links}")

    if result.silenced:
        links = " ".join(issue_link(issue.id) for issue in result.silenced)
        lines.extend(["", f"{len(result.silenced)} silenced bugs :see_no_evil: : {links}"])
    return "\n".join(lines)


def missing_components_message(missing: set[str]) -> str:
    return "Missing components in config: " + ", ".join(sorted(missing))


def new_bugs_admin_message(issues: Sequence[Issue], limit: int = NEW_BUGS_ADMIN_LIMIT) -> str:
    links = [issue_link(issue.id) for issue in issues[:limit]]
    if len(issues) > limit:
        links.append(f" ... and {len(issues) - limit} more")
    return "Found new bugs: " + ", ".join(links)


def new_bugs_report(issues: Sequence[Issue], limit: int = NEW_BUGS_REPORT_LIMIT) -> str:
    lines = ["New bugs of the last day (excluding those already in a different state):", ""]
    lines.extend(f"> {format_issue_line(issue)}" for issue in issues[:limit])
    if len(issues) > limit:
        lines.append(f" ... and {len(issues) - limit} more")
    return "\n".join(lines)


__all__ = [
    "BLOCKER_TEMPLATE",
    "TRIAGE_TEMPLATE",
    "Template",
    "URGENT_TEMPLATE",
    "admin_debug_stats",
    "channel_report",
    "channel_stats",
    "escalation_report",
    "missing_components_message",
    "new_bugs_admin_message",
    "new_bugs_report",
    "per_person_messages",
    "release_suffix",
]
