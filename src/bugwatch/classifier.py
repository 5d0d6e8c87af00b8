"""Bug classification against the overlapping triage rules.

Every rule is evaluated independently for every issue, so one bug can land in
several categories at once (an urgent blocker is both ``urgent`` and
``blocker+``). Buckets are seeded in a fixed order up front, which keeps
iteration deterministic no matter which categories the input happens to fill.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from .links import format_issue_line
from .models import Issue
from .query import UNSET_RELEASE


class Category(str, Enum):
    URGENT = "urgent"
    BLOCKER_PLUS = "blocker+"
    BLOCKER_QUESTION = "blocker?"
    TO_TRIAGE = "to-triage"
    NEEDS_UPCOMING_SPRINT = "needs-upcoming-sprint"


SERIOUS_KEYWORDS = ("ServiceDeliveryBlocker", "TestBlocker", "UpgradeBlocker")
SERIOUS_KEYS = SERIOUS_KEYWORDS + (Category.BLOCKER_PLUS.value, Category.BLOCKER_QUESTION.value)

UPCOMING_SPRINT_KEYWORD = "UpcomingSprint"
STALE_MARKER = "LifecycleStale"
URGENT = "urgent"
TRIAGE_STATUSES = frozenset({"NEW", ""})
UNSPECIFIED_VALUES = frozenset({"unspecified", ""})

IssueRenderer = Callable[[Issue], str]


# ---- rule predicates -------------------------------------------------------
def resolve_target_release(issue: Issue) -> str:
    return issue.target_release[0] if issue.target_release else UNSET_RELEASE


def in_current_release(issue: Issue, reference_release: str) -> bool:
    return resolve_target_release(issue) in {reference_release, UNSET_RELEASE}


def is_urgent(issue: Issue) -> bool:
    return URGENT in {issue.priority, issue.severity}


def is_stale(issue: Issue) -> bool:
    return STALE_MARKER in issue.whiteboard


def has_flag(issue: Issue, name: str, value: str) -> bool:
    return any(f.name == name and f.status == value for f in issue.flags)


def is_blocker(issue: Issue, value: str, reference_release: str) -> bool:
    return has_flag(issue, "blocker", value) and in_current_release(issue, reference_release)


def needs_triage(issue: Issue, reference_release: str) -> bool:
    release = resolve_target_release(issue)
    return (
        (issue.status in TRIAGE_STATUSES and release == reference_release)
        or release == UNSET_RELEASE
        or issue.priority in UNSPECIFIED_VALUES
        or issue.severity in UNSPECIFIED_VALUES
    )


def needs_upcoming_sprint(issue: Issue) -> bool:
    return UPCOMING_SPRINT_KEYWORD not in issue.keywords


# ---- result ----------------------------------------------------------------
@dataclass
class Bucket:
    """Ordered issue ids plus their pre-rendered display lines (parallel lists)."""

    ids: list[int] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)

    def add(self, issue_id: int, line: str) -> None:
        self.ids.append(issue_id)
        self.lines.append(line)

    def __len__(self) -> int:
        return len(self.ids)


def _seed_categories() -> dict[Category, Bucket]:
    return {category: Bucket() for category in Category}


def _seed_serious() -> dict[str, list[int]]:
    return {key: [] for key in SERIOUS_KEYS}


@dataclass
class ClassificationResult:
    reference_release: str
    categories: dict[Category, Bucket] = field(default_factory=_seed_categories)
    serious: dict[str, list[int]] = field(default_factory=_seed_serious)
    severity_count: Counter[str] = field(default_factory=Counter)
    priority_count: Counter[str] = field(default_factory=Counter)
    stale_count: int = 0
    current_release_count: int = 0
    total: int = 0

    def ids(self, category: Category) -> list[int]:
        return self.categories[category].ids

    def lines(self, category: Category) -> list[str]:
        return self.categories[category].lines


def classify(
    issues: Iterable[Issue],
    reference_release: str,
    *,
    render: IssueRenderer = format_issue_line,
) -> ClassificationResult:
    """Sort issues into every category whose rule they satisfy."""
    result = ClassificationResult(reference_release=reference_release)
    buckets = result.categories
    for issue in issues:
        result.total += 1
        line = render(issue)

        for keyword in SERIOUS_KEYWORDS:
            if keyword in issue.keywords:
                result.serious[keyword].append(issue.id)

        if is_stale(issue):
            result.stale_count += 1

        result.severity_count[issue.severity] += 1
        result.priority_count[issue.priority] += 1

        if is_urgent(issue):
            buckets[Category.URGENT].add(issue.id, line)

        if needs_upcoming_sprint(issue):
            buckets[Category.NEEDS_UPCOMING_SPRINT].add(issue.id, line)

        for category, value in ((Category.BLOCKER_PLUS, "+"), (Category.BLOCKER_QUESTION, "?")):
            if is_blocker(issue, value, reference_release):
                buckets[category].add(issue.id, line)
                result.serious[category.value].append(issue.id)

        if needs_triage(issue, reference_release):
            buckets[Category.TO_TRIAGE].add(issue.id, line)

        if in_current_release(issue, reference_release):
            result.current_release_count += 1
    return result


__all__ = [
    "Bucket",
    "Category",
    "ClassificationResult",
    "SERIOUS_KEYS",
    "SERIOUS_KEYWORDS",
    "classify",
    "has_flag",
    "in_current_release",
    "is_blocker",
    "is_stale",
    "is_urgent",
    "needs_triage",
    "needs_upcoming_sprint",
    "resolve_target_release",
]
