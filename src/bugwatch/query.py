"""Declarative tracker query descriptors.

Builders here never talk to the tracker; they only describe what a cycle
wants fetched. ``Query.values()`` renders the descriptor into Bugzilla's
``buglist.cgi`` / ``rest/bug`` parameter vocabulary, which is used both for
the REST search and for the deep links embedded in channel reports.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from urllib.parse import urlencode

from .models import ESCALATION_FIELD

DEFAULT_CLASSIFICATION = "Red Hat"
DEFAULT_PRODUCT = "OpenShift Container Platform"
UNSET_RELEASE = "---"
ACTIVE_STATUSES = ("NEW", "ASSIGNED", "POST", "ON_DEV")
BOOTSTRAP_WINDOW = "-24h"

NEW_BUG_FIELDS = ("id", "assigned_to", "component", "summary")
TRIAGE_FIELDS = (
    "id",
    "assigned_to",
    "keywords",
    "status",
    "resolution",
    "summary",
    "changeddate",
    "severity",
    "priority",
    "target_release",
    "whiteboard",
    "flags",
)
ESCALATION_FIELDS = (
    "id",
    "assigned_to",
    "status",
    "severity",
    "priority",
    "external_bugs",
    "component",
    "summary",
    ESCALATION_FIELD,
)


@dataclass(frozen=True)
class AdvancedQuery:
    field: str
    op: str
    value: str


@dataclass(frozen=True)
class Query:
    classification: tuple[str, ...] = (DEFAULT_CLASSIFICATION,)
    product: tuple[str, ...] = (DEFAULT_PRODUCT,)
    status: tuple[str, ...] = ()
    component: tuple[str, ...] = ()
    target_release: tuple[str, ...] = ()
    advanced: tuple[AdvancedQuery, ...] = ()
    include_fields: tuple[str, ...] = field(default_factory=tuple)

    def values(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        params.extend(("classification", v) for v in self.classification)
        params.extend(("product", v) for v in self.product)
        params.extend(("bug_status", v) for v in self.status)
        params.extend(("component", v) for v in self.component)
        params.extend(("target_release", v) for v in self.target_release)
        for i, aq in enumerate(self.advanced, start=1):
            params.extend([(f"f{i}", aq.field), (f"o{i}", aq.op), (f"v{i}", aq.value)])
        if self.advanced:
            params.append(("query_format", "advanced"))
        if self.include_fields:
            params.append(("include_fields", ",".join(self.include_fields)))
        return params

    def encode(self) -> str:
        """Form-encode ``values()`` with keys sorted, values kept in order per key."""
        return urlencode(sorted(self.values(), key=lambda kv: kv[0]))


def _scope(
    components: Iterable[str], classification: str, product: str
) -> dict[str, tuple[str, ...]]:
    return {
        "classification": (classification,),
        "product": (product,),
        "component": tuple(components),
    }


def new_bugs_query(
    components: Sequence[str],
    last_id: int,
    *,
    classification: str = DEFAULT_CLASSIFICATION,
    product: str = DEFAULT_PRODUCT,
) -> Query:
    """Query NEW bugs above the watermark, or of the last day when none is known."""
    if last_id > 0:
        predicate = AdvancedQuery("bug_id", "greaterthan", str(last_id))
    else:
        predicate = AdvancedQuery("creation_ts", "greaterthaneq", BOOTSTRAP_WINDOW)
    return Query(
        **_scope(components, classification, product),
        status=("NEW",),
        advanced=(predicate,),
        include_fields=NEW_BUG_FIELDS,
    )


def triage_query(
    components: Sequence[str],
    target_releases: Sequence[str],
    *,
    classification: str = DEFAULT_CLASSIFICATION,
    product: str = DEFAULT_PRODUCT,
) -> Query:
    releases = [UNSET_RELEASE] + [r for r in target_releases if r != UNSET_RELEASE]
    return Query(
        **_scope(components, classification, product),
        status=ACTIVE_STATUSES,
        target_release=tuple(releases),
        advanced=(
            AdvancedQuery("bug_severity", "notequals", "low"),
            AdvancedQuery("priority", "notequals", "low"),
        ),
        include_fields=TRIAGE_FIELDS,
    )


def escalation_query(
    components: Sequence[str],
    *,
    classification: str = DEFAULT_CLASSIFICATION,
    product: str = DEFAULT_PRODUCT,
) -> Query:
    return Query(
        **_scope(components, classification, product),
        status=ACTIVE_STATUSES,
        advanced=(AdvancedQuery("bug_severity", "equals", "urgent"),),
        include_fields=ESCALATION_FIELDS,
    )


__all__ = [
    "ACTIVE_STATUSES",
    "AdvancedQuery",
    "BOOTSTRAP_WINDOW",
    "Query",
    "UNSET_RELEASE",
    "escalation_query",
    "new_bugs_query",
    "triage_query",
]
