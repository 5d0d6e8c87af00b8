"""Escalation verdicts and per-lead quota enforcement.

Input issues are expected to be urgent-severity already (the escalation query
filters on it). Each issue is either escalated (attributed to its assignee and
to the lead of its primary component), silenced, or ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .config import ComponentConfig, expand_groups
from .models import Issue

logger = logging.getLogger(__name__)

CUSTOMER_CASE_TYPE = "SFDC"
ESCALATED = "Yes"
URGENT = "urgent"
UNSPECIFIED = "unspecified"
QUOTA_DIVISOR = 5  # 20% of the team


def has_customer_case(issue: Issue) -> bool:
    return any(case.type == CUSTOMER_CASE_TYPE for case in issue.external_bugs)


def is_escalation_eligible(issue: Issue) -> bool:
    explicit = issue.escalation == ESCALATED
    customer = has_customer_case(issue)
    return (
        explicit
        or (customer and issue.priority == URGENT)
        or (customer and issue.severity == URGENT and issue.priority == UNSPECIFIED)
    )


def is_silenced(issue: Issue) -> bool:
    """Urgent severity explicitly down-ranked by a non-unspecified priority."""
    return (
        not is_escalation_eligible(issue)
        and issue.severity == URGENT
        and issue.priority != UNSPECIFIED
    )


def quota(team_size: int) -> int:
    return max(1, team_size // QUOTA_DIVISOR)


def team_for_lead(
    lead: str,
    components: Mapping[str, ComponentConfig],
    groups: Mapping[str, Iterable[str]],
) -> set[str]:
    roots: list[str] = []
    for comp in components.values():
        if comp.lead == lead:
            roots.extend(comp.developers)
    return expand_groups(groups, *roots)


@dataclass
class LeadVerdict:
    lead: str
    issues: list[Issue]
    team: set[str]
    quota: int

    @property
    def over_quota(self) -> bool:
        return len(self.issues) > self.quota


@dataclass
class EscalationResult:
    assigned: dict[str, list[Issue]] = field(default_factory=dict)
    leads: dict[str, LeadVerdict] = field(default_factory=dict)
    silenced: list[Issue] = field(default_factory=list)
    missing_components: set[str] = field(default_factory=set)

    @property
    def empty(self) -> bool:
        return not self.leads and not self.silenced


def aggregate_escalations(
    issues: Iterable[Issue],
    components: Mapping[str, ComponentConfig],
    groups: Mapping[str, Iterable[str]],
) -> EscalationResult:
    result = EscalationResult()
    leads_bugs: dict[str, list[Issue]] = {}
    for issue in issues:
        if is_escalation_eligible(issue):
            result.assigned.setdefault(issue.assigned_to, []).append(issue)
            primary = issue.primary_component
            if primary is None:
                continue
            comp = components.get(primary)
            if comp is None:
                result.missing_components.add(primary)
                continue
            if comp.lead:
                leads_bugs.setdefault(comp.lead, []).append(issue)
        elif is_silenced(issue):
            result.silenced.append(issue)

    for lead, bugs in leads_bugs.items():
        team = team_for_lead(lead, components, groups)
        result.leads[lead] = LeadVerdict(lead=lead, issues=bugs, team=team, quota=quota(len(team)))
        logger.debug(
            "lead %s: %d escalations, team of %d, quota %d", lead, len(bugs), len(team), quota(len(team))
        )
    return result


__all__ = [
    "CUSTOMER_CASE_TYPE",
    "EscalationResult",
    "LeadVerdict",
    "aggregate_escalations",
    "has_customer_case",
    "is_escalation_eligible",
    "is_silenced",
    "quota",
    "team_for_lead",
]
