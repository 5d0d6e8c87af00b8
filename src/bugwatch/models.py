from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

# Bugzilla custom field carrying the customer escalation marker.
ESCALATION_FIELD = "cf_cust_facing"


@dataclass(frozen=True)
class Flag:
    name: str
    status: str


@dataclass(frozen=True)
class ExternalCase:
    """A link from a bug to a case in another tracking system (e.g. SFDC)."""

    type: str
    case_id: str = ""


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, Iterable):
        return [str(v) for v in value if v is not None]
    return []


@dataclass(frozen=True)
class Issue:
    """Read-only view of a tracker bug.

    Only the fields requested through the query projection are populated; the
    remaining ones keep their empty defaults.
    """

    id: int
    assigned_to: str = ""
    component: tuple[str, ...] = ()
    keywords: frozenset[str] = field(default_factory=frozenset)
    whiteboard: str = ""
    severity: str = ""
    priority: str = ""
    target_release: tuple[str, ...] = ()
    status: str = ""
    flags: tuple[Flag, ...] = ()
    escalation: str = ""
    external_bugs: tuple[ExternalCase, ...] = ()
    summary: str = ""

    @property
    def primary_component(self) -> str | None:
        return self.component[0] if self.component else None

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> Issue:
        flags: list[Flag] = []
        for entry in raw.get("flags") or []:
            if isinstance(entry, dict):
                flags.append(Flag(str(entry.get("name", "")), str(entry.get("status", ""))))
        cases: list[ExternalCase] = []
        for entry in raw.get("external_bugs") or []:
            if not isinstance(entry, dict):
                continue
            type_any = entry.get("type")
            # REST returns the tracker type either flat or as a nested object
            if isinstance(type_any, dict):
                case_type = str(type_any.get("type", ""))
            else:
                case_type = str(type_any or "")
            cases.append(ExternalCase(case_type, str(entry.get("ext_bz_bug_id", ""))))
        return cls(
            id=int(raw["id"]),
            assigned_to=str(raw.get("assigned_to") or ""),
            component=tuple(_str_list(raw.get("component"))),
            keywords=frozenset(_str_list(raw.get("keywords"))),
            whiteboard=str(raw.get("whiteboard") or ""),
            severity=str(raw.get("severity") or ""),
            priority=str(raw.get("priority") or ""),
            target_release=tuple(_str_list(raw.get("target_release"))),
            status=str(raw.get("status") or ""),
            flags=tuple(flags),
            escalation=str(raw.get(ESCALATION_FIELD) or ""),
            external_bugs=tuple(cases),
            summary=str(raw.get("summary") or ""),
        )


def index_by_id(issues: Iterable[Issue]) -> dict[int, Issue]:
    return {issue.id: issue for issue in issues}


__all__ = ["ESCALATION_FIELD", "ExternalCase", "Flag", "Issue", "index_by_id"]
