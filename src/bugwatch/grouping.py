from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .models import Issue

logger = logging.getLogger(__name__)


@dataclass
class PerPersonGroups:
    ids: dict[str, list[int]] = field(default_factory=dict)
    lines: dict[str, list[str]] = field(default_factory=dict)
    skipped: int = 0

    def total(self) -> int:
        return sum(len(v) for v in self.ids.values())


def group_per_person(
    ids: Sequence[int],
    lines: Sequence[str],
    index: Mapping[int, Issue],
) -> PerPersonGroups:
    """Split one category's parallel id/line lists by assignee.

    Relative order inside each assignee's group follows the input. Ids absent
    from ``index`` are skipped and counted rather than treated as errors.
    """
    groups = PerPersonGroups()
    for issue_id, line in zip(ids, lines):
        issue = index.get(issue_id)
        if issue is None:
            groups.skipped += 1
            logger.debug("skipping bug %d: not present in the search result", issue_id)
            continue
        groups.ids.setdefault(issue.assigned_to, []).append(issue_id)
        groups.lines.setdefault(issue.assigned_to, []).append(line)
    return groups


__all__ = ["PerPersonGroups", "group_per_person"]
