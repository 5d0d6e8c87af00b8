"""bugwatch - Bugzilla triage, blocker and escalation reporting.

High-level public API:

from bugwatch import classify, aggregate_escalations, load_config

cfg = load_config('bugwatch.yaml')
summary = classify(issues, cfg.release.current_target_release)
escalations = aggregate_escalations(urgent_issues, cfg.components, cfg.groups)

The CLI (``bugwatch run|report|validate``) wires these to Bugzilla and Slack.
"""

from __future__ import annotations

from .classifier import Category, ClassificationResult, classify
from .config import OperatorConfig, expand_groups, load_config
from .escalation import EscalationResult, aggregate_escalations, quota
from .grouping import PerPersonGroups, group_per_person
from .models import Issue
from .watermark import WatermarkTracker

__version__ = "0.1.0"

__all__ = [
    "Category",
    "ClassificationResult",
    "EscalationResult",
    "Issue",
    "OperatorConfig",
    "PerPersonGroups",
    "WatermarkTracker",
    "aggregate_escalations",
    "classify",
    "expand_groups",
    "group_per_person",
    "load_config",
    "quota",
    "__version__",
]
