"""Reporter cycles: query the tracker, classify, group, notify.

Each reporter runs one synchronous cycle per ``sync()`` call. Tracker failures
abort the cycle (after being recorded); delivery failures are recorded per
recipient and the remaining recipients are still served.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import partial

from .classifier import Category, ClassificationResult, classify
from .config import OperatorConfig
from .errors import BugwatchError
from .escalation import EscalationResult, aggregate_escalations
from .events import EventRecorder
from .formatting import (
    BLOCKER_TEMPLATE,
    TRIAGE_TEMPLATE,
    URGENT_TEMPLATE,
    Template,
    admin_debug_stats,
    channel_report,
    escalation_report,
    missing_components_message,
    new_bugs_admin_message,
    new_bugs_report,
    per_person_messages,
    release_suffix,
)
from .grouping import PerPersonGroups, group_per_person
from .logging import get_logger
from .models import Issue, index_by_id
from .observability import cycle_span
from .query import Query, escalation_query, new_bugs_query, triage_query
from .slack import ChannelClient
from .store import KeyValueStore
from .tracker import TrackerClient
from .watermark import WatermarkTracker


@dataclass
class ReporterContext:
    config: OperatorConfig
    tracker: TrackerClient
    channel: ChannelClient
    store: KeyValueStore
    recorder: EventRecorder


@dataclass
class CycleOutcome:
    reporter: str
    fetched: int = 0
    delivered: int = 0
    failed: list[str] = field(default_factory=list)


class Reporter:
    name = "reporter"

    def __init__(self, ctx: ReporterContext, components: Sequence[str] | None = None) -> None:
        self.ctx = ctx
        if components is None:
            components = ctx.config.components_for(self.name)
        self.components = list(components)

    @property
    def config(self) -> OperatorConfig:
        return self.ctx.config

    def _scope(self) -> dict[str, str]:
        bz = self.config.bugzilla
        return {"classification": bz.classification, "product": bz.product}

    def _search(self, query: Query, reason: str) -> list[Issue]:
        try:
            return self.ctx.tracker.search(query)
        except Exception as exc:
            self.ctx.recorder.warning(reason, str(exc))
            raise

    def _deliver(
        self, outcome: CycleOutcome, target: str, send: Callable[[str], None], text: str
    ) -> bool:
        try:
            send(text)
        except BugwatchError as exc:
            outcome.failed.append(target)
            self.ctx.recorder.warning("DeliveryFailed", f"Failed to deliver to {target!r}: {exc}")
            get_logger().log_delivery(target, False, reporter=self.name, error=str(exc))
            return False
        outcome.delivered += 1
        get_logger().log_delivery(target, True, reporter=self.name)
        return True

    def sync(self) -> CycleOutcome:
        logger = get_logger()
        with cycle_span(self.name, components=",".join(self.components)):
            with logger.timed_operation(f"{self.name}_cycle", reporter=self.name):
                outcome = self._sync()
        logger.log_cycle(
            self.name,
            "completed",
            fetched=outcome.fetched,
            delivered=outcome.delivered,
            failed=len(outcome.failed),
        )
        return outcome

    def _sync(self) -> CycleOutcome:  # pragma: no cover - abstract
        raise NotImplementedError

    def report(self) -> str:  # pragma: no cover - abstract
        raise NotImplementedError


class NewBugReporter(Reporter):
    """Announces bugs filed since the last cycle on the admin channel."""

    name = "new"

    def _sync(self) -> CycleOutcome:
        outcome = CycleOutcome(self.name)
        watermark = WatermarkTracker(self.ctx.store, self.components)

        def cycle(last_id: int) -> CycleOutcome:
            bugs = self._search(
                new_bugs_query(self.components, last_id, **self._scope()), "BuglistFailed"
            )
            outcome.fetched = len(bugs)
            watermark.advance(b.id for b in bugs)
            if bugs:
                self._deliver(
                    outcome,
                    "admin-channel",
                    self.ctx.channel.message_admin_channel,
                    new_bugs_admin_message(bugs),
                )
            return outcome

        return watermark.run(cycle)

    def report(self) -> str:
        bugs = self._search(new_bugs_query(self.components, 0, **self._scope()), "BuglistFailed")
        return new_bugs_report(bugs)


@dataclass
class BlockersSummary:
    classification: ClassificationResult
    issues: list[Issue]
    all_releases_query: Query
    current_release_query: Query

    def per_person(self, category: Category) -> PerPersonGroups:
        return group_per_person(
            self.classification.ids(category),
            self.classification.lines(category),
            index_by_id(self.issues),
        )


class BlockersReporter(Reporter):
    """Per-assignee triage/blocker/urgent reminders plus the channel stats."""

    name = "blockers"

    def summarize(self) -> BlockersSummary:
        release = self.config.release
        all_releases = triage_query(self.components, release.target_releases, **self._scope())
        current = triage_query(self.components, [release.current_target_release], **self._scope())
        bugs = self._search(all_releases, "BugSearchFailed")
        return BlockersSummary(
            classification=classify(bugs, release.current_target_release),
            issues=bugs,
            all_releases_query=all_releases,
            current_release_query=current,
        )

    def report(self) -> str:
        summary = self.summarize()
        return channel_report(
            summary.classification, summary.all_releases_query, summary.current_release_query
        )

    def _notify_persons(
        self,
        outcome: CycleOutcome,
        template: Template,
        groups: Mapping[str, list[str]],
        suffix: str = "",
    ) -> None:
        for person, message in per_person_messages(template, groups, suffix).items():
            self._deliver(outcome, person, partial(self.ctx.channel.message_email, person), message)

    def _sync(self) -> CycleOutcome:
        outcome = CycleOutcome(self.name)
        summary = self.summarize()
        outcome.fetched = len(summary.issues)

        triage = summary.per_person(Category.TO_TRIAGE)
        blockers = summary.per_person(Category.BLOCKER_PLUS)
        urgent = summary.per_person(Category.URGENT)
        skipped = triage.skipped + blockers.skipped + urgent.skipped
        if skipped:
            get_logger().debug("grouping skipped unknown bugs", skipped=skipped)

        self._notify_persons(outcome, TRIAGE_TEMPLATE, triage.lines)
        self._notify_persons(
            outcome,
            BLOCKER_TEMPLATE,
            blockers.lines,
            release_suffix(self.config.release.current_target_release),
        )
        self._notify_persons(outcome, URGENT_TEMPLATE, urgent.lines)

        self._deliver(
            outcome,
            "channel",
            self.ctx.channel.message_channel,
            channel_report(
                summary.classification, summary.all_releases_query, summary.current_release_query
            ),
        )
        stats = admin_debug_stats(blockers.ids, triage.ids, urgent.ids)
        if stats:
            self._deliver(outcome, "admin-channel", self.ctx.channel.message_admin_channel, stats)
        return outcome


class EscalationReporter(Reporter):
    """Escalated bugs per lead against the team quota."""

    name = "escalation"

    def _fetch(self) -> list[Issue]:
        return self._search(escalation_query(self.components, **self._scope()), "BugSearchFailed")

    def aggregate(self, bugs: list[Issue] | None = None) -> EscalationResult:
        if bugs is None:
            bugs = self._fetch()
        return aggregate_escalations(bugs, self.config.components, self.config.groups)

    def report(self) -> str:
        return escalation_report(self.aggregate())

    def _sync(self) -> CycleOutcome:
        outcome = CycleOutcome(self.name)
        bugs = self._fetch()
        outcome.fetched = len(bugs)
        result = self.aggregate(bugs)
        if result.missing_components:
            self._deliver(
                outcome,
                "admin-channel",
                self.ctx.channel.message_admin_channel,
                missing_components_message(result.missing_components),
            )
        text = escalation_report(result)
        if text:
            self._deliver(outcome, "channel", self.ctx.channel.message_channel, text)
        return outcome


REPORTERS: dict[str, type[Reporter]] = {
    NewBugReporter.name: NewBugReporter,
    BlockersReporter.name: BlockersReporter,
    EscalationReporter.name: EscalationReporter,
}


__all__ = [
    "BlockersReporter",
    "BlockersSummary",
    "CycleOutcome",
    "EscalationReporter",
    "NewBugReporter",
    "REPORTERS",
    "Reporter",
    "ReporterContext",
]
