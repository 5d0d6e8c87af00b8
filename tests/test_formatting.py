from __future__ import annotations

from bugwatch.classifier import classify
from bugwatch.config import ComponentConfig
from bugwatch.escalation import aggregate_escalations
from bugwatch.formatting import (
    BLOCKER_TEMPLATE,
    URGENT_TEMPLATE,
    admin_debug_stats,
    channel_report,
    escalation_report,
    missing_components_message,
    new_bugs_admin_message,
    new_bugs_report,
    per_person_messages,
    release_suffix,
)
from bugwatch.links import aggregate_link, aggregate_url, format_issue_line, issue_link
from bugwatch.models import Flag, Issue
from bugwatch.query import triage_query


def test_issue_link() -> None:
    assert issue_link(1234) == "<https://bugzilla.redhat.com/show_bug.cgi?id=1234|#1234>"


def test_aggregate_url_encodes_id_list() -> None:
    assert aggregate_url([3, 1, 2]) == (
        "https://bugzilla.redhat.com/buglist.cgi?f1=bug_id&list_id=11100046"
        "&o1=anyexact&query_format=advanced&v1=3%2C1%2C2"
    )
    assert aggregate_link("alice", [7]).endswith("v1=7|alice>")


def test_issue_line() -> None:
    issue = Issue(id=9, status="NEW", summary="it broke")
    assert format_issue_line(issue) == f"{issue_link(9)} [*NEW*] it broke"


def test_templates_and_empty_groups() -> None:
    messages = per_person_messages(
        BLOCKER_TEMPLATE, {"alice": ["l1", "l2"], "bob": []}, release_suffix("4.6.0")
    )
    assert list(messages) == ["alice"]
    assert messages["alice"] == (
        "You have *2 blocker+ bugs* for the 4.6.0 release:\n\nl1\nl2"
        "\n\nPlease keep eyes on these, they will risk the upcoming release if not finished in time!"
    )
    assert URGENT_TEMPLATE.render(["x"]).startswith("You have *1 urgent bugs*:\n\nx")


def test_channel_report_breakdown_order() -> None:
    issues = [
        Issue(id=1, severity="high", priority="low", target_release=("4.6.0",)),
        Issue(id=2, severity="urgent", priority="unspecified", keywords=frozenset({"TestBlocker"})),
        Issue(id=3, severity="high", priority="medium", target_release=("4.5.z",), whiteboard="LifecycleStale"),
    ]
    result = classify(issues, "4.6.0")
    report = channel_report(
        result, triage_query([], ["4.6.0", "4.5.z"]), triage_query([], ["4.6.0"])
    )
    lines = report.splitlines()
    assert lines[1] == ":bug: *Today 4.x Bug Report:* :bug:"
    assert lines[2].startswith("> All active 4.x and 3.11 Bugs: <https://bugzilla.redhat.com/buglist.cgi?")
    assert lines[2].endswith("|3>")
    assert lines[3].startswith("> All active 4.6.0 Bugs: ") and lines[3].endswith("|2>")
    assert lines[4] == "> Bugs Severity Breakdown: 1 _urgent_, 2 _high_"
    assert lines[5] == "> Bugs Priority Breakdown: 1 _medium_, 1 _low_, 1 _unspecified_"
    assert lines[6].startswith("> Bugs Marked as _LifecycleStale_: <") and lines[6].endswith("|1>")
    assert lines[7] == f"> Bugs with _TestBlocker_: {aggregate_link('1', [2])}"
    assert len(lines) == 8


def test_admin_debug_stats() -> None:
    text = admin_debug_stats({"alice": [1, 2]}, {"bob": [3], "carol": []}, {})
    assert text.splitlines() == [
        f"> {aggregate_link('alice', [1, 2])}: 2 blocker+ bugs",
        f"> {aggregate_link('bob', [3])}: 1 bugs that need triage",
    ]
    assert admin_debug_stats({}, {}, {}) == ""


def test_escalation_report_within_quota() -> None:
    issue = Issue(
        id=5,
        assigned_to="dev-1",
        status="ASSIGNED",
        severity="urgent",
        component=("etcd",),
        escalation="Yes",
        summary="customers down",
    )
    components = {"etcd": ComponentConfig(lead="lead-b", developers=["dev-1"])}
    text = escalation_report(aggregate_escalations([issue], components, {}))
    assert text.splitlines() == [
        "Escalation report:",
        "",
        "lead-b's team with 1 bug",
        f"> {issue_link(5)} ASSIGNED @ dev-1: customers down",
    ]
    assert escalation_report(aggregate_escalations([], components, {})) == ""


def test_missing_components_sorted() -> None:
    assert missing_components_message({"b", "a"}) == "Missing components in config: a, b"


def test_new_bugs_admin_message_caps_links() -> None:
    issues = [Issue(id=i) for i in range(1, 53)]
    text = new_bugs_admin_message(issues)
    assert text.startswith(f"Found new bugs: {issue_link(1)}, ")
    assert issue_link(50) in text
    assert issue_link(51) not in text
    assert text.endswith(",  ... and 2 more")


def test_new_bugs_report_limit() -> None:
    issues = [Issue(id=i, status="NEW", summary=f"s{i}") for i in range(1, 23)]
    lines = new_bugs_report(issues).splitlines()
    assert lines[0] == "New bugs of the last day (excluding those already in a different state):"
    assert lines[2] == f"> {format_issue_line(issues[0])}"
    assert lines[-1] == " ... and 2 more"
    assert len(lines) == 2 + 20 + 1


def test_blocker_flags_render_in_serious_section() -> None:
    issue = Issue(id=8, flags=(Flag("blocker", "+"),), target_release=("4.6.0",))
    result = classify([issue], "4.6.0")
    report = channel_report(result, triage_query([], ["4.6.0"]), triage_query([], ["4.6.0"]))
    assert f"> Bugs with _blocker+_: {aggregate_link('1', [8])}" in report
