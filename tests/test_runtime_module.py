from __future__ import annotations

import argparse

import pytest

from bugwatch import runtime
from bugwatch.config import ConfigError, OperatorConfig, ReleaseConfig, SlackConfig
from bugwatch.env_auth import EnvAuthConfig, EnvironmentAuthManager
from bugwatch.reporters import BlockersReporter, EscalationReporter
from bugwatch.slack import SlackClient
from bugwatch.store import MemoryStore

EXPECTED_EXIT = 3


def _config(**kw) -> OperatorConfig:
    return OperatorConfig(release=ReleaseConfig(current_target_release="4.6.0"), **kw)


def _auth() -> EnvironmentAuthManager:
    return EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))


def test_prepare_config_applies_release_override() -> None:
    args = argparse.Namespace(config="ignored.yaml", release="4.7.0", quiet=True)
    cfg = runtime.prepare_config(args, loader=lambda path: _config())
    assert cfg.release.current_target_release == "4.7.0"


def test_prepare_config_requires_config_attribute() -> None:
    with pytest.raises(AttributeError):
        runtime.prepare_config(argparse.Namespace(), loader=lambda path: _config())


def test_build_channel_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
    with pytest.raises(ConfigError, match="token"):
        runtime.build_channel(_config(slack=SlackConfig(channel="#a", admin_channel="#b")), _auth())


def test_build_channel_requires_channels() -> None:
    with pytest.raises(ConfigError, match="channel"):
        runtime.build_channel(_config(slack=SlackConfig(token="xoxb-abc")), _auth())


def test_build_channel_passes_slack_options() -> None:
    slack = SlackConfig(
        token="xoxb-abc", channel="#a", admin_channel="#b", debug=True, email_mapping={"x": "y"}
    )
    channel = runtime.build_channel(_config(slack=slack), _auth())
    assert isinstance(channel, SlackClient)
    assert channel.debug is True
    assert channel.slack_email("x") == "y"


def test_build_reporter_report_mode_refuses_delivery() -> None:
    reporter = runtime.build_reporter(
        "blockers", _config(), deliver=False, store=MemoryStore(), auth=_auth()
    )
    assert isinstance(reporter, BlockersReporter)
    with pytest.raises(RuntimeError):
        reporter.ctx.channel.message_channel("nope")


def test_build_reporter_known_and_unknown_names() -> None:
    reporter = runtime.build_reporter(
        "escalation", _config(), deliver=False, store=MemoryStore(), auth=_auth()
    )
    assert isinstance(reporter, EscalationReporter)
    with pytest.raises(ConfigError):
        runtime.build_reporter("weekly", _config(), auth=_auth())


def test_execute_command_returns_exit_code() -> None:
    assert runtime.execute_command(lambda: EXPECTED_EXIT, "demo") == EXPECTED_EXIT
    assert runtime.execute_command(lambda: None, "demo") == 0


def test_execute_command_propagates_errors() -> None:
    def boom() -> int:
        raise ValueError("broken")

    with pytest.raises(ValueError):
        runtime.execute_command(boom, "demo")
