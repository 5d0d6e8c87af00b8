"""Runtime helpers for bugwatch CLI orchestration."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Protocol

from .config import ConfigError, OperatorConfig, load_config
from .env_auth import EnvironmentAuthManager
from .events import EventRecorder
from .logging import configure_logging, get_logger
from .reporters import REPORTERS, Reporter, ReporterContext
from .slack import ChannelClient, SlackClient
from .store import JSONFileStore, KeyValueStore
from .tracker import BugzillaClient, TrackerClient


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def prepare_config(
    args: Any, *, loader: Callable[[str], OperatorConfig] = load_config
) -> OperatorConfig:
    """Load the config for the given argparse namespace and apply overrides."""
    if not hasattr(args, "config"):
        raise AttributeError("Command namespace is missing 'config' attribute")
    cfg = loader(args.config)
    release_override = getattr(args, "release", None)
    if release_override:
        cfg.release.current_target_release = release_override
    configure_logging(
        json_logging=cfg.logging_json_enabled,
        level="WARNING" if getattr(args, "quiet", False) else cfg.logging_level,
    )
    return cfg


def build_tracker(cfg: OperatorConfig, auth: EnvironmentAuthManager) -> TrackerClient:
    return BugzillaClient(
        api_key=auth.bugzilla_api_key(cfg.bugzilla.api_key),
        base_url=cfg.bugzilla.base_url,
        timeout=cfg.bugzilla.timeout,
    )


def build_channel(cfg: OperatorConfig, auth: EnvironmentAuthManager) -> ChannelClient:
    token = auth.slack_token(cfg.slack.token)
    if not token:
        raise ConfigError("Slack token missing (slack.token or SLACK_BOT_TOKEN)")
    if not cfg.slack.channel or not cfg.slack.admin_channel:
        raise ConfigError("slack.channel and slack.admin_channel are required to deliver reports")
    return SlackClient(
        token=token,
        channel=cfg.slack.channel,
        admin_channel=cfg.slack.admin_channel,
        email_mapping=cfg.slack.email_mapping,
        debug=cfg.slack.debug,
    )


class _NoDelivery:
    """Channel used for print-only runs; any delivery attempt is a programming error."""

    def _refuse(self, *_: Any) -> None:
        raise RuntimeError("report mode does not deliver notifications")

    message_channel = _refuse
    message_admin_channel = _refuse
    message_email = _refuse


def build_reporter(
    name: str,
    cfg: OperatorConfig,
    *,
    deliver: bool = True,
    tracker: TrackerClient | None = None,
    channel: ChannelClient | None = None,
    store: KeyValueStore | None = None,
    auth: EnvironmentAuthManager | None = None,
) -> Reporter:
    reporter_cls = REPORTERS.get(name)
    if reporter_cls is None:
        raise ConfigError(f"unknown reporter {name!r}")
    auth = auth or EnvironmentAuthManager()
    if channel is None:
        channel = build_channel(cfg, auth) if deliver else _NoDelivery()
    ctx = ReporterContext(
        config=cfg,
        tracker=tracker or build_tracker(cfg, auth),
        channel=channel,
        store=store or JSONFileStore(cfg.state_path),
        recorder=EventRecorder(name),
    )
    return reporter_cls(ctx)


def execute_command(handler: _HandlerCallable, command: str) -> int:
    """Execute a command handler, logging its exit code and duration."""
    start = time.monotonic()
    exit_code = 1
    try:
        result = handler()
        exit_code = int(result) if result is not None else 0
    finally:
        get_logger().log_performance(
            f"command_{command}",
            (time.monotonic() - start) * 1000,
            exit_code=exit_code,
        )
    return exit_code


__all__ = [
    "build_channel",
    "build_reporter",
    "build_tracker",
    "execute_command",
    "prepare_config",
]
