"""bugwatch CLI.

Subcommands:
  run       -> execute one reporter cycle and deliver its notifications
  report    -> print a reporter's output without delivering or touching state
  validate  -> load and validate the configuration file

Scheduling is external: invoke ``bugwatch run <reporter>`` from cron or a
similar trigger.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

from .config import ConfigError, OperatorConfig
from .errors import BugwatchError, classify_error
from .observability import configure_telemetry
from .reporters import REPORTERS
from .runtime import build_reporter, execute_command, prepare_config

CONFIG_DEFAULT = "bugwatch.yaml"
RELEASE_HELP = "Override release.current_target_release"

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="bugwatch", description="Bugzilla triage and escalation reporter"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors (env: BUGWATCH_QUIET=1)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    run = sub.add_parser("run", help="Run one reporter cycle and deliver notifications")
    run.add_argument("reporter", choices=sorted(REPORTERS))
    run.add_argument("--config", default=CONFIG_DEFAULT)
    run.add_argument("--release", help=RELEASE_HELP)

    rep = sub.add_parser("report", help="Print a reporter's output without delivering it")
    rep.add_argument("reporter", choices=sorted(REPORTERS))
    rep.add_argument("--config", default=CONFIG_DEFAULT)
    rep.add_argument("--release", help=RELEASE_HELP)

    val = sub.add_parser("validate", help="Validate the configuration file")
    val.add_argument("--config", default=CONFIG_DEFAULT)
    val.add_argument("--json", action="store_true", help="Print a JSON summary")
    return p


def _cmd_run(cfg: OperatorConfig, args: argparse.Namespace) -> int:
    reporter = build_reporter(args.reporter, cfg)
    outcome = reporter.sync()
    if outcome.failed:
        print(
            f"{args.reporter}: {len(outcome.failed)} deliveries failed: {', '.join(outcome.failed)}",
            file=sys.stderr,
        )
    return 0


def _cmd_report(cfg: OperatorConfig, args: argparse.Namespace) -> int:
    reporter = build_reporter(args.reporter, cfg, deliver=False)
    text = reporter.report()
    print(text if text else f"{args.reporter}: nothing to report")
    return 0


def _cmd_validate(cfg: OperatorConfig, args: argparse.Namespace) -> int:
    summary = {
        "config": args.config,
        "current_target_release": cfg.release.current_target_release,
        "target_releases": cfg.release.target_releases,
        "components": len(cfg.components),
        "groups": len(cfg.groups),
        "leads": sorted({c.lead for c in cfg.components.values() if c.lead}),
        "reporters": {name: cfg.components_for(name) for name in sorted(REPORTERS)},
    }
    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print(
            f"{args.config}: OK ({summary['components']} components, "
            f"{summary['groups']} groups, release {summary['current_target_release']})"
        )
    return 0


_HANDLERS = {
    "run": _cmd_run,
    "report": _cmd_report,
    "validate": _cmd_validate,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    exporter = os.environ.get("BUGWATCH_OTEL_EXPORTER")
    if exporter:
        configure_telemetry(
            service_name=os.environ.get("BUGWATCH_SERVICE_NAME", "bugwatch"),
            exporter="otlp" if exporter.lower() == "otlp" else "console",
            endpoint=os.environ.get("BUGWATCH_OTEL_ENDPOINT"),
        )
    if not args.quiet and os.environ.get("BUGWATCH_QUIET") == "1":
        args.quiet = True
    try:
        cfg = prepare_config(args)
        handler = _HANDLERS[args.cmd]
        return execute_command(lambda: handler(cfg, args), args.cmd)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2
    except BugwatchError as exc:
        info = classify_error(exc)
        print(f"{args.cmd} failed [{info.category}]: {info.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
