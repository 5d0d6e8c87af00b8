from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml
from jsonschema import Draft7Validator

from .query import DEFAULT_CLASSIFICATION, DEFAULT_PRODUCT
from .schemas import get_config_schema

GROUP_PREFIX = "group:"
DEFAULT_STATE_PATH = '.bugwatch/state.json'


class ConfigError(RuntimeError):
    pass


@dataclass
class ComponentConfig:
    lead: str = ''
    developers: list[str] = field(default_factory=list)


@dataclass
class BugzillaConfig:
    base_url: str = 'https://bugzilla.redhat.com'
    api_key: str | None = None
    classification: str = DEFAULT_CLASSIFICATION
    product: str = DEFAULT_PRODUCT
    timeout: float = 30.0


@dataclass
class SlackConfig:
    token: str | None = None
    channel: str = ''
    admin_channel: str = ''
    debug: bool = False
    # Bugzilla login -> Slack e-mail, for people whose addresses differ
    email_mapping: dict[str, str] = field(default_factory=dict)


@dataclass
class ReleaseConfig:
    current_target_release: str
    target_releases: list[str] = field(default_factory=list)


@dataclass
class OperatorConfig:
    release: ReleaseConfig
    bugzilla: BugzillaConfig = field(default_factory=BugzillaConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    components: dict[str, ComponentConfig] = field(default_factory=dict)
    groups: dict[str, list[str]] = field(default_factory=dict)
    reporter_components: dict[str, list[str]] = field(default_factory=dict)
    state_path: Path = Path(DEFAULT_STATE_PATH)
    logging_json_enabled: bool = False
    logging_level: str = 'INFO'

    def components_for(self, reporter: str) -> list[str]:
        """Components a reporter watches; defaults to every configured component."""
        configured = self.reporter_components.get(reporter)
        if configured:
            return list(configured)
        return sorted(self.components)


def expand_groups(groups: Mapping[str, Iterable[str]], *roots: str) -> set[str]:
    """Flatten identifiers, recursively replacing group references by members.

    A root names a group either bare or as ``group:<name>``. Groups already
    expanded are not revisited, so membership cycles terminate.
    """
    result: set[str] = set()
    visited: set[str] = set()
    pending = list(roots)
    while pending:
        entry = pending.pop()
        name = entry[len(GROUP_PREFIX):] if entry.startswith(GROUP_PREFIX) else entry
        if name in groups:
            if name in visited:
                continue
            visited.add(name)
            pending.extend(groups[name])
        elif not entry.startswith(GROUP_PREFIX):
            result.add(entry)
    return result


def _resolve_env_var(value: Any, env_var_name: str | None = None) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        env_name = env_var_name or value[1:]
        return os.getenv(env_name, value)
    return value


def _validate(raw: dict[str, Any], source: Path) -> None:
    validator = Draft7Validator(get_config_schema())
    errors = sorted(validator.iter_errors(raw), key=lambda e: list(e.absolute_path))
    if errors:
        details = '; '.join(
            f"{'/'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
            for err in errors
        )
        raise ConfigError(f'Invalid configuration {source}: {details}')


def parse_config(raw: dict[str, Any], source: Path = Path('<memory>')) -> OperatorConfig:
    _validate(raw, source)
    bz = cast(dict[str, Any], raw.get('bugzilla', {}) or {})
    sl = cast(dict[str, Any], raw.get('slack', {}) or {})
    release = cast(dict[str, Any], raw['release'])
    reporters = cast(dict[str, Any], raw.get('reporters', {}) or {})
    state = cast(dict[str, Any], raw.get('state', {}) or {})
    logging_config = cast(dict[str, Any], raw.get('logging', {}) or {})

    components = {
        str(name): ComponentConfig(
            lead=str(entry.get('lead', '')),
            developers=list(entry.get('developers', []) or []),
        )
        for name, entry in (raw.get('components', {}) or {}).items()
    }
    state_path = Path(state.get('path', DEFAULT_STATE_PATH))
    if not state_path.is_absolute() and source.suffix:
        state_path = source.parent / state_path

    return OperatorConfig(
        release=ReleaseConfig(
            current_target_release=str(release['current_target_release']),
            target_releases=list(release.get('target_releases', []) or []),
        ),
        bugzilla=BugzillaConfig(
            base_url=str(bz.get('base_url', BugzillaConfig.base_url)).rstrip('/'),
            api_key=_resolve_env_var(bz.get('api_key'), 'BUGZILLA_API_KEY'),
            classification=bz.get('classification', DEFAULT_CLASSIFICATION),
            product=bz.get('product', DEFAULT_PRODUCT),
            timeout=float(bz.get('timeout', 30.0)),
        ),
        slack=SlackConfig(
            token=_resolve_env_var(sl.get('token'), 'SLACK_BOT_TOKEN'),
            channel=sl.get('channel', ''),
            admin_channel=sl.get('admin_channel', ''),
            debug=bool(sl.get('debug', False)),
            email_mapping=dict(sl.get('email_mapping', {}) or {}),
        ),
        components=components,
        groups={str(k): list(v or []) for k, v in (raw.get('groups', {}) or {}).items()},
        reporter_components={
            str(name): list((entry or {}).get('components', []) or [])
            for name, entry in reporters.items()
        },
        state_path=state_path,
        logging_json_enabled=bool(logging_config.get('json_enabled', False)),
        logging_level=logging_config.get('level', 'INFO'),
    )


def load_config(path: str | Path) -> OperatorConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    try:
        raw_any: Any = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f'Cannot parse configuration {p}: {exc}') from exc
    if not isinstance(raw_any, dict):
        raise ConfigError(f'Configuration {p} must be a mapping')
    return parse_config(cast(dict[str, Any], raw_any), p)


__all__ = [
    "BugzillaConfig",
    "ComponentConfig",
    "ConfigError",
    "OperatorConfig",
    "ReleaseConfig",
    "SlackConfig",
    "expand_groups",
    "load_config",
    "parse_config",
]
