"""Environment-based credentials for bugwatch.

Credentials come from the process environment, optionally seeded from a
``.env`` file. Configuration values win when they are set explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger


@dataclass
class EnvAuthConfig:
    load_dotenv: bool = True
    dotenv_path: str | None = None
    bugzilla_api_key_var: str = "BUGZILLA_API_KEY"
    slack_token_var: str = "SLACK_BOT_TOKEN"


class EnvironmentAuthManager:
    def __init__(self, config: EnvAuthConfig | None = None):
        self.config = config or EnvAuthConfig()
        self.logger = get_logger()
        self._dotenv_loaded = False
        if self.config.load_dotenv:
            self._load_dotenv()

    def _load_dotenv(self) -> None:
        candidates = [self.config.dotenv_path] if self.config.dotenv_path else ['.env', '.env.local']
        for location in candidates:
            env_path = Path(location)
            if env_path.exists():
                load_dotenv(str(env_path))
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_path}")
                break

    @property
    def dotenv_loaded(self) -> bool:
        return self._dotenv_loaded

    def _lookup(self, explicit: str | None, var: str) -> str | None:
        # Unresolved "$VAR" references from the config count as unset
        if explicit and not explicit.startswith('$'):
            return explicit
        return os.getenv(var) or None

    def bugzilla_api_key(self, explicit: str | None = None) -> str | None:
        return self._lookup(explicit, self.config.bugzilla_api_key_var)

    def slack_token(self, explicit: str | None = None) -> str | None:
        return self._lookup(explicit, self.config.slack_token_var)


__all__ = ["EnvAuthConfig", "EnvironmentAuthManager"]
