"""Persistent key/value state shared between reporter cycles."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from .errors import StateError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str:
        return self.values.get(key, "")

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JSONFileStore:
    """String values in one JSON object on disk, rewritten atomically on set."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw: Any = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StateError(f"cannot read state file {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            logger.warning("state file %s is not a JSON object; ignoring it", self.path)
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def get(self, key: str) -> str:
        return self._read().get(key, "")

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise StateError(f"cannot write state file {self.path}: {exc}") from exc


__all__ = ["JSONFileStore", "KeyValueStore", "MemoryStore"]
