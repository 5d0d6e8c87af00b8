"""Monotonic "last seen bug id" cursor for the new-bug cycle."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from .logging import get_logger
from .store import KeyValueStore

T = TypeVar("T")

STATE_KEY_PREFIX = "new-bug-reporter.state-"


def state_key(components: Sequence[str]) -> str:
    return STATE_KEY_PREFIX + "-".join(components)


class WatermarkTracker:
    def __init__(self, store: KeyValueStore, components: Sequence[str]) -> None:
        self.store = store
        self.key = state_key(components)
        self.value = 0

    def load(self) -> int:
        """Read the persisted cursor; unparsable values reset it to 0.

        Store read errors propagate: the cycle cannot run without knowing its
        starting point.
        """
        raw = self.store.get(self.key)
        self.value = 0
        if raw:
            try:
                self.value = max(0, int(raw))
            except ValueError:
                get_logger().warning(
                    f"Cannot parse state value for {self.key}: {raw!r}", key=self.key
                )
        return self.value

    def advance(self, ids: Iterable[int]) -> int:
        for issue_id in ids:
            if issue_id > self.value:
                self.value = issue_id
        return self.value

    def persist(self) -> None:
        self.store.set(self.key, str(self.value))

    def run(self, cycle: Callable[[int], T]) -> T:
        """Run ``cycle(watermark)`` then persist, whatever the cycle outcome.

        The cycle's error wins over a persist error; the persist is still
        attempted for its side effect.
        """
        self.load()
        try:
            result = cycle(self.value)
        except BaseException:
            try:
                self.persist()
            except Exception as persist_exc:
                get_logger().log_error(
                    "watermark persist failed after cycle error",
                    error=str(persist_exc),
                    key=self.key,
                )
            raise
        self.persist()
        return result


__all__ = ["STATE_KEY_PREFIX", "WatermarkTracker", "state_key"]
