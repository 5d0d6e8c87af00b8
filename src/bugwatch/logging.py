"""Structured JSON logging for bugwatch."""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "exc_info",
    "exc_text",
    "stack_info",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k not in _RESERVED and not k.startswith("_") and k not in entry:
                entry[k] = v
        return json.dumps(entry, default=str)


class StructuredLogger:
    def __init__(
        self, name: str = "bugwatch", json_logging: bool = False, level: str = "INFO"
    ) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        for h in list(self._logger.handlers):
            self._logger.removeHandler(h)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter()
            if json_logging
            else logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        )
        self._logger.addHandler(handler)
        self._logger.propagate = False

    def log_operation(self, operation: str, **kw: Any) -> None:
        self._logger.info(f"Operation: {operation}", extra={"operation": operation, **kw})

    def log_cycle(self, reporter: str, outcome: str, **kw: Any) -> None:
        extra = {"operation": f"cycle_{outcome}", "reporter": reporter, **kw}
        self._logger.info(f"cycle {reporter} {outcome}", extra=extra)

    def log_delivery(self, target: str, ok: bool, **kw: Any) -> None:
        extra = {"operation": "deliver", "target": target, "delivered": ok, **kw}
        if ok:
            self._logger.info(f"delivered to {target}", extra=extra)
        else:
            self._logger.warning(f"delivery to {target} failed", extra=extra)

    def log_performance(self, operation: str, duration_ms: float, **kw: Any) -> None:
        extra = {"operation": operation, "duration_ms": round(duration_ms, 2), **kw}
        self._logger.info(f"Performance: {operation} completed in {duration_ms:.2f}ms", extra=extra)

    def log_error(self, message: str, error: str | None = None, **kw: Any) -> None:
        extra = dict(kw)
        if error:
            extra["error"] = error
        self._logger.error(message, extra=extra)

    def debug(self, message: str, **kw: Any) -> None:
        self._logger.debug(message, extra=kw)

    def info(self, message: str, **kw: Any) -> None:
        self._logger.info(message, extra=kw)

    def warning(self, message: str, **kw: Any) -> None:
        self._logger.warning(message, extra=kw)

    def error(self, message: str, **kw: Any) -> None:  # noqa: D401
        self._logger.error(message, extra=kw)

    @contextmanager
    def timed_operation(self, operation: str, **kw: Any) -> Iterator[None]:  # noqa: D401
        start = time.perf_counter()
        self.log_operation(f"{operation}_start", **kw)
        try:
            yield
            self.log_performance(operation, (time.perf_counter() - start) * 1000, **kw)
        except Exception as exc:
            self.log_error(f"operation {operation} failed", error=str(exc), **kw)
            raise


_GLOBAL: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    if _GLOBAL is None:
        _GLOBAL = StructuredLogger()
    return _GLOBAL


def configure_logging(json_logging: bool = False, level: str = "INFO") -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    _GLOBAL = StructuredLogger(json_logging=json_logging, level=level)
    return _GLOBAL


__all__ = ["JSONFormatter", "StructuredLogger", "configure_logging", "get_logger"]
