"""Lightweight helpers for configuring OpenTelemetry exporters."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Final

from opentelemetry import trace

_telemetry_configured: Final[dict[str, bool]] = {"configured": False}

TRACER_NAME = "bugwatch"


@lru_cache(maxsize=1)
def _load_sdk() -> dict[str, Any] | None:
    try:  # pragma: no cover - the SDK is an optional extra
        exporter_module = importlib.import_module(
            "opentelemetry.exporter.otlp.proto.http.trace_exporter"
        )
        resources_module = importlib.import_module("opentelemetry.sdk.resources")
        trace_sdk_module = importlib.import_module("opentelemetry.sdk.trace")
        export_module = importlib.import_module("opentelemetry.sdk.trace.export")
    except ImportError:
        return None

    return {
        "TracerProvider": trace_sdk_module.TracerProvider,
        "Resource": resources_module.Resource,
        "BatchSpanProcessor": export_module.BatchSpanProcessor,
        "ConsoleSpanExporter": export_module.ConsoleSpanExporter,
        "OTLPSpanExporter": exporter_module.OTLPSpanExporter,
    }


def configure_telemetry(
    *,
    service_name: str,
    exporter: str = "console",
    endpoint: str | None = None,
) -> bool:
    """Install an SDK tracer provider once per process.

    Without the SDK the API's no-op provider stays in place and spans cost
    nothing. Returns whether an exporting provider is active.
    """
    if _telemetry_configured["configured"]:
        return True

    runtime = _load_sdk()
    if runtime is None:
        logging.getLogger(__name__).debug(
            "OpenTelemetry SDK not installed; spans will not be exported"
        )
        return False

    resource = runtime["Resource"].create({"service.name": service_name})
    provider = runtime["TracerProvider"](resource=resource)

    if exporter.lower() == "otlp":
        otlp_cls = runtime["OTLPSpanExporter"]
        span_exporter = otlp_cls(endpoint=endpoint) if endpoint else otlp_cls()
    else:
        span_exporter = runtime["ConsoleSpanExporter"]()

    provider.add_span_processor(runtime["BatchSpanProcessor"](span_exporter))
    trace.set_tracer_provider(provider)
    _telemetry_configured["configured"] = True
    return True


@contextmanager
def cycle_span(reporter: str, **attributes: Any) -> Iterator[Any]:
    tracer = trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span(f"bugwatch.{reporter}") as span:
        span.set_attribute("bugwatch.reporter", reporter)
        for key, value in attributes.items():
            span.set_attribute(f"bugwatch.{key}", value)
        yield span


__all__ = ["configure_telemetry", "cycle_span"]
