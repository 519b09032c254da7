"""OpenTelemetry tracing helpers for toolbridge.

The MCP client opens one span per discovery or invocation and one per
transport exchange beneath it.  Without an SDK configured the API hands back
no-op tracers, so instrumentation costs nothing until a host opts in.

Usage::

    from toolbridge.utils.telemetry import ATTR_SERVER_ID, get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("mcp.call") as span:
        span.set_attribute(ATTR_SERVER_ID, server.id)

Call :func:`configure_telemetry` once at startup to export spans (requires
the ``otel`` extra: ``pip install toolbridge[otel]``).
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys used by the MCP client spans
# ---------------------------------------------------------------------------

ATTR_SERVER_ID = "mcp.server_id"
ATTR_TOOL_NAME = "mcp.tool"
ATTR_TRANSPORT = "mcp.transport"
ATTR_METHOD = "mcp.method"
ATTR_URL = "mcp.url"
ATTR_ATTEMPTS = "mcp.http.attempts"
ATTR_TOOL_COUNT = "mcp.tool_count"
ATTR_DISCARDED = "mcp.websocket.discarded"

_INSTRUMENTATION_NAME = "toolbridge"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "toolbridge",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Configure OpenTelemetry tracing (requires ``toolbridge[otel]``).

    Parameters
    ----------
    service_name:
        The ``service.name`` resource attribute.
    export_to_console:
        If ``True``, export spans as JSON to stdout.
    otlp_endpoint:
        If set, export spans via OTLP/gRPC to this endpoint.

    Raises
    ------
    ImportError
        If the ``opentelemetry-sdk`` package is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install toolbridge[otel]"
        )
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if export_to_console:
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter  # pyright: ignore[reportMissingImports]

        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    if otlp_endpoint:
        _add_otlp_exporter(provider, BatchSpanProcessor, otlp_endpoint)

    trace.set_tracer_provider(provider)


def _add_otlp_exporter(provider: Any, processor_cls: Any, endpoint: str) -> None:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = (
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install toolbridge[otel]"
        )
        raise ImportError(msg) from exc

    provider.add_span_processor(processor_cls(OTLPSpanExporter(endpoint=endpoint)))
