"""
llmstreamer - OpenTelemetry Tracing

One client span per streaming call. Only the OpenTelemetry API is
used: spans are no-ops until the application installs an SDK tracer
provider.

Usage:
    from llmstreamer.observability.tracing import stream_span

    with stream_span(provider="openai", model="gpt-4o") as span:
        ...
        span.set_attribute("llm.outcome", "terminator")
"""

from contextlib import contextmanager
from typing import Iterator

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind


TRACER_NAME = "llmstreamer"
STREAM_SPAN_NAME = "llmstreamer.stream_chat"


def get_tracer() -> trace.Tracer:
    """Tracer from the globally installed provider."""
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def stream_span(provider: str, model: str, request_id: str = "") -> Iterator[Span]:
    """Client span covering one `stream_chat` call."""
    tracer = get_tracer()
    with tracer.start_as_current_span(
        STREAM_SPAN_NAME,
        kind=SpanKind.CLIENT,
        attributes={
            "llm.provider": provider,
            "llm.model": model,
            "llm.request_id": request_id,
        },
    ) as span:
        yield span
