"""
llmstreamer - Prometheus Metrics

Stream-level metrics with the Prometheus client library.

Metrics exposed:
- llmstreamer_streams_total: Counter of finished streams by provider and outcome
- llmstreamer_content_chunks_total: Counter of content fragments delivered
- llmstreamer_event_parse_errors_total: Counter of malformed `data:` payloads
- llmstreamer_active_streams: Gauge of streams currently in flight
- llmstreamer_stream_duration_seconds: Histogram of stream duration
- llmstreamer_time_to_first_chunk_seconds: Histogram of latency to the first fragment

Usage:
    from llmstreamer.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.record_stream(provider="openai", outcome="terminator", duration_seconds=1.5)
"""

from typing import Optional, Tuple

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class StreamMetrics:
    """
    Metrics collector for streaming calls.

    Pass a dedicated CollectorRegistry in tests; the process-wide
    instance from `get_metrics()` registers on the default registry.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry

        self.streams_total = Counter(
            "llmstreamer_streams_total",
            "Total number of streams by outcome",
            labelnames=["provider", "outcome"],
            registry=registry,
        )

        self.content_chunks_total = Counter(
            "llmstreamer_content_chunks_total",
            "Content fragments delivered to on_content",
            labelnames=["provider"],
            registry=registry,
        )

        self.event_parse_errors_total = Counter(
            "llmstreamer_event_parse_errors_total",
            "Malformed data payloads reported and skipped",
            labelnames=["provider"],
            registry=registry,
        )

        self.active_streams = Gauge(
            "llmstreamer_active_streams",
            "Streams currently in flight",
            labelnames=["provider"],
            registry=registry,
        )

        # Model streams routinely run from well under a second to minutes
        self.stream_duration = Histogram(
            "llmstreamer_stream_duration_seconds",
            "Stream duration in seconds",
            labelnames=["provider"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 50.0, 100.0, float("inf")),
            registry=registry,
        )

        self.time_to_first_chunk = Histogram(
            "llmstreamer_time_to_first_chunk_seconds",
            "Time from request start to the first content fragment",
            labelnames=["provider"],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, float("inf")),
            registry=registry,
        )

    def stream_started(self, provider: str) -> None:
        self.active_streams.labels(provider=provider).inc()

    def record_stream(self, provider: str, outcome: str, duration_seconds: float) -> None:
        """Record the end of a stream. Pairs with `stream_started`."""
        self.active_streams.labels(provider=provider).dec()
        self.streams_total.labels(provider=provider, outcome=outcome).inc()
        self.stream_duration.labels(provider=provider).observe(duration_seconds)

    def record_rejected(self, provider: str, outcome: str) -> None:
        """Record a stream refused before any request was made."""
        self.streams_total.labels(provider=provider, outcome=outcome).inc()

    def record_content_chunk(self, provider: str) -> None:
        self.content_chunks_total.labels(provider=provider).inc()

    def record_first_chunk(self, provider: str, latency_seconds: float) -> None:
        self.time_to_first_chunk.labels(provider=provider).observe(latency_seconds)

    def record_parse_error(self, provider: str) -> None:
        self.event_parse_errors_total.labels(provider=provider).inc()

    def export(self) -> Tuple[bytes, str]:
        """Prometheus exposition payload and its content type."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


_metrics: Optional[StreamMetrics] = None


def get_metrics() -> StreamMetrics:
    """Process-wide metrics collector on the default registry."""
    global _metrics
    if _metrics is None:
        _metrics = StreamMetrics()
    return _metrics
