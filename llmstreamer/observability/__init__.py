"""
llmstreamer - Observability Module

- Structured JSON logging with per-stream context
- Prometheus stream metrics
- OpenTelemetry spans (API only)
"""

from .logging import (
    JSONFormatter,
    LogContext,
    StructuredLogger,
    get_logger,
    setup_logging,
)
from .metrics import (
    StreamMetrics,
    get_metrics,
)
from .tracing import (
    get_tracer,
    stream_span,
)

__all__ = [
    # Logging
    "JSONFormatter",
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "setup_logging",
    # Metrics
    "StreamMetrics",
    "get_metrics",
    # Tracing
    "get_tracer",
    "stream_span",
]
