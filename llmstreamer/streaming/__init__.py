"""
llmstreamer - Streaming Module

Incremental SSE decoding shared by all providers.
"""

from .decoder import (
    DATA_PREFIX,
    LineBuffer,
    StreamDecoder,
    emit,
)

__all__ = [
    "DATA_PREFIX",
    "LineBuffer",
    "StreamDecoder",
    "emit",
]
