"""
llmstreamer - Pytest Configuration

Configures:
- Integration test markers (skip by default)
- Callback recorders for stream assertions
- SSE body builders and mock transports for unit tests
- Isolated metrics registries
"""

import asyncio
import json
import os
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

import httpx
import pytest
from prometheus_client import CollectorRegistry

from llmstreamer.core.models import StreamCallbacks
from llmstreamer.observability.metrics import StreamMetrics


# ============================================================
# Environment Configuration
# ============================================================

def _is_truthy(value: Optional[str]) -> bool:
    """Check if environment variable is truthy."""
    if value is None:
        return False
    return value.lower() in ("1", "true", "yes", "on")


RUN_INTEGRATION = _is_truthy(os.getenv("RUN_INTEGRATION"))


# ============================================================
# Pytest Markers
# ============================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires RUN_INTEGRATION=1)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION=1."""
    skip_integration = pytest.mark.skip(
        reason="Integration test - set RUN_INTEGRATION=1 to run"
    )

    for item in items:
        if "integration" in item.keywords and not RUN_INTEGRATION:
            item.add_marker(skip_integration)


# ============================================================
# Callback Recording
# ============================================================

class CallbackRecorder:
    """Collects everything a stream delivers, in order."""

    def __init__(self):
        self.contents: List[str] = []
        self.finished: List[str] = []
        self.errors: List[Exception] = []
        self.events: List[tuple] = []

    def on_content(self, text: str):
        self.contents.append(text)
        self.events.append(("content", text))

    def on_finish(self, full_text: str):
        self.finished.append(full_text)
        self.events.append(("finish", full_text))

    def on_error(self, error: Exception):
        self.errors.append(error)
        self.events.append(("error", error))

    @property
    def callbacks(self) -> StreamCallbacks:
        return StreamCallbacks(
            on_content=self.on_content,
            on_finish=self.on_finish,
            on_error=self.on_error,
        )

    @property
    def text(self) -> str:
        return "".join(self.contents)


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


# ============================================================
# SSE Bodies
# ============================================================

def sse_lines(payloads: Iterable[Union[str, Dict[str, Any]]]) -> bytes:
    """Encode payloads as `data: ...\\n\\n` frames. Dicts are JSON-encoded."""
    frames = []
    for payload in payloads:
        if isinstance(payload, dict):
            payload = json.dumps(payload)
        frames.append(f"data: {payload}\n\n")
    return "".join(frames).encode("utf-8")


def openai_chunk(content: Optional[str]) -> Dict[str, Any]:
    delta: Dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion.chunk",
        "model": "gpt-4o",
        "choices": [{"index": 0, "delta": delta, "finish_reason": None}],
    }


def anthropic_delta(text: str) -> Dict[str, Any]:
    return {
        "type": "content_block_delta",
        "index": 0,
        "delta": {"type": "text_delta", "text": text},
    }


@pytest.fixture
def openai_body() -> Callable[..., bytes]:
    """OpenAI-shaped body for the given fragments, ending in `[DONE]`."""

    def _build(*fragments: str, done: bool = True) -> bytes:
        payloads: List[Union[str, Dict[str, Any]]] = [openai_chunk(f) for f in fragments]
        if done:
            payloads.append("[DONE]")
        return sse_lines(payloads)

    return _build


@pytest.fixture
def anthropic_body() -> Callable[..., bytes]:
    """Anthropic-shaped body for the given fragments, ending in `message_stop`."""

    def _build(*fragments: str, stop: bool = True) -> bytes:
        payloads: List[Union[str, Dict[str, Any]]] = [
            {"type": "message_start", "message": {"id": "msg_test123", "role": "assistant"}},
            {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
            {"type": "ping"},
        ]
        payloads.extend(anthropic_delta(f) for f in fragments)
        payloads.append({"type": "content_block_stop", "index": 0})
        payloads.append({"type": "message_delta", "delta": {"stop_reason": "end_turn"}})
        if stop:
            payloads.append({"type": "message_stop"})
        return sse_lines(payloads)

    return _build


# ============================================================
# Byte Sources
# ============================================================

class ChunkSource:
    """Async byte source that yields fixed chunks, then optionally fails."""

    def __init__(self, chunks: Iterable[bytes], error: Optional[Exception] = None):
        self.chunks = list(chunks)
        self.error = error

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


class TrackingStream(httpx.AsyncByteStream):
    """
    Response body that records whether it was closed.

    With `hang=True` it stops after the chunks and waits until closed
    or cancelled, like a provider that goes quiet mid-stream.
    """

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        error: Optional[Exception] = None,
        hang: bool = False,
    ):
        self.chunks = list(chunks)
        self.error = error
        self.hang = hang
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()

    async def aclose(self):
        self.closed = True


def split_every(data: bytes, size: int) -> List[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


@pytest.fixture
def chunk_source() -> Callable[..., ChunkSource]:
    return ChunkSource


# ============================================================
# HTTP Mocking
# ============================================================

Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Handler):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def make_transport() -> Callable[[Handler], RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def metrics() -> StreamMetrics:
    """Metrics on a private registry so tests do not share counters."""
    return StreamMetrics(registry=CollectorRegistry())


@pytest.fixture
def clean_provider_env(monkeypatch):
    """Remove provider configuration from the environment."""
    for name in (
        "OPENAI_API_KEY", "OPENAI_MODEL", "OPENAI_BASE_URL",
        "ANTHROPIC_API_KEY", "ANTHROPIC_MODEL", "ANTHROPIC_BASE_URL",
        "LLMSTREAMER_MAX_TOKENS", "LLMSTREAMER_PROVIDER",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
