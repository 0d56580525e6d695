"""
llmstreamer - SSE Stream Decoder

Incremental decoder for provider event streams.

Turns a body delivered in arbitrary byte chunks into callbacks:
- Splits the bytes into `\\n`-terminated lines, carrying partial lines
  across reads
- Keeps only `data: ` lines; blank lines and other SSE fields are skipped
- Ends on the adapter's literal sentinel (e.g. `[DONE]`) or a typed
  terminator event, and treats a clean end of input as success
- Reports malformed payloads without stopping; stops on read failures

The decoder is generic: everything provider-specific comes from the
adapter's `parse_event` and `terminator_sentinel`.
"""

import inspect
import time
from typing import Any, AsyncIterable, Callable, List, Optional

import httpx

from ..adapters.base import BaseAdapter
from ..core.errors import EventParseError, ResponseReadError
from ..core.models import EventKind, StreamCallbacks, StreamOutcome
from ..observability.logging import get_logger
from ..observability.metrics import StreamMetrics


logger = get_logger(__name__)

DATA_PREFIX = b"data: "

# Failures of the byte source itself; end of input is not one of them
READ_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)


async def emit(handler: Optional[Callable[[Any], Any]], value: Any) -> None:
    """Invoke an optional callback, awaiting it if it is a coroutine function."""
    if handler is None:
        return
    result = handler(value)
    if inspect.isawaitable(result):
        await result


class LineBuffer:
    """
    Splits a chunked byte stream into lines.

    `feed` returns every line completed by the chunk (without the
    trailing newline) and keeps the unterminated tail for the next call.
    """

    def __init__(self):
        self._pending = bytearray()

    def feed(self, chunk: bytes) -> List[bytes]:
        if not chunk:
            return []

        self._pending.extend(chunk)
        if b"\n" not in chunk:
            return []

        *lines, rest = bytes(self._pending).split(b"\n")
        self._pending = bytearray(rest)
        return lines

    @property
    def pending(self) -> bytes:
        """Bytes received after the last newline."""
        return bytes(self._pending)


class StreamDecoder:
    """
    Decodes one response body into stream callbacks.

    One instance per stream: the accumulator lives on the instance and
    is handed to `on_finish` when the stream ends.
    """

    def __init__(
        self,
        adapter: BaseAdapter,
        callbacks: StreamCallbacks,
        metrics: Optional[StreamMetrics] = None,
        started_at: Optional[float] = None,
    ):
        self.adapter = adapter
        self.callbacks = callbacks
        self.metrics = metrics
        self.started_at = started_at if started_at is not None else time.monotonic()
        self.provider = adapter.provider.value

        self._parts: List[str] = []
        self.chunks_delivered = 0
        self.parse_errors = 0

    @property
    def accumulated(self) -> str:
        return "".join(self._parts)

    async def decode(self, source: AsyncIterable[bytes]) -> StreamOutcome:
        """
        Consume `source` until a terminator, end of input or read failure.

        Exactly one terminal callback is invoked: `on_finish` for the
        first three, `on_error(ResponseReadError)` for a read failure.
        """
        buffer = LineBuffer()
        iterator = source.__aiter__()

        while True:
            try:
                chunk = await iterator.__anext__()
            except StopAsyncIteration:
                break
            except READ_ERRORS as e:
                logger.warning(
                    "Stream read failed",
                    error=str(e),
                    chunks=self.chunks_delivered,
                )
                await emit(
                    self.callbacks.on_error,
                    ResponseReadError(f"read failed: {e}", provider=self.provider, cause=e),
                )
                return StreamOutcome.READ_FAILED

            for line in buffer.feed(chunk):
                outcome = await self._handle_line(line)
                if outcome is not None:
                    return outcome

        if buffer.pending.strip():
            logger.debug(
                "Discarding unterminated line at end of input",
                pending_bytes=len(buffer.pending),
            )

        await self._finish()
        return StreamOutcome.END_OF_INPUT

    async def _handle_line(self, raw_line: bytes) -> Optional[StreamOutcome]:
        line = raw_line.strip()
        if not line or not line.startswith(DATA_PREFIX):
            return None

        payload = line[len(DATA_PREFIX):]

        if self.adapter.is_terminator_sentinel(payload):
            await self._finish()
            return StreamOutcome.DONE_SENTINEL

        try:
            event = self.adapter.parse_event(payload)
        except EventParseError as e:
            self.parse_errors += 1
            if self.metrics:
                self.metrics.record_parse_error(self.provider)
            logger.warning("Skipping malformed stream event", error=e.message)
            await emit(self.callbacks.on_error, e)
            return None

        if event.kind == EventKind.CONTENT_DELTA:
            if event.text:
                await self._deliver(event.text)
            return None

        if event.kind == EventKind.TERMINATOR:
            await self._finish()
            return StreamOutcome.TERMINATOR

        return None

    async def _deliver(self, text: str) -> None:
        self._parts.append(text)
        self.chunks_delivered += 1
        if self.metrics:
            if self.chunks_delivered == 1:
                self.metrics.record_first_chunk(self.provider, time.monotonic() - self.started_at)
            self.metrics.record_content_chunk(self.provider)
        await emit(self.callbacks.on_content, text)

    async def _finish(self) -> None:
        await emit(self.callbacks.on_finish, self.accumulated)
