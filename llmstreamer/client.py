"""
llmstreamer - Streaming Chat Client

Drives one streaming chat call end to end:

    validate -> build request -> send -> branch on status -> decode body

All results, including failures, are delivered through the caller's
StreamCallbacks. The response body is closed on every exit path.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Optional, Union

import httpx

from .adapters import BaseAdapter, get_adapter
from .config import AdapterConfig, DEFAULT_MAX_TOKENS, load_adapter_config
from .core.errors import (
    CredentialError,
    ProtocolError,
    RequestConstructionError,
    ResponseReadError,
    StreamerError,
    map_transport_error,
)
from .core.models import Conversation, Provider, StreamCallbacks
from .observability.logging import LogContext, get_logger
from .observability.metrics import StreamMetrics, get_metrics
from .observability.tracing import stream_span
from .streaming.decoder import READ_ERRORS, StreamDecoder, emit


logger = get_logger(__name__)


# Outcomes for streams that never reach the decoder
OUTCOME_CREDENTIAL_ERROR = "credential_error"
OUTCOME_REQUEST_ERROR = "request_error"
OUTCOME_TRANSPORT_ERROR = "transport_error"
OUTCOME_HTTP_ERROR = "http_error"
OUTCOME_CANCELLED = "cancelled"
OUTCOME_FAILED = "failed"


class ChatStreamer:
    """
    Streaming chat client for one provider.

    Args:
        adapter: Provider adapter holding the credential and model
        client: Optional httpx.AsyncClient to send with. When omitted a
            client with no timeout is created lazily and closed by `close()`.
        metrics: Metrics collector. Defaults to the process-wide one.

    Example:
        >>> streamer = ChatStreamer.for_provider("openai", api_key="sk-...")
        >>> await streamer.stream_chat(
        ...     [Message.user("Hello")],
        ...     StreamCallbacks(on_content=print, on_finish=print, on_error=print),
        ... )
    """

    def __init__(
        self,
        adapter: BaseAdapter,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[StreamMetrics] = None,
    ):
        self.adapter = adapter
        self.metrics = metrics or get_metrics()
        self._client = client
        self._owns_client = client is None

    @classmethod
    def for_provider(
        cls,
        provider: Union[str, Provider],
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[StreamMetrics] = None,
    ) -> "ChatStreamer":
        config = AdapterConfig(
            api_key=api_key,
            model=model,
            base_url=base_url,
            max_tokens=max_tokens,
        )
        return cls(get_adapter(provider, config), client=client, metrics=metrics)

    @classmethod
    def from_env(
        cls,
        provider: Union[str, Provider],
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[StreamMetrics] = None,
    ) -> "ChatStreamer":
        """Build a streamer from <PROVIDER>_API_KEY / _MODEL / _BASE_URL."""
        if isinstance(provider, Provider):
            provider = provider.value
        return cls(get_adapter(provider, load_adapter_config(provider)), client=client, metrics=metrics)

    @property
    def provider(self) -> str:
        return self.adapter.provider.value

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(None))
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client if this streamer created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "ChatStreamer":
        return self

    async def __aexit__(self, *args):
        await self.close()

    # ============================================================
    # Streaming
    # ============================================================

    async def stream_chat(
        self,
        messages: Conversation,
        callbacks: Optional[StreamCallbacks] = None,
    ) -> None:
        """
        Stream a chat completion into `callbacks`.

        Never raises for API, transport or stream failures; those go to
        `callbacks.on_error`. Cancelling the calling task closes the
        response and propagates `asyncio.CancelledError` without any
        further callback.

        Exceptions raised by the callbacks themselves are not caught:
        the response is closed and the exception propagates to the caller.

        Args:
            messages: Ordered conversation (Message or role/content dicts)
            callbacks: Handlers for content, finish and error
        """
        callbacks = callbacks or StreamCallbacks()
        provider = self.provider

        if not self.adapter.api_key:
            logger.warning("Rejected stream with empty api key", provider=provider)
            self.metrics.record_rejected(provider, OUTCOME_CREDENTIAL_ERROR)
            await emit(callbacks.on_error, CredentialError(provider=provider))
            return

        model = self.adapter.resolve_model()
        request_id = f"req_{uuid.uuid4().hex[:12]}"

        with LogContext.bind(request_id=request_id, provider=provider, model=model):
            with stream_span(provider, model, request_id) as span:
                started = time.monotonic()
                outcome = OUTCOME_FAILED
                self.metrics.stream_started(provider)
                try:
                    outcome = await self._run(messages, model, callbacks, started)
                except asyncio.CancelledError:
                    outcome = OUTCOME_CANCELLED
                    raise
                finally:
                    span.set_attribute("llm.outcome", outcome)
                    self.metrics.record_stream(provider, outcome, time.monotonic() - started)

    async def _run(
        self,
        messages: Conversation,
        model: str,
        callbacks: StreamCallbacks,
        started: float,
    ) -> str:
        client = await self._get_client()

        try:
            request = self.adapter.build_request(client, messages, model)
        except StreamerError as e:
            logger.warning("Failed to build request", error=e.message, error_code=e.code)
            await emit(callbacks.on_error, e)
            return OUTCOME_REQUEST_ERROR

        logger.info("Stream started", message_count=len(messages), url=str(request.url))

        try:
            response = await client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error = map_transport_error(e, provider=self.provider)
            logger.warning("Stream request failed", error=error.message, error_code=error.code)
            await emit(callbacks.on_error, error)
            if isinstance(error, RequestConstructionError):
                return OUTCOME_REQUEST_ERROR
            return OUTCOME_TRANSPORT_ERROR
        except asyncio.CancelledError:
            logger.info("Stream cancelled before a response arrived")
            raise

        try:
            if response.status_code != httpx.codes.OK:
                await self._handle_error_response(response, callbacks)
                return OUTCOME_HTTP_ERROR

            decoder = StreamDecoder(self.adapter, callbacks, metrics=self.metrics, started_at=started)
            outcome = await decoder.decode(response.aiter_bytes())

            logger.info(
                "Stream ended",
                outcome=outcome.value,
                chunks=decoder.chunks_delivered,
                parse_errors=decoder.parse_errors,
                duration_ms=round((time.monotonic() - started) * 1000, 2),
            )
            return outcome.value
        except asyncio.CancelledError:
            logger.info("Stream cancelled")
            raise
        finally:
            await response.aclose()

    async def _handle_error_response(
        self,
        response: httpx.Response,
        callbacks: StreamCallbacks,
    ) -> None:
        """Report a non-success status with the body verbatim; nothing is decoded."""
        status_code = response.status_code

        try:
            await response.aread()
        except READ_ERRORS as e:
            logger.warning("Failed to read error body", status_code=status_code, error=str(e))
            await emit(
                callbacks.on_error,
                ResponseReadError(
                    f"non-200: {status_code}, read body failed: {e}",
                    provider=self.provider,
                    status_code=status_code,
                    cause=e,
                ),
            )
            return

        body = response.text
        logger.warning("Provider returned non-success status", status_code=status_code)
        await emit(callbacks.on_error, ProtocolError(status_code, body, provider=self.provider))
