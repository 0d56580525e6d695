"""
llmstreamer - Error Definitions

Error taxonomy for streaming chat calls.

Every failure is delivered through the `on_error` callback as one of
the classes below; none of them is raised out of `stream_chat`.

Fatal errors end the stream:
- CredentialError, EncodingError, RequestConstructionError
- TransportError, ProtocolError, ResponseReadError

Recoverable errors are reported and the stream continues:
- EventParseError
"""

from typing import Optional

import httpx


class StreamerError(Exception):
    """Base exception for all llmstreamer errors."""

    code: str = "streamer_error"
    fatal: bool = True

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: bool = False,
        cause: Optional[BaseException] = None,
    ):
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.retryable = retryable
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


# ============================================================
# Before the request is sent
# ============================================================

class CredentialError(StreamerError):
    """API key is empty or missing. No network call is attempted."""

    code = "invalid_api_key"

    def __init__(self, message: str = "invalid api key", **kwargs):
        super().__init__(message, **kwargs)


class EncodingError(StreamerError):
    """The request payload could not be serialized."""

    code = "encoding_error"


class RequestConstructionError(StreamerError):
    """The transport rejected the constructed request (bad URL etc.)."""

    code = "invalid_request"


# ============================================================
# During the HTTP exchange
# ============================================================

class TransportError(StreamerError):
    """Connection, DNS or protocol failure before a response arrived."""

    code = "transport_error"

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class ProtocolError(StreamerError):
    """Provider answered with a non-success status."""

    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(self, status_code: int, body: str = "", **kwargs):
        self.body = body
        kwargs.setdefault("retryable", status_code in self.RETRYABLE_STATUS_CODES)
        super().__init__(
            f"non-200: {status_code}, body: {body}",
            status_code=status_code,
            **kwargs
        )

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"http_{self.status_code}"


class ResponseReadError(StreamerError):
    """Reading the response body failed (error body or stream body)."""

    code = "read_failed"


# ============================================================
# Per-event (recoverable)
# ============================================================

class EventParseError(StreamerError):
    """One `data:` payload could not be deserialized. The stream goes on."""

    code = "event_parse_error"
    fatal = False

    def __init__(self, payload: str, reason: str = "", **kwargs):
        self.payload = payload
        message = "failed to parse JSON"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, **kwargs)


# ============================================================
# Mapping helpers
# ============================================================

def map_transport_error(
    error: Exception,
    provider: Optional[str] = None
) -> StreamerError:
    """
    Convert an httpx exception raised while sending into the taxonomy.

    Unsupported schemes and invalid URLs are request construction
    problems; everything else that happens before a response exists is
    a transport failure.
    """
    if isinstance(error, StreamerError):
        return error

    if isinstance(error, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return RequestConstructionError(
            f"invalid request: {error}",
            provider=provider,
            cause=error,
        )

    if isinstance(error, httpx.TimeoutException):
        message = f"request timed out: {error}"
    elif isinstance(error, httpx.ConnectError):
        message = f"connection failed: {error}"
    else:
        message = f"request failed: {error}"

    return TransportError(message, provider=provider, cause=error)


def is_terminal_error(error: Exception) -> bool:
    """True when an error delivered to `on_error` ends the stream."""
    if isinstance(error, StreamerError):
        return error.fatal
    return True
