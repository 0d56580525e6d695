"""
llmstreamer - Anthropic Provider Adapter

Adapter for Anthropic's Messages API streaming.

Event shape (typed events):
    data: {"type": "message_start", "message": {...}}
    data: {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Hi"}}
    data: {"type": "message_stop"}
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel

from .base import BaseAdapter
from ..core.models import Provider, ProviderEvent
from ..observability.logging import get_logger


logger = get_logger(__name__)


# Event types this client acts on; everything else is ignored
CONTENT_BLOCK_DELTA = "content_block_delta"
MESSAGE_STOP = "message_stop"
ERROR_EVENT = "error"


class AnthropicDelta(BaseModel):
    type: Optional[str] = None
    text: Optional[str] = None


class AnthropicStreamEvent(BaseModel):
    """One typed streaming event. Unknown fields are ignored."""
    type: Optional[str] = None
    index: Optional[int] = None
    delta: Optional[AnthropicDelta] = None
    error: Optional[Dict[str, Any]] = None


class AnthropicAdapter(BaseAdapter):
    """
    Adapter for Anthropic Claude API.

    Only `content_block_delta` and `message_stop` are meaningful:
    message_start, content_block_start/stop, message_delta and ping are
    ignored. There is no literal sentinel; `[DONE]` would be a parse
    error for this provider.
    """

    provider = Provider.ANTHROPIC
    DEFAULT_BASE_URL = "https://api.anthropic.com"
    ENDPOINT_PATH = "/v1/messages"
    DEFAULT_MODEL = "claude-3-opus-20240229"
    API_VERSION = "2023-06-01"

    terminator_sentinel = None

    def auth_headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
        }

    def _parse_payload(self, payload: bytes) -> ProviderEvent:
        event = AnthropicStreamEvent.model_validate_json(payload)

        if event.type == CONTENT_BLOCK_DELTA:
            return ProviderEvent.delta(event.delta.text if event.delta else None)

        if event.type == MESSAGE_STOP:
            return ProviderEvent.terminator()

        if event.type == ERROR_EVENT:
            error = event.error or {}
            logger.warning(
                "Anthropic stream reported an error event",
                error_type=error.get("type", ""),
                error_message=error.get("message", ""),
            )

        return ProviderEvent.ignored()
