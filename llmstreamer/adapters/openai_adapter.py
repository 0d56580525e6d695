"""
llmstreamer - OpenAI Provider Adapter

Adapter for OpenAI chat completions streaming.

Event shape:
    data: {"id": "...", "choices": [{"index": 0, "delta": {"content": "Hi"}}]}
    data: [DONE]
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from .base import BaseAdapter
from ..core.models import Provider, ProviderEvent


class OpenAIDelta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class OpenAIChoice(BaseModel):
    index: Optional[int] = None
    delta: Optional[OpenAIDelta] = None
    finish_reason: Optional[str] = None


class OpenAIStreamEvent(BaseModel):
    """One chat.completion.chunk. Unknown fields are ignored."""
    id: Optional[str] = None
    object: Optional[str] = None
    model: Optional[str] = None
    choices: Optional[List[OpenAIChoice]] = None


class OpenAIAdapter(BaseAdapter):
    """
    Adapter for OpenAI's chat completions API.

    Only the first choice carries text for this client. A chunk with no
    choices or an empty delta is a no-op delta; the stream ends on the
    literal `[DONE]` payload (there is no typed stop event).
    """

    provider = Provider.OPENAI
    DEFAULT_BASE_URL = "https://api.openai.com"
    ENDPOINT_PATH = "/v1/chat/completions"
    DEFAULT_MODEL = "gpt-4o"

    terminator_sentinel = b"[DONE]"

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _parse_payload(self, payload: bytes) -> ProviderEvent:
        event = OpenAIStreamEvent.model_validate_json(payload)

        if not event.choices:
            return ProviderEvent.delta("")

        delta = event.choices[0].delta
        return ProviderEvent.delta(delta.content if delta else "")
