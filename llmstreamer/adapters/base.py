"""
llmstreamer - Provider Adapter Base

Abstract base class for provider adapters.

An adapter owns everything provider-specific about one streaming call:
1. Building the HTTP request (endpoint, auth headers, JSON body)
2. Turning one SSE `data:` payload into a ProviderEvent
3. The literal sentinel that ends a stream, if the provider has one

The stream decoder and the streamer are generic over this interface.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..config import AdapterConfig
from ..core.errors import EncodingError, EventParseError, RequestConstructionError
from ..core.models import Conversation, Provider, ProviderEvent, message_to_dict


class BaseAdapter(ABC):
    """
    Abstract base class for provider adapters.

    Subclasses set the class attributes and implement `auth_headers`
    and `_parse_payload`.
    """

    provider: Provider
    DEFAULT_BASE_URL: str = ""
    ENDPOINT_PATH: str = ""
    DEFAULT_MODEL: str = ""

    # Literal payload that ends the stream before JSON parsing, or None
    terminator_sentinel: Optional[bytes] = None

    def __init__(self, config: AdapterConfig):
        self.config = config
        self.base_url = (config.base_url or self.DEFAULT_BASE_URL).rstrip("/")

    @property
    def api_key(self) -> str:
        return self.config.api_key or ""

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.ENDPOINT_PATH}"

    def resolve_model(self) -> str:
        """Configured model, or the provider default when unset."""
        return self.config.model or self.DEFAULT_MODEL

    @abstractmethod
    def auth_headers(self) -> Dict[str, str]:
        """Provider-specific credential headers."""
        pass

    # ============================================================
    # Request building
    # ============================================================

    def build_payload(self, messages: Conversation, model: str) -> Dict[str, Any]:
        """Build the JSON body for a streaming request."""
        try:
            wire_messages: List[Dict[str, Any]] = [message_to_dict(m) for m in messages]
        except (TypeError, ValueError) as e:
            raise EncodingError(
                f"failed to encode messages: {e}",
                provider=self.provider.value,
                cause=e,
            )

        return {
            "model": model,
            "messages": wire_messages,
            "max_tokens": self.config.max_tokens,
            "stream": True,
        }

    def encode_payload(self, payload: Dict[str, Any]) -> bytes:
        try:
            return json.dumps(payload, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodingError(
                f"failed to encode request body: {e}",
                provider=self.provider.value,
                cause=e,
            )

    def build_request(
        self,
        client: httpx.AsyncClient,
        messages: Conversation,
        model: Optional[str] = None,
    ) -> httpx.Request:
        """
        Build the transport-ready streaming request.

        Args:
            client: Client the request will be sent with
            messages: Ordered conversation
            model: Model override; defaults to `resolve_model()`

        Returns:
            An httpx.Request with no timeout applied

        Raises:
            EncodingError: The body could not be serialized
            RequestConstructionError: httpx rejected the request
        """
        body = self.encode_payload(self.build_payload(messages, model or self.resolve_model()))

        headers = {"Content-Type": "application/json"}
        headers.update(self.auth_headers())

        try:
            request = client.build_request(
                "POST",
                self.url,
                content=body,
                headers=headers,
                timeout=httpx.Timeout(None),
            )
        except httpx.InvalidURL as e:
            raise RequestConstructionError(
                f"invalid request url {self.url!r}: {e}",
                provider=self.provider.value,
                cause=e,
            )

        if request.url.scheme not in ("http", "https"):
            raise RequestConstructionError(
                f"unsupported url scheme in {self.url!r}",
                provider=self.provider.value,
            )

        return request

    # ============================================================
    # Event parsing
    # ============================================================

    def is_terminator_sentinel(self, payload: bytes) -> bool:
        return self.terminator_sentinel is not None and payload == self.terminator_sentinel

    def parse_event(self, payload: bytes) -> ProviderEvent:
        """
        Deserialize one `data:` payload.

        Raises:
            EventParseError: The payload is not valid JSON or does not
                match the provider's event schema
        """
        try:
            return self._parse_payload(payload)
        except ValidationError as e:
            errors = e.errors()
            reason = errors[0]["msg"] if errors else str(e)
            raise EventParseError(
                payload.decode("utf-8", errors="replace"),
                reason,
                provider=self.provider.value,
                cause=e,
            )

    @abstractmethod
    def _parse_payload(self, payload: bytes) -> ProviderEvent:
        """Validate the payload against the provider schema. May raise ValidationError."""
        pass
