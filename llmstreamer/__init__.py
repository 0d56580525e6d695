"""
llmstreamer

Streaming chat completions from OpenAI and Anthropic behind one
callback interface.

Quick Start:
    from llmstreamer import ChatStreamer, Message, StreamCallbacks

    streamer = ChatStreamer.for_provider("anthropic", api_key="sk-ant-...")

    await streamer.stream_chat(
        [Message.user("Tell me a story")],
        StreamCallbacks(
            on_content=lambda text: print(text, end="", flush=True),
            on_finish=lambda full: print(),
            on_error=lambda err: print(f"error: {err}"),
        ),
    )
"""

from .adapters import AnthropicAdapter, BaseAdapter, OpenAIAdapter, get_adapter
from .client import ChatStreamer
from .config import AdapterConfig, load_adapter_config
from .core.errors import (
    CredentialError,
    EncodingError,
    EventParseError,
    ProtocolError,
    RequestConstructionError,
    ResponseReadError,
    StreamerError,
    TransportError,
    is_terminal_error,
)
from .core.models import (
    EventKind,
    Message,
    Provider,
    ProviderEvent,
    Role,
    StreamCallbacks,
    StreamOutcome,
)
from .streaming.decoder import LineBuffer, StreamDecoder

__version__ = "0.1.0"
__all__ = [
    # Client
    "ChatStreamer",
    # Adapters
    "AdapterConfig",
    "BaseAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "get_adapter",
    "load_adapter_config",
    # Models
    "EventKind",
    "Message",
    "Provider",
    "ProviderEvent",
    "Role",
    "StreamCallbacks",
    "StreamOutcome",
    # Streaming
    "LineBuffer",
    "StreamDecoder",
    # Errors
    "StreamerError",
    "CredentialError",
    "EncodingError",
    "RequestConstructionError",
    "TransportError",
    "ProtocolError",
    "ResponseReadError",
    "EventParseError",
    "is_terminal_error",
]
