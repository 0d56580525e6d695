"""
llmstreamer Core Module

Provider-agnostic data models and the error taxonomy.
"""

from .models import (
    # Enums
    Provider,
    Role,
    EventKind,
    StreamOutcome,

    # Messages
    Message,
    MessageLike,
    Conversation,
    message_to_dict,

    # Events and callbacks
    ProviderEvent,
    StreamCallbacks,
)
from .errors import (
    StreamerError,
    CredentialError,
    EncodingError,
    RequestConstructionError,
    TransportError,
    ProtocolError,
    ResponseReadError,
    EventParseError,
    map_transport_error,
    is_terminal_error,
)

__all__ = [
    "Provider",
    "Role",
    "EventKind",
    "StreamOutcome",
    "Message",
    "MessageLike",
    "Conversation",
    "message_to_dict",
    "ProviderEvent",
    "StreamCallbacks",
    "StreamerError",
    "CredentialError",
    "EncodingError",
    "RequestConstructionError",
    "TransportError",
    "ProtocolError",
    "ResponseReadError",
    "EventParseError",
    "map_transport_error",
    "is_terminal_error",
]
