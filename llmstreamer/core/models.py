"""
llmstreamer - Core Data Models

Provider-agnostic models shared by the adapters, the stream decoder
and the streamer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, Union


# ============================================================
# Enums
# ============================================================

class Provider(str, Enum):
    """Supported streaming providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class Role(str, Enum):
    """Message roles."""
    USER = "user"
    ASSISTANT = "assistant"


class EventKind(str, Enum):
    """What a single decoded `data:` payload means to the decoder."""
    CONTENT_DELTA = "content_delta"
    TERMINATOR = "terminator"
    IGNORED = "ignored"


class StreamOutcome(str, Enum):
    """How a decoded stream ended."""
    DONE_SENTINEL = "done_sentinel"
    TERMINATOR = "terminator"
    END_OF_INPUT = "end_of_input"
    READ_FAILED = "read_failed"


# ============================================================
# Messages
# ============================================================

@dataclass(frozen=True)
class Message:
    """One turn of a conversation. `role` accepts a Role or its string value."""
    role: Role
    content: str

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


MessageLike = Union[Message, Mapping[str, Any]]


def message_to_dict(message: MessageLike) -> Dict[str, Any]:
    """
    Convert a message to its wire form.

    Accepts `Message` instances and plain mappings with `role` and
    `content` keys. Raises TypeError for anything else and ValueError
    when the role is missing or not one of `user`/`assistant`.
    """
    if isinstance(message, Message):
        return message.to_dict()
    if isinstance(message, Mapping):
        return {"role": Role(message.get("role")).value, "content": message.get("content")}
    raise TypeError(f"Unsupported message type: {type(message).__name__}")


# ============================================================
# Provider events
# ============================================================

@dataclass(frozen=True)
class ProviderEvent:
    """Provider-agnostic form of one `data:` payload."""
    kind: EventKind
    text: str = ""

    @classmethod
    def delta(cls, text: Optional[str]) -> "ProviderEvent":
        return cls(kind=EventKind.CONTENT_DELTA, text=text or "")

    @classmethod
    def terminator(cls) -> "ProviderEvent":
        return cls(kind=EventKind.TERMINATOR)

    @classmethod
    def ignored(cls) -> "ProviderEvent":
        return cls(kind=EventKind.IGNORED)


# ============================================================
# Callbacks
# ============================================================

ContentHandler = Callable[[str], Union[None, Awaitable[None]]]
FinishHandler = Callable[[str], Union[None, Awaitable[None]]]
ErrorHandler = Callable[[Exception], Union[None, Awaitable[None]]]


@dataclass
class StreamCallbacks:
    """
    Caller-supplied handlers for one stream.

    Every slot is optional. Handlers may be plain functions or coroutine
    functions; they run on the streaming task in wire order, so they
    must not block the event loop.

    Per stream: `on_content` zero or more times, then exactly one of
    `on_finish` or a terminal `on_error`. Non-terminal `on_error` calls
    (malformed events) may be interleaved before the terminal call.
    """
    on_content: Optional[ContentHandler] = None
    on_finish: Optional[FinishHandler] = None
    on_error: Optional[ErrorHandler] = None


Conversation = Sequence[MessageLike]
