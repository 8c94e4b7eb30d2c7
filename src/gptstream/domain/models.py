"""
Provider-agnostic domain models.

No external dependencies - only Python standard library.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Message roles in a conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single message. Frozen to prevent modification after creation."""
    role: Role
    content: str


@dataclass(frozen=True)
class CompletionRequest:
    """One streamed chat-completion call. Built once, never mutated."""
    model: str
    messages: tuple[Message, ...] = field(default_factory=tuple)
    stream: bool = True

    def __post_init__(self) -> None:
        # Lists are accepted for convenience but stored as a tuple
        object.__setattr__(self, "messages", tuple(self.messages))

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": msg.role.value, "content": msg.content} for msg in self.messages
            ],
            "stream": self.stream,
        }


class EventKind(str, Enum):
    """Classification of one transport line."""
    METADATA = "metadata"
    CONTENT = "content"
    TERMINAL = "terminal"
    SKIP = "skip"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ProtocolEvent:
    """Result of classifying a single raw line. Never stored."""
    kind: EventKind
    text: str = ""
    message_id: str = ""
    model: str = ""

    @property
    def emits_token(self) -> bool:
        """Content and malformed lines both reach the caller (the latter as "")."""
        return self.kind in (EventKind.CONTENT, EventKind.MALFORMED)


class StreamEndReason(str, Enum):
    """How a token stream ended. Recorded for diagnostics only."""
    STOP = "stop"
    EOF = "eof"
    READ_ERROR = "read_error"
    ABANDONED = "abandoned"
    CANCELLED = "cancelled"
