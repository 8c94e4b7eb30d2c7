"""gptstream domain layer."""

from gptstream.domain.models import (
    Role,
    Message,
    CompletionRequest,
    EventKind,
    ProtocolEvent,
    StreamEndReason,
)

from gptstream.domain.exceptions import (
    GPTStreamError,
    ConfigError,
    RequestTimeoutError,
    TransportError,
    ProviderStatusError,
    ProtocolError,
    MalformedContentError,
)

__all__ = [
    # Models
    "Role",
    "Message",
    "CompletionRequest",
    "EventKind",
    "ProtocolEvent",
    "StreamEndReason",
    # Exceptions
    "GPTStreamError",
    "ConfigError",
    "RequestTimeoutError",
    "TransportError",
    "ProviderStatusError",
    "ProtocolError",
    "MalformedContentError",
]
