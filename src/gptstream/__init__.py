"""gptstream - streaming client for OpenAI-compatible chat completions."""

from gptstream.core.config import Settings, load_settings
from gptstream.domain import (
    CompletionRequest,
    ConfigError,
    GPTStreamError,
    Message,
    ProtocolError,
    ProviderStatusError,
    RequestTimeoutError,
    Role,
    StreamEndReason,
    TransportError,
)
from gptstream.streaming import ChatStreamClient, SessionHandle

__version__ = "0.1.0"

__all__ = [
    "ChatStreamClient",
    "CompletionRequest",
    "ConfigError",
    "GPTStreamError",
    "Message",
    "ProtocolError",
    "ProviderStatusError",
    "RequestTimeoutError",
    "Role",
    "SessionHandle",
    "Settings",
    "StreamEndReason",
    "TransportError",
    "load_settings",
]
