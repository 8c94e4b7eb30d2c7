"""Streamed chat-completion orchestration: request, deadline race, token pump."""

from gptstream.streaming.cancellation import CancellableContext
from gptstream.streaming.issuer import RequestIssuer
from gptstream.streaming.pump import PumpState, StreamPump
from gptstream.streaming.racer import DeadlineRacer
from gptstream.streaming.session import ChatStreamClient, SessionHandle

__all__ = [
    "CancellableContext",
    "ChatStreamClient",
    "DeadlineRacer",
    "PumpState",
    "RequestIssuer",
    "SessionHandle",
    "StreamPump",
]
