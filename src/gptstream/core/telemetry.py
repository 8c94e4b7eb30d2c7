"""
Structured logging for session telemetry.

Logs METADATA only - never log prompt or token content.
"""

import sys

import structlog

from gptstream.domain.exceptions import GPTStreamError
from gptstream.domain.models import CompletionRequest, StreamEndReason


structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

logger = structlog.get_logger("gptstream.telemetry")


def log_session_started(session_id: str, request: CompletionRequest) -> None:
    """Log when a session begins. No content logged."""
    logger.info(
        "session_started",
        session_id=session_id,
        model=request.model,
        message_count=len(request.messages),
    )


def log_session_established(
    session_id: str, message_id: str, model: str, status_code: int, latency_ms: float
) -> None:
    """Log once metadata has been decoded and the pump is about to start."""
    logger.info(
        "session_established",
        session_id=session_id,
        message_id=message_id,
        model=model,
        status_code=status_code,
        header_latency_ms=round(latency_ms, 2),
    )


def log_session_failed(session_id: str, error: GPTStreamError) -> None:
    """Log a failure that happened before a stream was established."""
    logger.warning(
        "session_failed",
        session_id=session_id,
        error_type=type(error).__name__,
        error_message=error.message,
        details=error.details,
    )


def log_session_finished(session_id: str, reason: StreamEndReason, token_count: int) -> None:
    """Log the end of a token stream."""
    logger.info(
        "session_finished",
        session_id=session_id,
        end_reason=reason.value,
        token_count=token_count,
    )
