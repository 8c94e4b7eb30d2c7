"""
Session context variables for cross-cutting concerns.

request_stream() sets the session ID only while it sets up a session.
The request issuer and stream pump tasks are created inside that window,
so asyncio copies the value into their contexts and every log line they
emit carries it. The caller's own context is restored before returning.
"""

from contextvars import ContextVar, Token

# Outside of any session, log lines show "-"
NO_SESSION = "-"

session_id_var: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def get_session_id() -> str:
    """Get the current session ID."""
    return session_id_var.get()


def set_session_id(session_id: str) -> Token[str]:
    """Set the session ID; keep the token to restore the previous value."""
    return session_id_var.set(session_id)


def reset_session_id(token: Token[str]) -> None:
    session_id_var.reset(token)


def short_session_id(session_id: str) -> str:
    """First block of a UUID, as used in task and context names."""
    return session_id.split("-", 1)[0] if session_id != NO_SESSION else NO_SESSION
