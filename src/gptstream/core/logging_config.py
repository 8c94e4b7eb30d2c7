"""
Logging configuration for gptstream.

Every log line carries the short ID of the streaming session it belongs
to, taken from the session context, so the lines of concurrent sessions
can be told apart.
"""

import logging

from gptstream.core.context import get_session_id, short_session_id

# httpx/httpcore log every request and connection event at INFO/DEBUG
NOISY_LOGGERS = ("httpx", "httpcore")


class SessionIdFilter(logging.Filter):
    """Logging filter that injects the session ID into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = short_session_id(get_session_id())  # type: ignore[attr-defined]
        return True


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure console logging with session ID injection.

    Safe to call more than once; previous root handlers are replaced.
    Transport loggers are held at WARNING unless level is DEBUG.
    """
    log_format = "[%(asctime)s] [%(levelname)s] [session=%(session_id)s] %(name)s: %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format))
    console_handler.addFilter(SessionIdFilter())
    root_logger.addHandler(console_handler)

    transport_level = logging.DEBUG if root_logger.level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)
