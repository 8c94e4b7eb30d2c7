"""
Line filter for the streamed chat-completion wire format.

Each transport line is optionally prefixed with "data: " and carries one
JSON fragment. The body is read as a two-state grammar: one metadata line,
then delta lines until a line whose finish_reason is "stop".
"""

import json
import logging
from typing import Any

from gptstream.domain.exceptions import MalformedContentError
from gptstream.domain.models import EventKind, ProtocolEvent

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
STOP_REASON = "stop"

_SKIP = ProtocolEvent(kind=EventKind.SKIP)
_TERMINAL = ProtocolEvent(kind=EventKind.TERMINAL)


def trim_prefix(raw: str) -> str:
    """Strip the "data: " prefix if present."""
    if raw.startswith(DATA_PREFIX):
        return raw[len(DATA_PREFIX):]
    return raw


def _load(line: str) -> dict[str, Any] | None:
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _first_choice(data: dict[str, Any]) -> dict[str, Any]:
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return {}


def is_terminal(line: str) -> bool:
    """True when the line is the stop marker (or a bare transport sentinel)."""
    if line.strip() == DONE_SENTINEL:
        return True
    data = _load(line)
    if data is None:
        return False
    return _first_choice(data).get("finish_reason") == STOP_REASON


def extract_content(line: str) -> str:
    """Return choices[0].delta.content of a prefix-free line.

    Raises MalformedContentError when the line is not a JSON object or
    the content path is absent.
    """
    data = _load(line)
    if data is None:
        raise MalformedContentError("Delta line is not a JSON object", line=line)
    delta = _first_choice(data).get("delta")
    content = delta.get("content") if isinstance(delta, dict) else None
    if not isinstance(content, str):
        raise MalformedContentError(
            "Delta line has no choices[0].delta.content", line=line, details={"keys": list(data)}
        )
    return content


def classify_line(raw: str) -> ProtocolEvent:
    """Classify one raw line of the body after the metadata line."""
    line = trim_prefix(raw)

    if line == "":
        return _SKIP

    if is_terminal(line):
        return _TERMINAL

    try:
        return ProtocolEvent(kind=EventKind.CONTENT, text=extract_content(line))
    except MalformedContentError as e:
        logger.debug("Tolerating malformed delta line: %s", e.message)
        return ProtocolEvent(kind=EventKind.MALFORMED, text="")


def decode_metadata(raw: str) -> ProtocolEvent:
    """Decode the first line of the body into its id and model fields.

    Missing fields or an undecodable line yield empty strings.
    """
    data = _load(trim_prefix(raw))
    if data is None:
        logger.warning("Metadata line is not a JSON object")
        data = {}

    message_id = data.get("id")
    model = data.get("model")
    return ProtocolEvent(
        kind=EventKind.METADATA,
        message_id=message_id if isinstance(message_id, str) else "",
        model=model if isinstance(model, str) else "",
    )
