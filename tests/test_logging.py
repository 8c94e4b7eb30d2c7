"""Tests for session-aware logging."""

import logging
import os
import sys

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from gptstream.core.context import (
    NO_SESSION,
    get_session_id,
    reset_session_id,
    set_session_id,
    short_session_id,
)
from gptstream.core.logging_config import SessionIdFilter, configure_logging


def _record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)


def test_filter_injects_short_session_id():
    token = set_session_id("3f2b9c1e-8d4a-4e6f-9a1b-2c3d4e5f6a7b")
    try:
        record = _record()
        assert SessionIdFilter().filter(record) is True
        assert record.session_id == "3f2b9c1e"
    finally:
        reset_session_id(token)


def test_filter_outside_session():
    record = _record()
    SessionIdFilter().filter(record)
    assert record.session_id == NO_SESSION


def test_default_session_id():
    assert get_session_id() == NO_SESSION
    assert short_session_id(NO_SESSION) == NO_SESSION


def test_set_and_reset_session_id():
    token = set_session_id("before")
    try:
        inner = set_session_id("after")
        assert get_session_id() == "after"
        reset_session_id(inner)
        assert get_session_id() == "before"
    finally:
        reset_session_id(token)
    assert get_session_id() == NO_SESSION


def test_configure_logging_is_idempotent():
    root = logging.getLogger()
    saved = root.handlers[:]
    try:
        configure_logging("DEBUG")
        configure_logging("DEBUG")
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert any(isinstance(f, SessionIdFilter) for f in root.handlers[0].filters)
    finally:
        root.handlers[:] = saved


def test_configure_logging_quiets_transport_loggers():
    root = logging.getLogger()
    saved = root.handlers[:]
    saved_level = root.level
    try:
        configure_logging("INFO")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

        configure_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.DEBUG
    finally:
        root.handlers[:] = saved
        root.setLevel(saved_level)
