"""Pytest configuration for gptstream tests."""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from gptstream.core.config import load_settings


@pytest.fixture
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def settings():
    """Settings that never touch a real .env file."""
    return load_settings(
        _env_file=None,
        url_prefix="https://llm.test/v1",
        openai_api_key="test-key",
        header_timeout_seconds=1.0,
        session_timeout_seconds=5.0,
    )
