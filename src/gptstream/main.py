"""
Command-line entry point.

Reads URL_PREFIX and OPENAI_API_KEY from .env (or the environment),
sends the configured system/user prompt and prints the reply as it
streams in.

Run from project root:  python -m gptstream
"""

import asyncio
import logging
import sys

from gptstream.core.config import Settings, get_settings
from gptstream.core.logging_config import configure_logging
from gptstream.domain.exceptions import ConfigError, GPTStreamError
from gptstream.domain.models import CompletionRequest, Message, Role
from gptstream.streaming.session import ChatStreamClient

logger = logging.getLogger(__name__)


def build_request(settings: Settings) -> CompletionRequest:
    return CompletionRequest(
        model=settings.model,
        messages=(
            Message(role=Role.SYSTEM, content=settings.system_prompt),
            Message(role=Role.USER, content=settings.user_prompt),
        ),
    )


async def stream_to_console(settings: Settings, out=sys.stdout) -> None:
    async with ChatStreamClient(settings) as client:
        async with await client.request_stream(build_request(settings)) as handle:
            print(file=out)
            print(f"MessageID = {handle.message_id}", file=out)
            print(f"Model     = {handle.model}", file=out)
            print("Content   = ", end="", file=out)

            # Blocks on every token until the pump closes the channel
            async for token in handle:
                print(token, end="", flush=True, file=out)

            print(file=out)


def main() -> int:
    try:
        settings = get_settings()
    except ConfigError as e:
        print(f"Configuration error: {e.message} {e.details}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        asyncio.run(stream_to_console(settings))
    except GPTStreamError as e:
        logger.error("Request failed: %s", e.message)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
