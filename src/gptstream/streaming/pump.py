"""
Stream pump: moves content tokens from the response body to the caller.

State machine AWAIT_HEADER -> STREAMING -> TERMINATED. The header line is
read by the session frontend (read_header) before the pump task starts,
so metadata is always known before the first token. Whatever ends the
STREAMING state, the pump releases the response, cancels its context and
closes the token channel, in that order and exactly once.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from enum import Enum

import anyio
import httpx
from anyio.streams.memory import MemoryObjectSendStream

from gptstream.core.metrics import metrics
from gptstream.domain.exceptions import ProtocolError, TransportError
from gptstream.domain.models import EventKind, ProtocolEvent, StreamEndReason
from gptstream.streaming.cancellation import CancellableContext
from gptstream.streaming.protocol import classify_line, decode_metadata, trim_prefix

logger = logging.getLogger(__name__)

# Strong references to fire-and-forget cleanups
_cleanups: set[asyncio.Task] = set()


class PumpState(Enum):
    AWAIT_HEADER = "await_header"
    STREAMING = "streaming"
    TERMINATED = "terminated"


class StreamPump:
    def __init__(
        self,
        response: httpx.Response,
        context: CancellableContext,
        sentinel_lines: int = 1,
    ):
        self._response = response
        self._lines: AsyncIterator[str] = response.aiter_lines()
        self._context = context
        self._sentinel_lines = sentinel_lines
        self.state = PumpState.AWAIT_HEADER
        self.end_reason: StreamEndReason | None = None
        self.token_count = 0
        self._cleanup: asyncio.Task | None = None

    async def _next_line(self) -> str | None:
        try:
            return await self._lines.__anext__()
        except StopAsyncIteration:
            return None

    async def read_header(self) -> ProtocolEvent:
        """Read and decode the metadata line. Leading keep-alives are skipped."""
        if self.state is not PumpState.AWAIT_HEADER:
            raise RuntimeError(f"Header already read (state={self.state.value})")
        try:
            while True:
                raw = await self._next_line()
                if raw is None:
                    raise ProtocolError("Response body ended before the metadata line")
                if trim_prefix(raw) != "":
                    break
        except httpx.HTTPError as e:
            raise TransportError(
                f"Failed to read the metadata line: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        self.state = PumpState.STREAMING
        return decode_metadata(raw)

    async def run(self, send_stream: MemoryObjectSendStream[str]) -> StreamEndReason:
        """Pump tokens until the stream ends. May only run once, after read_header()."""
        if self.state is not PumpState.STREAMING:
            send_stream.close()
            raise RuntimeError(f"Pump cannot start in state {self.state.value}")

        metrics.increment_active_streams()
        reason = StreamEndReason.EOF
        try:
            while True:
                raw = await self._next_line()
                if raw is None:
                    break
                event = classify_line(raw)
                if event.kind is EventKind.SKIP:
                    continue
                if event.kind is EventKind.TERMINAL:
                    reason = StreamEndReason.STOP
                    await self._discard_sentinels()
                    break
                if event.emits_token:
                    # Unbuffered: blocks until the consumer takes the token
                    await send_stream.send(event.text)
                    self.token_count += 1
                    metrics.record_token()
        except (httpx.HTTPError, httpx.StreamError) as e:
            logger.warning("Read failed, ending stream: %s", e)
            reason = StreamEndReason.READ_ERROR
        except anyio.BrokenResourceError:
            logger.info("Consumer stopped reading, ending stream")
            reason = StreamEndReason.ABANDONED
        except asyncio.CancelledError:
            if self._context.cancel_reason == "abandoned":
                reason = StreamEndReason.ABANDONED
            else:
                reason = StreamEndReason.CANCELLED
            raise
        finally:
            self.state = PumpState.TERMINATED
            self.end_reason = reason
            await self._release()
            self._context.cancel(reason.value)
            send_stream.close()
            metrics.decrement_active_streams()
            logger.info("Stream terminated (%s) after %d token(s)", reason.value, self.token_count)

        return reason

    async def _discard_sentinels(self) -> None:
        try:
            for _ in range(self._sentinel_lines):
                if await self._next_line() is None:
                    return
        except (httpx.HTTPError, httpx.StreamError) as e:
            logger.debug("Read failed after stop marker: %s", e)

    async def _release(self) -> None:
        try:
            await self._lines.aclose()  # type: ignore[attr-defined]
        except Exception as e:
            logger.debug("Error while closing line iterator: %s", e)
        try:
            await self._response.aclose()
        except Exception as e:
            logger.debug("Error while releasing response: %s", e)

    def ensure_released(self, send_stream: MemoryObjectSendStream[str]) -> None:
        """Done-callback for the pump task.

        A task cancelled before its first step never enters run(), so its
        cleanup has to happen here.
        """
        send_stream.close()
        if self.state is PumpState.TERMINATED:
            return
        self.state = PumpState.TERMINATED
        if self._context.cancel_reason == "abandoned":
            self.end_reason = StreamEndReason.ABANDONED
        else:
            self.end_reason = StreamEndReason.CANCELLED
        self._context.cancel(self.end_reason.value)
        self._cleanup = asyncio.get_running_loop().create_task(self._release())
        _cleanups.add(self._cleanup)
        self._cleanup.add_done_callback(_cleanups.discard)

    async def wait_released(self) -> None:
        """Wait for a cleanup scheduled by ensure_released(), if any."""
        if self._cleanup is not None:
            await asyncio.wait({self._cleanup})
