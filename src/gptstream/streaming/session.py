"""
Session frontend: one call from request to live token stream.

    async with ChatStreamClient(settings) as client:
        async with await client.request_stream(request) as handle:
            print(handle.message_id, handle.model)
            async for token in handle:
                print(token, end="")

Failures before the stream is established are raised from
request_stream(). Afterwards the token channel simply closes; a consumer
cannot tell a clean stop from a dropped connection except through the
diagnostic end_reason.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import AsyncIterator

import anyio
import httpx
from anyio.streams.memory import MemoryObjectReceiveStream

from gptstream.core.config import Settings
from gptstream.core.context import reset_session_id, set_session_id, short_session_id
from gptstream.core.metrics import metrics
from gptstream.core.telemetry import (
    log_session_established,
    log_session_failed,
    log_session_finished,
    log_session_started,
)
from gptstream.domain.exceptions import (
    GPTStreamError,
    ProviderStatusError,
    RequestTimeoutError,
    TransportError,
)
from gptstream.domain.models import CompletionRequest, ProtocolEvent, StreamEndReason
from gptstream.streaming.cancellation import CancellableContext
from gptstream.streaming.issuer import RequestIssuer
from gptstream.streaming.pump import StreamPump
from gptstream.streaming.racer import DeadlineRacer

logger = logging.getLogger(__name__)


class SessionHandle:
    """Metadata plus the receive side of the token channel.

    Closing the handle (aclose() or leaving ``async with``) abandons the
    stream: the pump stops and the response is released.
    """

    def __init__(
        self,
        session_id: str,
        message_id: str,
        model: str,
        tokens: MemoryObjectReceiveStream[str],
        context: CancellableContext,
        pump: StreamPump,
        pump_task: asyncio.Task,
    ):
        self.session_id = session_id
        self.message_id = message_id
        self.model = model
        self.tokens = tokens
        self._context = context
        self._pump = pump
        self._pump_task = pump_task

    def __aiter__(self) -> AsyncIterator[str]:
        return self.tokens.__aiter__()

    @property
    def end_reason(self) -> StreamEndReason | None:
        """How the stream ended, or None while it is still running."""
        return self._pump.end_reason

    @property
    def finished(self) -> bool:
        return self._pump_task.done()

    async def wait_finished(self) -> StreamEndReason | None:
        """Wait until the pump has released the response and closed the channel."""
        await asyncio.wait({self._pump_task})
        await self._pump.wait_released()
        return self._pump.end_reason

    async def aclose(self) -> None:
        """Stop consuming. Safe to call after the stream already ended."""
        self.tokens.close()
        if not self._pump_task.done():
            self._context.cancel("abandoned")
        await asyncio.wait({self._pump_task})
        await self._pump.wait_released()

    async def __aenter__(self) -> "SessionHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class ChatStreamClient:
    """Client for a streamed OpenAI-compatible chat-completion endpoint.

    Owns one httpx.AsyncClient shared by all sessions; close it with
    aclose() or by using the client as an async context manager.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
        self._settings = settings
        self._owns_client = http_client is None
        if http_client is None:
            timeout = httpx.Timeout(
                connect=settings.connect_timeout_seconds,
                read=settings.session_timeout_seconds,
                write=10.0,
                pool=5.0,
            )
            http_client = httpx.AsyncClient(timeout=timeout)
        self._client = http_client
        self._issuer = RequestIssuer(self._client, settings)
        self._racer = DeadlineRacer(settings.header_timeout_seconds)
        self._pumps: dict[asyncio.Task, StreamPump] = {}

    async def aclose(self) -> None:
        """Stop every running token stream, then close the HTTP client if we own it."""
        running = {task: pump for task, pump in self._pumps.items() if not task.done()}
        for task in running:
            task.cancel()
        if running:
            await asyncio.wait(set(running))
        for pump in running.values():
            await pump.wait_released()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ChatStreamClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request_stream(
        self, request: CompletionRequest, session_timeout: float | None = None
    ) -> SessionHandle:
        """Issue one streamed completion and return as soon as metadata is known.

        session_timeout bounds the whole call including the token stream
        (defaults to settings.session_timeout_seconds). The wait for
        response headers never outlasts it. Raises a GPTStreamError
        subclass when no stream could be established.
        """
        if session_timeout is None:
            session_timeout = self._settings.session_timeout_seconds
        if session_timeout <= 0:
            raise ValueError(f"session_timeout must be positive, got {session_timeout}")

        session_id = str(uuid.uuid4())
        token = set_session_id(session_id)
        try:
            return await self._establish(request, session_id, session_timeout)
        finally:
            reset_session_id(token)

    async def _establish(
        self, request: CompletionRequest, session_id: str, session_timeout: float
    ) -> SessionHandle:
        log_session_started(session_id, request)

        context = CancellableContext(name=f"session-{short_session_id(session_id)}")
        context.start_deadline(session_timeout)
        header_timeout = min(self._settings.header_timeout_seconds, session_timeout)

        start = time.perf_counter()
        response: httpx.Response | None = None
        try:
            pending = self._issuer.issue(request, context)
            response = await self._racer.race(pending, context, timeout=header_timeout)
            latency = time.perf_counter() - start
            metrics.record_header_latency(latency)

            if not response.is_success:
                await response.aread()
                raise ProviderStatusError(
                    f"Request failed with status {response.status_code}",
                    status_code=response.status_code,
                    details={"response": response.text},
                )

            logger.info("Already got the response, reading metadata line")
            pump = StreamPump(response, context, self._settings.terminal_sentinel_lines)
            header = await self._read_header(pump, context)
        except GPTStreamError as e:
            await self._release(context, response, "failed")
            metrics.record_session(type(e).__name__)
            log_session_failed(session_id, e)
            raise
        except BaseException:
            await self._release(context, response, "abandoned")
            raise

        send_stream, receive_stream = anyio.create_memory_object_stream(max_buffer_size=0)
        pump_task = asyncio.create_task(
            self._run_pump(session_id, pump, send_stream), name=f"{context.name}-pump"
        )
        context.attach(pump_task)
        pump_task.add_done_callback(lambda _: pump.ensure_released(send_stream))
        self._pumps[pump_task] = pump
        pump_task.add_done_callback(lambda task: self._pumps.pop(task, None))

        metrics.record_session("established")
        log_session_established(
            session_id, header.message_id, header.model, response.status_code, latency * 1000
        )
        return SessionHandle(
            session_id=session_id,
            message_id=header.message_id,
            model=header.model,
            tokens=receive_stream,
            context=context,
            pump=pump,
            pump_task=pump_task,
        )

    async def _read_header(self, pump: StreamPump, context: CancellableContext) -> ProtocolEvent:
        """Read the metadata line in a task the session deadline can cancel."""
        reading = context.attach(
            asyncio.create_task(pump.read_header(), name=f"{context.name}-header")
        )
        await asyncio.wait({reading})
        if reading.cancelled() and context.cancel_reason == "deadline":
            raise RequestTimeoutError(
                f"Session deadline of {context.deadline_seconds}s passed before the metadata line",
                timeout=context.deadline_seconds,
            )
        if reading.cancelled():
            raise TransportError(
                "Metadata read was cancelled", details={"reason": context.cancel_reason}
            )
        return reading.result()

    async def _run_pump(self, session_id: str, pump: StreamPump, send_stream) -> None:
        try:
            await pump.run(send_stream)
        finally:
            log_session_finished(
                session_id, pump.end_reason or StreamEndReason.CANCELLED, pump.token_count
            )

    async def _release(
        self, context: CancellableContext, response: httpx.Response | None, reason: str
    ) -> None:
        context.cancel(reason)
        if response is not None:
            await response.aclose()
