"""Fake response bodies and endpoints shared by the streaming tests."""

import asyncio
import json

import httpx


def data(payload: dict) -> str:
    return "data: " + json.dumps(payload)


def delta(content: str) -> str:
    return data({"id": "abc", "choices": [{"delta": {"content": content}}]})


METADATA_LINE = json.dumps({"id": "abc", "model": "gpt-x"})
STOP_LINE = data({"choices": [{"finish_reason": "stop"}]})
DONE_LINE = "data: [DONE]"


class LineStream(httpx.AsyncByteStream):
    """Body that yields one line per chunk and records how it was used.

    With hang=True the body stalls after its last line instead of ending.
    """

    def __init__(self, lines: list[str], hang: bool = False):
        self.lines = lines
        self.hang = hang
        self.pulled = 0
        self.closed = False
        self.cancelled = False

    async def __aiter__(self):
        for line in self.lines:
            self.pulled += 1
            yield (line + "\n").encode()
        if self.hang:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled = True
                raise

    async def aclose(self) -> None:
        self.closed = True


class FakeEndpoint:
    """httpx.MockTransport handler serving a single streamed body."""

    def __init__(
        self,
        stream: LineStream | None = None,
        status_code: int = 200,
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        self.stream = stream
        self.status_code = status_code
        self.delay = delay
        self.error = error
        self.requests: list[httpx.Request] = []
        self.cancelled = False

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        if self.stream is None:
            return httpx.Response(self.status_code, json={"error": {"message": "nope"}})
        return httpx.Response(
            self.status_code,
            headers={"content-type": "text/event-stream"},
            stream=self.stream,
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class FakeResponse:
    """Just enough of httpx.Response for driving a StreamPump directly."""

    def __init__(self, lines: list[str], error_after: int | None = None):
        self.lines = lines
        self.error_after = error_after
        self.pulled = 0
        self.closed = False

    async def aiter_lines(self):
        for index, line in enumerate(self.lines):
            if self.error_after is not None and index >= self.error_after:
                raise httpx.ReadError("connection dropped")
            self.pulled += 1
            yield line

    async def aclose(self) -> None:
        self.closed = True
