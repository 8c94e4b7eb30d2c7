import asyncio
import logging

import httpx

from gptstream.domain.exceptions import RequestTimeoutError, TransportError
from gptstream.streaming.cancellation import CancellableContext

logger = logging.getLogger(__name__)

# Strong references to fire-and-forget cleanups
_cleanups: set[asyncio.Task] = set()


class DeadlineRacer:
    """Races a pending request against the header deadline.

    Exactly one outcome is produced: the response, the request's own
    error, or RequestTimeoutError. On timeout the request is cancelled
    and never waited for again.
    """

    def __init__(self, timeout: float):
        self.timeout = timeout

    async def race(
        self, pending: asyncio.Task, context: CancellableContext, timeout: float | None = None
    ) -> httpx.Response:
        """Wait for the response; timeout overrides the default header window."""
        if timeout is None:
            timeout = self.timeout
        try:
            done, _ = await asyncio.wait({pending}, timeout=timeout)
        except BaseException:
            context.cancel("abandoned")
            _discard(pending)
            raise

        if not done:
            logger.warning("No response within %.1fs, cancelling request", timeout)
            context.cancel("timeout")
            raise RequestTimeoutError(f"No response within {timeout}s", timeout=timeout)

        if pending.cancelled() and context.cancel_reason == "deadline":
            raise RequestTimeoutError(
                f"Session deadline of {context.deadline_seconds}s passed before a response arrived",
                timeout=context.deadline_seconds,
            )

        if pending.cancelled():
            raise TransportError(
                "Request was cancelled before a response arrived",
                details={"reason": context.cancel_reason},
            )

        # Re-raises the TransportError of a failed request
        return pending.result()


def _discard(pending: asyncio.Task) -> None:
    """Release a response that arrived after nobody wants it."""
    if not pending.done() or pending.cancelled() or pending.exception() is not None:
        return
    cleanup = asyncio.get_running_loop().create_task(pending.result().aclose())
    _cleanups.add(cleanup)
    cleanup.add_done_callback(_cleanups.discard)
