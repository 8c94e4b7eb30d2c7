"""
Lifetime token for one network operation.

A CancellableContext owns the tasks working on a single request (the
request issuer and, later, the stream pump). Exactly two things may
cancel it: its total-lifetime deadline and an explicit cancel() call.
Cancelling is synchronous and never waits for the tasks to finish; each
task releases the connection it holds in its own cleanup path.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class CancellableContext:
    def __init__(self, name: str = "session"):
        self.name = name
        self.cancel_reason: str | None = None
        self._tasks: set[asyncio.Task] = set()
        self._deadline: asyncio.TimerHandle | None = None
        self.deadline_seconds: float | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_reason is not None

    def start_deadline(self, seconds: float) -> None:
        """Arm the total-lifetime deadline. Only one deadline may be armed."""
        if self._deadline is not None:
            raise RuntimeError(f"Deadline already armed for {self.name}")
        loop = asyncio.get_running_loop()
        self.deadline_seconds = seconds
        self._deadline = loop.call_later(seconds, self.cancel, "deadline")

    def attach(self, task: asyncio.Task) -> asyncio.Task:
        """Tie a task's lifetime to this context."""
        if self.cancelled:
            task.cancel()
            return task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel(self, reason: str = "cancelled") -> None:
        """Cancel every attached task. Idempotent; the first reason wins."""
        if self.cancelled:
            return
        self.cancel_reason = reason
        if self._deadline is not None:
            self._deadline.cancel()
        # A task cancelling its own context is already on its way out
        current = asyncio.current_task()
        pending = [task for task in self._tasks if not task.done() and task is not current]
        if pending:
            logger.debug("Cancelling %d task(s) of %s (%s)", len(pending), self.name, reason)
        for task in pending:
            task.cancel()
