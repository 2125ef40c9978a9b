"""Per-call execution context: explicit cancellation token plus optional deadline."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

from embedding_adapter.types import EmbeddingCancelledError

T = TypeVar("T")

# Upper bound on waiting for cancelled work to unwind before the call returns.
CANCEL_GRACE_SECONDS = 1.0


class CallContext:
    """Cancellation and deadline signal threaded through an embedding call.

    A context can be shared by several concurrent calls. Cancelling it, or
    letting its deadline pass, fails every call that is awaiting through it.
    The first cancellation reason wins; later ``cancel`` calls are no-ops.

    The context holds no event-loop state between calls, so it may be reused
    from successive ``asyncio.run`` invocations. It is not thread-safe:
    call ``cancel`` from the thread running the event loop.
    """

    def __init__(self, deadline: float | None = None) -> None:
        """Initialize the context.

        Args:
            deadline: Absolute ``time.monotonic()`` value after which calls
                fail, or None for no deadline.
        """
        self._deadline = deadline
        self._cancelled = False
        self._reason: str | None = None
        self._waiters: set[asyncio.Future[None]] = set()

    @classmethod
    def with_timeout(cls, seconds: float) -> CallContext:
        """Create a context whose deadline is ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def reason(self) -> str | None:
        return self._reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline, clamped at zero; None if unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self, reason: str | None = None) -> None:
        if self._cancelled:
            return
        self._reason = reason or "cancelled by caller"
        self._cancelled = True
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(None)

    def raise_if_done(self) -> None:
        """Raise EmbeddingCancelledError if the context is cancelled or expired."""
        if self.cancelled:
            raise EmbeddingCancelledError(f"Embedding call cancelled: {self._reason}")
        if self.expired:
            raise EmbeddingCancelledError("Embedding call deadline exceeded")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the context fires first.

        When the context is cancelled or its deadline passes before the work
        finishes, the work is cancelled (and with it every sub-request it
        spawned) and EmbeddingCancelledError is raised once the work has
        unwound, or after CANCEL_GRACE_SECONDS at most. Cancellation of the
        caller's own task cancels the work and propagates unchanged.

        Raises:
            EmbeddingCancelledError: If the context fired before completion.
        """
        work = asyncio.ensure_future(awaitable)
        if self.done:
            work.cancel()
            self.raise_if_done()

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.add(waiter)
        done: set[asyncio.Future] = set()
        try:
            done, _ = await asyncio.wait(
                {work, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            self._waiters.discard(waiter)
            waiter.cancel()
            if not work.done():
                work.cancel()
                work.add_done_callback(_consume_outcome)
                await asyncio.wait({work}, timeout=CANCEL_GRACE_SECONDS)

        if work in done and not work.cancelled():
            return work.result()
        if self.cancelled:
            self.raise_if_done()
        if not done:
            raise EmbeddingCancelledError("Embedding call deadline exceeded")
        # The work was cancelled from inside without the context firing.
        raise asyncio.CancelledError()


def _consume_outcome(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()
