"""Cancellation tokens that carry the reason they fired.

A run can be cut short by four different things: the caller, a per-probe
timeout, scheduler shutdown, or the scheduler's per-run timeout. Each layer
reacts differently depending on which one it was, so every token records a
``CancelReason`` and linked child tokens inherit it.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Iterable
from enum import Enum
from typing import Any, TypeVar

from ..domain.exceptions import OperationCancelledException

T = TypeVar("T")


class CancelReason(str, Enum):
    """Where a cancellation originated."""

    CALLER = "caller"
    PROBE_TIMEOUT = "probe_timeout"
    SHUTDOWN = "shutdown"
    RUN_TIMEOUT = "run_timeout"

    @property
    def is_timeout(self) -> bool:
        return self in (CancelReason.PROBE_TIMEOUT, CancelReason.RUN_TIMEOUT)


class CancellationToken:
    """A one-shot cancellation signal.

    Tokens form a tree through :meth:`link`: cancelling a parent cancels every
    linked child with the parent's reason, while cancelling a child leaves the
    parent untouched.
    """

    def __init__(self, parent: CancellationToken | None = None) -> None:
        self._event = asyncio.Event()
        self._reason: CancelReason | None = None
        self._children: set[CancellationToken] = set()
        self._timer: asyncio.TimerHandle | None = None
        self._parent = parent
        if parent is not None:
            if parent.cancelled:
                self.cancel(parent.reason)  # type: ignore[arg-type]
            else:
                parent._children.add(self)

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> CancelReason | None:
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.CALLER) -> bool:
        """Cancel the token. Returns False if it was already cancelled."""
        if self._reason is not None:
            return False
        self._reason = reason
        self._event.set()
        self._clear_timer()
        children, self._children = self._children, set()
        for child in children:
            child.cancel(reason)
        return True

    def cancel_after(self, delay: float, reason: CancelReason) -> None:
        """Cancel the token with ``reason`` once ``delay`` seconds have passed."""
        if self.cancelled:
            return
        self._clear_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self.cancel, reason)

    def link(self) -> CancellationToken:
        """Create a child token that is cancelled whenever this one is."""
        return CancellationToken(parent=self)

    def dispose(self) -> None:
        """Disarm any pending timer and detach from the parent."""
        self._clear_timer()
        if self._parent is not None:
            self._parent._children.discard(self)
            self._parent = None

    def raise_if_cancelled(self) -> None:
        if self._reason is not None:
            raise OperationCancelledException(self._reason)

    async def wait(self) -> CancelReason:
        """Block until the token is cancelled and return the reason."""
        await self._event.wait()
        return self._reason  # type: ignore[return-value]

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` but give up as soon as this token is cancelled.

        The awaitable runs as its own task. If the token fires first, that task
        is cancelled and drained and ``OperationCancelledException`` is raised
        with the token's reason. Cancelling the calling task cancels the inner
        task as well and re-raises ``CancelledError``.
        """
        if self._reason is not None:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledException(self._reason)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            await asyncio.wait({task, waiter})
            raise

        if task.done():
            waiter.cancel()
            return task.result()

        task.cancel()
        await asyncio.wait({task})
        raise OperationCancelledException(self._reason)  # type: ignore[arg-type]

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __enter__(self) -> CancellationToken:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = self._reason.value if self._reason else "active"
        return f"<CancellationToken {state}>"


async def join_all(tasks: Iterable[asyncio.Task[Any]]) -> None:
    """Wait for every task to finish without cancelling the others on failure.

    If the waiting task is cancelled, the tasks are cancelled and drained
    before the cancellation is re-raised, so nothing outlives the caller.
    """
    pending = set(tasks)
    if not pending:
        return
    try:
        await asyncio.wait(pending)
    except asyncio.CancelledError:
        for task in pending:
            task.cancel()
        await asyncio.wait(pending)
        raise
