"""Per-request context carried through every lookup stage.

A RequestContext holds the correlation (trace) id, the id of the span that
is currently open, and the request deadline expressed on the running event
loop's clock. Cancellation state is shared between a context and all of
its children, so cancelling the root interrupts whichever outbound call is
in flight.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Final
from uuid import uuid4

CORRELATION_HEADER: Final = "X-Correlation-ID"


def new_trace_id() -> str:
    """Generate a 32 hex character trace id."""
    return uuid4().hex


class _Cancellation:
    """Cancellation flag plus the timeout scopes it must interrupt."""

    __slots__ = ("cancelled", "timeouts")

    def __init__(self) -> None:
        self.cancelled = False
        self.timeouts: set[asyncio.Timeout] = set()


@dataclass(frozen=True)
class RequestContext:
    """Correlation id, deadline and cancellation for a single request.

    Attributes:
        trace_id: Correlation id shared by every span of the request.
        deadline: Absolute deadline in event loop time, or None.
        span_id: Id of the enclosing span, if any.
        sampled: Whether spans of this request are emitted.
    """

    trace_id: str = field(default_factory=new_trace_id)
    deadline: float | None = None
    span_id: str | None = None
    sampled: bool = True
    _cancellation: _Cancellation = field(
        default_factory=_Cancellation, repr=False, compare=False
    )

    @classmethod
    def with_timeout(
        cls,
        timeout: float | None,
        *,
        trace_id: str | None = None,
        sampled: bool = True,
    ) -> RequestContext:
        """Create a root context whose deadline is timeout seconds from now.

        Must be called from within a running event loop.
        """
        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout
        return cls(
            trace_id=trace_id or new_trace_id(),
            deadline=deadline,
            sampled=sampled,
        )

    def child(self, span_id: str) -> RequestContext:
        """Return a context for work nested under span_id."""
        return dataclasses.replace(self, span_id=span_id)

    @property
    def cancelled(self) -> bool:
        return self._cancellation.cancelled

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return self.deadline - asyncio.get_running_loop().time()

    def expired(self) -> bool:
        """True once the context is cancelled or its deadline has passed."""
        if self.cancelled:
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def cancel(self) -> None:
        """Cancel the request, interrupting any open scope."""
        self._cancellation.cancelled = True
        if not self._cancellation.timeouts:
            return
        now = asyncio.get_running_loop().time()
        for timeout in list(self._cancellation.timeouts):
            timeout.reschedule(now)

    @asynccontextmanager
    async def scope(self) -> AsyncIterator[None]:
        """Bound the enclosed awaits by this context.

        Raises:
            TimeoutError: If the context is already done on entry, or the
                deadline passes / cancel() is called inside the block.
        """
        if self.expired():
            raise TimeoutError("request context is already done")
        async with asyncio.timeout_at(self.deadline) as timeout:
            self._cancellation.timeouts.add(timeout)
            try:
                yield
            finally:
                self._cancellation.timeouts.discard(timeout)
