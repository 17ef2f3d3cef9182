"""Span emission for request tracing.

Spans are opened around each lookup stage and handed to an emitter when
they close, on success and on every error path.

Critical invariants:
- Zero semantic difference when tracing is off
- Emitters never raise into the request path
- Never emits by default
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from .context import RequestContext
from .trace import Span, SpanStatus

_LOGGER = logging.getLogger(__name__)


@dataclass
class TraceConfig:
    """Configuration for span emission.

    Attributes:
        enabled: Master switch for tracing (default: False)
        sample_rate: Fraction of requests to trace (0.0-1.0, default: 1.0)
    """

    enabled: bool = False
    sample_rate: float = 1.0

    def should_trace(self) -> bool:
        """Determine if a new request should be traced."""
        if not self.enabled:
            return False
        if self.sample_rate >= 1.0:
            return True
        # Use secrets for unbiased sampling (not crypto, but silences bandit)
        return secrets.randbelow(1000) < int(self.sample_rate * 1000)


class SpanEmitter(ABC):
    """Abstract interface for span emission."""

    @abstractmethod
    def emit(self, span: Span) -> None:
        """Emit a finished span. Must be non-blocking."""


class NullEmitter(SpanEmitter):
    """No-op emitter for when tracing is disabled."""

    def emit(self, span: Span) -> None:
        """Discard the span."""


class BufferEmitter(SpanEmitter):
    """In-memory buffer for testing and dev tools.

    Stores spans in a bounded buffer (FIFO eviction).
    """

    def __init__(self, max_size: int = 1000) -> None:
        self._buffer: list[Span] = []
        self._max_size = max_size

    def emit(self, span: Span) -> None:
        """Add span to buffer, evicting oldest if full."""
        if len(self._buffer) >= self._max_size:
            self._buffer.pop(0)
        self._buffer.append(span)

    @property
    def spans(self) -> list[Span]:
        """Get all buffered spans."""
        return list(self._buffer)

    def for_trace(self, trace_id: str) -> list[Span]:
        """Get the buffered spans of one request."""
        return [span for span in self._buffer if span.trace_id == trace_id]

    def clear(self) -> None:
        """Clear the buffer."""
        self._buffer.clear()


class CallbackEmitter(SpanEmitter):
    """Emitter that calls a callback function."""

    def __init__(self, callback: Callable[[Span], None]) -> None:
        self._callback = callback

    def emit(self, span: Span) -> None:
        """Call the callback with the span."""
        self._callback(span)


class LoggingEmitter(SpanEmitter):
    """Write finished spans to a logger as JSON lines."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG) -> None:
        self._logger = logger or _LOGGER
        self._level = level

    def emit(self, span: Span) -> None:
        if self._logger.isEnabledFor(self._level):
            self._logger.log(self._level, "span %s", json.dumps(span.to_dict(), ensure_ascii=False))


class Tracer:
    """Open spans around units of work and emit them when they close.

    Usage:
        tracer = Tracer(TraceConfig(enabled=True), BufferEmitter())
        with tracer.span(ctx, "resolve_location", zipcode="01001000") as span:
            location = await resolver.resolve(ctx.child(span.span_id), zipcode)
            span.set_attribute("city", location.name)
    """

    def __init__(
        self,
        config: TraceConfig | None = None,
        emitter: SpanEmitter | None = None,
    ) -> None:
        self.config = config or TraceConfig()
        self._emitter = emitter or NullEmitter()

    def new_context(
        self,
        timeout: float | None,
        *,
        trace_id: str | None = None,
    ) -> RequestContext:
        """Create a root request context, deciding whether it is sampled."""
        return RequestContext.with_timeout(
            timeout,
            trace_id=trace_id,
            sampled=self.config.should_trace(),
        )

    @contextmanager
    def span(self, ctx: RequestContext, name: str, **attributes: Any) -> Iterator[Span]:
        """Open a span under ctx; it is closed and emitted on every exit path."""
        span = Span.start(ctx.trace_id, name, parent_span_id=ctx.span_id)
        span.attributes.update(attributes)
        start_ns = time.perf_counter_ns()
        try:
            yield span
        except BaseException as err:
            span.record_error(err)
            raise
        else:
            if span.status is SpanStatus.UNSET:
                span.status = SpanStatus.OK
        finally:
            span.duration_us = (time.perf_counter_ns() - start_ns) // 1000
            if self.config.enabled and ctx.sampled:
                self._emit(span)

    def _emit(self, span: Span) -> None:
        try:
            self._emitter.emit(span)
        except Exception:  # noqa: BLE001
            _LOGGER.exception("[%s] Span emitter failed for %s", span.trace_id, span.name)
