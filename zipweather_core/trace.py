"""Span data classes for request tracing."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4


def new_span_id() -> str:
    """Generate a 16 hex character span id."""
    return uuid4().hex[:16]


class SpanStatus(Enum):
    """Outcome of the work covered by a span."""

    UNSET = "unset"
    OK = "ok"
    ERROR = "error"


@dataclass
class Span:
    """A timed unit of work within a request.

    Attributes:
        trace_id: Correlation id of the request.
        span_id: Id of this span.
        name: Operation name (e.g., "resolve_location").
        parent_span_id: Id of the enclosing span, None for a root span.
        started_at: Wall clock start time (UTC).
        duration_us: Duration in microseconds, set when the span ends.
        status: Outcome of the span.
        attributes: Free-form key/value annotations.
        error: Exception summary when status is ERROR.
    """

    trace_id: str
    span_id: str
    name: str
    parent_span_id: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_us: int = 0
    status: SpanStatus = SpanStatus.UNSET
    attributes: dict[str, Any] = field(default_factory=lambda: {})
    error: str | None = None

    @classmethod
    def start(cls, trace_id: str, name: str, parent_span_id: str | None = None) -> Span:
        """Open a new span with an auto-generated id."""
        return cls(
            trace_id=trace_id,
            span_id=new_span_id(),
            name=name,
            parent_span_id=parent_span_id,
        )

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def record_error(self, err: BaseException) -> None:
        self.status = SpanStatus.ERROR
        self.error = f"{type(err).__name__}: {err}"

    def to_dict(self) -> dict[str, Any]:
        """Convert span to dictionary for JSON serialization."""
        result = _to_dict(self)
        if isinstance(result, dict):
            return dict(result)  # pyright: ignore[reportUnknownArgumentType]
        return {}


def _to_dict(obj: object) -> str | list[object] | dict[str, object] | object:
    """Recursively convert dataclasses to dicts, dropping None values."""
    if isinstance(obj, Enum):
        return str(obj.value)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, list):
        return [_to_dict(item) for item in obj]  # pyright: ignore[reportUnknownArgumentType,reportUnknownVariableType]
    if isinstance(obj, dict):
        return {str(k): _to_dict(v) for k, v in obj.items()}  # pyright: ignore[reportUnknownVariableType]
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        result: dict[str, object] = {}
        for f in dataclasses.fields(obj):
            value = getattr(obj, f.name)
            if value is not None:
                result[f.name] = _to_dict(value)
        return result
    return obj
