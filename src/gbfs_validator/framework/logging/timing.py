"""
Step timing for the phases of a validation run.

``log_step`` wraps one phase (manifest, documents, crossref) and emits::

    DEBUG validate.documents.start  span_id=a1b2c3d4 documents=8
    INFO  validate.documents.end    span_id=a1b2c3d4 duration_ms=412.7 documents=8

or ``validate.documents.error`` with the exception type and message when
the block raises. While the block runs, its step name and span id are in
the log context, so nested steps and worker tasks started inside it record
``parent_span_id``.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from gbfs_validator.framework.logging.context import get_context, get_logger, scoped_context


def new_span_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class StepTimer:
    """Wall-clock duration and extra metrics of one ``log_step`` block."""

    step: str
    parent_span_id: str | None = None
    span_id: str = field(default_factory=new_span_id)
    metrics: dict[str, Any] = field(default_factory=dict)
    error: BaseException | None = None
    _started: float = field(default_factory=time.perf_counter, repr=False)
    _stopped: float | None = field(default=None, repr=False)

    @property
    def finished(self) -> bool:
        return self._stopped is not None

    @property
    def duration_ms(self) -> float:
        end = self._stopped if self._stopped is not None else time.perf_counter()
        return (end - self._started) * 1000

    def add_metric(self, key: str, value: Any) -> None:
        self.metrics[key] = value

    def stop(self, error: BaseException | None = None) -> None:
        if self._stopped is None:
            self._stopped = time.perf_counter()
        if error is not None:
            self.error = error

    def fields(self) -> dict[str, Any]:
        """Event fields for the ``.end`` or ``.error`` entry."""
        out: dict[str, Any] = {"span_id": self.span_id, "duration_ms": round(self.duration_ms, 2)}
        if self.parent_span_id:
            out["parent_span_id"] = self.parent_span_id
        out.update(self.metrics)
        if self.error is not None:
            out["status"] = "error"
            out["error_type"] = type(self.error).__name__
            out["error_message"] = str(self.error)
        return out


@contextmanager
def log_step(event: str, *, level: str = "info", **metrics: Any) -> Iterator[StepTimer]:
    """
    Time the block and log ``{event}.start`` / ``{event}.end``.

    ``level`` applies to the end event; the start event is always DEBUG.
    Exceptions are logged as ``{event}.error`` and re-raised.
    """
    log = get_logger("gbfs_validator.timing")
    timer = StepTimer(step=event, parent_span_id=get_context().span_id, metrics=dict(metrics))

    with scoped_context(step=event, span_id=timer.span_id, parent_span_id=timer.parent_span_id):
        log.debug(f"{event}.start", span_id=timer.span_id, **timer.metrics)
        try:
            yield timer
        except Exception as e:
            timer.stop(error=e)
            log.error(f"{event}.error", **timer.fields())
            raise
        finally:
            timer.stop()

    getattr(log, level)(f"{event}.end", **timer.fields())
