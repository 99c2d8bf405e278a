"""
Run-scoped logging context.

Every entry logged during a validation run carries the run id and the
manifest URL. The orchestrator adds ``version`` once the manifest has been
read, document workers add ``document``, and :func:`log_step` adds the
step name and span ids.

Values live in a ``ContextVar``. An asyncio task sees the context as it was
when the task was created, and whatever the task binds stays local to it.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass, fields, replace
from typing import Any

import structlog


@dataclass(frozen=True)
class LogContext:
    """Fields merged into every log entry; ``None`` fields are left out."""

    run_id: str | None = None
    manifest_url: str | None = None
    version: str | None = None
    document: str | None = None

    # Set by log_step
    step: str | None = None
    span_id: str | None = None
    parent_span_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **values: Any) -> LogContext:
        """Copy with ``values`` applied. Unknown keys and ``None`` values are ignored."""
        known = {k: v for k, v in values.items() if k in _FIELD_NAMES and v is not None}
        return replace(self, **known)


_FIELD_NAMES = frozenset(f.name for f in fields(LogContext))
_EMPTY = LogContext()
_current: ContextVar[LogContext] = ContextVar("gbfs_validator_log_context", default=_EMPTY)


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


def get_context() -> LogContext:
    return _current.get()


def set_context(**values: Any) -> LogContext:
    """Replace the whole context with ``values``."""
    ctx = _EMPTY.merge(**values)
    _current.set(ctx)
    return ctx


def bind_context(**values: Any) -> LogContext:
    """Add ``values`` to the current context until it is reset or the task ends."""
    ctx = get_context().merge(**values)
    _current.set(ctx)
    return ctx


def clear_context() -> None:
    _current.set(_EMPTY)


@contextmanager
def scoped_context(**values: Any) -> Iterator[LogContext]:
    """
    Bind ``values`` for the duration of the block.

    The previous context is restored on exit, even when the block raises.
    Enter and exit in the same task.

    Usage:
        with scoped_context(run_id=new_run_id(), manifest_url=url):
            await run()
    """
    token = _current.set(get_context().merge(**values))
    try:
        yield _current.get()
    finally:
        _current.reset(token)


def merge_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor: add context fields the event does not set itself."""
    for key, value in get_context().to_dict().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)
