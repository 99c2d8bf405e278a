"""
Feed source protocol and fetch outcomes.

A feed source turns a URL into exactly one of three outcomes:

- :class:`Found` - HTTP 200 with the full body
- :class:`NotFound` - HTTP 404, a successful *negative* answer
- :class:`Failed` - anything else (transport, status, auth), carrying a
  typed :class:`~gbfs_validator.core.errors.ValidatorError`

Whether a ``NotFound`` is a problem depends on the document's requirement
level and is decided by the orchestrator, never by the source.

Usage:
    outcome = await source.fetch("https://example.com/gbfs.json")
    match outcome:
        case Found(body=body):
            ...
        case NotFound():
            ...
        case Failed(error=error):
            log.warning("fetch.failed", **error.to_dict())
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from gbfs_validator.core.errors import ValidatorError


@dataclass(frozen=True)
class Found:
    """Document retrieved."""

    body: bytes
    status_code: int = 200

    @property
    def exists(self) -> bool:
        return True


@dataclass(frozen=True)
class NotFound:
    """Server answered 404."""

    status_code: int = 404

    @property
    def exists(self) -> bool:
        return False


@dataclass(frozen=True)
class Failed:
    """Retrieval failed; ``error`` says why."""

    error: ValidatorError

    @property
    def exists(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return self.error.message


FetchOutcome = Found | NotFound | Failed


@runtime_checkable
class FeedSource(Protocol):
    """
    Protocol for anything that can retrieve feed documents.

    Implementations must not convert ``asyncio.CancelledError`` into an
    outcome; the orchestrator relies on cancellation to enforce the run
    deadline.
    """

    async def fetch(self, url: str) -> FetchOutcome:
        """Retrieve ``url`` and classify the result."""
        ...
