"""
Error types for the GBFS validator.

Most of these are values rather than control flow: the retriever wraps a
transport problem in a typed error and returns it inside a ``Failed``
fetch outcome, and the orchestrator turns it into an issue on the document
it belongs to. Only configuration errors are raised to the caller.

Nothing is retried, so the hierarchy has no retry flags. Each error carries
a category, the document and URL involved, and the exception it wraps.

Architecture:
    ::

        ValidatorError (category, context, cause)
        ├── SourceError ─────────────── SOURCE
        │   ├── NetworkError ─────────── NETWORK
        │   │   └── FetchTimeoutError
        │   ├── HttpStatusError
        │   ├── DeadlineExceededError
        │   └── ParseError ───────────── PARSE
        ├── AuthError ───────────────── AUTH
        │   └── AuthenticationError
        └── ConfigError ─────────────── CONFIG

Usage:
    error = HttpStatusError(503).with_context(document="station_status", url=url)
    log.debug("fetch.failed", **error.to_dict())
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    NETWORK = "NETWORK"
    SOURCE = "SOURCE"
    PARSE = "PARSE"
    AUTH = "AUTH"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Where an error happened: feed document, URL, HTTP status, and extras."""

    document: str | None = None
    url: str | None = None
    http_status: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        known = {k: v for k, v in asdict(self).items() if k != "extra" and v is not None}
        return {**known, **self.extra}


class ValidatorError(Exception):
    """Root of every error raised or returned by the validator."""

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **values: Any) -> ValidatorError:
        """Fill in context fields; names ErrorContext does not have go to ``extra``."""
        for key, value in values.items():
            if key in ("document", "url", "http_status"):
                setattr(self.context, key, value)
            else:
                self.context.extra[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Log fields for this error."""
        out: dict[str, Any] = {
            "error_type": type(self).__name__,
            "error_message": self.message,
            "category": self.category.value,
            **self.context.to_dict(),
        }
        if self.cause is not None:
            out["cause"] = repr(self.cause)
        return out


# =============================================================================
# SOURCE
# =============================================================================


class SourceError(ValidatorError):
    """A feed document could not be retrieved or read."""

    default_category = ErrorCategory.SOURCE


class NetworkError(SourceError):
    """DNS, connection, TLS or body-read failure."""

    default_category = ErrorCategory.NETWORK


class FetchTimeoutError(NetworkError):
    """One request ran past the per-request timeout."""


class DeadlineExceededError(SourceError):
    """The run deadline expired while the document was still being fetched."""

    def __init__(self, message: str = "run deadline exceeded", **kwargs: Any):
        super().__init__(message, **kwargs)


class HttpStatusError(SourceError):
    """The server answered with a status other than 200 or 404."""

    def __init__(self, status_code: int, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"unexpected status code: {status_code}", **kwargs)
        self.status_code = status_code
        self.context.http_status = status_code


class ParseError(SourceError):
    """The body is not a JSON object."""

    default_category = ErrorCategory.PARSE


# =============================================================================
# AUTH / CONFIG
# =============================================================================


class AuthError(ValidatorError):
    """Credentials could not be applied to a request."""

    default_category = ErrorCategory.AUTH


class AuthenticationError(AuthError):
    """The token exchange failed or returned no usable token."""


class ConfigError(ValidatorError):
    """Invalid options or authentication configuration."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "AuthError",
    "AuthenticationError",
    "ConfigError",
    "DeadlineExceededError",
    "ErrorCategory",
    "ErrorContext",
    "FetchTimeoutError",
    "HttpStatusError",
    "NetworkError",
    "ParseError",
    "SourceError",
    "ValidatorError",
]
