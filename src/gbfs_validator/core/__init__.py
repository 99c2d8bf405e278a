"""Core primitives shared by every layer: errors and settings."""

from gbfs_validator.core.errors import (
    AuthenticationError,
    AuthError,
    ConfigError,
    DeadlineExceededError,
    ErrorCategory,
    ErrorContext,
    FetchTimeoutError,
    HttpStatusError,
    NetworkError,
    ParseError,
    SourceError,
    ValidatorError,
)
from gbfs_validator.core.settings import ValidatorSettings, get_settings

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
    "ValidatorSettings",
    "get_settings",
]
