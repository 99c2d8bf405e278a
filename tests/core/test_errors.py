"""Tests for gbfs_validator.core.errors."""

from __future__ import annotations

from gbfs_validator.core.errors import (
    AuthenticationError,
    ConfigError,
    DeadlineExceededError,
    ErrorCategory,
    FetchTimeoutError,
    HttpStatusError,
    NetworkError,
    ParseError,
    SourceError,
)


class TestCategories:
    def test_defaults_follow_hierarchy(self):
        assert SourceError("x").category is ErrorCategory.SOURCE
        assert NetworkError("x").category is ErrorCategory.NETWORK
        assert FetchTimeoutError("x").category is ErrorCategory.NETWORK
        assert ParseError("x").category is ErrorCategory.PARSE
        assert AuthenticationError("x").category is ErrorCategory.AUTH
        assert ConfigError("x").category is ErrorCategory.CONFIG

    def test_category_override(self):
        assert SourceError("x", category=ErrorCategory.INTERNAL).category is ErrorCategory.INTERNAL


class TestContext:
    def test_with_context_known_and_extra_fields(self):
        error = NetworkError("refused").with_context(document="gbfs", url="https://x/gbfs.json", attempt=1)

        assert error.context.document == "gbfs"
        assert error.context.url == "https://x/gbfs.json"
        assert error.context.extra == {"attempt": 1}

    def test_http_status_recorded(self):
        error = HttpStatusError(503)
        assert error.message == "unexpected status code: 503"
        assert error.status_code == 503
        assert error.context.http_status == 503

    def test_deadline_default_message(self):
        assert DeadlineExceededError().message == "run deadline exceeded"


class TestToDict:
    def test_log_fields(self):
        cause = OSError("connection reset")
        error = NetworkError("request failed", cause=cause).with_context(url="https://x/a.json")

        assert error.to_dict() == {
            "error_type": "NetworkError",
            "error_message": "request failed",
            "category": "NETWORK",
            "url": "https://x/a.json",
            "cause": "OSError('connection reset')",
        }
        assert error.__cause__ is cause

    def test_empty_context_omitted(self):
        assert set(ConfigError("bad").to_dict()) == {"error_type", "error_message", "category"}
