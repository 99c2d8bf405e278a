"""
Shared pytest fixtures for gbfs-validator tests.

Builders and the mock server live in :mod:`tests._support.feeds`.

Usage:
    def test_something(valid_feed):
        validator = FeedValidator(transport=valid_feed.transport())
"""

from __future__ import annotations

import pytest

from gbfs_validator.core.settings import ValidatorSettings
from gbfs_validator.framework.logging import clear_context
from tests._support.feeds import VALID_V23_DOCUMENTS, FeedServer


@pytest.fixture
def feed_server() -> FeedServer:
    return FeedServer()


@pytest.fixture
def valid_feed(feed_server: FeedServer) -> FeedServer:
    """A complete, valid v2.3 feed (docked and free-floating)."""
    return feed_server.publish(VALID_V23_DOCUMENTS)


@pytest.fixture
def settings() -> ValidatorSettings:
    return ValidatorSettings(request_timeout=5.0, run_timeout=10.0, max_concurrency=4, log_level="WARNING")


@pytest.fixture(autouse=True)
def clean_log_context():
    """Reset the logging context around each test."""
    clear_context()
    yield
    clear_context()
