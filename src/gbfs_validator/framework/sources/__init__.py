"""
Feed retrieval.

Provides the fetch-outcome union, authentication strategies and the HTTP
source used by the validator.
"""

from gbfs_validator.framework.sources.auth import (
    AuthConfig,
    BasicAuth,
    BearerTokenAuth,
    HeadersAuth,
    NoAuth,
    OAuthClientCredentialsGrant,
    build_authenticator,
    parse_auth_config,
)
from gbfs_validator.framework.sources.http import HttpSource, build_feed_url
from gbfs_validator.framework.sources.protocol import Failed, FeedSource, FetchOutcome, Found, NotFound

__all__ = [
    # Outcomes
    "Found",
    "NotFound",
    "Failed",
    "FetchOutcome",
    "FeedSource",
    # Auth
    "AuthConfig",
    "NoAuth",
    "BasicAuth",
    "BearerTokenAuth",
    "OAuthClientCredentialsGrant",
    "HeadersAuth",
    "build_authenticator",
    "parse_auth_config",
    # HTTP
    "HttpSource",
    "build_feed_url",
]
