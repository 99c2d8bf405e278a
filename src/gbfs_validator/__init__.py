"""
gbfs-validator: validate multi-file, multi-version GBFS feeds.

Usage:
    from gbfs_validator import FeedValidator, ValidationOptions

    report = FeedValidator(ValidationOptions(docked=True)).validate_sync(
        "https://example.com/gbfs/gbfs.json"
    )
    print(report.to_json())
"""

from gbfs_validator._version import __version__
from gbfs_validator.feeds.options import CoerceOptions, ValidationOptions
from gbfs_validator.feeds.report import ValidationReport
from gbfs_validator.validator import FeedValidator

__all__ = [
    "CoerceOptions",
    "FeedValidator",
    "ValidationOptions",
    "ValidationReport",
    "__version__",
]
