"""Structural validation of a single feed document."""

from __future__ import annotations

from gbfs_validator.core.errors import ParseError
from gbfs_validator.feeds.registry import document_kind
from gbfs_validator.feeds.report import ValidationIssue
from gbfs_validator.feeds.rules import check_common, error, load_document


def validate_structure(document: bytes, document_type: str) -> list[ValidationIssue]:
    """
    Check ``document`` against the envelope rules and the rules of its type.

    Unparsable input yields one error and nothing else.
    """
    try:
        parsed = load_document(document)
    except ParseError as e:
        return [error(f"Invalid JSON: {e.message}")]

    issues = check_common(parsed)
    kind = document_kind(document_type)
    if kind.check is not None:
        issues.extend(kind.check(parsed))
    return issues
