"""
GBFS feed semantics: version policy, normalization, structural and
cross-reference rules, and the report model.
"""

from gbfs_validator.feeds.coerce import Coercer, CoercionLog, CoercionResult
from gbfs_validator.feeds.crossref import cross_validate
from gbfs_validator.feeds.options import CoerceOptions, ValidationOptions
from gbfs_validator.feeds.registry import DOCUMENT_KINDS, DocumentKind, FieldGroup, document_kind
from gbfs_validator.feeds.report import (
    CoercionRecord,
    CoercionSummary,
    FileValidationResult,
    Severity,
    ValidationIssue,
    ValidationReport,
    ValidationSummary,
    VersionInfo,
)
from gbfs_validator.feeds.structure import validate_structure
from gbfs_validator.feeds.versions import (
    DeploymentFlags,
    DocumentDescriptor,
    is_manifest_required,
    is_v3_or_later,
    requirements,
    resolve_version,
    status_document_name,
    supported_versions,
)

__all__ = [
    # Versions
    "DeploymentFlags",
    "DocumentDescriptor",
    "is_manifest_required",
    "is_v3_or_later",
    "requirements",
    "resolve_version",
    "status_document_name",
    "supported_versions",
    # Normalization
    "CoerceOptions",
    "Coercer",
    "CoercionLog",
    "CoercionRecord",
    "CoercionResult",
    # Rules
    "DOCUMENT_KINDS",
    "DocumentKind",
    "FieldGroup",
    "document_kind",
    "validate_structure",
    "cross_validate",
    # Report
    "CoercionSummary",
    "FileValidationResult",
    "Severity",
    "ValidationIssue",
    "ValidationOptions",
    "ValidationReport",
    "ValidationSummary",
    "VersionInfo",
]
