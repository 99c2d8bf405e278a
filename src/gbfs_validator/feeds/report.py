"""
Validation report model.

Everything here is immutable. Later passes (cross-reference validation)
produce updated copies through :meth:`FileValidationResult.with_issues`
instead of mutating results in place.

Serialized names are camelCase and stable::

    {"summary": {"validatorVersion": ..., "version": {"detected", "validated"},
                 "hasErrors", "errorsCount", "versionUnimplemented",
                 "lenientMode", "coercionSummary"},
     "files": [{"file", "name", "url", "required", "exists", "hasErrors",
                "errorsCount", "errors", "coercionCount"}]}

``errors`` is left out when a file has no issues, and null fields are
dropped.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_serializer
from pydantic.alias_generators import to_camel

from gbfs_validator._version import __version__


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class _ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ValidationIssue(_ReportModel):
    """One finding; ``instance_path`` is a JSON pointer such as ``/data/stations/3/lat``."""

    severity: Severity = Severity.ERROR
    message: str
    instance_path: str | None = None


@dataclass(frozen=True)
class CoercionRecord:
    """A single normalization applied by lenient mode."""

    path: str
    field: str
    from_type: str
    to_type: str
    from_value: Any
    to_value: Any


class CoercionSummary(_ReportModel):
    total_coercions: int = 0
    by_field: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_records(cls, records: Iterable[CoercionRecord]) -> CoercionSummary:
        records = list(records)
        return cls(
            total_coercions=len(records),
            by_field=dict(Counter(r.field for r in records)),
            by_type=dict(Counter(f"{r.from_type}->{r.to_type}" for r in records)),
        )


class FileValidationResult(_ReportModel):
    """Outcome of validating one document of the feed."""

    name: str
    url: str | None = None
    required: bool = False
    exists: bool = False
    issues: tuple[ValidationIssue, ...] = Field(default=(), serialization_alias="errors")
    coercions: tuple[CoercionRecord, ...] = Field(default=(), exclude=True, repr=False)
    body: bytes | None = Field(default=None, exclude=True, repr=False)

    @computed_field(alias="file")
    @property
    def file(self) -> str:
        return f"{self.name}.json"

    @computed_field(alias="hasErrors")
    @property
    def has_errors(self) -> bool:
        return self.errors_count > 0

    @computed_field(alias="errorsCount")
    @property
    def errors_count(self) -> int:
        return len(self.issues)

    @computed_field(alias="coercionCount")
    @property
    def coercion_count(self) -> int:
        return len(self.coercions)

    @model_serializer(mode="wrap")
    def _drop_empty_issues(self, handler) -> dict[str, Any]:
        data = handler(self)
        for key in ("errors", "issues"):
            if key in data and not data[key]:
                del data[key]
        return data

    def with_issues(self, *issues: ValidationIssue, **update: Any) -> FileValidationResult:
        """Copy with ``issues`` appended and any other fields replaced."""
        return self.model_copy(update={"issues": self.issues + tuple(issues), **update})


class VersionInfo(_ReportModel):
    detected: str | None = None
    validated: str | None = None


class ValidationSummary(_ReportModel):
    validator_version: str = __version__
    version: VersionInfo = Field(default_factory=VersionInfo)
    has_errors: bool = False
    errors_count: int = 0
    version_unimplemented: bool = False
    lenient_mode: bool = False
    coercion_summary: CoercionSummary | None = None


class ValidationReport(_ReportModel):
    summary: ValidationSummary
    files: tuple[FileValidationResult, ...] = ()

    @property
    def has_errors(self) -> bool:
        return self.summary.has_errors

    def get_file(self, name: str) -> FileValidationResult | None:
        """Result for document ``name`` (without ``.json``), if present."""
        return next((f for f in self.files if f.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


__all__ = [
    "CoercionRecord",
    "CoercionSummary",
    "FileValidationResult",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
    "ValidationSummary",
    "VersionInfo",
]
