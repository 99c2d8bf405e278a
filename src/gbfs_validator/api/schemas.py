"""
Request and response envelopes for the HTTP API.

Report payloads reuse :class:`~gbfs_validator.feeds.report.ValidationReport`
serialization; this module only adds the request body, the grouped summary
view and the RFC 7807 error envelope.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gbfs_validator.feeds.options import ValidationOptions
from gbfs_validator.feeds.report import FileValidationResult, Severity


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ValidateRequest(_CamelModel):
    """Body of ``POST /api/validator`` and ``POST /api/validator-summary``."""

    url: str = Field(default="", description="Manifest (gbfs.json) or feed base URL")
    options: ValidationOptions | None = None


class GroupedIssue(_CamelModel):
    message: str
    severity: Severity
    count: int


class FileSummary(_CamelModel):
    """Per-file view with identical issues collapsed into counts."""

    required: bool
    exists: bool
    file: str
    has_errors: bool
    errors_count: int
    grouped_errors: list[GroupedIssue] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: FileValidationResult) -> FileSummary:
        groups: dict[tuple[Severity, str], int] = {}
        for issue in result.issues:
            key = (issue.severity, issue.message)
            groups[key] = groups.get(key, 0) + 1
        return cls(
            required=result.required,
            exists=result.exists,
            file=result.file,
            has_errors=result.has_errors,
            errors_count=result.errors_count,
            grouped_errors=[
                GroupedIssue(message=message, severity=severity, count=count)
                for (severity, message), count in groups.items()
            ],
        )


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Used as the error envelope for all non-2xx responses.

    Example:
        {
            "type": "about:blank",
            "title": "URL is required",
            "status": 400,
            "detail": "",
            "instance": "http://testserver/api/validator"
        }
    """

    type: str = Field(default="about:blank", description="Error type URI (usually 'about:blank')")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code (e.g., 400, 500)")
    detail: str = Field(default="", description="Human-readable explanation of the error")
    instance: str = Field(default="", description="URI of the failing request")
    errors: list[dict[str, Any]] = Field(default_factory=list)
