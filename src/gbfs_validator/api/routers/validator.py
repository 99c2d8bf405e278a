"""
Validator router: run a feed validation over HTTP.

Endpoints:
    POST /validator          Full validation report
    POST /validator-summary  Summary plus issues grouped per file
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from gbfs_validator.api.deps import Settings, Transport
from gbfs_validator.api.errors import problem_response
from gbfs_validator.api.schemas import FileSummary, ValidateRequest
from gbfs_validator.feeds.report import ValidationReport
from gbfs_validator.framework.logging import get_logger
from gbfs_validator.validator import FeedValidator

logger = get_logger(__name__)

router = APIRouter()


async def _run(body: ValidateRequest, settings: Settings, transport: Transport) -> ValidationReport:
    validator = FeedValidator(body.options, settings=settings, transport=transport)
    report = await validator.validate(body.url)
    logger.info("api.validated", url=body.url, errors_count=report.summary.errors_count)
    return report


def _missing_url(request: Request) -> JSONResponse:
    return problem_response(status=400, title="URL is required", instance=str(request.url))


@router.post("/validator")
async def validate_feed(
    body: ValidateRequest,
    request: Request,
    settings: Settings,
    transport: Transport,
) -> Any:
    """Validate the feed at ``url`` and return the full report."""
    if not body.url.strip():
        return _missing_url(request)
    report = await _run(body, settings, transport)
    return JSONResponse(content=report.to_dict())


@router.post("/validator-summary")
async def validate_feed_summary(
    body: ValidateRequest,
    request: Request,
    settings: Settings,
    transport: Transport,
) -> Any:
    """Validate the feed and collapse identical issues into counts."""
    if not body.url.strip():
        return _missing_url(request)
    report = await _run(body, settings, transport)
    return JSONResponse(
        content={
            "summary": report.to_dict()["summary"],
            "filesSummary": [
                FileSummary.from_result(f).model_dump(mode="json", by_alias=True) for f in report.files
            ],
        }
    )
