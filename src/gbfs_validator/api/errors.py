"""
Error handlers: map request and server failures to RFC 7807 responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gbfs_validator.api.schemas import ProblemDetail
from gbfs_validator.framework.logging import get_logger

logger = get_logger(__name__)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        errors=errors or [],
    )
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are a 400, not FastAPI's default 422."""
    errors = [
        {"loc": ".".join(str(p) for p in e.get("loc", ())), "msg": e.get("msg", "")}
        for e in exc.errors()
    ]
    return problem_response(
        status=400,
        title="Invalid request body",
        instance=str(request.url),
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions; returns 500 with ProblemDetail."""
    logger.exception("api.unhandled_error", path=request.url.path)
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail="An unexpected error occurred.",
        instance=str(request.url),
    )
