#!/usr/bin/env python3
"""
Error handlers mapping domain exceptions onto HTTP responses.
"""

import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from core.exceptions import (
    MatchingError,
    NotFoundError,
    ValidationError,
    MatchAccessDeniedError,
    StorageFailureError,
    PipelineLockedError,
)

logger = logging.getLogger(__name__)


def status_code_for(exc: MatchingError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, MatchAccessDeniedError):
        return 403
    if isinstance(exc, PipelineLockedError):
        return 409
    if isinstance(exc, StorageFailureError):
        return 503
    return 500


async def matching_exception_handler(
    request: Request,
    exc: MatchingError
) -> JSONResponse:
    """
    Handle domain exceptions.

    Args:
        request: The FastAPI request.
        exc: The domain exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"Rejected request to {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": str(exc),
            "type": exc.__class__.__name__
        }
    )


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """
    Handle FastAPI HTTP exceptions with consistent format.
    """
    content = {
        "success": False,
        "error": exc.detail,
        "type": "HTTPException"
    }
    if isinstance(exc.detail, dict):
        content.update(exc.detail)
        content["error"] = exc.detail.get("error", "Request rejected")
    return JSONResponse(status_code=exc.status_code, content=content)


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.
    """
    logger.exception(f"Unexpected error in {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "type": "InternalError"
        }
    )
