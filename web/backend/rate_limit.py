#!/usr/bin/env python3
"""
Rate limiting for expensive endpoints (slowapi).
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config_loader import get_config


def candidate_or_remote_address(request: Request) -> str:
    """Limit per candidate when the caller is identified, else per client address."""
    return request.headers.get("x-candidate-id") or get_remote_address(request)


def rescore_rate_limit() -> str:
    return get_config().web.rescore_rate_limit


limiter = Limiter(key_func=candidate_or_remote_address)


def add_rate_limit_handlers(app):
    """Add rate limit exception handlers to the FastAPI app."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


async def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": str(exc)}
    )
