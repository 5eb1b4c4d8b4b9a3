#!/usr/bin/env python3
"""
Job match API - FastAPI Application

Serves candidate match listings, on-demand rescoring, admission checks,
fleet rescoring control and admin settings.

Usage:
    python -m web.backend.app

Then open:
    - http://localhost:8080/docs - API Documentation (Swagger UI)
    - http://localhost:8080/redoc - Alternative API Documentation
"""

import logging

from fastapi import FastAPI, HTTPException

from core.config_loader import get_config
from core.exceptions import MatchingError
from .exceptions import (
    matching_exception_handler,
    http_exception_handler,
    general_exception_handler
)
from .rate_limit import add_rate_limit_handlers
from .routers import (
    matches_router,
    admission_router,
    pipeline_router,
    settings_router
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Job Match API",
    description="API for scoring candidates against jobs and gating candidate actions",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure rate limiting
add_rate_limit_handlers(app)

# Register exception handlers
app.add_exception_handler(MatchingError, matching_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include routers
app.include_router(matches_router)
app.include_router(admission_router)
app.include_router(pipeline_router)
app.include_router(settings_router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "job-match-api"}


def main():
    """Run the web server."""
    import uvicorn

    config = get_config()
    logger.info(f"Starting Job Match API on {config.web.host}:{config.web.port}")
    logger.info(f"API Docs: http://{config.web.host}:{config.web.port}/docs")

    uvicorn.run(
        "web.backend.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()
