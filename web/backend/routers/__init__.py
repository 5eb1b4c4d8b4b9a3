"""API route handlers."""

from .matches import router as matches_router
from .admission import router as admission_router
from .pipeline import router as pipeline_router
from .settings import router as settings_router
