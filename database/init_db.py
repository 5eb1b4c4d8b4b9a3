import logging
from typing import Optional

from sqlalchemy.engine import Engine

from database.models import Base

logger = logging.getLogger(__name__)


def init_db(engine: Engine, settings_provider: Optional[object] = None, overrides: Optional[dict] = None) -> None:
    """Create all tables and, when a DatabaseSettingsProvider is given, seed default settings."""
    logger.info("Creating database tables")
    Base.metadata.create_all(bind=engine)

    if settings_provider is not None:
        settings_provider.initialize_defaults(overrides)
