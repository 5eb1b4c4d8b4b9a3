#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

import threading
from typing import Generator, Optional

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session, sessionmaker

from core.app_context import AppContext
from core.config_loader import get_config
from database.database import create_db_engine, create_session_factory


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self):
        config = get_config()
        self.engine = create_db_engine(
            config.database.url,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow
        )
        self.SessionLocal: sessionmaker = create_session_factory(self.engine)

    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session.

        Yields:
            Session: SQLAlchemy database session.
        """
        session = self.SessionLocal()
        try:
            yield session
        finally:
            session.close()


_db_manager: Optional[DatabaseManager] = None
_app_context: Optional[AppContext] = None
_init_lock = threading.Lock()


def get_db_manager() -> DatabaseManager:
    global _db_manager
    with _init_lock:
        if _db_manager is None:
            _db_manager = DatabaseManager()
    return _db_manager


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session.

    Usage:
        @app.get("/endpoint")
        def my_endpoint(db: Session = Depends(get_db)):
            ...
    """
    yield from get_db_manager().get_session()


def get_app_context() -> AppContext:
    """FastAPI dependency returning the process-wide AppContext."""
    global _app_context
    manager = get_db_manager()
    with _init_lock:
        if _app_context is None:
            _app_context = AppContext.build(get_config(), session_factory=manager.SessionLocal)
    return _app_context


def get_current_candidate_id(x_candidate_id: Optional[str] = Header(default=None)) -> str:
    """
    Caller identity as resolved by the upstream authentication layer.

    The gateway forwards the authenticated candidate in ``X-Candidate-Id``.
    """
    if not x_candidate_id or not x_candidate_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Candidate-Id header")
    return x_candidate_id.strip()
