import contextlib
import logging
from typing import Callable, ContextManager

from sqlalchemy.orm import Session, sessionmaker

from database.repositories import (
    CandidateRepository,
    JobPostRepository,
    MatchRepository,
    SettingsRepository,
    UsageRepository,
)

logger = logging.getLogger(__name__)


class MatchingUnitOfWork:
    """Repositories sharing one Session (and therefore one transaction)."""

    def __init__(self, session: Session):
        self.session = session
        self.candidates = CandidateRepository(session)
        self.jobs = JobPostRepository(session)
        self.matches = MatchRepository(session)
        self.usage = UsageRepository(session)
        self.settings = SettingsRepository(session)

    @property
    def profiles(self) -> CandidateRepository:
        return self.candidates

    @property
    def corpus(self) -> JobPostRepository:
        return self.jobs


UowFactory = Callable[[], ContextManager[MatchingUnitOfWork]]


@contextlib.contextmanager
def matching_uow(session_factory: sessionmaker):
    """Per-unit-of-work transaction scope.

    Yields a MatchingUnitOfWork bound to a fresh Session. Commits on success,
    rolls back on exception, always closes.

    Usage:
        with matching_uow(SessionLocal) as uow:
            counts = uow.matches.bulk_upsert(entries)
        # commit happens automatically on successful exit
    """
    session = session_factory()
    try:
        uow = MatchingUnitOfWork(session)
        yield uow
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def uow_factory_for(session_factory: sessionmaker) -> UowFactory:
    """Bind matching_uow to a session factory so services can open their own scopes."""
    return lambda: matching_uow(session_factory)
