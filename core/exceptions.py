"""
Domain exceptions for the matching subsystem.

Web handlers map these onto HTTP status codes (see web/backend/exceptions.py).
A denied admission is not an exception: the gate returns a negative
AdmissionDecision instead.
"""

from typing import Any, Optional


class MatchingError(Exception):
    """Base exception for matching subsystem errors."""
    pass


class NotFoundError(MatchingError):
    """Raised when a referenced entity does not exist."""
    pass


class CandidateNotFoundError(NotFoundError):
    """Raised when a candidate profile is missing."""

    def __init__(self, candidate_id: str):
        super().__init__(f"Candidate not found: {candidate_id}")
        self.candidate_id = candidate_id


class MatchNotFoundError(NotFoundError):
    """Raised when a match record is missing."""

    def __init__(self, match_id: str):
        super().__init__(f"Match not found: {match_id}")
        self.match_id = match_id


class ValidationError(MatchingError):
    """Raised for invalid input such as bad pagination parameters."""
    pass


class InvalidStatusTransitionError(ValidationError):
    """Raised when a match status change violates the lifecycle."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Invalid status transition: {current} -> {requested}")
        self.current = current
        self.requested = requested


class InvalidActionKindError(ValidationError):
    """Raised when an admission action kind is unknown."""
    pass


class MatchAccessDeniedError(MatchingError):
    """Raised when a caller touches a match owned by another candidate."""
    pass


class StorageFailureError(MatchingError):
    """
    Raised when the persistence layer rejects a read or write.

    Batch callers get the partially filled stats record on ``stats`` so they
    can decide whether to re-trigger the run.
    """

    def __init__(self, message: str, stats: Optional[Any] = None):
        super().__init__(message)
        self.stats = stats


class PipelineLockedError(MatchingError):
    """Raised when a fleet rescoring run is already in progress."""
    pass
