"""
Collaborator interfaces consumed by the matching subsystem.

Candidate profiles and the job corpus are owned by other services; the
matching engine only reads them through these contracts.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from core.scorer.models import CandidateProfile, JobRecord


class ProfileReader(ABC):
    """
    Read access to candidate profiles.
    """

    @abstractmethod
    def get_profile(self, candidate_id: str) -> Optional[CandidateProfile]:
        """
        Return the candidate's profile, or None when the candidate does not exist.
        """
        pass


class JobCorpusReader(ABC):
    """
    Read access to the job corpus and the population of active candidates.
    """

    @abstractmethod
    def list_active_jobs(
        self,
        limit: int,
        job_ids: Optional[Sequence[str]] = None
    ) -> List[JobRecord]:
        """
        Return up to ``limit`` non-archived jobs, optionally restricted to ``job_ids``.
        """
        pass

    @abstractmethod
    def list_active_candidates(self, limit: int) -> List[str]:
        """
        Return up to ``limit`` active candidate ids.
        """
        pass
