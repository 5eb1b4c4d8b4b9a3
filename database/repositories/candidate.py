import logging
from typing import List, Optional

from sqlalchemy import select

from core.interfaces import ProfileReader
from core.scorer.models import CandidateProfile
from database.models import Candidate
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def profile_from_candidate(candidate: Candidate) -> CandidateProfile:
    return CandidateProfile.from_mapping(candidate.id, {
        'target_roles': candidate.target_roles,
        'target_locations': candidate.target_locations,
        'target_tech_stack': candidate.target_tech_stack,
        'target_domains': candidate.target_domains,
        'experience_years': candidate.experience_years,
        'career_level': candidate.career_level,
        'work_mode_preference': candidate.work_mode_preference,
        'skill_ratings': candidate.skill_ratings,
    })


class CandidateRepository(BaseRepository, ProfileReader):
    def get_by_id(self, candidate_id: str, for_update: bool = False) -> Optional[Candidate]:
        stmt = select(Candidate).where(Candidate.id == str(candidate_id))
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_profile(self, candidate_id: str) -> Optional[CandidateProfile]:
        candidate = self.get_by_id(candidate_id)
        if candidate is None:
            return None
        return profile_from_candidate(candidate)

    def list_active_ids(self, limit: int) -> List[str]:
        stmt = (
            select(Candidate.id)
            .where(Candidate.is_active.is_(True))
            .order_by(Candidate.created_at, Candidate.id)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())
