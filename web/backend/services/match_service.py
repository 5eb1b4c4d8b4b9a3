#!/usr/bin/env python3
"""
Match service - business logic for job match operations.
"""

import logging
from sqlalchemy.orm import Session

from database.models import JobMatch
from database.repositories import MatchRepository
from ..models.responses import (
    MatchSummary,
    MatchDetail,
    MatchesResponse,
    MatchDetailResponse,
    MatchStatusResponse,
    PaginationInfo,
    SubScores,
)
from ..utils import safe_float, safe_list, safe_datetime_iso

logger = logging.getLogger(__name__)


def _summary_fields(match: JobMatch) -> dict:
    job = match.job_post
    return dict(
        match_id=str(match.id),
        job_id=str(match.job_id),
        title=job.title if job else None,
        company=job.company if job else None,
        location=job.location if job else None,
        total_score=safe_float(match.total_score),
        classification=match.classification,
        sub_scores=SubScores(
            skill=safe_float(match.skill_score),
            role=safe_float(match.role_score),
            level=safe_float(match.level_score),
            experience=safe_float(match.experience_score),
            location=safe_float(match.location_score),
            work_mode=safe_float(match.work_mode_score),
        ),
        matched_skills=safe_list(match.matched_skills),
        missing_skills=safe_list(match.missing_skills),
        confidence=safe_float(match.confidence),
        status=match.status,
        created_at=safe_datetime_iso(match.created_at),
        updated_at=safe_datetime_iso(match.updated_at),
    )


def match_summary(match: JobMatch) -> MatchSummary:
    return MatchSummary(**_summary_fields(match))


class MatchService:
    """Service for reading and updating a candidate's matches."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MatchRepository(db)

    def get_matches(
        self,
        candidate_id: str,
        min_score: float,
        page: int = 1,
        page_size: int = 50
    ) -> MatchesResponse:
        """
        Get one page of the candidate's matches, best first.

        Filtering and paging happen in the database.
        """
        result = self.repo.query_by_candidate(
            candidate_id,
            min_score=min_score,
            sort_descending=True,
            page=page,
            page_size=page_size
        )

        return MatchesResponse(
            success=True,
            matches=[match_summary(m) for m in result.items],
            pagination=PaginationInfo(
                current_page=result.page,
                total_pages=result.total_pages,
                total_matches=result.total,
                matches_per_page=result.page_size,
                min_score=result.min_score,
                has_next_page=result.has_next,
                has_prev_page=result.has_prev,
            )
        )

    def get_match_detail(self, match_id: str, candidate_id: str) -> MatchDetailResponse:
        """
        Get a match for its owner; the first read moves it from matched to viewed.
        """
        try:
            match = self.repo.mark_viewed_on_read(match_id, candidate_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        job = match.job_post
        detail = MatchDetail(
            **_summary_fields(match),
            description=job.description if job else None,
            employment_type=job.employment_type if job else None,
            reasons=safe_list(match.reasons),
            fallback_used=bool(match.fallback_used),
            viewed_at=safe_datetime_iso(match.viewed_at),
            applied_at=safe_datetime_iso(match.applied_at),
        )
        return MatchDetailResponse(success=True, match=detail)

    def update_status(self, match_id: str, candidate_id: str, status: str) -> MatchStatusResponse:
        try:
            match = self.repo.update_status(match_id, status, candidate_id=candidate_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return MatchStatusResponse(
            success=True,
            match_id=str(match.id),
            status=match.status,
            viewed_at=safe_datetime_iso(match.viewed_at),
            applied_at=safe_datetime_iso(match.applied_at),
        )
