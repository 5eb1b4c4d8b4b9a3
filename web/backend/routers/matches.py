#!/usr/bin/env python3
"""
Match endpoints - rescore, list, inspect and progress the caller's matches.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from core.app_context import AppContext
from core.settings_provider import match_page_size, minimum_match_score
from database.repositories.match import MAX_PAGE_SIZE
from notification.dispatcher import notify_high_score_matches
from ..dependencies import get_db, get_app_context, get_current_candidate_id
from ..rate_limit import limiter, rescore_rate_limit
from ..services.match_service import MatchService, match_summary
from ..models.requests import RescoreRequest, StatusUpdate
from ..models.responses import (
    BatchStatsResponse,
    MatchesResponse,
    MatchDetailResponse,
    MatchStatusResponse,
    MatchingStatsResponse,
    RecommendationsResponse,
    SkillRecommendationItem,
    TopMatchesResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matches", tags=["matches"])


def _notify_after_rescore(ctx: AppContext, candidate_id: str) -> None:
    try:
        notify_high_score_matches(
            ctx.uow_factory,
            ctx.notifier,
            candidate_id,
            min_score=ctx.config.matching.notify_min_score,
            limit=ctx.config.matching.notify_limit
        )
    except Exception as e:
        logger.error(f"Post-rescore notification failed for candidate {candidate_id}: {e}")


@router.post("/rescore", response_model=BatchStatsResponse)
@limiter.limit(rescore_rate_limit)
def rescore_my_matches(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Optional[RescoreRequest] = None,
    candidate_id: str = Depends(get_current_candidate_id),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Score the caller against the active job corpus and store the results.

    High-score matches are announced after the response is sent.
    """
    payload = payload or RescoreRequest()
    stats = ctx.orchestrator.match_candidate_to_all_jobs(
        candidate_id,
        min_score=payload.min_score,
        job_limit=payload.job_limit
    )

    if ctx.notifier is not None and stats.jobs_matched:
        background_tasks.add_task(_notify_after_rescore, ctx, candidate_id)

    return BatchStatsResponse(
        success=True,
        session_id=stats.session_id,
        candidate_id=stats.candidate_id,
        min_score=stats.min_score,
        jobs_processed=stats.jobs_processed,
        jobs_matched=stats.jobs_matched,
        jobs_created=stats.jobs_created,
        jobs_updated=stats.jobs_updated,
        average_score=stats.average_score,
        errors=stats.errors,
        duration_ms=stats.duration_ms
    )


@router.get("", response_model=MatchesResponse)
def get_matches(
    page: int = Query(default=1, ge=1, description="Page number, starting at 1"),
    page_size: Optional[int] = Query(default=None, ge=1, le=MAX_PAGE_SIZE, description="Matches per page"),
    min_score: Optional[float] = Query(default=None, ge=0, le=100, description="Minimum total score filter"),
    candidate_id: str = Depends(get_current_candidate_id),
    ctx: AppContext = Depends(get_app_context),
    db: Session = Depends(get_db)
):
    """
    Get one page of the caller's matches, highest score first.

    ``page_size`` and ``min_score`` default to the admin settings.
    """
    if min_score is None:
        min_score = minimum_match_score(ctx.settings, ctx.config.matching.min_score)
    if page_size is None:
        page_size = match_page_size(ctx.settings, ctx.config.matching.default_page_size, MAX_PAGE_SIZE)

    return MatchService(db).get_matches(candidate_id, min_score, page=page, page_size=page_size)


@router.get("/stats", response_model=MatchingStatsResponse)
def get_matching_stats(
    candidate_id: str = Depends(get_current_candidate_id),
    ctx: AppContext = Depends(get_app_context)
):
    """Count, average, top score and score distribution of the caller's matches."""
    stats = ctx.insights.get_matching_stats(candidate_id)
    return MatchingStatsResponse(
        success=True,
        total_matches=stats.total_matches,
        average_score=stats.average_score,
        top_score=stats.top_score,
        distribution=stats.distribution
    )


@router.get("/recommendations", response_model=RecommendationsResponse)
def get_skill_recommendations(
    min_score: float = Query(default=70.0, ge=0, le=100),
    limit: int = Query(default=10, ge=1, le=50),
    candidate_id: str = Depends(get_current_candidate_id),
    ctx: AppContext = Depends(get_app_context)
):
    recommendations = ctx.insights.get_skill_recommendations(candidate_id, min_score=min_score, top_n=limit)
    return RecommendationsResponse(
        success=True,
        skills_to_learn=[
            SkillRecommendationItem(skill=r.skill, frequency=r.frequency) for r in recommendations
        ]
    )


@router.get("/top", response_model=TopMatchesResponse)
def get_top_matches(
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    min_score: float = Query(default=50.0, ge=0, le=100),
    candidate_id: str = Depends(get_current_candidate_id),
    ctx: AppContext = Depends(get_app_context)
):
    """The caller's best matches at or above ``min_score``."""
    matches = ctx.insights.get_top_matches(candidate_id, limit=limit, min_score=min_score)
    return TopMatchesResponse(success=True, matches=[match_summary(m) for m in matches])


@router.get("/{match_id}", response_model=MatchDetailResponse)
def get_match_details(
    match_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db)
):
    """
    Get a match with its explanation. The first read marks it viewed.
    """
    return MatchService(db).get_match_detail(match_id, candidate_id)


@router.patch("/{match_id}/status", response_model=MatchStatusResponse)
def update_match_status(
    match_id: str,
    update: StatusUpdate,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db)
):
    """Move a match to viewed, applied or rejected."""
    return MatchService(db).update_status(match_id, candidate_id, update.status)
