#!/usr/bin/env python3
"""
Scoring function: (candidate profile, job record) -> MatchScore.

Pure and deterministic. Every category runs under a guard so malformed
input costs that category its points instead of failing the whole score.
"""

import logging
from typing import Callable, Optional

from core.config_loader import ScorerConfig
from core.scorer.models import CandidateProfile, JobRecord, MatchClassification, MatchScore
from core.scorer.signals import (
    CategoryScore,
    SkillScore,
    score_experience,
    score_level,
    score_location,
    score_role,
    score_skills,
    score_work_mode,
)

logger = logging.getLogger(__name__)

CLASSIFICATION_THRESHOLDS = (
    (80.0, MatchClassification.EXCELLENT),
    (60.0, MatchClassification.GOOD),
    (40.0, MatchClassification.OKAY),
)

_GUARDED_ERRORS = (TypeError, ValueError, AttributeError, KeyError)


def classify(total_score: float) -> MatchClassification:
    for threshold, label in CLASSIFICATION_THRESHOLDS:
        if total_score >= threshold:
            return label
    return MatchClassification.POOR


def profile_confidence(profile: CandidateProfile) -> float:
    """Share of populated profile facets, 0-100."""
    facets = [
        bool(profile.target_roles),
        bool(profile.target_locations),
        bool(profile.target_tech_stack),
        bool(profile.target_domains),
        bool(profile.skill_ratings),
        profile.experience_years > 0 or profile.career_level is not None,
        profile.work_mode_preference is not None,
    ]
    return round(100.0 * sum(facets) / len(facets), 2)


def _guarded(category: str, job: JobRecord, fn: Callable[[], CategoryScore], empty: CategoryScore) -> CategoryScore:
    try:
        return fn()
    except _GUARDED_ERRORS as e:
        logger.debug(f"{category} signal skipped for job {job.job_id}: {e}")
        return empty


def score_match(
    profile: CandidateProfile,
    job: JobRecord,
    config: Optional[ScorerConfig] = None
) -> MatchScore:
    config = config or ScorerConfig()

    skill = _guarded(
        'skill', job,
        lambda: score_skills(
            profile, job, config.skill_weight,
            config.fallback_keyword_cap, config.fallback_max_fraction
        ),
        SkillScore()
    )
    role = _guarded('role', job, lambda: score_role(profile, job, config.role_weight), CategoryScore())
    level = _guarded('level', job, lambda: score_level(profile, job, config.level_weight), CategoryScore())
    experience = _guarded(
        'experience', job,
        lambda: score_experience(profile, job, config.experience_weight, config.experience_baseline_years),
        CategoryScore()
    )
    location = _guarded('location', job, lambda: score_location(profile, job, config.location_weight), CategoryScore())
    work_mode = _guarded('work_mode', job, lambda: score_work_mode(profile, job, config.work_mode_weight), CategoryScore())

    parts = (skill, role, level, experience, location, work_mode)
    total = round(max(0.0, min(100.0, sum(p.points for p in parts))), 2)

    reasons = []
    for part in parts:
        reasons.extend(part.reasons)

    return MatchScore(
        skill_score=round(skill.points, 2),
        role_score=round(role.points, 2),
        level_score=round(level.points, 2),
        experience_score=round(experience.points, 2),
        location_score=round(location.points, 2),
        work_mode_score=round(work_mode.points, 2),
        total_score=total,
        classification=classify(total),
        matched_skills=list(skill.matched),
        missing_skills=list(skill.missing),
        confidence=profile_confidence(profile),
        reasons=reasons,
        fallback_used=skill.fallback_used,
    )


class ScoringService:
    """Binds the scoring function to a ScorerConfig."""

    def __init__(self, config: Optional[ScorerConfig] = None):
        self.config = config or ScorerConfig()

    def score(self, profile: CandidateProfile, job: JobRecord) -> MatchScore:
        return score_match(profile, job, self.config)
