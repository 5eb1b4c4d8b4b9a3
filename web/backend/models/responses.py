#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any


class SubScores(BaseModel):
    """Per-category points on the 0-100 scale."""
    skill: float = Field(ge=0, le=100)
    role: float = Field(ge=0, le=100)
    level: float = Field(ge=0, le=100)
    experience: float = Field(ge=0, le=100)
    location: float = Field(ge=0, le=100)
    work_mode: float = Field(ge=0, le=100)


class MatchSummary(BaseModel):
    """Summary of a job match."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "match_id": "550e8400-e29b-41d4-a716-446655440000",
                "job_id": "6ba7b810-9dad-11d1-80b4-00c04fd430c8",
                "title": "Backend Engineer",
                "company": "TechCorp",
                "location": "Remote",
                "total_score": 72.5,
                "classification": "good",
                "status": "matched",
                "created_at": "2026-02-01T12:00:00",
                "updated_at": "2026-02-01T12:00:00"
            }
        }
    )

    match_id: str
    job_id: str
    title: Optional[str]
    company: Optional[str]
    location: Optional[str]
    total_score: float = Field(ge=0, le=100)
    classification: str
    sub_scores: SubScores
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=100)
    status: str
    created_at: Optional[str]
    updated_at: Optional[str]


class MatchDetail(MatchSummary):
    """Full match with explanation and lifecycle timestamps."""
    description: Optional[str] = None
    employment_type: Optional[str] = None
    reasons: List[str] = Field(default_factory=list)
    fallback_used: bool = False
    viewed_at: Optional[str] = None
    applied_at: Optional[str] = None


class PaginationInfo(BaseModel):
    current_page: int
    total_pages: int
    total_matches: int
    matches_per_page: int
    min_score: float
    has_next_page: bool
    has_prev_page: bool


class MatchesResponse(BaseModel):
    """Response for a page of matches."""
    success: bool
    matches: List[MatchSummary]
    pagination: PaginationInfo


class MatchDetailResponse(BaseModel):
    success: bool
    match: MatchDetail


class MatchStatusResponse(BaseModel):
    success: bool
    match_id: str
    status: str
    viewed_at: Optional[str] = None
    applied_at: Optional[str] = None


class BatchStatsResponse(BaseModel):
    """Outcome of rescoring one candidate."""
    success: bool
    session_id: str
    candidate_id: str
    min_score: float
    jobs_processed: int
    jobs_matched: int
    jobs_created: int
    jobs_updated: int
    average_score: float
    errors: int
    duration_ms: int


class TopMatchesResponse(BaseModel):
    """Best matches for the caller, highest score first."""
    success: bool
    matches: List[MatchSummary]


class MatchingStatsResponse(BaseModel):
    success: bool
    total_matches: int
    average_score: float
    top_score: float
    distribution: Dict[str, int]


class SkillRecommendationItem(BaseModel):
    skill: str
    frequency: int


class RecommendationsResponse(BaseModel):
    success: bool
    skills_to_learn: List[SkillRecommendationItem]


class AdmissionResponse(BaseModel):
    """Outcome of an admission check or reservation."""
    success: bool
    allowed: bool
    reason: Optional[str] = None
    remaining: Optional[int] = None
    reset_date: Optional[str] = None
    tier: Optional[str] = None
    bypass: Optional[str] = None


class UsageResponse(BaseModel):
    success: bool
    tier: str
    used_actions: int
    max_actions: Optional[int]
    remaining: Optional[int]
    reset_date: Optional[str]
    window_days: int


class SettingItem(BaseModel):
    key: str
    value: Any
    value_type: Optional[str] = None
    description: Optional[str] = None


class SettingsResponse(BaseModel):
    success: bool
    settings: List[SettingItem]


class AllowlistResponse(BaseModel):
    success: bool
    allowlist: List[str]


class PipelineTaskResponse(BaseModel):
    """Response when starting a fleet rescoring task."""
    success: bool
    task_id: str
    message: str


class PipelineStatusResponse(BaseModel):
    """Response for fleet rescoring task status."""
    task_id: str
    status: str
    step: Optional[str] = None
    candidates_total: Optional[int] = None
    candidates_processed: Optional[int] = None
    candidates_failed: Optional[int] = None
    total_matches: Optional[int] = None
    notified_count: Optional[int] = None
    execution_time: Optional[float] = None
    error: Optional[str] = None
