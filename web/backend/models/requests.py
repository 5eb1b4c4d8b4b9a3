#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from pydantic import BaseModel, Field
from typing import Any, List, Optional


class RescoreRequest(BaseModel):
    """Request to rescore the caller against the job corpus."""
    min_score: Optional[float] = Field(None, ge=0, le=100, description="Override the minimum stored score")
    job_limit: Optional[int] = Field(None, ge=1, description="Maximum jobs to score")


class FleetRescoreRequest(BaseModel):
    job_ids: Optional[List[str]] = Field(None, description="Restrict scoring to these jobs")
    candidate_limit: Optional[int] = Field(None, ge=1, description="Maximum candidates to rescore")


class StatusUpdate(BaseModel):
    """Request to move a match along its lifecycle."""
    status: str = Field(..., description="New status: viewed, applied or rejected")


class AdmissionRequest(BaseModel):
    job_id: str = Field(..., min_length=1)
    action: str = Field(..., description="Action kind: apply or view_details")


class SettingUpdate(BaseModel):
    value: Any = Field(..., description="New value, JSON-compatible")
    description: Optional[str] = None


class AllowlistRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Candidate id or email")
