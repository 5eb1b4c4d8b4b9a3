#!/usr/bin/env python3
"""
Scoring Module - candidate-to-job match scoring.

Public API:
- score_match: Pure scoring function on the 0-100 scale
- ScoringService: score_match bound to a ScorerConfig
- CandidateProfile, JobRecord, MatchScore: Scoring data structures

- models.py: Data structures and input coercion
- signals.py: Per-category signals (skill with keyword fallback, role,
  level, experience, location, work mode)
- service.py: Composition, classification and confidence
"""

from core.scorer.models import (
    CandidateProfile,
    CareerLevel,
    JobRecord,
    MatchClassification,
    MatchScore,
    WorkMode,
)
from core.scorer.service import ScoringService, classify, score_match

__all__ = [
    'CandidateProfile',
    'CareerLevel',
    'JobRecord',
    'MatchClassification',
    'MatchScore',
    'WorkMode',
    'ScoringService',
    'classify',
    'score_match',
]
