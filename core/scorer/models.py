"""
Scoring models: candidate profile, job record and the match score result.

Profiles and jobs arrive from collaborators that do not validate their
data, so the ``from_mapping`` constructors coerce anything malformed into
an empty value instead of raising.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class CareerLevel(str, Enum):
    FRESHER = "fresher"
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"


class WorkMode(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"
    ANY = "any"


class MatchClassification(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    OKAY = "okay"
    POOR = "poor"


ENTRY_LEVELS = (CareerLevel.FRESHER, CareerLevel.JUNIOR)
SENIOR_LEVELS = (CareerLevel.SENIOR, CareerLevel.LEAD)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _text_list(value: Any) -> List[str]:
    if value is None or isinstance(value, (str, bytes, Mapping)):
        return [_text(value)] if isinstance(value, str) and value.strip() else []
    try:
        items = list(value)
    except TypeError:
        return []
    return [t for t in (_text(item) for item in items) if t]


def _non_negative_int(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, number)


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return max(0, int(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _enum_or_none(enum_cls, value: Any):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(_text(value).lower())
    except ValueError:
        return None


@dataclass
class CandidateProfile:
    """Read-only view of a candidate's matching preferences."""
    candidate_id: str
    target_roles: List[str] = field(default_factory=list)
    target_locations: List[str] = field(default_factory=list)
    target_tech_stack: List[str] = field(default_factory=list)
    target_domains: List[str] = field(default_factory=list)
    experience_years: int = 0
    career_level: Optional[CareerLevel] = None
    work_mode_preference: Optional[WorkMode] = None
    skill_ratings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, candidate_id: str, data: Mapping[str, Any]) -> "CandidateProfile":
        ratings = data.get('skill_ratings')
        if not isinstance(ratings, Mapping):
            ratings = {}

        return cls(
            candidate_id=str(candidate_id),
            target_roles=_text_list(data.get('target_roles')),
            target_locations=_text_list(data.get('target_locations')),
            target_tech_stack=_text_list(data.get('target_tech_stack')),
            target_domains=_text_list(data.get('target_domains')),
            experience_years=_non_negative_int(data.get('experience_years')),
            career_level=_enum_or_none(CareerLevel, data.get('career_level')),
            work_mode_preference=_enum_or_none(WorkMode, data.get('work_mode_preference')),
            skill_ratings={_text(k): v for k, v in ratings.items() if _text(k)},
        )

    @property
    def is_entry_level(self) -> bool:
        if self.career_level is not None:
            return self.career_level in ENTRY_LEVELS
        return self.experience_years <= 1


@dataclass
class JobRecord:
    """Read-only view of a job posting."""
    job_id: str
    title: str = ""
    company: str = ""
    description: str = ""
    requirements: List[str] = field(default_factory=list)
    tech_stack: List[str] = field(default_factory=list)
    location: str = ""
    employment_type: str = ""
    status: str = "active"
    min_experience_years: Optional[int] = None

    @classmethod
    def from_mapping(cls, job_id: str, data: Mapping[str, Any]) -> "JobRecord":
        return cls(
            job_id=str(job_id),
            title=_text(data.get('title')),
            company=_text(data.get('company')),
            description=_text(data.get('description')),
            requirements=_text_list(data.get('requirements')),
            tech_stack=_text_list(data.get('tech_stack')),
            location=_text(data.get('location')),
            employment_type=_text(data.get('employment_type')),
            status=_text(data.get('status')) or "active",
            min_experience_years=_optional_int(data.get('min_experience_years')),
        )


@dataclass
class MatchScore:
    """
    Result of scoring one candidate against one job.

    Identity fields and lifecycle status are attached by the caller when the
    score is persisted.
    """
    skill_score: float = 0.0
    role_score: float = 0.0
    level_score: float = 0.0
    experience_score: float = 0.0
    location_score: float = 0.0
    work_mode_score: float = 0.0
    total_score: float = 0.0
    classification: MatchClassification = MatchClassification.POOR
    matched_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    confidence: float = 0.0
    reasons: List[str] = field(default_factory=list)
    fallback_used: bool = False

    def sub_scores(self) -> Dict[str, float]:
        return {
            'skill': self.skill_score,
            'role': self.role_score,
            'level': self.level_score,
            'experience': self.experience_score,
            'location': self.location_score,
            'work_mode': self.work_mode_score,
        }
