#!/usr/bin/env python3
"""
Per-category match signals.

Each function returns a CategoryScore in points, already scaled to the
category cap it is given. None of them touch settings or storage.

Skill scoring has two paths:
- rated skills: requirement coverage weighted by the candidate's rating
- keyword fallback: candidates with no rated skills (typically freshers)
  get credit for generic technology keywords in the job text, capped, so
  they do not score zero on every job
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from core.scorer.models import CandidateProfile, JobRecord, SENIOR_LEVELS

# ----------------------------
# Vocabularies
# ----------------------------
GENERIC_TECH_KEYWORDS = (
    'python', 'javascript', 'java', 'c++', 'typescript', 'sql', 'html', 'css',
    'node', 'react', 'angular', 'vue', 'database', 'api', 'backend', 'frontend',
)

GENERIC_ROLE_KEYWORDS = (
    'software', 'engineer', 'developer', 'programmer', 'technical', 'analyst',
    'associate', 'trainee', 'junior', 'entry',
)

ENTRY_LEVEL_PATTERN = re.compile(
    r'\b(fresher|freshers|junior|jr\.?|entry[- ]level|entry|trainee|graduate|graduates|intern|internship)\b'
)
SENIOR_LEVEL_PATTERN = re.compile(
    r'\b(senior|sr\.?|lead|principal|staff|head of|architect)\b'
)
YEARS_PATTERN = re.compile(
    r'(\d{1,2})\s*\+?\s*(?:-|to)?\s*(?:\d{1,2}\s*)?(?:years?|yrs?)\b'
)

REMOTE_INDICATORS = ('remote', 'work from home', 'wfh', 'anywhere')
EMPLOYMENT_TYPE_KEYWORDS = ('full', 'contract', 'intern')

DEFAULT_SKILL_RATING = 3
MISSING_LOCATION = "Remote"

# Fractions of the category cap
ROLE_GENERIC_ENTRY = 0.6
ROLE_GENERIC_EXPERIENCED = 0.8
ROLE_ENTRY_FLOOR = 0.4
LEVEL_NEUTRAL = 0.5
LOCATION_ENTRY_FLEXIBILITY = 0.5
WORK_MODE_EXPERIENCED = 2.0 / 3.0


@dataclass
class CategoryScore:
    points: float = 0.0
    reasons: List[str] = field(default_factory=list)


@dataclass
class SkillScore(CategoryScore):
    matched: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    fallback_used: bool = False


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _rating_factor(raw) -> float:
    try:
        rating = float(raw)
    except (TypeError, ValueError):
        rating = DEFAULT_SKILL_RATING
    rating = _clamp(rating, 1.0, 5.0)
    return 0.5 + rating / 10.0


def _keyword_in(keyword: str, text: str) -> bool:
    pattern = r'(?<![a-z0-9+#])' + re.escape(keyword) + r'(?![a-z0-9+#])'
    return re.search(pattern, text) is not None


def job_requirement_strings(job: JobRecord) -> List[str]:
    """Requirements followed by tech stack entries, deduplicated case-insensitively."""
    seen = set()
    result = []
    for item in list(job.requirements) + list(job.tech_stack):
        key = item.lower()
        if key and key not in seen:
            seen.add(key)
            result.append(item)
    return result


def job_text(job: JobRecord) -> str:
    parts = [job.title, job.description] + list(job.requirements) + list(job.tech_stack)
    return " ".join(p for p in parts if p).lower()


def keyword_fallback(job: JobRecord, cap: float, keyword_cap: int, max_fraction: float) -> SkillScore:
    """
    Skill credit for profiles with no rated skills.

    Counts distinct generic technology keywords in the job text, ignoring
    hits beyond ``keyword_cap``; a full set of hits earns
    ``cap * max_fraction``.
    """
    text = job_text(job)
    hits = [kw for kw in GENERIC_TECH_KEYWORDS if _keyword_in(kw, text)][:keyword_cap]
    points = cap * max_fraction * len(hits) / keyword_cap

    reasons = []
    if hits:
        reasons.append(f"Entry-friendly tech keywords found: {', '.join(hits)}")

    return SkillScore(
        points=points,
        reasons=reasons,
        matched=hits,
        missing=job_requirement_strings(job),
        fallback_used=True,
    )


def score_skills(
    profile: CandidateProfile,
    job: JobRecord,
    cap: float,
    keyword_cap: int,
    fallback_max_fraction: float
) -> SkillScore:
    if not profile.skill_ratings:
        return keyword_fallback(job, cap, keyword_cap, fallback_max_fraction)

    requirements = job_requirement_strings(job)
    if not requirements:
        return SkillScore()

    skills: Dict[str, Tuple[str, float]] = {
        name.lower(): (name, _rating_factor(rating))
        for name, rating in profile.skill_ratings.items()
    }

    credit = 0.0
    matched: List[str] = []
    missing: List[str] = []
    for requirement in requirements:
        req_lower = requirement.lower()
        best: Optional[Tuple[str, float]] = None
        for skill_lower, (name, factor) in skills.items():
            if skill_lower in req_lower and (best is None or factor > best[1]):
                best = (name, factor)
        if best is None:
            missing.append(requirement)
            continue
        credit += best[1]
        if best[0] not in matched:
            matched.append(best[0])

    covered = len(requirements) - len(missing)
    reasons = []
    if covered:
        reasons.append(f"Matches {covered} of {len(requirements)} requirements ({', '.join(matched)})")

    return SkillScore(
        points=cap * credit / len(requirements),
        reasons=reasons,
        matched=matched,
        missing=missing,
    )


def score_role(profile: CandidateProfile, job: JobRecord, cap: float) -> CategoryScore:
    title = job.title.lower()

    if title:
        for role in profile.target_roles:
            role_lower = role.lower()
            if role_lower in title or title in role_lower:
                return CategoryScore(cap, [f"Title matches preferred role '{role}'"])

        if any(_keyword_in(kw, title) for kw in GENERIC_ROLE_KEYWORDS):
            fraction = ROLE_GENERIC_ENTRY if profile.is_entry_level else ROLE_GENERIC_EXPERIENCED
            return CategoryScore(cap * fraction, ["Title is a general engineering role"])

    if profile.is_entry_level:
        return CategoryScore(cap * ROLE_ENTRY_FLOOR, ["Open to any role at entry level"])

    return CategoryScore()


def job_level_signal(job: JobRecord) -> Optional[str]:
    """'entry', 'senior' or None when the job text names no level."""
    text = f"{job.title} {job.description}".lower()
    if ENTRY_LEVEL_PATTERN.search(text):
        return 'entry'
    if SENIOR_LEVEL_PATTERN.search(text):
        return 'senior'
    return None


def score_level(profile: CandidateProfile, job: JobRecord, cap: float) -> CategoryScore:
    signal = job_level_signal(job)

    if signal is None:
        return CategoryScore(cap * LEVEL_NEUTRAL)

    if signal == 'entry' and profile.is_entry_level:
        return CategoryScore(cap, ["Entry-level opening suits your career stage"])

    if signal == 'senior' and profile.career_level in SENIOR_LEVELS:
        return CategoryScore(cap, ["Senior opening suits your career stage"])

    return CategoryScore()


def required_experience_years(job: JobRecord) -> Optional[int]:
    if job.min_experience_years is not None:
        return job.min_experience_years

    text = " ".join([job.description] + list(job.requirements)).lower()
    found = YEARS_PATTERN.search(text)
    if found:
        return int(found.group(1))
    return None


def score_experience(
    profile: CandidateProfile,
    job: JobRecord,
    cap: float,
    baseline_years: int
) -> CategoryScore:
    years = profile.experience_years
    required = required_experience_years(job)

    if required is None:
        if baseline_years <= 0:
            return CategoryScore(cap)
        return CategoryScore(cap * _clamp(years / baseline_years, 0.0, 1.0))

    if required == 0 or years >= required:
        return CategoryScore(cap, [f"Meets the {required}+ years experience requirement"])

    return CategoryScore(cap * years / required)


def score_location(profile: CandidateProfile, job: JobRecord, cap: float) -> CategoryScore:
    location = (job.location or MISSING_LOCATION).lower()

    if any(indicator in location for indicator in REMOTE_INDICATORS):
        return CategoryScore(cap, ["Remote-friendly location"])

    for preferred in profile.target_locations:
        pref = preferred.lower()
        if pref == 'any':
            return CategoryScore(cap, ["Open to any location"])
        if pref in location or location in pref:
            return CategoryScore(cap, [f"Located in preferred area '{preferred}'"])

    if profile.is_entry_level:
        return CategoryScore(cap * LOCATION_ENTRY_FLEXIBILITY)

    return CategoryScore()


def score_work_mode(profile: CandidateProfile, job: JobRecord, cap: float) -> CategoryScore:
    employment = job.employment_type.lower()
    if not any(kw in employment for kw in EMPLOYMENT_TYPE_KEYWORDS):
        return CategoryScore()

    if profile.is_entry_level:
        return CategoryScore(cap, [f"{job.employment_type} position"])
    return CategoryScore(cap * WORK_MODE_EXPERIENCED, [f"{job.employment_type} position"])
