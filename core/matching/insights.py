"""
Read-side insights over a candidate's stored matches.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

logger = logging.getLogger(__name__)


@dataclass
class SkillRecommendation:
    skill: str
    frequency: int


@dataclass
class MatchingStats:
    candidate_id: str
    total_matches: int = 0
    average_score: float = 0.0
    top_score: float = 0.0
    distribution: Dict[str, int] = field(default_factory=dict)


class MatchInsightsService:
    """Summaries computed from the match store for one candidate."""

    def __init__(self, uow_factory):
        self.uow_factory = uow_factory

    def get_top_matches(self, candidate_id: str, limit: int = 50, min_score: float = 50.0) -> List:
        with self.uow_factory() as uow:
            return uow.matches.get_top_matches(candidate_id, limit=limit, min_score=min_score)

    def get_matching_stats(self, candidate_id: str) -> MatchingStats:
        with self.uow_factory() as uow:
            summary = uow.matches.get_score_summary(candidate_id)
        return MatchingStats(
            candidate_id=str(candidate_id),
            total_matches=summary.total_matches,
            average_score=summary.average_score,
            top_score=summary.top_score,
            distribution=summary.distribution,
        )

    def get_skill_recommendations(
        self,
        candidate_id: str,
        min_score: float = 70.0,
        sample_size: int = 20,
        top_n: int = 10
    ) -> List[SkillRecommendation]:
        """
        Skills most often missing from the candidate's strongest matches.

        Counting is case-insensitive; the first spelling seen is reported.
        """
        with self.uow_factory() as uow:
            matches = uow.matches.get_top_matches(candidate_id, limit=sample_size, min_score=min_score)
            missing_lists = [list(m.missing_skills or []) for m in matches]

        counts: Counter = Counter()
        spelling: Dict[str, str] = {}
        for missing in missing_lists:
            for skill in missing:
                key = str(skill).strip().lower()
                if not key:
                    continue
                spelling.setdefault(key, str(skill).strip())
                counts[key] += 1

        return [
            SkillRecommendation(skill=spelling[key], frequency=count)
            for key, count in counts.most_common(top_n)
        ]
