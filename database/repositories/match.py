import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import select, func, case, and_, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import (
    InvalidStatusTransitionError,
    MatchAccessDeniedError,
    MatchNotFoundError,
    StorageFailureError,
    ValidationError,
)
from core.matching.status import MatchStatus, can_transition
from core.scorer.models import MatchScore
from database.models import JobMatch, new_id, utcnow
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
UPSERT_CHUNK_SIZE = 500

SCORE_BUCKETS = ((0, 25), (25, 50), (50, 75), (75, 100))

# Columns rewritten when an existing pair is rescored; status, notification
# state and lifecycle timestamps are left alone.
RESCORED_COLUMNS = (
    'skill_score', 'role_score', 'level_score', 'experience_score',
    'location_score', 'work_mode_score', 'total_score', 'classification',
    'matched_skills', 'missing_skills', 'reasons', 'confidence',
    'fallback_used', 'updated_at',
)

MatchEntry = Tuple[str, str, MatchScore]


@dataclass
class UpsertCounts:
    created: int = 0
    updated: int = 0


@dataclass
class MatchPage:
    """One page of a candidate's matches plus pagination metadata."""
    items: List[JobMatch] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50
    min_score: float = 0.0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass
class ScoreSummary:
    total_matches: int = 0
    average_score: float = 0.0
    top_score: float = 0.0
    distribution: Dict[str, int] = field(default_factory=dict)


def _score_values(result: MatchScore) -> Dict[str, Any]:
    return {
        'skill_score': result.skill_score,
        'role_score': result.role_score,
        'level_score': result.level_score,
        'experience_score': result.experience_score,
        'location_score': result.location_score,
        'work_mode_score': result.work_mode_score,
        'total_score': result.total_score,
        'classification': result.classification.value,
        'matched_skills': list(result.matched_skills),
        'missing_skills': list(result.missing_skills),
        'reasons': list(result.reasons),
        'confidence': result.confidence,
        'fallback_used': result.fallback_used,
    }


def validate_page_params(min_score: float, page: int, page_size: int) -> None:
    if page < 1:
        raise ValidationError(f"page must be >= 1, got {page}")
    if not (1 <= page_size <= MAX_PAGE_SIZE):
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")
    if not (0 <= min_score <= 100):
        raise ValidationError(f"min_score must be between 0 and 100, got {min_score}")


class MatchRepository(BaseRepository):
    def get_by_id(self, match_id: str) -> Optional[JobMatch]:
        stmt = select(JobMatch).where(JobMatch.id == str(match_id))
        return self.db.execute(stmt).scalar_one_or_none()

    def get_for_pair(self, candidate_id: str, job_id: str) -> Optional[JobMatch]:
        stmt = select(JobMatch).where(
            JobMatch.candidate_id == str(candidate_id),
            JobMatch.job_id == str(job_id)
        ).execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def upsert(self, candidate_id: str, job_id: str, result: MatchScore) -> JobMatch:
        self.bulk_upsert([(candidate_id, job_id, result)])
        return self.get_for_pair(candidate_id, job_id)

    def bulk_upsert(self, entries: Iterable[MatchEntry]) -> UpsertCounts:
        """
        Create or update one row per (candidate, job) in a single transaction.

        A pair that appears more than once keeps its last result. Returns how
        many pairs were new and how many already existed.

        Raises:
            StorageFailureError: If the database rejects the statement.
        """
        latest: Dict[Tuple[str, str], MatchScore] = {}
        for candidate_id, job_id, result in entries:
            latest[(str(candidate_id), str(job_id))] = result

        if not latest:
            return UpsertCounts()

        try:
            existing = self._existing_pairs(latest.keys())
            now = utcnow()
            rows = [
                {
                    'id': new_id(),
                    'candidate_id': candidate_id,
                    'job_id': job_id,
                    **_score_values(result),
                    'status': MatchStatus.MATCHED.value,
                    'notified': False,
                    'created_at': now,
                    'updated_at': now,
                }
                for (candidate_id, job_id), result in latest.items()
            ]
            for start in range(0, len(rows), UPSERT_CHUNK_SIZE):
                self._execute_upsert(rows[start:start + UPSERT_CHUNK_SIZE])
        except SQLAlchemyError as e:
            logger.error(f"Bulk upsert of {len(latest)} matches failed: {e}")
            raise StorageFailureError(f"Bulk upsert of {len(latest)} matches failed: {e}") from e

        counts = UpsertCounts(created=len(latest) - len(existing), updated=len(existing))
        logger.debug(f"Upserted {len(latest)} matches ({counts.created} created, {counts.updated} updated)")
        return counts

    def _existing_pairs(self, pairs: Iterable[Tuple[str, str]]) -> Set[Tuple[str, str]]:
        by_candidate: Dict[str, List[str]] = {}
        for candidate_id, job_id in pairs:
            by_candidate.setdefault(candidate_id, []).append(job_id)

        found: Set[Tuple[str, str]] = set()
        for candidate_id, job_ids in by_candidate.items():
            for start in range(0, len(job_ids), UPSERT_CHUNK_SIZE):
                stmt = select(JobMatch.job_id).where(
                    JobMatch.candidate_id == candidate_id,
                    JobMatch.job_id.in_(job_ids[start:start + UPSERT_CHUNK_SIZE])
                )
                found.update((candidate_id, job_id) for job_id in self.db.execute(stmt).scalars())
        return found

    def _execute_upsert(self, rows: List[Dict[str, Any]]) -> None:
        dialect = self.dialect_name
        if dialect == 'postgresql':
            stmt = pg_insert(JobMatch).values(rows)
        elif dialect == 'sqlite':
            stmt = sqlite_insert(JobMatch).values(rows)
        else:
            raise StorageFailureError(f"Upsert is not supported on dialect '{dialect}'")

        stmt = stmt.on_conflict_do_update(
            index_elements=['candidate_id', 'job_id'],
            set_={column: stmt.excluded[column] for column in RESCORED_COLUMNS}
        )
        self.db.execute(stmt)

    def update_status(
        self,
        match_id: str,
        new_status: str,
        candidate_id: Optional[str] = None
    ) -> JobMatch:
        """
        Move a match along its lifecycle.

        Raises:
            ValidationError: Unknown status value.
            MatchNotFoundError: No match with this id.
            MatchAccessDeniedError: ``candidate_id`` does not own the match.
            InvalidStatusTransitionError: The lifecycle forbids the change.
        """
        try:
            requested = MatchStatus(new_status)
        except ValueError:
            raise ValidationError(
                f"Invalid status '{new_status}'. "
                f"Valid options: {', '.join(s.value for s in MatchStatus)}"
            )

        stmt = select(JobMatch).where(JobMatch.id == str(match_id)).with_for_update(of=JobMatch)
        match = self.db.execute(stmt).scalar_one_or_none()
        if match is None:
            raise MatchNotFoundError(match_id)
        if candidate_id is not None and match.candidate_id != str(candidate_id):
            raise MatchAccessDeniedError(f"Match {match_id} does not belong to candidate {candidate_id}")

        current = MatchStatus(match.status)
        if not can_transition(current, requested):
            raise InvalidStatusTransitionError(current.value, requested.value)
        if current == requested:
            return match

        now = utcnow()
        match.status = requested.value
        if requested == MatchStatus.VIEWED:
            match.viewed_at = now
        elif requested == MatchStatus.APPLIED:
            match.applied_at = now

        try:
            self.db.flush()
        except SQLAlchemyError as e:
            raise StorageFailureError(f"Failed to update status of match {match_id}: {e}") from e

        logger.info(f"Match {match_id} status {current.value} -> {requested.value}")
        return match

    def mark_viewed_on_read(self, match_id: str, candidate_id: str) -> JobMatch:
        """Fetch a match for its owner, moving it from matched to viewed on first read."""
        match = self.get_by_id(match_id)
        if match is None:
            raise MatchNotFoundError(match_id)
        if match.candidate_id != str(candidate_id):
            raise MatchAccessDeniedError(f"Match {match_id} does not belong to candidate {candidate_id}")
        if match.status == MatchStatus.MATCHED.value:
            return self.update_status(match_id, MatchStatus.VIEWED.value, candidate_id)
        return match

    def mark_notified(self, match_ids: Sequence[str]) -> int:
        if not match_ids:
            return 0
        stmt = update(JobMatch).where(JobMatch.id.in_(list(match_ids))).values(notified=True)
        return self.db.execute(stmt).rowcount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def query_by_candidate(
        self,
        candidate_id: str,
        min_score: float = 0.0,
        sort_descending: bool = True,
        page: int = 1,
        page_size: int = 50
    ) -> MatchPage:
        validate_page_params(min_score, page, page_size)

        conditions = (
            JobMatch.candidate_id == str(candidate_id),
            JobMatch.total_score >= min_score,
        )
        total = self.db.execute(
            select(func.count(JobMatch.id)).where(*conditions)
        ).scalar_one()

        order = JobMatch.total_score.desc() if sort_descending else JobMatch.total_score.asc()
        stmt = (
            select(JobMatch)
            .where(*conditions)
            .order_by(order, JobMatch.created_at.desc(), JobMatch.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        items = list(self.db.execute(stmt).scalars().all())

        return MatchPage(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            min_score=min_score
        )

    def get_top_matches(self, candidate_id: str, limit: int = 50, min_score: float = 50.0) -> List[JobMatch]:
        stmt = (
            select(JobMatch)
            .where(JobMatch.candidate_id == str(candidate_id), JobMatch.total_score >= min_score)
            .order_by(JobMatch.total_score.desc(), JobMatch.created_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_unnotified_matches(self, candidate_id: str, min_score: float, limit: int) -> List[JobMatch]:
        stmt = (
            select(JobMatch)
            .where(
                JobMatch.candidate_id == str(candidate_id),
                JobMatch.total_score >= min_score,
                JobMatch.notified.is_(False)
            )
            .order_by(JobMatch.total_score.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_score_summary(self, candidate_id: str) -> ScoreSummary:
        buckets = []
        for low, high in SCORE_BUCKETS:
            upper = JobMatch.total_score <= high if high == 100 else JobMatch.total_score < high
            buckets.append(
                func.sum(case((and_(JobMatch.total_score >= low, upper), 1), else_=0))
            )

        row = self.db.execute(
            select(
                func.count(JobMatch.id),
                func.avg(JobMatch.total_score),
                func.max(JobMatch.total_score),
                *buckets
            ).where(JobMatch.candidate_id == str(candidate_id))
        ).one()

        count, average, top = row[0], row[1], row[2]
        distribution = {
            f"{low}-{high}": int(row[3 + i] or 0)
            for i, (low, high) in enumerate(SCORE_BUCKETS)
        }
        return ScoreSummary(
            total_matches=int(count or 0),
            average_score=round(float(average), 2) if average is not None else 0.0,
            top_score=float(top) if top is not None else 0.0,
            distribution=distribution
        )
