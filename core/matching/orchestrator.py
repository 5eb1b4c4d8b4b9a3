#!/usr/bin/env python3
"""
Batch match orchestrator.

Scores one candidate against the active job corpus, or every active
candidate against it, and bulk-persists the matches that clear the
minimum score.

Failure policy:
- A job that fails to score is logged, counted in ``errors`` and skipped.
- A storage failure while persisting is not retried. It is logged,
  counted, and raised as StorageFailureError carrying the stats record;
  re-triggering is safe because the upsert is idempotent.
- Fleet runs isolate each candidate: one candidate failing never stops
  the others.
"""

import logging
import threading
import time
import uuid
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from core.config_loader import MatchingConfig
from core.exceptions import CandidateNotFoundError, StorageFailureError
from core.scorer import MatchScore, ScoringService
from core.settings_provider import SettingsProvider, minimum_match_score
from database.models import utcnow

logger = logging.getLogger(__name__)


@dataclass
class CandidateBatchStats:
    """Outcome of scoring one candidate against the corpus."""
    candidate_id: str
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    min_score: float = 0.0
    jobs_processed: int = 0
    jobs_matched: int = 0
    jobs_created: int = 0
    jobs_updated: int = 0
    average_score: float = 0.0
    errors: int = 0
    storage_error: Optional[str] = None
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    duration_ms: int = 0

    def finish(self, start: float) -> "CandidateBatchStats":
        self.finished_at = utcnow()
        self.duration_ms = int((time.time() - start) * 1000)
        return self


@dataclass
class FleetBatchStats:
    """Aggregate of a fleet-wide rescoring run."""
    candidates_total: int = 0
    candidates_processed: int = 0
    candidates_failed: int = 0
    candidates_skipped: int = 0
    total_matches: int = 0
    total_created: int = 0
    total_updated: int = 0
    total_errors: int = 0
    fleet_average_score: float = 0.0
    cancelled: bool = False
    duration_seconds: float = 0.0
    failures: Dict[str, str] = field(default_factory=dict)
    processed_candidate_ids: List[str] = field(default_factory=list)

    def add(self, stats: CandidateBatchStats) -> None:
        self.total_matches += stats.jobs_matched
        self.total_created += stats.jobs_created
        self.total_updated += stats.jobs_updated
        self.total_errors += stats.errors


class BatchMatchOrchestrator:
    """Drives the scoring function across the job corpus and persists results."""

    def __init__(
        self,
        uow_factory,
        settings: SettingsProvider,
        scorer: Optional[ScoringService] = None,
        config: Optional[MatchingConfig] = None
    ):
        self.uow_factory = uow_factory
        self.settings = settings
        self.config = config or MatchingConfig()
        self.scorer = scorer or ScoringService(self.config.scorer)

    def resolve_min_score(self, min_score: Optional[float] = None) -> float:
        if min_score is not None:
            return min_score
        return minimum_match_score(self.settings, self.config.min_score)

    def match_candidate_to_all_jobs(
        self,
        candidate_id: str,
        min_score: Optional[float] = None,
        job_limit: Optional[int] = None,
        job_ids: Optional[Sequence[str]] = None
    ) -> CandidateBatchStats:
        """
        Score one candidate against up to ``job_limit`` active jobs.

        Raises:
            CandidateNotFoundError: The candidate does not exist.
            StorageFailureError: Loading or persisting failed; ``stats`` is attached.
        """
        start = time.time()
        stats = CandidateBatchStats(candidate_id=str(candidate_id), min_score=self.resolve_min_score(min_score))
        if job_limit is None:
            job_limit = self.config.job_limit

        try:
            with self.uow_factory() as uow:
                profile = uow.profiles.get_profile(candidate_id)
                if profile is None:
                    raise CandidateNotFoundError(candidate_id)
                jobs = uow.corpus.list_active_jobs(job_limit, job_ids)
        except SQLAlchemyError as e:
            stats.errors += 1
            stats.storage_error = str(e)
            logger.error(f"Failed to load matching inputs for candidate {candidate_id}: {e}")
            raise StorageFailureError(f"Failed to load matching inputs: {e}", stats=stats.finish(start)) from e

        logger.info(f"Scoring candidate {candidate_id} against {len(jobs)} jobs (min score {stats.min_score})")

        retained: List[Tuple[str, str, MatchScore]] = []
        for job in jobs:
            stats.jobs_processed += 1
            try:
                result = self.scorer.score(profile, job)
            except Exception as e:
                stats.errors += 1
                logger.exception(f"Error scoring job {getattr(job, 'job_id', '?')} for candidate {candidate_id}: {e}")
                continue
            if result.total_score >= stats.min_score:
                retained.append((profile.candidate_id, job.job_id, result))

        stats.jobs_matched = len(retained)
        if retained:
            stats.average_score = round(sum(r.total_score for _, _, r in retained) / len(retained), 2)
            try:
                with self.uow_factory() as uow:
                    counts = uow.matches.bulk_upsert(retained)
            except (StorageFailureError, SQLAlchemyError) as e:
                stats.errors += 1
                stats.storage_error = str(e)
                logger.error(f"Persisting {len(retained)} matches for candidate {candidate_id} failed: {e}")
                raise StorageFailureError(f"Failed to persist matches: {e}", stats=stats.finish(start)) from e
            stats.jobs_created = counts.created
            stats.jobs_updated = counts.updated

        stats.finish(start)
        logger.info(
            f"Candidate {candidate_id}: processed={stats.jobs_processed} matched={stats.jobs_matched} "
            f"created={stats.jobs_created} updated={stats.jobs_updated} "
            f"avg={stats.average_score} errors={stats.errors} ({stats.duration_ms}ms)"
        )
        return stats

    def match_all_candidates_to_jobs(
        self,
        job_ids: Optional[Sequence[str]] = None,
        candidate_limit: Optional[int] = None,
        min_score: Optional[float] = None,
        stop_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[str, int, int], None]] = None
    ) -> FleetBatchStats:
        """
        Rescore every active candidate using a bounded worker pool.

        Setting ``stop_event`` stops new candidates from being started;
        candidates already running finish and keep their results.
        """
        if stop_event is None:
            stop_event = threading.Event()

        start = time.time()
        fleet = FleetBatchStats()
        if candidate_limit is None:
            candidate_limit = self.config.candidate_limit
        min_score = self.resolve_min_score(min_score)

        try:
            with self.uow_factory() as uow:
                candidate_ids = uow.corpus.list_active_candidates(candidate_limit)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list active candidates: {e}")
            raise StorageFailureError(f"Failed to list active candidates: {e}") from e

        fleet.candidates_total = len(candidate_ids)
        logger.info(
            f"Fleet rescoring {len(candidate_ids)} candidates with {self.config.max_workers} workers"
        )

        weighted_sum = 0.0
        pending: Dict[Future, str] = {}
        queue = iter(candidate_ids)
        submitted = 0

        def _collect(future: Future, candidate_id: str) -> None:
            nonlocal weighted_sum
            try:
                stats = future.result()
            except StorageFailureError as e:
                fleet.candidates_failed += 1
                fleet.failures[candidate_id] = str(e)
                if e.stats is not None:
                    fleet.total_errors += e.stats.errors
            except Exception as e:
                fleet.candidates_failed += 1
                fleet.failures[candidate_id] = str(e)
                logger.exception(f"Rescoring candidate {candidate_id} failed: {e}")
            else:
                fleet.candidates_processed += 1
                fleet.processed_candidate_ids.append(candidate_id)
                fleet.add(stats)
                weighted_sum += stats.average_score * stats.jobs_matched
            if progress_callback:
                progress_callback(candidate_id, fleet.candidates_processed + fleet.candidates_failed, fleet.candidates_total)

        with ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix="rescore") as pool:
            while True:
                while len(pending) < self.config.max_workers and not stop_event.is_set():
                    candidate_id = next(queue, None)
                    if candidate_id is None:
                        break
                    future = pool.submit(
                        self.match_candidate_to_all_jobs, candidate_id, min_score, None, job_ids
                    )
                    pending[future] = candidate_id
                    submitted += 1

                if not pending:
                    break

                done, _ = wait(list(pending), return_when=FIRST_COMPLETED)
                for future in done:
                    _collect(future, pending.pop(future))

        if stop_event.is_set() and submitted < len(candidate_ids):
            fleet.cancelled = True
            fleet.candidates_skipped = len(candidate_ids) - submitted
            logger.warning(f"Fleet rescoring cancelled; {fleet.candidates_skipped} candidates not started")

        if fleet.total_matches:
            fleet.fleet_average_score = round(weighted_sum / fleet.total_matches, 2)
        fleet.duration_seconds = round(time.time() - start, 3)

        logger.info(
            f"Fleet rescoring finished: processed={fleet.candidates_processed} "
            f"failed={fleet.candidates_failed} skipped={fleet.candidates_skipped} "
            f"matches={fleet.total_matches} avg={fleet.fleet_average_score} "
            f"({fleet.duration_seconds}s)"
        )
        return fleet
