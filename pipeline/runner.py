"""Fleet rescoring runner.

Shared by main.py and the web application: rescore every active candidate,
then announce new high-score matches for the candidates that completed.
"""

import time
import logging
import threading
from typing import Callable, Optional, Sequence
from dataclasses import dataclass

from core.app_context import AppContext
from core.exceptions import StorageFailureError
from core.matching.orchestrator import FleetBatchStats
from notification.dispatcher import notify_high_score_matches

logger = logging.getLogger(__name__)


@dataclass
class FleetRunResult:
    """Result of running a fleet rescoring."""
    success: bool
    stats: Optional[FleetBatchStats] = None
    notified_count: int = 0
    error: Optional[str] = None
    execution_time: float = 0.0


def notify_candidates(ctx: AppContext, candidate_ids: Sequence[str], stop_event: threading.Event) -> int:
    if ctx.notifier is None:
        return 0

    notified = 0
    matching = ctx.config.matching
    for candidate_id in candidate_ids:
        if stop_event.is_set():
            logger.info("Stop requested, skipping remaining notifications")
            break
        try:
            notified += notify_high_score_matches(
                ctx.uow_factory,
                ctx.notifier,
                candidate_id,
                min_score=matching.notify_min_score,
                limit=matching.notify_limit
            )
        except StorageFailureError as e:
            logger.error(f"Notification lookup failed for candidate {candidate_id}: {e}")
    return notified


def run_fleet_rescoring(
    ctx: AppContext,
    stop_event: Optional[threading.Event] = None,
    status_callback: Optional[Callable[[str], None]] = None,
    job_ids: Optional[Sequence[str]] = None,
    candidate_limit: Optional[int] = None
) -> FleetRunResult:
    """Rescore all active candidates as a self-contained operation.

    Args:
        ctx: Application context with config, orchestrator and notifier
        stop_event: Optional threading event to signal early termination
        status_callback: Receives step names as the run progresses
        job_ids: Restrict scoring to these jobs (e.g. newly ingested ones)

    Returns:
        FleetRunResult with success status and fleet statistics
    """
    if stop_event is None:
        stop_event = threading.Event()

    run_start = time.time()

    logger.info("=" * 60)
    logger.info("STARTING FLEET RESCORING")
    logger.info("=" * 60)

    try:
        if status_callback:
            status_callback("rescoring")
        logger.info("=== STEP 1: Scoring candidates against active jobs ===")
        stats = ctx.orchestrator.match_all_candidates_to_jobs(
            job_ids=job_ids,
            candidate_limit=candidate_limit,
            stop_event=stop_event
        )

        if status_callback:
            status_callback("notifying")
        logger.info("=== STEP 2: Announcing high-score matches ===")
        notified = notify_candidates(ctx, stats.processed_candidate_ids, stop_event)

        execution_time = time.time() - run_start
        logger.info("=" * 60)
        logger.info(
            f"FLEET RESCORING COMPLETE: {stats.candidates_processed}/{stats.candidates_total} candidates, "
            f"{stats.total_matches} matches, {notified} notifications in {execution_time:.2f}s"
        )
        logger.info("=" * 60)

        return FleetRunResult(
            success=True,
            stats=stats,
            notified_count=notified,
            error="Cancelled by user" if stats.cancelled else None,
            execution_time=execution_time
        )

    except StorageFailureError as e:
        logger.error(f"Fleet rescoring aborted: {e}")
        return FleetRunResult(
            success=False,
            error=str(e),
            execution_time=time.time() - run_start
        )
