import logging
import signal
import sys
import argparse
import threading

from core.config_loader import load_config
from core.app_context import AppContext
from core.exceptions import MatchingError, PipelineLockedError
from core.settings_provider import MINIMUM_MATCH_SCORE, QUOTA_ENABLED, QUOTA_LIMIT, QUOTA_WINDOW_DAYS
from database.database import create_db_engine, create_session_factory
from database.init_db import init_db
from pipeline.control import PipelineController
from pipeline.runner import run_fleet_rescoring

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Set by SIGINT/SIGTERM so a fleet run stops starting new candidates
stop_event = threading.Event()


def signal_handler(sig, frame):
    logger.info("Shutdown signal received")
    stop_event.set()


def build_context(config_path: str):
    config = load_config(config_path)
    engine = create_db_engine(
        config.database.url,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow
    )
    ctx = AppContext.build(config, session_factory=create_session_factory(engine))
    return ctx, engine


def cmd_init_db(args):
    ctx, engine = build_context(args.config)
    quota = ctx.config.quota
    init_db(engine, ctx.settings, overrides={
        MINIMUM_MATCH_SCORE: ctx.config.matching.min_score,
        QUOTA_ENABLED: quota.enabled,
        QUOTA_WINDOW_DAYS: quota.window_days,
        QUOTA_LIMIT: quota.limit,
    })
    logger.info("Database initialized")
    return 0


def cmd_rescore(args):
    ctx, _ = build_context(args.config)
    stats = ctx.orchestrator.match_candidate_to_all_jobs(
        args.candidate,
        min_score=args.min_score,
        job_limit=args.job_limit
    )
    logger.info(
        f"Rescored {stats.candidate_id}: {stats.jobs_matched} matches "
        f"({stats.jobs_created} new, {stats.jobs_updated} updated), {stats.errors} errors"
    )
    return 0 if stats.errors == 0 else 1


def cmd_rescore_all(args):
    ctx, _ = build_context(args.config)
    controller = PipelineController()
    if not controller.acquire_lock("cli"):
        info = controller.get_lock_info() or {}
        raise PipelineLockedError(f"Fleet rescoring is already running ({info.get('source', 'unknown')})")

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    try:
        result = run_fleet_rescoring(
            ctx,
            stop_event=stop_event,
            job_ids=args.job_id or None,
            candidate_limit=args.candidate_limit
        )
    finally:
        controller.release_lock()

    if not result.success:
        logger.error(f"Fleet rescoring failed: {result.error}")
        return 1
    return 0


def cmd_grant(args):
    ctx, _ = build_context(args.config)
    allowlist = ctx.settings.grant_allowlist(args.identifier)
    logger.info(f"Tier override allowlist now has {len(allowlist)} entries")
    return 0


def cmd_revoke(args):
    ctx, _ = build_context(args.config)
    allowlist = ctx.settings.revoke_allowlist(args.identifier)
    logger.info(f"Tier override allowlist now has {len(allowlist)} entries")
    return 0


def cmd_serve(args):
    from web.backend.app import main as serve
    serve()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Candidate-to-job matching engine")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create tables and seed default settings")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("rescore", help="Rescore one candidate against all active jobs")
    p.add_argument("--candidate", required=True, help="Candidate id")
    p.add_argument("--min-score", type=float, default=None)
    p.add_argument("--job-limit", type=int, default=None)
    p.set_defaults(func=cmd_rescore)

    p = sub.add_parser("rescore-all", help="Rescore every active candidate")
    p.add_argument("--candidate-limit", type=int, default=None)
    p.add_argument("--job-id", action="append", help="Restrict to this job id (repeatable)")
    p.set_defaults(func=cmd_rescore_all)

    p = sub.add_parser("grant-premium", help="Add a candidate id or email to the tier override allowlist")
    p.add_argument("identifier")
    p.set_defaults(func=cmd_grant)

    p = sub.add_parser("revoke-premium", help="Remove a candidate id or email from the tier override allowlist")
    p.add_argument("identifier")
    p.set_defaults(func=cmd_revoke)

    p = sub.add_parser("serve", help="Run the web API")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except MatchingError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
