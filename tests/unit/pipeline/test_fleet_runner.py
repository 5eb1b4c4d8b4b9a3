#!/usr/bin/env python3
"""
Unit tests for the fleet rescoring runner and its lock.
"""

import os
import tempfile
import threading
import unittest
from unittest.mock import MagicMock, patch

from core.app_context import AppContext
from core.config_loader import AppConfig, MatchingConfig
from core.exceptions import StorageFailureError
from core.settings_provider import MINIMUM_MATCH_SCORE, StaticSettingsProvider
from notification.dispatcher import NotificationDispatcher
from pipeline.control import PipelineController
from pipeline.runner import run_fleet_rescoring
from tests import create_sqlite_session_factory, make_candidate, make_job


class TestRunFleetRescoring(unittest.TestCase):
    """Unit tests for run_fleet_rescoring."""

    def setUp(self):
        self.session_factory = create_sqlite_session_factory()
        with self.session_factory() as session:
            make_candidate(session, email="a@example.com")
            make_candidate(session, email="b@example.com")
            make_job(session)
            session.commit()

        self.notifier = MagicMock(spec=NotificationDispatcher)
        # One worker: every session shares a single SQLite connection
        config = AppConfig(matching=MatchingConfig(max_workers=1, notify_min_score=60))
        self.ctx = AppContext.build(
            config,
            session_factory=self.session_factory,
            settings=StaticSettingsProvider({MINIMUM_MATCH_SCORE: 50}),
            notifier=self.notifier
        )

    def test_01_rescoring_and_notifications(self):
        """Test a full run rescoring every candidate and announcing their matches."""
        print("\n📊 UNIT Test 1: Full Run")

        steps = []
        result = run_fleet_rescoring(self.ctx, status_callback=steps.append)

        self.assertTrue(result.success)
        self.assertIsNone(result.error)
        self.assertEqual(result.stats.candidates_processed, 2)
        self.assertEqual(result.stats.total_matches, 2)
        self.assertEqual(result.notified_count, 2)
        self.assertEqual(self.notifier.dispatch.call_count, 2)
        self.assertEqual(steps, ["rescoring", "notifying"])

        print(f"  ✓ {result.stats.total_matches} matches, {result.notified_count} notified")

    def test_02_second_run_does_not_renotify(self):
        """Test matches announced by an earlier run are not announced again."""
        print("\n📊 UNIT Test 2: Rerun")

        run_fleet_rescoring(self.ctx)
        result = run_fleet_rescoring(self.ctx)

        self.assertTrue(result.success)
        self.assertEqual(result.stats.total_updated, 2)
        self.assertEqual(result.notified_count, 0)

        print("  ✓ Nothing re-announced")

    def test_03_cancelled_run(self):
        """Test a stopped run reports cancellation and skips notifications."""
        print("\n📊 UNIT Test 3: Cancelled Run")

        stop_event = threading.Event()
        stop_event.set()

        result = run_fleet_rescoring(self.ctx, stop_event=stop_event)

        self.assertTrue(result.success)
        self.assertTrue(result.stats.cancelled)
        self.assertEqual(result.error, "Cancelled by user")
        self.assertEqual(result.notified_count, 0)

        print(f"  ✓ Error: {result.error}")

    def test_04_storage_failure(self):
        """Test a failure listing candidates fails the run."""
        print("\n📊 UNIT Test 4: Storage Failure")

        with patch.object(
            self.ctx.orchestrator, "match_all_candidates_to_jobs",
            side_effect=StorageFailureError("database unavailable")
        ):
            result = run_fleet_rescoring(self.ctx)

        self.assertFalse(result.success)
        self.assertIn("database unavailable", result.error)
        self.assertIsNone(result.stats)

        print(f"  ✓ Error: {result.error}")

    def test_05_without_notifier(self):
        """Test runs without a dispatcher skip notifications."""
        print("\n📊 UNIT Test 5: No Notifier")

        self.ctx.notifier = None
        result = run_fleet_rescoring(self.ctx)

        self.assertTrue(result.success)
        self.assertEqual(result.notified_count, 0)

        print("  ✓ Notifications skipped")


class TestPipelineController(unittest.TestCase):
    """Unit tests for the rescore lock file."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.lock_path = os.path.join(self.tmpdir.name, "rescore.lock")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_01_lock_is_exclusive(self):
        """Test a second holder cannot take the lock until it is released."""
        print("\n📊 UNIT Test 1: Exclusive Lock")

        first = PipelineController(self.lock_path)
        second = PipelineController(self.lock_path)

        self.assertTrue(first.acquire_lock("cli", {"candidates": 10}))
        self.assertFalse(second.acquire_lock("web"))

        info = second.get_lock_info()
        self.assertEqual(info["source"], "cli")
        self.assertEqual(info["candidates"], 10)

        first.release_lock()
        self.assertTrue(second.acquire_lock("web"))
        second.release_lock()

        print("  ✓ Lock handed over after release")

    def test_02_no_lock_info_when_unlocked(self):
        """Test lock info is empty without a holder."""
        print("\n📊 UNIT Test 2: Unlocked")

        controller = PipelineController(self.lock_path)
        self.assertIsNone(controller.get_lock_info())

        controller.acquire_lock("cli")
        controller.release_lock()
        self.assertIsNone(controller.get_lock_info())

        print("  ✓ No owner reported")


if __name__ == '__main__':
    unittest.main()
