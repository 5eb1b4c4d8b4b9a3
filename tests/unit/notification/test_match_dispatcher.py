#!/usr/bin/env python3
"""
Unit tests for high-score match notifications.
"""

import unittest
from unittest.mock import MagicMock

from database.repositories import MatchRepository
from database.uow import uow_factory_for
from notification.dispatcher import (
    LoggingNotificationDispatcher,
    MatchNotification,
    NotificationDispatcher,
    notify_high_score_matches,
)
from tests import create_sqlite_session_factory, make_candidate, make_job, make_match


class TestNotifyHighScoreMatches(unittest.TestCase):
    """Unit tests for notify_high_score_matches."""

    def setUp(self):
        self.session_factory = create_sqlite_session_factory()
        self.uow_factory = uow_factory_for(self.session_factory)
        with self.session_factory() as session:
            self.candidate_id = make_candidate(session).id
            self.match_ids = {}
            for score in (90, 70, 50):
                job = make_job(session, title=f"Role {score}", company="TechCorp")
                self.match_ids[score] = make_match(session, self.candidate_id, job.id, score).id
            session.commit()

    def test_01_dispatches_matches_above_threshold(self):
        """Test only matches at or above the threshold are announced, with priority."""
        print("\n📊 UNIT Test 1: Dispatch Above Threshold")

        dispatcher = MagicMock(spec=NotificationDispatcher)
        sent = notify_high_score_matches(self.uow_factory, dispatcher, self.candidate_id, min_score=60)

        self.assertEqual(sent, 2)
        notifications = [c.args[0] for c in dispatcher.dispatch.call_args_list]
        self.assertEqual([n.total_score for n in notifications], [90.0, 70.0])
        self.assertEqual([n.priority for n in notifications], ["high", "normal"])
        self.assertEqual(notifications[0].title, "Role 90")
        self.assertIsInstance(notifications[0], MatchNotification)

        print(f"  ✓ Sent {sent} notifications")

    def test_02_matches_are_announced_once(self):
        """Test a second run does not announce the same matches again."""
        print("\n📊 UNIT Test 2: Announce Once")

        dispatcher = MagicMock(spec=NotificationDispatcher)
        notify_high_score_matches(self.uow_factory, dispatcher, self.candidate_id, min_score=60)
        again = notify_high_score_matches(self.uow_factory, dispatcher, self.candidate_id, min_score=60)

        self.assertEqual(again, 0)
        with self.session_factory() as session:
            repo = MatchRepository(session)
            self.assertTrue(repo.get_by_id(self.match_ids[90]).notified)
            self.assertFalse(repo.get_by_id(self.match_ids[50]).notified)

        print("  ✓ No duplicates")

    def test_03_failed_dispatch_is_retried_later(self):
        """Test a dispatcher error is logged and leaves that match unannounced."""
        print("\n📊 UNIT Test 3: Dispatch Failure")

        dispatcher = MagicMock(spec=NotificationDispatcher)

        def flaky(notification):
            if notification.total_score == 90:
                raise ConnectionError("gateway down")

        dispatcher.dispatch.side_effect = flaky

        sent = notify_high_score_matches(self.uow_factory, dispatcher, self.candidate_id, min_score=60)

        self.assertEqual(sent, 1)
        with self.session_factory() as session:
            repo = MatchRepository(session)
            self.assertFalse(repo.get_by_id(self.match_ids[90]).notified)
            self.assertTrue(repo.get_by_id(self.match_ids[70]).notified)

        print("  ✓ Failed notification stays pending")

    def test_04_limit(self):
        """Test the limit caps notifications per run."""
        print("\n📊 UNIT Test 4: Limit")

        sent = notify_high_score_matches(
            self.uow_factory, LoggingNotificationDispatcher(), self.candidate_id, min_score=0, limit=1
        )

        self.assertEqual(sent, 1)

        print("  ✓ One notification sent")


if __name__ == '__main__':
    unittest.main()
