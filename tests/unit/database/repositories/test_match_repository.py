#!/usr/bin/env python3
"""
Unit tests for MatchRepository against an in-memory SQLite database.
"""

import unittest

from sqlalchemy import func, select

from core.exceptions import (
    InvalidStatusTransitionError,
    MatchAccessDeniedError,
    MatchNotFoundError,
    ValidationError,
)
from core.scorer import MatchScore, classify
from database.models import JobMatch
from database.repositories import MatchRepository
from tests import create_sqlite_session_factory, make_candidate, make_job, make_match


def _score(total: float, **overrides) -> MatchScore:
    values = dict(
        skill_score=total * 0.4,
        role_score=total * 0.2,
        level_score=total * 0.15,
        experience_score=total * 0.1,
        location_score=total * 0.08,
        work_mode_score=total * 0.07,
        total_score=total,
        classification=classify(total),
        matched_skills=["Python"],
        missing_skills=["Go"],
        reasons=["Title matches preferred role"],
        confidence=80.0,
    )
    values.update(overrides)
    return MatchScore(**values)


class TestMatchRepositoryUpsert(unittest.TestCase):
    """Unit tests for create-or-update semantics."""

    def setUp(self):
        self.session_factory = create_sqlite_session_factory()
        with self.session_factory() as session:
            self.candidate_id = make_candidate(session).id
            self.job_ids = [make_job(session, title=f"Engineer {i}").id for i in range(3)]
            session.commit()

    def _row_count(self, session) -> int:
        return session.execute(select(func.count(JobMatch.id))).scalar_one()

    def test_01_bulk_upsert_creates_then_updates(self):
        """Test a rerun updates every pair in place instead of duplicating."""
        print("\n📊 UNIT Test 1: Bulk Upsert Counts")

        entries = [(self.candidate_id, job_id, _score(70)) for job_id in self.job_ids]

        with self.session_factory() as session:
            repo = MatchRepository(session)
            first = repo.bulk_upsert(entries)
            session.commit()

        with self.session_factory() as session:
            repo = MatchRepository(session)
            second = repo.bulk_upsert([(c, j, _score(82)) for c, j, _ in entries])
            session.commit()
            rows = self._row_count(session)
            refreshed = repo.get_for_pair(self.candidate_id, self.job_ids[0])

        self.assertEqual((first.created, first.updated), (3, 0))
        self.assertEqual((second.created, second.updated), (0, 3))
        self.assertEqual(rows, 3)
        self.assertEqual(refreshed.total_score, 82)
        self.assertEqual(refreshed.classification, "excellent")

        print(f"  ✓ First run: {first}, second run: {second}")

    def test_02_duplicate_pairs_in_one_batch(self):
        """Test a pair listed twice keeps the last result and counts once."""
        print("\n📊 UNIT Test 2: Duplicate Pairs")

        job_id = self.job_ids[0]
        with self.session_factory() as session:
            repo = MatchRepository(session)
            counts = repo.bulk_upsert([
                (self.candidate_id, job_id, _score(55)),
                (self.candidate_id, job_id, _score(65)),
            ])
            session.commit()
            match = repo.get_for_pair(self.candidate_id, job_id)

        self.assertEqual((counts.created, counts.updated), (1, 0))
        self.assertEqual(match.total_score, 65)

        print(f"  ✓ Stored score: {match.total_score}")

    def test_03_rescore_keeps_lifecycle_state(self):
        """Test rescoring leaves status and notification state alone."""
        print("\n📊 UNIT Test 3: Rescore Keeps Status")

        job_id = self.job_ids[0]
        with self.session_factory() as session:
            repo = MatchRepository(session)
            match = repo.upsert(self.candidate_id, job_id, _score(60))
            repo.update_status(match.id, "viewed", candidate_id=self.candidate_id)
            repo.mark_notified([match.id])
            session.commit()
            match_id = match.id

        with self.session_factory() as session:
            repo = MatchRepository(session)
            repo.upsert(self.candidate_id, job_id, _score(90))
            session.commit()
            match = repo.get_by_id(match_id)

        self.assertEqual(match.total_score, 90)
        self.assertEqual(match.status, "viewed")
        self.assertTrue(match.notified)
        self.assertIsNotNone(match.viewed_at)

        print(f"  ✓ Status after rescore: {match.status}")

    def test_04_empty_batch(self):
        """Test an empty batch is a no-op."""
        print("\n📊 UNIT Test 4: Empty Batch")

        with self.session_factory() as session:
            counts = MatchRepository(session).bulk_upsert([])

        self.assertEqual((counts.created, counts.updated), (0, 0))

        print("  ✓ Nothing written")


class TestMatchRepositoryQueries(unittest.TestCase):
    """Unit tests for filtered, paged reads."""

    def setUp(self):
        self.session_factory = create_sqlite_session_factory()
        with self.session_factory() as session:
            self.candidate_id = make_candidate(session).id
            self.other_id = make_candidate(session, email="other@example.com").id
            for score in (90, 80, 70, 60, 40):
                job = make_job(session, title=f"Job {score}")
                make_match(session, self.candidate_id, job.id, score)
            other_job = make_job(session, title="Other")
            make_match(session, self.other_id, other_job.id, 99)
            session.commit()

    def test_01_threshold_and_order(self):
        """Test only matches at or above min_score come back, best first."""
        print("\n📊 UNIT Test 1: Threshold And Order")

        with self.session_factory() as session:
            page = MatchRepository(session).query_by_candidate(self.candidate_id, min_score=60, page_size=10)

        self.assertEqual([m.total_score for m in page.items], [90, 80, 70, 60])
        self.assertEqual(page.total, 4)

        print(f"  ✓ Scores: {[m.total_score for m in page.items]}")

    def test_02_pagination(self):
        """Test page metadata and slices."""
        print("\n📊 UNIT Test 2: Pagination")

        with self.session_factory() as session:
            repo = MatchRepository(session)
            first = repo.query_by_candidate(self.candidate_id, min_score=50, page=1, page_size=2)
            second = repo.query_by_candidate(self.candidate_id, min_score=50, page=2, page_size=2)
            beyond = repo.query_by_candidate(self.candidate_id, min_score=50, page=3, page_size=2)

        self.assertEqual([m.total_score for m in first.items], [90, 80])
        self.assertEqual(first.total_pages, 2)
        self.assertTrue(first.has_next)
        self.assertFalse(first.has_prev)

        self.assertEqual([m.total_score for m in second.items], [70, 60])
        self.assertFalse(second.has_next)
        self.assertTrue(second.has_prev)

        self.assertEqual(beyond.items, [])
        self.assertEqual(beyond.total, 4)

        print(f"  ✓ {first.total} matches over {first.total_pages} pages")

    def test_03_ascending_order(self):
        """Test ascending sort."""
        print("\n📊 UNIT Test 3: Ascending Order")

        with self.session_factory() as session:
            page = MatchRepository(session).query_by_candidate(
                self.candidate_id, min_score=0, sort_descending=False, page_size=10
            )

        self.assertEqual([m.total_score for m in page.items], [40, 60, 70, 80, 90])

        print("  ✓ Ascending order verified")

    def test_04_invalid_page_params(self):
        """Test malformed pagination is rejected."""
        print("\n📊 UNIT Test 4: Invalid Page Parameters")

        with self.session_factory() as session:
            repo = MatchRepository(session)
            with self.assertRaises(ValidationError):
                repo.query_by_candidate(self.candidate_id, page=0)
            with self.assertRaises(ValidationError):
                repo.query_by_candidate(self.candidate_id, page_size=101)
            with self.assertRaises(ValidationError):
                repo.query_by_candidate(self.candidate_id, min_score=-1)

        print("  ✓ ValidationError raised")

    def test_05_score_summary(self):
        """Test count, average, top score and bucket distribution."""
        print("\n📊 UNIT Test 5: Score Summary")

        with self.session_factory() as session:
            summary = MatchRepository(session).get_score_summary(self.candidate_id)
            empty = MatchRepository(session).get_score_summary("nobody")

        self.assertEqual(summary.total_matches, 5)
        self.assertEqual(summary.average_score, 68.0)
        self.assertEqual(summary.top_score, 90.0)
        self.assertEqual(summary.distribution, {"0-25": 0, "25-50": 1, "50-75": 2, "75-100": 2})
        self.assertEqual(empty.total_matches, 0)
        self.assertEqual(empty.average_score, 0.0)

        print(f"  ✓ Summary: {summary}")

    def test_06_unnotified_matches(self):
        """Test notified matches are excluded from the notification feed."""
        print("\n📊 UNIT Test 6: Unnotified Matches")

        with self.session_factory() as session:
            repo = MatchRepository(session)
            pending = repo.get_unnotified_matches(self.candidate_id, min_score=75, limit=10)
            repo.mark_notified([pending[0].id])
            session.commit()
            remaining = repo.get_unnotified_matches(self.candidate_id, min_score=75, limit=10)

        self.assertEqual([m.total_score for m in pending], [90, 80])
        self.assertEqual([m.total_score for m in remaining], [80])

        print("  ✓ Notified match excluded")


class TestMatchStatusTransitions(unittest.TestCase):
    """Unit tests for the match lifecycle."""

    def setUp(self):
        self.session_factory = create_sqlite_session_factory()
        with self.session_factory() as session:
            self.candidate_id = make_candidate(session).id
            job = make_job(session)
            self.match_id = make_match(session, self.candidate_id, job.id, 75).id
            session.commit()

    def test_01_forward_transitions_stamp_times(self):
        """Test matched -> viewed -> applied records both timestamps."""
        print("\n📊 UNIT Test 1: Forward Transitions")

        with self.session_factory() as session:
            repo = MatchRepository(session)
            viewed = repo.update_status(self.match_id, "viewed", candidate_id=self.candidate_id)
            self.assertIsNotNone(viewed.viewed_at)
            applied = repo.update_status(self.match_id, "applied", candidate_id=self.candidate_id)
            session.commit()

        self.assertEqual(applied.status, "applied")
        self.assertIsNotNone(applied.applied_at)

        print("  ✓ matched -> viewed -> applied")

    def test_02_terminal_states(self):
        """Test applied and rejected cannot move on."""
        print("\n📊 UNIT Test 2: Terminal States")

        with self.session_factory() as session:
            repo = MatchRepository(session)
            repo.update_status(self.match_id, "rejected")
            with self.assertRaises(InvalidStatusTransitionError):
                repo.update_status(self.match_id, "viewed")
            with self.assertRaises(InvalidStatusTransitionError):
                repo.update_status(self.match_id, "matched")
            same = repo.update_status(self.match_id, "rejected")

        self.assertEqual(same.status, "rejected")

        print("  ✓ Rejected is terminal")

    def test_03_unknown_status(self):
        """Test an unknown status value is a validation error."""
        print("\n📊 UNIT Test 3: Unknown Status")

        with self.session_factory() as session:
            with self.assertRaises(ValidationError):
                MatchRepository(session).update_status(self.match_id, "archived")

        print("  ✓ ValidationError raised")

    def test_04_ownership_and_existence(self):
        """Test other candidates cannot touch the match and unknown ids are not found."""
        print("\n📊 UNIT Test 4: Ownership")

        with self.session_factory() as session:
            repo = MatchRepository(session)
            with self.assertRaises(MatchAccessDeniedError):
                repo.update_status(self.match_id, "viewed", candidate_id="someone-else")
            with self.assertRaises(MatchNotFoundError):
                repo.update_status("missing-id", "viewed")
            with self.assertRaises(MatchAccessDeniedError):
                repo.mark_viewed_on_read(self.match_id, "someone-else")

        print("  ✓ Access checks enforced")

    def test_05_first_read_marks_viewed(self):
        """Test reading a fresh match moves it to viewed exactly once."""
        print("\n📊 UNIT Test 5: Viewed On Read")

        with self.session_factory() as session:
            repo = MatchRepository(session)
            first = repo.mark_viewed_on_read(self.match_id, self.candidate_id)
            first_viewed_at = first.viewed_at
            repo.update_status(self.match_id, "applied", candidate_id=self.candidate_id)
            second = repo.mark_viewed_on_read(self.match_id, self.candidate_id)
            session.commit()

        self.assertEqual(second.status, "applied")
        self.assertEqual(second.viewed_at, first_viewed_at)

        print("  ✓ Status advanced once")


if __name__ == '__main__':
    unittest.main()
