#!/usr/bin/env python3
"""
Unit tests for the fleet rescoring endpoints.

The runner is replaced with one that waits for the stop event, so the
tests control exactly when a task finishes.
"""

import os
import shutil
import tempfile
import threading
import time
import unittest

from fastapi.testclient import TestClient

from core.matching.orchestrator import FleetBatchStats
from pipeline.control import PipelineController
from pipeline.runner import FleetRunResult
from web.backend.app import app
from web.backend.services.pipeline_service import PipelineTaskManager, get_pipeline_manager


class TestPipelineApi(unittest.TestCase):
    """Tests for /api/pipeline."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.lock_file = os.path.join(self.temp_dir, "rescore.lock")
        self.started = threading.Event()
        self.calls = []

        self.manager = PipelineTaskManager(
            lambda: None,
            controller=PipelineController(self.lock_file),
            runner=self._runner
        )
        app.dependency_overrides[get_pipeline_manager] = lambda: self.manager
        self.client = TestClient(app)

    def tearDown(self):
        self.manager.stop_active_task()
        app.dependency_overrides.clear()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _runner(self, ctx, stop_event, status_callback, job_ids, candidate_limit):
        self.calls.append((job_ids, candidate_limit))
        status_callback("rescoring")
        self.started.set()
        stop_event.wait(5)
        return FleetRunResult(
            success=True,
            stats=FleetBatchStats(
                candidates_total=3,
                candidates_processed=1,
                total_matches=4,
                cancelled=True
            ),
            error="Cancelled by user",
            execution_time=0.1
        )

    def _wait_for_status(self, task_id, status, timeout=5.0):
        deadline = time.time() + timeout
        while time.time() < deadline:
            body = self.client.get(f"/api/pipeline/status/{task_id}").json()
            if body["status"] == status:
                return body
            time.sleep(0.05)
        self.fail(f"Task {task_id} never reached {status}")

    def test_01_start_status_stop(self):
        """Test a task can be started, observed and cancelled."""
        print("\n📊 UNIT Test 1: Start, status, stop")

        response = self.client.post(
            "/api/pipeline/rescore-all", json={"job_ids": ["job-9"], "candidate_limit": 5}
        )
        self.assertEqual(response.status_code, 200)
        task_id = response.json()["task_id"]
        self.assertTrue(self.started.wait(5))
        self.assertEqual(self.calls, [(["job-9"], 5)])

        running = self._wait_for_status(task_id, "running")
        self.assertEqual(running["step"], "rescoring")

        active = self.client.get("/api/pipeline/active").json()
        self.assertEqual(active["task_id"], task_id)

        stop = self.client.post("/api/pipeline/stop").json()
        self.assertTrue(stop["success"])
        self.assertEqual(stop["task_id"], task_id)

        done = self._wait_for_status(task_id, "completed")
        self.assertEqual(done["candidates_total"], 3)
        self.assertEqual(done["candidates_processed"], 1)
        self.assertEqual(done["total_matches"], 4)
        self.assertEqual(done["error"], "Cancelled by user")
        print("  ✓ Task cancelled and reported")

    def test_02_second_request_returns_running_task(self):
        """Test only one fleet run happens at a time."""
        print("\n📊 UNIT Test 2: Single active task")

        first = self.client.post("/api/pipeline/rescore-all").json()
        self.assertTrue(self.started.wait(5))
        second = self.client.post("/api/pipeline/rescore-all").json()

        self.assertEqual(first["task_id"], second["task_id"])
        self.assertIn("already running", second["message"])
        self.assertEqual(len(self.calls), 1)
        print("  ✓ Existing task returned")

    def test_03_locked_by_other_process(self):
        """Test a run is refused while another process holds the lock."""
        print("\n📊 UNIT Test 3: Lock held elsewhere")

        other = PipelineController(self.lock_file)
        self.assertTrue(other.acquire_lock("cli"))
        try:
            response = self.client.post("/api/pipeline/rescore-all")
        finally:
            other.release_lock()

        self.assertEqual(response.status_code, 409)
        self.assertIn("cli", response.json()["error"])
        self.assertEqual(self.calls, [])
        print("  ✓ 409 while locked")

    def test_04_idle_endpoints(self):
        """Test status, active and stop when nothing is running."""
        print("\n📊 UNIT Test 4: Idle")

        self.assertEqual(self.client.get("/api/pipeline/status/nope").status_code, 404)
        self.assertIsNone(self.client.get("/api/pipeline/active").json())
        self.assertFalse(self.client.post("/api/pipeline/stop").json()["success"])
        print("  ✓ Idle responses")


if __name__ == '__main__':
    unittest.main()
