#!/usr/bin/env python3
"""
Unit tests for the admin settings endpoints.
"""

import unittest

from fastapi.testclient import TestClient

from core.app_context import AppContext
from core.config_loader import AppConfig
from web.backend.app import app
from web.backend.dependencies import get_app_context
from tests import create_sqlite_session_factory


class TestSettingsApi(unittest.TestCase):
    """Tests for /api/settings."""

    def setUp(self):
        self.ctx = AppContext.build(AppConfig(), session_factory=create_sqlite_session_factory())
        app.dependency_overrides[get_app_context] = lambda: self.ctx
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_01_list_defaults(self):
        """Test every known setting is listed even before it is stored."""
        print("\n📊 UNIT Test 1: List defaults")

        body = self.client.get("/api/settings").json()
        values = {item["key"]: item["value"] for item in body["settings"]}

        self.assertEqual(values["minimum_match_score"], 50)
        self.assertEqual(values["quota_limit"], 1)
        self.assertEqual(values["quota_window_days"], 15)
        self.assertTrue(values["quota_enabled"])
        self.assertEqual(values["tier_override_allowlist"], [])
        self.assertEqual(values["max_matches_per_page"], 50)
        print(f"  ✓ {len(values)} settings listed")

    def test_02_update_persists(self):
        """Test an update is visible to the next read."""
        print("\n📊 UNIT Test 2: Update setting")

        response = self.client.put("/api/settings/minimum_match_score", json={"value": 70})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["value"], 70)

        self.assertEqual(self.ctx.settings.get_setting("minimum_match_score"), 70)
        print("  ✓ New threshold stored")

    def test_03_rejects_invalid_values(self):
        """Test out of range values, wrong types and unknown keys."""
        print("\n📊 UNIT Test 3: Invalid updates")

        cases = [
            ("minimum_match_score", 150),
            ("minimum_match_score", "high"),
            ("quota_enabled", "yes"),
            ("quota_window_days", 0),
            ("max_matches_per_page", 500),
            ("tier_override_allowlist", "someone@example.com"),
            ("unknown_key", 1),
        ]
        for key, value in cases:
            response = self.client.put(f"/api/settings/{key}", json={"value": value})
            self.assertEqual(response.status_code, 400, f"{key}={value!r}")
            self.assertEqual(response.json()["type"], "ValidationError")

        self.assertIsNone(self.ctx.settings.get_setting("minimum_match_score"))
        print(f"  ✓ {len(cases)} invalid updates rejected")


if __name__ == '__main__':
    unittest.main()
