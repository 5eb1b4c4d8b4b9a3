#!/usr/bin/env python3
"""
Settings service - validated admin updates to matching and quota settings.
"""

import logging
from typing import Any, List, Optional

from core.exceptions import ValidationError
from core.settings_provider import (
    DEFAULT_SETTINGS,
    MAX_MATCHES_PER_PAGE,
    MINIMUM_MATCH_SCORE,
    QUOTA_LIMIT,
    QUOTA_WINDOW_DAYS,
    DatabaseSettingsProvider,
)
from database.repositories.match import MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

# key -> (minimum, maximum) for numeric settings
NUMERIC_BOUNDS = {
    MINIMUM_MATCH_SCORE: (0, 100),
    QUOTA_WINDOW_DAYS: (1, 365),
    QUOTA_LIMIT: (0, 1000),
    MAX_MATCHES_PER_PAGE: (1, MAX_PAGE_SIZE),
}


class SettingsService:
    """Service for reading and updating admin settings."""

    def __init__(self, provider: DatabaseSettingsProvider):
        self.provider = provider

    def list_settings(self) -> List[dict]:
        stored = {item['key']: item for item in self.provider.list_settings()}
        result = []
        for key, (default, value_type, description) in DEFAULT_SETTINGS.items():
            result.append(stored.pop(key, {
                'key': key,
                'value': default,
                'value_type': value_type,
                'description': description,
            }))
        result.extend(stored.values())
        return result

    def update_setting(self, key: str, value: Any, description: Optional[str] = None) -> Any:
        """
        Update a known setting after type and range checks.

        Raises:
            ValidationError: If the key is unknown or the value is invalid.
        """
        if key not in DEFAULT_SETTINGS:
            raise ValidationError(
                f"Unknown setting '{key}'. Valid options: {', '.join(DEFAULT_SETTINGS)}"
            )

        value_type = DEFAULT_SETTINGS[key][1]
        if value_type == 'boolean' and not isinstance(value, bool):
            raise ValidationError(f"Setting '{key}' must be a boolean")
        if value_type == 'number':
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"Setting '{key}' must be a number")
            low, high = NUMERIC_BOUNDS[key]
            if not (low <= value <= high):
                raise ValidationError(f"Setting '{key}' must be between {low} and {high}, got {value}")
        if value_type == 'json' and not isinstance(value, list):
            raise ValidationError(f"Setting '{key}' must be a list")

        return self.provider.set_setting(key, value, description or DEFAULT_SETTINGS[key][2])
