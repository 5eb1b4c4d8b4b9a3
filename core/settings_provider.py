#!/usr/bin/env python3
"""
Settings provider - admin-tunable thresholds for matching and quotas.

Services receive a SettingsProvider at construction time instead of
reading global configuration, so tests can hand them a static dict.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from core.config_loader import QuotaConfig

logger = logging.getLogger(__name__)

MINIMUM_MATCH_SCORE = 'minimum_match_score'
QUOTA_ENABLED = 'quota_enabled'
QUOTA_WINDOW_DAYS = 'quota_window_days'
QUOTA_LIMIT = 'quota_limit'
TIER_OVERRIDE_ALLOWLIST = 'tier_override_allowlist'
MAX_MATCHES_PER_PAGE = 'max_matches_per_page'

# key -> (default value, value type, description)
DEFAULT_SETTINGS: Dict[str, Tuple[Any, str, str]] = {
    MINIMUM_MATCH_SCORE: (50, 'number', 'Minimum total score for a match to be stored and listed'),
    QUOTA_ENABLED: (True, 'boolean', 'Enforce the free-tier action quota'),
    QUOTA_WINDOW_DAYS: (15, 'number', 'Rolling window length for the free-tier quota, in days'),
    QUOTA_LIMIT: (1, 'number', 'Gated actions a free-tier candidate may take per window'),
    TIER_OVERRIDE_ALLOWLIST: ([], 'json', 'Candidate ids or emails granted unlimited access'),
    MAX_MATCHES_PER_PAGE: (50, 'number', 'Default page size for match listings'),
}


def _value_type(value: Any) -> str:
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    return 'json'


def _normalize_identifier(identifier: str) -> str:
    return str(identifier).strip().lower()


class SettingsProvider(ABC):
    """Source of tunable settings."""

    @abstractmethod
    def get_setting(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default`` when missing or unreadable."""
        pass

    def get_allowlist(self) -> FrozenSet[str]:
        raw = self.get_setting(TIER_OVERRIDE_ALLOWLIST, [])
        if not isinstance(raw, (list, tuple, set, frozenset)):
            logger.warning(f"Ignoring malformed {TIER_OVERRIDE_ALLOWLIST} setting: {raw!r}")
            return frozenset()
        return frozenset(_normalize_identifier(item) for item in raw if str(item).strip())


class StaticSettingsProvider(SettingsProvider):
    """In-memory provider for tests and one-off CLI runs."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_setting(self, key: str, value: Any) -> None:
        self._values[key] = value


class DatabaseSettingsProvider(SettingsProvider):
    """
    Settings stored in the app_settings table as JSON-encoded text.

    Reads are not cached so allowlist and quota changes apply to the next
    request.
    """

    def __init__(self, uow_factory):
        self._uow_factory = uow_factory

    def get_setting(self, key: str, default: Any = None) -> Any:
        try:
            with self._uow_factory() as uow:
                setting = uow.settings.get(key)
                raw = setting.value if setting is not None else None
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read setting '{key}', using default: {e}")
            return default

        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Setting '{key}' holds invalid JSON, using default")
            return default

    def set_setting(self, key: str, value: Any, description: Optional[str] = None) -> Any:
        with self._uow_factory() as uow:
            uow.settings.put(key, json.dumps(value), _value_type(value), description)
        logger.info(f"Setting '{key}' updated")
        return value

    def list_settings(self) -> List[Dict[str, Any]]:
        with self._uow_factory() as uow:
            rows = uow.settings.list_all()
            result = []
            for row in rows:
                try:
                    value = json.loads(row.value) if row.value is not None else None
                except (TypeError, ValueError):
                    value = row.value
                result.append({
                    'key': row.key,
                    'value': value,
                    'value_type': row.value_type,
                    'description': row.description,
                })
        return result

    def initialize_defaults(self, overrides: Optional[Dict[str, Any]] = None) -> int:
        """Seed every missing default setting; existing values are kept."""
        overrides = overrides or {}
        created = 0
        with self._uow_factory() as uow:
            for key, (default, value_type, description) in DEFAULT_SETTINGS.items():
                if uow.settings.get(key) is not None:
                    continue
                value = overrides.get(key, default)
                uow.settings.put(key, json.dumps(value), value_type, description)
                created += 1
        if created:
            logger.info(f"Initialized {created} default settings")
        return created

    def grant_allowlist(self, identifier: str) -> List[str]:
        entry = _normalize_identifier(identifier)
        current = sorted(self.get_allowlist())
        if entry not in current:
            current.append(entry)
            current.sort()
            self.set_setting(TIER_OVERRIDE_ALLOWLIST, current)
            logger.info(f"Granted tier override to {entry}")
        return current

    def revoke_allowlist(self, identifier: str) -> List[str]:
        entry = _normalize_identifier(identifier)
        current = sorted(self.get_allowlist())
        if entry in current:
            current.remove(entry)
            self.set_setting(TIER_OVERRIDE_ALLOWLIST, current)
            logger.info(f"Revoked tier override from {entry}")
        return current


@dataclass(frozen=True)
class QuotaSettings:
    """Snapshot of the quota settings taken at the start of one gate call."""
    enabled: bool
    window_days: int
    limit: int
    allowlist: FrozenSet[str]

    @classmethod
    def from_provider(cls, provider: SettingsProvider, defaults: QuotaConfig) -> "QuotaSettings":
        return cls(
            enabled=bool(provider.get_setting(QUOTA_ENABLED, defaults.enabled)),
            window_days=_as_int(provider.get_setting(QUOTA_WINDOW_DAYS, defaults.window_days), defaults.window_days, 1),
            limit=_as_int(provider.get_setting(QUOTA_LIMIT, defaults.limit), defaults.limit, 0),
            allowlist=provider.get_allowlist(),
        )


def _as_int(value: Any, fallback: int, minimum: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric setting value {value!r}, using {fallback}")
        return fallback
    return max(minimum, number)


def minimum_match_score(provider: SettingsProvider, fallback: float) -> float:
    value = provider.get_setting(MINIMUM_MATCH_SCORE, fallback)
    try:
        return max(0.0, min(100.0, float(value)))
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric {MINIMUM_MATCH_SCORE} setting {value!r}, using {fallback}")
        return fallback


def match_page_size(provider: SettingsProvider, fallback: int, maximum: int = 100) -> int:
    value = _as_int(provider.get_setting(MAX_MATCHES_PER_PAGE, fallback), fallback, 1)
    return min(value, maximum)
