#!/usr/bin/env python3
"""
Admission gate - rolling-window quota for gated actions.

Decision order for check_permission:
1. Quota disabled globally -> allowed.
2. Premium tier, or candidate id/email on the tier-override allowlist -> allowed.
3. Free tier -> count usage records of any action kind inside
   [now - window_days, now]; allowed while the count is below the limit.

check_permission and record_action are separate calls, so two concurrent
requests from one free-tier candidate can both pass the check before
either is recorded; at worst one extra action slips through.
reserve_action closes that gap by checking and recording in one
transaction while holding a row lock on the candidate.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from core.config_loader import QuotaConfig
from core.exceptions import CandidateNotFoundError, InvalidActionKindError
from core.settings_provider import QuotaSettings, SettingsProvider
from database.models import utcnow

logger = logging.getLogger(__name__)

PREMIUM_TIER = 'premium'
FREE_TIER = 'free'


class ActionKind(str, Enum):
    APPLY = "apply"
    VIEW_DETAILS = "view_details"


@dataclass
class AdmissionDecision:
    allowed: bool
    reason: Optional[str] = None
    remaining: Optional[int] = None  # None means unlimited
    reset_date: Optional[datetime] = None
    tier: Optional[str] = None
    bypass: Optional[str] = None  # quota_disabled | premium | allowlist


@dataclass
class UsageStats:
    candidate_id: str
    tier: str
    used_actions: int
    max_actions: Optional[int]
    remaining: Optional[int]
    reset_date: Optional[datetime]
    window_days: int


def parse_action(action) -> ActionKind:
    if isinstance(action, ActionKind):
        return action
    try:
        return ActionKind(str(action).strip().lower())
    except ValueError:
        raise InvalidActionKindError(
            f"Invalid action '{action}'. Valid options: {', '.join(a.value for a in ActionKind)}"
        )


def denial_reason(reset_date: Optional[datetime]) -> str:
    reason = "You've used your free limit. Upgrade to Premium for unlimited access"
    if reset_date is not None:
        reason += f" or try again on {reset_date.date().isoformat()}"
    return reason


class AdmissionGate:
    """Quota checks and usage logging for gated candidate actions."""

    def __init__(
        self,
        uow_factory,
        settings: SettingsProvider,
        defaults: Optional[QuotaConfig] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.uow_factory = uow_factory
        self.settings = settings
        self.defaults = defaults or QuotaConfig()
        self.clock = clock

    def _evaluate(self, uow, candidate_id: str, quota: QuotaSettings, now: datetime, lock: bool = False) -> AdmissionDecision:
        if not quota.enabled:
            return AdmissionDecision(allowed=True, bypass='quota_disabled')

        candidate = uow.candidates.get_by_id(candidate_id, for_update=lock)
        if candidate is None:
            raise CandidateNotFoundError(candidate_id)

        tier = (candidate.tier or FREE_TIER).lower()
        if tier == PREMIUM_TIER:
            return AdmissionDecision(allowed=True, tier=tier, bypass='premium')

        identifiers = {str(candidate.id).lower()}
        if candidate.email:
            identifiers.add(candidate.email.strip().lower())
        if identifiers & quota.allowlist:
            return AdmissionDecision(allowed=True, tier=tier, bypass='allowlist')

        window_start = now - timedelta(days=quota.window_days)
        used = uow.usage.count_since(candidate_id, window_start, now)
        if used < quota.limit:
            return AdmissionDecision(allowed=True, remaining=quota.limit - used, tier=tier)

        oldest = uow.usage.oldest_since(candidate_id, window_start, now)
        reset_date = oldest + timedelta(days=quota.window_days) if oldest else None
        return AdmissionDecision(
            allowed=False,
            reason=denial_reason(reset_date),
            remaining=0,
            reset_date=reset_date,
            tier=tier
        )

    def check_permission(self, candidate_id: str, job_id: str, action) -> AdmissionDecision:
        """
        Decide whether ``candidate_id`` may perform ``action`` on ``job_id`` now.

        Raises:
            InvalidActionKindError: Unknown action kind.
            CandidateNotFoundError: Quota is enforced and the candidate is unknown.
        """
        kind = parse_action(action)
        quota = QuotaSettings.from_provider(self.settings, self.defaults)
        with self.uow_factory() as uow:
            decision = self._evaluate(uow, candidate_id, quota, self.clock())

        if not decision.allowed:
            logger.info(f"Admission denied: candidate={candidate_id} job={job_id} action={kind.value}")
        return decision

    def record_action(
        self,
        candidate_id: str,
        job_id: str,
        action,
        ip_address: Optional[str] = None
    ):
        """Append a usage record. Callers check permission first."""
        kind = parse_action(action)
        with self.uow_factory() as uow:
            record = uow.usage.append(candidate_id, job_id, kind.value, ip_address, timestamp=self.clock())
        logger.info(f"Recorded {kind.value} for candidate {candidate_id} on job {job_id}")
        return record

    def reserve_action(
        self,
        candidate_id: str,
        job_id: str,
        action,
        ip_address: Optional[str] = None
    ) -> AdmissionDecision:
        """
        Check and record in one transaction.

        The candidate row is locked (SELECT ... FOR UPDATE) for the duration,
        serializing concurrent reservations by the same candidate.
        """
        kind = parse_action(action)
        quota = QuotaSettings.from_provider(self.settings, self.defaults)
        with self.uow_factory() as uow:
            if quota.enabled:
                # Take the row lock before reading the clock so the window
                # includes records written by whoever held the lock before us
                uow.candidates.get_by_id(candidate_id, for_update=True)
            now = self.clock()
            decision = self._evaluate(uow, candidate_id, quota, now, lock=True)
            if decision.allowed:
                uow.usage.append(candidate_id, job_id, kind.value, ip_address, timestamp=now)
                if decision.remaining is not None:
                    decision.remaining -= 1

        if decision.allowed:
            logger.info(f"Reserved {kind.value} for candidate {candidate_id} on job {job_id}")
        else:
            logger.info(f"Reservation denied: candidate={candidate_id} job={job_id} action={kind.value}")
        return decision

    def get_usage_stats(self, candidate_id: str) -> UsageStats:
        quota = QuotaSettings.from_provider(self.settings, self.defaults)
        now = self.clock()
        window_start = now - timedelta(days=quota.window_days)

        with self.uow_factory() as uow:
            candidate = uow.candidates.get_by_id(candidate_id)
            if candidate is None:
                raise CandidateNotFoundError(candidate_id)
            tier = (candidate.tier or FREE_TIER).lower()
            used = uow.usage.count_since(candidate_id, window_start, now)
            oldest = uow.usage.oldest_since(candidate_id, window_start, now)
            decision = self._evaluate(uow, candidate_id, quota, now)

        if decision.bypass is not None:
            return UsageStats(
                candidate_id=str(candidate_id),
                tier=tier,
                used_actions=used,
                max_actions=None,
                remaining=None,
                reset_date=None,
                window_days=quota.window_days
            )

        return UsageStats(
            candidate_id=str(candidate_id),
            tier=tier,
            used_actions=used,
            max_actions=quota.limit,
            remaining=max(0, quota.limit - used),
            reset_date=oldest + timedelta(days=quota.window_days) if oldest else None,
            window_days=quota.window_days
        )
