#!/usr/bin/env python3
"""
Notification hook for new high-score matches.

Delivery (email, chat, push) belongs to an external service; this module
only selects the matches worth announcing and hands them to a dispatcher.
Dispatch is fire-and-forget: a failing dispatcher is logged and the
remaining notifications still go out.

Usage:
    from notification.dispatcher import notify_high_score_matches, LoggingNotificationDispatcher

    sent = notify_high_score_matches(uow_factory, LoggingNotificationDispatcher(), candidate_id)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

HIGH_PRIORITY_SCORE = 80.0


@dataclass
class MatchNotification:
    """A single "new strong match" event for a candidate."""
    candidate_id: str
    match_id: str
    job_id: str
    title: Optional[str]
    company: Optional[str]
    total_score: float
    priority: str = "normal"  # "normal" or "high"


class NotificationDispatcher(ABC):
    """
    Abstract sink for match notifications.
    """

    @abstractmethod
    def dispatch(self, notification: MatchNotification) -> None:
        """
        Hand a notification to the delivery service. May raise on failure.
        """
        pass


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Default dispatcher: writes notifications to the log."""

    def dispatch(self, notification: MatchNotification) -> None:
        logger.info(
            f"[{notification.priority}] New match for candidate {notification.candidate_id}: "
            f"{notification.title} at {notification.company} ({notification.total_score:.1f})"
        )


def notify_high_score_matches(
    uow_factory,
    dispatcher: NotificationDispatcher,
    candidate_id: str,
    min_score: float = 60.0,
    limit: int = 10
) -> int:
    """
    Dispatch notifications for the candidate's unnotified matches above ``min_score``.

    Matches are flagged ``notified`` once handed off, so a rerun does not
    announce them again.

    Returns:
        Number of notifications dispatched.
    """
    with uow_factory() as uow:
        matches = uow.matches.get_unnotified_matches(candidate_id, min_score=min_score, limit=limit)
        notifications = [
            MatchNotification(
                candidate_id=str(candidate_id),
                match_id=m.id,
                job_id=m.job_id,
                title=m.job_post.title if m.job_post else None,
                company=m.job_post.company if m.job_post else None,
                total_score=float(m.total_score),
                priority="high" if m.total_score >= HIGH_PRIORITY_SCORE else "normal",
            )
            for m in matches
        ]

    dispatched = []
    for notification in notifications:
        try:
            dispatcher.dispatch(notification)
            dispatched.append(notification.match_id)
        except Exception as e:
            logger.error(f"Failed to dispatch notification for match {notification.match_id}: {e}")

    if dispatched:
        with uow_factory() as uow:
            uow.matches.mark_notified(dispatched)
        logger.info(f"Dispatched {len(dispatched)} match notifications for candidate {candidate_id}")

    return len(dispatched)
