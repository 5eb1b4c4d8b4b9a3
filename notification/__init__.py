"""
Notification Module

Announces new high-score matches to an external delivery service.

Usage:
    from notification import notify_high_score_matches, LoggingNotificationDispatcher

    notify_high_score_matches(uow_factory, LoggingNotificationDispatcher(), candidate_id)
"""

from notification.dispatcher import (
    MatchNotification,
    NotificationDispatcher,
    LoggingNotificationDispatcher,
    notify_high_score_matches,
)

__all__ = [
    'MatchNotification',
    'NotificationDispatcher',
    'LoggingNotificationDispatcher',
    'notify_high_score_matches',
]
