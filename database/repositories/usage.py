import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, func

from database.models import UsageRecord, as_utc, utcnow
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class UsageRepository(BaseRepository):
    """Append-only access to the usage log."""

    def append(
        self,
        candidate_id: str,
        job_id: str,
        action: str,
        ip_address: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> UsageRecord:
        record = UsageRecord(
            candidate_id=str(candidate_id),
            job_id=str(job_id),
            action=action,
            ip_address=ip_address,
            timestamp=timestamp or utcnow()
        )
        self.db.add(record)
        self.db.flush()
        return record

    def count_since(self, candidate_id: str, since: datetime, until: datetime) -> int:
        """Records with since <= timestamp <= until."""
        stmt = select(func.count(UsageRecord.id)).where(
            UsageRecord.candidate_id == str(candidate_id),
            UsageRecord.timestamp >= since,
            UsageRecord.timestamp <= until
        )
        return self.db.execute(stmt).scalar_one()

    def oldest_since(self, candidate_id: str, since: datetime, until: datetime) -> Optional[datetime]:
        stmt = select(func.min(UsageRecord.timestamp)).where(
            UsageRecord.candidate_id == str(candidate_id),
            UsageRecord.timestamp >= since,
            UsageRecord.timestamp <= until
        )
        return as_utc(self.db.execute(stmt).scalar_one_or_none())
