from sqlalchemy import Column, Text, TIMESTAMP, Index

from .base import Base, new_id, utcnow


class UsageRecord(Base):
    """
    Append-only log of gated actions (apply, view details).

    Never updated or deleted by normal operation; the admission gate counts
    rows inside its rolling window.
    """
    __tablename__ = 'usage_records'

    id = Column(Text, primary_key=True, default=new_id)
    candidate_id = Column(Text, nullable=False)
    job_id = Column(Text, nullable=False)
    action = Column(Text, nullable=False)
    timestamp = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    ip_address = Column(Text, nullable=True)

    __table_args__ = (
        Index('idx_usage_candidate_timestamp', 'candidate_id', 'timestamp'),
    )
