from sqlalchemy import Column, Text, Integer, TIMESTAMP, JSON, Index

from .base import Base, new_id, utcnow


class JobPost(Base):
    """
    A job posting as stored by the ingestion service.

    Archived postings stay in the table but are never scored.
    """
    __tablename__ = 'job_posts'

    id = Column(Text, primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    company = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    requirements = Column(JSON, default=list)
    tech_stack = Column(JSON, default=list)
    location = Column(Text, nullable=True)
    employment_type = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default='active')
    min_experience_years = Column(Integer, nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('idx_job_posts_status', 'status'),
        Index('idx_job_posts_created', 'created_at'),
    )
