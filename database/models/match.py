from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Boolean, Float, JSON, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, new_id, utcnow


class JobMatch(Base):
    """
    Stores the match result between a candidate and a job post.

    Tracks:
    - Per-category sub-scores and the clamped total
    - Matched / missing skills for explainability
    - Lifecycle status (matched -> viewed -> applied | rejected)

    Exactly one row exists per (candidate, job); rescoring updates it in place.
    """
    __tablename__ = 'job_matches'

    id = Column(Text, primary_key=True, default=new_id)
    candidate_id = Column(Text, ForeignKey('candidates.id', ondelete='CASCADE'), nullable=False)
    job_id = Column(Text, ForeignKey('job_posts.id', ondelete='CASCADE'), nullable=False)

    skill_score = Column(Float, nullable=False, default=0.0)
    role_score = Column(Float, nullable=False, default=0.0)
    level_score = Column(Float, nullable=False, default=0.0)
    experience_score = Column(Float, nullable=False, default=0.0)
    location_score = Column(Float, nullable=False, default=0.0)
    work_mode_score = Column(Float, nullable=False, default=0.0)
    total_score = Column(Float, nullable=False, default=0.0)

    classification = Column(Text, nullable=False, default='poor')
    matched_skills = Column(JSON, default=list)
    missing_skills = Column(JSON, default=list)
    reasons = Column(JSON, default=list)
    confidence = Column(Float, nullable=False, default=0.0)
    fallback_used = Column(Boolean, nullable=False, default=False)

    status = Column(Text, nullable=False, default='matched')
    notified = Column(Boolean, nullable=False, default=False)
    viewed_at = Column(TIMESTAMP(timezone=True), nullable=True)
    applied_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    job_post = relationship("JobPost", lazy="joined")

    __table_args__ = (
        UniqueConstraint('candidate_id', 'job_id', name='uq_job_match_candidate_job'),
        Index('idx_job_match_candidate_score', 'candidate_id', 'total_score'),
        Index('idx_job_match_status', 'status'),
        Index('idx_job_match_notified', 'notified'),
    )
