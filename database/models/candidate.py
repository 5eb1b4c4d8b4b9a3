from sqlalchemy import Column, Text, Boolean, Integer, TIMESTAMP, JSON, Index

from .base import Base, new_id, utcnow


class Candidate(Base):
    """
    Job-seeker profile as maintained by the profile and resume services.

    Read-only to the matching subsystem apart from the relationships it owns.
    """
    __tablename__ = 'candidates'

    id = Column(Text, primary_key=True, default=new_id)
    email = Column(Text, unique=True, nullable=True)
    tier = Column(Text, nullable=False, default='free')
    is_active = Column(Boolean, nullable=False, default=True)

    target_roles = Column(JSON, default=list)
    target_locations = Column(JSON, default=list)
    target_tech_stack = Column(JSON, default=list)
    target_domains = Column(JSON, default=list)
    experience_years = Column(Integer, default=0)
    career_level = Column(Text, nullable=True)
    work_mode_preference = Column(Text, nullable=True)
    skill_ratings = Column(JSON, default=dict)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('idx_candidates_active', 'is_active'),
    )
