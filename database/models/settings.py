from sqlalchemy import Column, Integer, String, Text, TIMESTAMP

from .base import Base, utcnow


class AppSettings(Base):
    """Admin-tunable key/value settings; values are JSON-encoded text."""
    __tablename__ = 'app_settings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(255), unique=True, nullable=False, index=True)
    value = Column(Text)
    value_type = Column(String(16), nullable=False, default='json')
    description = Column(Text, nullable=True)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
