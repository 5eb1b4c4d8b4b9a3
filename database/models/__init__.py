from .base import Base, utcnow, new_id, as_utc
from .candidate import Candidate
from .job import JobPost
from .match import JobMatch
from .usage import UsageRecord
from .settings import AppSettings

__all__ = [
    'Base',
    'utcnow',
    'new_id',
    'as_utc',
    'Candidate',
    'JobPost',
    'JobMatch',
    'UsageRecord',
    'AppSettings',
]
