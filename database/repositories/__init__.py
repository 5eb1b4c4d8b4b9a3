from database.repositories.base import BaseRepository
from database.repositories.candidate import CandidateRepository
from database.repositories.job_post import JobPostRepository
from database.repositories.match import MatchRepository, MatchPage, UpsertCounts, ScoreSummary
from database.repositories.usage import UsageRepository
from database.repositories.settings import SettingsRepository

__all__ = [
    'BaseRepository',
    'CandidateRepository',
    'JobPostRepository',
    'MatchRepository',
    'MatchPage',
    'UpsertCounts',
    'ScoreSummary',
    'UsageRepository',
    'SettingsRepository',
]
