"""Business logic services."""

from .match_service import MatchService
from .settings_service import SettingsService
from .pipeline_service import PipelineTaskManager
