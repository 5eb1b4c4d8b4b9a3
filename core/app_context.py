from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from core.admission import AdmissionGate
from core.config_loader import AppConfig
from core.matching.insights import MatchInsightsService
from core.matching.orchestrator import BatchMatchOrchestrator
from core.scorer import ScoringService
from core.settings_provider import DatabaseSettingsProvider, SettingsProvider
from database.uow import UowFactory, uow_factory_for
from notification.dispatcher import LoggingNotificationDispatcher, NotificationDispatcher


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Every service gets the same settings provider and unit-of-work factory;
    each operation opens its own transaction through ``uow_factory``.
    """
    config: AppConfig
    uow_factory: UowFactory
    settings: SettingsProvider
    scorer: ScoringService
    orchestrator: BatchMatchOrchestrator
    gate: AdmissionGate
    insights: MatchInsightsService
    notifier: Optional[NotificationDispatcher] = None

    @classmethod
    def build(
        cls,
        config: AppConfig,
        session_factory: Optional[sessionmaker] = None,
        settings: Optional[SettingsProvider] = None,
        notifier: Optional[NotificationDispatcher] = None
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            session_factory: Session factory to use; defaults to one built
                from ``config.database``
            settings: Settings provider; defaults to the app_settings table

        Returns:
            Fully wired AppContext instance
        """
        if session_factory is None:
            from database.database import create_db_engine, create_session_factory
            engine = create_db_engine(
                config.database.url,
                pool_size=config.database.pool_size,
                max_overflow=config.database.max_overflow
            )
            session_factory = create_session_factory(engine)

        uow_factory = uow_factory_for(session_factory)
        settings = settings or DatabaseSettingsProvider(uow_factory)
        scorer = ScoringService(config.matching.scorer)

        if notifier is None and config.matching.notifications_enabled:
            notifier = LoggingNotificationDispatcher()

        return cls(
            config=config,
            uow_factory=uow_factory,
            settings=settings,
            scorer=scorer,
            orchestrator=BatchMatchOrchestrator(uow_factory, settings, scorer, config.matching),
            gate=AdmissionGate(uow_factory, settings, config.quota),
            insights=MatchInsightsService(uow_factory),
            notifier=notifier
        )
