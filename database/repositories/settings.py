import logging
from typing import List, Optional

from sqlalchemy import select

from database.models import AppSettings
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class SettingsRepository(BaseRepository):
    def get(self, key: str) -> Optional[AppSettings]:
        stmt = select(AppSettings).where(AppSettings.key == key)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_all(self) -> List[AppSettings]:
        stmt = select(AppSettings).order_by(AppSettings.key)
        return list(self.db.execute(stmt).scalars().all())

    def put(
        self,
        key: str,
        value: str,
        value_type: str,
        description: Optional[str] = None
    ) -> AppSettings:
        setting = self.get(key)
        if setting is None:
            setting = AppSettings(key=key)
            self.db.add(setting)
        setting.value = value
        setting.value_type = value_type
        if description is not None:
            setting.description = description
        self.db.flush()
        return setting
