from __future__ import annotations

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from bistro.application.ports.repositories import SettingsRepository
from bistro.domain.settings.entities import SETTINGS_ROW_ID, Settings
from bistro.infrastructure.db.models.settings import SettingsModel
from bistro.infrastructure.db.session import get_engine


class SqlAlchemySettingsRepository(SettingsRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self) -> Settings | None:
        with Session(self._engine) as session:
            model = session.get(SettingsModel, SETTINGS_ROW_ID)
        if model is None:
            return None
        return Settings(
            restaurant_name=model.restaurant_name,
            currency=model.currency,
            dark_mode=model.dark_mode,
            printer_enabled=model.printer_enabled,
            sound_alert_enabled=model.sound_alert_enabled,
        )

    def save(self, settings: Settings) -> None:
        with Session(self._engine) as session:
            session.merge(
                SettingsModel(
                    id=SETTINGS_ROW_ID,
                    restaurant_name=settings.restaurant_name,
                    currency=settings.currency,
                    dark_mode=settings.dark_mode,
                    printer_enabled=settings.printer_enabled,
                    sound_alert_enabled=settings.sound_alert_enabled,
                )
            )
            session.commit()
