from __future__ import annotations

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bistro.infrastructure.db.models.base import Base


class SettingsModel(Base):
    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    restaurant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    dark_mode: Mapped[bool] = mapped_column(Boolean, nullable=False)
    printer_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False)
    sound_alert_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False)
