from __future__ import annotations

from dataclasses import dataclass

SETTINGS_ROW_ID = 1


@dataclass(frozen=True)
class Settings:
    restaurant_name: str = "Bistro"
    currency: str = "BRL"
    dark_mode: bool = True
    printer_enabled: bool = False
    sound_alert_enabled: bool = True

    def __post_init__(self) -> None:
        if not self.restaurant_name.strip():
            raise ValueError("restaurant_name must be non-empty")
