from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone

from bistro.application.dto.requests import SettingsRequest
from bistro.application.dto.responses import SettingsResponse
from bistro.application.mappers.event_envelope import TOPIC_SETTINGS, serialize_event
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import SettingsRepository
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.notify import publish_change
from bistro.domain.settings.entities import Settings

logger = logging.getLogger(__name__)


class InvalidSettingsError(Exception):
    pass


def to_settings_response(settings: Settings) -> SettingsResponse:
    return SettingsResponse(
        restaurantName=settings.restaurant_name,
        currency=settings.currency,
        darkMode=settings.dark_mode,
        printerEnabled=settings.printer_enabled,
        soundAlertEnabled=settings.sound_alert_enabled,
    )


class GetSettings:
    """Reads the settings row, creating it with defaults on first access."""

    def __init__(self, repository: SettingsRepository, default_currency: str) -> None:
        self._repository = repository
        self._default_currency = default_currency

    def execute(self) -> SettingsResponse:
        settings = self._repository.get()
        if settings is None:
            settings = Settings(currency=self._default_currency)
            self._repository.save(settings)
            logger.info("settings_initialized")
        return to_settings_response(settings)


class UpdateSettings:
    def __init__(self, repository: SettingsRepository, publisher: EventPublisher) -> None:
        self._repository = repository
        self._publisher = publisher

    def execute(self, request: SettingsRequest, trace_ctx: TraceContext) -> SettingsResponse:
        try:
            settings = Settings(
                restaurant_name=request.restaurant_name.strip(),
                currency=request.currency.upper(),
                dark_mode=request.dark_mode,
                printer_enabled=request.printer_enabled,
                sound_alert_enabled=request.sound_alert_enabled,
            )
        except ValueError as exc:
            raise InvalidSettingsError(str(exc)) from exc

        self._repository.save(settings)
        logger.info("settings_updated")
        publish_change(
            self._publisher,
            TOPIC_SETTINGS,
            serialize_event(
                event_type="settings.updated",
                occurred_at=datetime.now(timezone.utc),
                topic=TOPIC_SETTINGS,
                payload=asdict(settings),
                trace=trace_ctx,
            ),
        )
        return to_settings_response(settings)
