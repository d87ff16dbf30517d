from dataclasses import dataclass
from typing import Optional

from weather_sync.errors import ConfigurationError


@dataclass(frozen=True)
class SyncSettings:
    """Runtime knobs for the dispatcher, worker and weather cache.

    Built once from the Flask config and handed to each component, so the core
    never reads the environment on its own.
    """

    open_meteo_base_url: str
    open_meteo_timeout_seconds: float = 15.0
    fetch_past_days: int = 14
    fetch_forecast_days: int = 7
    dispatch_concurrency: int = 12
    worker_batch_size: int = 20
    worker_max_attempts: int = 3
    forecast_days: int = 6
    backfill_days: int = 13
    stale_processing_minutes: int = 60
    geo_box_degrees: float = 2.0
    geo_box_limit: int = 100
    geo_fallback_limit: int = 50
    trigger_api_key: Optional[str] = None

    REQUIRED = ('SQLALCHEMY_DATABASE_URI', 'OPEN_METEO_BASE_URL')

    @classmethod
    def from_config(cls, config):
        missing = [key for key in cls.REQUIRED if not config.get(key)]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

        try:
            settings = cls(
                open_meteo_base_url=str(config['OPEN_METEO_BASE_URL']),
                open_meteo_timeout_seconds=float(config.get('OPEN_METEO_TIMEOUT_SECONDS', 15.0)),
                fetch_past_days=int(config.get('FETCH_PAST_DAYS', 14)),
                fetch_forecast_days=int(config.get('FETCH_FORECAST_DAYS', 7)),
                dispatch_concurrency=int(config.get('DISPATCH_CONCURRENCY', 12)),
                worker_batch_size=int(config.get('WORKER_BATCH_SIZE', 20)),
                worker_max_attempts=int(config.get('WORKER_MAX_ATTEMPTS', 3)),
                forecast_days=int(config.get('FORECAST_DAYS', 6)),
                backfill_days=int(config.get('BACKFILL_DAYS', 13)),
                stale_processing_minutes=int(config.get('STALE_PROCESSING_MINUTES', 60)),
                geo_box_degrees=float(config.get('GEO_BOX_DEGREES', 2.0)),
                geo_box_limit=int(config.get('GEO_BOX_LIMIT', 100)),
                geo_fallback_limit=int(config.get('GEO_FALLBACK_LIMIT', 50)),
                trigger_api_key=config.get('TRIGGER_API_KEY') or None,
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid setting value: {e}") from e

        for field in ('dispatch_concurrency', 'worker_batch_size', 'worker_max_attempts'):
            if getattr(settings, field) < 1:
                raise ConfigurationError(f'"{field}" must be at least 1')
        return settings


def get_settings(app=None):
    """Return the SyncSettings built by create_app for the given (or current) app."""
    if app is None:
        from flask import current_app
        app = current_app
    settings = app.extensions.get('weather_sync_settings')
    if settings is None:
        settings = SyncSettings.from_config(app.config)
        app.extensions['weather_sync_settings'] = settings
    return settings
