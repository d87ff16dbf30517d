import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from weather_sync.extensions import db
from weather_sync.errors import WeatherFetchError
from weather_sync.integrations.open_meteo import OpenMeteoClient
from weather_sync.models.weather import CityWeatherDaily
from weather_sync.utils.upsert import upsert_rows

logger = logging.getLogger(__name__)


@dataclass
class CacheLookup:
    found: bool
    row: Optional[CityWeatherDaily] = None
    fetched: bool = False


class WeatherCacheService:
    """Per-city daily weather, filled lazily from Open-Meteo.

    One instance lives for one worker invocation and calls Open-Meteo at most
    once per city during that time. A miss backfills the whole fetch window
    (history + forecast) so later jobs for nearby days are served from the
    cache.
    """

    def __init__(self, client=None, settings=None):
        if client is None and settings is not None:
            client = OpenMeteoClient(
                base_url=settings.open_meteo_base_url,
                timeout=settings.open_meteo_timeout_seconds,
                past_days=settings.fetch_past_days,
                forecast_days=settings.fetch_forecast_days,
            )
        self.client = client or OpenMeteoClient()
        self._fetched = set()
        self._fetch_errors = {}

    def get(self, city_id, day):
        return CityWeatherDaily.query.filter_by(city_id=city_id, day=day).first()

    def ensure_cached(self, city, day):
        row = self.get(city.id, day)
        if row:
            return CacheLookup(found=True, row=row)

        if city.id in self._fetch_errors:
            raise WeatherFetchError(self._fetch_errors[city.id])
        if city.id in self._fetched:
            logger.info("City %s already fetched this run, no data for %s", city.id, day)
            return CacheLookup(found=False)

        logger.info("No cached weather for city=%s day=%s, fetching from Open-Meteo", city.id, day)
        self._fetched.add(city.id)
        try:
            records = self.client.fetch_daily(city.lat, city.lon, city.timezone)
        except WeatherFetchError as e:
            self._fetch_errors[city.id] = str(e)
            logger.error("Open-Meteo fetch failed for city=%s: %s", city.id, e)
            raise

        try:
            stored = self.store(city.id, records)
        except Exception as e:
            # Later jobs for this city must retry, not read an empty cache as "no data"
            self._fetch_errors[city.id] = f"weather cache write failed: {e}"
            logger.error("Storing Open-Meteo weather failed for city=%s: %s", city.id, e)
            raise
        logger.info("Stored %s days of Open-Meteo weather for city=%s", stored, city.id)

        row = self.get(city.id, day)
        return CacheLookup(found=row is not None, row=row, fetched=True)

    def store(self, city_id, records, now=None):
        now = now or datetime.now(timezone.utc)
        rows = []
        for record in records:
            row = record.to_cache_row(city_id)
            row['updated_at'] = now
            rows.append(row)
        try:
            upsert_rows(CityWeatherDaily, rows, conflict_columns=('city_id', 'day'))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return len(rows)

    def forecast_rows(self, city_id, anchor, days):
        """Cached days strictly after anchor, up to anchor + days."""
        return (
            CityWeatherDaily.query
            .filter(
                CityWeatherDaily.city_id == city_id,
                CityWeatherDaily.day > anchor,
                CityWeatherDaily.day <= anchor + timedelta(days=days),
            )
            .order_by(CityWeatherDaily.day.asc())
            .all()
        )

    def backfill_rows(self, city_id, anchor, days):
        """Cached days from anchor - days up to, not including, anchor."""
        return (
            CityWeatherDaily.query
            .filter(
                CityWeatherDaily.city_id == city_id,
                CityWeatherDaily.day >= anchor - timedelta(days=days),
                CityWeatherDaily.day < anchor,
            )
            .order_by(CityWeatherDaily.day.asc())
            .all()
        )
