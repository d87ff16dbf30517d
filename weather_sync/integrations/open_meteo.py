import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional
import requests
from weather_sync.errors import WeatherFetchError

logger = logging.getLogger(__name__)

OPEN_METEO_BASE = 'https://api.open-meteo.com/v1/forecast'

# Open-Meteo daily variable -> cache column
DAILY_VARIABLES = {
    'temperature_2m_min': 'temp_c_min',
    'temperature_2m_max': 'temp_c_max',
    'temperature_2m_mean': 'temp_c_mean',
    'surface_pressure_mean': 'pressure_hpa_mean',
    'surface_pressure_min': 'pressure_hpa_min',
    'surface_pressure_max': 'pressure_hpa_max',
    'relative_humidity_2m_mean': 'humidity_pct_mean',
    'relative_humidity_2m_min': 'humidity_pct_min',
    'relative_humidity_2m_max': 'humidity_pct_max',
    'uv_index_max': 'uv_index_max',
    'wind_speed_10m_mean': 'wind_speed_mps_mean',
    'wind_speed_10m_max': 'wind_speed_mps_max',
    'weathercode': 'weather_code',
}

# WMO weather codes for thunderstorms (with and without hail)
THUNDERSTORM_CODES = frozenset({95, 96, 99})


@dataclass(frozen=True)
class DailyWeather:
    day: date
    values: Dict[str, Optional[float]] = field(default_factory=dict)

    @property
    def weather_code(self):
        code = self.values.get('weather_code')
        return int(code) if code is not None else None

    @property
    def is_thunderstorm_day(self):
        code = self.weather_code
        return None if code is None else code in THUNDERSTORM_CODES

    def to_cache_row(self, city_id):
        row = {column: self.values.get(column) for column in DAILY_VARIABLES.values()}
        row['weather_code'] = self.weather_code
        row['is_thunderstorm_day'] = self.is_thunderstorm_day
        row['city_id'] = city_id
        row['day'] = self.day
        return row


class OpenMeteoClient:
    def __init__(self, base_url=OPEN_METEO_BASE, timeout=15.0, past_days=14, forecast_days=7):
        self.base_url = base_url
        self.timeout = timeout
        self.past_days = past_days
        self.forecast_days = forecast_days

    def fetch_daily(self, lat, lon, timezone_name=None) -> List[DailyWeather]:
        """Fetch past_days of history plus forecast_days ahead, one record per day."""
        params = {
            'latitude': lat,
            'longitude': lon,
            'daily': ','.join(DAILY_VARIABLES),
            'past_days': self.past_days,
            'forecast_days': self.forecast_days,
            'timezone': timezone_name or 'auto',
            'wind_speed_unit': 'ms',
        }
        try:
            resp = requests.get(
                self.base_url,
                params=params,
                headers={'Accept': 'application/json'},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise WeatherFetchError(f"open-meteo request failed: {e}") from e

        if resp.status_code != 200:
            raise WeatherFetchError(f"open-meteo {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise WeatherFetchError("open-meteo returned invalid JSON") from e

        return parse_daily(payload)


def parse_daily(payload) -> List[DailyWeather]:
    """Validate an Open-Meteo `daily` block and turn it into per-day records."""
    daily = payload.get('daily') if isinstance(payload, dict) else None
    if not isinstance(daily, dict) or not isinstance(daily.get('time'), list):
        raise WeatherFetchError("missing daily block")

    days = daily['time']
    missing = [name for name in DAILY_VARIABLES if not isinstance(daily.get(name), list)]
    if missing:
        raise WeatherFetchError(f"missing daily variables: {', '.join(missing)}")
    short = [name for name in DAILY_VARIABLES if len(daily[name]) != len(days)]
    if short:
        raise WeatherFetchError(f"daily arrays not aligned with time: {', '.join(short)}")

    records = []
    for i, raw_day in enumerate(days):
        try:
            day = date.fromisoformat(str(raw_day))
        except ValueError as e:
            raise WeatherFetchError(f"invalid day {raw_day!r}") from e
        values = {}
        for name, column in DAILY_VARIABLES.items():
            value = daily[name][i]
            if value is not None and not isinstance(value, (int, float)):
                raise WeatherFetchError(f"non-numeric {name} for {raw_day}")
            values[column] = float(value) if value is not None else None
        records.append(DailyWeather(day=day, values=values))
    return records
