import pytest
from datetime import date, datetime, timedelta, timezone

from weather_sync import create_app
from weather_sync.extensions import db as _db
from weather_sync.integrations.open_meteo import DailyWeather
from weather_sync.models.city import City
from weather_sync.models.location import UserLocationDaily
from weather_sync.models.tracked_user import TrackedUser
from weather_sync.models.weather import CityWeatherDaily
from weather_sync.settings import get_settings
from config import TestConfig

ANCHOR = date(2025, 1, 15)


@pytest.fixture(scope='session')
def app():
    """Create app with test config."""
    app = create_app(TestConfig)
    return app


@pytest.fixture(autouse=True)
def setup_db(app):
    """Create tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    with app.app_context():
        yield _db.session


@pytest.fixture
def settings(app):
    return get_settings(app)


@pytest.fixture
def sample_cities(db_session):
    """Three cities: two near (10, 10) and one far away."""
    cities = [
        City(name='Origin', lat=10.0, lon=10.0, timezone='Africa/Lagos'),
        City(name='East', lat=10.0, lon=10.5, timezone='Africa/Lagos'),
        City(name='Faraway', lat=48.85, lon=2.35, timezone='Europe/Paris'),
    ]
    db_session.add_all(cities)
    db_session.commit()
    return cities


def add_location(session, user_id, day, lat=10.0, lon=10.1, tz='Africa/Lagos', updated_at=None):
    row = UserLocationDaily(
        user_id=user_id,
        date=day,
        latitude=lat,
        longitude=lon,
        timezone=tz,
        updated_at=updated_at or datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    session.add(row)
    session.commit()
    return row


def add_tracked_user(session, user_id, enabled=True):
    user = TrackedUser(user_id=user_id, weather_enabled=enabled)
    session.add(user)
    session.commit()
    return user


def weather_values(day):
    seed = day.toordinal() % 10
    return {
        'temp_c_min': 10.0 + seed,
        'temp_c_max': 20.0 + seed,
        'temp_c_mean': 15.0 + seed,
        'pressure_hpa_min': 1005.0,
        'pressure_hpa_max': 1015.0,
        'pressure_hpa_mean': 1010.0,
        'humidity_pct_min': 40.0,
        'humidity_pct_max': 80.0,
        'humidity_pct_mean': 60.0,
        'wind_speed_mps_mean': 3.5,
        'wind_speed_mps_max': 7.0,
        'uv_index_max': 5.0,
        'weather_code': 95.0 if seed == 0 else 1.0,
    }


def add_city_weather(session, city_id, days):
    for day in days:
        values = weather_values(day)
        values['weather_code'] = int(values['weather_code'])
        session.add(CityWeatherDaily(
            city_id=city_id,
            day=day,
            is_thunderstorm_day=values['weather_code'] == 95,
            **values,
        ))
    session.commit()


def date_range(start, end):
    """Inclusive list of dates."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


class FakeWeatherClient:
    """Stands in for OpenMeteoClient; returns a fixed window around `anchor`."""

    def __init__(self, anchor=ANCHOR, past_days=14, forecast_days=7, error=None):
        self.anchor = anchor
        self.past_days = past_days
        self.forecast_days = forecast_days
        self.error = error
        self.calls = []

    def fetch_daily(self, lat, lon, timezone_name=None):
        self.calls.append((lat, lon, timezone_name))
        if self.error:
            raise self.error
        days = date_range(
            self.anchor - timedelta(days=self.past_days),
            self.anchor + timedelta(days=self.forecast_days - 1),
        )
        return [DailyWeather(day=day, values=weather_values(day)) for day in days]
