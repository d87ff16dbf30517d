from datetime import date, timedelta

import pytest

from conftest import ANCHOR, FakeWeatherClient, add_city_weather, date_range
from weather_sync.errors import WeatherFetchError
from weather_sync.models.weather import CityWeatherDaily
from weather_sync.services.weather_cache import WeatherCacheService


class TestEnsureCached:
    def test_cache_hit_does_not_fetch(self, db_session, sample_cities):
        origin = sample_cities[0]
        add_city_weather(db_session, origin.id, [ANCHOR])
        client = FakeWeatherClient()

        lookup = WeatherCacheService(client=client).ensure_cached(origin, ANCHOR)

        assert lookup.found is True
        assert lookup.fetched is False
        assert lookup.row.day == ANCHOR
        assert client.calls == []

    def test_miss_fetches_and_stores_whole_window(self, db_session, sample_cities):
        origin = sample_cities[0]
        client = FakeWeatherClient()

        lookup = WeatherCacheService(client=client).ensure_cached(origin, ANCHOR)

        assert lookup.found is True
        assert lookup.fetched is True
        assert client.calls == [(10.0, 10.0, 'Africa/Lagos')]
        # 14 past days + today + 6 forecast days
        assert CityWeatherDaily.query.filter_by(city_id=origin.id).count() == 21

    def test_second_day_same_run_uses_stored_window(self, db_session, sample_cities):
        origin = sample_cities[0]
        client = FakeWeatherClient()
        cache = WeatherCacheService(client=client)

        cache.ensure_cached(origin, ANCHOR)
        lookup = cache.ensure_cached(origin, ANCHOR - timedelta(days=3))

        assert lookup.found is True
        assert lookup.fetched is False
        assert len(client.calls) == 1

    def test_day_outside_window_is_not_found_and_not_refetched(self, db_session, sample_cities):
        origin = sample_cities[0]
        client = FakeWeatherClient()
        cache = WeatherCacheService(client=client)

        first = cache.ensure_cached(origin, date(2024, 6, 1))
        second = cache.ensure_cached(origin, date(2024, 6, 2))

        assert first.found is False
        assert first.fetched is True
        assert second.found is False
        assert len(client.calls) == 1

    def test_fetch_error_is_remembered_for_the_run(self, db_session, sample_cities):
        origin = sample_cities[0]
        client = FakeWeatherClient(error=WeatherFetchError('Open-Meteo returned HTTP 503'))
        cache = WeatherCacheService(client=client)

        with pytest.raises(WeatherFetchError):
            cache.ensure_cached(origin, ANCHOR)
        with pytest.raises(WeatherFetchError, match='503'):
            cache.ensure_cached(origin, ANCHOR + timedelta(days=1))

        assert len(client.calls) == 1
        assert CityWeatherDaily.query.count() == 0

    def test_store_is_idempotent(self, db_session, sample_cities):
        origin = sample_cities[0]
        records = FakeWeatherClient().fetch_daily(origin.lat, origin.lon)
        cache = WeatherCacheService(client=FakeWeatherClient())

        cache.store(origin.id, records)
        cache.store(origin.id, records)

        assert CityWeatherDaily.query.filter_by(city_id=origin.id).count() == len(records)


class TestWindows:
    def test_forecast_rows_exclude_anchor(self, db_session, sample_cities):
        origin = sample_cities[0]
        add_city_weather(db_session, origin.id, date_range(ANCHOR - timedelta(days=14), ANCHOR + timedelta(days=8)))
        cache = WeatherCacheService(client=FakeWeatherClient())

        rows = cache.forecast_rows(origin.id, ANCHOR, 6)

        assert [r.day for r in rows] == date_range(ANCHOR + timedelta(days=1), ANCHOR + timedelta(days=6))

    def test_backfill_rows_exclude_anchor(self, db_session, sample_cities):
        origin = sample_cities[0]
        add_city_weather(db_session, origin.id, date_range(ANCHOR - timedelta(days=14), ANCHOR + timedelta(days=8)))
        cache = WeatherCacheService(client=FakeWeatherClient())

        rows = cache.backfill_rows(origin.id, ANCHOR, 13)

        assert [r.day for r in rows] == date_range(ANCHOR - timedelta(days=13), ANCHOR - timedelta(days=1))

    def test_windows_only_return_cached_days(self, db_session, sample_cities):
        origin = sample_cities[0]
        add_city_weather(db_session, origin.id, [ANCHOR + timedelta(days=2), ANCHOR - timedelta(days=5)])
        cache = WeatherCacheService(client=FakeWeatherClient())

        assert len(cache.forecast_rows(origin.id, ANCHOR, 6)) == 1
        assert len(cache.backfill_rows(origin.id, ANCHOR, 13)) == 1
