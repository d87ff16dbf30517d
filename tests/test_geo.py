import pytest

from weather_sync.models.city import City
from weather_sync.services.geo import find_nearest_city, haversine_km


class TestHaversine:
    def test_zero_distance(self):
        assert haversine_km(10.0, 10.0, 10.0, 10.0) == 0.0

    def test_one_degree_of_latitude(self):
        assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)

    def test_longitude_shrinks_with_latitude(self):
        assert haversine_km(10.0, 10.1, 10.0, 10.5) == pytest.approx(43.8, abs=0.1)
        assert haversine_km(10.0, 10.1, 10.0, 10.0) == pytest.approx(10.95, abs=0.05)


class TestFindNearestCity:
    def test_returns_closest_inside_box(self, db_session, sample_cities):
        nearest = find_nearest_city(10.0, 10.1)

        assert nearest.city.name == 'Origin'
        assert nearest.distance_km == pytest.approx(10.95, abs=0.05)

    def test_closer_to_east_point(self, db_session, sample_cities):
        nearest = find_nearest_city(10.0, 10.4)

        assert nearest.city.name == 'East'
        assert nearest.distance_km == pytest.approx(10.95, abs=0.05)

    def test_first_city_wins_ties(self, db_session, sample_cities):
        nearest = find_nearest_city(10.0, 10.25)

        assert nearest.city.name == 'Origin'

    def test_falls_back_to_sample_when_box_is_empty(self, db_session, sample_cities):
        # Nothing within 2 degrees of the Atlantic point; the sample still yields a city
        nearest = find_nearest_city(40.0, -30.0)

        assert nearest is not None
        assert nearest.city.name == 'Faraway'

    def test_fallback_sample_is_capped(self, db_session):
        db_session.add_all([City(name=f'C{i}', lat=-60.0, lon=float(i)) for i in range(5)])
        db_session.add(City(name='Closest', lat=45.0, lon=45.0))
        db_session.commit()

        nearest = find_nearest_city(50.0, 50.0, fallback_limit=5)

        # Closest was not in the capped sample
        assert nearest.city.name.startswith('C')

    def test_none_without_cities(self, db_session):
        assert find_nearest_city(10.0, 10.0) is None
