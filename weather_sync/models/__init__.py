from weather_sync.models.tracked_user import TrackedUser
from weather_sync.models.location import UserLocationDaily
from weather_sync.models.city import City
from weather_sync.models.weather import CityWeatherDaily, UserWeatherDaily
from weather_sync.models.job import WeatherSyncJob

__all__ = [
    'TrackedUser',
    'UserLocationDaily',
    'City',
    'CityWeatherDaily', 'UserWeatherDaily',
    'WeatherSyncJob',
]
