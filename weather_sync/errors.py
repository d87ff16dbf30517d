class WeatherSyncError(Exception):
    """Base class for errors raised by the dispatch/worker core."""


class ConfigurationError(WeatherSyncError):
    """A required setting is missing or invalid."""


class ResolutionError(WeatherSyncError):
    """A user, coordinate, city or timezone could not be resolved."""


class WeatherFetchError(WeatherSyncError):
    """Open-Meteo returned a non-success response or an unusable payload."""
