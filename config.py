import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'postgresql://localhost/weather_sync')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True, 'pool_size': 5}

    # Shared secret for the trigger endpoints (cron / edge gateway)
    TRIGGER_API_KEY = os.getenv('TRIGGER_API_KEY')

    # Open-Meteo
    OPEN_METEO_BASE_URL = os.getenv('OPEN_METEO_BASE_URL', 'https://api.open-meteo.com/v1/forecast')
    OPEN_METEO_TIMEOUT_SECONDS = float(os.getenv('OPEN_METEO_TIMEOUT_SECONDS', '15'))
    FETCH_PAST_DAYS = int(os.getenv('FETCH_PAST_DAYS', '14'))
    FETCH_FORECAST_DAYS = int(os.getenv('FETCH_FORECAST_DAYS', '7'))

    # Dispatcher
    DISPATCH_CONCURRENCY = int(os.getenv('DISPATCH_CONCURRENCY', '12'))

    # Worker
    WORKER_BATCH_SIZE = int(os.getenv('WORKER_BATCH_SIZE', '20'))
    WORKER_MAX_ATTEMPTS = int(os.getenv('WORKER_MAX_ATTEMPTS', '3'))
    FORECAST_DAYS = int(os.getenv('FORECAST_DAYS', '6'))
    BACKFILL_DAYS = int(os.getenv('BACKFILL_DAYS', '13'))
    STALE_PROCESSING_MINUTES = int(os.getenv('STALE_PROCESSING_MINUTES', '60'))

    # Nearest-city search
    GEO_BOX_DEGREES = float(os.getenv('GEO_BOX_DEGREES', '2.0'))
    GEO_BOX_LIMIT = int(os.getenv('GEO_BOX_LIMIT', '100'))
    GEO_FALLBACK_LIMIT = int(os.getenv('GEO_FALLBACK_LIMIT', '50'))

    # Embedded cadence for single-process deployments; normally cron hits the triggers
    SCHEDULER_ENABLED = os.getenv('SCHEDULER_ENABLED', 'false').lower() == 'true'
    SCHEDULER_API_ENABLED = False
    DISPATCH_CRON_MINUTE = os.getenv('DISPATCH_CRON_MINUTE', '5')
    WORKER_CRON_MINUTE = os.getenv('WORKER_CRON_MINUTE', '15,45')

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}  # SQLite doesn't support pool_size
    TRIGGER_API_KEY = None
    OPEN_METEO_BASE_URL = 'https://open-meteo.test/v1/forecast'
    DISPATCH_CONCURRENCY = 1  # in-memory SQLite shares a single connection
    SCHEDULER_ENABLED = False
