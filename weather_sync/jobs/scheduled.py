import logging
from weather_sync.settings import get_settings

logger = logging.getLogger(__name__)


def _dispatch_job(app):
    with app.app_context():
        logger.info("[Job] Weather dispatch")
        from weather_sync.services.dispatcher import WeatherDispatcher
        report = WeatherDispatcher(get_settings(app)).run()
        logger.info(f"[Job] Weather dispatch: {report['summary']}")


def _worker_job(app):
    with app.app_context():
        logger.info("[Job] Weather worker")
        from weather_sync.services.worker import WeatherWorker
        report = WeatherWorker(get_settings(app)).run()
        logger.info(f"[Job] Weather worker: {report['summary']}")


def _upsert_job(scheduler, **kwargs):
    scheduler.add_job(replace_existing=True, **kwargs)


def register_jobs(scheduler, app):
    """Register the hourly dispatch and worker cadence (only when SCHEDULER_ENABLED)."""
    _upsert_job(
        scheduler,
        id='weather_dispatch',
        func=_dispatch_job,
        trigger='cron',
        args=[app],
        minute=app.config.get('DISPATCH_CRON_MINUTE', '5'),
        misfire_grace_time=900,
        coalesce=True,
        max_instances=1,
    )
    _upsert_job(
        scheduler,
        id='weather_worker',
        func=_worker_job,
        trigger='cron',
        args=[app],
        minute=app.config.get('WORKER_CRON_MINUTE', '15,45'),
        misfire_grace_time=900,
        coalesce=True,
        max_instances=1,
    )

    logger.info("Weather sync jobs registered")
