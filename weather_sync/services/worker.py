import logging
from datetime import datetime, timezone
from weather_sync.extensions import db
from weather_sync.errors import ResolutionError, WeatherSyncError
from weather_sync.models.weather import UserWeatherDaily
from weather_sync.services.geo import find_nearest_city
from weather_sync.services.job_store import JobStore
from weather_sync.services.location_resolver import resolve_user_coordinates
from weather_sync.services.weather_cache import WeatherCacheService
from weather_sync.utils.upsert import upsert_rows

logger = logging.getLogger(__name__)


class WeatherWorker:
    """Drains queued weather jobs and copies city weather into user_weather_daily.

    Jobs run one after another. Each is claimed (processing, attempts + 1)
    before any lookup or Open-Meteo call, so a crash mid-job leaves a visible
    processing row for the stale sweep instead of silently losing the work.
    """

    def __init__(self, settings, job_store=None, weather_client=None):
        self.settings = settings
        self.job_store = job_store or JobStore()
        self.weather_client = weather_client

    def run(self, now=None):
        now = now or datetime.now(timezone.utc)
        requeued = self.job_store.requeue_stale(
            self.settings.stale_processing_minutes,
            max_attempts=self.settings.worker_max_attempts,
            now=now,
        )
        jobs = self.job_store.fetch_queued(
            limit=self.settings.worker_batch_size,
            max_attempts=self.settings.worker_max_attempts,
        )
        if not jobs:
            logger.info("[Worker] No queued jobs")
            return {'summary': self._summarize([], requeued), 'results': []}

        logger.info(f"[Worker] Processing {len(jobs)} jobs")
        # A fresh cache per run: Open-Meteo is called at most once per city per invocation
        cache = WeatherCacheService(client=self.weather_client, settings=self.settings)
        results = [self.process_job(job, cache, now) for job in jobs]

        summary = self._summarize(results, requeued)
        logger.info(f"[Worker] Complete: {summary}")
        return {'summary': summary, 'results': results}

    def _summarize(self, results, requeued):
        return {
            'total': len(results),
            'done': sum(1 for r in results if r['status'] == 'done'),
            'no_weather_data': sum(1 for r in results if r['status'] == 'no_weather_data'),
            'errors': sum(1 for r in results if r['status'] == 'error'),
            'requeued_stale': requeued,
        }

    def process_job(self, job, cache, now):
        job_id = job.id
        result = {
            'job_id': job_id,
            'user_id': job.user_id,
            'local_date': job.local_date.isoformat(),
        }

        try:
            attempts = self.job_store.claim(job, now=now)
        except Exception as e:
            db.session.rollback()
            logger.error(f"[Worker] job={job_id} claim failed: {e}")
            return {**result, 'status': 'error', 'error': f'claim failed: {e}'}

        try:
            outcome = self._sync(job, cache, now)
        except Exception as e:
            db.session.rollback()
            error = str(e) or e.__class__.__name__
            logger.error(f"[Worker] job={job_id} error: {error}", exc_info=not isinstance(e, WeatherSyncError))
            try:
                job_status = self.job_store.fail(job_id, error, self.settings.worker_max_attempts, now=now)
            except Exception as store_error:
                db.session.rollback()
                logger.error(f"[Worker] job={job_id} could not record failure: {store_error}")
                job_status = None
            return {**result, 'status': 'error', 'error': error, 'attempts': attempts, 'job_status': job_status}

        try:
            self.job_store.complete(job_id, now=now)
        except Exception as e:
            db.session.rollback()
            logger.error(f"[Worker] job={job_id} could not be marked done: {e}")
            return {**result, **outcome, 'status': 'error', 'error': f'finalize failed: {e}'}

        logger.info(
            f"[Worker] job={job_id} {outcome['status']} "
            f"(forecast={outcome.get('forecast_days', 0)}, backfill={outcome.get('backfill_days', 0)}, "
            f"directFetch={outcome['direct_fetch']})"
        )
        return {**result, **outcome}

    def _sync(self, job, cache, now):
        coords = resolve_user_coordinates(job.user_id, job.local_date)
        if coords is None:
            raise ResolutionError("No location data found for user")
        lat, lon = coords

        nearest = find_nearest_city(
            lat, lon,
            box_degrees=self.settings.geo_box_degrees,
            box_limit=self.settings.geo_box_limit,
            fallback_limit=self.settings.geo_fallback_limit,
        )
        if nearest is None:
            raise ResolutionError("No cities found in database")
        city = nearest.city
        logger.info(f"[Worker] job={job.id} user={job.user_id} city={city.name} ({nearest.distance_km:.1f}km)")

        lookup = cache.ensure_cached(city, job.local_date)
        outcome = {
            'city_id': city.id,
            'city_name': city.name,
            'distance_km': round(nearest.distance_km, 1),
            'direct_fetch': lookup.fetched,
        }
        if not lookup.found:
            # Older than Open-Meteo keeps, or outside the fetched window: terminal, not retried
            return {**outcome, 'status': 'no_weather_data'}

        self._write_user_day(job.user_id, lookup.row, city.id, job.local_date, job.timezone, now)

        forecast_count = self._propagate(
            job, city.id, now, 'forecast',
            lambda: cache.forecast_rows(city.id, job.local_date, self.settings.forecast_days),
        )
        backfill_count = self._propagate(
            job, city.id, now, 'backfill',
            lambda: cache.backfill_rows(city.id, job.local_date, self.settings.backfill_days),
        )
        return {**outcome, 'status': 'done', 'forecast_days': forecast_count, 'backfill_days': backfill_count}

    def _propagate(self, job, city_id, now, label, load_rows):
        """Copy a window of cached days to the user. Failures are logged and skipped per day."""
        try:
            rows = load_rows()
        except Exception as e:
            db.session.rollback()
            logger.warning(f"[Worker] job={job.id} {label} window query failed: {e}")
            return 0

        copied = 0
        for row in rows:
            day = row.day
            try:
                self._write_user_day(job.user_id, row, city_id, day, job.timezone, now)
                copied += 1
            except Exception as e:
                logger.warning(f"[Worker] job={job.id} {label} upsert failed for {day}: {e}")
        if copied:
            logger.info(f"[Worker] job={job.id} copied {copied} {label} days")
        return copied

    def _write_user_day(self, user_id, city_row, city_id, day, tz_name, now):
        values = {
            'user_id': user_id,
            'date': day,
            **city_row.aggregates(),
            'city_id': city_id,
            'timezone': tz_name,
            'updated_at': now,
        }
        try:
            upsert_rows(UserWeatherDaily, values, conflict_columns=('user_id', 'date'))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
