import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from flask import current_app
from weather_sync.extensions import db
from weather_sync.models.tracked_user import TrackedUser
from weather_sync.services.job_store import JobStore
from weather_sync.services.location_resolver import local_date_for, resolve_user_timezone

logger = logging.getLogger(__name__)


def map_bounded(items, limit, fn):
    """Apply fn to every item with at most `limit` calls in flight. Results keep input order."""
    if limit <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(limit, len(items))) as executor:
        return list(executor.map(fn, items))


class WeatherDispatcher:
    def __init__(self, settings, job_store=None):
        self.settings = settings
        self.job_store = job_store or JobStore()

    def tracked_user_ids(self):
        rows = (
            db.session.query(TrackedUser.user_id)
            .filter(TrackedUser.weather_enabled.is_(True))
            .order_by(TrackedUser.user_id)
            .all()
        )
        return [user_id for (user_id,) in rows]

    def run(self, now=None):
        """Enqueue (or repair) today's weather job for every tracked user."""
        now = now or datetime.now(timezone.utc)
        utc_date = now.astimezone(timezone.utc).date()
        user_ids = self.tracked_user_ids()
        logger.info(f"[Dispatcher] Checking {len(user_ids)} users at {now.isoformat()}")

        concurrency = self.settings.dispatch_concurrency
        if concurrency > 1:
            app = current_app._get_current_object()

            def dispatch_in_context(user_id):
                with app.app_context():
                    return self.dispatch_user(user_id, utc_date, now)

            results = map_bounded(user_ids, concurrency, dispatch_in_context)
        else:
            results = [self.dispatch_user(user_id, utc_date, now) for user_id in user_ids]

        summary = {
            'checked_users': len(user_ids),
            'enqueued': sum(1 for r in results if r['status'] == 'enqueued'),
            'no_timezone': sum(1 for r in results if r['status'] == 'no_timezone'),
            'errors': sum(1 for r in results if r['status'].endswith('_error')),
            'now_utc': now.isoformat(),
        }
        logger.info(f"[Dispatcher] Complete: {summary}")
        return {'summary': summary, 'results': results}

    def dispatch_user(self, user_id, utc_date, now, created_by='dispatcher'):
        try:
            tz_name = resolve_user_timezone(user_id, utc_date)
        except Exception as e:
            db.session.rollback()
            logger.error(f"[Dispatcher] Timezone lookup failed for user {user_id}: {e}")
            return {'user_id': user_id, 'status': 'resolver_error', 'error': str(e)}

        if not tz_name:
            return {'user_id': user_id, 'status': 'no_timezone'}

        try:
            local_date = local_date_for(tz_name, now)
        except Exception as e:
            logger.error(f"[Dispatcher] Local date failed for user {user_id} in {tz_name}: {e}")
            return {'user_id': user_id, 'status': 'resolver_error', 'error': str(e), 'timezone': tz_name}

        try:
            self.job_store.enqueue(user_id, local_date, tz_name, created_by=created_by, now=now)
        except Exception as e:
            db.session.rollback()
            logger.error(f"[Dispatcher] Enqueue failed for user {user_id} on {local_date}: {e}")
            return {
                'user_id': user_id,
                'status': 'enqueue_error',
                'error': str(e),
                'timezone': tz_name,
                'local_date': local_date.isoformat(),
            }

        return {
            'user_id': user_id,
            'status': 'enqueued',
            'timezone': tz_name,
            'local_date': local_date.isoformat(),
        }
