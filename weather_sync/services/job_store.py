import logging
import uuid
from datetime import datetime, timedelta, timezone
from sqlalchemy import func
from weather_sync.extensions import db
from weather_sync.models.job import JOB_STATUSES, WeatherSyncJob
from weather_sync.utils.upsert import upsert_rows

logger = logging.getLogger(__name__)

STALE_LEASE_ERROR = 'stale processing lease requeued'
STALE_LEASE_EXHAUSTED = 'stale processing lease, no attempts left'


class JobStore:
    """Durable weather job queue.

    Every write is a point-in-time update keyed by the job id or by the
    (user_id, local_date) natural key. There is no lock beyond the claim write:
    two overlapping workers may both claim a job, and the idempotent output
    upserts keep that harmless.
    """

    def enqueue(self, user_id, local_date, timezone_name, created_by='dispatcher', now=None):
        """Create the job for (user, local_date) or reset an existing one to a fresh queued state."""
        now = now or datetime.now(timezone.utc)
        upsert_rows(
            WeatherSyncJob,
            {
                'id': str(uuid.uuid4()),
                'user_id': user_id,
                'local_date': local_date,
                'job_type': 'weather',
                'status': 'queued',
                'timezone': timezone_name,
                'attempts': 0,
                'locked_at': None,
                'last_error': None,
                'created_by': created_by,
                'created_at': now,
                'updated_at': now,
            },
            conflict_columns=('user_id', 'local_date'),
            update_columns=(
                'job_type', 'status', 'timezone', 'attempts',
                'locked_at', 'last_error', 'created_by', 'updated_at',
            ),
        )
        db.session.commit()
        return WeatherSyncJob.query.filter_by(user_id=user_id, local_date=local_date).first()

    def fetch_queued(self, limit, max_attempts):
        return (
            WeatherSyncJob.query
            .filter(
                WeatherSyncJob.status == 'queued',
                WeatherSyncJob.attempts < max_attempts,
            )
            .order_by(WeatherSyncJob.created_at.asc())
            .limit(limit)
            .all()
        )

    def claim(self, job, now=None):
        """Mark the job processing and bump its attempt counter before any external work."""
        now = now or datetime.now(timezone.utc)
        WeatherSyncJob.query.filter(WeatherSyncJob.id == job.id).update(
            {
                'status': 'processing',
                'attempts': WeatherSyncJob.attempts + 1,
                'locked_at': now,
                'updated_at': now,
            },
            synchronize_session=False,
        )
        db.session.commit()
        db.session.refresh(job)
        return job.attempts

    def complete(self, job_id, now=None):
        now = now or datetime.now(timezone.utc)
        WeatherSyncJob.query.filter(WeatherSyncJob.id == job_id).update(
            {'status': 'done', 'last_error': None, 'updated_at': now},
            synchronize_session=False,
        )
        db.session.commit()

    def fail(self, job_id, error, max_attempts, now=None):
        """Send a job back to the queue, or to failed once it has used its attempts."""
        now = now or datetime.now(timezone.utc)
        job = db.session.get(WeatherSyncJob, job_id)
        if not job:
            return None
        attempts = job.attempts or 0
        job.status = 'failed' if attempts >= max_attempts else 'queued'
        job.last_error = (error or 'unknown error')[:2000]
        job.updated_at = now
        db.session.commit()
        logger.warning(
            "Job %s %s after %s/%s attempts: %s",
            job_id, job.status, attempts, max_attempts, job.last_error,
        )
        return job.status

    def requeue_stale(self, older_than_minutes, max_attempts, now=None):
        """Return jobs stuck in processing (crashed worker) to the queue.

        Attempts are kept, so a job that already used its last attempt goes to
        failed instead. Returns the number of jobs requeued.
        """
        if older_than_minutes <= 0:
            return 0
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=older_than_minutes)
        stale = WeatherSyncJob.query.filter(
            WeatherSyncJob.status == 'processing',
            WeatherSyncJob.locked_at.isnot(None),
            WeatherSyncJob.locked_at < cutoff,
        )

        exhausted = stale.filter(WeatherSyncJob.attempts >= max_attempts).update(
            {
                'status': 'failed',
                'locked_at': None,
                'last_error': STALE_LEASE_EXHAUSTED,
                'updated_at': now,
            },
            synchronize_session=False,
        )
        count = stale.filter(WeatherSyncJob.attempts < max_attempts).update(
            {
                'status': 'queued',
                'locked_at': None,
                'last_error': STALE_LEASE_ERROR,
                'updated_at': now,
            },
            synchronize_session=False,
        )
        db.session.commit()
        if exhausted:
            logger.warning("Failed %s stale jobs with no attempts left", exhausted)
        if count:
            logger.warning("Requeued %s jobs stuck in processing for over %sm", count, older_than_minutes)
        return count

    def status_counts(self):
        rows = (
            db.session.query(WeatherSyncJob.status, func.count(WeatherSyncJob.id))
            .group_by(WeatherSyncJob.status)
            .all()
        )
        counts = {status: 0 for status in JOB_STATUSES}
        counts.update({status: count for status, count in rows})
        return counts

    def oldest_processing(self):
        return (
            WeatherSyncJob.query
            .filter(WeatherSyncJob.status == 'processing')
            .order_by(WeatherSyncJob.locked_at.asc())
            .first()
        )
