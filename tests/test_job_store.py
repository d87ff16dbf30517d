from datetime import datetime, timedelta, timezone

from conftest import ANCHOR
from weather_sync.models.job import WeatherSyncJob
from weather_sync.services.job_store import STALE_LEASE_ERROR, STALE_LEASE_EXHAUSTED, JobStore

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def _enqueue(store, user_id='u1', local_date=ANCHOR, now=NOW):
    return store.enqueue(user_id, local_date, 'Africa/Lagos', now=now)


class TestEnqueue:
    def test_creates_queued_job(self, db_session):
        job = _enqueue(JobStore())

        assert job.status == 'queued'
        assert job.attempts == 0
        assert job.job_type == 'weather'
        assert job.timezone == 'Africa/Lagos'
        assert job.created_by == 'dispatcher'

    def test_same_user_and_date_is_one_job(self, db_session):
        store = JobStore()
        first = _enqueue(store)
        second = _enqueue(store, now=NOW + timedelta(hours=1))

        assert WeatherSyncJob.query.count() == 1
        assert second.id == first.id

    def test_reenqueue_resets_failed_job(self, db_session):
        store = JobStore()
        job = _enqueue(store)
        job.status = 'failed'
        job.attempts = 3
        job.last_error = 'boom'
        db_session.commit()

        job = _enqueue(store, now=NOW + timedelta(hours=1))
        db_session.refresh(job)

        assert job.status == 'queued'
        assert job.attempts == 0
        assert job.last_error is None

    def test_other_date_is_a_new_job(self, db_session):
        store = JobStore()
        _enqueue(store)
        _enqueue(store, local_date=ANCHOR + timedelta(days=1))

        assert WeatherSyncJob.query.count() == 2


class TestLifecycle:
    def test_claim_marks_processing_and_counts_attempt(self, db_session):
        store = JobStore()
        job = _enqueue(store)

        attempts = store.claim(job, now=NOW)

        assert attempts == 1
        assert job.status == 'processing'
        assert job.locked_at is not None

    def test_complete_clears_error(self, db_session):
        store = JobStore()
        job = _enqueue(store)
        store.claim(job, now=NOW)
        store.fail(job.id, 'transient', max_attempts=3, now=NOW)
        store.claim(job, now=NOW)

        store.complete(job.id, now=NOW)
        db_session.refresh(job)

        assert job.status == 'done'
        assert job.last_error is None

    def test_fail_requeues_until_attempts_are_used(self, db_session):
        store = JobStore()
        job = _enqueue(store)

        statuses = []
        for _ in range(3):
            store.claim(job, now=NOW)
            statuses.append(store.fail(job.id, 'No location data found for user', max_attempts=3, now=NOW))

        db_session.refresh(job)
        assert statuses == ['queued', 'queued', 'failed']
        assert job.attempts == 3
        assert job.last_error == 'No location data found for user'

    def test_fail_unknown_job(self, db_session):
        assert JobStore().fail('missing', 'boom', max_attempts=3) is None


class TestFetchQueued:
    def test_oldest_first_with_limit(self, db_session):
        store = JobStore()
        _enqueue(store, user_id='late', now=NOW + timedelta(minutes=5))
        _enqueue(store, user_id='early', now=NOW)
        _enqueue(store, user_id='middle', now=NOW + timedelta(minutes=1))

        jobs = store.fetch_queued(limit=2, max_attempts=3)

        assert [j.user_id for j in jobs] == ['early', 'middle']

    def test_skips_exhausted_and_non_queued(self, db_session):
        store = JobStore()
        exhausted = _enqueue(store, user_id='exhausted')
        exhausted.attempts = 3
        done = _enqueue(store, user_id='done')
        done.status = 'done'
        db_session.commit()
        _enqueue(store, user_id='fresh')

        jobs = store.fetch_queued(limit=10, max_attempts=3)

        assert [j.user_id for j in jobs] == ['fresh']


class TestStaleSweep:
    def test_requeues_old_processing_jobs(self, db_session):
        store = JobStore()
        stuck = _enqueue(store, user_id='stuck')
        store.claim(stuck, now=NOW - timedelta(hours=2))
        active = _enqueue(store, user_id='active')
        store.claim(active, now=NOW - timedelta(minutes=5))

        count = store.requeue_stale(60, max_attempts=3, now=NOW)
        db_session.refresh(stuck)
        db_session.refresh(active)

        assert count == 1
        assert stuck.status == 'queued'
        assert stuck.attempts == 1
        assert stuck.locked_at is None
        assert stuck.last_error == STALE_LEASE_ERROR
        assert active.status == 'processing'

    def test_exhausted_stale_job_fails(self, db_session):
        store = JobStore()
        job = _enqueue(store)
        for _ in range(3):
            store.claim(job, now=NOW - timedelta(hours=2))

        count = store.requeue_stale(60, max_attempts=3, now=NOW)
        db_session.refresh(job)

        assert count == 0
        assert job.status == 'failed'
        assert job.attempts == 3
        assert job.locked_at is None
        assert job.last_error == STALE_LEASE_EXHAUSTED

    def test_disabled_sweep(self, db_session):
        store = JobStore()
        stuck = _enqueue(store)
        store.claim(stuck, now=NOW - timedelta(days=1))

        assert store.requeue_stale(0, max_attempts=3, now=NOW) == 0


class TestStatus:
    def test_counts_every_status(self, db_session):
        store = JobStore()
        _enqueue(store, user_id='a')
        job = _enqueue(store, user_id='b')
        store.claim(job, now=NOW)

        counts = store.status_counts()

        assert counts == {'queued': 1, 'processing': 1, 'done': 0, 'failed': 0}
        assert store.oldest_processing().user_id == 'b'
