import uuid
from datetime import datetime, timezone
from weather_sync.extensions import db

JOB_STATUSES = ('queued', 'processing', 'done', 'failed')


def _utcnow():
    return datetime.now(timezone.utc)


class WeatherSyncJob(db.Model):
    """One unit of weather work per (user, local calendar date). Never deleted."""
    __tablename__ = 'weather_sync_jobs'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(64), nullable=False)
    local_date = db.Column(db.Date, nullable=False)
    job_type = db.Column(db.String(32), nullable=False, default='weather')
    status = db.Column(db.String(16), nullable=False, default='queued')
    timezone = db.Column(db.String(64))
    attempts = db.Column(db.Integer, nullable=False, default=0)
    locked_at = db.Column(db.DateTime(timezone=True))
    last_error = db.Column(db.Text)
    created_by = db.Column(db.String(32), default='dispatcher')
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'local_date', name='uq_weather_sync_jobs_user_date'),
        db.Index('ix_weather_sync_jobs_status_created', 'status', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'local_date': self.local_date.isoformat(),
            'job_type': self.job_type,
            'status': self.status,
            'timezone': self.timezone,
            'attempts': self.attempts,
            'locked_at': self.locked_at.isoformat() if self.locked_at else None,
            'last_error': self.last_error,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
