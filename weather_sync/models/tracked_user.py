from weather_sync.extensions import db
from sqlalchemy import func


class TrackedUser(db.Model):
    """Per-user tracking flag. Owned by the app's settings screens; read-only here."""
    __tablename__ = 'tracked_users'

    user_id = db.Column(db.String(64), primary_key=True)
    weather_enabled = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        db.Index('ix_tracked_users_weather_enabled', 'weather_enabled'),
    )
