from datetime import datetime, timezone
from weather_sync.extensions import db
from sqlalchemy import func


class UserLocationDaily(db.Model):
    __tablename__ = 'user_location_daily'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    date = db.Column(db.Date, nullable=False)
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    timezone = db.Column(db.String(64))
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index('ix_user_location_daily_user_date', 'user_id', 'date'),
    )

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'date': self.date.isoformat(),
            'latitude': self.latitude,
            'longitude': self.longitude,
            'timezone': self.timezone,
        }
