from datetime import datetime, timezone
from weather_sync.extensions import db


AGGREGATE_FIELDS = (
    'temp_c_min', 'temp_c_max', 'temp_c_mean',
    'pressure_hpa_min', 'pressure_hpa_max', 'pressure_hpa_mean',
    'humidity_pct_min', 'humidity_pct_max', 'humidity_pct_mean',
    'wind_speed_mps_mean', 'wind_speed_mps_max',
    'uv_index_max', 'weather_code', 'is_thunderstorm_day',
)


def _utcnow():
    return datetime.now(timezone.utc)


class DailyWeatherMixin:
    temp_c_min = db.Column(db.Float)
    temp_c_max = db.Column(db.Float)
    temp_c_mean = db.Column(db.Float)
    pressure_hpa_min = db.Column(db.Float)
    pressure_hpa_max = db.Column(db.Float)
    pressure_hpa_mean = db.Column(db.Float)
    humidity_pct_min = db.Column(db.Float)
    humidity_pct_max = db.Column(db.Float)
    humidity_pct_mean = db.Column(db.Float)
    wind_speed_mps_mean = db.Column(db.Float)
    wind_speed_mps_max = db.Column(db.Float)
    uv_index_max = db.Column(db.Float)
    weather_code = db.Column(db.Integer)
    is_thunderstorm_day = db.Column(db.Boolean)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def aggregates(self):
        return {field: getattr(self, field) for field in AGGREGATE_FIELDS}


class CityWeatherDaily(DailyWeatherMixin, db.Model):
    __tablename__ = 'city_weather_daily'

    id = db.Column(db.Integer, primary_key=True)
    city_id = db.Column(db.Integer, db.ForeignKey('cities.id'), nullable=False)
    day = db.Column(db.Date, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('city_id', 'day', name='uq_city_weather_city_day'),
    )


class UserWeatherDaily(DailyWeatherMixin, db.Model):
    __tablename__ = 'user_weather_daily'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    date = db.Column(db.Date, nullable=False)
    city_id = db.Column(db.Integer, db.ForeignKey('cities.id'))
    timezone = db.Column(db.String(64))

    __table_args__ = (
        db.UniqueConstraint('user_id', 'date', name='uq_user_weather_user_date'),
    )

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'date': self.date.isoformat(),
            'city_id': self.city_id,
            'timezone': self.timezone,
            **self.aggregates(),
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
