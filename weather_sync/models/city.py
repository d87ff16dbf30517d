from weather_sync.extensions import db


class City(db.Model):
    __tablename__ = 'cities'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    lat = db.Column(db.Float, nullable=False)
    lon = db.Column(db.Float, nullable=False)
    timezone = db.Column(db.String(64))

    __table_args__ = (
        db.Index('ix_cities_lat_lon', 'lat', 'lon'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'lat': self.lat,
            'lon': self.lon,
            'timezone': self.timezone,
        }
