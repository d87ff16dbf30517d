import math
from dataclasses import dataclass
from weather_sync.models.city import City

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class NearestCity:
    city: City
    distance_km: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def closest(lat, lon, cities):
    """Linear scan; the first city wins ties."""
    best = None
    for city in cities:
        distance = haversine_km(lat, lon, city.lat, city.lon)
        if best is None or distance < best.distance_km:
            best = NearestCity(city=city, distance_km=distance)
    return best


def find_nearest_city(lat, lon, box_degrees=2.0, box_limit=100, fallback_limit=50):
    """Nearest reference city to (lat, lon), or None if there are no cities at all.

    Only cities inside a +/-box_degrees bounding box are scanned. When the box
    is empty, an arbitrary sample of fallback_limit cities is scanned instead,
    so a nearer city outside both sets can be missed.
    """
    candidates = (
        City.query
        .filter(
            City.lat >= lat - box_degrees,
            City.lat <= lat + box_degrees,
            City.lon >= lon - box_degrees,
            City.lon <= lon + box_degrees,
        )
        .order_by(City.id)
        .limit(box_limit)
        .all()
    )
    if not candidates:
        candidates = City.query.order_by(City.id).limit(fallback_limit).all()
    return closest(lat, lon, candidates)
