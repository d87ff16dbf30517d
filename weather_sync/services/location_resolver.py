"""Resolve where (and when) a user is from their sparse daily location history.

Location rows are written by the mobile app and are often recorded a day off
from the user's real local date, so every lookup probes a +/-1 day window.
"""
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from weather_sync.errors import ResolutionError
from weather_sync.models.location import UserLocationDaily


def timezone_probe_dates(approx_date):
    """Yesterday, today, tomorrow: the order in which timezone rows are trusted."""
    return [approx_date - timedelta(days=1), approx_date, approx_date + timedelta(days=1)]


def coordinate_probe_dates(local_date):
    """The job's own date first, then the day before and the day after."""
    return [local_date, local_date - timedelta(days=1), local_date + timedelta(days=1)]


def resolve_user_timezone(user_id, approx_utc_date):
    """Return the user's IANA timezone near approx_utc_date, or None to skip the user for now."""
    for candidate in timezone_probe_dates(approx_utc_date):
        row = (
            UserLocationDaily.query
            .filter(
                UserLocationDaily.user_id == user_id,
                UserLocationDaily.date == candidate,
                UserLocationDaily.timezone.isnot(None),
            )
            .order_by(UserLocationDaily.updated_at.desc())
            .first()
        )
        if row and row.timezone:
            return row.timezone
    return None


def resolve_user_coordinates(user_id, local_date):
    """Return (latitude, longitude) recorded for local_date or an adjacent day, else None."""
    for candidate in coordinate_probe_dates(local_date):
        row = (
            UserLocationDaily.query
            .filter(
                UserLocationDaily.user_id == user_id,
                UserLocationDaily.date == candidate,
                UserLocationDaily.latitude.isnot(None),
                UserLocationDaily.longitude.isnot(None),
            )
            .order_by(UserLocationDaily.updated_at.desc())
            .first()
        )
        if row:
            return row.latitude, row.longitude
    return None


def local_date_for(timezone_name, now=None):
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    try:
        zone = ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ResolutionError(f"Unknown timezone {timezone_name!r}") from e
    return now.astimezone(zone).date()
