from datetime import date, datetime, timedelta
from flask import Blueprint, jsonify, request
from weather_sync.models.weather import UserWeatherDaily

users_bp = Blueprint('users', __name__)


def _parse_date(raw, default):
    if not raw:
        return default
    return datetime.strptime(raw, '%Y-%m-%d').date()


@users_bp.route('/<user_id>/weather')
def user_weather(user_id):
    """Daily weather copied for a user (YYYY-MM-DD range, inclusive)."""
    today = date.today()
    try:
        start = _parse_date(request.args.get('start'), today - timedelta(days=13))
        end = _parse_date(request.args.get('end'), today + timedelta(days=6))
    except ValueError:
        return jsonify({'error': 'Invalid date format. Use YYYY-MM-DD'}), 400
    if end < start:
        return jsonify({'error': '"end" must not be before "start"'}), 400

    rows = UserWeatherDaily.query.filter(
        UserWeatherDaily.user_id == user_id,
        UserWeatherDaily.date >= start,
        UserWeatherDaily.date <= end,
    ).order_by(UserWeatherDaily.date.asc()).all()

    return jsonify({
        'user_id': user_id,
        'start': start.isoformat(),
        'end': end.isoformat(),
        'days': [r.to_dict() for r in rows],
    })
