from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from weather_sync.errors import ConfigurationError
from weather_sync.extensions import db
from weather_sync.settings import get_settings

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health():
    return jsonify({'status': 'ok'})


@health_bp.route('/ready')
def ready():
    try:
        db.session.execute(text('SELECT 1'))
        db_ok = True
    except Exception:
        db.session.rollback()
        db_ok = False

    try:
        get_settings(current_app)
        config_ok = True
    except ConfigurationError:
        config_ok = False

    is_ready = db_ok and config_ok
    return jsonify({
        'status': 'ready' if is_ready else 'not_ready',
        'db': db_ok,
        'config': config_ok,
    }), 200 if is_ready else 503
