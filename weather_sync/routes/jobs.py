import hmac
import logging
import threading
from datetime import datetime, timezone
from functools import wraps
from flask import Blueprint, jsonify, request, current_app
from weather_sync.extensions import db
from weather_sync.services.dispatcher import WeatherDispatcher
from weather_sync.services.job_store import JobStore
from weather_sync.services.worker import WeatherWorker
from weather_sync.settings import get_settings

logger = logging.getLogger(__name__)

jobs_bp = Blueprint('weather_jobs', __name__)
_drain_thread = None
_drain_lock = threading.Lock()


def _extract_trigger_token():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.lower().startswith('bearer '):
        return auth_header.split(' ', 1)[1].strip()
    return (request.headers.get('X-Trigger-Key') or '').strip()


def require_trigger_key(func):
    """Require TRIGGER_API_KEY when one is configured; otherwise the gateway is trusted."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        configured_key = current_app.config.get('TRIGGER_API_KEY')
        if configured_key:
            presented_key = _extract_trigger_token()
            if not presented_key or not hmac.compare_digest(presented_key, configured_key):
                return jsonify({'ok': False, 'error': 'Unauthorized'}), 401
        return func(*args, **kwargs)

    return wrapper


def _error_response(name, e):
    db.session.rollback()
    logger.error(f"[{name}] error: {e}", exc_info=True)
    return jsonify({'ok': False, 'error': str(e)}), 500


@jobs_bp.route('/dispatch', methods=['GET', 'POST'])
@require_trigger_key
def dispatch():
    """Enqueue today's weather job for every tracked user."""
    logger.info(f"[weather-dispatcher] start {datetime.now(timezone.utc).isoformat()} {request.method}")
    try:
        report = WeatherDispatcher(get_settings()).run()
    except Exception as e:
        return _error_response('weather-dispatcher', e)
    return jsonify({'ok': True, **report})


@jobs_bp.route('/work', methods=['GET', 'POST'])
@require_trigger_key
def work():
    """Drain one batch of queued weather jobs."""
    logger.info(f"[weather-worker] start {datetime.now(timezone.utc).isoformat()}")
    try:
        report = WeatherWorker(get_settings()).run()
    except Exception as e:
        return _error_response('weather-worker', e)
    return jsonify({'ok': True, **report})


def _start_background_drain(app, settings):
    """Kick a worker drain without waiting for it. Failures are logged, never raised."""
    global _drain_thread

    def run_in_thread():
        with app.app_context():
            try:
                WeatherWorker(settings).run()
            except Exception as e:
                db.session.rollback()
                logger.warning(f"[weather-backfill] background drain failed: {e}")

    with _drain_lock:
        if _drain_thread and _drain_thread.is_alive():
            return False
        _drain_thread = threading.Thread(target=run_in_thread, daemon=True)
        _drain_thread.start()
    return True


@jobs_bp.route('/backfill/<user_id>', methods=['POST'])
@require_trigger_key
def backfill(user_id):
    """Queue today's job for one user (e.g. right after login) and start draining it."""
    try:
        settings = get_settings()
        now = datetime.now(timezone.utc)
        result = WeatherDispatcher(settings).dispatch_user(user_id, now.date(), now, created_by='backfill')
    except Exception as e:
        return _error_response('weather-backfill', e)

    if result['status'] == 'no_timezone':
        return jsonify({'ok': True, **result})
    if result['status'] != 'enqueued':
        return jsonify({'ok': False, **result}), 500

    started = _start_background_drain(current_app._get_current_object(), settings)
    return jsonify({'ok': True, **result, 'worker': 'started' if started else 'already_running'}), 202


@jobs_bp.route('/status')
@require_trigger_key
def status():
    """Job counts by status and the oldest job stuck in processing."""
    store = JobStore()
    oldest = store.oldest_processing()
    return jsonify({
        'ok': True,
        'counts': store.status_counts(),
        'oldest_processing': oldest.to_dict() if oldest else None,
    })
