import logging
from flask import Flask, jsonify
from config import Config


def create_app(config_class=None):
    app = Flask(__name__)
    app.config.from_object(config_class or Config)

    # Fix Railway's DATABASE_URL (postgres:// -> postgresql://)
    db_uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if db_uri.startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = db_uri.replace('postgres://', 'postgresql://', 1)

    # Logging
    logging.basicConfig(
        level=getattr(logging, app.config.get('LOG_LEVEL', 'INFO')),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    # Settings are validated once here; trigger endpoints re-check and answer 500 if still invalid
    from weather_sync.errors import ConfigurationError
    from weather_sync.settings import get_settings
    try:
        get_settings(app)
    except ConfigurationError as e:
        logging.getLogger(__name__).error("Invalid configuration: %s", e)

    # Extensions
    from weather_sync.extensions import db, migrate, scheduler
    db.init_app(app)
    migrate.init_app(app, db)
    from weather_sync import models  # noqa: F401  (register tables with metadata)

    # Register blueprints
    from weather_sync.routes import register_blueprints
    register_blueprints(app)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'ok': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({'ok': False, 'error': 'Internal server error'}), 500

    # Scheduler
    if app.config.get('SCHEDULER_ENABLED') and not app.config.get('TESTING'):
        scheduler.init_app(app)
        with app.app_context():
            from weather_sync.jobs.scheduled import register_jobs
            register_jobs(scheduler, app)
        scheduler.start()

    return app
