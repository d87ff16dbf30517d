def register_blueprints(app):
    from weather_sync.routes.health import health_bp
    from weather_sync.routes.jobs import jobs_bp
    from weather_sync.routes.users import users_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(jobs_bp, url_prefix='/api/jobs/weather')
    app.register_blueprint(users_bp, url_prefix='/api/users')
