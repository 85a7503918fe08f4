"""
Flask application factory.

This module implements the application factory pattern for creating
Flask application instances with different configurations.
"""

from flask import Flask
import os
import logging

from .extensions import db, migrate, limiter
from .config import get_config, config_mapping


def create_app(config_name=None):
    """
    Application factory function.

    Args:
        config_name: Configuration name (development, testing, production)
                    If None, determined from environment

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Apply ProxyFix for correct IP and scheme handling behind reverse proxies
    from werkzeug.middleware.proxy_fix import ProxyFix
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # Load configuration
    config_class = get_config(config_name)
    app.config['ENV_NAME'] = next(
        (name for name, cls in config_mapping.items() if cls is config_class and name != 'default'),
        'development'
    )
    if app.config['ENV_NAME'] == 'production':
        config_class.validate()
    app.config.from_object(config_class)

    # Ensure instance directory exists
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    os.makedirs(os.path.join(basedir, "instance"), exist_ok=True)

    # Update database URI to use absolute path
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///instance/'):
        db_name = app.config['SQLALCHEMY_DATABASE_URI'][len('sqlite:///instance/'):]
        app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{os.path.join(basedir, "instance", db_name)}'

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Initialize rate limiter
    app.config.setdefault('RATELIMIT_DEFAULT', '300 per hour')
    limiter.init_app(app)

    # Enable foreign key constraints for SQLite
    from sqlalchemy import event
    from sqlalchemy.engine import Engine

    @event.listens_for(Engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints for SQLite connections"""
        if 'sqlite' in type(dbapi_conn).__module__:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    # Configure logging and error handling
    from attendtrack.error_handlers import setup_logging, register_error_handlers
    setup_logging(app)
    register_error_handlers(app)

    # Organization clock and attendance policy
    from attendtrack.utils.timezone import Clock
    from attendtrack.services.time_policy import TimePolicy
    app.extensions['clock'] = Clock(app.config['ORG_TIMEZONE'])
    app.extensions['time_policy'] = TimePolicy.from_config(app.config)

    # Initialize database models
    from attendtrack.models import init_models, model_registry
    models = init_models(db)

    # Initialize model registry
    model_registry.init_app(app)
    model_registry.register(models)

    # Register blueprints
    register_blueprints(app, db, models)

    # Setup background tasks
    setup_background_tasks(app, db, models)

    return app


def register_blueprints(app, db, models):
    """Register all Flask blueprints."""

    from attendtrack.routes import health_bp
    app.register_blueprint(health_bp)

    # Probes must never be rate limited
    limiter.exempt(health_bp)

    from attendtrack.routes.api_attendance import init_attendance_routes
    app.register_blueprint(init_attendance_routes(db, models))

    from attendtrack.routes.api_classes import init_class_routes
    app.register_blueprint(init_class_routes(db, models))

    from attendtrack.routes.api_cron import init_cron_routes
    app.register_blueprint(init_cron_routes(db, models))


def setup_background_tasks(app, db, models):
    """Setup the periodic attendance processing job."""

    if not app.config.get('AUTO_PROCESSING_ENABLED', False):
        app.logger.info("Automatic attendance processing disabled")
        return None

    from apscheduler.schedulers.background import BackgroundScheduler
    from apscheduler.triggers.interval import IntervalTrigger
    import atexit

    from attendtrack.services.auto_processing import AutoProcessingScheduler
    from attendtrack.services.location_heartbeat import LocationHeartbeatService
    from attendtrack.services.geofence import GeofenceValidator, load_geofence_config

    logger = logging.getLogger('attendtrack.background')

    def process_attendance():
        """Background task: backfill, end-of-day sweeps and heartbeat pruning."""
        with app.app_context():
            now = app.extensions['clock'].now()
            try:
                AutoProcessingScheduler(
                    db.session,
                    models,
                    policy=app.extensions['time_policy'],
                    backfill_days=app.config['BACKFILL_DAYS']
                ).run(now)

                LocationHeartbeatService(
                    db.session,
                    models,
                    GeofenceValidator(load_geofence_config(models, app.config))
                ).prune(now, app.config['HEARTBEAT_RETENTION_HOURS'])
            except Exception:
                db.session.rollback()
                logger.exception("Automatic attendance processing failed")
            finally:
                db.session.remove()

    # Create and start background scheduler
    scheduler = BackgroundScheduler(timezone=app.config['ORG_TIMEZONE'])
    scheduler.add_job(
        func=process_attendance,
        trigger=IntervalTrigger(seconds=app.config['AUTO_PROCESSING_INTERVAL']),
        id='attendance_auto_processing',
        name='Automatic attendance processing',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )
    scheduler.start()
    app.extensions['attendance_scheduler'] = scheduler

    # Ensure scheduler shuts down when app exits
    atexit.register(lambda: scheduler.shutdown(wait=False))
    return scheduler


def init_db(app):
    """Initialize the database."""
    with app.app_context():
        db.create_all()
