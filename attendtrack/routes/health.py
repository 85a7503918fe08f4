"""
Health Check and Monitoring Endpoints
Liveness and readiness probes plus a process/attendance status summary.
"""
from flask import Blueprint, jsonify, current_app
from datetime import datetime
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import os
import sys

import psutil
import redis

health_bp = Blueprint('health', __name__, url_prefix='/health')


@health_bp.route('/ping', methods=['GET'])
def ping():
    """
    Simple ping endpoint for basic connectivity checks.
    Returns: 200 OK with pong message
    """
    return jsonify({
        'status': 'ok',
        'message': 'pong',
        'timestamp': datetime.utcnow().isoformat()
    }), 200


@health_bp.route('/live', methods=['GET'])
def liveness():
    """
    Liveness probe - the process is up and serving requests.

    Returns:
        200: Application is alive
    """
    return jsonify({
        'status': 'alive',
        'timestamp': datetime.utcnow().isoformat()
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness():
    """
    Readiness probe - checks the database and Redis.

    Redis only backs identity lookups and biometric challenges, so a Redis
    outage is reported but does not make the service unready.

    Returns:
        200: Application is ready
        503: Database is unreachable
    """
    from attendtrack.extensions import db
    from attendtrack.routes.auth import get_redis_client

    checks = {
        'database': False,
        'redis': False,
    }
    errors = []

    try:
        db.session.execute(text('SELECT 1'))
        checks['database'] = True
    except SQLAlchemyError as e:
        db.session.rollback()
        errors.append(f"Database: {str(e)}")

    try:
        get_redis_client().ping()
        checks['redis'] = True
    except redis.RedisError as e:
        errors.append(f"Redis: {str(e)}")

    ready = checks['database']
    response = {
        'status': 'ready' if ready else 'not_ready',
        'checks': checks,
        'timestamp': datetime.utcnow().isoformat()
    }
    if errors:
        response['errors'] = errors

    return jsonify(response), 200 if ready else 503


@health_bp.route('/status', methods=['GET'])
def status():
    """
    Process resources and the state of automatic processing.

    Returns:
        200: Status information
    """
    from attendtrack.models import get_models

    process = psutil.Process()
    memory_info = process.memory_info()

    ProcessingLog = get_models()['AttendanceProcessingLog']
    last_entry = ProcessingLog.query.order_by(ProcessingLog.processing_date.desc()).first()

    scheduler = current_app.extensions.get('attendance_scheduler')

    return jsonify({
        'status': 'operational',
        'timestamp': datetime.utcnow().isoformat(),
        'application': {
            'name': 'attendtrack',
            'environment': current_app.config.get('ENV_NAME', 'unknown'),
            'debug': current_app.debug,
            'timezone': current_app.config.get('ORG_TIMEZONE'),
        },
        'system': {
            'python_version': sys.version,
            'platform': sys.platform,
            'process_id': os.getpid(),
        },
        'resources': {
            'memory': {
                'used_mb': round(memory_info.rss / 1024 / 1024, 2),
                'percent': round(process.memory_percent(), 2),
            },
        },
        'auto_processing': {
            'enabled': current_app.config.get('AUTO_PROCESSING_ENABLED', False),
            'scheduler_running': bool(scheduler and scheduler.running),
            'last_processed_date': last_entry.to_dict() if last_entry else None,
        },
    }), 200
