"""
Shared helpers for the attendance blueprints
"""
import logging

from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from attendtrack.services.auto_processing import AutoProcessingScheduler
from attendtrack.services.geofence import GeofenceValidator, load_geofence_config
from attendtrack.services.time_policy import get_policy

logger = logging.getLogger(__name__)


def render_result(result):
    """JSON response for an AttendanceResult"""
    return jsonify(result.to_dict()), result.http_status


def get_geofence_validator(models):
    return GeofenceValidator(load_geofence_config(models, current_app.config))


def build_scheduler(db, models):
    return AutoProcessingScheduler(
        db.session,
        models,
        policy=get_policy(),
        backfill_days=current_app.config.get('BACKFILL_DAYS', 7)
    )


def opportunistic_sweep(db, models, now):
    """
    Reconcile before a status read so after-hours readers see closed sessions

    Failures are logged; the status read goes ahead regardless.
    """
    if not current_app.config.get('SWEEP_ON_STATUS_READ', True):
        return None
    try:
        return build_scheduler(db, models).run(now)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Opportunistic sweep failed: {e}", exc_info=True)
        return None
