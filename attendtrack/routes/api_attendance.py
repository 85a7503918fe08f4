"""
Attendance API Blueprint
Work check-in/check-out, status, mobile submissions, location heartbeats
and biometric challenges
"""
from flask import Blueprint, request, jsonify, current_app
import logging

from attendtrack.error_handlers import handle_errors, retry_once_on_db_error, ValidationException
from attendtrack.extensions import limiter
from attendtrack.routes.auth import require_authentication, current_employee_id
from attendtrack.routes.common import (
    render_result,
    get_geofence_validator,
    opportunistic_sweep
)
from attendtrack.services.attendance_engine import AttendanceEngine
from attendtrack.services.attendance_types import AttendanceErrorCode, AttendanceResult
from attendtrack.services.challenge_store import get_challenge_store
from attendtrack.services.class_sessions import ClassSessionOverlay
from attendtrack.services.location_heartbeat import LocationHeartbeatService
from attendtrack.services.time_policy import get_policy
from attendtrack.utils.timezone import get_clock
from attendtrack.utils.validators import (
    validate_date_param,
    validate_required_fields,
    validate_int,
    validate_location
)

logger = logging.getLogger(__name__)

MOBILE_ACTIONS = ('work_checkin', 'work_checkout', 'class_checkin', 'class_checkout')


def init_attendance_routes(db, models):
    """
    Initialize attendance routes with database and models

    Args:
        db: SQLAlchemy database instance
        models: Dictionary of model classes

    Returns:
        Blueprint mounted at /api/attendance
    """
    attendance_api_bp = Blueprint('attendance_api', __name__, url_prefix='/api/attendance')

    def engine():
        return AttendanceEngine(db.session, models, get_policy())

    def optional_location(data):
        if isinstance(data, dict) and data.get('location') is not None:
            location = validate_location(data['location'], require_timestamp=False)
            return {k: location[k] for k in ('latitude', 'longitude', 'accuracy')}
        return None

    @attendance_api_bp.route('/check-in', methods=['POST'])
    @handle_errors
    @require_authentication()
    def check_in():
        """
        Check in to work

        Request JSON (optional):
        {
            "location": {"latitude": -1.22, "longitude": 36.7, "accuracy": 10}
        }

        Returns:
            JSON with the day's record, or an error code
            (OUTSIDE_HOURS, ALREADY_ACTIVE)
        """
        location = optional_location(request.get_json(silent=True))
        now = get_clock().now()
        return render_result(engine().check_in(current_employee_id(), now, source='web', location=location))

    @attendance_api_bp.route('/check-out', methods=['POST'])
    @handle_errors
    @require_authentication()
    def check_out():
        """
        Check out of work

        Returns:
            JSON with the day's record, or an error code
            (OUTSIDE_HOURS, NO_RECORD, NO_OPEN_SESSION)
        """
        location = optional_location(request.get_json(silent=True))
        now = get_clock().now()
        return render_result(engine().check_out(current_employee_id(), now, source='web', location=location))

    @retry_once_on_db_error
    def load_status(employee_id, day, now):
        return engine().status(employee_id, day, now)

    @attendance_api_bp.route('/status', methods=['GET'])
    @handle_errors
    @require_authentication()
    def status():
        """
        Attendance status for a day (default today)

        Query Parameters:
            date: YYYY-MM-DD (optional)

        Returns:
            JSON {isCheckedIn, status, sessions, todayHours, history}
        """
        now = get_clock().now()
        day = validate_date_param(request.args.get('date')) or now.date()

        opportunistic_sweep(db, models, now)
        result = load_status(current_employee_id(), day, now)
        body = result.to_dict()
        body['date'] = day.isoformat()
        return jsonify(body), result.http_status

    @attendance_api_bp.route('/mobile', methods=['POST'])
    @limiter.limit("30 per minute")
    @handle_errors
    @require_authentication()
    def mobile():
        """
        Mobile attendance submission

        Request JSON:
        {
            "type": "work_checkin" | "work_checkout" | "class_checkin" | "class_checkout",
            "location": {"latitude": .., "longitude": .., "accuracy": .., "timestamp": ..},
            "biometric_verified": true,
            "challenge_id": "...",     // optional, consumed when given
            "class_id": 3,             // class_checkin
            "attendance_id": 17        // class_checkout
        }

        Gate order: payload validation, geofence, biometric, then the operation.
        """
        data = validate_required_fields(request.get_json(silent=True), ['type', 'location'])
        action = data['type']
        if action not in MOBILE_ACTIONS:
            raise ValidationException(f"type must be one of: {', '.join(MOBILE_ACTIONS)}")

        location = validate_location(data['location'])
        class_id = validate_int(data.get('class_id'), 'class_id') if action == 'class_checkin' else None
        attendance_id = (
            validate_int(data.get('attendance_id'), 'attendance_id') if action == 'class_checkout' else None
        )

        employee_id = current_employee_id()
        check = get_geofence_validator(models).check(location['latitude'], location['longitude'])
        if not check.inside:
            logger.info(f"Mobile {action} by employee {employee_id} rejected outside geofence")
            return render_result(AttendanceResult.fail(
                AttendanceErrorCode.OUTSIDE_GEOFENCE,
                distanceMeters=check.rounded_distance
            ))

        if data.get('biometric_verified') is not True:
            return render_result(AttendanceResult.fail(AttendanceErrorCode.BIOMETRIC_REQUIRED))

        if data.get('challenge_id'):
            if get_challenge_store().consume(str(data['challenge_id']), employee_id) is None:
                return render_result(AttendanceResult.fail(
                    AttendanceErrorCode.BIOMETRIC_REQUIRED,
                    "Biometric challenge is invalid or has expired"
                ))

        now = get_clock().now()
        session_location = {k: location[k] for k in ('latitude', 'longitude', 'accuracy')}

        if action == 'work_checkin':
            result = engine().check_in(employee_id, now, source='mobile', location=session_location)
        elif action == 'work_checkout':
            result = engine().check_out(employee_id, now, source='mobile', location=session_location)
        elif action == 'class_checkin':
            overlay = ClassSessionOverlay(db.session, models, get_policy())
            result = overlay.class_check_in(employee_id, class_id, now)
        else:
            overlay = ClassSessionOverlay(db.session, models, get_policy())
            result = overlay.class_check_out(attendance_id, employee_id, now)

        if result.ok:
            result.data['distanceMeters'] = check.rounded_distance
        return render_result(result)

    @attendance_api_bp.route('/location-heartbeat', methods=['POST'])
    @limiter.limit("60 per minute")
    @handle_errors
    @require_authentication()
    def location_heartbeat():
        """
        Record a device position

        Request JSON:
            {"latitude": .., "longitude": .., "accuracy": ..}

        Returns:
            JSON {success, is_inside_fence, distance_meters, message}
        """
        location = validate_location(request.get_json(silent=True), require_timestamp=False)
        service = LocationHeartbeatService(db.session, models, get_geofence_validator(models))
        heartbeat = service.record(
            current_employee_id(),
            location['latitude'],
            location['longitude'],
            location['accuracy'],
            get_clock().now()
        )
        return jsonify({
            'success': True,
            'is_inside_fence': heartbeat.is_inside_fence,
            'distance_meters': heartbeat.distance_meters,
            'message': 'Inside premises' if heartbeat.is_inside_fence else 'Outside premises',
        })

    @attendance_api_bp.route('/biometric/challenge', methods=['POST'])
    @limiter.limit("10 per minute")
    @handle_errors
    @require_authentication()
    def biometric_challenge():
        """
        Issue a single-use biometric challenge

        Returns:
            JSON {success, challengeId, challenge, expiresIn}
        """
        store = get_challenge_store()
        challenge_id, challenge = store.issue(current_employee_id())
        return jsonify({
            'success': True,
            'challengeId': challenge_id,
            'challenge': challenge,
            'expiresIn': store.ttl_seconds,
        })

    return attendance_api_bp
