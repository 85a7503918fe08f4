"""
Class Attendance API Blueprint
Trainer check-in/check-out of assigned classes
"""
from flask import Blueprint, request, jsonify

from attendtrack.error_handlers import handle_errors, retry_once_on_db_error
from attendtrack.routes.auth import require_authentication, current_employee_id
from attendtrack.routes.common import render_result
from attendtrack.services.class_sessions import ClassSessionOverlay
from attendtrack.services.time_policy import get_policy
from attendtrack.utils.timezone import get_clock
from attendtrack.utils.validators import validate_date_param, validate_required_fields, validate_int


def init_class_routes(db, models):
    """
    Initialize class attendance routes with database and models

    Args:
        db: SQLAlchemy database instance
        models: Dictionary of model classes

    Returns:
        Blueprint mounted at /api/classes
    """
    classes_api_bp = Blueprint('classes_api', __name__, url_prefix='/api/classes')

    def overlay():
        return ClassSessionOverlay(db.session, models, get_policy())

    @classes_api_bp.route('/check-in', methods=['POST'])
    @handle_errors
    @require_authentication()
    def class_check_in():
        """
        Check into a class

        Request JSON:
            {"class_id": 3}

        Returns:
            JSON with the class record and its effective end, or an error code
            (WORK_SESSION_REQUIRED, NOT_ASSIGNED, CLASS_SESSION_ACTIVE)
        """
        data = validate_required_fields(request.get_json(silent=True), ['class_id'])
        class_id = validate_int(data['class_id'], 'class_id')
        return render_result(overlay().class_check_in(current_employee_id(), class_id, get_clock().now()))

    @classes_api_bp.route('/check-out', methods=['POST'])
    @handle_errors
    @require_authentication()
    def class_check_out():
        """
        End a class session early

        Request JSON:
            {"attendance_id": 17}

        Returns:
            JSON with the class record, or NO_RECORD / ALREADY_CLOSED
        """
        data = validate_required_fields(request.get_json(silent=True), ['attendance_id'])
        attendance_id = validate_int(data['attendance_id'], 'attendance_id')
        return render_result(overlay().class_check_out(attendance_id, current_employee_id(), get_clock().now()))

    @retry_once_on_db_error
    def load_class_status(trainer_id, now):
        return overlay().class_status(trainer_id, now)

    @classes_api_bp.route('/status', methods=['GET'])
    @handle_errors
    @require_authentication()
    def class_status():
        """Today's class sessions and this month's statistics"""
        body = load_class_status(current_employee_id(), get_clock().now())
        body['success'] = True
        return jsonify(body)

    @classes_api_bp.route('/assigned', methods=['GET'])
    @handle_errors
    @require_authentication()
    def assigned_classes():
        """
        Classes assigned to the caller

        Query Parameters:
            date: YYYY-MM-DD (optional, default today)
        """
        now = get_clock().now()
        day = validate_date_param(request.args.get('date')) or now.date()
        classes = overlay().assigned_classes(current_employee_id(), day, now)
        return jsonify({'success': True, 'date': day.isoformat(), 'classes': classes})

    return classes_api_bp
