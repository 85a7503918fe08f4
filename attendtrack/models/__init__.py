"""
Database models for the attendance service
Centralizes all SQLAlchemy model creation using the factory pattern
"""
from .employee import create_employee_model
from .work_attendance import create_work_attendance_model
from .training_class import create_training_class_models
from .class_attendance import create_class_attendance_model
from .processing_log import create_processing_log_model
from .organization import create_organization_model
from .location_heartbeat import create_location_heartbeat_model
from .session_payload import WorkSession, SessionKind


def init_models(db):
    """
    Initialize all models with the database instance

    Args:
        db: SQLAlchemy database instance

    Returns:
        dict: Dictionary containing all model classes
    """
    Employee = create_employee_model(db)
    WorkAttendance = create_work_attendance_model(db)
    TrainingClass, TrainerClassAssignment = create_training_class_models(db)
    ClassAttendance = create_class_attendance_model(db)
    AttendanceProcessingLog = create_processing_log_model(db)
    Organization = create_organization_model(db)
    LocationHeartbeat = create_location_heartbeat_model(db)

    return {
        'Employee': Employee,
        'WorkAttendance': WorkAttendance,
        'TrainingClass': TrainingClass,
        'TrainerClassAssignment': TrainerClassAssignment,
        'ClassAttendance': ClassAttendance,
        'AttendanceProcessingLog': AttendanceProcessingLog,
        'Organization': Organization,
        'LocationHeartbeat': LocationHeartbeat,
    }


__all__ = [
    'init_models',
    'create_employee_model',
    'create_work_attendance_model',
    'create_training_class_models',
    'create_class_attendance_model',
    'create_processing_log_model',
    'create_organization_model',
    'create_location_heartbeat_model',
    'WorkSession',
    'SessionKind',
    # Model registry exports
    'model_registry',
    'get_models',
    'get_db'
]

# Import registry for convenience
from .registry import model_registry, get_models, get_db
