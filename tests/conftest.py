"""
Pytest configuration and fixtures for the attendance service tests.

This module provides shared fixtures for:
- Flask application with test configuration
- Database setup and teardown
- A pinned organization clock
- An in-memory stand-in for the Redis connection
- Model factories for creating test data
"""
import json
import pytest
from datetime import datetime, date, timedelta

from attendtrack import create_app
from attendtrack.extensions import db as _db
from attendtrack.services.attendance_engine import AttendanceEngine
from attendtrack.services.auto_processing import AutoProcessingScheduler
from attendtrack.services.class_sessions import ClassSessionOverlay
from attendtrack.services.time_policy import TimePolicy
from attendtrack.utils.timezone import FixedClock

# Wednesday; the backfill window before it holds five weekdays
TEST_DAY = date(2025, 3, 5)
TEST_TZ = 'Africa/Nairobi'


def at(hour, minute=0, second=0, day=TEST_DAY):
    """Naive organization-local datetime on the test day"""
    return datetime(day.year, day.month, day.day, hour, minute, second)


@pytest.fixture(scope='session')
def app():
    """
    Create application for the tests.

    Uses TestingConfig with in-memory SQLite database.
    Scope is 'session' to reuse the same app across all tests.
    """
    app = create_app('testing')
    app.config.update({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'RATELIMIT_ENABLED': False,  # Disable rate limiting for tests
    })

    return app


@pytest.fixture(scope='function')
def db(app):
    """
    Create database for the tests.

    Creates all tables before each test function and drops them after.
    This ensures test isolation.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app, db):
    """
    Create a test client for the app.

    The client can be used to make requests to the application.
    """
    with app.test_client() as client:
        with app.app_context():
            yield client


@pytest.fixture(scope='function')
def models(app, db):
    """Models registered by create_app()."""
    with app.app_context():
        from attendtrack.models import get_models
        return get_models()


@pytest.fixture
def fixed_clock(app):
    """
    Pin the app clock to 08:30 on the test day.

    Usage:
        fixed_clock.set(at(17, 5))
        fixed_clock.advance(minutes=15)
    """
    original = app.extensions['clock']
    clock = FixedClock(TEST_TZ, at(8, 30))
    app.extensions['clock'] = clock
    yield clock
    app.extensions['clock'] = original


@pytest.fixture
def policy():
    return TimePolicy()


@pytest.fixture
def engine(db, models, policy):
    return AttendanceEngine(db.session, models, policy)


@pytest.fixture
def overlay(db, models, policy, engine):
    return ClassSessionOverlay(db.session, models, policy, engine=engine)


@pytest.fixture
def scheduler(db, models, policy):
    return AutoProcessingScheduler(db.session, models, policy, backfill_days=7)


# =============================================================================
# Redis and identity
# =============================================================================

class FakeRedis:
    """Dict-backed subset of the redis client API used by the service"""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def getdel(self, key):
        self.ttls.pop(key, None)
        return self.store.pop(key, None)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += self.store.pop(key, None) is not None
            self.ttls.pop(key, None)
        return removed

    def ping(self):
        return True

    def expire(self, key):
        """Simulate TTL expiry of one key"""
        self.store.pop(key, None)
        self.ttls.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    """Replace the lazily-created Redis client with an in-memory one."""
    client = FakeRedis()
    monkeypatch.setattr('attendtrack.routes.auth._redis_client', client)
    return client


@pytest.fixture
def auth_headers(fake_redis):
    """
    Create a session for an employee and return request headers for it.

    Usage:
        headers = auth_headers(employee)
        client.post('/api/attendance/check-in', headers=headers)
    """
    def _login(employee, role='employee'):
        token = f'test-session-{employee.id}'
        fake_redis.setex(f'session:{token}', 86400, json.dumps({
            'user_info': {
                'employeeId': employee.id,
                'role': role,
                'name': employee.name,
                'department': employee.department,
            },
            'created_at': datetime.utcnow().isoformat(),
        }))
        return {'Authorization': f'Bearer {token}'}

    return _login


# =============================================================================
# Model Factories
# =============================================================================

@pytest.fixture
def employee_factory(models, db):
    """
    Factory for creating Employee instances.

    Usage:
        employee = employee_factory(name="Jane Wanjiru")
        trainer = employee_factory(is_trainer=True)
    """
    counter = [0]

    def _create_employee(**kwargs):
        Employee = models['Employee']
        counter[0] += 1
        defaults = {
            'name': f'Test Employee {counter[0]}',
            'email': f'employee{counter[0]}@example.com',
            'department': 'Operations',
            'role': 'employee',
            'is_trainer': False,
            'is_active': True,
        }
        defaults.update(kwargs)
        employee = Employee(**defaults)
        db.session.add(employee)
        db.session.commit()
        return employee

    return _create_employee


@pytest.fixture
def class_factory(models, db):
    """
    Factory for creating TrainingClass instances.

    Usage:
        training_class = class_factory(duration_hours=3)
    """
    counter = [0]

    def _create_class(**kwargs):
        TrainingClass = models['TrainingClass']
        counter[0] += 1
        defaults = {
            'name': f'Class {counter[0]}',
            'code': f'CLS{counter[0]:03d}',
            'department': 'Training',
            'duration_hours': 2.0,
            'is_active': True,
        }
        defaults.update(kwargs)
        training_class = TrainingClass(**defaults)
        db.session.add(training_class)
        db.session.commit()
        return training_class

    return _create_class


@pytest.fixture
def assign(models, db):
    """Assign a trainer to a class."""
    def _assign(trainer, training_class, is_active=True):
        assignment = models['TrainerClassAssignment'](
            trainer_id=trainer.id,
            class_id=training_class.id,
            is_active=is_active,
        )
        db.session.add(assignment)
        db.session.commit()
        return assignment

    return _assign


@pytest.fixture
def sample_employee(employee_factory):
    """Create a single sample employee for simple tests."""
    return employee_factory(name='Jane Wanjiru', email='jane.wanjiru@example.com')


@pytest.fixture
def sample_trainer(employee_factory):
    """Create a sample trainer."""
    return employee_factory(name='Peter Otieno', email='peter.otieno@example.com', is_trainer=True)


@pytest.fixture
def past_weekdays():
    """Weekdays of the seven days before TEST_DAY."""
    days = [TEST_DAY - timedelta(days=offset) for offset in range(7, 0, -1)]
    return [d for d in days if d.weekday() < 5]
