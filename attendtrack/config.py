"""
Configuration management for the attendance service
Handles environment-based settings for the attendance policy, geofence,
background processing and infrastructure connections.

Uses the lazy validation pattern so development and testing can run
without production secrets.
"""
import os
import secrets
from decouple import config, UndefinedValueError
from typing import Optional

from attendtrack.error_handlers.exceptions import ConfigurationException


class Config:
    """Base configuration class"""
    # Flask settings
    # Development: Generate random key on startup (non-persistent OK for dev)
    SECRET_KEY = config('SECRET_KEY', default=secrets.token_hex(32))
    SQLALCHEMY_DATABASE_URI = config('DATABASE_URL', default='sqlite:///instance/attendance.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Redis (session lookup and biometric challenges)
    REDIS_URL = config('REDIS_URL', default='redis://localhost:6379/0')
    REDIS_PASSWORD = config('REDIS_PASSWORD', default=None)

    # Organization time zone - every "now" is computed in this zone
    ORG_TIMEZONE = config('ORG_TIMEZONE', default='Africa/Nairobi')

    # Attendance policy
    CHECK_IN_OPEN_HOUR = config('CHECK_IN_OPEN_HOUR', default=7, cast=int)
    LATE_CUTOFF = config('LATE_CUTOFF', default='09:00')  # HH:MM, arrivals after this are Late
    WORKDAY_END_HOUR = config('WORKDAY_END_HOUR', default=17, cast=int)
    CLASS_MAX_HOURS = config('CLASS_MAX_HOURS', default=2, cast=float)

    # Geofence fallback when no organization row is configured
    GEOFENCE_ENABLED = config('GEOFENCE_ENABLED', default=True, cast=bool)
    GEOFENCE_CENTER_LAT = config('GEOFENCE_CENTER_LAT', default=-1.22486, cast=float)
    GEOFENCE_CENTER_LNG = config('GEOFENCE_CENTER_LNG', default=36.70958, cast=float)
    GEOFENCE_RADIUS_METERS = config('GEOFENCE_RADIUS_METERS', default=50.0, cast=float)

    # Background processing
    AUTO_PROCESSING_ENABLED = config('AUTO_PROCESSING_ENABLED', default=True, cast=bool)
    AUTO_PROCESSING_INTERVAL = config('AUTO_PROCESSING_INTERVAL', default=900, cast=int)  # seconds
    BACKFILL_DAYS = config('BACKFILL_DAYS', default=7, cast=int)
    SWEEP_ON_STATUS_READ = config('SWEEP_ON_STATUS_READ', default=True, cast=bool)
    HEARTBEAT_RETENTION_HOURS = config('HEARTBEAT_RETENTION_HOURS', default=24, cast=int)
    CRON_SECRET = config('CRON_SECRET', default='')

    # Biometric challenges
    BIOMETRIC_CHALLENGE_TTL = config('BIOMETRIC_CHALLENGE_TTL', default=300, cast=int)

    # Logging settings
    LOG_LEVEL = config('LOG_LEVEL', default='INFO')
    LOG_FILE = config('LOG_FILE', default='logs/attendance.log')

    # Rate Limiting
    RATELIMIT_ENABLED = config('RATELIMIT_ENABLED', default=True, cast=bool)
    RATELIMIT_DEFAULT = config('RATELIMIT_DEFAULT', default='300 per hour')

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration - can be called explicitly or on-demand

        This allows development without all credentials, while ensuring
        production has everything configured.

        Raises:
            ConfigurationException: If required configuration is missing
        """
        pass  # Base config has no required validation


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    AUTO_PROCESSING_ENABLED = False
    RATELIMIT_ENABLED = False
    CRON_SECRET = 'test-cron-secret'
    GEOFENCE_ENABLED = True
    GEOFENCE_CENTER_LAT = 0.0
    GEOFENCE_CENTER_LNG = 0.0
    GEOFENCE_RADIUS_METERS = 600000.0
    LOG_FILE = 'logs/attendance-test.log'


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SECRET_KEY = config('SECRET_KEY', default='change-this-to-a-random-secret-key-in-production')

    # Session Security
    SESSION_COOKIE_SECURE = config('SESSION_COOKIE_SECURE', default=True, cast=bool)
    SESSION_COOKIE_HTTPONLY = config('SESSION_COOKIE_HTTPONLY', default=True, cast=bool)
    SESSION_COOKIE_SAMESITE = config('SESSION_COOKIE_SAMESITE', default='Lax')

    # Database Connection Pool (for production databases)
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': config('DB_POOL_SIZE', default=10, cast=int),
        'pool_recycle': config('DB_POOL_RECYCLE', default=3600, cast=int),
        'pool_pre_ping': True,
        'max_overflow': config('DB_MAX_OVERFLOW', default=20, cast=int),
    }

    # Statement timeout at the storage boundary (PostgreSQL only)
    if Config.SQLALCHEMY_DATABASE_URI.startswith('postgresql'):
        SQLALCHEMY_ENGINE_OPTIONS['connect_args'] = {
            'options': f"-c statement_timeout={config('DB_STATEMENT_TIMEOUT_MS', default=10000, cast=int)}"
        }

    # Logging
    LOG_LEVEL = config('LOG_LEVEL', default='WARNING')

    @classmethod
    def validate(cls) -> None:
        """
        Production mode: validate all required settings

        Raises:
            ConfigurationException: If any required configuration is missing
        """
        try:
            secret_key = config('SECRET_KEY')
        except UndefinedValueError:
            raise ConfigurationException(
                "SECRET_KEY environment variable must be set in production. "
                "Generate a secure key with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )

        if len(secret_key) < 32:
            raise ConfigurationException(
                f"SECRET_KEY must be at least 32 characters in production (current: {len(secret_key)})."
            )

        if not cls.CRON_SECRET:
            raise ConfigurationException(
                "CRON_SECRET must be set in production so the sweep trigger endpoint is not open."
            )


# Configuration mapping
config_mapping = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None, validate: bool = False) -> type:
    """
    Get configuration class based on environment.

    Args:
        config_name: Environment name ('development', 'testing', 'production')
        validate: Whether to validate configuration immediately (default: False)

    Returns:
        Config class for the specified environment

    Raises:
        ConfigurationException: If validation is enabled and required variables are missing

    Example:
        >>> config = get_config('production', validate=True)
    """
    if config_name is None:
        config_name = config('FLASK_ENV', default=os.environ.get('FLASK_ENV', 'development'))

    config_class = config_mapping.get(config_name, DevelopmentConfig)

    # Only validate if explicitly requested
    if validate:
        config_class.validate()

    return config_class
