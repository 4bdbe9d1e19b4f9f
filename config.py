"""Flask application configuration.

This module provides environment-based configuration for the Flask application.
Configuration is loaded from environment variables with sensible defaults.

Environment Variables:
    FLASK_ENV: Application environment (development, production, testing)
    FLASK_DEBUG: Enable Flask debug mode (0 or 1)
    DATABASE_URL: SQLAlchemy database URI
    HOST: Server host address (default: 0.0.0.0)
    PORT: Server port (default: 8080)
    MODEL_PATH / LABELS_PATH: Exported plastic classifier and its labels
    CAMERA_INDEX: OpenCV index of the webcam used for detection
"""

import os


def _env_flag(name, default):
    return os.environ.get(name, default).lower() not in ('0', 'false', 'no')


class Config:
    """Base configuration with defaults suitable for production."""

    DEBUG = False
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Server settings
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', 8080))

    # Database settings (detection preferences only, readings are never persisted)
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Metric stream
    SERIES_CAPACITY = int(os.environ.get('SERIES_CAPACITY', 20))
    # "window" adds the whole capture window on every CO2 update, "sample" only the new value
    CUMULATIVE_CAPTURE_MODE = os.environ.get('CUMULATIVE_CAPTURE_MODE', 'window')
    DEFAULT_PH = float(os.environ.get('DEFAULT_PH', 7.0))
    DEFAULT_TURBIDITY = float(os.environ.get('DEFAULT_TURBIDITY', 10))
    DEFAULT_CO2 = float(os.environ.get('DEFAULT_CO2', 500))
    DEFAULT_PLASTIC = float(os.environ.get('DEFAULT_PLASTIC', 0))
    SEED_INITIAL_READINGS = _env_flag('SEED_INITIAL_READINGS', '1')

    # Plastic classifier
    MODEL_PATH = os.environ.get('MODEL_PATH')
    LABELS_PATH = os.environ.get('LABELS_PATH')
    MODEL_AUTOLOAD = _env_flag('MODEL_AUTOLOAD', '1')

    # Webcam detection loop
    CAMERA_INDEX = int(os.environ.get('CAMERA_INDEX', 0))
    CAMERA_FRAME_WIDTH = int(os.environ.get('CAMERA_FRAME_WIDTH', 224))
    CAMERA_FRAME_HEIGHT = int(os.environ.get('CAMERA_FRAME_HEIGHT', 224))
    DETECTION_INTERVAL_SECONDS = float(os.environ.get('DETECTION_INTERVAL_SECONDS', 1.0))
    DETECTION_POSITIVE_CLASS = os.environ.get('DETECTION_POSITIVE_CLASS', 'Plastic')
    DETECTION_CONFIDENCE_PCT = float(os.environ.get('DETECTION_CONFIDENCE_PCT', 70))
    PLASTIC_INCREMENT_STEP = float(os.environ.get('PLASTIC_INCREMENT_STEP', 1))

    # Monitoring
    METRICS_ENABLED = _env_flag('METRICS_ENABLED', '1')
    METRICS_WINDOW_SECONDS = float(os.environ.get('METRICS_WINDOW_SECONDS', 300))

    # Realtime chart push
    SOCKETIO_ENABLED = _env_flag('SOCKETIO_ENABLED', '1')


class DevelopmentConfig(Config):
    """Development configuration with debug enabled and verbose logging."""

    DEBUG = True
    ENV = 'development'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration - secure and optimized."""

    DEBUG = False
    ENV = 'production'


class TestingConfig(Config):
    """Testing configuration with in-memory database."""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    # Tests drive the stream explicitly
    SEED_INITIAL_READINGS = False
    MODEL_AUTOLOAD = False
    METRICS_ENABLED = False
    SOCKETIO_ENABLED = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig  # Default to production for safety
}


def get_config():
    """Get the appropriate configuration based on environment.

    Returns:
        Config: Configuration class based on FLASK_ENV or FLASK_DEBUG

    Priority:
        1. FLASK_ENV environment variable
        2. FLASK_DEBUG environment variable (0/1)
        3. Default to production (safe default)
    """
    env = os.environ.get('FLASK_ENV', '').lower()
    if env in config:
        return config[env]

    debug = os.environ.get('FLASK_DEBUG', '0').lower()
    if debug in ('1', 'true', 'yes', 'on'):
        return config['development']

    return config['default']
