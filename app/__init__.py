import os
import atexit
import logging
from functools import partial

from flask import Flask

from .extensions import db
from .detection_manager import DetectionManager
from .drivers.webcam_driver import WebcamDriver
from .metrics import EventHub, MetricStream, SensorInputs, metrics_registry
from .utils.config import DATA_DIR, DEFAULT_LABELS_PATH, DEFAULT_MODEL_PATH

logger = logging.getLogger(__name__)


def create_app(config_overrides=None):
    """Creates and configures the Flask application.

    Args:
        config_overrides: Optional dictionary of config values to override.
                         Typically used for testing.

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    # Load configuration from config.py (environment-based)
    from config import get_config

    config_class = get_config()
    app.config.from_object(config_class)

    # Apply test-specific or instance-specific overrides
    if config_overrides:
        app.config.from_mapping(config_overrides)

    # In development mode, keep Werkzeug's per-request lines out of the way
    if app.config.get("ENV") == "development":
        logging.getLogger('werkzeug').setLevel(logging.ERROR)

    # Database configuration - set default path if not configured
    if app.config.get("SQLALCHEMY_DATABASE_URI") is None:
        os.makedirs(DATA_DIR, exist_ok=True)
        db_path = os.path.join(DATA_DIR, "config.db")
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}"

    if not app.config.get("MODEL_PATH"):
        app.config["MODEL_PATH"] = DEFAULT_MODEL_PATH
    if not app.config.get("LABELS_PATH"):
        app.config["LABELS_PATH"] = DEFAULT_LABELS_PATH

    db.init_app(app)
    metrics_registry.configure(
        enabled=app.config.get("METRICS_ENABLED", True),
        window_seconds=app.config.get("METRICS_WINDOW_SECONDS", 300.0),
    )

    # Session-lifetime state: readings are never persisted
    app.event_hub = EventHub()
    app.metric_stream = MetricStream(
        capacity=app.config.get("SERIES_CAPACITY", 20),
        cumulative_mode=app.config.get("CUMULATIVE_CAPTURE_MODE", "window"),
        initial_inputs=SensorInputs(
            ph=app.config.get("DEFAULT_PH", 7.0),
            turbidity=app.config.get("DEFAULT_TURBIDITY", 10.0),
            co2=app.config.get("DEFAULT_CO2", 500.0),
            plastic=app.config.get("DEFAULT_PLASTIC", 0.0),
        ),
        event_hub=app.event_hub,
    )
    app.detection_manager = DetectionManager(
        metric_stream=app.metric_stream,
        driver_factory=partial(
            WebcamDriver,
            index=app.config.get("CAMERA_INDEX", 0),
            width=app.config.get("CAMERA_FRAME_WIDTH", 224),
            height=app.config.get("CAMERA_FRAME_HEIGHT", 224),
        ),
        positive_class=app.config.get("DETECTION_POSITIVE_CLASS", "Plastic"),
        confidence_threshold_pct=app.config.get("DETECTION_CONFIDENCE_PCT", 70.0),
        increment_step=app.config.get("PLASTIC_INCREMENT_STEP", 1.0),
        interval_seconds=app.config.get("DETECTION_INTERVAL_SECONDS", 1.0),
    )

    from .blueprints.readings import readings as readings_blueprint
    from .blueprints.detection import detection as detection_blueprint
    from .blueprints.monitoring import monitoring as monitoring_blueprint

    app.register_blueprint(readings_blueprint)
    app.register_blueprint(detection_blueprint)
    app.register_blueprint(monitoring_blueprint)

    if app.config.get("SOCKETIO_ENABLED", True):
        from .blueprints.websocket import init_socketio

        app.socketio = init_socketio(app)

    with app.app_context():
        db.create_all()

        from .services import SettingsService

        manager = app.detection_manager
        manager.set_auto_increment(SettingsService.get_auto_increment())
        manager.set_confidence_threshold(
            SettingsService.get_confidence_threshold_pct(manager.confidence_threshold_pct)
        )

        if app.config.get("SEED_INITIAL_READINGS", True):
            app.metric_stream.record_initial_values()

        if app.config.get("MODEL_AUTOLOAD", True):
            paths = SettingsService.get_model_paths(
                app.config["MODEL_PATH"], app.config["LABELS_PATH"]
            )
            manager.load_model(paths["model_path"], paths["labels_path"])

    atexit.register(app.detection_manager.stop)

    return app
