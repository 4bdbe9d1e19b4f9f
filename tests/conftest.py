from datetime import datetime, timedelta

import numpy as np
import pytest

from app import create_app, db
from app.drivers.base_driver import BaseDriver
from app.metrics import metrics_registry


@pytest.fixture(scope='module')
def app():
    """
    Creates a test Flask application instance with testing-specific configuration.
    """
    config_overrides = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SEED_INITIAL_READINGS": False,
        "MODEL_AUTOLOAD": False,
        "SOCKETIO_ENABLED": False,
        "METRICS_ENABLED": False,
    }
    app = create_app(config_overrides)

    with app.app_context():
        db.create_all()
        engine = db.engine
        try:
            yield app
        finally:
            app.detection_manager.stop()
            db.session.remove()
            db.drop_all()
            engine.dispose()


@pytest.fixture()
def client(app):
    """A test client for the app; every test starts with an empty stream."""
    app.metric_stream.reset()
    with app.app_context():
        yield app.test_client()


@pytest.fixture()
def isolated_metrics():
    """Enable the shared inference registry for one test and clear it afterwards."""
    previous_enabled = metrics_registry.enabled
    previous_window = metrics_registry.window_seconds
    metrics_registry.reset()
    metrics_registry.configure(enabled=True, window_seconds=60.0)
    try:
        yield metrics_registry
    finally:
        metrics_registry.reset()
        metrics_registry.configure(enabled=previous_enabled, window_seconds=previous_window)


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture()
def step_clock():
    return StepClock()


class FakeDriver(BaseDriver):
    """In-memory frame source."""

    def __init__(self, frames=None, fail_connect=False):
        super().__init__("fake")
        self.frames = list(frames) if frames is not None else None
        self.fail_connect = fail_connect
        self.connected = False
        self.disconnect_calls = 0

    def connect(self):
        from app.drivers.exceptions import DriverConnectionError

        if self.fail_connect:
            raise DriverConnectionError("Failed to open webcam at index 0")
        self.connected = True

    def disconnect(self):
        self.connected = False
        self.disconnect_calls += 1

    def is_connected(self):
        return self.connected

    def get_frame(self):
        if self.frames is None:
            return np.zeros((224, 224, 3), dtype=np.uint8)
        if not self.frames:
            return None
        return self.frames.pop(0)


@pytest.fixture()
def fake_driver():
    return FakeDriver()


@pytest.fixture()
def make_driver():
    """Factory for fake drivers with scripted frames."""
    return FakeDriver
