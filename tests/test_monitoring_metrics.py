from unittest.mock import patch

import pytest

from app.metrics import metrics_registry
from app.metrics.registry import InferenceMetrics, _quantile


@pytest.fixture()
def metrics_app(app):
    """Enable metrics for tests and ensure registry state is isolated."""
    previous_enabled = app.config.get("METRICS_ENABLED", False)
    app.config["METRICS_ENABLED"] = True
    metrics_registry.reset()
    metrics_registry.configure(enabled=True, window_seconds=60.0)
    try:
        yield app
    finally:
        metrics_registry.reset()
        metrics_registry.configure(enabled=previous_enabled, window_seconds=300.0)
        app.config["METRICS_ENABLED"] = previous_enabled


@pytest.fixture()
def metrics_client(metrics_app):
    metrics_app.metric_stream.reset()
    with metrics_app.test_client() as client:
        yield client


def test_metrics_summary_disabled_returns_zeroes(client):
    """Summary endpoint should still answer when metrics are disabled."""
    response = client.get("/api/metrics/summary")
    assert response.status_code == 200
    data = response.get_json()
    assert data["enabled"] is False
    assert data["inference"]["inferences_total"] == 0
    assert data["stream"]["capacity"] == 20


def test_quantile_interpolates():
    assert _quantile([], 0.5) == 0.0
    assert _quantile([10.0, 20.0], 0.5) == pytest.approx(15.0)
    assert _quantile([1.0, 2.0, 3.0], 1.0) == 3.0


def test_inference_window_prunes_old_samples():
    metrics = InferenceMetrics(window_seconds=60.0)
    metrics.record_inference(0.0, 10.0, success=False)
    metrics.record_inference(100.0, 20.0, success=True)
    metrics.record_detection(100.0)

    snapshot = metrics.snapshot(120.0)

    assert snapshot["inferences_total"] == 2
    assert snapshot["failures"]["total"] == 1
    assert snapshot["failures"]["window_total"] == 0
    assert snapshot["detections"]["window_total"] == 1
    assert snapshot["latency_ms"]["count"] == 1


def test_recording_prunes_without_snapshot():
    """Samples outside the window are dropped as new ones arrive."""
    metrics = InferenceMetrics(window_seconds=60.0)
    for second in range(0, 300, 10):
        metrics.record_inference(float(second), 5.0, success=True)
        metrics.record_inference(float(second), 5.0, success=False)
        metrics.record_detection(float(second))

    assert len(metrics._latency_samples) == 7
    assert len(metrics._failure_events) == 7
    assert len(metrics._detection_events) == 7
    assert metrics.snapshot(290.0)["inferences_total"] == 60


def test_metrics_registry_snapshot_contains_inference(metrics_app):
    """Snapshot should reflect recorded latencies, failures and detections."""
    with patch("app.metrics.registry.time.time", return_value=1000.0):
        metrics_registry.record_inference(45.0)
        metrics_registry.record_inference(15.0)
        metrics_registry.record_inference(5.0, success=False)
        metrics_registry.record_detection()
        snapshot = metrics_registry.get_snapshot()

    assert snapshot["enabled"] is True
    assert snapshot["config"]["window_seconds"] == 60.0

    inference = snapshot["inference"]
    assert inference["inferences_total"] == 3
    assert inference["failures"]["total"] == 1
    assert inference["detections"]["total"] == 1
    assert inference["latency_ms"]["avg_ms"] == pytest.approx(30.0)
    assert inference["latency_ms"]["max_ms"] == pytest.approx(45.0)


def test_disabled_registry_records_nothing(metrics_app):
    metrics_registry.configure(enabled=False, window_seconds=60.0)
    metrics_registry.record_inference(10.0)

    assert metrics_registry.get_snapshot() == {"enabled": False, "inference": None}


def test_metrics_summary_endpoint(metrics_app, metrics_client):
    """API endpoint should serve the current metrics snapshot."""
    metrics_registry.record_inference(33.0)
    metrics_client.post("/api/readings/co2", json={"co2": 800})

    response = metrics_client.get("/api/metrics/summary")
    assert response.status_code == 200
    data = response.get_json()
    assert data["enabled"] is True
    assert data["inference"]["inferences_total"] == 1
    assert data["inference"]["latency_ms"]["avg_ms"] == pytest.approx(33.0)
    assert data["stream"]["update_count"] == 1
