from unittest.mock import MagicMock

import numpy as np
import pytest

from app.detection_bridge import (
    STATUS_DETECTED,
    STATUS_DETECTING,
    STATUS_NOT_DETECTED,
    DetectionBridge,
)
from app.drivers import DriverFrameAcquisitionError
from app.metrics import EventHub, MetricStream, ValueChanged
from app.ml import Prediction


def _predictions(plastic, other=None):
    other = 1.0 - plastic if other is None else other
    return [Prediction("Plastic", plastic), Prediction("No Plastic", other)]


@pytest.fixture()
def hub_events():
    hub = EventHub()
    received = []
    hub.subscribe(received.append)
    return hub, received


@pytest.fixture()
def bridge_factory(hub_events, make_driver):
    hub, _ = hub_events

    def _make(classifier=None, driver=None, **kwargs):
        stream = MetricStream(event_hub=hub)
        classifier = classifier or MagicMock()
        return DetectionBridge(
            classifier=classifier,
            driver=driver or make_driver(),
            metric_stream=stream,
            event_hub=hub,
            interval_seconds=0.01,
            **kwargs,
        )

    return _make


def _value_events(received, name):
    return [e.value for e in received if isinstance(e, ValueChanged) and e.name == name]


# --- Detection policy ---

def test_initial_status_is_detecting(bridge_factory):
    bridge = bridge_factory()
    assert bridge.get_latest_results() == {
        "status": STATUS_DETECTING,
        "confidence_pct": 0,
        "last_error": None,
    }


def test_confident_positive_prediction_is_detected(bridge_factory):
    bridge = bridge_factory()
    assert bridge.handle_predictions(_predictions(0.85)) is True

    results = bridge.get_latest_results()
    assert results["status"] == STATUS_DETECTED
    assert results["confidence_pct"] == 85


def test_threshold_is_strictly_greater(bridge_factory):
    """70% exactly is not a detection at the default 70% threshold."""
    bridge = bridge_factory()
    assert bridge.handle_predictions(_predictions(0.70)) is False
    assert bridge.get_latest_results()["status"] == STATUS_NOT_DETECTED

    assert bridge.handle_predictions(_predictions(0.71)) is True


def test_confidence_rounds_half_up_at_threshold(bridge_factory):
    """70.5% rounds up to 71% and clears the 70% threshold."""
    bridge = bridge_factory()
    predictions = [Prediction("Plastic", 0.705), Prediction("No Plastic", 0.295)]

    assert bridge.handle_predictions(predictions) is True
    assert bridge.get_latest_results()["confidence_pct"] == 71


def test_positive_class_must_be_best_prediction(bridge_factory):
    bridge = bridge_factory(confidence_threshold_pct=10)
    predictions = [Prediction("Plastic", 0.4), Prediction("No Plastic", 0.6)]
    assert bridge.handle_predictions(predictions) is False


def test_missing_positive_class_is_ignored(bridge_factory):
    bridge = bridge_factory()
    assert bridge.handle_predictions([Prediction("Water", 0.99)]) is False
    assert bridge.handle_predictions([]) is False
    assert bridge.get_latest_results()["status"] == STATUS_DETECTING


def test_dict_predictions_are_accepted(bridge_factory):
    bridge = bridge_factory()
    predictions = [
        {"label": "Plastic", "confidence": 0.9},
        {"label": "No Plastic", "confidence": 0.1},
    ]
    assert bridge.handle_predictions(predictions) is True


# --- Auto-increment ---

def test_auto_increment_adds_plastic_on_detection(bridge_factory):
    bridge = bridge_factory(auto_increment=True, increment_step=1)
    bridge.handle_predictions(_predictions(0.9))
    bridge.handle_predictions(_predictions(0.9))

    assert bridge.metric_stream.current_inputs().plastic == 2
    _, (plastic, fuel) = bridge.metric_stream.snapshot("plastic")
    assert plastic == [1, 2]
    assert fuel[-1] == pytest.approx(1.6)


def test_no_increment_without_auto_increment(bridge_factory):
    bridge = bridge_factory(auto_increment=False)
    bridge.handle_predictions(_predictions(0.9))
    assert bridge.metric_stream.summary()["axis_length"] == 0


def test_no_increment_below_threshold(bridge_factory):
    bridge = bridge_factory(auto_increment=True)
    bridge.handle_predictions(_predictions(0.5))
    assert bridge.metric_stream.current_inputs().plastic == 0


# --- Events ---

def test_status_event_only_on_change(bridge_factory, hub_events):
    _, received = hub_events
    bridge = bridge_factory()

    bridge.handle_predictions(_predictions(0.9))
    bridge.handle_predictions(_predictions(0.95))
    bridge.handle_predictions(_predictions(0.2))

    assert _value_events(received, "detection_status") == [STATUS_DETECTED, STATUS_NOT_DETECTED]
    assert _value_events(received, "detection_confidence") == [90, 95, 20]


# --- Poll cycle ---

def test_poll_once_skips_when_frame_not_ready(bridge_factory, make_driver):
    classifier = MagicMock()
    bridge = bridge_factory(classifier=classifier, driver=make_driver(frames=[]))
    bridge.poll_once()
    classifier.predict.assert_not_called()


def test_poll_once_runs_prediction_on_frame(bridge_factory, make_driver):
    classifier = MagicMock()
    classifier.predict.return_value = _predictions(0.9)
    frame = np.zeros((224, 224, 3), dtype=np.uint8)
    bridge = bridge_factory(classifier=classifier, driver=make_driver(frames=[frame]))

    bridge.poll_once()

    classifier.predict.assert_called_once_with(frame)
    assert bridge.get_latest_results()["status"] == STATUS_DETECTED


def test_frame_acquisition_failure_is_reported(bridge_factory, make_driver):
    driver = make_driver()
    driver.get_frame = MagicMock(side_effect=DriverFrameAcquisitionError("device lost"))
    bridge = bridge_factory(driver=driver)

    bridge.poll_once()

    assert bridge.get_latest_results()["last_error"] == "device lost"
    bridge.classifier.predict.assert_not_called()


def test_prediction_failure_is_reported_and_loop_continues(bridge_factory, hub_events):
    _, received = hub_events
    classifier = MagicMock()
    classifier.predict.side_effect = [RuntimeError("inference failed"), _predictions(0.9)]
    bridge = bridge_factory(classifier=classifier)

    bridge.poll_once()
    assert bridge.get_latest_results()["last_error"] == "inference failed"
    assert _value_events(received, "detection_error") == ["inference failed"]

    bridge.poll_once()
    results = bridge.get_latest_results()
    assert results["last_error"] is None
    assert results["status"] == STATUS_DETECTED


def test_result_after_stop_is_dropped(bridge_factory):
    bridge = bridge_factory(auto_increment=True)

    def predict_then_stop(frame):
        bridge.stop()
        return _predictions(0.99)

    bridge.classifier.predict.side_effect = predict_then_stop
    bridge.poll_once()

    assert bridge.metric_stream.current_inputs().plastic == 0
    assert bridge.get_latest_results()["status"] == STATUS_DETECTING


def test_poll_once_does_nothing_once_stopped(bridge_factory):
    bridge = bridge_factory()
    bridge.stop()
    bridge.poll_once()
    bridge.classifier.predict.assert_not_called()


def test_prediction_metrics_are_recorded(bridge_factory, isolated_metrics):
    classifier = MagicMock()
    classifier.predict.side_effect = [_predictions(0.9), RuntimeError("boom")]
    bridge = bridge_factory(classifier=classifier)

    bridge.poll_once()
    bridge.poll_once()

    inference = isolated_metrics.get_snapshot()["inference"]
    assert inference["inferences_total"] == 2
    assert inference["failures"]["total"] == 1
    assert inference["detections"]["total"] == 1


def test_thread_polls_until_stopped(bridge_factory):
    classifier = MagicMock()
    classifier.predict.return_value = _predictions(0.9)
    bridge = bridge_factory(classifier=classifier, auto_increment=True)

    bridge.start()
    bridge.stop_event.wait(0.1)
    bridge.stop()
    bridge.join(timeout=2)

    assert not bridge.is_alive()
    assert classifier.predict.call_count >= 1
    assert bridge.metric_stream.current_inputs().plastic >= 1
