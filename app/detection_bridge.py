"""Polling thread that turns classifier results into plastic readings."""

import logging
import math
import threading
import time
from typing import Any, Dict, Optional, Sequence

from .drivers.base_driver import BaseDriver
from .drivers.exceptions import DriverError
from .metrics import metrics_registry
from .metrics.events import EventHub
from .metrics.stream import MetricStream

logger = logging.getLogger(__name__)

STATUS_DETECTING = "Detecting..."
STATUS_DETECTED = "Plastic Detected!"
STATUS_NOT_DETECTED = "No Plastic Detected"
STATUS_STOPPED = "Stopped"


def _field(prediction: Any, name: str, fallback: str):
    """Read a prediction attribute, accepting objects or plain dicts."""
    if isinstance(prediction, dict):
        return prediction.get(name, prediction.get(fallback))
    return getattr(prediction, name, getattr(prediction, fallback, None))


class DetectionBridge(threading.Thread):
    """Sequential classifier poll loop.

    Each iteration grabs one frame, awaits one prediction, and only then waits
    ``interval_seconds`` before the next poll, so inferences never overlap.
    The stop event is checked before polling and again before acting on a
    result that completed after stop() was requested.
    """

    def __init__(
        self,
        classifier,
        driver: BaseDriver,
        metric_stream: MetricStream,
        event_hub: Optional[EventHub] = None,
        positive_class: str = "Plastic",
        confidence_threshold_pct: float = 70.0,
        increment_step: float = 1.0,
        interval_seconds: float = 1.0,
        auto_increment: bool = False,
    ):
        super().__init__(name="PlasticDetectionBridge")
        self.daemon = True
        self.classifier = classifier
        self.driver = driver
        self.metric_stream = metric_stream
        self.event_hub = event_hub or metric_stream.event_hub
        self.positive_class = positive_class
        self.confidence_threshold_pct = confidence_threshold_pct
        self.increment_step = increment_step
        self.interval_seconds = interval_seconds
        self.auto_increment = auto_increment

        self.stop_event = threading.Event()
        self.results_lock = threading.Lock()
        self.latest_results: Dict[str, Any] = {
            "status": STATUS_DETECTING,
            "confidence_pct": 0,
            "last_error": None,
        }

    def run(self):
        logger.info(
            f"Starting detection loop on camera {self.driver.identifier} "
            f"(every {self.interval_seconds}s, threshold {self.confidence_threshold_pct}%)"
        )

        while not self.stop_event.is_set():
            self.poll_once()
            self.stop_event.wait(self.interval_seconds)

        logger.info(f"Detection loop on camera {self.driver.identifier} stopped")

    def poll_once(self) -> None:
        """Run a single frame -> prediction -> reading cycle."""
        if self.stop_event.is_set():
            return

        try:
            frame = self.driver.get_frame()
        except DriverError as e:
            logger.warning(f"Frame acquisition failed on camera {self.driver.identifier}: {e}")
            with self.results_lock:
                self.latest_results["last_error"] = str(e)
            return

        if frame is None:
            # Camera not ready yet, try again next tick
            return

        start = time.perf_counter()
        try:
            predictions = self.classifier.predict(frame)
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000.0
            metrics_registry.record_inference(latency_ms, success=False)
            logger.error(f"Error during prediction: {e}")
            with self.results_lock:
                self.latest_results["last_error"] = str(e)
            self.event_hub.publish_value("detection_error", str(e), "plastic")
            return

        latency_ms = (time.perf_counter() - start) * 1000.0
        metrics_registry.record_inference(latency_ms, success=True)

        if self.stop_event.is_set():
            logger.debug("Dropping prediction that completed after stop was requested")
            return

        self.handle_predictions(predictions)

    def handle_predictions(self, predictions: Sequence[Any]) -> bool:
        """
        Apply the detection policy to one set of predictions.

        Returns:
            True if the positive class was detected above the threshold
        """
        if not predictions:
            return False

        positive = None
        best = None
        for prediction in predictions:
            probability = float(_field(prediction, "probability", "confidence") or 0.0)
            if best is None or probability > best[1]:
                best = (prediction, probability)
            if _field(prediction, "class_name", "label") == self.positive_class:
                positive = (prediction, probability)

        if positive is None:
            return False

        prediction, probability = positive
        # Half-up rounding: 0.705 reads as 71%
        confidence_pct = int(math.floor(probability * 100 + 0.5))
        with self.results_lock:
            self.latest_results["confidence_pct"] = confidence_pct
            self.latest_results["last_error"] = None
        self.event_hub.publish_value("detection_confidence", confidence_pct, "plastic")

        detected = best[0] is prediction and confidence_pct > self.confidence_threshold_pct
        if not detected:
            self._set_status(STATUS_NOT_DETECTED)
            return False

        self._set_status(STATUS_DETECTED)
        metrics_registry.record_detection()
        if self.auto_increment:
            update = self.metric_stream.increment_plastic(self.increment_step)
            logger.debug(
                f"Auto-incremented plastic by {self.increment_step} (fuel {update.fuel:.1f} mL)"
            )
        return True

    def get_latest_results(self) -> Dict[str, Any]:
        with self.results_lock:
            return dict(self.latest_results)

    def _set_status(self, status: str) -> None:
        with self.results_lock:
            changed = self.latest_results["status"] != status
            self.latest_results["status"] = status
        if changed:
            self.event_hub.publish_value("detection_status", status, "plastic")

    def stop(self):
        self.stop_event.set()
