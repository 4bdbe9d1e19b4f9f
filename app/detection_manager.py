"""Lifecycle of the classifier, the webcam and the detection polling thread."""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from .detection_bridge import STATUS_STOPPED, DetectionBridge
from .drivers.base_driver import BaseDriver
from .drivers.exceptions import DriverError
from .enums import ModelStatus
from .metrics.stream import MetricStream
from .ml import ImageClassifier
from .utils.config import DetectionDefaults

logger = logging.getLogger(__name__)

MODEL_MESSAGES = {
    ModelStatus.NOT_LOADED: "AI model not loaded",
    ModelStatus.LOADING: "Loading AI model...",
    ModelStatus.READY: "AI model ready for plastic detection",
    ModelStatus.ERROR: "Error loading AI model. Please check model files.",
}


class DetectionUnavailableError(Exception):
    """Raised when detection is started before a classifier is ready."""
    pass


class DetectionManager:
    """Owns the classifier handle and at most one running DetectionBridge."""

    def __init__(
        self,
        metric_stream: MetricStream,
        driver_factory: Callable[[], BaseDriver],
        classifier_loader: Callable[[str, str], Any] = ImageClassifier.from_files,
        positive_class: str = DetectionDefaults.POSITIVE_CLASS,
        confidence_threshold_pct: float = DetectionDefaults.CONFIDENCE_PCT,
        increment_step: float = DetectionDefaults.INCREMENT_STEP,
        interval_seconds: float = DetectionDefaults.INTERVAL_SECONDS,
        auto_increment: bool = False,
        stop_timeout: float = DetectionDefaults.STOP_TIMEOUT,
    ):
        self.metric_stream = metric_stream
        self.event_hub = metric_stream.event_hub
        self.driver_factory = driver_factory
        self.classifier_loader = classifier_loader
        self.positive_class = positive_class
        self.confidence_threshold_pct = confidence_threshold_pct
        self.increment_step = increment_step
        self.interval_seconds = interval_seconds
        self.auto_increment = auto_increment
        self.stop_timeout = stop_timeout

        self._lock = threading.Lock()
        self.classifier = None
        self.model_status = ModelStatus.NOT_LOADED
        self.model_error: Optional[str] = None
        self._bridge: Optional[DetectionBridge] = None
        self._driver: Optional[BaseDriver] = None
        self._last_error: Optional[str] = None

    # --- Model ---

    def load_model(self, model_path: Optional[str], labels_path: Optional[str]) -> bool:
        """
        Load (or reload) the classifier.

        Failures are reported through the model status and never raised. A
        failed reload keeps the previously loaded classifier, so a running
        bridge and the reported model status stay consistent.

        Returns:
            True if the requested classifier was loaded
        """
        self._set_model_status(ModelStatus.LOADING)
        try:
            classifier = self.classifier_loader(model_path, labels_path)
        except Exception as e:
            logger.error(f"Error loading model from {model_path}: {e}")
            with self._lock:
                self.model_error = str(e)
                has_previous = self.classifier is not None
            if has_previous:
                logger.warning("Keeping the previously loaded classifier")
                self._set_model_status(ModelStatus.READY)
            else:
                self._set_model_status(ModelStatus.ERROR)
            return False

        with self._lock:
            self.classifier = classifier
            self.model_error = None
            bridge = self._bridge
        if bridge is not None:
            bridge.classifier = classifier
        self._set_model_status(ModelStatus.READY)
        return True

    def _set_model_status(self, status: ModelStatus) -> None:
        with self._lock:
            self.model_status = status
        self.event_hub.publish_value("model_status", status.value)

    # --- Detection lifecycle ---

    def is_running(self) -> bool:
        with self._lock:
            return self._bridge is not None and self._bridge.is_alive()

    def start(self) -> Dict[str, Any]:
        """
        Acquire the webcam and start polling the classifier.

        Raises:
            DetectionUnavailableError: If no classifier is loaded
            DriverError: If the camera cannot be acquired; detection stays stopped
        """
        with self._lock:
            if self._bridge is not None and self._bridge.is_alive():
                logger.warning("Detection is already running")
                return self._status_locked()
            if self.classifier is None or self.model_status != ModelStatus.READY:
                raise DetectionUnavailableError(
                    "AI model not loaded yet. Please wait for model to load."
                )
            classifier = self.classifier

            driver = self.driver_factory()
            try:
                driver.connect()
            except DriverError as e:
                self._last_error = str(e)
                logger.error(f"Error accessing webcam: {e}")
                self.event_hub.publish_value("detection_error", str(e), "plastic")
                raise

            bridge = DetectionBridge(
                classifier=classifier,
                driver=driver,
                metric_stream=self.metric_stream,
                event_hub=self.event_hub,
                positive_class=self.positive_class,
                confidence_threshold_pct=self.confidence_threshold_pct,
                increment_step=self.increment_step,
                interval_seconds=self.interval_seconds,
                auto_increment=self.auto_increment,
            )
            self._driver = driver
            self._bridge = bridge
            self._last_error = None
            bridge.start()
            logger.info("Plastic detection started")
            status = self._status_locked()

        self.event_hub.publish_value("detection_status", status["status"], "plastic")
        return status

    def stop(self) -> Dict[str, Any]:
        """Stop polling and release the webcam. Safe to call when not running."""
        with self._lock:
            bridge = self._bridge
            driver = self._driver
            self._bridge = None
            self._driver = None

        if bridge is not None:
            bridge.stop()
            if bridge is not threading.current_thread() and bridge.is_alive():
                bridge.join(timeout=self.stop_timeout)
                if bridge.is_alive():
                    logger.warning("Detection thread did not stop within timeout")

        if driver is not None:
            try:
                driver.disconnect()
            except DriverError as e:
                logger.warning(f"Failed to release webcam cleanly: {e}")

        if bridge is not None:
            logger.info("Plastic detection stopped")
            self.event_hub.publish_value("detection_status", STATUS_STOPPED, "plastic")
            self.event_hub.publish_value("detection_confidence", 0, "plastic")

        with self._lock:
            return self._status_locked()

    # --- Settings ---

    def set_auto_increment(self, enabled: bool) -> None:
        with self._lock:
            self.auto_increment = bool(enabled)
            if self._bridge is not None:
                self._bridge.auto_increment = self.auto_increment

    def set_confidence_threshold(self, threshold_pct: float) -> None:
        with self._lock:
            self.confidence_threshold_pct = float(threshold_pct)
            if self._bridge is not None:
                self._bridge.confidence_threshold_pct = self.confidence_threshold_pct

    # --- Status ---

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return self._status_locked()

    def _status_locked(self) -> Dict[str, Any]:
        running = self._bridge is not None and self._bridge.is_alive()
        if running:
            results = self._bridge.get_latest_results()
        else:
            results = {"status": STATUS_STOPPED, "confidence_pct": 0, "last_error": None}

        return {
            "running": running,
            "status": results["status"],
            "confidence_pct": results["confidence_pct"],
            "last_error": results["last_error"] or self._last_error,
            "auto_increment": self.auto_increment,
            "confidence_threshold_pct": self.confidence_threshold_pct,
            "positive_class": self.positive_class,
            "interval_seconds": self.interval_seconds,
            "model": {
                "status": self.model_status.value,
                "message": MODEL_MESSAGES[self.model_status],
                "error": self.model_error,
            },
        }
