"""Thread-safe metrics registry for classifier inference in the detection loop."""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, Tuple


def _quantile(values: Iterable[float], quantile: float) -> float:
    """Return the quantile for the given values using linear interpolation."""
    values_list = sorted(values)
    if not values_list:
        return 0.0
    if quantile <= 0:
        return values_list[0]
    if quantile >= 1:
        return values_list[-1]

    position = (len(values_list) - 1) * quantile
    lower_index = int(math.floor(position))
    upper_index = int(math.ceil(position))
    lower_value = values_list[lower_index]
    upper_value = values_list[upper_index]
    if lower_index == upper_index:
        return lower_value
    fraction = position - lower_index
    return lower_value + (upper_value - lower_value) * fraction


def _prune_series(series: Deque[Tuple[float, float]], cutoff: float) -> None:
    """Remove samples older than the cutoff timestamp."""
    while series and series[0][0] < cutoff:
        series.popleft()


@dataclass
class LatencyBreakdown:
    avg_ms: float = 0.0
    p50_ms: float = 0.0
    p95_ms: float = 0.0
    max_ms: float = 0.0
    count: int = 0


def _build_latency_stats(values: Iterable[float]) -> LatencyBreakdown:
    values_list = list(values)
    if not values_list:
        return LatencyBreakdown()

    return LatencyBreakdown(
        avg_ms=sum(values_list) / len(values_list),
        p50_ms=_quantile(values_list, 0.5),
        p95_ms=_quantile(values_list, 0.95),
        max_ms=max(values_list),
        count=len(values_list),
    )


class InferenceMetrics:
    """Rolling window of classifier calls, failures and positive detections."""

    def __init__(self, window_seconds: float):
        self._window_seconds = window_seconds
        self._lock = threading.Lock()
        self._inferences_total = 0
        self._failures_total = 0
        self._detections_total = 0
        self._latency_samples: Deque[Tuple[float, float]] = deque()
        self._failure_events: Deque[Tuple[float, float]] = deque()
        self._detection_events: Deque[Tuple[float, float]] = deque()

    def record_inference(self, timestamp: float, latency_ms: float, success: bool) -> None:
        with self._lock:
            self._prune_locked(timestamp - self._window_seconds)
            self._inferences_total += 1
            if success:
                self._latency_samples.append((timestamp, latency_ms))
            else:
                self._failures_total += 1
                self._failure_events.append((timestamp, 1.0))

    def record_detection(self, timestamp: float) -> None:
        with self._lock:
            self._prune_locked(timestamp - self._window_seconds)
            self._detections_total += 1
            self._detection_events.append((timestamp, 1.0))

    def _prune_locked(self, cutoff: float) -> None:
        _prune_series(self._latency_samples, cutoff)
        _prune_series(self._failure_events, cutoff)
        _prune_series(self._detection_events, cutoff)

    def snapshot(self, timestamp: float) -> Dict[str, object]:
        cutoff = timestamp - self._window_seconds
        with self._lock:
            self._prune_locked(cutoff)

            window_minutes = max(self._window_seconds / 60.0, 1.0)
            window_failures = sum(value for _, value in self._failure_events)
            window_detections = sum(value for _, value in self._detection_events)
            latency = _build_latency_stats(value for _, value in self._latency_samples)

            return {
                "inferences_total": self._inferences_total,
                "failures": {
                    "total": self._failures_total,
                    "window_total": window_failures,
                    "per_minute": window_failures / window_minutes,
                },
                "detections": {
                    "total": self._detections_total,
                    "window_total": window_detections,
                    "per_minute": window_detections / window_minutes,
                },
                "latency_ms": latency.__dict__,
            }


class MetricsRegistry:
    """Global registry shared between the detection thread and the monitoring API."""

    def __init__(self):
        self._lock = threading.Lock()
        self.enabled = True
        self.window_seconds = 300.0
        self._inference = InferenceMetrics(self.window_seconds)

    def configure(self, enabled: bool = True, window_seconds: float = 300.0) -> None:
        with self._lock:
            self.enabled = enabled
            if window_seconds != self.window_seconds:
                self.window_seconds = window_seconds
                self._inference = InferenceMetrics(window_seconds)

    def reset(self) -> None:
        """Reset all recorded metrics. Intended for test isolation."""
        with self._lock:
            self._inference = InferenceMetrics(self.window_seconds)

    def record_inference(self, latency_ms: float, success: bool = True) -> None:
        if not self.enabled:
            return
        self._inference.record_inference(time.time(), latency_ms, success)

    def record_detection(self) -> None:
        if not self.enabled:
            return
        self._inference.record_detection(time.time())

    def get_snapshot(self) -> Dict[str, object]:
        if not self.enabled:
            return {"enabled": False, "inference": None}

        return {
            "enabled": True,
            "generated_at": time.time(),
            "inference": self._inference.snapshot(time.time()),
            "config": {"window_seconds": self.window_seconds},
        }


# Shared singleton registry used by the application.
metrics_registry = MetricsRegistry()
