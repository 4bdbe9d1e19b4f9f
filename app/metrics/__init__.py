"""Metric stream, derived indicators, event fan-out and the shared inference registry."""

from .events import ChartUpdate, EventHub, ValueChanged
from .registry import MetricsRegistry, metrics_registry
from .stream import (
    BoundedSeries,
    CO2Update,
    MetricStream,
    PlasticUpdate,
    SensorInputs,
    WaterUpdate,
)

__all__ = [
    "BoundedSeries",
    "ChartUpdate",
    "CO2Update",
    "EventHub",
    "MetricStream",
    "MetricsRegistry",
    "metrics_registry",
    "PlasticUpdate",
    "SensorInputs",
    "ValueChanged",
    "WaterUpdate",
]
