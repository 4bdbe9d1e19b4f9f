"""Bounded time-series buffers and derived-metric recomputation for the dashboard charts."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional, Tuple, Union

from app.enums import CumulativeMode, Domain, WaterStatus
from . import derived
from .events import ChartUpdate, EventHub

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 20
TIME_LABEL_FORMAT = "%H:%M:%S"

# Declared series per domain, in chart dataset order
DOMAIN_SERIES: Dict[Domain, Tuple[str, str]] = {
    Domain.WATER: ("ph", "turbidity"),
    Domain.CO2: ("co2", "captured"),
    Domain.PLASTIC: ("plastic", "fuel"),
}

DATASET_LABELS: Dict[str, str] = {
    "ph": "pH Level",
    "turbidity": "Turbidity (NTU)",
    "co2": "CO₂ Concentration (ppm)",
    "captured": "Algae Capture (g)",
    "plastic": "Plastic Collected (g)",
    "fuel": "Fuel Generated (mL)",
}


class BoundedSeries:
    """Fixed-capacity FIFO buffer; appending past capacity evicts the oldest sample."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Series capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._values: Deque = deque(maxlen=capacity)

    def append(self, value) -> None:
        self._values.append(value)

    def values(self) -> list:
        """Return a copy of the buffered values, oldest first."""
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(list(self._values))


@dataclass(frozen=True)
class SensorInputs:
    ph: float
    turbidity: float
    co2: float
    plastic: float


@dataclass(frozen=True)
class WaterUpdate:
    status: WaterStatus
    chart: Optional[ChartUpdate] = field(default=None, compare=False)


@dataclass(frozen=True)
class CO2Update:
    captured: float
    efficiency: float
    cumulative_total: float
    chart: Optional[ChartUpdate] = field(default=None, compare=False)


@dataclass(frozen=True)
class PlasticUpdate:
    fuel: float
    environmental_score: float
    chart: Optional[ChartUpdate] = field(default=None, compare=False)


DomainLike = Union[Domain, str]


def chart_payload(update: ChartUpdate) -> Dict[str, object]:
    """Chart JSON for a ChartUpdate, with a label per dataset."""
    domain = Domain(update.domain)
    return {
        "domain": domain.value,
        "labels": list(update.labels),
        "datasets": [
            {"label": DATASET_LABELS[name], "key": name, "data": list(data)}
            for name, data in zip(DOMAIN_SERIES[domain], update.datasets)
        ],
    }


class MetricStream:
    """Owns the per-domain series, the shared time axis and the derived values.

    Every ``record_*`` call appends one label to a single time axis shared by
    all three domains, so the axis length counts updates across domains while
    each numeric series only grows with its own domain's updates.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        cumulative_mode: Union[CumulativeMode, str] = CumulativeMode.WINDOW,
        initial_inputs: Optional[SensorInputs] = None,
        event_hub: Optional[EventHub] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.capacity = capacity
        self.cumulative_mode = CumulativeMode.from_string(str(cumulative_mode))
        self.initial_inputs = initial_inputs or SensorInputs(
            ph=7.0, turbidity=10.0, co2=500.0, plastic=0.0
        )
        self.event_hub = event_hub or EventHub()
        self._clock = clock or datetime.now
        self._lock = threading.RLock()
        self._reset_locked()

    def _reset_locked(self) -> None:
        self._axis = BoundedSeries(self.capacity)
        self._series: Dict[str, BoundedSeries] = {
            name: BoundedSeries(self.capacity)
            for names in DOMAIN_SERIES.values()
            for name in names
        }
        self._inputs = self.initial_inputs
        self._water_status: Optional[WaterStatus] = None
        self._captured: Optional[float] = None
        self._efficiency: Optional[float] = None
        self._cumulative_capture = 0.0
        self._fuel: Optional[float] = None
        self._environmental_score: Optional[float] = None
        self._update_count = 0

    def reset(self) -> None:
        """Discard all samples and derived values."""
        with self._lock:
            self._reset_locked()
        logger.debug("Metric stream reset")

    def _append_locked(self, domain: Domain, first: float, second: float) -> None:
        self._axis.append(self._clock().strftime(TIME_LABEL_FORMAT))
        first_name, second_name = DOMAIN_SERIES[domain]
        self._series[first_name].append(first)
        self._series[second_name].append(second)
        self._update_count += 1

    def _chart_update_locked(self, domain: Domain) -> ChartUpdate:
        labels, datasets = self._snapshot_locked(domain)
        return ChartUpdate(
            domain=domain.value,
            labels=tuple(labels),
            datasets=tuple(tuple(data) for data in datasets),
        )

    def _snapshot_locked(self, domain: Domain) -> Tuple[List[str], List[List[float]]]:
        return (
            self._axis.values(),
            [self._series[name].values() for name in DOMAIN_SERIES[domain]],
        )

    def record_water(self, ph: float, turbidity: float) -> WaterUpdate:
        with self._lock:
            self._inputs = SensorInputs(
                ph=ph,
                turbidity=turbidity,
                co2=self._inputs.co2,
                plastic=self._inputs.plastic,
            )
            self._append_locked(Domain.WATER, ph, turbidity)
            status = derived.water_status(ph, turbidity)
            self._water_status = status
            chart = self._chart_update_locked(Domain.WATER)

        self.event_hub.publish_value("water_status", status.value, Domain.WATER.value)
        self.event_hub.publish(chart)
        return WaterUpdate(status=status, chart=chart)

    def record_co2(self, co2: float) -> CO2Update:
        with self._lock:
            self._inputs = SensorInputs(
                ph=self._inputs.ph,
                turbidity=self._inputs.turbidity,
                co2=co2,
                plastic=self._inputs.plastic,
            )
            captured = derived.captured_mass(co2)
            efficiency = derived.capture_efficiency(co2)
            self._append_locked(Domain.CO2, co2, captured)

            if self.cumulative_mode is CumulativeMode.WINDOW:
                self._cumulative_capture += sum(self._series["captured"])
            else:
                self._cumulative_capture += captured

            self._captured = captured
            self._efficiency = efficiency
            cumulative_total = self._cumulative_capture
            chart = self._chart_update_locked(Domain.CO2)

        self.event_hub.publish_value("co2_capture", captured, Domain.CO2.value)
        self.event_hub.publish_value("capture_efficiency", efficiency, Domain.CO2.value)
        self.event_hub.publish_value("cumulative_capture", cumulative_total, Domain.CO2.value)
        self.event_hub.publish(chart)
        return CO2Update(
            captured=captured,
            efficiency=efficiency,
            cumulative_total=cumulative_total,
            chart=chart,
        )

    def record_plastic(self, plastic: float) -> PlasticUpdate:
        with self._lock:
            self._inputs = SensorInputs(
                ph=self._inputs.ph,
                turbidity=self._inputs.turbidity,
                co2=self._inputs.co2,
                plastic=plastic,
            )
            fuel = derived.fuel_yield(plastic)
            self._append_locked(Domain.PLASTIC, plastic, fuel)
            inputs = self._inputs
            score = derived.environmental_score(
                inputs.ph, inputs.turbidity, inputs.co2, inputs.plastic
            )
            self._fuel = fuel
            self._environmental_score = score
            chart = self._chart_update_locked(Domain.PLASTIC)

        self.event_hub.publish_value("fuel_generated", fuel, Domain.PLASTIC.value)
        self.event_hub.publish_value("environmental_score", score, Domain.PLASTIC.value)
        self.event_hub.publish(chart)
        return PlasticUpdate(fuel=fuel, environmental_score=score, chart=chart)

    def increment_plastic(self, step: float) -> PlasticUpdate:
        """Add ``step`` to the current plastic input and record it atomically."""
        with self._lock:
            return self.record_plastic(self._inputs.plastic + step)

    def record_initial_values(self) -> None:
        """Populate each domain once from the initial inputs, as the dashboard does on load."""
        inputs = self.initial_inputs
        self.record_water(inputs.ph, inputs.turbidity)
        self.record_co2(inputs.co2)
        self.record_plastic(inputs.plastic)

    def snapshot(self, domain: DomainLike) -> Tuple[List[str], List[List[float]]]:
        """
        Copy the shared axis and a domain's series for handoff to a chart sink.

        Args:
            domain: Domain enum or its string value

        Returns:
            (labels, [series, ...]) as fresh lists in declared order

        Raises:
            ValueError: If the domain is unknown
        """
        domain = Domain(domain)
        with self._lock:
            return self._snapshot_locked(domain)

    def chart(self, domain: DomainLike) -> Dict[str, object]:
        """Snapshot formatted as chart data with dataset labels."""
        domain = Domain(domain)
        with self._lock:
            update = self._chart_update_locked(domain)
        return chart_payload(update)

    def current_inputs(self) -> SensorInputs:
        with self._lock:
            return self._inputs

    def summary(self) -> Dict[str, object]:
        with self._lock:
            return {
                "inputs": asdict(self._inputs),
                "derived": {
                    "water_status": self._water_status.value if self._water_status else None,
                    "co2_capture": self._captured,
                    "capture_efficiency": self._efficiency,
                    "cumulative_capture": self._cumulative_capture,
                    "fuel_generated": self._fuel,
                    "environmental_score": self._environmental_score,
                },
                "series_lengths": {name: len(series) for name, series in self._series.items()},
                "axis_length": len(self._axis),
                "update_count": self._update_count,
                "capacity": self.capacity,
                "cumulative_mode": self.cumulative_mode.value,
            }
