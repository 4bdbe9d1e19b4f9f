"""Typed value-changed events and the hub that fans them out to sinks."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValueChanged:
    """A single displayed value changed (capture mass, water status, ...)."""

    name: str
    value: Any
    domain: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value, "domain": self.domain}


@dataclass(frozen=True)
class ChartUpdate:
    """Chart-ready copy of a domain's labels and datasets."""

    domain: str
    labels: Tuple[str, ...]
    datasets: Tuple[Tuple[float, ...], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "labels": list(self.labels),
            "datasets": [list(data) for data in self.datasets],
        }


Event = Union[ValueChanged, ChartUpdate]
Subscriber = Callable[[Event], None]


class EventHub:
    """Fan-out of stream events to any number of subscribers.

    Sinks are fire-and-forget: a failing subscriber is logged and the
    remaining subscribers still receive the event.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, event: Event) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event subscriber {callback!r} failed on {event!r}: {e}")

    def publish_value(self, name: str, value: Any, domain: Optional[str] = None) -> None:
        self.publish(ValueChanged(name=name, value=value, domain=domain))
