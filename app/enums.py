"""Enumeration types for type-safe constants throughout the application."""

from enum import Enum


class Domain(str, Enum):
    """Sensor domain groups tracked by the metric stream."""

    WATER = "water"
    CO2 = "co2"
    PLASTIC = "plastic"

    @classmethod
    def from_string(cls, value: str) -> "Domain":
        """
        Convert a string to Domain enum.

        Args:
            value: String representation of the domain

        Returns:
            Domain enum value

        Raises:
            ValueError: If value doesn't match any known domain
        """
        for domain in cls:
            if domain.value == value:
                return domain
        raise ValueError(f"Unknown domain: {value}")

    def __str__(self) -> str:
        """Return the string value of the enum."""
        return self.value


class WaterStatus(str, Enum):
    """Water quality classification."""

    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    def __str__(self) -> str:
        return self.value


class ModelStatus(str, Enum):
    """Lifecycle of the plastic classifier."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


class CumulativeMode(str, Enum):
    """How the running captured-mass total accumulates on each CO2 update."""

    WINDOW = "window"
    SAMPLE = "sample"

    @classmethod
    def from_string(cls, value: str) -> "CumulativeMode":
        for mode in cls:
            if mode.value == value:
                return mode
        raise ValueError(f"Unknown cumulative capture mode: {value}")

    def __str__(self) -> str:
        return self.value
