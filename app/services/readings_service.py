"""Sensor readings business logic service layer."""

import logging
from typing import Any, Dict, Mapping, Optional

from flask import current_app

from app.enums import Domain
from app.metrics.stream import MetricStream, chart_payload
from app.validators import validate_readings

logger = logging.getLogger(__name__)


class ReadingsService:
    """Validates raw control values and routes them to the metric stream."""

    @staticmethod
    def get_stream() -> MetricStream:
        return current_app.metric_stream

    @staticmethod
    def record_water(payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Record a water quality reading.

        Args:
            payload: Request body with ``ph`` and ``turbidity``

        Returns:
            Dictionary with the water status and the refreshed chart

        Raises:
            ValidationError: If either reading is malformed
        """
        values = validate_readings(payload, "ph", "turbidity")
        stream = ReadingsService.get_stream()
        update = stream.record_water(values["ph"], values["turbidity"])
        logger.debug(f"Water reading ph={values['ph']} turbidity={values['turbidity']}: {update.status}")
        return {
            "status": update.status.value,
            "chart": chart_payload(update.chart),
        }

    @staticmethod
    def record_co2(payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Record a CO2 reading. Raises ValidationError on malformed input."""
        values = validate_readings(payload, "co2")
        stream = ReadingsService.get_stream()
        update = stream.record_co2(values["co2"])
        return {
            "captured": update.captured,
            "efficiency": update.efficiency,
            "cumulative_total": update.cumulative_total,
            "chart": chart_payload(update.chart),
        }

    @staticmethod
    def record_plastic(payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Record a plastic reading. Raises ValidationError on malformed input."""
        values = validate_readings(payload, "plastic")
        stream = ReadingsService.get_stream()
        update = stream.record_plastic(values["plastic"])
        return {
            "fuel": update.fuel,
            "environmental_score": update.environmental_score,
            "chart": chart_payload(update.chart),
        }

    @staticmethod
    def get_chart(domain: str) -> Dict[str, Any]:
        """
        Chart data for one domain.

        Raises:
            ValueError: If the domain is unknown
        """
        return ReadingsService.get_stream().chart(Domain.from_string(domain))

    @staticmethod
    def get_summary() -> Dict[str, Any]:
        return ReadingsService.get_stream().summary()
