"""
Reading validators.

Raw control values arrive as JSON numbers or strings from the dashboard.
They are checked here so that only finite, in-range numbers ever reach the
metric stream.
"""

import math
from numbers import Real
from typing import Any, Dict, Mapping, Optional, Tuple

# Inclusive (minimum, maximum) per reading; None means unbounded
READING_RANGES: Dict[str, Tuple[Optional[float], Optional[float]]] = {
    "ph": (0.0, 14.0),
    "turbidity": (0.0, None),
    "co2": (0.0, None),
    "plastic": (0.0, None),
}


class ValidationError(ValueError):
    """Raised when a reading is missing, non-numeric, or out of range."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {self.field: self.message}


def _coerce_number(field: str, value: Any) -> float:
    # bool is a Real subclass but a checkbox value is never a reading
    if isinstance(value, bool):
        raise ValidationError(field, "must be a number")
    if isinstance(value, Real):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValidationError(field, f"'{value}' is not a number") from None
    else:
        raise ValidationError(field, "must be a number")

    if math.isnan(number) or math.isinf(number):
        raise ValidationError(field, "must be a finite number")
    return number


def validate_reading(field: str, value: Any) -> float:
    """
    Validate a single reading and return it as a float.

    Args:
        field: Reading name (ph, turbidity, co2, plastic)
        value: Raw value from the request

    Returns:
        The reading as a finite float

    Raises:
        ValidationError: If the value is missing, non-numeric, non-finite or
            outside the allowed range for the field
    """
    if field not in READING_RANGES:
        raise ValidationError(field, "unknown reading")
    if value is None:
        raise ValidationError(field, "is required")

    number = _coerce_number(field, value)
    minimum, maximum = READING_RANGES[field]
    if minimum is not None and number < minimum:
        raise ValidationError(field, f"{number} is below minimum {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(field, f"{number} is above maximum {maximum}")
    return number


def validate_readings(payload: Optional[Mapping[str, Any]], *fields: str) -> Dict[str, float]:
    """Validate several fields from a request body, reporting the first failure."""
    if payload is None:
        payload = {}
    elif not isinstance(payload, Mapping):
        raise ValidationError("body", "must be a JSON object")
    return {field: validate_reading(field, payload.get(field)) for field in fields}


def validate_threshold_pct(value: Any) -> float:
    """Validate a detection confidence threshold given in percent."""
    number = _coerce_number("confidence_threshold_pct", value)
    if number < 0 or number > 100:
        raise ValidationError(
            "confidence_threshold_pct", f"{number} must be between 0 and 100"
        )
    return number
