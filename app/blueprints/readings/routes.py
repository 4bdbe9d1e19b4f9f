"""
REST API routes for sensor readings.

Each control change on the dashboard posts exactly one reading here; the
response carries the derived values and the refreshed chart for that domain.
"""

import logging

from flask import request

from app.services import ReadingsService
from app.utils.responses import error_response, success_response, validation_error_response
from app.validators import ValidationError
from . import readings

logger = logging.getLogger(__name__)


@readings.route("/water", methods=["POST"])
def record_water():
    """
    Record a water quality reading.

    Request body:
        {"ph": 7.2, "turbidity": 12}
    """
    try:
        result = ReadingsService.record_water(request.get_json(silent=True))
    except ValidationError as e:
        return validation_error_response(e.to_dict())
    return success_response(result)


@readings.route("/co2", methods=["POST"])
def record_co2():
    """
    Record a CO2 concentration reading.

    Request body:
        {"co2": 850}
    """
    try:
        result = ReadingsService.record_co2(request.get_json(silent=True))
    except ValidationError as e:
        return validation_error_response(e.to_dict())
    return success_response(result)


@readings.route("/plastic", methods=["POST"])
def record_plastic():
    """
    Record the amount of plastic collected.

    Request body:
        {"plastic": 120}
    """
    try:
        result = ReadingsService.record_plastic(request.get_json(silent=True))
    except ValidationError as e:
        return validation_error_response(e.to_dict())
    return success_response(result)


@readings.route("/<domain>/chart", methods=["GET"])
def get_chart(domain):
    """Return labels and datasets for one domain's chart."""
    try:
        chart = ReadingsService.get_chart(domain)
    except ValueError:
        return error_response(f"Unknown domain '{domain}'", 404)
    return success_response(chart)


@readings.route("/summary", methods=["GET"])
def get_summary():
    """Return current inputs, derived values and buffer lengths."""
    return success_response(ReadingsService.get_summary())
