"""Standardized API response envelopes for the dashboard API.

Every JSON body carries ``success``; failures add ``error`` and optionally
``details`` or ``validation_errors``.
"""

from typing import Any, Dict, Optional

from flask import jsonify


def success_response(data: Any = None, message: Optional[str] = None, code: int = 200):
    """Wrap ``data`` (and an optional human-readable message) in a success envelope."""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return jsonify(body), code


def error_response(message: str, code: int = 400, details: Optional[Any] = None):
    """Create a standardized error response with optional details."""
    body = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return jsonify(body), code


def validation_error_response(errors: Dict[str, str], code: int = 400):
    """
    Create a response for rejected readings or settings.

    Args:
        errors: Field name to error message, e.g. {"ph": "must be a finite number"}
        code: HTTP status code (default 400)
    """
    return jsonify({
        "success": False,
        "error": "Validation failed",
        "validation_errors": errors,
    }), code
