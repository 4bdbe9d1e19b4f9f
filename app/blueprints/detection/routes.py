"""
REST API routes for the webcam plastic detection overlay.
"""

import logging

from flask import current_app, request

from app.detection_manager import DetectionUnavailableError
from app.drivers.exceptions import DriverError
from app.services import SettingsService
from app.utils.responses import error_response, success_response, validation_error_response
from app.validators import ValidationError, validate_threshold_pct
from . import detection

logger = logging.getLogger(__name__)


def _manager():
    return current_app.detection_manager


@detection.route("/status", methods=["GET"])
def get_status():
    """Return detection state, last confidence and model status."""
    return success_response(_manager().status())


@detection.route("/start", methods=["POST"])
def start_detection():
    """Acquire the webcam and start polling the classifier."""
    try:
        status = _manager().start()
    except DetectionUnavailableError as e:
        return error_response(str(e), 409)
    except DriverError as e:
        return error_response(
            "Error accessing webcam. Please ensure camera permissions are granted.",
            503,
            details=str(e),
        )
    return success_response(status, message="Detection started")


@detection.route("/stop", methods=["POST"])
def stop_detection():
    """Stop polling and release the webcam."""
    return success_response(_manager().stop(), message="Detection stopped")


@detection.route("/settings", methods=["PUT"])
def update_settings():
    """
    Update detection preferences.

    Request body:
        {
            "auto_increment": true,
            "confidence_threshold_pct": 70
        }
    """
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body required", 400)
    if not isinstance(data, dict):
        return validation_error_response({"body": "must be a JSON object"})

    manager = _manager()
    updates = {}

    if "auto_increment" in data:
        if not isinstance(data["auto_increment"], bool):
            return validation_error_response({"auto_increment": "must be a boolean"})
        updates["auto_increment"] = data["auto_increment"]

    if "confidence_threshold_pct" in data:
        try:
            updates["confidence_threshold_pct"] = validate_threshold_pct(
                data["confidence_threshold_pct"]
            )
        except ValidationError as e:
            return validation_error_response(e.to_dict())

    if not updates:
        return error_response("No valid fields to update", 400)

    if "auto_increment" in updates:
        manager.set_auto_increment(updates["auto_increment"])
        SettingsService.set_auto_increment(updates["auto_increment"])
    if "confidence_threshold_pct" in updates:
        manager.set_confidence_threshold(updates["confidence_threshold_pct"])
        SettingsService.set_confidence_threshold_pct(updates["confidence_threshold_pct"])

    return success_response({"settings": updates, "status": manager.status()})


@detection.route("/model/reload", methods=["POST"])
def reload_model():
    """
    Reload the classifier, optionally from new paths.

    Request body (optional):
        {
            "model_path": "/path/to/model.onnx",
            "labels_path": "/path/to/metadata.json"
        }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return validation_error_response({"body": "must be a JSON object"})

    model_path = data.get("model_path")
    labels_path = data.get("labels_path")

    if bool(model_path) != bool(labels_path):
        return error_response("model_path and labels_path must be provided together", 400)

    if not model_path:
        paths = SettingsService.get_model_paths(
            current_app.config.get("MODEL_PATH"), current_app.config.get("LABELS_PATH")
        )
        model_path, labels_path = paths["model_path"], paths["labels_path"]

    manager = _manager()
    if not manager.load_model(model_path, labels_path):
        return error_response(
            "Error loading AI model. Please check model files.",
            422,
            details=manager.model_error,
        )

    if data.get("model_path"):
        SettingsService.set_model_paths(model_path, labels_path)
    return success_response(manager.status(), message="Model loaded")
