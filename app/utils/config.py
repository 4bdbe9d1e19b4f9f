"""Application configuration constants and utilities."""

import os

from appdirs import user_data_dir


# Application metadata
APP_NAME = "EcoSense"
APP_AUTHOR = "User"

# Paths
DATA_DIR = user_data_dir(APP_NAME, APP_AUTHOR)
MODEL_DIR = os.path.join(DATA_DIR, "model")
DEFAULT_MODEL_PATH = os.path.join(MODEL_DIR, "model.onnx")
DEFAULT_LABELS_PATH = os.path.join(MODEL_DIR, "metadata.json")


class DetectionDefaults:
    """Defaults for the webcam plastic detection loop."""

    POSITIVE_CLASS = "Plastic"
    CONFIDENCE_PCT = 70.0  # Detection requires confidence strictly above this
    INCREMENT_STEP = 1.0  # Grams added per positive detection
    INTERVAL_SECONDS = 1.0  # Delay between the end of one inference and the next poll
    STOP_TIMEOUT = 5.0  # Seconds to wait for the detection thread on stop
