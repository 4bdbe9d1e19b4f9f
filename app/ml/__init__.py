"""Image classification helpers for the plastic detection overlay."""

from .classifier import (
    ImageClassifier,
    Prediction,
    infer_model_type,
    load_labels,
    preprocess_frame,
)

__all__ = [
    "ImageClassifier",
    "Prediction",
    "infer_model_type",
    "load_labels",
    "preprocess_frame",
]
