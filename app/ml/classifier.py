"""
Image classifier for the plastic detection overlay.

Wraps a Teachable-Machine style exported image model (ONNX or TFLite) and
returns one probability per class label for each frame. Runtimes are optional
dependencies imported lazily; a missing runtime surfaces as a RuntimeError at
load time so the dashboard can report it without crashing.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_IMG_SIZE = 224
MODEL_TYPES = ["onnx", "tflite"]

_INDEXED_LABEL = re.compile(r"^\d+\s+(.+)$")


@dataclass
class Prediction:
    class_name: str
    probability: float

    def to_dict(self) -> dict:
        return {"class_name": self.class_name, "probability": self.probability}


def infer_model_type(filename: str) -> Optional[str]:
    """Infers model type based on file extension."""
    ext = os.path.splitext(filename.lower())[1]
    if ext == ".onnx":
        return "onnx"
    if ext == ".tflite":
        return "tflite"
    return None


def load_labels(labels_path: str) -> List[str]:
    """
    Read class labels from a Teachable Machine export.

    Accepts either ``metadata.json`` (a ``labels`` list) or ``labels.txt``
    with one label per line, optionally prefixed by its index ("0 Plastic").

    Raises:
        OSError: If the file cannot be read
        ValueError: If a metadata file carries no labels
    """
    with open(labels_path, "r", encoding="utf-8") as handle:
        if labels_path.lower().endswith(".json"):
            metadata = json.load(handle)
            labels = metadata.get("labels") if isinstance(metadata, dict) else None
            if not labels:
                raise ValueError(f"No labels found in metadata file '{labels_path}'")
            return [str(label) for label in labels]

        labels = []
        for line in handle:
            line = line.strip()
            if not line:
                continue
            match = _INDEXED_LABEL.match(line)
            labels.append(match.group(1) if match else line)
        return labels


def preprocess_frame(frame: np.ndarray, img_size: int = DEFAULT_IMG_SIZE) -> np.ndarray:
    """BGR frame -> (1, H, W, 3) float32 RGB tensor scaled to [-1, 1]."""
    rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    resized = cv2.resize(rgb, (img_size, img_size), interpolation=cv2.INTER_AREA)
    tensor = resized.astype(np.float32) / 127.5 - 1.0
    return np.expand_dims(tensor, axis=0)


def _as_probabilities(scores: np.ndarray) -> np.ndarray:
    scores = np.asarray(scores, dtype=np.float32).reshape(-1)
    total = float(scores.sum())
    if scores.size and np.all(scores >= 0) and np.all(scores <= 1) and abs(total - 1.0) < 1e-3:
        return scores
    # Logits: numerically stable softmax
    shifted = np.exp(scores - scores.max())
    return shifted / shifted.sum()


class ClassifierBackend:
    """Base interface for runtime-specific inference helpers."""

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        raise NotImplementedError("ClassifierBackend subclasses must implement infer")


class OnnxBackend(ClassifierBackend):
    def __init__(self, model_path: str, provider: str = "CPUExecutionProvider"):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as exc:
            raise RuntimeError(
                "onnxruntime is not installed. Install it to run ONNX classifier models."
            ) from exc

        providers = [provider]
        if provider != "CPUExecutionProvider":
            providers.append("CPUExecutionProvider")

        try:
            self.session = ort.InferenceSession(model_path, providers=providers)
        except Exception as exc:
            raise RuntimeError(f"Failed to load ONNX model: {exc}") from exc

        model_input = self.session.get_inputs()[0]
        self.input_name = model_input.name
        shape = list(model_input.shape or [])
        self.channels_first = len(shape) == 4 and shape[1] == 3

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        if self.channels_first:
            tensor = np.transpose(tensor, (0, 3, 1, 2))
        outputs = self.session.run(None, {self.input_name: tensor})
        return outputs[0]


class TFLiteBackend(ClassifierBackend):
    def __init__(self, model_path: str):
        try:
            from tflite_runtime import interpreter as tflite_interpreter  # type: ignore
        except ImportError:
            try:
                from tensorflow.lite.python import interpreter as tflite_interpreter  # type: ignore
            except ImportError as exc:
                raise RuntimeError(
                    "Neither tflite_runtime nor tensorflow is installed. "
                    "Install one of them to run TFLite classifier models."
                ) from exc

        try:
            self.interpreter = tflite_interpreter.Interpreter(model_path=model_path)
            self.interpreter.allocate_tensors()
        except Exception as exc:
            raise RuntimeError(f"Failed to load TFLite model: {exc}") from exc

        self.input_details = self.interpreter.get_input_details()
        self.output_details = self.interpreter.get_output_details()

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        input_detail = self.input_details[0]
        if input_detail["dtype"] == np.uint8:
            # Quantized exports expect raw 0-255 pixels
            input_data = ((tensor + 1.0) * 127.5).astype(np.uint8)
        else:
            input_data = tensor.astype(input_detail["dtype"])

        self.interpreter.set_tensor(input_detail["index"], input_data)
        self.interpreter.invoke()

        output_detail = self.output_details[0]
        output = self.interpreter.get_tensor(output_detail["index"])
        if output_detail["dtype"] == np.uint8:
            scale, zero_point = output_detail.get("quantization", (0.0, 0))
            if scale:
                output = (output.astype(np.float32) - zero_point) * scale
            else:
                output = output.astype(np.float32) / 255.0
        return output


class ImageClassifier:
    """Classifier exposing ``predict(frame) -> [Prediction, ...]`` in label order."""

    def __init__(
        self,
        backend: ClassifierBackend,
        class_names: List[str],
        img_size: int = DEFAULT_IMG_SIZE,
    ):
        self.backend = backend
        self.class_names = list(class_names)
        self.img_size = img_size

    @classmethod
    def from_files(
        cls,
        model_path: str,
        labels_path: str,
        img_size: int = DEFAULT_IMG_SIZE,
    ) -> "ImageClassifier":
        """
        Load a classifier from an exported model and its labels.

        Raises:
            FileNotFoundError: If the model or labels file does not exist
            RuntimeError: If the model type is unsupported or the runtime fails
        """
        for path in (model_path, labels_path):
            if not path or not os.path.exists(path):
                raise FileNotFoundError(f"Classifier file not found: {path}")

        model_type = infer_model_type(model_path)
        if model_type not in MODEL_TYPES:
            raise RuntimeError(
                f"Unsupported model file '{model_path}'. Expected one of {MODEL_TYPES}."
            )

        class_names = load_labels(labels_path)
        if model_type == "tflite":
            backend: ClassifierBackend = TFLiteBackend(model_path)
        else:
            backend = OnnxBackend(model_path)

        logger.info(
            f"Loaded {model_type} classifier from {model_path} with {len(class_names)} classes"
        )
        return cls(backend=backend, class_names=class_names, img_size=img_size)

    def predict(self, frame: np.ndarray) -> List[Prediction]:
        tensor = preprocess_frame(frame, self.img_size)
        probabilities = _as_probabilities(self.backend.infer(tensor))

        predictions = []
        for idx, probability in enumerate(probabilities):
            label = (
                self.class_names[idx] if idx < len(self.class_names) else f"class_{idx}"
            )
            predictions.append(Prediction(class_name=label, probability=float(probability)))
        return predictions
