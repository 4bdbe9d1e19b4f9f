import logging
from typing import Optional

import cv2
import numpy as np

from .base_driver import BaseDriver
from .exceptions import DriverConnectionError, DriverFrameAcquisitionError

logger = logging.getLogger(__name__)


class WebcamDriver(BaseDriver):
    """Single-frame grabber over an OpenCV webcam index."""

    def __init__(self, index: int = 0, width: int = 224, height: int = 224):
        super().__init__(str(index))
        self.index = index
        self.width = width
        self.height = height
        self.cap: Optional[cv2.VideoCapture] = None

    def connect(self) -> None:
        """Opens the webcam and requests the configured resolution."""
        self.cap = cv2.VideoCapture(self.index)
        if not self.cap.isOpened():
            self.cap = None
            raise DriverConnectionError(
                f"Failed to open webcam at index {self.index}. "
                f"Please ensure camera permissions are granted."
            )

        try:
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        except Exception as e:
            # Resolution is a request; cameras may ignore it
            logger.warning(f"Failed to apply resolution to webcam {self.index}: {e}")

        logger.info(f"Connected to webcam at index {self.index}")

    def disconnect(self) -> None:
        """Releases the webcam."""
        if self.cap:
            logger.info(f"Releasing webcam {self.index}")
            self.cap.release()
            self.cap = None

    def is_connected(self) -> bool:
        return bool(self.cap and self.cap.isOpened())

    def get_frame(self) -> Optional[np.ndarray]:
        """Retrieves a single frame from the webcam.

        Returns:
            numpy array (BGR format) or None if the camera is not ready

        Raises:
            DriverFrameAcquisitionError: If the capture backend fails outright
        """
        if not self.cap or not self.cap.isOpened():
            return None

        try:
            ret, frame = self.cap.read()
        except cv2.error as e:
            raise DriverFrameAcquisitionError(
                f"Failed to read from webcam {self.index}: {e}"
            ) from e
        if not ret or frame is None:
            return None

        return frame
