"""Frame sources for the detection overlay."""

from .base_driver import BaseDriver
from .exceptions import DriverConnectionError, DriverError, DriverFrameAcquisitionError
from .webcam_driver import WebcamDriver

__all__ = [
    "BaseDriver",
    "DriverConnectionError",
    "DriverError",
    "DriverFrameAcquisitionError",
    "WebcamDriver",
]
