"""Custom exception hierarchy for camera drivers."""


class DriverError(Exception):
    """Base exception for all driver-related errors."""
    pass


class DriverConnectionError(DriverError):
    """Raised when a driver fails to connect to a camera."""
    pass


class DriverFrameAcquisitionError(DriverError):
    """Raised when a driver fails to acquire a frame from the camera."""
    pass
