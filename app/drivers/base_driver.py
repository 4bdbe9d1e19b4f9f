from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class BaseDriver(ABC):
    """
    Abstract frame source used by the detection loop.

    Drivers may raise the following exceptions from app.drivers.exceptions:
    - DriverConnectionError: When connect() fails
    - DriverFrameAcquisitionError: When get_frame() fails unrecoverably
    """

    def __init__(self, identifier: str):
        self.identifier = identifier

    @abstractmethod
    def connect(self) -> None:  # pragma: no cover
        """Establishes a connection to the camera."""
        pass

    @abstractmethod
    def disconnect(self) -> None:  # pragma: no cover
        """Closes the connection to the camera."""
        pass

    @abstractmethod
    def get_frame(self) -> Optional[np.ndarray]:  # pragma: no cover
        """Retrieves a single BGR frame, or None when no frame is ready yet."""
        pass

    def is_connected(self) -> bool:
        return False
