import pytest
from unittest.mock import MagicMock, patch
import numpy as np
import cv2

from app.drivers import BaseDriver, DriverConnectionError, DriverFrameAcquisitionError, WebcamDriver


@pytest.fixture
def webcam_driver():
    """Returns a WebcamDriver for camera index 0."""
    return WebcamDriver(index=0, width=224, height=224)


def test_driver_identifier_is_index(webcam_driver):
    assert webcam_driver.identifier == "0"
    assert webcam_driver.is_connected() is False


def test_cannot_instantiate_abstract_base_driver():
    """A driver that implements nothing cannot be created."""
    with pytest.raises(TypeError):
        class IncompleteDriver(BaseDriver):
            pass

        IncompleteDriver("incomplete")


@patch("cv2.VideoCapture")
def test_connect_success(mock_video_capture, webcam_driver):
    """Test successful connection to the webcam."""
    # Arrange
    mock_cap_instance = MagicMock()
    mock_cap_instance.isOpened.return_value = True
    mock_video_capture.return_value = mock_cap_instance

    # Act
    webcam_driver.connect()

    # Assert
    mock_video_capture.assert_called_once_with(0)
    assert webcam_driver.cap is mock_cap_instance
    assert mock_cap_instance.set.call_count == 2
    assert webcam_driver.is_connected() is True


@patch("cv2.VideoCapture")
def test_connect_failure(mock_video_capture, webcam_driver):
    """Test failed connection when permission is denied or no camera exists."""
    # Arrange
    mock_cap_instance = MagicMock()
    mock_cap_instance.isOpened.return_value = False
    mock_video_capture.return_value = mock_cap_instance

    # Act & Assert
    with pytest.raises(DriverConnectionError, match="Failed to open webcam at index 0"):
        webcam_driver.connect()
    assert webcam_driver.cap is None


@patch("cv2.VideoCapture")
def test_connect_tolerates_resolution_failure(mock_video_capture, webcam_driver):
    mock_cap_instance = MagicMock()
    mock_cap_instance.isOpened.return_value = True
    mock_cap_instance.set.side_effect = RuntimeError("unsupported property")
    mock_video_capture.return_value = mock_cap_instance

    webcam_driver.connect()

    assert webcam_driver.cap is mock_cap_instance


def test_disconnect(webcam_driver):
    """Test releasing the webcam."""
    # Arrange
    mock_cap = MagicMock()
    webcam_driver.cap = mock_cap

    # Act
    webcam_driver.disconnect()

    # Assert
    mock_cap.release.assert_called_once()
    assert webcam_driver.cap is None


def test_disconnect_when_not_connected(webcam_driver):
    webcam_driver.disconnect()
    assert webcam_driver.cap is None


def test_get_frame_success(webcam_driver):
    """Test successfully getting a frame."""
    # Arrange
    mock_cap = MagicMock()
    mock_cap.isOpened.return_value = True
    frame = np.zeros((224, 224, 3), dtype=np.uint8)
    mock_cap.read.return_value = (True, frame)
    webcam_driver.cap = mock_cap

    # Act
    result = webcam_driver.get_frame()

    # Assert
    assert result is frame


def test_get_frame_not_ready(webcam_driver):
    """A failed read means the frame is not ready yet, not an error."""
    mock_cap = MagicMock()
    mock_cap.isOpened.return_value = True
    mock_cap.read.return_value = (False, None)
    webcam_driver.cap = mock_cap

    assert webcam_driver.get_frame() is None


def test_get_frame_when_not_connected(webcam_driver):
    assert webcam_driver.get_frame() is None


def test_get_frame_backend_failure_raises(webcam_driver):
    mock_cap = MagicMock()
    mock_cap.isOpened.return_value = True
    mock_cap.read.side_effect = cv2.error("device lost")
    webcam_driver.cap = mock_cap

    with pytest.raises(DriverFrameAcquisitionError, match="Failed to read from webcam 0"):
        webcam_driver.get_frame()
