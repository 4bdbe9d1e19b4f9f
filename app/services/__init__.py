"""Service layer for business logic."""

from .readings_service import ReadingsService
from .settings_service import SettingsService

__all__ = [
    "ReadingsService",
    "SettingsService",
]
