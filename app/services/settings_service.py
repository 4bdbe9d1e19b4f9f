"""Settings business logic service layer."""

import logging
from typing import Optional, Dict, Any

from app.extensions import db
from app.models import Setting

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


class SettingsService:
    """Service class for persisted detection preferences."""

    @staticmethod
    def get_setting(key: str, default: Any = None) -> Any:
        """
        Get a setting value by key.

        Args:
            key: Setting key
            default: Default value if setting doesn't exist

        Returns:
            Setting value or default
        """
        setting = db.session.get(Setting, key)
        if setting:
            return setting.value if setting.value is not None else default
        return default

    @staticmethod
    def get_all_settings() -> Dict[str, Any]:
        """Get all settings as a dictionary (key: value)."""
        settings = Setting.query.all()
        return {s.key: s.value for s in settings}

    @staticmethod
    def set_setting(key: str, value: Any) -> bool:
        """
        Set a setting value. Creates the setting if it doesn't exist.

        Args:
            key: Setting key
            value: Setting value (stored as a string)

        Returns:
            True if successful, False otherwise
        """
        return SettingsService.set_multiple_settings({key: value})

    @staticmethod
    def set_multiple_settings(settings: Dict[str, Any]) -> bool:
        """
        Set multiple settings at once.

        Args:
            settings: Dictionary of key-value pairs to set

        Returns:
            True if all successful, False otherwise
        """
        try:
            for key, value in settings.items():
                value = str(value)
                setting = db.session.get(Setting, key)
                if setting:
                    setting.value = value
                else:
                    db.session.add(Setting(key=key, value=value))

            db.session.commit()
            logger.info(f"Updated settings: {', '.join(settings)}")
            return True

        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating settings {list(settings)}: {e}")
            return False

    @staticmethod
    def delete_setting(key: str) -> bool:
        """
        Delete a setting.

        Returns:
            True if the setting existed and was deleted, False otherwise
        """
        try:
            setting = db.session.get(Setting, key)
            if setting:
                db.session.delete(setting)
                db.session.commit()
                logger.info(f"Deleted setting: {key}")
                return True
            return False

        except Exception as e:
            db.session.rollback()
            logger.error(f"Error deleting setting {key}: {e}")
            return False

    # Convenience methods for detection preferences

    @staticmethod
    def get_auto_increment(default: bool = False) -> bool:
        """Whether a positive detection should add plastic automatically."""
        value = SettingsService.get_setting("auto_increment")
        if value is None:
            return default
        return str(value).lower() in _TRUE_VALUES

    @staticmethod
    def set_auto_increment(enabled: bool) -> bool:
        return SettingsService.set_setting("auto_increment", "true" if enabled else "false")

    @staticmethod
    def get_confidence_threshold_pct(default: float) -> float:
        value = SettingsService.get_setting("confidence_threshold_pct")
        try:
            return float(value) if value is not None else default
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed confidence threshold setting: {value!r}")
            return default

    @staticmethod
    def set_confidence_threshold_pct(threshold_pct: float) -> bool:
        return SettingsService.set_setting("confidence_threshold_pct", threshold_pct)

    @staticmethod
    def get_model_paths(
        default_model: Optional[str], default_labels: Optional[str]
    ) -> Dict[str, Optional[str]]:
        """Model and labels paths, preferring stored values over the configured defaults."""
        return {
            "model_path": SettingsService.get_setting("model_path") or default_model,
            "labels_path": SettingsService.get_setting("labels_path") or default_labels,
        }

    @staticmethod
    def set_model_paths(model_path: str, labels_path: str) -> bool:
        return SettingsService.set_multiple_settings(
            {"model_path": model_path, "labels_path": labels_path}
        )
