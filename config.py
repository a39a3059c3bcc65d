import os
import yaml

from settings_schema import SettingsSchema, validate_settings

APP_VERSION = "1.0.0"
SETTINGS_ENV = "LIFT_SETTINGS"


class YamlConfig:
    """Load and save athlete and analytics settings in a YAML file."""

    def __init__(self, path: str | None = None) -> None:
        self.path = path or os.environ.get(SETTINGS_ENV, "settings.yaml")

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def save(self, data: dict) -> None:
        validate_settings(data)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(dict(data), f)

    def settings(self) -> SettingsSchema:
        """Return the validated settings, defaults filling missing keys."""
        return validate_settings(self.load())

    def update(self, **changes) -> SettingsSchema:
        data = self.load()
        data.update({k: v for k, v in changes.items() if v is not None})
        self.save(data)
        return SettingsSchema(**data)
