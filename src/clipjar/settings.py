"""User-facing capture settings, persisted as JSON in the data directory."""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

from clipjar.config import DEFAULT_MAX_IMAGE_SIZE_MB, DEFAULT_RETENTION_DAYS, SETTINGS_PATH

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    capture_text: bool = True
    capture_images: bool = True
    capture_files: bool = True
    retention_days: int = DEFAULT_RETENTION_DAYS
    max_image_size_mb: int = DEFAULT_MAX_IMAGE_SIZE_MB
    ignored_app_bundle_ids: set[str] = field(default_factory=set)

    @property
    def max_image_size_bytes(self) -> int:
        return self.max_image_size_mb * 1024 * 1024

    def is_app_ignored(self, bundle_id: str) -> bool:
        return bundle_id in self.ignored_app_bundle_ids

    def set_app_ignored(self, bundle_id: str, ignored: bool) -> None:
        if ignored:
            self.ignored_app_bundle_ids.add(bundle_id)
        else:
            self.ignored_app_bundle_ids.discard(bundle_id)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["ignored_app_bundle_ids"] = sorted(self.ignored_app_bundle_ids)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Build settings from a decoded JSON object.

        Unknown keys are ignored and missing keys keep their defaults. Raises
        ValueError when a known key has a value of the wrong type.
        """
        settings = cls()
        for key in ("capture_text", "capture_images", "capture_files"):
            if key in data:
                if not isinstance(data[key], bool):
                    raise ValueError(f"{key} must be a boolean")
                setattr(settings, key, data[key])
        for key in ("retention_days", "max_image_size_mb"):
            if key in data:
                value = data[key]
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError(f"{key} must be an integer")
                setattr(settings, key, max(1, value))
        if "ignored_app_bundle_ids" in data:
            ids = data["ignored_app_bundle_ids"]
            if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
                raise ValueError("ignored_app_bundle_ids must be a list of strings")
            settings.ignored_app_bundle_ids = {i for i in ids if i}
        return settings


def load_settings(path: str | Path | None = None) -> Settings:
    settings_path = Path(path) if path else SETTINGS_PATH
    if not settings_path.exists():
        return Settings()
    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("settings file must contain a JSON object")
        return Settings.from_dict(data)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", settings_path, exc)
        return Settings()


def save_settings(settings: Settings, path: str | Path | None = None) -> None:
    settings_path = Path(path) if path else SETTINGS_PATH
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = settings_path.with_name(f".{settings_path.name}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, settings_path)
