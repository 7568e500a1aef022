import os
from pathlib import Path

DATA_DIR = Path(os.environ.get("CLIPJAR_DATA_DIR", Path.home() / ".local" / "share" / "clipjar"))
DB_PATH = DATA_DIR / "clipjar.db"
IMAGE_DIR = DATA_DIR / "images"
LOG_PATH = DATA_DIR / "clipjar.log"
SETTINGS_PATH = DATA_DIR / "settings.json"


def _parse_poll_interval() -> float:
    raw = os.environ.get("CLIPJAR_POLL_INTERVAL")
    if raw is None:
        return 0.5
    try:
        value = float(raw)
    except ValueError:
        return 0.5
    return max(0.1, min(5.0, value))


def _parse_menu_display_count() -> int:
    raw = os.environ.get("CLIPJAR_MENU_DISPLAY_COUNT")
    if raw is None:
        return 10
    try:
        value = int(raw)
    except ValueError:
        return 10
    return max(5, min(50, value))


POLL_INTERVAL = _parse_poll_interval()  # seconds between clipboard checks
PREVIEW_LENGTH = 100  # characters kept in a text entry's preview
MENU_DISPLAY_COUNT = _parse_menu_display_count()
MENU_TITLE_LENGTH = 60  # characters shown in a menu item
THUMBNAIL_SIZE = 80  # pixels, longest side
THUMBNAIL_CACHE_SIZE = 200  # thumbnails kept in memory

# Defaults for user settings, see clipjar.settings
DEFAULT_RETENTION_DAYS = 30
DEFAULT_MAX_IMAGE_SIZE_MB = 5
