import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from clipjar.blobs import BlobStore
from clipjar.config import POLL_INTERVAL, PREVIEW_LENGTH
from clipjar.models import ClipboardEntry, ContentType, SourceApp
from clipjar.pasteboard import Pasteboard
from clipjar.settings import Settings
from clipjar.storage import HistoryStore
from clipjar.utils import get_image_dimensions, truncate_text

logger = logging.getLogger(__name__)

TimerFactory = Callable[[Callable[[Any], None], float], Any]


def _rumps_timer(callback: Callable[[Any], None], interval: float):
    import rumps

    return rumps.Timer(callback, interval)


def is_duplicate(last: ClipboardEntry | None, candidate: ClipboardEntry) -> bool:
    """Whether ``candidate`` repeats ``last``, the most recently stored entry.

    Text repeats when the trimmed payloads match, files when the paths match.
    Images never count as repeats.
    """
    if last is None or last.content_type != candidate.content_type:
        return False
    if candidate.content_type == ContentType.TEXT:
        return last.text_content.strip() == candidate.text_content.strip()
    if candidate.content_type == ContentType.FILE:
        return last.file_path == candidate.file_path
    return False


class ClipboardMonitor:
    def __init__(
        self,
        store: HistoryStore,
        blobs: BlobStore,
        settings: Settings,
        pasteboard: Pasteboard,
        on_change: Callable[[], None] | None = None,
        interval: float = POLL_INTERVAL,
        timer_factory: TimerFactory | None = None,
    ):
        self._store = store
        self._blobs = blobs
        self._settings = settings
        self._pasteboard = pasteboard
        self._on_change = on_change
        self._interval = interval
        self._timer_factory = timer_factory or _rumps_timer
        self._timer = None
        self._skip_next = False
        self._last_change_count = self._read_change_count()

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        if self._timer is not None:
            return
        self._last_change_count = self._read_change_count()
        self._timer = self._timer_factory(self._on_tick, self._interval)
        self._timer.start()
        logger.info("Clipboard monitor started (interval %.2fs)", self._interval)

    def stop(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer = None
        logger.info("Clipboard monitor stopped")

    def skip_next(self) -> None:
        """Ignore the next clipboard change.

        Call right before writing to the clipboard programmatically so the
        write is not captured as a new entry.
        """
        self._skip_next = True

    def cancel_skip(self) -> None:
        self._skip_next = False

    def _on_tick(self, _sender) -> None:
        self.check_clipboard()

    def _read_change_count(self) -> int | None:
        try:
            return self._pasteboard.change_count()
        except Exception:
            logger.exception("Error reading clipboard change count")
            return None

    def check_clipboard(self) -> bool:
        current_count = self._read_change_count()
        if current_count is None or current_count == self._last_change_count:
            return False

        self._last_change_count = current_count

        if self._skip_next:
            self._skip_next = False
            logger.debug("Skipping self-triggered clipboard change")
            return False

        try:
            entry = self._read_clipboard()
        except Exception:
            logger.exception("Error reading clipboard")
            return False
        if entry is None:
            return False

        if not self._store.insert(entry):
            if entry.image_file_name:
                self._blobs.delete(entry.image_file_name)
            return False

        if self._on_change:
            try:
                self._on_change()
            except Exception:
                logger.exception("Error in clipboard change callback")
        return True

    def _read_clipboard(self) -> ClipboardEntry | None:
        settings = self._settings
        source = self._pasteboard.frontmost_app() or SourceApp(None, None)
        if source.bundle_id and settings.is_app_ignored(source.bundle_id):
            logger.debug("Ignoring clipboard change from %s", source.bundle_id)
            return None

        if settings.capture_files:
            file_urls = self._pasteboard.read_file_urls()
            if file_urls:
                return self._read_file(file_urls[0], source)

        if settings.capture_images:
            image_bytes = self._pasteboard.read_image()
            if image_bytes is not None:
                # Rich text often carries an image rendition; prefer the text then.
                text = self._pasteboard.read_text() if settings.capture_text else None
                if text is None:
                    return self._read_image(image_bytes, source)
                return self._read_text(text, source)

        if settings.capture_text:
            text = self._pasteboard.read_text()
            if text is not None:
                return self._read_text(text, source)

        return None

    def _read_text(self, text: str, source: SourceApp) -> ClipboardEntry | None:
        trimmed = text.strip()
        if not trimmed:
            return None

        entry = ClipboardEntry(
            content_type=ContentType.TEXT,
            text_content=text,
            preview=truncate_text(trimmed, PREVIEW_LENGTH),
            byte_size=len(text.encode("utf-8")),
            source_app_bundle_id=source.bundle_id,
            source_app_name=source.name,
        )
        if is_duplicate(self._store.last_entry(), entry):
            logger.debug("Skipping duplicate text entry")
            return None
        return entry

    def _read_image(self, image_bytes: bytes, source: SourceApp) -> ClipboardEntry | None:
        max_size = self._settings.max_image_size_bytes
        if len(image_bytes) > max_size:
            logger.debug("Image too large (%d bytes), skipping", len(image_bytes))
            return None

        saved = self._blobs.save(image_bytes)
        if saved is None:
            return None
        file_name, byte_size = saved
        if byte_size > max_size:
            logger.debug("Encoded image too large (%d bytes), skipping", byte_size)
            self._blobs.delete(file_name)
            return None

        width, height = get_image_dimensions(image_bytes)
        preview = f"Image ({width}×{height})" if width > 0 else "Image"

        return ClipboardEntry(
            content_type=ContentType.IMAGE,
            image_file_name=file_name,
            preview=preview,
            byte_size=byte_size,
            source_app_bundle_id=source.bundle_id,
            source_app_name=source.name,
        )

    def _read_file(self, file_path: str, source: SourceApp) -> ClipboardEntry | None:
        path = Path(file_path)
        name = path.name or file_path
        try:
            file_size = path.stat().st_size
        except OSError:
            file_size = 0

        entry = ClipboardEntry(
            content_type=ContentType.FILE,
            preview=name,
            file_path=file_path,
            file_name=name,
            byte_size=file_size,
            source_app_bundle_id=source.bundle_id,
            source_app_name=source.name,
        )
        if is_duplicate(self._store.last_entry(), entry):
            logger.debug("Skipping duplicate file entry")
            return None
        return entry
