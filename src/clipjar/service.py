import logging
from collections.abc import Callable
from datetime import date
from pathlib import Path

from clipjar.blobs import BlobStore
from clipjar.export import export_entries
from clipjar.models import ClipboardEntry, ContentType
from clipjar.monitor import ClipboardMonitor, TimerFactory
from clipjar.pasteboard import Pasteboard
from clipjar.settings import Settings
from clipjar.storage import HistoryStore

logger = logging.getLogger(__name__)


def release_blobs(blobs: BlobStore, entries: list[ClipboardEntry]) -> None:
    for entry in entries:
        if entry.image_file_name:
            blobs.delete(entry.image_file_name)


def purge_expired(store: HistoryStore, blobs: BlobStore, retention_days: int) -> list[ClipboardEntry]:
    purged = store.purge_old_entries(retention_days)
    release_blobs(blobs, purged)
    if purged:
        logger.info("Purged %d old entries", len(purged))
    return purged


def delete_entry(store: HistoryStore, blobs: BlobStore, entry: ClipboardEntry) -> bool:
    deleted = store.delete(entry)
    if deleted:
        release_blobs(blobs, [entry])
    return deleted


def clear_history(store: HistoryStore, blobs: BlobStore) -> int:
    removed = store.delete_all()
    release_blobs(blobs, removed)
    return len(removed)


class ClipboardHistory:
    """Owns the stores and the monitor and keeps blobs in step with entries."""

    def __init__(
        self,
        store: HistoryStore,
        blobs: BlobStore,
        settings: Settings,
        pasteboard: Pasteboard,
        on_change: Callable[[], None] | None = None,
        timer_factory: TimerFactory | None = None,
    ):
        self.store = store
        self.blobs = blobs
        self.settings = settings
        self._pasteboard = pasteboard
        self.monitor = ClipboardMonitor(
            store,
            blobs,
            settings,
            pasteboard,
            on_change=on_change,
            timer_factory=timer_factory,
        )

    def open(self) -> list[ClipboardEntry]:
        """Purge expired entries, then load the history.

        Returns the purged entries.
        """
        purged = self.purge_expired()
        self.store.load_all()
        return purged

    def start(self) -> None:
        self.monitor.start()

    def stop(self) -> None:
        self.monitor.stop()

    def close(self) -> None:
        self.stop()
        self.store.close()

    def purge_expired(self) -> list[ClipboardEntry]:
        return purge_expired(self.store, self.blobs, self.settings.retention_days)

    def delete(self, entry: ClipboardEntry) -> bool:
        return delete_entry(self.store, self.blobs, entry)

    def clear(self) -> int:
        return clear_history(self.store, self.blobs)

    def copy_to_clipboard(self, entry: ClipboardEntry) -> bool:
        """Put ``entry`` back on the clipboard without capturing it again."""
        if entry.content_type == ContentType.IMAGE:
            payload = self.blobs.load_bytes(entry.image_file_name)
            if payload is None:
                logger.warning("Image %s is missing, cannot copy", entry.image_file_name)
                return False

        self.monitor.skip_next()
        if entry.content_type == ContentType.TEXT:
            written = self._pasteboard.write_text(entry.text_content)
        elif entry.content_type == ContentType.IMAGE:
            written = self._pasteboard.write_image(payload)
        else:
            written = self._pasteboard.write_file_url(entry.file_path)
        if not written:
            # The counter did not move, so nothing would consume the flag.
            self.monitor.cancel_skip()
            logger.warning("Failed to write entry %s to the clipboard", entry.id)
        return written

    def export_day(self, day: date, destination: str | Path) -> Path:
        entries = self.store.entries_for_date(day)
        return export_entries(entries, day.isoformat(), destination, self.blobs)

