import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from pathlib import Path

from clipjar.config import DB_PATH
from clipjar.models import ClipboardEntry, ContentType

logger = logging.getLogger(__name__)

# Additive only: each migration runs once and is recorded in schema_migrations.
MIGRATIONS: list[tuple[str, list[str]]] = [
    (
        "v1",
        [
            """CREATE TABLE IF NOT EXISTS clipboard_entries (
                id                    TEXT PRIMARY KEY,
                timestamp             TEXT NOT NULL,
                content_type          TEXT NOT NULL CHECK(content_type IN ('text', 'image', 'file')),
                text_content          TEXT,
                preview               TEXT NOT NULL,
                image_file_name       TEXT,
                file_path             TEXT,
                file_name             TEXT,
                source_app_bundle_id  TEXT,
                source_app_name       TEXT,
                byte_size             INTEGER NOT NULL DEFAULT 0
            )""",
            "CREATE INDEX IF NOT EXISTS idx_timestamp ON clipboard_entries(timestamp DESC)",
        ],
    ),
    (
        "v2",
        ["CREATE INDEX IF NOT EXISTS idx_content_type ON clipboard_entries(content_type)"],
    ),
]

COLUMNS = (
    "id",
    "timestamp",
    "content_type",
    "text_content",
    "preview",
    "image_file_name",
    "file_path",
    "file_name",
    "source_app_bundle_id",
    "source_app_name",
    "byte_size",
)

SEARCH_COLUMNS = ("text_content", "preview", "file_name", "source_app_name")


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def _encode_timestamp(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


class HistoryStore:
    """Durable clipboard history with an in-memory, newest-first cache.

    The cache holds a subset of the durable rows in the same order. Every
    mutation writes to SQLite first and only touches the cache once the write
    has committed, so a failed write never shows up in the cache. Call
    :meth:`reload` to rebuild the cache from disk.
    """

    def __init__(self, db_path: str | Path | None = None):
        self._db_path = str(db_path) if db_path else str(DB_PATH)
        self._conn = sqlite3.connect(self._db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.create_function("casefold", 1, _casefold, deterministic=True)
        self._entries: list[ClipboardEntry] = []
        self.init_db()

    def init_db(self) -> None:
        self._conn.execute(
            """CREATE TABLE IF NOT EXISTS schema_migrations (
                   version    TEXT PRIMARY KEY,
                   applied_at TEXT NOT NULL
               )"""
        )
        self._conn.commit()
        applied = {row["version"] for row in self._conn.execute("SELECT version FROM schema_migrations")}
        for version, statements in MIGRATIONS:
            if version in applied:
                continue
            with self._transaction() as conn:
                for statement in statements:
                    conn.execute(statement)
                conn.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, _encode_timestamp(datetime.now())),
                )
            logger.info("Applied schema migration %s", version)

    def applied_migrations(self) -> list[str]:
        rows = self._conn.execute("SELECT version FROM schema_migrations ORDER BY version").fetchall()
        return [row["version"] for row in rows]

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        self._conn.execute("BEGIN")
        try:
            yield self._conn
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()

    # Mutations

    def insert(self, entry: ClipboardEntry) -> bool:
        placeholders = ", ".join("?" for _ in COLUMNS)
        try:
            with self._transaction() as conn:
                conn.execute(
                    f"INSERT INTO clipboard_entries ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                    self._entry_to_row(entry),
                )
        except sqlite3.Error:
            logger.exception("Failed to insert entry %s", entry.id)
            return False
        self._entries.insert(0, entry)
        return True

    def delete(self, entry: ClipboardEntry) -> bool:
        try:
            with self._transaction() as conn:
                cursor = conn.execute("DELETE FROM clipboard_entries WHERE id = ?", (entry.id,))
        except sqlite3.Error:
            logger.exception("Failed to delete entry %s", entry.id)
            return False
        self._entries = [e for e in self._entries if e.id != entry.id]
        return cursor.rowcount > 0

    def delete_all(self) -> list[ClipboardEntry]:
        try:
            with self._transaction() as conn:
                rows = conn.execute("SELECT * FROM clipboard_entries").fetchall()
                conn.execute("DELETE FROM clipboard_entries")
        except sqlite3.Error:
            logger.exception("Failed to delete all entries")
            return []
        self._entries = []
        return [self._row_to_entry(r) for r in rows]

    def purge_old_entries(self, max_age_days: int, now: datetime | None = None) -> list[ClipboardEntry]:
        """Delete entries older than ``max_age_days`` and return them.

        Run once at startup, before anything reads the history, so expired
        entries never surface. The caller releases any blobs the returned
        entries reference. Raises ValueError if ``max_age_days`` is below 1.
        """
        if max_age_days < 1:
            raise ValueError(f"max_age_days must be at least 1, got {max_age_days}")
        cutoff = _encode_timestamp((now or datetime.now()) - timedelta(days=max_age_days))
        try:
            with self._transaction() as conn:
                rows = conn.execute(
                    "SELECT * FROM clipboard_entries WHERE timestamp < ? ORDER BY timestamp DESC",
                    (cutoff,),
                ).fetchall()
                conn.execute("DELETE FROM clipboard_entries WHERE timestamp < ?", (cutoff,))
        except sqlite3.Error:
            logger.exception("Failed to purge old entries")
            return []

        purged = [self._row_to_entry(r) for r in rows]
        purged_ids = {e.id for e in purged}
        self._entries = [e for e in self._entries if e.id not in purged_ids]
        return purged

    # Queries

    def load_all(self) -> None:
        try:
            rows = self._conn.execute("SELECT * FROM clipboard_entries ORDER BY timestamp DESC").fetchall()
        except sqlite3.Error:
            logger.exception("Failed to load entries")
            return
        self._entries = [self._row_to_entry(r) for r in rows]

    reload = load_all

    @property
    def entries(self) -> list[ClipboardEntry]:
        return list(self._entries)

    def get_entry(self, entry_id: str) -> ClipboardEntry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def last_entry(self) -> ClipboardEntry | None:
        return self._entries[0] if self._entries else None

    def search(self, query: str) -> list[ClipboardEntry]:
        if not query:
            return self.entries
        needle = query.casefold()
        where = " OR ".join(f"instr(casefold({col}), ?) > 0" for col in SEARCH_COLUMNS)
        try:
            rows = self._conn.execute(
                f"SELECT * FROM clipboard_entries WHERE {where} ORDER BY timestamp DESC",
                (needle,) * len(SEARCH_COLUMNS),
            ).fetchall()
        except sqlite3.Error:
            logger.exception("Failed to search entries")
            return []
        return [self._row_to_entry(r) for r in rows]

    def recent_entries(self, limit: int) -> list[ClipboardEntry]:
        try:
            rows = self._conn.execute(
                "SELECT * FROM clipboard_entries ORDER BY timestamp DESC LIMIT ?",
                (limit,),
            ).fetchall()
        except sqlite3.Error:
            logger.exception("Failed to fetch recent entries")
            return []
        return [self._row_to_entry(r) for r in rows]

    def entries_for_date(self, day: date) -> list[ClipboardEntry]:
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        try:
            rows = self._conn.execute(
                """SELECT * FROM clipboard_entries
                   WHERE timestamp >= ? AND timestamp < ?
                   ORDER BY timestamp DESC""",
                (_encode_timestamp(start), _encode_timestamp(end)),
            ).fetchall()
        except sqlite3.Error:
            logger.exception("Failed to fetch entries for %s", day)
            return []
        return [self._row_to_entry(r) for r in rows]

    def entries_grouped_by_day(self) -> list[tuple[date, list[ClipboardEntry]]]:
        grouped: list[tuple[date, list[ClipboardEntry]]] = []
        for entry in self._entries:
            day = entry.timestamp.date()
            if grouped and grouped[-1][0] == day:
                grouped[-1][1].append(entry)
            else:
                grouped.append((day, [entry]))
        return grouped

    # Stats, computed from the cache

    @property
    def total_count(self) -> int:
        return len(self._entries)

    @property
    def total_size(self) -> int:
        return sum(e.byte_size for e in self._entries)

    @property
    def today_count(self) -> int:
        start_of_day = datetime.combine(date.today(), time.min)
        return sum(1 for e in self._entries if e.timestamp >= start_of_day)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @staticmethod
    def _entry_to_row(entry: ClipboardEntry) -> tuple:
        return (
            entry.id,
            _encode_timestamp(entry.timestamp),
            entry.content_type.value,
            entry.text_content,
            entry.preview,
            entry.image_file_name,
            entry.file_path,
            entry.file_name,
            entry.source_app_bundle_id,
            entry.source_app_name,
            entry.byte_size,
        )

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> ClipboardEntry:
        return ClipboardEntry(
            id=row["id"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            content_type=ContentType(row["content_type"]),
            text_content=row["text_content"],
            preview=row["preview"],
            image_file_name=row["image_file_name"],
            file_path=row["file_path"],
            file_name=row["file_name"],
            source_app_bundle_id=row["source_app_bundle_id"],
            source_app_name=row["source_app_name"],
            byte_size=row["byte_size"],
        )
