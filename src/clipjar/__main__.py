import argparse
import logging
import sys
from datetime import date

from clipjar.blobs import BlobNotFoundError, BlobStore
from clipjar.config import DB_PATH, IMAGE_DIR, LOG_PATH, SETTINGS_PATH
from clipjar.export import export_entries
from clipjar.models import ClipboardEntry
from clipjar.service import clear_history, delete_entry, purge_expired
from clipjar.settings import load_settings, save_settings
from clipjar.storage import HistoryStore
from clipjar.utils import ensure_dirs, format_bytes, menu_title

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def format_entry(entry: ClipboardEntry) -> str:
    stamp = entry.timestamp.strftime("%Y-%m-%d %H:%M:%S")
    source = f" ({entry.source_app_name})" if entry.source_app_name else ""
    return f"{entry.id[:8]}  {stamp}  {entry.content_type.value:<5}  {menu_title(entry.preview, 60)}{source}"


def open_stores() -> tuple[HistoryStore, BlobStore]:
    ensure_dirs()
    store = HistoryStore(DB_PATH)
    store.load_all()
    return store, BlobStore(IMAGE_DIR)


def cmd_recent(args) -> int:
    store, _ = open_stores()
    with store:
        for entry in store.recent_entries(args.limit):
            print(format_entry(entry))
    return 0


def cmd_search(args) -> int:
    store, _ = open_stores()
    with store:
        results = store.search(args.query)
        for entry in results[: args.limit]:
            print(format_entry(entry))
    if not results:
        print(f'No results for "{args.query}"')
        return 1
    return 0


def cmd_stats(_args) -> int:
    store, blobs = open_stores()
    with store:
        print(f"Entries:       {store.total_count}")
        print(f"Today:         {store.today_count}")
        print(f"Captured size: {format_bytes(store.total_size)}")
        print(f"Image storage: {format_bytes(blobs.total_storage_size())}")
    return 0


def cmd_export(args) -> int:
    try:
        day = date.fromisoformat(args.date) if args.date else date.today()
    except ValueError:
        print(f"Invalid date: {args.date} (expected YYYY-MM-DD)", file=sys.stderr)
        return 1

    store, blobs = open_stores()
    with store:
        entries = store.entries_for_date(day)
    if not entries:
        print(f"No entries for {day.isoformat()}")
        return 1

    destination = args.output or f"Clipjar-{day.isoformat()}.md"
    try:
        path = export_entries(entries, day.isoformat(), destination, blobs)
    except BlobNotFoundError as exc:
        print(f"Export incomplete, missing image: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Export failed: {exc}", file=sys.stderr)
        return 1
    print(f"Exported {len(entries)} entries to {path}")
    return 0


def cmd_purge(args) -> int:
    settings = load_settings()
    days = args.days if args.days is not None else settings.retention_days
    if days < 1:
        print(f"Invalid --days: {days} (must be at least 1)", file=sys.stderr)
        return 1
    store, blobs = open_stores()
    with store:
        purged = purge_expired(store, blobs, days)
    print(f"Purged {len(purged)} entries older than {days} days.")
    return 0


def cmd_delete(args) -> int:
    store, blobs = open_stores()
    with store:
        matches = [e for e in store.entries if e.id.startswith(args.id)] if args.id else []
        if len(matches) != 1:
            reason = "No entry" if not matches else f"{len(matches)} entries"
            print(f'{reason} matching "{args.id}"', file=sys.stderr)
            return 1
        entry = matches[0]
        if not delete_entry(store, blobs, entry):
            print(f"Failed to delete {entry.id}", file=sys.stderr)
            return 1
    print(f"Deleted {entry.id}")
    return 0


def cmd_clear(args) -> int:
    if not args.yes:
        print("Refusing to clear history without --yes.", file=sys.stderr)
        return 1
    store, blobs = open_stores()
    with store:
        removed = clear_history(store, blobs)
    print(f"Removed {removed} entries.")
    return 0


def cmd_ignore(args) -> int:
    settings = load_settings()
    if args.add:
        settings.set_app_ignored(args.add, True)
    if args.remove:
        settings.set_app_ignored(args.remove, False)
    if args.add or args.remove:
        save_settings(settings)
        print(f"Saved {SETTINGS_PATH}")
    for bundle_id in sorted(settings.ignored_app_bundle_ids):
        print(bundle_id)
    return 0


def run_app(args=None) -> int:
    """Run the Clipjar menu bar application."""
    ensure_dirs()

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOG_PATH),
            logging.StreamHandler(sys.stderr),
        ],
    )

    from clipjar.app import ClipjarApp

    app = ClipjarApp()
    app.run()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipjar",
        description="Clipjar - Clipboard history manager for macOS",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Run the menu bar app (default)").set_defaults(func=run_app)

    recent = subparsers.add_parser("recent", help="List the most recent entries")
    recent.add_argument("-n", "--limit", type=int, default=20)
    recent.set_defaults(func=cmd_recent)

    search = subparsers.add_parser("search", help="Search clipboard history")
    search.add_argument("query")
    search.add_argument("-n", "--limit", type=int, default=50)
    search.set_defaults(func=cmd_search)

    subparsers.add_parser("stats", help="Show history statistics").set_defaults(func=cmd_stats)

    export = subparsers.add_parser("export", help="Export one day of history as markdown")
    export.add_argument("date", nargs="?", help="Day to export, YYYY-MM-DD (default: today)")
    export.add_argument("-o", "--output", help="Markdown file to write")
    export.set_defaults(func=cmd_export)

    purge = subparsers.add_parser("purge", help="Delete entries older than the retention window")
    purge.add_argument("--days", type=int, help="Override the retention window")
    purge.set_defaults(func=cmd_purge)

    delete = subparsers.add_parser("delete", help="Delete one entry by id or id prefix")
    delete.add_argument("id")
    delete.set_defaults(func=cmd_delete)

    clear = subparsers.add_parser("clear", help="Delete all history")
    clear.add_argument("--yes", action="store_true", help="Confirm deletion")
    clear.set_defaults(func=cmd_clear)

    ignore = subparsers.add_parser("ignore", help="Manage applications whose copies are ignored")
    ignore.add_argument("--add", metavar="BUNDLE_ID")
    ignore.add_argument("--remove", metavar="BUNDLE_ID")
    ignore.set_defaults(func=cmd_ignore)

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None or args.command == "run":
        sys.exit(run_app(args))

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
