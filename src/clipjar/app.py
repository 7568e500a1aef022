import logging
from dataclasses import dataclass
from typing import Callable

import rumps

from clipjar import __version__
from clipjar.blobs import BlobStore
from clipjar.config import DB_PATH, IMAGE_DIR, MENU_DISPLAY_COUNT, MENU_TITLE_LENGTH
from clipjar.models import ClipboardEntry, ContentType
from clipjar.pasteboard import MacPasteboard
from clipjar.service import ClipboardHistory
from clipjar.settings import load_settings
from clipjar.storage import HistoryStore
from clipjar.utils import ensure_dirs, menu_title

logger = logging.getLogger(__name__)

ENTRY_KEY_PREFIX = "clipjar_entry_"
ENTRY_ICONS = {ContentType.TEXT: "📝", ContentType.IMAGE: "🖼", ContentType.FILE: "📄"}


@dataclass
class MenuItemSpec:
    """Specification for a menu item, separating logic from rumps rendering."""

    title: str
    callback: Callable | None = None
    entry_id: str | None = None


def compute_entry_title(entry: ClipboardEntry) -> str:
    return f"{ENTRY_ICONS[entry.content_type]} {menu_title(entry.preview, MENU_TITLE_LENGTH)}"


class ClipjarApp(rumps.App):
    def __init__(self):
        super().__init__("Clipjar", title="📋", quit_button=None)
        self._init_app()

    def _init_app(self) -> None:
        """Initialize app components. Separated for testability."""
        ensure_dirs()
        self._history = ClipboardHistory(
            HistoryStore(DB_PATH),
            BlobStore(IMAGE_DIR),
            load_settings(),
            MacPasteboard(),
            on_change=self._refresh_menu,
        )
        self._history.open()
        self._entry_ids: dict[str, str] = {}
        self._build_menu()
        self._history.start()

    def _build_menu(self, entries: list[ClipboardEntry] | None = None, header: str | None = None) -> None:
        self.menu.clear()
        self._entry_ids.clear()
        specs = self._compute_menu_specs(entries, header)
        self.menu = [self._render_spec(spec) for spec in specs]

    def _compute_menu_specs(
        self, entries: list[ClipboardEntry] | None, header: str | None
    ) -> list[MenuItemSpec | None]:
        store = self._history.store
        specs: list[MenuItemSpec | None] = [
            MenuItemSpec(header or f"Clipjar v{__version__} - {store.total_count} entries"),
            None,  # separator
            MenuItemSpec("Search...", callback=self._on_search),
            None,  # separator
        ]

        shown = entries if entries is not None else store.entries[:MENU_DISPLAY_COUNT]
        if not shown:
            specs.append(MenuItemSpec("(No clipboard history)"))
        for entry in shown:
            key = f"{ENTRY_KEY_PREFIX}{entry.id}"
            self._entry_ids[key] = entry.id
            specs.append(MenuItemSpec(compute_entry_title(entry), callback=self._on_entry_click, entry_id=entry.id))

        if entries is not None:
            specs.extend([None, MenuItemSpec("Show All", callback=lambda _: self._refresh_menu())])

        specs.extend([
            None,  # separator
            MenuItemSpec("Clear History", callback=self._on_clear),
            None,  # separator
            MenuItemSpec("Quit Clipjar", callback=self._on_quit),
        ])
        return specs

    @staticmethod
    def _render_spec(spec: MenuItemSpec | None) -> rumps.MenuItem | None:
        if spec is None:
            return None
        item = rumps.MenuItem(spec.title, callback=spec.callback)
        if spec.entry_id is not None:
            item._id = f"{ENTRY_KEY_PREFIX}{spec.entry_id}"
        return item

    def _refresh_menu(self) -> None:
        self._build_menu()

    def _on_entry_click(self, sender) -> None:
        entry_id = self._entry_ids.get(getattr(sender, "_id", ""))
        entry = self._history.store.get_entry(entry_id) if entry_id else None
        if entry is None:
            return
        if self._history.copy_to_clipboard(entry):
            rumps.notification("Clipjar", "", "Copied to clipboard", sound=False)

    def _on_search(self, _sender) -> None:
        response = rumps.Window(
            message="Search clipboard history:",
            title="Clipjar Search",
            default_text="",
            ok="Search",
            cancel="Cancel",
            dimensions=(300, 24),
        ).run()

        if response.clicked and response.text.strip():
            query = response.text.strip()
            results = self._history.store.search(query)[:MENU_DISPLAY_COUNT]
            if not results:
                rumps.alert("Clipjar Search", f'No results for "{query}"')
                return
            self._build_menu(results, f'Search: "{query}" ({len(results)} results)')

    def _on_clear(self, _sender) -> None:
        if rumps.alert("Clipjar", "Clear all clipboard history?", ok="Clear", cancel="Cancel"):
            self._history.clear()
            self._refresh_menu()

    def _on_quit(self, _sender) -> None:
        self._history.close()
        rumps.quit_application()
