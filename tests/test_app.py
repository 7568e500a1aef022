"""Tests for app.py menu logic.

ClipjarApp inherits from rumps.App, so the app is built without running
__init__ and wired to an in-memory history.
"""
from unittest.mock import MagicMock, patch

import pytest

rumps = pytest.importorskip("rumps")

from clipjar.app import ENTRY_KEY_PREFIX, ClipjarApp, MenuItemSpec, compute_entry_title  # noqa: E402
from clipjar.models import ContentType  # noqa: E402
from clipjar.service import ClipboardHistory  # noqa: E402


@pytest.fixture
def app(storage, blobs, settings, pasteboard, timers):
    instance = ClipjarApp.__new__(ClipjarApp)
    instance._history = ClipboardHistory(storage, blobs, settings, pasteboard, timer_factory=timers)
    instance._entry_ids = {}
    return instance


class TestComputeEntryTitle:
    def test_text_icon(self, make_entry):
        assert compute_entry_title(make_entry("hello")) == "📝 hello"

    def test_image_icon(self, make_entry):
        assert compute_entry_title(make_entry(content_type=ContentType.IMAGE)).startswith("🖼 ")

    def test_long_preview_truncated(self, make_entry):
        title = compute_entry_title(make_entry("x" * 200))
        assert title.endswith("...")


class TestMenuSpecs:
    def test_empty_history(self, app):
        specs = app._compute_menu_specs(None, None)
        titles = [s.title for s in specs if s is not None]
        assert "(No clipboard history)" in titles
        assert titles[0].endswith("0 entries")

    def test_entries_registered(self, app, storage, make_entry):
        entry = make_entry("hello")
        storage.insert(entry)
        specs = app._compute_menu_specs(None, None)
        entry_specs = [s for s in specs if isinstance(s, MenuItemSpec) and s.entry_id]
        assert [s.entry_id for s in entry_specs] == [entry.id]
        assert app._entry_ids[f"{ENTRY_KEY_PREFIX}{entry.id}"] == entry.id

    def test_search_results_offer_show_all(self, app, make_entry):
        specs = app._compute_menu_specs([make_entry("match")], 'Search: "match" (1 results)')
        titles = [s.title for s in specs if s is not None]
        assert titles[0] == 'Search: "match" (1 results)'
        assert "Show All" in titles


class TestOnEntryClick:
    def test_click_copies_entry(self, app, storage, pasteboard, make_entry):
        entry = make_entry("copy me")
        storage.insert(entry)
        app._compute_menu_specs(None, None)
        sender = MagicMock()
        sender._id = f"{ENTRY_KEY_PREFIX}{entry.id}"
        with patch("clipjar.app.rumps.notification") as notify:
            app._on_entry_click(sender)
        assert pasteboard.text == "copy me"
        notify.assert_called_once()

    def test_unknown_sender_ignored(self, app, pasteboard):
        sender = MagicMock(spec=[])
        app._on_entry_click(sender)
        assert pasteboard.count == 0


class TestOnClear:
    def test_confirmed_clear(self, app, storage, make_entry):
        storage.insert(make_entry("a"))
        with patch("clipjar.app.rumps.alert", return_value=1), patch.object(app, "_refresh_menu") as refresh:
            app._on_clear(None)
        assert storage.total_count == 0
        refresh.assert_called_once()

    def test_cancelled_clear(self, app, storage, make_entry):
        storage.insert(make_entry("a"))
        with patch("clipjar.app.rumps.alert", return_value=0):
            app._on_clear(None)
        assert storage.total_count == 1
