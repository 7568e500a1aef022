import os
from unittest.mock import patch

from clipjar.config import _parse_menu_display_count, _parse_poll_interval


class TestParseMenuDisplayCount:
    def test_default_when_not_set(self):
        env = os.environ.copy()
        env.pop("CLIPJAR_MENU_DISPLAY_COUNT", None)
        with patch.dict("os.environ", env, clear=True):
            assert _parse_menu_display_count() == 10

    def test_valid_value(self):
        with patch.dict("os.environ", {"CLIPJAR_MENU_DISPLAY_COUNT": "20"}):
            assert _parse_menu_display_count() == 20

    def test_clamped_below_minimum(self):
        with patch.dict("os.environ", {"CLIPJAR_MENU_DISPLAY_COUNT": "2"}):
            assert _parse_menu_display_count() == 5

    def test_clamped_above_maximum(self):
        with patch.dict("os.environ", {"CLIPJAR_MENU_DISPLAY_COUNT": "100"}):
            assert _parse_menu_display_count() == 50

    def test_invalid_non_integer(self):
        with patch.dict("os.environ", {"CLIPJAR_MENU_DISPLAY_COUNT": "abc"}):
            assert _parse_menu_display_count() == 10


class TestParsePollInterval:
    def test_default_when_not_set(self):
        env = os.environ.copy()
        env.pop("CLIPJAR_POLL_INTERVAL", None)
        with patch.dict("os.environ", env, clear=True):
            assert _parse_poll_interval() == 0.5

    def test_valid_value(self):
        with patch.dict("os.environ", {"CLIPJAR_POLL_INTERVAL": "1.5"}):
            assert _parse_poll_interval() == 1.5

    def test_clamped(self):
        with patch.dict("os.environ", {"CLIPJAR_POLL_INTERVAL": "0.001"}):
            assert _parse_poll_interval() == 0.1
        with patch.dict("os.environ", {"CLIPJAR_POLL_INTERVAL": "60"}):
            assert _parse_poll_interval() == 5.0

    def test_invalid(self):
        with patch.dict("os.environ", {"CLIPJAR_POLL_INTERVAL": "fast"}):
            assert _parse_poll_interval() == 0.5
