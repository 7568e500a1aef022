import json

import pytest

from clipjar.settings import Settings, load_settings, save_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.capture_text and settings.capture_images and settings.capture_files
        assert settings.retention_days == 30
        assert settings.max_image_size_bytes == 5 * 1024 * 1024

    def test_ignored_apps(self):
        settings = Settings()
        settings.set_app_ignored("com.example.passwords", True)
        assert settings.is_app_ignored("com.example.passwords")
        assert not settings.is_app_ignored("com.example.editor")
        settings.set_app_ignored("com.example.passwords", False)
        assert not settings.is_app_ignored("com.example.passwords")

    def test_unignore_unknown_app(self):
        Settings().set_app_ignored("com.example.unknown", False)

    def test_from_dict_clamps_numbers(self):
        settings = Settings.from_dict({"retention_days": 0, "max_image_size_mb": -3})
        assert settings.retention_days == 1
        assert settings.max_image_size_mb == 1

    def test_from_dict_rejects_wrong_types(self):
        with pytest.raises(ValueError):
            Settings.from_dict({"capture_text": "yes"})
        with pytest.raises(ValueError):
            Settings.from_dict({"retention_days": True})
        with pytest.raises(ValueError):
            Settings.from_dict({"ignored_app_bundle_ids": "com.example"})


class TestPersistence:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "settings.json") == Settings()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "settings.json"
        settings = Settings(capture_images=False, retention_days=7)
        settings.set_app_ignored("com.example.passwords", True)
        save_settings(settings, path)
        assert load_settings(path) == settings
        assert not (tmp_path / ".settings.json.tmp").exists()

    def test_ignored_ids_saved_sorted(self, tmp_path):
        path = tmp_path / "settings.json"
        save_settings(Settings(ignored_app_bundle_ids={"b", "a"}), path)
        assert json.loads(path.read_text())["ignored_app_bundle_ids"] == ["a", "b"]

    def test_invalid_json_falls_back(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        assert load_settings(path) == Settings()

    def test_non_object_falls_back(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")
        assert load_settings(path) == Settings()

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"theme": "dark", "capture_files": False}))
        settings = load_settings(path)
        assert settings.capture_files is False
