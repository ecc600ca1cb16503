"""Tests for the local preferences store."""

import json
from pathlib import Path

import pytest

from src.shots.services.preferences import PreferenceKey, PreferencesStore


@pytest.fixture
def path(tmp_path: Path) -> Path:
    """Preferences file location inside a fresh directory."""
    return tmp_path / "prefs" / "preferences.json"


class TestPreferencesStore:
    """Tests for PreferencesStore class."""

    def test_missing_keys_return_defaults(self) -> None:
        """Test that typed getters fall back like platform user defaults."""
        prefs = PreferencesStore()

        assert prefs.get_bool("missing") is False
        assert prefs.get_int("missing") == 0
        assert prefs.get_float("missing") == 0.0
        assert prefs.get_string("missing") is None
        assert prefs.get_data("missing") is None
        assert prefs.get_value("missing") is None

    def test_typed_round_trip(self) -> None:
        """Test storing and reading each supported type."""
        prefs = PreferencesStore()

        prefs.set_bool(True, "flag")
        prefs.set_int(7, "count")
        prefs.set_float(2.5, "ratio")
        prefs.set_string("hello", "greeting")
        prefs.set_data(b"\x00\x01binary", "blob")

        assert prefs.get_bool("flag") is True
        assert prefs.get_int("count") == 7
        assert prefs.get_float("ratio") == 2.5
        assert prefs.get_string("greeting") == "hello"
        assert prefs.get_data("blob") == b"\x00\x01binary"

    def test_mistyped_values_return_defaults(self) -> None:
        """Test that a getter of the wrong type does not coerce."""
        prefs = PreferencesStore()
        prefs.set_string("yes", "flag")
        prefs.set_bool(True, "count")

        assert prefs.get_bool("flag") is False
        assert prefs.get_int("count") == 0

    def test_setting_none_removes_key(self) -> None:
        """Test that a None value deletes the key."""
        prefs = PreferencesStore()
        prefs.set_string("hello", "greeting")

        prefs.set_value(None, "greeting")

        assert prefs.get_value("greeting") is None

    def test_persists_to_file(self, path: Path) -> None:
        """Test that values survive a new store instance."""
        prefs = PreferencesStore(path)
        prefs.set_has_completed_onboarding(True)

        reloaded = PreferencesStore(path)

        assert reloaded.has_completed_onboarding is True
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {PreferenceKey.HAS_COMPLETED_ONBOARDING.value: True}
        assert not path.with_suffix(".json.tmp").exists()

    def test_unreadable_file_starts_empty(self, path: Path) -> None:
        """Test that a corrupt file is ignored rather than raising."""
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        prefs = PreferencesStore(path)

        assert prefs.has_completed_onboarding is False

    def test_onboarding_defaults_to_false(self) -> None:
        """Test that onboarding is incomplete on a fresh install."""
        assert PreferencesStore().has_completed_onboarding is False
