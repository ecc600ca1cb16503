"""Local key/value preferences (the app's user-defaults store)."""

import base64
import json
import logging
from enum import StrEnum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class PreferenceKey(StrEnum):
    """Known preference keys."""

    # Marked once a user has gone through all onboarding steps at least once
    HAS_COMPLETED_ONBOARDING = "hasCompletedOnboarding"


class PreferencesStore:
    """
    Small persistent key/value store for local flags.

    Values live in a JSON file when ``path`` is given and in memory
    otherwise. Typed getters return ``False``/``0``/``None`` for missing or
    mistyped keys, like platform user defaults do.

    Example:
        >>> prefs = PreferencesStore(Path("~/.shots/preferences.json").expanduser())
        >>> prefs.set_has_completed_onboarding(True)
        >>> prefs.has_completed_onboarding
        True
    """

    def __init__(self, path: Path | str | None = None) -> None:
        """
        Initialize the store.

        Args:
            path: JSON file to persist to, or None for an in-memory store
        """
        self.path = Path(path).expanduser() if path is not None else None
        self._values: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)

    def get_value(self, key: str) -> Any:
        return self._values.get(key)

    def get_bool(self, key: str) -> bool:
        value = self._values.get(key)
        return value if isinstance(value, bool) else False

    def get_string(self, key: str) -> str | None:
        value = self._values.get(key)
        return value if isinstance(value, str) else None

    def get_data(self, key: str) -> bytes | None:
        value = self._values.get(key)
        if not isinstance(value, str):
            return None
        try:
            return base64.b64decode(value, validate=True)
        except ValueError:
            return None

    def get_float(self, key: str) -> float:
        value = self._values.get(key)
        if isinstance(value, bool) or not isinstance(value, int | float):
            return 0.0
        return float(value)

    def get_int(self, key: str) -> int:
        value = self._values.get(key)
        if isinstance(value, bool) or not isinstance(value, int | float):
            return 0
        return int(value)

    def set_value(self, value: Any, key: str) -> None:
        """Store any JSON-serializable value; None removes the key."""
        if value is None:
            self.remove(key)
            return
        self._values[key] = value
        self._save()

    def set_bool(self, value: bool, key: str) -> None:
        self.set_value(bool(value), key)

    def set_string(self, value: str, key: str) -> None:
        self.set_value(str(value), key)

    def set_data(self, value: bytes | None, key: str) -> None:
        self.set_value(base64.b64encode(value).decode("ascii") if value is not None else None, key)

    def set_float(self, value: float, key: str) -> None:
        self.set_value(float(value), key)

    def set_int(self, value: int, key: str) -> None:
        self.set_value(int(value), key)

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._save()

    @property
    def has_completed_onboarding(self) -> bool:
        return self.get_bool(PreferenceKey.HAS_COMPLETED_ONBOARDING.value)

    def set_has_completed_onboarding(self, value: bool) -> None:
        self.set_bool(value, PreferenceKey.HAS_COMPLETED_ONBOARDING.value)
