import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import ValidationError

from venue_availability import config
from venue_availability.models import Preferences

logger = logging.getLogger(__name__)

PREFERENCES_KEY = "preferences"


def ensure_dir(path: str):
    """Ensures the directory holding `path` exists."""
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)


class JsonFileStore:
    """Key-value store backed by a single JSON file.

    Every `set`/`delete` rewrites the whole file through a temp file and
    `os.replace`, so a reader never sees a half-written document.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or config.BOOKMARKS_FILE

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError):
            logger.warning(f"Failed to load {self.path}. Starting fresh.")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"{self.path} has unexpected format. Starting fresh.")
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> bool:
        ensure_dir(self.path)
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
            return True
        except IOError as e:
            logger.error(f"Failed to save {self.path}: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> bool:
        data = self._load()
        data[key] = value
        return self._save(data)

    def delete(self, key: str) -> bool:
        data = self._load()
        if key not in data:
            return True
        del data[key]
        return self._save(data)


def load_preferences(store: JsonFileStore) -> Preferences:
    raw: Optional[Dict] = store.get(PREFERENCES_KEY)
    if not raw:
        return Preferences()
    try:
        return Preferences.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid stored preferences: {e}")
        return Preferences()


def save_preferences(store: JsonFileStore, preferences: Preferences) -> bool:
    saved = store.set(PREFERENCES_KEY, preferences.model_dump())
    if saved:
        logger.info(f"Saved preferences to {store.path}")
    return saved
