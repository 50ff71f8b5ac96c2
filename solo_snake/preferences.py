"""Small JSON key/value file for values that outlive the process."""

import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

DISPLAY_NAME_KEY = "display_name"
RUN_IN_PROGRESS_KEY = "run_in_progress"
IDENTITY_KEY = "identity"


class Preferences:
    def __init__(self, path: str):
        self.path = path
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read preferences from {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Ignoring preferences in {self.path}: expected an object")
            return {}
        return data

    def _save(self):
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
        except OSError as e:
            logger.error(f"Could not write preferences to {self.path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any):
        self._data[key] = value
        self._save()

    def remove(self, key: str):
        if key in self._data:
            del self._data[key]
            self._save()


def recover_abandoned_run(preferences: Preferences) -> bool:
    """Clear a run flag left behind by a session that never ended.

    The run itself is not restored; the player lands on the menu.
    """
    if not preferences.get(RUN_IN_PROGRESS_KEY):
        return False
    logger.warning("Previous run ended abnormally, returning to menu")
    preferences.remove(RUN_IN_PROGRESS_KEY)
    return True
