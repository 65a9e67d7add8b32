"""Mini README: String key-value stores for on-device state.

Structure:
    * KeyValueStore - abstract get/set/remove interface over string values.
    * InMemoryKeyValueStore - dictionary-backed store for tests and demos.
    * JsonFileKeyValueStore - single JSON file written atomically.

``set_many`` writes several keys as one unit, which is how a card's balance
and history are saved together. File failures surface as ``PersistenceError``.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional

from ..ledger.errors import PersistenceError
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


class KeyValueStore(ABC):
    """Minimal string key-value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or ``None`` when absent."""

    @abstractmethod
    def set_many(self, items: Mapping[str, str]) -> None:
        """Store every item or none of them."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key; missing keys are ignored."""

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set_many(self, items: Mapping[str, str]) -> None:
        self._values.update(items)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)


class JsonFileKeyValueStore(KeyValueStore):
    """Persist all keys in one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._values: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._values is None:
            if self.path.exists():
                try:
                    raw = json.loads(self.path.read_text(encoding="utf-8"))
                except (OSError, json.JSONDecodeError) as error:
                    raise PersistenceError(f"Could not read saved data: {error}") from error
                if not isinstance(raw, dict):
                    raise PersistenceError("Saved data is not a key-value object.")
                self._values = {str(key): str(value) for key, value in raw.items()}
            else:
                self._values = {}
            LOGGER.debug("Loaded %s keys from %s", len(self._values), self.path)
        return self._values

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_many(self, items: Mapping[str, str]) -> None:
        updated = dict(self._load())
        updated.update(items)
        self._write(updated)

    def remove(self, key: str) -> None:
        values = self._load()
        if key in values:
            updated = dict(values)
            del updated[key]
            self._write(updated)

    def _write(self, values: Dict[str, str]) -> None:
        temp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle, temp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                json.dump(values, stream, ensure_ascii=False, indent=2)
            os.replace(temp_name, self.path)
        except OSError as error:
            if temp_name is not None and os.path.exists(temp_name):
                os.unlink(temp_name)
            LOGGER.error("Failed to write %s: %s", self.path, error)
            raise PersistenceError(f"Could not save data: {error}") from error
        self._values = values
        LOGGER.debug("Wrote %s keys to %s", len(values), self.path)
