"""Key/value storage for paper trading settings and account snapshots.

Each key is one JSON file under a base directory. Decimal values are
written as strings, datetimes as ISO-8601 and enums by value, so account
snapshots can be saved without a separate encoding pass.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class IStorageService(ABC):
    """Abstract key/value store."""

    @abstractmethod
    def save(self, key: str, data: Any) -> None:
        """Store ``data`` under ``key``, replacing any previous value."""
        ...

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Return the value stored under ``key``, or None if absent."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        """List stored keys."""
        ...


class JsonFileStorage(IStorageService):
    """Stores each key as ``<base_path>/<key>.json``."""

    def __init__(self, base_path: str | Path) -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._base_path / f"{safe_key}.json"

    def save(self, key: str, data: Any) -> None:
        """Write ``data`` as JSON.

        Raises:
            TypeError: If data contains values that cannot be encoded
            OSError: If the file cannot be written
        """
        file_path = self._path_for(key)
        try:
            text = json.dumps(data, indent=2, ensure_ascii=False, default=_encode)
            file_path.write_text(text, encoding="utf-8")
        except (TypeError, OSError) as e:
            logger.error(f"Failed to save '{key}': {e}")
            raise

    def load(self, key: str) -> Optional[Any]:
        """Read the JSON stored under ``key``.

        A missing, unreadable or corrupted file yields None.
        """
        file_path = self._path_for(key)
        if not file_path.exists():
            return None
        try:
            return json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted data for '{key}': {e}")
            return None
        except OSError as e:
            logger.error(f"Failed to load '{key}': {e}")
            return None

    def delete(self, key: str) -> None:
        file_path = self._path_for(key)
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete '{key}': {e}")

    def keys(self) -> List[str]:
        return sorted(p.stem for p in self._base_path.glob("*.json"))
