"""
String-keyed durable slots.

JsonFileStorage keeps every slot in one JSON object on disk and rewrites
it atomically after each change, so a torn-down process never leaves a
half-written file behind.
"""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from ..utils.exceptions import StorageError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LocalStorage:
    """Interface for a persistent string key-value store"""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)


class MemoryStorage(LocalStorage):
    """Process-local storage; survives only as long as the instance"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items.keys())


class JsonFileStorage(LocalStorage):
    """Storage backed by a single JSON file"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(exist_ok=True, parents=True)
        self._items = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (ValueError, OSError) as e:
            logger.warning("Failed to read storage file, starting empty", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file is not an object, starting empty", path=str(self.path))
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)
        self._atomic_write()

    def remove_item(self, key: str) -> None:
        if key in self._items:
            del self._items[key]
            self._atomic_write()

    def keys(self) -> List[str]:
        return list(self._items.keys())

    def _atomic_write(self) -> None:
        """Write JSON file atomically"""
        dir_path = self.path.parent
        dir_path.mkdir(exist_ok=True, parents=True)
        with tempfile.NamedTemporaryFile(mode="w", dir=dir_path, delete=False, encoding="utf-8") as tf:
            json.dump(self._items, tf, indent=2, ensure_ascii=False)
            temp_path = Path(tf.name)

        try:
            # Atomic move/replace
            shutil.move(str(temp_path), str(self.path))
        except Exception as e:
            # Clean up temp file if move failed
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Failed to save storage to {self.path}: {str(e)}")
