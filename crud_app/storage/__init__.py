"""Durable key-value slots"""

from .local_storage import LocalStorage, MemoryStorage, JsonFileStorage

__all__ = ["LocalStorage", "MemoryStorage", "JsonFileStorage"]
