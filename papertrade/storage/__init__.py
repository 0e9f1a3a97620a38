# Storage module
"""Persistence services for settings and account snapshots."""

from papertrade.storage.storage import IStorageService, JsonFileStorage

__all__ = ["IStorageService", "JsonFileStorage"]
