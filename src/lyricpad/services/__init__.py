"""Service layer helpers (settings, key-value storage)."""

from .kv_store import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .settings import SecretVault, Settings, SettingsStore

__all__ = [
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SecretVault",
    "Settings",
    "SettingsStore",
]
