"""
Storage Module - Device-local persistence.

Sessions live in a single key-value entry, rewritten on every change.
Unpinned sessions expire after a TTL measured from their last update.
"""

from .backends import KeyValueStorage, MemoryStorage, FileStorage
from .store import RetentionStore, SESSIONS_KEY, ACTIVE_KEY, DEFAULT_TTL

__all__ = [
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "RetentionStore",
    "SESSIONS_KEY",
    "ACTIVE_KEY",
    "DEFAULT_TTL",
]
