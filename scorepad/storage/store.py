"""
Retention Store - Session persistence with time-to-live eviction.

The store:
- Keeps the whole session collection under one storage key
- Rewrites the full collection on every write (the list is small and local)
- Evicts unpinned sessions whose last update is older than the TTL
- Holds the active-session pointer under a separate key

Reads are fail-soft: a collection that cannot be parsed is logged, reset
and treated as empty. Local scores are convenience state, not a system
of record.
"""

from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Callable

from ..errors import StorageCorrupt
from ..session.models import Session, utc_now
from .backends import KeyValueStorage, MemoryStorage
from .schemas import decode_sessions, encode_sessions

logger = logging.getLogger(__name__)

SESSIONS_KEY = "scorepad.sessions.v1"
ACTIVE_KEY = "scorepad.activeSessionId.v1"
DEFAULT_TTL = timedelta(hours=24)


class RetentionStore:
    """
    Session store over a key-value backend.

    Usage:
        store = RetentionStore(FileStorage("~/.scorepad"), ttl=timedelta(hours=24))

        store.sweep()                  # at every read-path entry
        session = store.put(session)   # updated_at refreshed
        store.list_sessions()          # most recently updated first
    """

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.ttl = ttl
        self.clock = clock

    # =========================================================================
    # Sessions
    # =========================================================================

    def list_sessions(self) -> list[Session]:
        """All stored sessions, most recently updated (or started) first."""
        sessions = self._load()
        sessions.sort(key=lambda s: s.reference_time, reverse=True)
        return sessions

    def get(self, session_id: str) -> Session | None:
        for session in self._load():
            if session.session_id == session_id:
                return session
        return None

    def put(self, session: Session) -> Session:
        """
        Insert or replace a session and return the persisted copy.

        ``updated_at`` is set to the current time. New sessions go to the
        front of the collection. The pending draft is never persisted but is
        kept on the returned handle.
        """
        stored = session._copy_with(updated_at=self.clock())
        sessions = self._load()

        for index, existing in enumerate(sessions):
            if existing.session_id == stored.session_id:
                sessions[index] = stored
                break
        else:
            sessions.insert(0, stored)

        self._save(sessions)
        return stored

    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns whether anything was removed."""
        sessions = self._load()
        kept = [s for s in sessions if s.session_id != session_id]
        if len(kept) == len(sessions):
            return False
        self._save(kept)
        logger.debug("Deleted session %s", session_id)
        return True

    def sweep(self, now: datetime | None = None) -> list[str]:
        """
        Evict unpinned sessions older than the TTL.

        Age is measured from ``updated_at`` (or ``started_at``). A session
        exactly ``ttl`` old is kept. Returns the evicted ids; storage is only
        rewritten when something was evicted.
        """
        now = now or self.clock()
        sessions = self._load()

        kept = []
        evicted = []
        for session in sessions:
            if session.pinned or now - session.reference_time <= self.ttl:
                kept.append(session)
            else:
                evicted.append(session.session_id)

        if evicted:
            self._save(kept)
            logger.info("Evicted %d expired session(s): %s", len(evicted), ", ".join(evicted))
        return evicted

    def clear(self) -> None:
        """Remove every session and the active pointer."""
        self.storage.delete(SESSIONS_KEY)
        self.storage.delete(ACTIVE_KEY)

    # =========================================================================
    # Active pointer
    # =========================================================================

    def get_active_id(self) -> str | None:
        try:
            value = self.storage.get(ACTIVE_KEY)
        except StorageCorrupt as e:
            logger.warning("%s; clearing the active session", e)
            self.storage.delete(ACTIVE_KEY)
            return None
        return value.strip() if value and value.strip() else None

    def set_active_id(self, session_id: str) -> None:
        self.storage.set(ACTIVE_KEY, session_id)

    def clear_active_id(self) -> None:
        self.storage.delete(ACTIVE_KEY)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self) -> list[Session]:
        """Load the collection, resetting it when it cannot be parsed."""
        try:
            return self._read()
        except StorageCorrupt as e:
            logger.warning("%s; resetting to an empty collection", e)
            self.storage.delete(SESSIONS_KEY)
            return []

    def _read(self) -> list[Session]:
        return decode_sessions(self.storage.get(SESSIONS_KEY), key=SESSIONS_KEY)

    def _save(self, sessions: list[Session]) -> None:
        # Encode fully before touching storage so a failure writes nothing
        payload = encode_sessions(sessions)
        self.storage.set(SESSIONS_KEY, payload)
