"""
Error taxonomy.

NotFound and InvalidState are surfaced to callers so the UI can show
feedback. StorageCorrupt never leaves the storage layer: it is logged and
the collection is treated as empty.
"""

from __future__ import annotations


class ScorePadError(Exception):
    """Base class for all scorepad errors."""


class NotFound(ScorePadError):
    """A referenced game or session does not exist."""


class GameNotFound(NotFound):
    """Raised when a game id is not in the catalog."""

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Unknown game: {game_id}")


class InvalidState(ScorePadError):
    """Operation not allowed in the session's current state."""


class SessionNotFound(NotFound, InvalidState):
    """
    Raised when a session id cannot be resolved.

    Mutating a session that does not exist is also an invalid-state
    condition, so callers may catch either.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class StorageCorrupt(ScorePadError):
    """Persisted data could not be parsed."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt storage under {key!r}: {reason}")


class ConfigError(ScorePadError):
    """Site or game configuration could not be loaded."""
