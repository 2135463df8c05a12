"""
Session model - players, rounds and the session aggregate.

Persisted states are only IN_PROGRESS and ENDED, derived from ``ended_at``.
A draft round lives on the in-memory handle (``pending_round``) and is
never written to storage; only committed rounds appear in ``rounds``.
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

PSEUDO_MAX_LENGTH = 12


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(Enum):
    """Lifecycle state of a session."""
    IN_PROGRESS = "in_progress"
    ENDED = "ended"


@dataclass(frozen=True)
class Player:
    """A seat in a session. Immutable once the session starts."""
    player_id: str
    pseudo: str

    @staticmethod
    def placeholder(position: int) -> str:
        """Default pseudonym for the 1-based seat ``position``."""
        return f"P{position}"

    @classmethod
    def for_seat(cls, position: int, pseudo: str | None = None) -> Player:
        """Build the player at 1-based ``position``, normalizing the pseudonym."""
        name = (pseudo or "").strip()[:PSEUDO_MAX_LENGTH]
        return cls(player_id=f"p{position}", pseudo=name or cls.placeholder(position))


@dataclass
class Round:
    """
    One scoring step.

    ``validated_at`` is None while the round is a draft.
    """
    scores: dict[str, int]
    created_at: datetime
    validated_at: datetime | None = None

    @property
    def is_committed(self) -> bool:
        return self.validated_at is not None

    def score_for(self, player_id: str) -> int:
        """Score for a player; a missing entry counts as zero."""
        return self.scores.get(player_id, 0)


@dataclass
class Session:
    """
    One played instance of a game.

    Game name and accent are a snapshot taken at start so the session stays
    readable when the catalog changes.
    """
    session_id: str
    game_id: str
    game_name: str
    started_at: datetime
    updated_at: datetime
    accent: str | None = None
    label: str = ""
    ended_at: datetime | None = None
    pinned: bool = False
    players: list[Player] = field(default_factory=list)
    rounds: list[Round] = field(default_factory=list)

    # In-memory only
    pending_round: Round | None = None

    @property
    def state(self) -> SessionState:
        return SessionState.ENDED if self.ended_at else SessionState.IN_PROGRESS

    def is_in_progress(self) -> bool:
        return self.ended_at is None

    @property
    def has_draft(self) -> bool:
        return self.pending_round is not None

    @property
    def player_ids(self) -> list[str]:
        return [p.player_id for p in self.players]

    def get_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    @property
    def reference_time(self) -> datetime:
        """Timestamp the retention policy measures age from."""
        return self.updated_at or self.started_at

    def copy(self) -> Session:
        """Deep copy; no list or dict is shared with the original."""
        return deepcopy(self)

    def _copy_with(self, **changes) -> Session:
        return replace(self.copy(), **changes)
