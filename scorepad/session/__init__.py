"""
Session Module - Scoring sessions and their lifecycle.

A session is one played instance of a game:
- Started for a game from the catalog with a fixed list of players
- Rounds are staged as drafts and count only once validated
- Ended, reopened, duplicated, pinned or deleted by the user

Persisted state is IN_PROGRESS or ENDED. The draft round is in-memory only.
"""

from .models import Player, Round, Session, SessionState
from .scoring import coerce_score, compute_totals, ranking, round_rows
from .manager import SessionManager

__all__ = [
    "Player",
    "Round",
    "Session",
    "SessionState",
    "SessionManager",
    "coerce_score",
    "compute_totals",
    "ranking",
    "round_rows",
]
