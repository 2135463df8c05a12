"""
Export snapshots - read-only projections of sessions for document renderers.

A snapshot carries everything a renderer needs (names, timestamps, totals
and optionally the committed rounds) so the renderer never touches the
session or the store.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping

from ..session.models import Session
from ..session.scoring import compute_totals, round_rows

EXPORT_PREFIX = "scorepad-export"


@dataclass(frozen=True)
class PlayerLine:
    player_id: str
    pseudo: str
    total: int


@dataclass(frozen=True)
class RoundLine:
    number: int
    scores: tuple[int, ...]  # seat order
    created_at: datetime


@dataclass(frozen=True)
class ExportSnapshot:
    """Immutable view of one session."""
    session_id: str
    game_id: str
    game_name: str
    accent: str | None
    label: str
    started_at: datetime
    ended_at: datetime | None
    players: tuple[PlayerLine, ...]
    totals: Mapping[str, int]
    rounds: tuple[RoundLine, ...] | None = None

    @property
    def title(self) -> str:
        name = self.game_name or self.game_id
        return f"{name} - {self.label}" if self.label else name

    @property
    def includes_rounds(self) -> bool:
        return self.rounds is not None


def build_snapshot(session: Session, include_rounds: bool = False) -> ExportSnapshot:
    """Project a session. The pending draft is never included."""
    totals = compute_totals(session)
    players = tuple(
        PlayerLine(player_id=p.player_id, pseudo=p.pseudo, total=totals[p.player_id])
        for p in session.players
    )

    rounds = None
    if include_rounds:
        committed = [r for r in session.rounds if r.is_committed]
        rounds = tuple(
            RoundLine(number=i, scores=tuple(row), created_at=r.created_at)
            for i, (r, row) in enumerate(zip(committed, round_rows(session)), start=1)
        )

    return ExportSnapshot(
        session_id=session.session_id,
        game_id=session.game_id,
        game_name=session.game_name,
        accent=session.accent,
        label=session.label,
        started_at=session.started_at,
        ended_at=session.ended_at,
        players=players,
        totals=MappingProxyType(dict(totals)),
        rounds=rounds,
    )


def build_export(
    sessions: Iterable[Session],
    include_rounds: bool = False,
) -> list[ExportSnapshot]:
    """Snapshots ordered by start time, newest first."""
    snapshots = [build_snapshot(s, include_rounds=include_rounds) for s in sessions]
    snapshots.sort(key=lambda s: s.started_at, reverse=True)
    return snapshots


def export_filename(now: datetime, prefix: str = EXPORT_PREFIX) -> str:
    """Document name carrying the export time in epoch milliseconds."""
    return f"{prefix}-{int(now.timestamp() * 1000)}.pdf"
