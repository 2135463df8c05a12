"""Score aggregation over committed rounds. Pure functions."""

from __future__ import annotations
import math
from typing import Any

from .models import Player, Session


def coerce_score(value: Any) -> int:
    """
    Coerce a raw score to an integer.

    None, empty or non-numeric values and non-finite floats become 0.
    Fractions truncate toward zero.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0
        try:
            value = float(value)
        except ValueError:
            return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return math.trunc(number)


def compute_totals(session: Session) -> dict[str, int]:
    """
    Total per player id across committed rounds.

    The pending draft never counts. Every player gets an entry.
    """
    totals = {player.player_id: 0 for player in session.players}
    for round_ in session.rounds:
        if not round_.is_committed:
            continue
        for player_id in totals:
            totals[player_id] += coerce_score(round_.scores.get(player_id))
    return totals


def round_rows(session: Session) -> list[list[int]]:
    """Committed rounds as rows of scores in seat order."""
    return [
        [coerce_score(round_.scores.get(p.player_id)) for p in session.players]
        for round_ in session.rounds
        if round_.is_committed
    ]


def ranking(session: Session) -> list[tuple[Player, int]]:
    """Players with their totals, highest first; ties keep seat order."""
    totals = compute_totals(session)
    ordered = sorted(
        enumerate(session.players),
        key=lambda item: (-totals[item[1].player_id], item[0]),
    )
    return [(player, totals[player.player_id]) for _, player in ordered]
