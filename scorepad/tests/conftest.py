"""
Pytest fixtures for ScorePad tests.
"""

import pytest
from datetime import datetime, timedelta, timezone

from ..config import GameCatalog, GameDescriptor
from ..session import SessionManager
from ..storage import MemoryStorage, RetentionStore

START = datetime(2026, 10, 18, 20, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage, clock) -> RetentionStore:
    return RetentionStore(storage, ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def catalog() -> GameCatalog:
    return GameCatalog([
        GameDescriptor(id="g1", name="Game One", accent="#f97316", min_players=2, max_players=4),
        GameDescriptor(
            id="skyjo",
            name="Skyjo",
            accent="#38bdf8",
            min_players=2,
            max_players=8,
            scoring_help="Lowest total wins.",
        ),
    ])


@pytest.fixture
def manager(store, catalog, clock) -> SessionManager:
    return SessionManager(store, catalog, clock=clock)


@pytest.fixture
def two_player_session(manager):
    """In-progress g1 session with JKA and BOB."""
    return manager.start("g1", pseudonyms=["JKA", "BOB"])


def ids_by_pseudo(session) -> dict[str, str]:
    return {p.pseudo: p.player_id for p in session.players}


def totals_by_pseudo(session) -> dict[str, int]:
    from ..session import compute_totals

    totals = compute_totals(session)
    return {p.pseudo: totals[p.player_id] for p in session.players}
