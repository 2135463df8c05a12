"""
Session Manager - Session lifecycle over the retention store.

LIFECYCLE:
1. start       -> IN_PROGRESS, empty rounds, registered as the active session
2. During play:
   - add_round       stage a draft round on the handle (not persisted)
   - update_draft    edit the draft's scores
   - validate_round  commit the draft; only now does it count
   - undo_last_round drop the draft, or else the last committed round
3. end         -> ENDED, draft discarded, active pointer released
4. Afterwards:
   - reopen    (ENDED -> IN_PROGRESS, active again)
   - duplicate (new IN_PROGRESS session, same players, no rounds)
   - toggle_pin, delete in any state

Every operation takes a Session handle or a session id. Persisted fields
are always re-read from the store, only the draft is taken from the
handle, so a stale handle cannot overwrite newer data. Each mutation is
one load -> change -> save of the full collection, and all checks run
before the save: a failed operation leaves storage untouched.
"""

from __future__ import annotations
import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from ..config import GameCatalog, GameDescriptor
from ..errors import GameNotFound, InvalidState, SessionNotFound
from .models import Player, Round, Session
from .scoring import coerce_score

if TYPE_CHECKING:
    from ..export.snapshot import ExportSnapshot
    from ..storage.store import RetentionStore

logger = logging.getLogger(__name__)

SessionRef = Session | str


class SessionManager:
    """
    Manages scoring sessions.

    Responsibilities:
    - Start sessions for games in the catalog
    - Round bookkeeping with an explicit draft -> commit step
    - End / reopen / duplicate / pin / delete transitions
    - Keep the active-session pointer in step with those transitions

    Usage:
        manager = SessionManager(store, catalog)
        session = manager.start("skyjo", pseudonyms=["JKA", "BOB"])
        session = manager.add_round(session, {"p1": 10, "p2": 7})
        session = manager.validate_round(session)
        totals = compute_totals(session)
    """

    def __init__(
        self,
        store: RetentionStore,
        catalog: GameCatalog | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.catalog = catalog if catalog is not None else GameCatalog()
        self.clock = clock or store.clock

    # =========================================================================
    # Start / lookup
    # =========================================================================

    def start(
        self,
        game: GameDescriptor | str,
        player_count: int | None = None,
        pseudonyms: Iterable[str | None] = (),
        label: str = "",
    ) -> Session:
        """
        Start a new session.

        Args:
            game: Game id, or a descriptor whose id is in the catalog
            player_count: Requested seats, clamped to the game's bounds.
                Defaults to the number of pseudonyms given.
            pseudonyms: Names by seat; blank or missing seats get "P<n>"
            label: Optional free text

        Raises:
            GameNotFound: the game is not in the catalog
        """
        game_id = game.id if isinstance(game, GameDescriptor) else game
        descriptor = self.catalog.get(game_id)
        if descriptor is None:
            raise GameNotFound(game_id)

        names = list(pseudonyms)
        requested = player_count if player_count is not None else (len(names) or None)
        count = descriptor.clamp_players(requested)
        names = (names + [None] * count)[:count]

        now = self.clock()
        session = Session(
            session_id=self._new_id(),
            game_id=descriptor.id,
            game_name=descriptor.name,
            accent=descriptor.accent,
            label=(label or "").strip(),
            started_at=now,
            updated_at=now,
            players=[Player.for_seat(i, name) for i, name in enumerate(names, start=1)],
        )

        session = self.store.put(session)
        self.store.set_active_id(session.session_id)
        logger.info(
            "Started session %s for %s with %d player(s)",
            session.session_id, descriptor.id, len(session.players),
        )
        return session

    def get_session(self, session: SessionRef) -> Session:
        """
        Resolve a handle or id to the stored session.

        The draft on a handle is carried over.

        Raises:
            SessionNotFound: no such session in the store
        """
        session_id = self._session_id(session)
        stored = self.store.get(session_id)
        if stored is None:
            raise SessionNotFound(session_id)
        if isinstance(session, Session) and session.pending_round is not None:
            stored.pending_round = session.pending_round
        return stored

    def open_session(self, session_id: str) -> Session:
        """Open a session from history; an unfinished one becomes active."""
        self.store.sweep()
        session = self.get_session(session_id)
        if session.is_in_progress():
            self.store.set_active_id(session.session_id)
        return session

    def active_session(self) -> Session | None:
        """
        The session currently open for play.

        A pointer to a missing or ended session is cleared.
        """
        active_id = self.store.get_active_id()
        if not active_id:
            return None
        session = self.store.get(active_id)
        if session is None or not session.is_in_progress():
            self.store.clear_active_id()
            return None
        return session

    def history(self) -> list[Session]:
        """Sweep expired sessions, then list the rest, most recent first."""
        self.store.sweep()
        return self.store.list_sessions()

    def in_progress(self, game_id: str | None = None) -> list[Session]:
        """Unfinished sessions, newest start first."""
        sessions = [
            s for s in self.store.list_sessions()
            if s.is_in_progress() and (game_id is None or s.game_id == game_id)
        ]
        sessions.sort(key=lambda s: s.started_at, reverse=True)
        return sessions

    # =========================================================================
    # Rounds
    # =========================================================================

    def add_round(
        self,
        session: SessionRef,
        scores: Mapping[str, Any] | None = None,
    ) -> Session:
        """
        Stage a draft round on the returned handle.

        Every player gets an entry (zero unless given). Any existing draft
        is replaced. Nothing is persisted.

        Raises:
            InvalidState: session ended, or scores name unknown players
        """
        current = self._require_in_progress(session, "add a round to")
        draft = Round(
            scores=self._normalize_scores(current, scores or {}),
            created_at=self.clock(),
        )
        current.pending_round = draft
        return current

    def update_draft(self, session: SessionRef, scores: Mapping[str, Any]) -> Session:
        """Merge scores into the pending draft."""
        current = self._require_in_progress(session, "edit a round of")
        if current.pending_round is None:
            raise InvalidState(f"Session {current.session_id} has no draft round")
        merged = dict(current.pending_round.scores)
        merged.update(self._normalize_scores(current, scores, fill=False))
        current.pending_round = Round(
            scores=merged,
            created_at=current.pending_round.created_at,
        )
        return current

    def validate_round(self, session: SessionRef) -> Session:
        """
        Commit the pending draft.

        Raises:
            InvalidState: session ended or no draft pending
        """
        current = self._require_in_progress(session, "validate a round of")
        draft = current.pending_round
        if draft is None:
            raise InvalidState(f"Session {current.session_id} has no draft round to validate")

        committed = Round(
            scores=self._normalize_scores(current, draft.scores),
            created_at=draft.created_at,
            validated_at=self.clock(),
        )
        current.rounds.append(committed)
        current.pending_round = None
        stored = self.store.put(current)
        logger.debug("Session %s: round %d validated", stored.session_id, len(stored.rounds))
        return stored

    def undo_last_round(self, session: SessionRef) -> Session:
        """
        Remove exactly one round.

        A pending draft goes first; otherwise the last committed round is
        removed. With neither, nothing happens.
        """
        current = self._require_in_progress(session, "undo a round of")
        if current.pending_round is not None:
            current.pending_round = None
            return current
        if not current.rounds:
            return current

        current.rounds.pop()
        stored = self.store.put(current)
        logger.debug("Session %s: last round removed, %d left", stored.session_id, len(stored.rounds))
        return stored

    # =========================================================================
    # Transitions
    # =========================================================================

    def end_session(self, session: SessionRef) -> Session:
        """
        End a session.

        Discards any draft and releases the active pointer if it points
        here. Ending an ended session changes nothing.
        """
        current = self.get_session(session)
        current.pending_round = None
        if not current.is_in_progress():
            return current

        current.ended_at = self.clock()
        stored = self.store.put(current)
        if self.store.get_active_id() == stored.session_id:
            self.store.clear_active_id()
        logger.info("Ended session %s after %d round(s)", stored.session_id, len(stored.rounds))
        return stored

    def reopen_session(self, session: SessionRef) -> Session:
        """
        Reopen an ended session and make it the active one.

        Raises:
            InvalidState: the session is not ended
        """
        current = self.get_session(session)
        if current.is_in_progress():
            raise InvalidState(f"Session {current.session_id} is not ended")

        current.ended_at = None
        stored = self.store.put(current)
        self.store.set_active_id(stored.session_id)
        logger.info("Reopened session %s", stored.session_id)
        return stored

    def toggle_pin(self, session: SessionRef) -> Session:
        """Flip the pinned flag and persist it immediately."""
        current = self.get_session(session)
        current.pinned = not current.pinned
        return self.store.put(current)

    def duplicate_session(self, session: SessionRef) -> Session:
        """
        Start a fresh session with the same game and players.

        The copy has a new id, no rounds, new timestamps and is unpinned.
        It becomes the active session. The source is not modified.
        """
        source = self.get_session(session)
        now = self.clock()
        copy = Session(
            session_id=self._new_id(),
            game_id=source.game_id,
            game_name=source.game_name,
            accent=source.accent,
            label=source.label,
            started_at=now,
            updated_at=now,
            players=[Player(player_id=p.player_id, pseudo=p.pseudo) for p in source.players],
        )
        stored = self.store.put(copy)
        self.store.set_active_id(stored.session_id)
        logger.info("Duplicated session %s as %s", source.session_id, stored.session_id)
        return stored

    def delete_session(self, session: SessionRef) -> bool:
        """Delete a session in any state; clears the active pointer if needed."""
        session_id = self._session_id(session)
        removed = self.store.delete(session_id)
        if self.store.get_active_id() == session_id:
            self.store.clear_active_id()
        return removed

    # =========================================================================
    # Export
    # =========================================================================

    def export(
        self,
        session_ids: Iterable[str],
        include_rounds: bool = False,
    ) -> list[ExportSnapshot]:
        """
        Snapshots of the selected sessions, newest start first.

        Unknown ids are skipped.

        Raises:
            InvalidState: nothing selected
        """
        from ..export.snapshot import build_export

        ids = list(dict.fromkeys(session_ids))
        if not ids:
            raise InvalidState("select at least one session to export")

        self.store.sweep()
        sessions = [s for s in (self.store.get(sid) for sid in ids) if s is not None]
        if not sessions:
            raise InvalidState("select at least one session to export")
        return build_export(sessions, include_rounds=include_rounds)

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _require_in_progress(self, session: SessionRef, action: str) -> Session:
        current = self.get_session(session)
        if not current.is_in_progress():
            raise InvalidState(f"Cannot {action} ended session {current.session_id}")
        return current

    def _normalize_scores(
        self,
        session: Session,
        scores: Mapping[str, Any],
        fill: bool = True,
    ) -> dict[str, int]:
        """Coerce scores, rejecting unknown player ids; optionally zero-fill."""
        unknown = [pid for pid in scores if pid not in session.player_ids]
        if unknown:
            raise InvalidState(
                f"Unknown player(s) for session {session.session_id}: {', '.join(map(str, unknown))}"
            )
        if not fill:
            return {pid: coerce_score(value) for pid, value in scores.items()}
        return {pid: coerce_score(scores.get(pid)) for pid in session.player_ids}

    @staticmethod
    def _session_id(session: SessionRef) -> str:
        return session.session_id if isinstance(session, Session) else session

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())
