"""
Persisted record schemas.

Pydantic models for the JSON written to local storage. Keys are camelCase:

    {"v": 1, "sessions": [
        {"id": "...", "gameId": "skyjo", "gameName": "Skyjo", "accent": "#38bdf8",
         "label": "", "startedAt": "...Z", "updatedAt": "...Z", "endedAt": null,
         "pinned": false,
         "players": [{"id": "p1", "pseudo": "JKA"}, ...],
         "rounds": [{"ts": "...Z", "validatedAt": "...Z", "scores": {"p1": 3}}]}]}

Older layouts are upgraded on read:
- a bare JSON array instead of the envelope
- players stored as plain pseudonym strings
- scores stored as arrays indexed by seat
- epoch-millis timestamps
- rounds with ``validatedAt: null`` were never committed and are dropped
"""

from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..errors import StorageCorrupt
from ..session.models import Player, Round, Session
from ..session.scoring import coerce_score

logger = logging.getLogger(__name__)

STORAGE_VERSION = 1


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerRecord(_Record):
    id: str = Field(min_length=1)
    pseudo: str


class RoundRecord(_Record):
    ts: datetime
    validated_at: Optional[datetime] = None
    scores: dict[str, int] = Field(default_factory=dict)

    @field_validator("scores", mode="before")
    @classmethod
    def _coerce_scores(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): coerce_score(v) for k, v in value.items()}
        return value

    @field_validator("ts", "validated_at", mode="after")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class SessionRecord(_Record):
    id: str = Field(min_length=1)
    game_id: str
    game_name: str = ""
    accent: Optional[str] = None
    label: str = ""
    started_at: datetime
    updated_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    pinned: bool = False
    players: list[PlayerRecord] = Field(default_factory=list)
    rounds: list[RoundRecord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _upgrade_layout(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        players = data.get("players")
        if isinstance(players, list) and any(isinstance(p, str) for p in players):
            data["players"] = [
                {"id": f"p{i}", "pseudo": p} if isinstance(p, str) else p
                for i, p in enumerate(players, start=1)
            ]

        rounds = data.get("rounds")
        if isinstance(rounds, list):
            player_ids = [
                p.get("id") if isinstance(p, dict) else None
                for p in data.get("players") or []
            ]
            upgraded = []
            for round_ in rounds:
                if not isinstance(round_, dict):
                    upgraded.append(round_)
                    continue
                if "validatedAt" in round_ and round_["validatedAt"] is None:
                    # draft that was never committed
                    continue
                round_ = dict(round_)
                scores = round_.get("scores")
                if isinstance(scores, list):
                    round_["scores"] = {
                        pid: value
                        for pid, value in zip(player_ids, scores)
                        if pid is not None
                    }
                if round_.get("ts") is None:
                    round_["ts"] = round_.get("validatedAt") or data.get("startedAt")
                upgraded.append(round_)
            data["rounds"] = upgraded

        return data

    @field_validator("started_at", "updated_at", "ended_at", mode="after")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @model_validator(mode="after")
    def _check_players(self) -> SessionRecord:
        ids = [p.id for p in self.players]
        if len(set(ids)) != len(ids):
            raise ValueError("player ids must be unique within a session")
        return self


class SessionsEnvelope(BaseModel):
    """Top-level persisted collection. Records are validated one by one."""
    v: int = STORAGE_VERSION
    sessions: list[Any] = Field(default_factory=list)


# =============================================================================
# Conversion
# =============================================================================

def record_to_session(record: SessionRecord) -> Session:
    """Build a domain Session from a validated record."""
    players = [Player(player_id=p.id, pseudo=p.pseudo) for p in record.players]
    rounds = [
        Round(
            scores={p.player_id: r.scores.get(p.player_id, 0) for p in players},
            created_at=r.ts,
            validated_at=r.validated_at or r.ts,
        )
        for r in record.rounds
    ]
    return Session(
        session_id=record.id,
        game_id=record.game_id,
        game_name=record.game_name or record.game_id,
        accent=record.accent,
        label=record.label,
        started_at=record.started_at,
        updated_at=record.updated_at or record.started_at,
        ended_at=record.ended_at,
        pinned=record.pinned,
        players=players,
        rounds=rounds,
    )


def session_to_record(session: Session) -> SessionRecord:
    """Build the persisted record. The pending draft is not included."""
    return SessionRecord(
        id=session.session_id,
        game_id=session.game_id,
        game_name=session.game_name,
        accent=session.accent,
        label=session.label,
        started_at=session.started_at,
        updated_at=session.updated_at,
        ended_at=session.ended_at,
        pinned=session.pinned,
        players=[PlayerRecord(id=p.player_id, pseudo=p.pseudo) for p in session.players],
        rounds=[
            RoundRecord(
                ts=r.created_at,
                validated_at=r.validated_at,
                scores={pid: coerce_score(v) for pid, v in r.scores.items()},
            )
            for r in session.rounds
            if r.is_committed
        ],
    )


def encode_sessions(sessions: list[Session]) -> str:
    """Serialize the full collection to the storage string."""
    envelope = {
        "v": STORAGE_VERSION,
        "sessions": [
            session_to_record(s).model_dump(mode="json", by_alias=True)
            for s in sessions
        ],
    }
    return json.dumps(envelope, ensure_ascii=False)


def decode_sessions(raw: str | None, key: str = "sessions") -> list[Session]:
    """
    Parse the storage string.

    Raises StorageCorrupt when the envelope is unreadable. Individual
    records that fail validation are dropped and logged.
    """
    if raw is None or not raw.strip():
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StorageCorrupt(key, f"invalid JSON: {e}") from e
    except RecursionError as e:
        raise StorageCorrupt(key, "nesting too deep") from e

    if isinstance(data, list):
        data = {"v": STORAGE_VERSION, "sessions": data}
    try:
        envelope = SessionsEnvelope.model_validate(data)
    except ValidationError as e:
        raise StorageCorrupt(key, f"unexpected layout: {e.error_count()} error(s)") from e

    sessions = []
    for index, item in enumerate(envelope.sessions):
        try:
            record = SessionRecord.model_validate(item)
        except ValidationError as e:
            logger.warning(
                "Dropping unreadable session record #%d under %s: %s",
                index, key, e.errors(include_url=False)[0]["msg"],
            )
            continue
        sessions.append(record_to_session(record))
    return sessions
