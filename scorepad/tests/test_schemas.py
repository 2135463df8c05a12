"""
Tests for persisted record schemas.

Validates that:
- Written records use the camelCase layout
- Timestamps are ISO-8601 on write, ISO or epoch millis on read
- Older layouts are upgraded on read
- Unreadable envelopes raise StorageCorrupt
"""

import json
import pytest
from datetime import datetime, timezone

from ..errors import StorageCorrupt
from ..session.models import Player, Round, Session
from ..storage.schemas import SessionRecord, decode_sessions, encode_sessions
from .conftest import START


def sample_session() -> Session:
    return Session(
        session_id="s1",
        game_id="g1",
        game_name="Game One",
        accent="#f97316",
        label="Friday",
        started_at=START,
        updated_at=START,
        players=[Player("p1", "JKA"), Player("p2", "BOB")],
        rounds=[Round(scores={"p1": 3, "p2": 5}, created_at=START, validated_at=START)],
    )


class TestEncode:
    """Tests for the written layout."""

    def test_camel_case_layout(self):
        data = json.loads(encode_sessions([sample_session()]))
        record = data["sessions"][0]

        assert data["v"] == 1
        assert record["id"] == "s1"
        assert record["gameId"] == "g1"
        assert record["gameName"] == "Game One"
        assert record["endedAt"] is None
        assert record["pinned"] is False
        assert record["players"] == [{"id": "p1", "pseudo": "JKA"}, {"id": "p2", "pseudo": "BOB"}]
        assert record["rounds"][0]["scores"] == {"p1": 3, "p2": 5}

    def test_timestamps_are_iso_strings(self):
        record = json.loads(encode_sessions([sample_session()]))["sessions"][0]
        parsed = datetime.fromisoformat(record["startedAt"].replace("Z", "+00:00"))
        assert parsed == START

    def test_draft_rounds_are_not_written(self):
        session = sample_session()
        session.pending_round = Round(scores={"p1": 1, "p2": 1}, created_at=START)
        record = json.loads(encode_sessions([session]))["sessions"][0]
        assert len(record["rounds"]) == 1

    def test_decode_of_encoded_collection(self):
        original = sample_session()
        decoded = decode_sessions(encode_sessions([original]))
        assert decoded == [original]


class TestDecodeLegacy:
    """Older layouts are readable."""

    def test_bare_array_envelope(self):
        records = json.loads(encode_sessions([sample_session()]))["sessions"]
        decoded = decode_sessions(json.dumps(records))
        assert [s.session_id for s in decoded] == ["s1"]

    def test_epoch_millis_and_positional_scores(self):
        millis = int(START.timestamp() * 1000)
        raw = json.dumps([{
            "v": 2,
            "id": "m1",
            "gameId": "skyjo",
            "players": ["ANA", "LEO", "MIA"],
            "rounds": [
                {"scores": [10, 4, 7], "validatedAt": millis + 60_000},
                {"scores": [1, 2, 3], "validatedAt": None},
            ],
            "startedAt": millis,
            "endedAt": None,
            "pinned": True,
        }])

        [session] = decode_sessions(raw)
        assert session.started_at == START
        assert session.updated_at == START
        assert session.game_name == "skyjo"
        assert session.pinned is True
        assert [(p.player_id, p.pseudo) for p in session.players] == [
            ("p1", "ANA"), ("p2", "LEO"), ("p3", "MIA"),
        ]
        # the never-validated round is dropped
        assert len(session.rounds) == 1
        assert session.rounds[0].scores == {"p1": 10, "p2": 4, "p3": 7}
        assert session.rounds[0].validated_at.tzinfo is not None

    def test_missing_scores_filled_and_unknown_dropped(self):
        record = json.loads(encode_sessions([sample_session()]))["sessions"][0]
        record["rounds"][0]["scores"] = {"p1": "4", "ghost": 9}
        [session] = decode_sessions(json.dumps({"sessions": [record]}))
        assert session.rounds[0].scores == {"p1": 4, "p2": 0}

    def test_naive_timestamps_are_utc(self):
        record = json.loads(encode_sessions([sample_session()]))["sessions"][0]
        record["startedAt"] = "2026-10-18T20:00:00"
        [session] = decode_sessions(json.dumps({"sessions": [record]}))
        assert session.started_at == datetime(2026, 10, 18, 20, 0, tzinfo=timezone.utc)

    def test_duplicate_player_ids_reject_record(self):
        with pytest.raises(ValueError):
            SessionRecord.model_validate({
                "id": "x",
                "gameId": "g1",
                "startedAt": "2026-10-18T20:00:00Z",
                "players": [{"id": "p1", "pseudo": "A"}, {"id": "p1", "pseudo": "B"}],
            })


class TestDecodeErrors:
    """Unreadable envelopes."""

    def test_empty_values(self):
        assert decode_sessions(None) == []
        assert decode_sessions("") == []
        assert decode_sessions("   ") == []

    @pytest.mark.parametrize("raw", ["{oops", "null", "true", '{"sessions": 3}'])
    def test_corrupt_envelope(self, raw):
        with pytest.raises(StorageCorrupt):
            decode_sessions(raw, key="k")
