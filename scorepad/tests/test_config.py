"""
Tests for site and game configuration loading.
"""

import json
import pytest
from datetime import timedelta

from ..config import (
    GameCatalog,
    GameDescriptor,
    SiteConfig,
    data_dir,
    load_game_catalog,
    load_site_config,
)
from ..errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SCOREPAD_DATA_DIR", "SCOREPAD_SITE_CONFIG", "SCOREPAD_GAMES_CONFIG", "SCOREPAD_TTL_HOURS"):
        monkeypatch.delenv(name, raising=False)


def _write(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return path


class TestSiteConfig:
    def test_defaults(self):
        site = load_site_config()
        assert site.site_name == "ScorePad"
        assert site.ui.default_accent == "#6ee7ff"
        assert site.ttl == timedelta(hours=24)

    def test_camel_case_file(self, tmp_path):
        path = _write(tmp_path, "site.config.json", {
            "siteName": "Game Night",
            "tagline": "Scores, locally",
            "ui": {"defaultAccent": "#ff0000"},
            "storage": {"ttlHours": 48},
        })
        site = load_site_config(path)
        assert site.site_name == "Game Night"
        assert site.ui.default_accent == "#ff0000"
        assert site.ttl == timedelta(hours=48)

    def test_path_from_env(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "site.json", {"siteName": "From Env"})
        monkeypatch.setenv("SCOREPAD_SITE_CONFIG", str(path))
        assert load_site_config().site_name == "From Env"

    def test_ttl_override(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "site.json", {"storage": {"ttlHours": 48}})
        monkeypatch.setenv("SCOREPAD_TTL_HOURS", "6")
        assert load_site_config(path).ttl == timedelta(hours=6)

    @pytest.mark.parametrize("value", ["soon", "-1"])
    def test_bad_ttl_override(self, monkeypatch, value):
        monkeypatch.setenv("SCOREPAD_TTL_HOURS", value)
        with pytest.raises(ConfigError):
            load_site_config()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_site_config(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = _write(tmp_path, "site.json", "{broken")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_site_config(path)

    def test_not_an_object(self, tmp_path):
        path = _write(tmp_path, "site.json", [1, 2])
        with pytest.raises(ConfigError):
            load_site_config(path)

    def test_negative_ttl_in_file(self, tmp_path):
        path = _write(tmp_path, "site.json", {"storage": {"ttlHours": -3}})
        with pytest.raises(ConfigError):
            load_site_config(path)

    def test_model_accepts_field_names(self):
        assert SiteConfig(site_name="Direct").site_name == "Direct"


class TestGameDescriptor:
    def test_scoring_help_aliases(self):
        a = GameDescriptor.model_validate({"id": "a", "name": "A", "scoringHelp": "low wins"})
        b = GameDescriptor.model_validate({"id": "b", "name": "B", "scoringInfo": "high wins"})
        assert a.scoring_help == "low wins"
        assert b.scoring_help == "high wins"

    def test_camel_case_bounds(self):
        game = GameDescriptor.model_validate({"id": "g", "name": "G", "minPlayers": 3, "maxPlayers": 5})
        assert (game.min_players, game.max_players) == (3, 5)

    def test_max_below_min(self):
        with pytest.raises(ValueError):
            GameDescriptor(id="g", name="G", min_players=4, max_players=2)

    @pytest.mark.parametrize("requested, expected", [
        (None, 2),
        (1, 2),
        (3, 3),
        (12, 6),
    ])
    def test_clamp_players(self, requested, expected):
        game = GameDescriptor(id="g", name="G", min_players=2, max_players=6)
        assert game.clamp_players(requested) == expected

    def test_frozen(self):
        game = GameDescriptor(id="g", name="G")
        with pytest.raises(ValueError):
            game.name = "Other"


class TestGameCatalog:
    def test_load_object_layout(self, tmp_path):
        path = _write(tmp_path, "games.config.json", {"games": [
            {"id": "skyjo", "name": "Skyjo", "minPlayers": 2, "maxPlayers": 8},
            {"id": "yahtzee", "name": "Yahtzee", "accent": "#22c55e"},
        ]})
        catalog = load_game_catalog(path)
        assert catalog.ids() == ["skyjo", "yahtzee"]
        assert "skyjo" in catalog
        assert catalog.get("yahtzee").accent == "#22c55e"
        assert catalog.get("missing") is None
        assert len(catalog) == 2

    def test_load_bare_list(self):
        catalog = GameCatalog.from_data([{"id": "a", "name": "A"}])
        assert [g.id for g in catalog] == ["a"]

    def test_path_from_env(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "games.json", [{"id": "a", "name": "A"}])
        monkeypatch.setenv("SCOREPAD_GAMES_CONFIG", str(path))
        assert load_game_catalog().ids() == ["a"]

    def test_empty_without_path(self):
        assert len(load_game_catalog()) == 0

    def test_duplicate_ids(self):
        with pytest.raises(ConfigError, match="Duplicate"):
            GameCatalog.from_data([{"id": "a", "name": "A"}, {"id": "a", "name": "Again"}])

    def test_invalid_descriptor(self):
        with pytest.raises(ConfigError):
            GameCatalog.from_data({"games": [{"id": "", "name": "Blank"}]})

    def test_wrong_shape(self):
        with pytest.raises(ConfigError):
            GameCatalog.from_data("skyjo")


class TestDataDir:
    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCOREPAD_DATA_DIR", str(tmp_path))
        assert data_dir() == tmp_path

    def test_default(self):
        assert data_dir().name == ".scorepad"
