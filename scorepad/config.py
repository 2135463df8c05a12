"""
Configuration - Site descriptor and game catalog.

Both are read-only inputs resolved by the caller and handed to the core.
The JSON files use camelCase keys:

    site.config.json
        {"siteName": "ScorePad", "tagline": "...", "footerText": "...",
         "ui": {"defaultAccent": "#6ee7ff"}, "storage": {"ttlHours": 24}}

    games.config.json
        {"games": [{"id": "skyjo", "name": "Skyjo", "accent": "#38bdf8",
                    "minPlayers": 2, "maxPlayers": 8,
                    "scoringHelp": "...", "rulesPdf": "rules/skyjo.pdf"}]}

Environment overrides:
    SCOREPAD_DATA_DIR       Directory for the file-backed store
    SCOREPAD_SITE_CONFIG    Path to the site descriptor
    SCOREPAD_GAMES_CONFIG   Path to the game catalog
    SCOREPAD_TTL_HOURS      Retention TTL, overrides storage.ttlHours
"""

from __future__ import annotations
import json
import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Iterator, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigError

DEFAULT_ACCENT = "#6ee7ff"
DEFAULT_TTL_HOURS = 24
DEFAULT_DATA_DIR = Path.home() / ".scorepad"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UISettings(_CamelModel):
    default_accent: str = DEFAULT_ACCENT


class StorageSettings(_CamelModel):
    ttl_hours: int = Field(DEFAULT_TTL_HOURS, ge=0)

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.ttl_hours)


class SiteConfig(_CamelModel):
    """Site descriptor."""
    site_name: str = "ScorePad"
    tagline: str = ""
    footer_text: str = ""
    ui: UISettings = Field(default_factory=UISettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def ttl(self) -> timedelta:
        return self.storage.ttl


class GameDescriptor(_CamelModel):
    """
    A game the user can keep score for.

    Not owned by the core: sessions copy the name and accent at start so
    history stays readable when the catalog changes.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    accent: Optional[str] = None
    min_players: int = Field(2, ge=1)
    max_players: int = Field(10, ge=1)
    scoring_help: Optional[str] = Field(
        None, validation_alias=AliasChoices("scoringHelp", "scoringInfo", "scoring_help")
    )
    rules_pdf: Optional[str] = None
    logo: Optional[str] = None

    @model_validator(mode="after")
    def _check_player_bounds(self) -> GameDescriptor:
        if self.max_players < self.min_players:
            raise ValueError(
                f"maxPlayers ({self.max_players}) must be >= minPlayers ({self.min_players})"
            )
        return self

    def clamp_players(self, count: int | None) -> int:
        """Clamp a requested player count to this game's bounds."""
        if count is None:
            return self.min_players
        return min(self.max_players, max(self.min_players, int(count)))


class GameCatalog:
    """Ordered collection of game descriptors, looked up by id."""

    def __init__(self, games: list[GameDescriptor] | None = None):
        self._games: dict[str, GameDescriptor] = {}
        for game in games or []:
            if game.id in self._games:
                raise ConfigError(f"Duplicate game id in catalog: {game.id}")
            self._games[game.id] = game

    @classmethod
    def from_data(cls, data: Any) -> GameCatalog:
        """Build from parsed JSON: ``{"games": [...]}`` or a bare list."""
        if isinstance(data, dict):
            data = data.get("games", [])
        if not isinstance(data, list):
            raise ConfigError("Game catalog must be a list or an object with a 'games' list")
        try:
            games = [GameDescriptor.model_validate(item) for item in data]
        except ValidationError as e:
            raise ConfigError(f"Invalid game descriptor: {e}") from e
        return cls(games)

    def get(self, game_id: str) -> GameDescriptor | None:
        return self._games.get(game_id)

    def ids(self) -> list[str]:
        return list(self._games)

    def __contains__(self, game_id: object) -> bool:
        return game_id in self._games

    def __iter__(self) -> Iterator[GameDescriptor]:
        return iter(self._games.values())

    def __len__(self) -> int:
        return len(self._games)


def _read_json(path: str | Path) -> Any:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file is not valid JSON: {path}: {e}") from e


def load_site_config(path: str | Path | None = None) -> SiteConfig:
    """
    Load the site descriptor.

    With no path and no SCOREPAD_SITE_CONFIG, defaults are returned.
    SCOREPAD_TTL_HOURS wins over the file's storage.ttlHours.
    """
    path = path or os.getenv("SCOREPAD_SITE_CONFIG")
    data = _read_json(path) if path else {}
    if not isinstance(data, dict):
        raise ConfigError("Site config must be a JSON object")

    try:
        site = SiteConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid site config: {e}") from e

    ttl_override = os.getenv("SCOREPAD_TTL_HOURS")
    if ttl_override:
        try:
            ttl_hours = int(ttl_override)
        except ValueError as e:
            raise ConfigError(f"SCOREPAD_TTL_HOURS must be an integer, got {ttl_override!r}") from e
        if ttl_hours < 0:
            raise ConfigError("SCOREPAD_TTL_HOURS must be >= 0")
        site = site.model_copy(update={"storage": StorageSettings(ttl_hours=ttl_hours)})

    return site


def load_game_catalog(path: str | Path | None = None) -> GameCatalog:
    """
    Load the game catalog.

    With no path and no SCOREPAD_GAMES_CONFIG, the catalog is empty.
    """
    path = path or os.getenv("SCOREPAD_GAMES_CONFIG")
    if not path:
        return GameCatalog()
    return GameCatalog.from_data(_read_json(path))


def data_dir() -> Path:
    """Directory used by the file-backed store."""
    value = os.getenv("SCOREPAD_DATA_DIR")
    return Path(value).expanduser() if value else DEFAULT_DATA_DIR
