from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from memorymind.engine.types import Difficulty, MatchResult

log = logging.getLogger(__name__)


@dataclass
class GameStats:
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "GameStats":
        def count(key: str) -> int:
            v = d.get(key, 0)
            return v if isinstance(v, int) and v >= 0 else 0

        return GameStats(
            games_played=count("games_played"),
            wins=count("wins"),
            losses=count("losses"),
            ties=count("ties"),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "games_played": self.games_played,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
        }


@dataclass
class Records:
    version: int = 1
    difficulty: Difficulty = Difficulty.BEGINNER
    stats: GameStats = field(default_factory=GameStats)

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "Records":
        stats_raw = d.get("stats", {})
        return Records(
            version=1,
            difficulty=Difficulty.parse(d.get("difficulty")) or Difficulty.BEGINNER,
            stats=GameStats.from_dict(stats_raw) if isinstance(stats_raw, dict) else GameStats(),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "difficulty": self.difficulty.value,
            "stats": self.stats.to_dict(),
        }


class RecordsService:
    """Saved difficulty choice and lifetime win/loss/tie counts."""

    def __init__(self, path: Path, schema_path: Path | None = None) -> None:
        self._path = path
        self._schema: object | None = None
        if schema_path is not None:
            self._schema = json.loads(schema_path.read_text(encoding="utf-8"))
        self.records = self._load_or_create()

    def _load_or_create(self) -> Records:
        if not self._path.exists():
            return Records()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            log.warning("Unreadable records file %s (%s); starting fresh", self._path, e)
            return Records()
        if not isinstance(raw, dict):
            return Records()
        if self._schema is not None:
            errors = list(Draft202012Validator(self._schema).iter_errors(raw))
            if errors:
                log.warning("Records file %s failed validation: %s", self._path, errors[0].message)
        return Records.from_dict(raw)

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self.records.to_dict(), indent=2), encoding="utf-8")

    def set_difficulty(self, difficulty: Difficulty) -> None:
        self.records.difficulty = difficulty
        self.save()

    def apply_match_result(self, result: MatchResult) -> GameStats:
        stats = self.records.stats
        stats.games_played += 1
        if result.winner == "player":
            stats.wins += 1
        elif result.winner == "opponent":
            stats.losses += 1
        else:
            stats.ties += 1
        self.save()
        return stats
