from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Literal

Player = Literal["player", "opponent"]
Winner = Literal["player", "opponent", "tie"]

PLAYERS: tuple[Player, Player] = ("player", "opponent")

SYMBOLS: tuple[str, ...] = ("star", "circle", "triangle", "square")


def other_player(player: Player) -> Player:
    return "opponent" if player == "player" else "player"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @classmethod
    def parse(cls, value: object) -> "Difficulty | None":
        """Returns the matching level, or None for anything unrecognized."""
        if isinstance(value, Difficulty):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class DifficultyProfile:
    rows: int
    cols: int
    base_accuracy: float
    thinking_multiplier: float = 1.0

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ValueError("Board dimensions must be positive.")
        if (self.rows * self.cols) % 2 != 0:
            raise ValueError(f"{self.rows}x{self.cols} board has an odd number of cards.")
        if not 0.0 < self.base_accuracy <= 1.0:
            raise ValueError("base_accuracy must be in (0, 1].")
        if self.thinking_multiplier < 0:
            raise ValueError("thinking_multiplier must be non-negative.")

    @property
    def card_count(self) -> int:
        return self.rows * self.cols

    @property
    def pair_count(self) -> int:
        return self.card_count // 2


@dataclass(frozen=True)
class DifficultyTable:
    """Profile for every difficulty level."""

    profiles: Mapping[Difficulty, DifficultyProfile]

    def __post_init__(self) -> None:
        missing = [d.value for d in Difficulty if d not in self.profiles]
        if missing:
            raise ValueError(f"Missing difficulty profiles: {', '.join(missing)}")

    def get(self, level: Difficulty) -> DifficultyProfile:
        return self.profiles[level]

    def levels(self) -> Sequence[Difficulty]:
        return list(Difficulty)


def default_difficulty_table() -> DifficultyTable:
    return DifficultyTable(
        profiles={
            Difficulty.BEGINNER: DifficultyProfile(rows=4, cols=4, base_accuracy=0.7, thinking_multiplier=0.8),
            Difficulty.INTERMEDIATE: DifficultyProfile(rows=4, cols=6, base_accuracy=0.85, thinking_multiplier=1.0),
            Difficulty.ADVANCED: DifficultyProfile(rows=6, cols=6, base_accuracy=0.95, thinking_multiplier=1.2),
            Difficulty.EXPERT: DifficultyProfile(rows=6, cols=8, base_accuracy=0.98, thinking_multiplier=1.5),
        }
    )


@dataclass(frozen=True)
class Card:
    index: int
    symbol: str
    pair_id: int


@dataclass(frozen=True)
class Board:
    rows: int
    cols: int
    cards: tuple[Card, ...]

    @property
    def size(self) -> int:
        return len(self.cards)

    @property
    def pair_count(self) -> int:
        return len(self.cards) // 2

    def card(self, index: int) -> Card:
        return self.cards[index]

    def symbol_counts(self) -> dict[str, int]:
        return dict(Counter(c.symbol for c in self.cards))


@dataclass(frozen=True)
class OpponentStats:
    recall_accuracy_percent: int
    known_card_count: int
    known_pair_count: int
    exploration_rate_percent: int
    difficulty: Difficulty
    turn_count: int = 0
    match_count: int = 0


@dataclass(frozen=True)
class MatchResult:
    winner: Winner
    player_score: int
    opponent_score: int
    total_moves: int
    elapsed_seconds: int
    difficulty: Difficulty
