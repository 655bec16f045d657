from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .types import Card, MatchResult, OpponentStats, Player


@dataclass(frozen=True)
class BoardReady:
    rows: int
    cols: int
    cards: tuple[Card, ...]


@dataclass(frozen=True)
class CardRevealed:
    index: int
    symbol: str
    player: Player


@dataclass(frozen=True)
class CardHidden:
    index: int


@dataclass(frozen=True)
class PairMatched:
    indices: tuple[int, int]
    player: Player


@dataclass(frozen=True)
class TurnChanged:
    active_player: Player


@dataclass(frozen=True)
class ScoreChanged:
    player_score: int
    opponent_score: int


@dataclass(frozen=True)
class StatsChanged:
    stats: OpponentStats


@dataclass(frozen=True)
class MatchFinished:
    result: MatchResult


Event = (
    BoardReady
    | CardRevealed
    | CardHidden
    | PairMatched
    | TurnChanged
    | ScoreChanged
    | StatsChanged
    | MatchFinished
)


class EventSink(Protocol):
    def emit(self, event: Event) -> None: ...


class NullSink:
    def emit(self, event: Event) -> None:
        return None


@dataclass
class RecordingSink:
    """Keeps every event in order; handy for tests and replays."""

    events: list[Event] = field(default_factory=list)

    def emit(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list[Event]:
        return [e for e in self.events if isinstance(e, kind)]

    def clear(self) -> None:
        self.events.clear()
