from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from .board import generate_board, validate_board
from .events import (
    BoardReady,
    CardHidden,
    CardRevealed,
    Event,
    EventSink,
    MatchFinished,
    NullSink,
    PairMatched,
    ScoreChanged,
    StatsChanged,
    TurnChanged,
)
from .opponent import Move, OpponentMemoryModel
from .types import (
    Board,
    Difficulty,
    DifficultyProfile,
    DifficultyTable,
    MatchResult,
    OpponentStats,
    Player,
    Winner,
    other_player,
)

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class Opponent(Protocol):
    @property
    def difficulty(self) -> Difficulty: ...

    def configure(self, level: Difficulty | str) -> bool: ...

    def reset(self, board: Board | None = None) -> None: ...

    def observe(self, index: int, symbol: str, was_human_move: bool) -> bool: ...

    def decide(self, available: Sequence[int]) -> Move | None: ...

    def record_outcome(self, indices: Sequence[int], was_match: bool, symbols: Sequence[str]) -> None: ...

    def thinking_delay(self) -> float: ...

    def stats(self) -> OpponentStats: ...


class MatchPhase(str, Enum):
    SETUP = "setup"
    PLAYER_TURN = "player_turn"
    OPPONENT_TURN = "opponent_turn"
    FINISHED = "finished"


@dataclass(frozen=True)
class MatchTiming:
    mismatch_delay: float = 1.5
    opponent_turn_delay: float = 1.0
    opponent_card_delay: float = 0.5
    opponent_thinking: bool = True

    @staticmethod
    def instant() -> "MatchTiming":
        return MatchTiming(
            mismatch_delay=0.0,
            opponent_turn_delay=0.0,
            opponent_card_delay=0.0,
            opponent_thinking=False,
        )


@dataclass
class MatchState:
    board: Board
    difficulty: Difficulty
    started_at: float
    matched_pairs: list[tuple[int, int]] = field(default_factory=list)
    revealed: list[int] = field(default_factory=list)
    active_player: Player = "player"
    scores: dict[Player, int] = field(default_factory=lambda: {"player": 0, "opponent": 0})
    moves: int = 0
    active: bool = True
    phase: MatchPhase = MatchPhase.SETUP
    stalled: bool = False
    result: MatchResult | None = None
    event_log: list[Event] = field(default_factory=list)

    @property
    def total_pairs(self) -> int:
        return self.board.pair_count

    @property
    def matched_count(self) -> int:
        return len(self.matched_pairs)

    def is_matched(self, index: int) -> bool:
        return any(index in pair for pair in self.matched_pairs)

    def available_indices(self) -> list[int]:
        return [
            i for i in range(self.board.size) if i not in self.revealed and not self.is_matched(i)
        ]


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None
    stalled: bool = False


class MatchController:
    """Turn state machine for one human against the opponent model.

    Waits (mismatch flip-back, opponent pacing) are awaited inside the
    resolution cycle. While a cycle is in flight every other request is
    rejected, so nothing else can touch the match state until it completes.
    """

    def __init__(
        self,
        table: DifficultyTable,
        opponent: Opponent | None = None,
        sink: EventSink | None = None,
        *,
        difficulty: Difficulty = Difficulty.BEGINNER,
        rng: random.Random | None = None,
        sleep: Sleep | None = None,
        clock: Callable[[], float] = time.monotonic,
        timing: MatchTiming | None = None,
    ) -> None:
        self._table = table
        self._rng = rng or random.Random()
        self._opponent: Opponent = opponent or OpponentMemoryModel(
            table, difficulty=difficulty, rng=random.Random(self._rng.getrandbits(64))
        )
        if self._opponent.difficulty != difficulty:
            self._opponent.configure(difficulty)
        self._sink: EventSink = sink or NullSink()
        self._sleep: Sleep = sleep or asyncio.sleep
        self._clock = clock
        self._timing = timing or MatchTiming()
        self._difficulty = difficulty
        self._busy = False
        self._state: MatchState | None = None

    @property
    def state(self) -> MatchState:
        if self._state is None:
            raise RuntimeError("Match not started.")
        return self._state

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def profile(self) -> DifficultyProfile:
        return self._table.get(self._difficulty)

    @property
    def opponent(self) -> Opponent:
        return self._opponent

    @property
    def busy(self) -> bool:
        return self._busy

    def start(self, board: Board | None = None) -> MatchState:
        """Discards any previous match and deals a new one.

        Refused while a resolution cycle is in flight or a card is face up;
        the current match is returned unchanged in that case.
        """
        error = self._between_cycles_error()
        if error is not None:
            log.warning("Ignoring start: %s", error)
            return self.state
        return self._deal(board)

    def _deal(self, board: Board | None) -> MatchState:
        if board is None:
            profile = self.profile
            board = generate_board(profile.rows, profile.cols, self._rng)
        else:
            validate_board(board)

        self._state = MatchState(board=board, difficulty=self._difficulty, started_at=self._clock())
        self._opponent.reset(board)

        state = self._state
        self._emit(BoardReady(rows=board.rows, cols=board.cols, cards=board.cards))
        state.phase = MatchPhase.PLAYER_TURN
        self._emit(TurnChanged(active_player=state.active_player))
        self._emit(ScoreChanged(player_score=0, opponent_score=0))
        self._emit(StatsChanged(stats=self._opponent.stats()))
        log.info(
            "New match: %s, %dx%d, %d pairs",
            self._difficulty.value,
            board.rows,
            board.cols,
            board.pair_count,
        )
        return state

    def available_indices(self) -> list[int]:
        return self.state.available_indices()

    def _emit(self, event: Event) -> None:
        self.state.event_log.append(event)
        self._sink.emit(event)

    def _reveal_error(self, player: Player, index: int) -> str | None:
        state = self.state
        if not state.active:
            return "Match is over."
        if state.active_player != player:
            return "Not your turn."
        if index < 0 or index >= state.board.size:
            return "No such card."
        if index in state.revealed:
            return "Card already revealed."
        if state.is_matched(index):
            return "Card already matched."
        if len(state.revealed) >= 2:
            return "Two cards already revealed."
        return None

    async def request_reveal(self, index: int) -> StepResult:
        if self._busy:
            return StepResult(ok=False, events=[], error="Resolution in progress.")
        error = self._reveal_error("player", index)
        if error is not None:
            log.debug("Ignoring reveal of %d: %s", index, error)
            return StepResult(ok=False, events=[], error=error)

        state = self.state
        before = len(state.event_log)
        self._busy = True
        try:
            self._reveal(index, "player")
            if len(state.revealed) == 2:
                await self._resolve()
                await self._run_opponent()
        finally:
            self._busy = False
        return StepResult(ok=True, events=state.event_log[before:], stalled=state.stalled)

    async def request_restart(self, board: Board | None = None) -> StepResult:
        error = self._between_cycles_error()
        if error is not None:
            log.debug("Ignoring restart: %s", error)
            return StepResult(ok=False, events=[], error=error)
        state = self._deal(board)
        return StepResult(ok=True, events=list(state.event_log))

    async def request_difficulty_change(self, level: Difficulty | str) -> StepResult:
        difficulty = Difficulty.parse(level)
        if difficulty is None:
            log.warning("Ignoring unknown difficulty %r", level)
            return StepResult(ok=False, events=[], error="Unknown difficulty.")
        error = self._between_cycles_error()
        if error is not None:
            log.debug("Ignoring difficulty change: %s", error)
            return StepResult(ok=False, events=[], error=error)
        self._opponent.configure(difficulty)
        self._difficulty = difficulty
        log.info("Difficulty changed to %s", difficulty.value)
        state = self._deal(None)
        return StepResult(ok=True, events=list(state.event_log))

    def _between_cycles_error(self) -> str | None:
        if self._busy:
            return "Resolution in progress."
        if self._state is not None and self._state.active and self._state.revealed:
            return "A card is revealed."
        return None

    def _reveal(self, index: int, player: Player) -> None:
        state = self.state
        card = state.board.card(index)
        state.revealed.append(index)
        self._emit(CardRevealed(index=index, symbol=card.symbol, player=player))
        self._opponent.observe(index, card.symbol, was_human_move=player == "player")

    async def _resolve(self) -> None:
        state = self.state
        first, second = state.revealed
        card_a = state.board.card(first)
        card_b = state.board.card(second)
        player = state.active_player
        state.moves += 1

        is_match = card_a.pair_id == card_b.pair_id
        if is_match:
            state.matched_pairs.append((first, second))
            state.scores[player] += 1
            self._emit(PairMatched(indices=(first, second), player=player))
            self._emit(ScoreChanged(player_score=state.scores["player"], opponent_score=state.scores["opponent"]))
        else:
            await self._sleep(self._timing.mismatch_delay)
            self._emit(CardHidden(index=first))
            self._emit(CardHidden(index=second))

        self._opponent.record_outcome((first, second), is_match, (card_a.symbol, card_b.symbol))
        self._emit(StatsChanged(stats=self._opponent.stats()))
        state.revealed.clear()

        if state.matched_count == state.total_pairs:
            self._finish()
            return

        if not is_match:
            state.active_player = other_player(player)
            state.phase = MatchPhase.PLAYER_TURN if state.active_player == "player" else MatchPhase.OPPONENT_TURN
            self._emit(TurnChanged(active_player=state.active_player))

    async def _run_opponent(self) -> None:
        state = self.state
        while state.active and state.active_player == "opponent":
            available = state.available_indices()
            if len(available) < 2:
                log.warning("Opponent cannot move: %d selectable card(s) left", len(available))
                state.stalled = True
                return

            await self._sleep(self._timing.opponent_turn_delay)
            if self._timing.opponent_thinking:
                await self._sleep(self._opponent.thinking_delay())

            move = self._opponent.decide(available)
            if move is None or move[0] == move[1] or not set(move) <= set(available):
                log.warning("Opponent produced an unusable move %r", move)
                state.stalled = True
                return

            first, second = move
            self._reveal(first, "opponent")
            await self._sleep(self._timing.opponent_card_delay)
            self._reveal(second, "opponent")
            await self._resolve()

    def _finish(self) -> None:
        state = self.state
        state.active = False
        state.phase = MatchPhase.FINISHED

        player_score = state.scores["player"]
        opponent_score = state.scores["opponent"]
        winner: Winner = "tie"
        if player_score > opponent_score:
            winner = "player"
        elif opponent_score > player_score:
            winner = "opponent"

        state.result = MatchResult(
            winner=winner,
            player_score=player_score,
            opponent_score=opponent_score,
            total_moves=state.moves,
            elapsed_seconds=int(self._clock() - state.started_at),
            difficulty=state.difficulty,
        )
        self._emit(MatchFinished(result=state.result))
        log.info("Match finished: %s (%d-%d)", winner, player_score, opponent_score)
