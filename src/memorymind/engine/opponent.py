from __future__ import annotations

import logging
import random
from collections import Counter, deque
from collections.abc import Sequence
from dataclasses import dataclass, field

from .board import area_of, symbol_census
from .types import Board, Difficulty, DifficultyProfile, DifficultyTable, OpponentStats

log = logging.getLogger(__name__)

Move = tuple[int, int]

PATTERN_WINDOW = 20
MIN_PATTERN_SAMPLES = 3
MATCH_PROBABILITY_THRESHOLD = 0.3
AREA_CONFIDENCE_THRESHOLD = 0.4
AREA_BIAS_CHANCE = 0.3

ACCURACY_CEILING = 0.99
ACCURACY_MATCH_STEP = 0.01
ACCURACY_MISS_STEP = 0.005
ACCURACY_FLOOR_FACTOR = 0.8

EXPLORATION_INITIAL = 0.3
EXPLORATION_BASE = 0.5
EXPLORATION_SLOPE = 0.4
EXPLORATION_MIN = 0.1

BASE_THINKING_SECONDS = 1.5


@dataclass(frozen=True)
class PatternAnalysis:
    predicted_areas: tuple[tuple[int, int], ...]
    confidence: float


@dataclass(frozen=True)
class MoveRecord:
    indices: tuple[int, int]
    was_match: bool
    symbols: tuple[str, str]
    observation: int


@dataclass
class OpponentBelief:
    """Everything the opponent remembers about the current match."""

    recall_accuracy: float
    exploration_rate: float = EXPLORATION_INITIAL
    memory: dict[int, str] = field(default_factory=dict)
    probabilities: dict[int, dict[str, float]] = field(default_factory=dict)
    recent_human_choices: deque[int] = field(default_factory=lambda: deque(maxlen=PATTERN_WINDOW))
    confirmed_symbols: set[str] = field(default_factory=set)
    history: list[MoveRecord] = field(default_factory=list)
    observations: int = 0

    def clear(self) -> None:
        # accuracy and exploration rate carry on; configure() resets accuracy
        self.memory.clear()
        self.probabilities.clear()
        self.recent_human_choices.clear()
        self.confirmed_symbols.clear()
        self.history.clear()
        self.observations = 0


class OpponentMemoryModel:
    """Synthetic opponent with imperfect memory of revealed cards.

    Moves come from three strategies tried in order: a pair already held in
    memory, an unknown card likely to match a remembered one, then exploration
    of unknown cards (sometimes steered toward where the human has been
    clicking). Recall accuracy drifts with results between a per-difficulty
    floor and a global ceiling.
    """

    def __init__(
        self,
        table: DifficultyTable,
        difficulty: Difficulty = Difficulty.BEGINNER,
        rng: random.Random | None = None,
    ) -> None:
        self._table = table
        self._rng = rng or random.Random()
        self._difficulty = difficulty
        self._profile = table.get(difficulty)
        self.belief = OpponentBelief(recall_accuracy=self.base_accuracy)
        self._rows = self._profile.rows
        self._cols = self._profile.cols
        self._size = self._profile.card_count
        self._symbol_totals: dict[str, int] = symbol_census(self._rows, self._cols)
        self.reset()

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def profile(self) -> DifficultyProfile:
        return self._profile

    @property
    def base_accuracy(self) -> float:
        return min(ACCURACY_CEILING, self._profile.base_accuracy)

    @property
    def accuracy_floor(self) -> float:
        return self._profile.base_accuracy * ACCURACY_FLOOR_FACTOR

    def configure(self, level: Difficulty | str) -> bool:
        difficulty = Difficulty.parse(level)
        if difficulty is None:
            log.warning("Ignoring unknown difficulty %r; keeping %s", level, self._difficulty.value)
            return False
        self._difficulty = difficulty
        self._profile = self._table.get(difficulty)
        self.belief.recall_accuracy = self.base_accuracy
        self.belief.exploration_rate = EXPLORATION_INITIAL
        self.reset()
        log.debug("Opponent configured for %s", difficulty.value)
        return True

    def reset(self, board: Board | None = None) -> None:
        self.belief.clear()
        if board is None:
            self._rows, self._cols = self._profile.rows, self._profile.cols
            self._size = self._rows * self._cols
            self._symbol_totals = symbol_census(self._rows, self._cols)
        else:
            self._rows, self._cols = board.rows, board.cols
            self._size = board.size
            self._symbol_totals = board.symbol_counts()
        self._update_probabilities()

    def observe(self, index: int, symbol: str, was_human_move: bool) -> bool:
        """Feed one card reveal. Returns True if it made it into memory."""
        belief = self.belief
        retained = self._rng.random() < belief.recall_accuracy
        if retained:
            belief.memory[index] = symbol
            self._update_probabilities()
        if was_human_move:
            belief.recent_human_choices.append(index)
        belief.observations += 1
        return retained

    def _update_probabilities(self) -> None:
        belief = self.belief
        believed = Counter(belief.memory.values())
        unknown = self._size - len(belief.memory)
        belief.probabilities.clear()
        if unknown <= 0:
            return
        for i in range(self._size):
            if i in belief.memory:
                continue
            belief.probabilities[i] = {
                s: max(0.0, (total - believed[s]) / unknown) for s, total in self._symbol_totals.items()
            }

    def match_probability(self, index: int, symbol: str) -> float:
        return self.belief.probabilities.get(index, {}).get(symbol, 0.0)

    def decide(self, available: Sequence[int]) -> Move | None:
        """Pick two cards to reveal from `available`.

        With at least two distinct indices the result is always two distinct
        members of `available`. A single index comes back paired with itself;
        an empty sequence yields None.
        """
        choices = list(dict.fromkeys(available))
        if len(choices) < 2:
            log.warning("Opponent asked to move with %d selectable card(s)", len(choices))
            if not choices:
                return None
            return (choices[0], choices[0])

        move = self._known_pair(choices)
        if move is not None:
            log.debug("Known pair %s", move)
            return move

        move = self._probable_match(choices)
        if move is not None:
            log.debug("Probable match %s", move)
            return move

        move = self._explore(choices)
        log.debug("Exploring %s", move)
        return move

    def _known_pair(self, available: Sequence[int]) -> Move | None:
        memory = self.belief.memory
        known = [i for i in available if i in memory]
        for a_pos, a in enumerate(known):
            for b in known[a_pos + 1 :]:
                if memory[a] == memory[b]:
                    return (a, b)
        return None

    def _probable_match(self, available: Sequence[int]) -> Move | None:
        memory = self.belief.memory
        selectable = set(available)
        unknown = [i for i in available if i not in memory]
        for known_index, known_symbol in memory.items():
            if known_index not in selectable:
                continue
            best: tuple[float, int] | None = None
            for i in unknown:
                p = self.match_probability(i, known_symbol)
                if p <= MATCH_PROBABILITY_THRESHOLD:
                    continue
                if best is None or p > best[0]:
                    best = (p, i)
            if best is not None:
                return (known_index, best[1])
        return None

    def _explore(self, available: Sequence[int]) -> Move:
        unknown = [i for i in available if i not in self.belief.memory]
        if len(unknown) < 2:
            return self._pick_two(available)

        analysis = self.analyze_patterns()
        if analysis.confidence > AREA_CONFIDENCE_THRESHOLD and self._rng.random() < AREA_BIAS_CHANCE:
            favored = [i for i in unknown if area_of(i, self._cols) in analysis.predicted_areas]
            if len(favored) >= 2:
                return self._pick_two(favored)

        return self._pick_two(unknown)

    def _pick_two(self, pool: Sequence[int]) -> Move:
        first, second = self._rng.sample(list(pool), 2)
        return (first, second)

    def analyze_patterns(self) -> PatternAnalysis:
        """Ranks 2x2 areas by how often the human picked cards there."""
        recent = self.belief.recent_human_choices
        if len(recent) < MIN_PATTERN_SAMPLES:
            return PatternAnalysis(predicted_areas=(), confidence=0.0)
        counts = Counter(area_of(i, self._cols) for i in recent)
        top = counts.most_common(2)
        return PatternAnalysis(
            predicted_areas=tuple(area for area, _ in top),
            confidence=top[0][1] / len(recent),
        )

    def record_outcome(self, indices: Sequence[int], was_match: bool, symbols: Sequence[str]) -> None:
        belief = self.belief
        first, second = indices[0], indices[1]
        belief.history.append(
            MoveRecord(
                indices=(first, second),
                was_match=was_match,
                symbols=(symbols[0], symbols[1]),
                observation=belief.observations,
            )
        )
        if was_match:
            belief.confirmed_symbols.add(symbols[0])
            belief.recall_accuracy = min(ACCURACY_CEILING, belief.recall_accuracy + ACCURACY_MATCH_STEP)
        else:
            belief.recall_accuracy = max(self.accuracy_floor, belief.recall_accuracy - ACCURACY_MISS_STEP)

        alphabet = max(1, len(self._symbol_totals))
        progress = len(belief.confirmed_symbols) / alphabet
        belief.exploration_rate = max(EXPLORATION_MIN, EXPLORATION_BASE - progress * EXPLORATION_SLOPE)

    def thinking_delay(self) -> float:
        """Seconds of apparent deliberation before a move."""
        complexity = len(self.belief.memory) / self._size if self._size else 0.0
        return BASE_THINKING_SECONDS * (1.0 + complexity) * self._profile.thinking_multiplier

    def stats(self) -> OpponentStats:
        belief = self.belief
        return OpponentStats(
            recall_accuracy_percent=round(belief.recall_accuracy * 100),
            known_card_count=len(belief.memory),
            known_pair_count=len(belief.confirmed_symbols),
            exploration_rate_percent=round(belief.exploration_rate * 100),
            difficulty=self._difficulty,
            turn_count=len(belief.history),
            match_count=sum(1 for rec in belief.history if rec.was_match),
        )
