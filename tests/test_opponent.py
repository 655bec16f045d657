from __future__ import annotations

import random

import pytest

from memorymind.engine.board import board_from_layout
from memorymind.engine.opponent import (
    ACCURACY_CEILING,
    PATTERN_WINDOW,
    OpponentMemoryModel,
)
from memorymind.engine.types import Board, Difficulty, default_difficulty_table


class FixedRandom(random.Random):
    """random() always returns the same value, so sample() picks are fixed too."""

    def __init__(self, value: float, seed: int = 0) -> None:
        super().__init__(seed)
        self.value = value

    def random(self) -> float:
        return self.value


def _board_4x4() -> Board:
    # pair p sits at p and p + 8; four symbols cycle, so each symbol shows 4 times
    return board_from_layout(4, 4, list(range(8)) * 2)


def _symbol_at(index: int) -> str:
    return _board_4x4().card(index).symbol


def _model(rng: random.Random | None = None, board: Board | None = None) -> OpponentMemoryModel:
    model = OpponentMemoryModel(default_difficulty_table(), rng=rng or random.Random(0))
    model.reset(board or _board_4x4())
    return model


def test_observation_retained_or_dropped_by_recall() -> None:
    remembers = _model(FixedRandom(0.0))
    assert remembers.observe(3, "square", was_human_move=True)
    assert remembers.belief.memory == {3: "square"}

    forgets = _model(FixedRandom(0.99))
    assert not forgets.observe(3, "square", was_human_move=True)
    assert forgets.belief.memory == {}
    # the recency log does not depend on recall
    assert list(forgets.belief.recent_human_choices) == [3]


def test_opponent_moves_are_not_logged_as_human_choices() -> None:
    model = _model(FixedRandom(0.0))
    model.observe(1, "circle", was_human_move=False)
    assert list(model.belief.recent_human_choices) == []
    assert model.belief.observations == 1


def test_recency_log_is_bounded() -> None:
    model = _model(FixedRandom(0.99))
    for i in range(PATTERN_WINDOW + 5):
        model.observe(i % 16, "star", was_human_move=True)
    recent = list(model.belief.recent_human_choices)
    assert len(recent) == PATTERN_WINDOW
    # oldest five evicted
    assert recent[0] == 5 % 16


def test_probabilities_follow_remaining_symbol_counts() -> None:
    model = _model(FixedRandom(0.0))
    model.observe(0, "star", was_human_move=True)
    assert 0 not in model.belief.probabilities
    assert model.match_probability(1, "star") == pytest.approx(3 / 15)
    assert model.match_probability(1, "circle") == pytest.approx(4 / 15)

    model.observe(8, "star", was_human_move=True)
    assert model.match_probability(2, "star") == pytest.approx(2 / 14)


def test_known_pair_wins_and_is_deterministic() -> None:
    model = _model()
    model.belief.memory.update({3: "square", 7: "square", 9: "circle", 1: "circle"})
    available = [1, 2, 3, 7, 9, 11]
    first = model.decide(available)
    assert first == (1, 9)
    for _ in range(10):
        assert model.decide(available) == first


def test_known_pair_ignores_unavailable_cards() -> None:
    model = _model(FixedRandom(0.99))
    model.belief.memory.update({3: "square", 11: "square"})
    move = model.decide([0, 1, 2, 3, 4])
    assert move is not None
    assert 11 not in move


def test_probability_strategy_pairs_known_with_likely_match() -> None:
    board = board_from_layout(2, 2, [0, 1, 0, 1])
    model = _model(FixedRandom(0.0), board)
    model.observe(0, "star", was_human_move=True)
    # one star left among three unknown cards: 1/3 clears the threshold
    assert model.match_probability(1, "star") == pytest.approx(1 / 3)
    assert model.decide([0, 1, 2, 3]) == (0, 1)


def test_probability_below_threshold_falls_through_to_exploration() -> None:
    model = _model(FixedRandom(0.99))
    model.belief.memory[0] = "star"
    model._update_probabilities()
    move = model.decide(list(range(16)))
    assert move is not None
    assert 0 not in move
    assert move[0] != move[1]


def test_exploration_fallback_when_few_unknowns() -> None:
    model = _model(FixedRandom(0.99))
    model.belief.memory.update({0: "star", 1: "circle"})
    model._update_probabilities()
    move = model.decide([0, 1, 2])
    assert move is not None
    assert move[0] != move[1]
    assert set(move) <= {0, 1, 2}


def test_exploration_biased_toward_favored_area() -> None:
    # random() == 0.0 always takes the 30% area bias
    model = _model(FixedRandom(0.0, seed=5))
    model.belief.recent_human_choices.extend([0, 1, 4, 5, 0])
    analysis = model.analyze_patterns()
    assert analysis.predicted_areas == ((0, 0),)
    assert analysis.confidence == pytest.approx(1.0)
    for _ in range(20):
        move = model.decide(list(range(16)))
        assert move is not None
        assert set(move) <= {0, 1, 4, 5}


def test_pattern_analysis_needs_three_samples() -> None:
    model = _model()
    model.belief.recent_human_choices.extend([0, 15])
    analysis = model.analyze_patterns()
    assert analysis.predicted_areas == ()
    assert analysis.confidence == 0.0


def test_pattern_analysis_ranks_top_two_areas() -> None:
    model = _model()
    # (0,0) x3, (1,1) x2, (0,1) x1
    model.belief.recent_human_choices.extend([0, 1, 4, 15, 10, 2])
    analysis = model.analyze_patterns()
    assert analysis.predicted_areas == ((0, 0), (1, 1))
    assert analysis.confidence == pytest.approx(0.5)


def test_decide_never_repeats_or_leaves_available() -> None:
    rng = random.Random(1234)
    model = _model(random.Random(42))
    for _ in range(300):
        model.reset(_board_4x4())
        for i in rng.sample(range(16), rng.randrange(0, 12)):
            model.belief.memory[i] = _symbol_at(i)
        model._update_probabilities()
        available = sorted(rng.sample(range(16), rng.randrange(2, 17)))
        move = model.decide(available)
        assert move is not None
        assert move[0] != move[1]
        assert move[0] in available and move[1] in available


def test_single_available_index_does_not_raise() -> None:
    model = _model()
    assert model.decide([7]) == (7, 7)
    assert model.decide([]) is None


def test_recall_accuracy_drift_is_bounded() -> None:
    table = default_difficulty_table()
    rng = random.Random(7)
    for level in Difficulty:
        model = OpponentMemoryModel(table, difficulty=level, rng=random.Random(1))
        floor = 0.8 * table.get(level).base_accuracy
        for _ in range(400):
            was_match = rng.random() < 0.5
            model.record_outcome((0, 1), was_match, ("star", "star" if was_match else "circle"))
            assert floor - 1e-9 <= model.belief.recall_accuracy <= ACCURACY_CEILING + 1e-9


def test_recall_accuracy_steps() -> None:
    model = _model()
    assert model.belief.recall_accuracy == pytest.approx(0.7)
    model.record_outcome((0, 8), True, ("star", "star"))
    assert model.belief.recall_accuracy == pytest.approx(0.71)
    model.record_outcome((0, 1), False, ("star", "circle"))
    assert model.belief.recall_accuracy == pytest.approx(0.705)
    for _ in range(200):
        model.record_outcome((0, 1), False, ("star", "circle"))
    assert model.belief.recall_accuracy == pytest.approx(0.56)


def test_exploration_rate_tracks_confirmed_symbols() -> None:
    model = _model()
    assert model.stats().exploration_rate_percent == 30
    model.record_outcome((0, 8), True, ("star", "star"))
    assert model.belief.exploration_rate == pytest.approx(0.4)
    model.record_outcome((4, 12), True, ("star", "star"))
    assert model.belief.exploration_rate == pytest.approx(0.4)
    for sym in ("circle", "triangle", "square"):
        model.record_outcome((0, 0), True, (sym, sym))
    assert model.belief.exploration_rate == pytest.approx(0.1)


def test_configure_known_and_unknown_levels() -> None:
    model = _model(FixedRandom(0.0))
    model.observe(0, "star", was_human_move=True)

    assert not model.configure("grandmaster")
    assert model.difficulty == Difficulty.BEGINNER
    assert model.belief.memory == {0: "star"}

    assert model.configure("expert")
    assert model.difficulty == Difficulty.EXPERT
    assert model.belief.memory == {}
    assert model.belief.recall_accuracy == pytest.approx(0.98)
    assert model.accuracy_floor == pytest.approx(0.784)


def test_stats_snapshot() -> None:
    model = _model(FixedRandom(0.0))
    model.observe(0, "star", was_human_move=True)
    model.observe(8, "star", was_human_move=True)
    model.record_outcome((0, 8), True, ("star", "star"))
    stats = model.stats()
    assert stats.recall_accuracy_percent == 71
    assert stats.known_card_count == 2
    assert stats.known_pair_count == 1
    assert stats.exploration_rate_percent == 40
    assert stats.difficulty == Difficulty.BEGINNER
    assert (stats.turn_count, stats.match_count) == (1, 1)

    model.record_outcome((1, 2), False, ("circle", "triangle"))
    later = model.stats()
    assert (later.turn_count, later.match_count) == (2, 1)
    assert model.belief.history[-1].indices == (1, 2)

    model.reset(_board_4x4())
    assert model.stats().turn_count == 0


def test_thinking_delay_grows_with_memory() -> None:
    model = _model(FixedRandom(0.0))
    assert model.thinking_delay() == pytest.approx(1.5 * 0.8)
    for i in range(8):
        model.observe(i, _symbol_at(i), was_human_move=False)
    assert model.thinking_delay() == pytest.approx(1.5 * 1.5 * 0.8)


def test_reset_keeps_difficulty_and_drift() -> None:
    model = _model(FixedRandom(0.0))
    model.configure(Difficulty.ADVANCED)
    model.record_outcome((0, 8), True, ("star", "star"))
    model.observe(2, "triangle", was_human_move=True)
    model.reset()
    assert model.difficulty == Difficulty.ADVANCED
    assert model.belief.memory == {}
    assert list(model.belief.recent_human_choices) == []
    assert model.belief.recall_accuracy == pytest.approx(0.96)
