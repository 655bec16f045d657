from __future__ import annotations

from dataclasses import asdict

from .events import (
    BoardReady,
    CardHidden,
    CardRevealed,
    Event,
    MatchFinished,
    PairMatched,
    ScoreChanged,
    StatsChanged,
    TurnChanged,
)
from .match import MatchState
from .types import Board, MatchResult, OpponentStats


def _stats_to_dict(s: OpponentStats) -> dict[str, object]:
    return {
        "recall_accuracy_percent": s.recall_accuracy_percent,
        "known_card_count": s.known_card_count,
        "known_pair_count": s.known_pair_count,
        "exploration_rate_percent": s.exploration_rate_percent,
        "difficulty": s.difficulty.value,
        "turn_count": s.turn_count,
        "match_count": s.match_count,
    }


def result_to_dict(r: MatchResult) -> dict[str, object]:
    return {
        "winner": r.winner,
        "player_score": r.player_score,
        "opponent_score": r.opponent_score,
        "total_moves": r.total_moves,
        "elapsed_seconds": r.elapsed_seconds,
        "difficulty": r.difficulty.value,
    }


def board_to_dict(b: Board) -> dict[str, object]:
    return {
        "rows": b.rows,
        "cols": b.cols,
        "cards": [asdict(c) for c in b.cards],
    }


def event_to_dict(e: Event) -> dict[str, object]:
    if isinstance(e, BoardReady):
        return {"type": "board_ready", "rows": e.rows, "cols": e.cols, "cards": [asdict(c) for c in e.cards]}
    if isinstance(e, CardRevealed):
        return {"type": "card_revealed", "index": e.index, "symbol": e.symbol, "player": e.player}
    if isinstance(e, CardHidden):
        return {"type": "card_hidden", "index": e.index}
    if isinstance(e, PairMatched):
        return {"type": "pair_matched", "indices": list(e.indices), "player": e.player}
    if isinstance(e, TurnChanged):
        return {"type": "turn_changed", "active_player": e.active_player}
    if isinstance(e, ScoreChanged):
        return {"type": "score_changed", "player_score": e.player_score, "opponent_score": e.opponent_score}
    if isinstance(e, StatsChanged):
        return {"type": "stats_changed", "stats": _stats_to_dict(e.stats)}
    if isinstance(e, MatchFinished):
        return {"type": "match_finished", "result": result_to_dict(e.result)}
    # should be unreachable
    return {"type": "unknown"}


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    return {
        "board": board_to_dict(state.board),
        "difficulty": state.difficulty.value,
        "phase": state.phase.value,
        "active_player": state.active_player,
        "scores": dict(state.scores),
        "moves": state.moves,
        "matched_pairs": [list(p) for p in state.matched_pairs],
        "revealed": list(state.revealed),
        "active": state.active,
        "stalled": state.stalled,
        "result": result_to_dict(state.result) if state.result is not None else None,
        "event_log": [event_to_dict(e) for e in state.event_log],
    }
