from __future__ import annotations

import asyncio
import json
import random

from memorymind.engine.board import generate_board
from memorymind.engine.events import RecordingSink
from memorymind.engine.match import MatchController
from memorymind.engine.serialize import snapshot
from memorymind.engine.types import Difficulty, default_difficulty_table


async def _instant(seconds: float) -> None:
    return None


def _play(seed: int, human_seed: int, difficulty: Difficulty = Difficulty.BEGINNER) -> dict[str, object]:
    controller = MatchController(
        default_difficulty_table(),
        sink=RecordingSink(),
        difficulty=difficulty,
        rng=random.Random(seed),
        sleep=_instant,
        clock=lambda: 0.0,
    )
    controller.start()
    human = random.Random(human_seed)
    for _ in range(2000):
        state = controller.state
        if not state.active:
            break
        asyncio.run(controller.request_reveal(human.choice(state.available_indices())))
    return snapshot(controller.state)


def test_seeded_match_replays_identically() -> None:
    snap1 = _play(seed=424242, human_seed=7)
    snap2 = _play(seed=424242, human_seed=7)
    assert snap1 == snap2
    assert snap1["phase"] == "finished"


def test_snapshot_is_json_serializable() -> None:
    snap = _play(seed=5, human_seed=6, difficulty=Difficulty.ADVANCED)
    text = json.dumps(snap)
    assert json.loads(text)["difficulty"] == "advanced"
    log = snap["event_log"]
    assert isinstance(log, list)
    assert log[0]["type"] == "board_ready"
    assert log[-1]["type"] == "match_finished"


def test_board_only_depends_on_seed() -> None:
    a = generate_board(6, 8, random.Random(1))
    b = generate_board(6, 8, random.Random(1))
    assert a == b


def test_event_dicts_carry_type() -> None:
    snap = _play(seed=9, human_seed=10)
    types = {e["type"] for e in snap["event_log"]}  # type: ignore[index, union-attr]
    assert {"board_ready", "card_revealed", "pair_matched", "turn_changed", "score_changed"} <= types
    assert "unknown" not in types
