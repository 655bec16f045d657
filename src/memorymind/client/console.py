from __future__ import annotations

import argparse
import asyncio
import random
import sys
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TextIO

from memorymind.engine.events import (
    CardHidden,
    CardRevealed,
    Event,
    EventSink,
    MatchFinished,
    PairMatched,
    StatsChanged,
    TurnChanged,
)
from memorymind.engine.match import MatchController, MatchState, MatchTiming
from memorymind.engine.types import Difficulty
from memorymind.log import setup_logging
from memorymind.paths import get_paths
from memorymind.services.content import ContentService
from memorymind.services.records import RecordsService
from memorymind.services.telemetry import TelemetryService, TelemetrySink

SYMBOL_GLYPHS = {"star": "*", "circle": "o", "triangle": "^", "square": "#"}


def render_board(state: MatchState) -> str:
    lines: list[str] = []
    board = state.board
    for row in range(board.rows):
        cells: list[str] = []
        for col in range(board.cols):
            i = row * board.cols + col
            if state.is_matched(i):
                cells.append("  .  ")
            elif i in state.revealed:
                glyph = SYMBOL_GLYPHS.get(board.card(i).symbol, "?")
                cells.append(f" [{glyph}] ")
            else:
                cells.append(f" {i:>3} ")
        lines.append("".join(cells))
    return "\n".join(lines)


@dataclass
class ConsoleSink:
    out: TextIO
    forward: list[EventSink] = field(default_factory=list)

    def emit(self, event: Event) -> None:
        for sink in self.forward:
            sink.emit(event)
        msg = self._describe(event)
        if msg:
            print(msg, file=self.out)

    def _describe(self, event: Event) -> str:
        if isinstance(event, CardRevealed):
            who = "You" if event.player == "player" else "Opponent"
            return f"{who} revealed card {event.index}: {event.symbol}"
        if isinstance(event, CardHidden):
            return f"Card {event.index} flipped back."
        if isinstance(event, PairMatched):
            who = "You" if event.player == "player" else "Opponent"
            return f"{who} found a match! {list(event.indices)}"
        if isinstance(event, TurnChanged):
            return "Your turn." if event.active_player == "player" else "Opponent's turn..."
        if isinstance(event, StatsChanged):
            s = event.stats
            return (
                f"  [opponent] recall {s.recall_accuracy_percent}%, knows {s.known_card_count} cards, "
                f"{s.known_pair_count} symbols confirmed, exploring {s.exploration_rate_percent}%"
            )
        if isinstance(event, MatchFinished):
            r = event.result
            headline = {
                "player": "Congratulations! You beat the opponent!",
                "opponent": "The opponent wins this round. Try again?",
                "tie": "It's a tie! Great game!",
            }[r.winner]
            return (
                f"{headline}\nScore {r.player_score}-{r.opponent_score} in {r.total_moves} moves, "
                f"{r.elapsed_seconds}s ({r.difficulty.value})"
            )
        return ""


async def run_console(
    controller: MatchController,
    read_line: Callable[[str], str] = input,
    out: TextIO | None = None,
    on_difficulty: Callable[[Difficulty], None] | None = None,
) -> MatchState | None:
    """Plays one match. Returns the final state, or None if the player quit."""
    stream = out or sys.stdout
    state = controller.state
    while state.active:
        print(render_board(state), file=stream)
        raw = read_line("card (q to quit, r to restart, d <level> for difficulty)> ").strip().lower()
        if raw in ("q", "quit"):
            return None
        if raw in ("r", "restart"):
            res = await controller.request_restart()
            if not res.ok:
                print(res.error, file=stream)
            state = controller.state
            continue
        if raw.startswith("d "):
            res = await controller.request_difficulty_change(raw[2:])
            if not res.ok:
                print(res.error, file=stream)
            elif on_difficulty is not None:
                on_difficulty(controller.difficulty)
            state = controller.state
            continue
        try:
            index = int(raw)
        except ValueError:
            print("Enter a card number.", file=stream)
            continue
        res = await controller.request_reveal(index)
        if not res.ok:
            print(res.error, file=stream)
        if res.stalled:
            print("The match cannot continue.", file=stream)
            return state
    print(render_board(state), file=stream)
    return state


def main() -> int:
    parser = argparse.ArgumentParser(prog="memorymind")
    parser.add_argument("--difficulty", choices=[d.value for d in Difficulty], default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--fast", action="store_true", help="skip pacing delays")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--userdata", type=Path, default=None)
    args = parser.parse_args()

    paths = get_paths(args.userdata)
    setup_logging(verbose=args.verbose, log_file=paths.log_path)

    content = ContentService(paths.data_dir, paths.schema_dir)
    table = content.load_difficulty_table()
    records = RecordsService(paths.records_path, paths.schema_dir / "records.schema.json")
    telemetry = TelemetryService(paths.telemetry_path, session_id=uuid.uuid4().hex)

    difficulty = Difficulty.parse(args.difficulty) or records.records.difficulty
    if difficulty != records.records.difficulty:
        records.set_difficulty(difficulty)

    sink = ConsoleSink(out=sys.stdout, forward=[TelemetrySink(telemetry)])
    controller = MatchController(
        table,
        sink=sink,
        difficulty=difficulty,
        rng=random.Random(args.seed),
        timing=MatchTiming.instant() if args.fast else MatchTiming(),
    )
    controller.start()

    final = asyncio.run(run_console(controller, on_difficulty=records.set_difficulty))
    if final is not None and final.result is not None:
        stats = records.apply_match_result(final.result)
        print(
            f"Games {stats.games_played}: {stats.wins} won, {stats.losses} lost, {stats.ties} tied",
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
