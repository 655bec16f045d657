from __future__ import annotations

import random
from collections import Counter
from collections.abc import Sequence

from .types import SYMBOLS, Board, Card


class BoardError(ValueError):
    pass


def _check_shape(rows: int, cols: int) -> int:
    if rows <= 0 or cols <= 0:
        raise BoardError("Board dimensions must be positive.")
    size = rows * cols
    if size % 2 != 0:
        raise BoardError(f"A {rows}x{cols} board has an odd number of cards.")
    return size


def symbol_for_pair(pair_id: int, symbols: Sequence[str] = SYMBOLS) -> str:
    # Pairs cycle through the alphabet, so one symbol may label several pairs.
    return symbols[pair_id % len(symbols)]


def area_of(index: int, cols: int) -> tuple[int, int]:
    """2x2 grid cell holding `index` on a board `cols` wide."""
    row, col = divmod(index, cols)
    return (row // 2, col // 2)


def symbol_census(rows: int, cols: int, symbols: Sequence[str] = SYMBOLS) -> dict[str, int]:
    """Symbol totals of any board generated with these dimensions."""
    size = _check_shape(rows, cols)
    counts: Counter[str] = Counter()
    for pair_id in range(size // 2):
        counts[symbol_for_pair(pair_id, symbols)] += 2
    return dict(counts)


def generate_board(
    rows: int,
    cols: int,
    rng: random.Random,
    symbols: Sequence[str] = SYMBOLS,
) -> Board:
    """Builds rows*cols/2 pairs and shuffles them with `rng`.

    The shuffle is the only use of `rng`, so a seeded generator always yields
    the same layout.
    """
    if not symbols:
        raise BoardError("Symbol alphabet is empty.")
    size = _check_shape(rows, cols)
    pair_ids: list[int] = []
    for pair_id in range(size // 2):
        pair_ids.extend((pair_id, pair_id))
    rng.shuffle(pair_ids)
    return board_from_layout(rows, cols, pair_ids, symbols)


def board_from_layout(
    rows: int,
    cols: int,
    pair_ids: Sequence[int],
    symbols: Sequence[str] = SYMBOLS,
) -> Board:
    size = _check_shape(rows, cols)
    if len(pair_ids) != size:
        raise BoardError(f"Layout has {len(pair_ids)} cards, expected {size}.")
    cards = tuple(
        Card(index=i, symbol=symbol_for_pair(pid, symbols), pair_id=pid) for i, pid in enumerate(pair_ids)
    )
    board = Board(rows=rows, cols=cols, cards=cards)
    validate_board(board)
    return board


def validate_board(board: Board) -> None:
    if board.rows * board.cols != board.size:
        raise BoardError("Board dimensions do not match card count.")
    positions: dict[int, list[Card]] = {}
    for i, card in enumerate(board.cards):
        if card.index != i:
            raise BoardError(f"Card at position {i} claims index {card.index}.")
        positions.setdefault(card.pair_id, []).append(card)
    for pair_id, cards in positions.items():
        if len(cards) != 2:
            raise BoardError(f"Pair {pair_id} appears {len(cards)} times.")
        if cards[0].symbol != cards[1].symbol:
            raise BoardError(f"Pair {pair_id} has mismatched symbols.")
