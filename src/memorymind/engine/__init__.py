"""Headless opponent and turn engine for MemoryMind.

IMPORTANT: This package must never touch the filesystem or import from
`memorymind.services` / `memorymind.client`.
"""

from .board import BoardError, generate_board
from .events import EventSink, RecordingSink
from .match import MatchController, MatchPhase, MatchState, MatchTiming, StepResult
from .opponent import OpponentMemoryModel
from .types import Board, Card, Difficulty, DifficultyProfile, DifficultyTable, MatchResult, OpponentStats

__all__ = [
    "Board",
    "BoardError",
    "Card",
    "Difficulty",
    "DifficultyProfile",
    "DifficultyTable",
    "EventSink",
    "MatchController",
    "MatchPhase",
    "MatchResult",
    "MatchState",
    "MatchTiming",
    "OpponentMemoryModel",
    "OpponentStats",
    "RecordingSink",
    "StepResult",
    "generate_board",
]
