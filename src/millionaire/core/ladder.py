"""Money ladder and level rules for the quiz.

This module defines the static prize ladder, the checkpoint (safe-haven) levels and
the per-tier timer durations. Everything here is immutable process-wide configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Tuple


class Difficulty(str, Enum):
    """Difficulty tiers of the ladder."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class LadderEntry:
    """A single rung of the money ladder."""

    level: int
    amount: int


LADDER: Tuple[LadderEntry, ...] = (
    LadderEntry(1, 100),
    LadderEntry(2, 200),
    LadderEntry(3, 300),
    LadderEntry(4, 500),
    LadderEntry(5, 1_000),
    LadderEntry(6, 2_000),
    LadderEntry(7, 4_000),
    LadderEntry(8, 8_000),
    LadderEntry(9, 16_000),
    LadderEntry(10, 32_000),
    LadderEntry(11, 64_000),
    LadderEntry(12, 125_000),
    LadderEntry(13, 250_000),
    LadderEntry(14, 500_000),
    LadderEntry(15, 1_000_000),
)

CHECKPOINTS: FrozenSet[int] = frozenset({5, 10})
MAX_LEVEL = 15

TIMER_SECONDS: Dict[Difficulty, int] = {
    Difficulty.EASY: 30,
    Difficulty.MEDIUM: 45,
    Difficulty.HARD: 60,
}

CATEGORIES: Tuple[str, ...] = (
    "General Knowledge",
    "Science",
    "Geography",
    "Movies",
    "Sports",
    "History",
    "Music",
    "Technology",
    "Physics",
    "Literature",
    "Mathematics",
    "Chemistry",
    "World History",
)

_PRIZES: Dict[int, int] = {entry.level: entry.amount for entry in LADDER}


def difficulty_for_level(level: int) -> Difficulty:
    """Return the difficulty tier of a level (1-5 easy, 6-10 medium, 11+ hard)."""
    if level <= 5:
        return Difficulty.EASY
    if level <= 10:
        return Difficulty.MEDIUM
    return Difficulty.HARD


def time_for_level(level: int) -> int:
    """Return the countdown length in seconds for a level."""
    return TIMER_SECONDS[difficulty_for_level(level)]


def prize_for_level(level: int) -> int:
    """Return the prize for a level, or 0 for levels not on the ladder."""
    return _PRIZES.get(level, 0)


def is_checkpoint(level: int) -> bool:
    return level in CHECKPOINTS


def last_checkpoint_at_or_below(level: int) -> int:
    """Return the highest checkpoint level that is <= ``level`` (0 if none)."""
    reached = [checkpoint for checkpoint in CHECKPOINTS if checkpoint <= level]
    return max(reached) if reached else 0


def format_money(amount: int) -> str:
    """Format an amount the way the ladder displays it, e.g. ``$1,000,000``."""
    return f"${amount:,}"
