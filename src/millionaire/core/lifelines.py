"""Random draws behind the fifty-fifty and audience-poll lifelines."""

from __future__ import annotations

import math
import random
from typing import Iterable, List

from ..utils.rng import shuffled
from .schemas import CHOICE_COUNT

POLL_CORRECT_BASE = 40.0
POLL_CORRECT_SPREAD = 30.0
POLL_POOL_SHARE = 0.6
POLL_MIN_SHARE = 5.0


def fifty_fifty_eliminations(rng: random.Random, correct_index: int) -> List[int]:
    """Pick two distinct incorrect choices to hide."""
    incorrect = [index for index in range(CHOICE_COUNT) if index != correct_index]
    return shuffled(rng, incorrect)[:2]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def audience_poll(
    rng: random.Random,
    correct_index: int,
    eliminated: Iterable[int] = (),
) -> List[int]:
    """Generate a synthetic audience vote over the four choices.

    The correct choice starts with a share drawn from [40, 70). Each remaining eligible
    choice, in index order, takes a random slice of at most 60% of what is left of the
    pool, but never less than 5. Eliminated choices get exactly 0. Any leftover goes to
    a random eligible incorrect choice, or to the correct choice when none is eligible.

    Values are rounded half-up independently, so the total can drift from 100 by a point
    or two; the floor of 5 can also overdraw the pool. Neither is normalised away.
    """
    hidden = set(eliminated)
    results = [0.0] * CHOICE_COUNT

    correct_share = POLL_CORRECT_BASE + rng.random() * POLL_CORRECT_SPREAD
    results[correct_index] = correct_share

    remaining = 100.0 - correct_share
    for index in range(CHOICE_COUNT):
        if index == correct_index or remaining <= 0:
            continue
        if index in hidden:
            results[index] = 0.0
            continue
        portion = rng.random() * remaining * POLL_POOL_SHARE
        results[index] = max(POLL_MIN_SHARE, portion)
        remaining -= results[index]

    if remaining > 0:
        eligible = [
            index for index in range(CHOICE_COUNT)
            if index != correct_index and index not in hidden
        ]
        if eligible:
            results[rng.choice(eligible)] += remaining
        else:
            results[correct_index] += remaining

    return [_round_half_up(value) for value in results]
