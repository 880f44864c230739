"""Seedable randomness helpers shared by the engine, lifelines and sampler."""

import random
from typing import List, Sequence, TypeVar

T = TypeVar("T")


def build_rng(*, seed: int | None = None) -> random.Random:
    """Return a random generator, deterministic when a seed is given."""
    return random.Random(seed)


def shuffled(rng: random.Random, items: Sequence[T]) -> List[T]:
    """Return a shuffled copy of ``items``, leaving the input untouched."""
    result = list(items)
    rng.shuffle(result)
    return result
