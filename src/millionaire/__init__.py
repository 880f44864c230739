"""Single-player money-ladder quiz with lifelines and generated questions."""

from . import narrator
from .core import bank, engine, ladder, lifelines, schemas, timer
from .utils import rng

from .core.engine import GameEngine, GameStartError, GameSnapshot, EngineListener  # noqa: F401

__all__ = [
    "bank",
    "engine",
    "ladder",
    "lifelines",
    "narrator",
    "rng",
    "schemas",
    "timer",
    "GameEngine",
    "GameStartError",
    "GameSnapshot",
    "EngineListener",
]
