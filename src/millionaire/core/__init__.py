"""Core game rules, state machine and question data."""

from . import bank, engine, ladder, lifelines, schemas, timer

__all__ = ["bank", "engine", "ladder", "lifelines", "schemas", "timer"]
