from typing import List, Optional

import pytest

from millionaire.core.engine import EngineListener, GameEngine
from millionaire.core.ladder import difficulty_for_level
from millionaire.core.schemas import Question


def make_question(number: int, *, correct_index: int = 0, category: str = "Science") -> Question:
    return Question(
        id=f"q-{number}",
        category=category,
        difficulty=difficulty_for_level(min(number, 15)),
        prompt=f"Question number {number}?",
        choices=(f"{number}-a", f"{number}-b", f"{number}-c", f"{number}-d"),
        correct_index=correct_index,
    )


class StaticSource:
    """Question source returning prepared questions in order."""

    def __init__(self, questions: List[Question]):
        self.questions = list(questions)
        self.calls: List[tuple] = []

    async def generate(self, categories, count):
        self.calls.append((list(categories), count))
        batch, self.questions = self.questions[:count], self.questions[count:]
        return batch


class FailingSource:
    def __init__(self):
        self.calls = 0

    async def generate(self, categories, count):
        self.calls += 1
        raise RuntimeError("network unreachable")


class RecordingListener(EngineListener):
    def __init__(self):
        self.states = []
        self.ticks = []
        self.resolutions = []
        self.endings = []
        self.polls = []

    def on_state_changed(self, snapshot, provisional_choice: Optional[int]) -> None:
        self.states.append((snapshot, provisional_choice))

    def on_timer_tick(self, remaining: int, total: int) -> None:
        self.ticks.append((remaining, total))

    def on_answer_resolved(self, correct, locked_choice, correct_index) -> None:
        self.resolutions.append((correct, locked_choice, correct_index))

    def on_game_ended(self, title: str, winnings: int) -> None:
        self.endings.append((title, winnings))

    def on_poll_results(self, percentages) -> None:
        self.polls.append(list(percentages))


@pytest.fixture()
def ladder_questions() -> List[Question]:
    # Question n has correct answer at (n % 4)
    return [make_question(n, correct_index=n % 4) for n in range(1, 16)]


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture()
def make_engine(listener):
    """Build an engine with a slow tick so tests control time explicitly."""

    def factory(questions=None, *, extra=(), tick_interval=60.0, **kwargs) -> GameEngine:
        source = StaticSource(list(questions or []) + list(extra)) if questions is not None else None
        engine = GameEngine(source=source, seed=7, tick_interval=tick_interval, **kwargs)
        engine.subscribe(listener)
        return engine

    return factory
