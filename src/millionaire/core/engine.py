"""Game engine owning the ladder quiz state machine."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

import structlog

from ..utils.rng import build_rng
from .bank import FALLBACK_QUESTIONS, sample_fallback_questions
from .ladder import (
    MAX_LEVEL,
    last_checkpoint_at_or_below,
    prize_for_level,
    time_for_level,
)
from .lifelines import audience_poll, fifty_fifty_eliminations
from .schemas import CHOICE_COUNT, Question
from .timer import DEFAULT_TICK_INTERVAL, QuestionTimer

LOGGER = structlog.get_logger(__name__)

DEFAULT_INFO_MESSAGE_SECONDS = 3.0
NO_ALTERNATIVE_MESSAGE = "No alternative question available"

TITLE_GAME_OVER = "Game Over!"
TITLE_TIME_UP = "Time's up! Game Over!"
TITLE_WALK_AWAY = "You walked away with:"
TITLE_MILLIONAIRE = "Congratulations! You're a MILLIONAIRE!"


class Phase(str, Enum):
    """Engine phases as seen by the presentation layer."""

    IDLE = "IDLE"
    AWAITING_CHOICE = "AWAITING_CHOICE"
    ANSWER_LOCKED = "ANSWER_LOCKED"
    TERMINAL = "TERMINAL"


class QuestionSource(Protocol):
    """Anything that can asynchronously produce validated questions."""

    async def generate(self, categories: Sequence[str], count: int) -> List[Question]:
        ...


@dataclass
class LifelineUsage:
    """Which lifelines have been spent. Flags only ever go from False to True."""

    fifty_fifty: bool = False
    audience: bool = False
    switch: bool = False


@dataclass
class GameState:
    """Mutable game aggregate. Only :class:`GameEngine` mutates it."""

    questions: List[Question]
    selected_categories: FrozenSet[str]

    level: int = 1
    current_question_index: int = 0
    seen_question_ids: Set[str] = field(default_factory=set)
    eliminated_choices: Set[int] = field(default_factory=set)
    locked_choice: Optional[int] = None
    answered: bool = False
    correct: Optional[bool] = None
    poll_results: Optional[List[int]] = None
    used_lifelines: LifelineUsage = field(default_factory=LifelineUsage)
    remaining_time: int = field(default_factory=lambda: time_for_level(1))
    last_safe_level: int = 0
    winnings: int = 0
    game_over: bool = False
    info_message: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.questions:
            raise ValueError("GameState requires at least one question")
        if not self.seen_question_ids:
            self.seen_question_ids.add(self.questions[0].id)

    def current_question(self) -> Question:
        return self.questions[self.current_question_index]

    def upcoming_question_ids(self) -> Set[str]:
        return {question.id for question in self.questions[self.current_question_index + 1:]}

    def reset_question_fields(self) -> None:
        self.answered = False
        self.correct = None
        self.locked_choice = None
        self.eliminated_choices = set()
        self.poll_results = None


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only copy of the game state handed to listeners."""

    phase: Phase
    level: int
    questions: Tuple[Question, ...]
    current_question_index: int
    seen_question_ids: FrozenSet[str]
    eliminated_choices: FrozenSet[int]
    locked_choice: Optional[int]
    provisional_choice: Optional[int]
    answered: bool
    correct: Optional[bool]
    poll_results: Optional[Tuple[int, ...]]
    used_lifelines: LifelineUsage
    remaining_time: int
    total_time: int
    last_safe_level: int
    winnings: int
    game_over: bool
    info_message: Optional[str]
    selected_categories: FrozenSet[str]

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_question_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "level": self.level,
            "questions": [question.to_payload() for question in self.questions],
            "currentQuestionIndex": self.current_question_index,
            "seenQuestionIds": sorted(self.seen_question_ids),
            "eliminatedChoices": sorted(self.eliminated_choices),
            "lockedChoice": self.locked_choice,
            "provisionalChoice": self.provisional_choice,
            "answered": self.answered,
            "correct": self.correct,
            "pollResults": list(self.poll_results) if self.poll_results is not None else None,
            "usedLifelines": {
                "fiftyFifty": self.used_lifelines.fifty_fifty,
                "audience": self.used_lifelines.audience,
                "switch": self.used_lifelines.switch,
            },
            "remainingTime": self.remaining_time,
            "totalTime": self.total_time,
            "lastSafeLevel": self.last_safe_level,
            "winnings": self.winnings,
            "gameOver": self.game_over,
            "infoMessage": self.info_message,
            "selectedCategories": sorted(self.selected_categories),
        }


class EngineListener:
    """Observer interface for presentation adapters. Override what you need."""

    def on_state_changed(self, snapshot: GameSnapshot, provisional_choice: Optional[int]) -> None:
        pass

    def on_timer_tick(self, remaining: int, total: int) -> None:
        pass

    def on_answer_resolved(self, correct: bool, locked_choice: Optional[int], correct_index: int) -> None:
        pass

    def on_game_ended(self, title: str, winnings: int) -> None:
        pass

    def on_poll_results(self, percentages: List[int]) -> None:
        pass


class GameStartError(RuntimeError):
    """Raised when a game cannot be started; no state is committed."""


class GameEngine:
    """Runs one ladder game at a time.

    The engine is driven by presentation intents (``select_choice``, ``lock_in`` ...) and
    by its own per-question timer. All user mistakes, such as locking in without a
    selection or reusing a spent lifeline, are silent no-ops.
    """

    def __init__(
        self,
        *,
        source: Optional[QuestionSource] = None,
        bank: Sequence[Question] = FALLBACK_QUESTIONS,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        question_count: int = MAX_LEVEL,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        info_message_seconds: float = DEFAULT_INFO_MESSAGE_SECONDS,
    ) -> None:
        self._source = source
        self._bank = tuple(bank)
        self._rng = rng or build_rng(seed=seed)
        self._question_count = question_count
        self._tick_interval = tick_interval
        self._info_message_seconds = info_message_seconds

        self._state: Optional[GameState] = None
        self._provisional: Optional[int] = None
        self._timer: Optional[QuestionTimer] = None
        self._info_handle: Optional[asyncio.TimerHandle] = None
        self._listeners: List[EngineListener] = []
        self._starting = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> Optional[GameState]:
        return self._state

    @property
    def provisional_choice(self) -> Optional[int]:
        return self._provisional

    @property
    def current_question(self) -> Optional[Question]:
        return self._state.current_question() if self._state else None

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and self._timer.is_running

    @property
    def phase(self) -> Phase:
        state = self._state
        if state is None:
            return Phase.IDLE
        if state.game_over:
            return Phase.TERMINAL
        if state.answered:
            return Phase.ANSWER_LOCKED
        return Phase.AWAITING_CHOICE

    def snapshot(self) -> Optional[GameSnapshot]:
        state = self._state
        if state is None:
            return None
        return self._build_snapshot(state)

    def _build_snapshot(self, state: GameState) -> GameSnapshot:
        return GameSnapshot(
            phase=self.phase,
            level=state.level,
            questions=tuple(state.questions),
            current_question_index=state.current_question_index,
            seen_question_ids=frozenset(state.seen_question_ids),
            eliminated_choices=frozenset(state.eliminated_choices),
            locked_choice=state.locked_choice,
            provisional_choice=self._provisional,
            answered=state.answered,
            correct=state.correct,
            poll_results=tuple(state.poll_results) if state.poll_results is not None else None,
            used_lifelines=LifelineUsage(
                fifty_fifty=state.used_lifelines.fifty_fifty,
                audience=state.used_lifelines.audience,
                switch=state.used_lifelines.switch,
            ),
            remaining_time=state.remaining_time,
            total_time=time_for_level(state.level),
            last_safe_level=state.last_safe_level,
            winnings=state.winnings,
            game_over=state.game_over,
            info_message=state.info_message,
            selected_categories=state.selected_categories,
        )

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def subscribe(self, listener: EngineListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: EngineListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Question generation
    # ------------------------------------------------------------------

    async def generate_questions(
        self,
        categories: Sequence[str],
        count: int,
        *,
        exclude_ids: Iterable[str] = (),
    ) -> List[Question]:
        """Ask the question source for ``count`` questions, falling back to the local bank.

        Source failures (transport errors, malformed payloads, short results) are logged
        and never propagated. Questions listed in ``exclude_ids`` are left out of the
        fallback draw.
        """
        logger = LOGGER.bind(categories=list(categories), count=count)
        if self._source is None:
            logger.info("questions.source_unconfigured")
        else:
            try:
                questions = list(await self._source.generate(categories, count))
            except Exception as exc:
                logger.warning("questions.source_failed", error=str(exc), error_type=type(exc).__name__)
            else:
                if len(questions) >= count:
                    logger.info("questions.source_success", received=len(questions))
                    return questions[:count]
                logger.warning("questions.source_short", received=len(questions))

        excluded = set(exclude_ids)
        bank = [question for question in self._bank if question.id not in excluded]
        questions = sample_fallback_questions(categories, count, rng=self._rng, bank=bank)
        logger.info("questions.fallback_used", received=len(questions))
        return questions

    # ------------------------------------------------------------------
    # Game lifecycle
    # ------------------------------------------------------------------

    async def start_game(self, categories: Iterable[str]) -> GameSnapshot:
        """Generate questions for ``categories`` and begin a fresh game at level 1.

        Raises:
            GameStartError: No categories were given, another start is in flight, or not
                enough questions could be produced. The previous game is left untouched and its
                timer resumes.
        """
        selected = frozenset(category for category in categories if category)
        if not selected:
            raise GameStartError("Select at least one category to start the game.")
        if self._starting:
            raise GameStartError("A game is already being prepared.")

        # The running game stops ticking while the next one is prepared
        previous = self._state
        self._stop_timer()
        self._cancel_info_clear()

        self._starting = True
        try:
            questions = await self.generate_questions(sorted(selected), self._question_count)
        finally:
            self._starting = False

        if len(questions) < self._question_count:
            if previous is not None and previous is self._state and not (previous.answered or previous.game_over):
                self._start_timer()
            LOGGER.error(
                "engine.start_failed",
                required=self._question_count,
                received=len(questions),
            )
            raise GameStartError(
                f"Could not prepare enough questions ({len(questions)}/{self._question_count}). "
                "Please try again."
            )

        self.reset()
        state = GameState(questions=list(questions), selected_categories=selected)
        self._state = state
        LOGGER.info(
            "engine.game_started",
            categories=sorted(selected),
            question_ids=[question.id for question in questions],
        )
        self._notify_state()
        self._start_timer()
        return self._build_snapshot(state)

    def reset(self) -> None:
        """Stop the timer and discard the current game."""
        self._stop_timer()
        self._cancel_info_clear()
        if self._state is not None:
            LOGGER.info("engine.reset", level=self._state.level, game_over=self._state.game_over)
        self._state = None
        self._provisional = None

    # ------------------------------------------------------------------
    # Player intents
    # ------------------------------------------------------------------

    def select_choice(self, index: int) -> None:
        state = self._state
        if state is None or state.answered or state.game_over:
            return
        if not 0 <= index < CHOICE_COUNT:
            LOGGER.debug("engine.select_ignored", index=index)
            return
        self._provisional = index
        self._notify_state()

    def lock_in(self) -> None:
        state = self._state
        if state is None or self._provisional is None or state.answered or state.game_over:
            return

        self._stop_timer()
        question = state.current_question()
        state.locked_choice = self._provisional
        state.answered = True
        state.correct = state.locked_choice == question.correct_index
        LOGGER.info(
            "engine.answer_locked",
            level=state.level,
            question_id=question.id,
            choice=state.locked_choice,
            correct=state.correct,
        )

        self._emit("on_answer_resolved", state.correct, state.locked_choice, question.correct_index)
        if state.correct:
            self._notify_state()
        else:
            self._finish(state, TITLE_GAME_OVER, failed=True)

    def next_question(self) -> None:
        """Bank the current level and advance, or finish the game at the top of the ladder.

        Only meaningful after a correct lock-in; otherwise a no-op.
        """
        state = self._state
        if state is None or state.game_over or not state.answered or not state.correct:
            return

        state.winnings = prize_for_level(state.level)
        state.last_safe_level = last_checkpoint_at_or_below(state.level)

        if state.level >= MAX_LEVEL or state.current_question_index + 1 >= len(state.questions):
            self._finish(state, TITLE_MILLIONAIRE, failed=False)
            return

        state.level += 1
        state.current_question_index += 1
        state.reset_question_fields()
        state.seen_question_ids.add(state.current_question().id)
        state.remaining_time = time_for_level(state.level)
        self._provisional = None
        LOGGER.info("engine.level_advanced", level=state.level, banked=state.winnings)

        self._notify_state()
        self._start_timer()

    def walk_away(self) -> None:
        state = self._state
        if state is None or state.game_over or state.answered:
            return
        LOGGER.info("engine.walk_away", level=state.level)
        self._finish(state, TITLE_WALK_AWAY, failed=True)

    # ------------------------------------------------------------------
    # Lifelines
    # ------------------------------------------------------------------

    def use_fifty_fifty(self) -> None:
        state = self._state
        if state is None or state.game_over or state.answered or state.used_lifelines.fifty_fifty:
            return
        state.used_lifelines.fifty_fifty = True

        question = state.current_question()
        state.eliminated_choices = set(fifty_fifty_eliminations(self._rng, question.correct_index))
        LOGGER.info("engine.fifty_fifty", eliminated=sorted(state.eliminated_choices))
        self._notify_state()

    def use_audience_poll(self) -> None:
        state = self._state
        if state is None or state.game_over or state.answered or state.used_lifelines.audience:
            return
        state.used_lifelines.audience = True

        question = state.current_question()
        state.poll_results = audience_poll(self._rng, question.correct_index, state.eliminated_choices)
        LOGGER.info("engine.audience_poll", results=state.poll_results)
        self._notify_state()
        self._emit("on_poll_results", list(state.poll_results))

    async def use_switch_question(self) -> bool:
        """Replace the current question with a fresh one.

        The lifeline is marked spent before the generation call is awaited, so a second
        request while the first is in flight is ignored.

        Returns:
            True when the question was replaced.
        """
        state = self._state
        if state is None or state.game_over or state.answered or state.used_lifelines.switch:
            return False
        state.used_lifelines.switch = True
        index = state.current_question_index
        self._notify_state()

        excluded = state.seen_question_ids | state.upcoming_question_ids()
        candidates = await self.generate_questions(
            sorted(state.selected_categories), 1, exclude_ids=excluded
        )

        if self._state is not state or state.game_over or state.answered or state.current_question_index != index:
            LOGGER.info("engine.switch_discarded", index=index)
            return False

        excluded = state.seen_question_ids | state.upcoming_question_ids()
        replacement = next((question for question in candidates if question.id not in excluded), None)
        if replacement is None:
            LOGGER.info("engine.switch_unavailable", index=index)
            self._show_info(NO_ALTERNATIVE_MESSAGE)
            return False

        state.questions[index] = replacement
        state.seen_question_ids.add(replacement.id)
        state.eliminated_choices = set()
        self._provisional = None
        LOGGER.info("engine.question_switched", index=index, question_id=replacement.id)
        self._notify_state()
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _finish(self, state: GameState, title: str, *, failed: bool) -> None:
        """End the game. On failure or walk-away only the checkpoint below the level is kept."""
        self._stop_timer()
        state.game_over = True
        if failed:
            state.winnings = prize_for_level(last_checkpoint_at_or_below(state.level - 1))
        LOGGER.info("engine.game_over", title=title, level=state.level, winnings=state.winnings)
        self._notify_state()
        self._emit("on_game_ended", title, state.winnings)

    def _start_timer(self) -> None:
        self._stop_timer()
        state = self._state
        if state is None:
            return

        def on_tick() -> None:
            self._on_tick(timer)

        timer = QuestionTimer(on_tick, interval=self._tick_interval, label=f"level-{state.level}")
        self._timer = timer
        timer.start()

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_tick(self, timer: QuestionTimer) -> None:
        state = self._state
        if timer is not self._timer or state is None or state.answered or state.game_over:
            return
        state.remaining_time -= 1
        self._emit("on_timer_tick", state.remaining_time, time_for_level(state.level))
        if state.remaining_time <= 0:
            self._time_up(state)

    def _time_up(self, state: GameState) -> None:
        self._stop_timer()
        state.remaining_time = 0
        state.answered = True
        state.correct = False
        question = state.current_question()
        LOGGER.info("engine.time_up", level=state.level, question_id=question.id)
        self._emit("on_answer_resolved", False, None, question.correct_index)
        self._finish(state, TITLE_TIME_UP, failed=True)

    def _show_info(self, message: str) -> None:
        state = self._state
        if state is None:
            return
        self._cancel_info_clear()
        state.info_message = message
        self._notify_state()
        loop = asyncio.get_running_loop()
        self._info_handle = loop.call_later(self._info_message_seconds, self._clear_info, state)

    def _clear_info(self, state: GameState) -> None:
        self._info_handle = None
        if self._state is not state:
            return
        state.info_message = None
        self._notify_state()

    def _cancel_info_clear(self) -> None:
        if self._info_handle is not None:
            self._info_handle.cancel()
            self._info_handle = None

    def _notify_state(self) -> None:
        snapshot = self.snapshot()
        if snapshot is not None:
            self._emit("on_state_changed", snapshot, self._provisional)

    def _emit(self, method: str, *args: Any) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, method)(*args)
            except Exception as exc:
                LOGGER.error(
                    "engine.listener_failed",
                    listener=type(listener).__name__,
                    callback=method,
                    error=str(exc),
                )
