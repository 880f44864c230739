"""Game sessions backing the HTTP API."""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..config.settings import GameConfig, load_game_config
from ..core.engine import EngineListener, GameEngine, GameStartError, GameState, QuestionSource
from ..core.ladder import prize_for_level
from ..providers.question_source import build_question_source

LOGGER = structlog.get_logger(__name__)

LIFELINES = ("fifty-fifty", "audience", "switch")


class GameSession(EngineListener):
    """One player's game: owns a :class:`GameEngine` and plays the presentation delays.

    After a correct answer the session waits ``answer_reveal_seconds`` and then moves
    the engine to the next question.
    """

    def __init__(
        self,
        *,
        config: GameConfig,
        source: Optional[QuestionSource] = None,
        seed: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.config = config
        self.created_at = time.time()
        self.engine = GameEngine(source=source, seed=seed, info_message_seconds=config.info_message_seconds)
        self.engine.subscribe(self)

        self.result: Optional[Dict[str, Any]] = None
        self.last_resolution: Optional[Dict[str, Any]] = None
        self._advance_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, categories: Iterable[str]) -> None:
        """Start a game. On GameStartError the running game, if any, carries on."""
        self._cancel_advance()
        try:
            await self.engine.start_game(categories)
        except GameStartError:
            state = self.engine.state
            if state is not None and state.correct and not state.game_over:
                self._schedule_advance(state)
            raise
        self.result = None
        self.last_resolution = None

    def reset(self) -> None:
        self._cancel_advance()
        self.engine.reset()
        self.result = None
        self.last_resolution = None

    def stop(self) -> None:
        self.reset()
        self.engine.unsubscribe(self)

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    async def use_lifeline(self, name: str) -> None:
        if name == "fifty-fifty":
            self.engine.use_fifty_fifty()
        elif name == "audience":
            self.engine.use_audience_poll()
        elif name == "switch":
            await self.engine.use_switch_question()
        else:
            raise KeyError(f"Unknown lifeline {name}")

    # ------------------------------------------------------------------
    # EngineListener
    # ------------------------------------------------------------------

    def on_answer_resolved(self, correct: bool, locked_choice: Optional[int], correct_index: int) -> None:
        self.last_resolution = {
            "correct": correct,
            "lockedChoice": locked_choice,
            "correctIndex": correct_index,
        }
        state = self.engine.state
        if correct and state is not None:
            self._schedule_advance(state)

    def on_game_ended(self, title: str, winnings: int) -> None:
        self.result = {"title": title, "winnings": winnings}
        LOGGER.info("session.game_ended", session_id=self.session_id, title=title, winnings=winnings)

    def _schedule_advance(self, state: GameState) -> None:
        self._cancel_advance()
        self._advance_task = asyncio.get_running_loop().create_task(self._advance_after_delay(state))

    async def _advance_after_delay(self, state: GameState) -> None:
        await asyncio.sleep(self.config.answer_reveal_seconds)
        if self.engine.state is state:
            self.engine.next_question()

    def _cancel_advance(self) -> None:
        if self._advance_task is not None and not self._advance_task.done():
            self._advance_task.cancel()
        self._advance_task = None

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def public_state(self) -> Dict[str, Any]:
        """State for the client. The correct answer is only revealed once answered."""
        snapshot = self.engine.snapshot()
        payload: Dict[str, Any] = {
            "sessionId": self.session_id,
            "phase": self.engine.phase.value,
            "result": self.result,
            "lastResolution": self.last_resolution,
        }
        if snapshot is None:
            payload["state"] = None
            return payload

        state = snapshot.to_dict()
        state.pop("questions")
        state.pop("seenQuestionIds")
        question = snapshot.current_question.to_payload()
        if not (snapshot.answered or snapshot.game_over):
            question.pop("correctIndex")
        state["question"] = question
        state["prize"] = prize_for_level(snapshot.level)
        state["questionCount"] = len(snapshot.questions)
        payload["state"] = state
        return payload


class SessionManager:
    """Registry for concurrent :class:`GameSession` instances."""

    def __init__(self, config: Optional[GameConfig] = None, source: Optional[QuestionSource] = None) -> None:
        self._config = config
        self._source = source
        self._source_built = source is not None
        self._sessions: Dict[str, GameSession] = {}
        self._lock = asyncio.Lock()

    @property
    def config(self) -> GameConfig:
        if self._config is None:
            self._config = load_game_config()
        return self._config

    def _question_source(self) -> Optional[QuestionSource]:
        if not self._source_built:
            self._source = build_question_source(self.config)
            self._source_built = True
        return self._source

    async def create_session(self, categories: Iterable[str], *, seed: Optional[int] = None) -> GameSession:
        """Start a game and register its session. GameStartError leaves nothing registered."""
        session = GameSession(config=self.config, source=self._question_source(), seed=seed)
        await session.start(categories)
        async with self._lock:
            self._sessions[session.session_id] = session
        LOGGER.info("session.created", session_id=session.session_id)
        return session

    async def get(self, session_id: str) -> GameSession:
        async with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"Unknown session {session_id}")
            return self._sessions[session_id]

    async def list_sessions(self) -> List[GameSession]:
        async with self._lock:
            return list(self._sessions.values())

    async def stop(self, session_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.stop()
            LOGGER.info("session.stopped", session_id=session_id)


SESSION_MANAGER = SessionManager()
"""Default registry used by the FastAPI app."""
