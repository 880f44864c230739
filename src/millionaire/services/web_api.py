"""FastAPI application exposing the ladder quiz for a browser frontend."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from ..core.engine import GameStartError
from ..core.ladder import CATEGORIES, CHECKPOINTS, LADDER, TIMER_SECONDS, difficulty_for_level
from .web_session import LIFELINES, SESSION_MANAGER, GameSession


class SessionCreate(BaseModel):
    """Payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    categories: List[str] = Field(default_factory=list, description="Categories to draw questions from")
    seed: Optional[int] = Field(None, description="Deterministic RNG seed")


class GameStart(BaseModel):
    """Payload for starting another game on an existing session."""

    categories: List[str] = Field(default_factory=list, description="Categories to draw questions from")


class ChoiceSelect(BaseModel):
    index: int = Field(..., description="Zero-based answer index")


app = FastAPI(title="Millionaire Quiz API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/config/categories")
async def get_categories() -> Dict[str, Any]:
    return {"categories": list(CATEGORIES)}


@app.get("/api/config/ladder")
async def get_ladder() -> Dict[str, Any]:
    """Return the money ladder with checkpoints and per-level time limits."""
    levels = [
        {
            "level": entry.level,
            "amount": entry.amount,
            "checkpoint": entry.level in CHECKPOINTS,
            "difficulty": difficulty_for_level(entry.level).value,
            "seconds": TIMER_SECONDS[difficulty_for_level(entry.level)],
        }
        for entry in LADDER
    ]
    return {"levels": levels, "checkpoints": sorted(CHECKPOINTS)}


@app.get("/api/config/models")
async def get_available_models() -> Dict[str, Any]:
    """Return question providers and their models from the central registry."""
    from ..config.model_registry import get_all_providers

    return {"providers": get_all_providers()}


async def _get_session(session_id: str) -> GameSession:
    try:
        return await SESSION_MANAGER.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.post("/api/sessions", status_code=201)
async def create_session(payload: SessionCreate) -> Dict[str, Any]:
    """Generate questions and start a new game."""

    try:
        session = await SESSION_MANAGER.create_session(payload.categories, seed=payload.seed)
    except GameStartError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return session.public_state()


@app.get("/api/sessions")
async def list_sessions() -> Dict[str, Any]:
    """List running sessions, oldest first."""

    sessions = sorted(await SESSION_MANAGER.list_sessions(), key=lambda session: session.created_at)
    return {
        "sessions": [
            {"sessionId": session.session_id, "createdAt": session.created_at, "phase": session.engine.phase.value}
            for session in sessions
        ]
    }


@app.get("/api/sessions/{session_id}")
async def get_session(session_id: str) -> Dict[str, Any]:
    session = await _get_session(session_id)
    return session.public_state()


@app.delete("/api/sessions/{session_id}")
async def stop_session(session_id: str) -> Dict[str, Any]:
    """Stop the game and forget the session."""

    session = await _get_session(session_id)
    await SESSION_MANAGER.stop(session_id)
    return {"status": "stopped", "sessionId": session.session_id}


@app.post("/api/sessions/{session_id}/start")
async def start_game(session_id: str, payload: GameStart) -> Dict[str, Any]:
    """Start a new game on the session, replacing any game in progress."""

    session = await _get_session(session_id)
    try:
        await session.start(payload.categories)
    except GameStartError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return session.public_state()


@app.post("/api/sessions/{session_id}/select")
async def select_choice(session_id: str, payload: ChoiceSelect) -> Dict[str, Any]:
    session = await _get_session(session_id)
    session.engine.select_choice(payload.index)
    return session.public_state()


@app.post("/api/sessions/{session_id}/lock")
async def lock_in(session_id: str) -> Dict[str, Any]:
    session = await _get_session(session_id)
    session.engine.lock_in()
    return session.public_state()


@app.post("/api/sessions/{session_id}/walk-away")
async def walk_away(session_id: str) -> Dict[str, Any]:
    session = await _get_session(session_id)
    session.engine.walk_away()
    return session.public_state()


@app.post("/api/sessions/{session_id}/reset")
async def reset_session(session_id: str) -> Dict[str, Any]:
    """Return the session to category selection."""
    session = await _get_session(session_id)
    session.reset()
    return session.public_state()


@app.post("/api/sessions/{session_id}/lifelines/{name}")
async def use_lifeline(session_id: str, name: str) -> Dict[str, Any]:
    session = await _get_session(session_id)
    if name not in LIFELINES:
        raise HTTPException(status_code=404, detail=f"Unknown lifeline {name}")
    await session.use_lifeline(name)
    return session.public_state()
