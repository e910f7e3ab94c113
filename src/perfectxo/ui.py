"""FastAPI-powered web UI for playing PerfectXO in the browser."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import ComputerPlayer
from .game import EMPTY, MARKS, Outcome, Position

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for the current position of a game and its computer opponent."""

    position: Position
    player: ComputerPlayer
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    last_active: float = field(default_factory=lambda: time.time())
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(
    title="PerfectXO", description="Tic-tac-toe against a minimax opponent in the browser"
)


# Full-tree search is only fast enough for the standard board
ALLOWED_SIZES: Tuple[int, ...] = (3,)
SESSION_TTL_SECONDS = 60 * 60  # 1 hour idle


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    computer_symbol: str = Field(default="X", alias="computerSymbol")
    computer_first: bool = Field(default=False, alias="computerFirst")
    size: int = Field(default=3, description="Width and height of the square board")

    @field_validator("computer_symbol")
    @classmethod
    def ensure_known_symbol(cls, value: str) -> str:
        if value not in MARKS:
            raise ValueError(f"Computer symbol must be one of {', '.join(MARKS)}.")
        return value

    @field_validator("size")
    @classmethod
    def ensure_supported_size(cls, value: int) -> int:
        if value not in ALLOWED_SIZES:
            raise ValueError(
                f"Unsupported board size {value}. "
                f"Choose one of {', '.join(map(str, ALLOWED_SIZES))}."
            )
        return value


class MoveRequest(BaseModel):
    """Request payload for placing the human's mark on an existing game."""

    x: int = Field(ge=0, le=max(ALLOWED_SIZES) - 1, description="Column index")
    y: int = Field(ge=0, le=max(ALLOWED_SIZES) - 1, description="Row index")


def _describe(position: Position, outcome: Outcome) -> Dict[str, str]:
    """Readout text and tone for an actual or predicted outcome."""

    if outcome is Outcome.COMPUTER_WINS:
        message, tone = f"Computer ({position.computer_symbol})", "bad"
    elif outcome is Outcome.HUMAN_WINS:
        message, tone = f"Human ({position.human_symbol})", "good"
    elif outcome is Outcome.DRAW:
        message, tone = "Draw!", "maybe"
    else:
        message, tone = "Game is ongoing", "exciting"
    return {"outcome": outcome.value, "message": message, "tone": tone}


def _cleanup_sessions() -> None:
    """Drop sessions, and their score caches, that have been idle past the TTL."""

    now = time.time()
    expired = [
        session_id
        for session_id, session in list(SESSIONS.items())
        if now - session.last_active >= SESSION_TTL_SECONDS
    ]
    for session_id in expired:
        SESSIONS.pop(session_id, None)
    if expired:
        logger.info("expired %d idle games", len(expired))


def _create_session(
    computer_symbol: str, computer_first: bool, size: int
) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    player = ComputerPlayer(symbol=computer_symbol)
    position = player.new_game(size=size, computer_first=computer_first)
    session = GameSession(position=position, player=player)
    if computer_first:
        x, y = Position.initial(size=size).changed_cell(position)
        session.move_log.append({"player": computer_symbol, "x": x, "y": y})

    _cleanup_sessions()
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "created game %s (computer=%s, computer_first=%s)",
        session_id,
        computer_symbol,
        computer_first,
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_active = time.time()
    return session


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        position = session.position
        outcome = position.get_outcome()
        score = position.get_score()

        human_can_move = outcome is Outcome.ONGOING and not position.computer_to_move
        available_moves = (
            [{"x": x, "y": y} for x, y in position.empty_cells()] if human_can_move else []
        )

        state: Dict[str, object] = {
            "id": game_id,
            "size": position.size,
            "computerSymbol": position.computer_symbol,
            "humanSymbol": position.human_symbol,
            "cells": [[c if c != EMPTY else "" for c in row] for row in position.cells],
            "toMove": "computer" if position.computer_to_move else "human",
            "outcome": outcome.value,
            "winner": position.winner(),
            "score": score,
            "result": _describe(position, outcome),
            "prediction": _describe(position, session.player.predict(position)),
            "availableMoves": available_moves,
            "moveLog": list(session.move_log),
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(game_id: str, session: GameSession, x: int, y: int) -> None:
    with session.lock:
        position = session.position
        if position.get_outcome() is not Outcome.ONGOING:
            raise HTTPException(status_code=400, detail="Game already finished")
        if position.computer_to_move:
            raise HTTPException(status_code=400, detail="It is not your turn")
        if x >= position.size or y >= position.size:
            raise HTTPException(status_code=400, detail="Cell is outside the board")
        if position.cells[y][x] != EMPTY:
            raise HTTPException(status_code=400, detail="Cell already occupied")

        try:
            after = session.player.respond(position, x, y)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": position.human_symbol, "x": x, "y": y})
        after_human = position.clone_with_move(x, y, position.human_symbol)
        if after != after_human:
            cx, cy = after_human.changed_cell(after)
            session.move_log.append(
                {"player": position.computer_symbol, "x": cx, "y": cy}
            )
        session.position = after

        outcome = after.get_outcome()
        if outcome is not Outcome.ONGOING:
            logger.info("game %s finished: %s", game_id, outcome.value)


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(
        request.computer_symbol, request.computer_first, request.size
    )
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.x, request.y)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>PerfectXO</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: 2rem;
        width: min(480px, 100%);
        text-align: center;
      }
      h1 {
        margin: 0 0 1rem;
        letter-spacing: 0.06em;
      }
      .controls {
        display: flex;
        gap: 0.75rem;
        justify-content: center;
        flex-wrap: wrap;
        margin-bottom: 1.25rem;
      }
      table {
        border-collapse: collapse;
        margin: 0 auto 1.25rem;
      }
      td {
        width: 84px;
        height: 84px;
        border: 2px solid #4a5a80;
        font-size: 2.6rem;
        font-weight: 700;
        text-align: center;
      }
      td.legal {
        cursor: pointer;
        background: #f4f6ff;
      }
      td.legal:hover {
        background: #e3e8ff;
      }
      .good { color: #1a7f37; }
      .bad { color: #b42318; }
      .maybe { color: #8a6d00; }
      .exciting { color: #3548c8; }
      td.good { background: #e3f6e8; }
      td.bad { background: #fde6e4; }
      td.maybe { background: #fff6d6; }
      .readout {
        margin: 0.35rem 0;
        font-weight: 600;
      }
      .message {
        min-height: 1.2rem;
        color: #b42318;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>PerfectXO</h1>
      <div class=\"controls\">
        <label>
          Computer plays
          <select id=\"symbol\">
            <option value=\"X\">X</option>
            <option value=\"O\">O</option>
          </select>
        </label>
        <label><input type=\"checkbox\" id=\"computer-first\" /> Computer starts</label>
        <button id=\"new-game\" type=\"button\">New game</button>
      </div>
      <table id=\"board\"></table>
      <p class=\"readout\">Result: <span class=\"result\"></span></p>
      <p class=\"readout\">Prediction: <span class=\"prediction\"></span></p>
      <p class=\"message\" id=\"message\"></p>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const resultEl = document.querySelector('.result');
      const predictionEl = document.querySelector('.prediction');
      const messageEl = document.getElementById('message');
      const symbolEl = document.getElementById('symbol');
      const computerFirstEl = document.getElementById('computer-first');
      const tones = ['bad', 'good', 'maybe', 'exciting'];
      let gameState = null;
      let isRequestPending = false;

      async function startGame() {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          const response = await fetch('/api/game', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({
              computerSymbol: symbolEl.value,
              computerFirst: computerFirstEl.checked,
            }),
          });
          if (!response.ok) {
            throw new Error('Unable to start game');
          }
          render(await response.json());
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      async function sendMove(x, y) {
        if (!gameState || isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          const response = await fetch(`/api/game/${gameState.id}/move`, {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({ x, y }),
          });
          if (!response.ok) {
            const payload = await response.json().catch(() => ({}));
            messageEl.textContent = payload?.detail || 'Invalid move';
            return;
          }
          render(await response.json());
        } catch (error) {
          messageEl.textContent = 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      function setReadout(el, readout) {
        el.textContent = readout.message;
        el.classList.remove(...tones);
        el.classList.add(readout.tone);
      }

      function render(data) {
        gameState = data;
        const legal = new Set(data.availableMoves.map((move) => `${move.x}-${move.y}`));
        const finishedTone = data.outcome === 'ongoing' ? null : data.result.tone;
        boardEl.innerHTML = '';
        data.cells.forEach((row, y) => {
          const tr = document.createElement('tr');
          row.forEach((cell, x) => {
            const td = document.createElement('td');
            td.textContent = cell;
            if (legal.has(`${x}-${y}`)) {
              td.classList.add('legal');
              td.addEventListener('click', () => sendMove(x, y));
            }
            if (finishedTone && finishedTone !== 'exciting') {
              td.classList.add(finishedTone);
            }
            tr.appendChild(td);
          });
          boardEl.appendChild(tr);
        });
        setReadout(resultEl, data.result);
        setReadout(predictionEl, data.prediction);
      }

      document.getElementById('new-game').addEventListener('click', startGame);
      startGame();
    </script>
  </body>
</html>
"""
