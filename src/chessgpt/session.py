"""
Play sessions: the shared state behind one browser tab.

A PlaySession owns the game, both model slots, the prompt pair, the status line
and the auto-player. Every mutation happens under the session's lock; the lock
is never held while a model request is outstanding. Model requests go through
a separate request lock, so at most one is in flight per session. A move
request captures a TurnRequest (position version, model, prompts) and its reply
is only committed if the position is still the one the model was asked about.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, replace
from typing import Dict, Optional

from .autoplay import AutoPlayer
from .config import SETTINGS, Settings
from .errors import LLMServiceError, SessionNotFoundError
from .game_state import GameState, MoveRequest
from .llm_client import LLMClient
from .proposers import DEFAULT_MODEL, create_proposer, get_model, list_models
from .prompting import PromptConfig

log = logging.getLogger("session")

NO_MOVE_MESSAGE = "No/invalid move found by model. Try again by clicking button above."
STALE_MOVE_MESSAGE = "Position changed while the model was thinking; its move was discarded."


@dataclass(frozen=True)
class TurnRequest:
    version: int
    game: GameState
    model: str
    prompts: PromptConfig


class PlaySession:
    def __init__(self, client: LLMClient, settings: Settings = SETTINGS, session_id: Optional[str] = None):
        self.id = session_id or f"play_{int(time.time())}_{uuid.uuid4().hex[:6]}"
        self.client = client
        self.lock = threading.RLock()
        self._request_lock = threading.Lock()
        self.game = GameState()
        self.white_model = DEFAULT_MODEL
        self.black_model = DEFAULT_MODEL
        self.prompts = PromptConfig()
        self.status = ""
        self.status_kind = "info"
        self.created_at = time.time()
        self.updated_at = self.created_at
        self._version = 0
        self.autoplayer = AutoPlayer(
            self,
            delay_s=settings.autoplay_delay_s,
            max_retries=settings.autoplay_max_retries,
        )

    # ---------------- Status -----------------
    def set_status(self, message: str, kind: str = "info") -> None:
        with self.lock:
            self.status = message
            self.status_kind = kind
            self._touch()

    def _touch(self) -> None:
        self.updated_at = time.time()

    def _bump(self) -> None:
        self._version += 1
        self._touch()

    # ---------------- Game actions -----------------
    def reset(self) -> None:
        with self.lock:
            self.game.reset()
            self._bump()
            self.status = ""
            self.status_kind = "info"

    def load_pgn(self, text: str) -> None:
        """Replace the game from PGN; raises InvalidPGNError with the game untouched."""
        with self.lock:
            self.game.load_pgn(text)
            self._bump()

    def drop_move(self, move: MoveRequest) -> Optional[str]:
        """Apply a manual board move. Manual play always interrupts auto-play."""
        with self.lock:
            san = self.game.apply_move(move)
            if san is None:
                return None
            self._bump()
            self.autoplayer.stop()
            return san

    def set_models(self, white: Optional[str] = None, black: Optional[str] = None) -> None:
        # validate both before touching either slot
        if white is not None:
            get_model(white)
        if black is not None:
            get_model(black)
        with self.lock:
            if white is not None:
                self.white_model = white
            if black is not None:
                self.black_model = black
            self._touch()

    def set_prompts(self, system_prompt: Optional[str] = None, user_prompt: Optional[str] = None) -> None:
        with self.lock:
            if system_prompt is not None:
                self.prompts.system_prompt = system_prompt
            if user_prompt is not None:
                self.prompts.user_prompt = user_prompt
            self._touch()

    def model_for_turn(self) -> str:
        return self.white_model if self.game.turn() == "white" else self.black_model

    # ---------------- Move requests -----------------
    def begin_turn(self) -> TurnRequest:
        """Snapshot everything a move request needs, re-read at the start of every cycle."""
        with self.lock:
            return TurnRequest(
                version=self._version,
                game=self.game.copy(),
                model=self.model_for_turn(),
                prompts=replace(self.prompts),
            )

    def request_move(self, turn: TurnRequest) -> Optional[str]:
        """Ask the turn's model for a move. Called without the state lock held."""
        proposer = create_proposer(turn.model, self.client)
        with self._request_lock:
            return proposer.propose(turn.game, turn.prompts)

    def commit_move(self, turn: TurnRequest, move: str) -> Optional[str]:
        with self.lock:
            if turn.version != self._version:
                log.info("Discarding %s from %s: position changed", move, turn.model)
                return None
            san = self.game.apply_move(move)
            if san is not None:
                self._bump()
            return san

    def propose_once(self) -> Optional[str]:
        """Force a single model move for the side to move (no retries)."""
        with self.lock:
            # forcing a move takes over from auto-play
            self.autoplayer.stop()
            if self.game.is_terminal():
                self.set_status(f"Game over ({self.game.result()}).")
                return None
            turn = self.begin_turn()
        try:
            move = self.request_move(turn)
        except LLMServiceError as exc:
            self.set_status(f"Model request failed: {exc}", "error")
            return None
        with self.lock:
            if move is None:
                self.set_status(NO_MOVE_MESSAGE, "no_move")
                return None
            san = self.commit_move(turn, move)
            if san is None:
                self.set_status(STALE_MOVE_MESSAGE, "no_move")
                return None
            self.set_status(f"Model suggests move: {san}.")
            return san

    # ---------------- Auto-play -----------------
    def set_autoplay(self, enabled: bool) -> None:
        if enabled:
            self.autoplayer.start()
        else:
            self.autoplayer.stop()

    def close(self) -> None:
        self.autoplayer.stop()

    # ---------------- Serialization -----------------
    def snapshot(self) -> dict:
        with self.lock:
            game = self.game
            system_prompt_enabled = any(
                get_model(m).proposer.uses_system_prompt for m in (self.white_model, self.black_model)
            )
            return {
                "session_id": self.id,
                "fen": game.fen(),
                "pgn": game.pgn(),
                "movetext": game.movetext(),
                "turn": game.turn(),
                "legal_moves": game.legal_moves(),
                "is_terminal": game.is_terminal(),
                "is_checkmate": game.is_checkmate(),
                "is_stalemate": game.is_stalemate(),
                "is_draw": game.is_draw(),
                "result": game.result(),
                "models": {"white": self.white_model, "black": self.black_model},
                "available_models": [m.to_dict() for m in list_models()],
                "prompts": self.prompts.to_dict(),
                "system_prompt_enabled": system_prompt_enabled,
                "autoplay": {
                    "enabled": self.autoplayer.running,
                    "state": self.autoplayer.state.value,
                    "retries": self.autoplayer.retries,
                    "max_retries": self.autoplayer.max_retries,
                },
                "status": self.status,
                "status_kind": self.status_kind,
            }


class SessionStore:
    """In-memory registry of play sessions with idle expiry."""

    def __init__(self, client: LLMClient, settings: Settings = SETTINGS):
        self.client = client
        self.settings = settings
        self._sessions: Dict[str, PlaySession] = {}
        self._lock = threading.Lock()

    def create(self) -> PlaySession:
        self.cleanup()
        session = PlaySession(self.client, settings=self.settings)
        with self._lock:
            self._sessions[session.id] = session
        log.info("Created session %s", session.id)
        return session

    def get(self, session_id: str) -> PlaySession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def cleanup(self, max_age_s: Optional[int] = None) -> int:
        """Drop sessions idle longer than max_age_s (auto-playing sessions are kept)."""
        max_age_s = self.settings.session_ttl_s if max_age_s is None else max_age_s
        now = time.time()
        with self._lock:
            expired = [
                sid
                for sid, s in self._sessions.items()
                if now - s.updated_at > max_age_s and not s.autoplayer.running
            ]
            removed = [self._sessions.pop(sid) for sid in expired]
        for session in removed:
            session.close()
        return len(removed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
