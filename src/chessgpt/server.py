"""
Flask app that wires the ChessGPT session layer into the browser UI.

Endpoints:
- GET  /                                -> single-page UI (board + controls)
- GET  /health                          -> liveness
- GET  /api/models                      -> model registry for the dropdowns
- POST /api/sessions                    -> create a play session
- GET  /api/sessions/<id>               -> current state (polled while auto-play runs)
- POST /api/sessions/<id>/reset         -> reset the board
- POST /api/sessions/<id>/pgn           -> load a game from PGN
- POST /api/sessions/<id>/move          -> manual board drop; the page then asks /propose for the reply
- POST /api/sessions/<id>/propose       -> force one model move for the side to move
- POST /api/sessions/<id>/models        -> set the white/black model slots
- POST /api/sessions/<id>/prompts       -> set the system/user prompts
- POST /api/sessions/<id>/autoplay      -> start/stop auto-play
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request, send_from_directory

from .config import SETTINGS, Settings
from .errors import InvalidPGNError, SessionNotFoundError, UnknownModelError
from .game_state import MoveRequest
from .llm_client import LLMClient
from .proposers import list_models
from .session import SessionStore

log = logging.getLogger("server")

WEBUI_DIR = Path(__file__).resolve().parent / "webui"


def _string_fields_error(data, *keys: str) -> Optional[str]:
    """Message for a body that is not an object or has a non-string value under keys."""
    if not isinstance(data, dict):
        return "request body must be a JSON object"
    for key in keys:
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            return f"'{key}' must be a string"
    return None


def create_app(client: LLMClient, settings: Settings = SETTINGS, store: Optional[SessionStore] = None) -> Flask:
    app = Flask(
        __name__,
        static_folder=str(WEBUI_DIR),
        static_url_path="/static",
    )
    store = store or SessionStore(client, settings=settings)
    app.extensions["chessgpt.sessions"] = store

    @app.errorhandler(SessionNotFoundError)
    def session_not_found(exc: SessionNotFoundError):
        return jsonify({"error": "not_found", "message": str(exc)}), 404

    @app.route("/")
    def index():
        return send_from_directory(str(WEBUI_DIR), "index.html")

    @app.route("/health")
    def health():
        return jsonify({"ok": True, "sessions": len(store)})

    @app.route("/api/models", methods=["GET"])
    def models():
        return jsonify([m.to_dict() for m in list_models()])

    @app.route("/api/sessions", methods=["POST"])
    def create_session():
        session = store.create()
        return jsonify(session.snapshot()), 201

    @app.route("/api/sessions/<session_id>", methods=["GET"])
    def session_state(session_id: str):
        return jsonify(store.get(session_id).snapshot())

    @app.route("/api/sessions/<session_id>/reset", methods=["POST"])
    def reset(session_id: str):
        session = store.get(session_id)
        session.reset()
        return jsonify(session.snapshot())

    @app.route("/api/sessions/<session_id>/pgn", methods=["POST"])
    def load_pgn(session_id: str):
        session = store.get(session_id)
        data = request.get_json(force=True, silent=True) or {}
        try:
            session.load_pgn(data.get("pgn") or "")
        except InvalidPGNError as exc:
            return jsonify({"error": "invalid_pgn", "message": str(exc), "state": session.snapshot()}), 400
        return jsonify(session.snapshot())

    @app.route("/api/sessions/<session_id>/move", methods=["POST"])
    def move(session_id: str):
        session = store.get(session_id)
        data = request.get_json(force=True, silent=True) or {}
        src, dst = data.get("from"), data.get("to")
        if not src or not dst:
            return jsonify({"error": "missing_move", "accepted": False}), 400
        san = session.drop_move(MoveRequest(str(src), str(dst), str(data.get("promotion") or "q")))
        if san is None:
            return jsonify({"error": "illegal_move", "accepted": False, "state": session.snapshot()}), 400
        return jsonify({"accepted": True, "san": san, "state": session.snapshot()})

    @app.route("/api/sessions/<session_id>/propose", methods=["POST"])
    def propose(session_id: str):
        session = store.get(session_id)
        san = session.propose_once()
        return jsonify({"move": san, "state": session.snapshot()})

    @app.route("/api/sessions/<session_id>/models", methods=["POST"])
    def set_models(session_id: str):
        session = store.get(session_id)
        data = request.get_json(force=True, silent=True) or {}
        error = _string_fields_error(data, "white", "black")
        if error:
            return jsonify({"error": "invalid_request", "message": error}), 400
        try:
            session.set_models(white=data.get("white"), black=data.get("black"))
        except UnknownModelError as exc:
            return jsonify({"error": "unknown_model", "message": str(exc)}), 400
        return jsonify(session.snapshot())

    @app.route("/api/sessions/<session_id>/prompts", methods=["POST"])
    def set_prompts(session_id: str):
        session = store.get(session_id)
        data = request.get_json(force=True, silent=True) or {}
        error = _string_fields_error(data, "system_prompt", "user_prompt")
        if error:
            return jsonify({"error": "invalid_request", "message": error}), 400
        session.set_prompts(system_prompt=data.get("system_prompt"), user_prompt=data.get("user_prompt"))
        return jsonify(session.snapshot())

    @app.route("/api/sessions/<session_id>/autoplay", methods=["POST"])
    def autoplay(session_id: str):
        session = store.get(session_id)
        data = request.get_json(force=True, silent=True) or {}
        enabled = data.get("enabled")
        if enabled is None:
            enabled = not session.autoplayer.running
        session.set_autoplay(bool(enabled))
        return jsonify(session.snapshot())

    @app.after_request
    def no_store(response):
        # the UI polls state; never serve it from cache
        if request.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, max-age=0"
        return response

    return app
