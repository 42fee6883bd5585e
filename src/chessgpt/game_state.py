"""
GameState: centralized game position and PGN utilities.

- Owns a python-chess Board and applies validated moves (from/to triples or notation tokens).
- Loads whole games from PGN atomically and keeps their headers for export.
- Exposes movetext() for prompting and pgn() for export/clipboard.
"""
from __future__ import annotations

import io
import logging
import re
from typing import Dict, List, NamedTuple, Optional, Union

import chess
import chess.pgn

from .errors import InvalidPGNError

log = logging.getLogger("game_state")

PROMOTION_PIECES = {
    "q": chess.QUEEN,
    "r": chess.ROOK,
    "b": chess.BISHOP,
    "n": chess.KNIGHT,
}

_HEADER_LINE_RE = re.compile(r"^\s*\[\s*\w+\s+\".*\"\s*\]\s*$", re.M)
_RESULT_RE = re.compile(r"(^|\s)(\*|1-0|0-1|1/2-1/2)(\s|$)")
_COMMENT_RE = re.compile(r"\{[^}]*\}|;[^\n]*")
_MOVE_NUMBER_RE = re.compile(r"\d+\.+")
_SKIPPED_TOKEN_RE = re.compile(r"^(\*|1-0|0-1|1/2-1/2|\$\d+|[?!]+|\(|\))$")


def _movetext_tokens(text: str) -> Optional[List[str]]:
    """Tokens that must each be a move, or None if a comment is left unclosed."""
    body = _COMMENT_RE.sub(" ", _HEADER_LINE_RE.sub(" ", text))
    if "{" in body or "}" in body:
        return None
    body = _MOVE_NUMBER_RE.sub(" ", body).replace("(", " ( ").replace(")", " ) ")
    return [tok for tok in body.split() if not _SKIPPED_TOKEN_RE.match(tok)]


def _count_moves(node: chess.pgn.GameNode) -> int:
    return sum(1 + _count_moves(child) for child in node.variations)


class MoveRequest(NamedTuple):
    """A board drop: squares in algebraic form ("e2", "e4"), promotion piece letter."""

    from_square: str
    to_square: str
    promotion: str = "q"


MoveLike = Union[MoveRequest, str]


class GameState:
    """Plain chess game around a python-chess Board."""

    def __init__(self) -> None:
        self.board = chess.Board()
        self._headers: Dict[str, str] = {}

    # ---------------- Lifecycle -----------------
    def reset(self) -> None:
        self.board = chess.Board()
        self._headers = {}

    def load_pgn(self, text: str) -> None:
        """Replace the whole game with the one parsed from text.

        Raises InvalidPGNError and leaves the current game untouched if the text
        is empty, has parse errors, contains words that are not moves, or contains
        nothing recognizable as a game.
        """
        text = text or ""
        if not text.strip():
            raise InvalidPGNError()
        tokens = _movetext_tokens(text)
        if tokens is None:
            raise InvalidPGNError()
        try:
            game = chess.pgn.read_game(io.StringIO(text))
        except ValueError as exc:
            raise InvalidPGNError() from exc
        if game is None or game.errors:
            if game is not None:
                log.info("PGN rejected: %s", "; ".join(str(e) for e in game.errors))
            raise InvalidPGNError()
        # python-chess skips words it cannot tokenize; every word must have become a move
        if len(tokens) != _count_moves(game):
            log.info("PGN rejected: %d words but %d moves parsed", len(tokens), _count_moves(game))
            raise InvalidPGNError()
        board = game.end().board()
        has_tags = bool(_HEADER_LINE_RE.search(text))
        if not board.move_stack and not has_tags and not _RESULT_RE.search(text):
            raise InvalidPGNError()
        self.board = board
        self._headers = dict(game.headers) if has_tags else {}

    # ---------------- Move Application -----------------
    def apply_move(self, move: MoveLike) -> Optional[str]:
        """Apply a legal move and return its SAN, or None (no mutation) if illegal."""
        mv = self._resolve(move)
        if mv is None:
            return None
        san = self.board.san(mv)
        self.board.push(mv)
        return san

    def _resolve(self, move: MoveLike) -> Optional[chess.Move]:
        if isinstance(move, MoveRequest):
            return self._resolve_squares(move)
        token = (move or "").strip()
        if not token:
            return None
        try:
            return self.board.parse_san(token)
        except ValueError:
            pass
        try:
            mv = chess.Move.from_uci(token.lower())
        except ValueError:
            return None
        return mv if mv in self.board.legal_moves else None

    def _resolve_squares(self, move: MoveRequest) -> Optional[chess.Move]:
        try:
            from_sq = chess.parse_square(move.from_square.lower())
            to_sq = chess.parse_square(move.to_square.lower())
        except ValueError:
            return None
        mv = chess.Move(from_sq, to_sq)
        if mv in self.board.legal_moves:
            return mv
        promotion = PROMOTION_PIECES.get((move.promotion or "q").lower())
        if promotion is None:
            return None
        mv = chess.Move(from_sq, to_sq, promotion=promotion)
        return mv if mv in self.board.legal_moves else None

    # ---------------- Queries -----------------
    def fen(self) -> str:
        return self.board.fen()

    def turn(self) -> str:
        return "white" if self.board.turn == chess.WHITE else "black"

    def legal_moves(self) -> List[str]:
        """SAN of every legal move for the side to move."""
        return [self.board.san(mv) for mv in self.board.legal_moves]

    def is_checkmate(self) -> bool:
        return self.board.is_checkmate()

    def is_stalemate(self) -> bool:
        return self.board.is_stalemate()

    def is_draw(self) -> bool:
        return (
            self.board.is_stalemate()
            or self.board.is_insufficient_material()
            or self.board.can_claim_draw()
            or self.board.is_seventyfive_moves()
            or self.board.is_fivefold_repetition()
        )

    def is_terminal(self) -> bool:
        return self.board.is_game_over(claim_draw=True) or not any(self.board.legal_moves)

    def result(self) -> str:
        return self.board.result(claim_draw=True)

    # ---------------- PGN / Export -----------------
    def movetext(self) -> str:
        """Numbered SAN movetext without headers or result, e.g. '1. e4 e5 2. Nf3'."""
        if not self.board.move_stack:
            return ""
        return self.board.root().variation_san(self.board.move_stack)

    def pgn(self) -> str:
        """Full PGN export; headers are only written for games loaded with tags."""
        if not self.board.move_stack and not self._headers:
            return ""
        game = chess.pgn.Game.from_board(self.board)
        for key, value in self._headers.items():
            if key in ("FEN", "SetUp", "Result"):
                continue
            game.headers[key] = value
        game.headers["Result"] = self.result()
        exporter = chess.pgn.StringExporter(headers=bool(self._headers), variations=False, comments=False)
        return game.accept(exporter)

    def copy(self) -> "GameState":
        clone = GameState()
        clone.board = self.board.copy()
        clone._headers = dict(self._headers)
        return clone
