"""
Move proposers: ask one model for the next move of the side to move.

Each proposer coordinates a single request. Variants differ only in how the
prompt is shipped (chat messages vs a raw completion prompt); extraction and
legality matching are shared. Model ids map to variants through the registry
below, which also feeds the model dropdowns.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from .errors import EmptyResponseError, UnknownModelError
from .game_state import GameState
from .llm_client import LLMClient
from .move_parser import extract_candidate, match_legal_move
from .prompting import PromptConfig, build_chat_messages, build_user_prompt

log = logging.getLogger("proposer")


class MoveProposer:
    """Interface for obtaining one legal move suggestion from a model."""

    kind: str = "base"
    uses_system_prompt: bool = False

    def __init__(self, model: str, client: LLMClient) -> None:
        self.model = model
        self.client = client

    def propose(self, game: GameState, prompt_cfg: PromptConfig) -> Optional[str]:
        """Return a legal SAN move, or None when the model gave no usable move.

        Service failures propagate as LLMServiceError.
        """
        legal = game.legal_moves()
        if game.is_terminal() or not legal:
            return None
        try:
            raw = self._request(game.movetext(), prompt_cfg)
        except EmptyResponseError:
            log.info("Model %s returned an empty reply", self.model)
            return None
        candidate = extract_candidate(raw)
        move = match_legal_move(candidate, legal)
        log.info("Moves: %s, choice: %s, raw: %r, found_move: %s", ",".join(legal), candidate, raw, move)
        return move

    def _request(self, movetext: str, prompt_cfg: PromptConfig) -> str:
        raise NotImplementedError


class ChatMoveProposer(MoveProposer):
    """Conversational models: system + user messages."""

    kind = "chat"
    uses_system_prompt = True

    def _request(self, movetext: str, prompt_cfg: PromptConfig) -> str:
        return self.client.chat(self.model, build_chat_messages(prompt_cfg, movetext))


class CompletionMoveProposer(MoveProposer):
    """Legacy completion models: a single prompt string, system prompt ignored."""

    kind = "completion"

    def _request(self, movetext: str, prompt_cfg: PromptConfig) -> str:
        return self.client.complete(self.model, build_user_prompt(prompt_cfg, movetext))


@dataclass(frozen=True)
class ModelInfo:
    id: str
    label: str
    proposer: Type[MoveProposer]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "kind": self.proposer.kind,
            "uses_system_prompt": self.proposer.uses_system_prompt,
        }


DEFAULT_MODEL = "gpt-3.5-turbo-instruct"

_MODELS: Dict[str, ModelInfo] = {
    info.id: info
    for info in (
        ModelInfo("gpt-3.5-turbo-instruct", "GPT-3.5 Turbo Instruct", CompletionMoveProposer),
        ModelInfo("gpt-4", "GPT-4", ChatMoveProposer),
        ModelInfo("gpt-3.5-turbo", "GPT-3.5 Turbo", ChatMoveProposer),
    )
}


def list_models() -> List[ModelInfo]:
    return list(_MODELS.values())


def get_model(model: str) -> ModelInfo:
    info = _MODELS.get(model)
    if info is None:
        raise UnknownModelError(model)
    return info


def create_proposer(model: str, client: LLMClient) -> MoveProposer:
    return get_model(model).proposer(model, client)
