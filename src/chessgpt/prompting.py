"""
Prompt defaults and builders for move requests.

The user prompt is a free-form prefix (by default a PGN header block) that the
serialized game is appended to, so completion models simply continue the movetext.
The system prompt is only sent to chat models.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

DEFAULT_USER_PROMPT = (
    '[Event "FIDE World Cup 2023"]\n'
    '[Site "Baku AZE"]\n'
    '[Date "2023.08.23"]\n'
    '[EventDate "2021.07.30"]\n'
    '[Round "8.2"]\n'
    '[Result "1/2-1/2"]\n'
    '[White "Magnus Carlsen"]\n'
    '[Black "Rameshbabu Praggnanandhaa"]\n'
    '[ECO "C48"]\n'
    '[WhiteElo "2835"]\n'
    '[BlackElo "2690"]\n'
    '[PlyCount "60"]\n'
    "\n"
)
DEFAULT_SYSTEM_PROMPT = (
    "You are a Chess grandmaster that helps analyze and predict live chess games. "
    "Given the algebraic notation for a given match, predict the next move. "
    "Do not return anything except for the algebraic notation for your prediction."
)

# Sent in place of the movetext before the first move.
EMPTY_GAME_PREFIX = "1. "


@dataclass
class PromptConfig:
    """Editable prompt pair shared by both model slots."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    user_prompt: str = DEFAULT_USER_PROMPT

    def to_dict(self) -> Dict[str, str]:
        return {"system_prompt": self.system_prompt, "user_prompt": self.user_prompt}


def build_user_prompt(prompt_cfg: PromptConfig, movetext: str) -> str:
    """Prefix the game's movetext with the user prompt."""
    return (prompt_cfg.user_prompt or "") + (movetext or EMPTY_GAME_PREFIX)


def build_chat_messages(prompt_cfg: PromptConfig, movetext: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": prompt_cfg.system_prompt or ""},
        {"role": "user", "content": build_user_prompt(prompt_cfg, movetext)},
    ]
