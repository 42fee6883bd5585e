"""
Move extraction helpers for LLM replies.

A reply like "12. Nf3 Nc6" is reduced to a single candidate token by dropping
move-number markers (any token containing a period) and keeping the first
remaining token. The candidate is accepted only if it is exactly one of the
legal SAN moves; no salvage or notation conversion is attempted.
"""
from __future__ import annotations

from typing import Iterable, Optional


def extract_candidate(raw_text: str) -> str:
    """Return the first space-delimited token without a period, or '' if none."""
    tokens = (raw_text or "").strip().split(" ")
    for token in tokens:
        if "." not in token:
            return token
    return ""


def match_legal_move(candidate: str, legal_moves: Iterable[str]) -> Optional[str]:
    """Return the legal move string-equal to candidate, else None."""
    if not candidate:
        return None
    for move in legal_moves:
        if move == candidate:
            return move
    return None


__all__ = ["extract_candidate", "match_legal_move"]
