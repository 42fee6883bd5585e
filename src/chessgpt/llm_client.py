"""
LLM client facade over the OpenAI API.

One LLMClient is built at startup with a validated credential and injected into
the move proposers. It exposes the two call shapes the proposers need (chat
messages and legacy text completion), both with the same short sampling
parameters, and returns the raw reply text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import openai
from openai import OpenAI

from .config import SETTINGS, Settings
from .errors import EmptyResponseError, LLMServiceError

log = logging.getLogger("llm_client")


@dataclass(frozen=True)
class SamplingParams:
    temperature: float = 1.0
    max_tokens: int = 10
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0

    def as_kwargs(self) -> dict:
        return {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
        }


class LLMClient:
    """Owns the OpenAI SDK client for the lifetime of the app."""

    def __init__(self, client: OpenAI, sampling: Optional[SamplingParams] = None, timeout_s: Optional[float] = None):
        self.client = client
        self.sampling = sampling or SamplingParams()
        self.timeout_s = timeout_s

    @classmethod
    def from_settings(cls, settings: Settings = SETTINGS, api_key: Optional[str] = None) -> "LLMClient":
        key = api_key or settings.openai_api_key
        if not key:
            raise ValueError("An OpenAI API key is required (set CHESSGPT_OPENAI_API_KEY or OPENAI_API_KEY).")
        client = OpenAI(
            api_key=key,
            base_url=settings.api_base or None,
            organization=settings.organization or None,
        )
        sampling = SamplingParams(temperature=settings.temperature, max_tokens=settings.max_tokens)
        return cls(client, sampling=sampling, timeout_s=settings.request_timeout_s)

    # ------------------------- Call shapes -------------------------
    def chat(self, model: str, messages: List[Dict[str, str]]) -> str:
        """Send role-tagged messages and return the first choice's content."""
        try:
            rsp = self.client.chat.completions.create(
                model=model,
                messages=messages,
                timeout=self.timeout_s,
                **self.sampling.as_kwargs(),
            )
        except openai.OpenAIError as exc:
            log.warning("Chat request to %s failed: %s", model, exc)
            raise LLMServiceError(str(exc)) from exc
        content = None
        if rsp.choices:
            content = rsp.choices[0].message.content
        if not content:
            raise EmptyResponseError()
        return content

    def complete(self, model: str, prompt: str) -> str:
        """Send a single prompt string and return the first choice's text."""
        try:
            rsp = self.client.completions.create(
                model=model,
                prompt=prompt,
                timeout=self.timeout_s,
                **self.sampling.as_kwargs(),
            )
        except openai.OpenAIError as exc:
            log.warning("Completion request to %s failed: %s", model, exc)
            raise LLMServiceError(str(exc)) from exc
        text = rsp.choices[0].text if rsp.choices else None
        if not text:
            raise EmptyResponseError()
        return text
