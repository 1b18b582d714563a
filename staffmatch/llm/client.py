"""
staffmatch/llm/client.py

AIReasoningClient protocol + LLMReasoningClient implementation.

- One call per matching request, hard timeout supplied by the caller
- Returns raw text only; provider response shapes stop here
- Any failure raises UpstreamDependencyError (the reranker turns that
  into "no AI stage" and keeps the deterministic ranking)
- The API key never appears in logs, exceptions or structured output
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import anthropic
import openai

from staffmatch import config as _config
from staffmatch.errors import UpstreamDependencyError
from staffmatch.llm.prompt import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic")


class AIReasoningClient(Protocol):
    def complete(self, prompt: str, *, timeout: float) -> str:
        ...


def _fail(message: str, provider: str) -> UpstreamDependencyError:
    return UpstreamDependencyError(message, stage="ai", context={"provider": provider})


class LLMReasoningClient:
    """
    Sends the rerank prompt to OpenAI or Anthropic and returns the text of
    the answer.
    """

    _MAX_TOKENS = 1500

    def __init__(
            self,
            *,
            api_key: str,
            provider: Optional[str] = None,
            model: Optional[str] = None,
            system_prompt: str = SYSTEM_PROMPT,
            temperature: float = 0.3,
    ) -> None:
        if not api_key:
            raise ValueError("LLM API key must not be empty.")
        self._api_key = api_key
        self._provider = (provider or _config.STAFFMATCH_LLM_PROVIDER).strip().lower()
        self._model = (model or _config.default_model(self._provider)).strip()
        self._system_prompt = system_prompt
        self._temperature = temperature

        if self._provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unsupported provider '{self._provider}'. Use 'openai' or 'anthropic'."
            )

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def complete(self, prompt: str, *, timeout: float) -> str:
        try:
            if self._provider == "anthropic":
                raw = self._call_anthropic(prompt, timeout)
            else:
                raw = self._call_openai(prompt, timeout)
        except UpstreamDependencyError:
            raise
        except Exception as exc:
            # Sanitize: the SDK message may echo request details
            raise _fail(f"LLM call failed: {type(exc).__name__}", self._provider) from None

        text = (raw or "").strip()
        if not text:
            raise _fail("LLM returned an empty response.", self._provider)
        logger.debug("LLM %s/%s answered with %d chars", self._provider, self._model, len(text))
        return text

    # ------------------------------------------------------------------
    # Provider implementations
    # ------------------------------------------------------------------

    def _call_anthropic(self, prompt: str, timeout: float) -> str:
        client = anthropic.Anthropic(api_key=self._api_key)
        try:
            message = client.messages.create(
                model=self._model,
                max_tokens=self._MAX_TOKENS,
                temperature=self._temperature,
                timeout=timeout,
                system=self._system_prompt,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError:
            raise _fail(f"Anthropic API timed out after {timeout:g} seconds.", "anthropic") from None
        except anthropic.APIError as exc:
            raise _fail(f"Anthropic API error: {type(exc).__name__}", "anthropic") from None

        parts = [block.text for block in message.content if block.type == "text"]
        if not parts:
            raise _fail("Anthropic returned no text content.", "anthropic")
        return "".join(parts)

    def _call_openai(self, prompt: str, timeout: float) -> str:
        client = openai.OpenAI(api_key=self._api_key, timeout=timeout)
        try:
            response = client.chat.completions.create(
                model=self._model,
                max_tokens=self._MAX_TOKENS,
                temperature=self._temperature,
                messages=[
                    {"role": "system", "content": self._system_prompt},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.APITimeoutError:
            raise _fail(f"OpenAI API timed out after {timeout:g} seconds.", "openai") from None
        except openai.APIError as exc:
            raise _fail(f"OpenAI API error: {type(exc).__name__}", "openai") from None

        if not response.choices:
            raise _fail("OpenAI returned no choices.", "openai")
        content = response.choices[0].message.content
        if not content:
            raise _fail("OpenAI returned empty content.", "openai")
        return content


def default_client() -> Optional[LLMReasoningClient]:
    """Client from environment configuration, or None when no key is set."""
    provider = _config.STAFFMATCH_LLM_PROVIDER
    key = _config.resolve_llm_key(provider)
    if not key:
        return None
    return LLMReasoningClient(api_key=key, provider=provider)
