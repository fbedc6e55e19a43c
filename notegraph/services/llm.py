"""
LLM Service

Single-shot chat completions used by the similarity judge and the
note auto-tagger.

Backends:
    - openai: Chat Completions API via the official async SDK.
    - ollama: Local model via the Ollama HTTP API (httpx).

Design:
    - One bounded request per call (client timeout), no retry loop.
    - Every upstream failure surfaces as ``LLMCallError`` so callers
      choose their own degradation policy.
"""

from __future__ import annotations

import logging

import httpx
from openai import AsyncOpenAI, OpenAIError

from notegraph.core.config import Settings, settings
from notegraph.core.errors import LLMCallError

logger = logging.getLogger(__name__)


class LLMService:
    """
    Async chat completion client with a pluggable backend.

    Usage::

        llm = LLMService()
        text = await llm.complete(
            system="Return only a number.",
            prompt="Rate similarity between 'a' and 'b'",
            max_tokens=10,
            temperature=0.1,
        )
    """

    def __init__(
        self,
        config: Settings = settings,
        openai_client: AsyncOpenAI | None = None,
    ) -> None:
        """
        Initialize the LLM service.

        Args:
            config: Settings providing backend, model names and timeout.
            openai_client: Pre-built OpenAI client (tests, shared pools).
        """
        self._backend = config.LLM_BACKEND
        self._timeout = config.LLM_TIMEOUT
        self._chat_model = config.CHAT_MODEL
        self._ollama_base_url = config.OLLAMA_BASE_URL
        self._ollama_model = config.OLLAMA_MODEL
        self._openai = openai_client
        self._openai_key = config.OPENAI_API_KEY

    @property
    def model(self) -> str:
        return self._chat_model if self._backend == "openai" else self._ollama_model

    async def complete(
        self,
        *,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """
        Run one completion and return the raw text.

        Raises:
            LLMCallError: On connection failure, timeout, error status
                or an empty payload.
        """
        if self._backend == "ollama":
            return await self._call_ollama(system, prompt, max_tokens, temperature)
        return await self._call_openai(system, prompt, max_tokens, temperature)

    def _get_openai(self) -> AsyncOpenAI:
        if self._openai is None:
            if not self._openai_key or self._openai_key.lower() == "mock":
                raise LLMCallError("OpenAI API key is not configured")
            self._openai = AsyncOpenAI(
                api_key=self._openai_key, timeout=self._timeout, max_retries=0
            )
        return self._openai

    async def _call_openai(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        client = self._get_openai()
        try:
            response = await client.chat.completions.create(
                model=self._chat_model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as e:
            raise LLMCallError(f"OpenAI chat call failed: {e}") from e

        if not response.choices:
            raise LLMCallError("OpenAI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise LLMCallError("OpenAI returned an empty message")
        return content

    async def _call_ollama(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        url = f"{self._ollama_base_url}/api/generate"
        payload = {
            "model": self._ollama_model,
            "system": system,
            "prompt": prompt,
            "stream": False,
            "options": {"num_predict": max_tokens, "temperature": temperature},
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.RequestError as e:
            raise LLMCallError(f"Ollama unreachable ({type(e).__name__})") from e
        except httpx.HTTPStatusError as e:
            raise LLMCallError(f"Ollama API error: {e.response.text}") from e
        except ValueError as e:  # invalid JSON body
            raise LLMCallError("Ollama returned a non-JSON body") from e

        content = data.get("response")
        if not isinstance(content, str):
            raise LLMCallError("Ollama response has no text")
        return content

    async def health_check(self) -> bool:
        """
        Check if the configured backend is usable.

        OpenAI is only checked for a configured key (no billable call);
        Ollama is probed over HTTP.

        Returns:
            True if the backend looks usable, False otherwise.
        """
        if self._backend == "openai":
            key = self._openai_key
            return self._openai is not None or bool(key and key.lower() != "mock")
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._ollama_base_url}/api/tags")
                return response.status_code == 200
        except httpx.RequestError:
            return False
