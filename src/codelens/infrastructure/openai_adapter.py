"""OpenAI adapter — implements the LlmGateway port."""

from __future__ import annotations

import logging

from openai import AsyncOpenAI, AuthenticationError, RateLimitError

from codelens.domain.exceptions import LlmError

logger = logging.getLogger(__name__)


class OpenAIAdapter:
    """Concrete ``LlmGateway`` backed by the OpenAI chat-completions API."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini") -> None:
        self._client = AsyncOpenAI(api_key=api_key, max_retries=5)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, prompt: str) -> str:
        """Send *prompt* in JSON mode and return the completion text."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=0.2,
            )
        except AuthenticationError as exc:
            logger.error("OpenAI rejected the API key: %s", exc)
            raise LlmError("Invalid OpenAI API key.") from exc
        except RateLimitError as exc:
            logger.error("OpenAI RateLimitError: %s", exc)
            raise LlmError("OpenAI rate limit / quota error.") from exc
        except Exception as exc:
            logger.exception("OpenAI call failed")
            raise LlmError(f"LLM call failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LlmError("Empty response from the model.")
        return content

    async def close(self) -> None:
        """Release underlying HTTP resources."""
        await self._client.close()
