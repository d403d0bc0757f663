"""Port: LLM gateway — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol


class LlmGateway(Protocol):
    """Abstract contract for interacting with a large-language model."""

    async def generate(self, prompt: str) -> str:
        """Send a prompt and return the raw (JSON-biased) completion text."""
        ...
