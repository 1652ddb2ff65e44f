"""OpenAI client for audit report generation."""

from typing import Any, Dict, List, Optional

import structlog
from openai import AsyncOpenAI, OpenAIError

from audit.config import settings
from audit.errors import CompletionError

logger = structlog.get_logger()


class OpenAIClient:
    """Text completion via the OpenAI Chat Completions API."""

    provider = "openai"

    def __init__(self, api_key: Optional[str] = None):
        # Strip to avoid hidden whitespace/newlines in env values
        self.api_key = (api_key or settings.OPENAI_API_KEY or "").strip()
        self.model = settings.OPENAI_MODEL
        self._client: Optional[AsyncOpenAI] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def complete(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        temperature: float = 0,
        response_format: Optional[Dict[str, Any]] = None,
        system: Optional[str] = None,
    ) -> str:
        """Complete a single-turn prompt and return the reply text.

        Raises:
            CompletionError: If the client is not configured or the call fails.
        """
        if not self.is_configured:
            raise CompletionError("OPENAI_API_KEY is not configured")

        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if response_format:
            kwargs["response_format"] = response_format

        try:
            resp = await self._get_client().chat.completions.create(**kwargs)
        except OpenAIError as e:
            logger.error("OpenAI request failed", error=str(e))
            raise CompletionError(f"OpenAI completion failed: {str(e)}") from e

        return (resp.choices[0].message.content or "").strip()
