"""Claude AI client for audit report generation."""

from typing import Any, Dict, Optional

import structlog
from anthropic import APIError, AsyncAnthropic

from audit.config import settings
from audit.errors import CompletionError

logger = structlog.get_logger()

JSON_INSTRUCTION = (
    "Respond with a single valid JSON object only. "
    "Do not wrap it in Markdown or add any commentary."
)


class ClaudeClient:
    """Text completion via the Anthropic Messages API."""

    provider = "claude"

    def __init__(self, api_key: Optional[str] = None):
        """Initialize Claude client with async support."""
        self.api_key = (api_key or settings.ANTHROPIC_API_KEY or "").strip()
        self.model = settings.CLAUDE_MODEL
        self.max_tokens = settings.CLAUDE_MAX_TOKENS
        self._client: Optional[AsyncAnthropic] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.api_key)
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

        Claude has no response_format switch; JSON output is requested
        through the system prompt instead.

        Raises:
            CompletionError: If the client is not configured or the call fails.
        """
        if not self.is_configured:
            raise CompletionError("ANTHROPIC_API_KEY is not configured")

        system_prompt = system or ""
        if response_format and response_format.get("type") == "json_object":
            system_prompt = f"{system_prompt}\n\n{JSON_INSTRUCTION}".strip()

        kwargs: Dict[str, Any] = {
            "model": model or self.model,
            "max_tokens": self.max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self._get_client().messages.create(**kwargs)
        except APIError as e:
            logger.error("Claude API error during completion", error=str(e))
            raise CompletionError(f"Claude completion failed: {str(e)}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return text.strip()
