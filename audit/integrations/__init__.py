"""Text completion providers.

Both clients expose the same coroutine:
``complete(prompt, *, model, temperature, response_format, system) -> str``
and raise ``CompletionError`` on failure.
"""

from typing import Any, Dict, Optional, Protocol

from audit.config import settings
from audit.integrations.claude import ClaudeClient
from audit.integrations.openai_client import OpenAIClient


class CompletionClient(Protocol):
    """Interchangeable text completion service."""

    provider: str

    async def complete(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        temperature: float = 0,
        response_format: Optional[Dict[str, Any]] = None,
        system: Optional[str] = None,
    ) -> str: ...


PROVIDERS = {
    ClaudeClient.provider: ClaudeClient,
    OpenAIClient.provider: OpenAIClient,
}


def get_completion_client(provider: Optional[str] = None) -> CompletionClient:
    """Build the configured completion client.

    Raises:
        ValueError: For an unknown provider name.
    """
    name = (provider or settings.COMPLETION_PROVIDER or "").strip().lower()
    if name not in PROVIDERS:
        raise ValueError(f"Unknown completion provider: {name!r}")
    return PROVIDERS[name]()


__all__ = [
    "ClaudeClient",
    "OpenAIClient",
    "CompletionClient",
    "get_completion_client",
]
