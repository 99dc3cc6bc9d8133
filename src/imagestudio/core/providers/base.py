"""
Provider protocol for text completion.

Defines the interface that prompt enhancement backends must implement.
"""

from __future__ import annotations

from typing import Protocol

from imagestudio.core.config import Config


class TextCompletionProvider(Protocol):
    """Protocol for text completion providers used by prompt enhancement.

    Providers implement HTTP communication with a backend and return the
    completion text, or raise ProviderError.
    """

    def api_key(self, config: Config) -> str:
        """Return the API key this provider uses from config ('' when unset)."""
        ...

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        config: Config,
        *,
        model: str | None = None,
        timeout: int | None = None,
    ) -> str:
        """Return the model's reply to user_message under system_prompt.

        May raise ProviderError.
        """
        ...
