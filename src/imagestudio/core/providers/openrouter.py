"""
OpenRouter text completion provider.

Sends a system + user message pair to the OpenRouter chat/completions
endpoint and returns the first choice's message content.
"""

from typing import Any

from imagestudio.core.config import Config
from imagestudio.core.transport import post_json
from imagestudio.logging_config import get_logger
from imagestudio.utils.exceptions import ErrorKind, ProviderError

logger = get_logger(__name__)


class OpenRouterProvider:
    """Text completion provider for the OpenRouter API."""

    def api_key(self, config: Config) -> str:
        return config.openrouter_api_key

    def _build_payload(
        self, system_prompt: str, user_message: str, model: str, config: Config
    ) -> dict[str, Any]:
        """Build OpenRouter chat/completions payload."""
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "temperature": config.enhancement_temperature,
            "max_tokens": config.enhancement_max_tokens,
        }

    def _parse_response(self, data: Any) -> str:
        """Extract choices[0].message.content. Raises ProviderError on a malformed body."""
        if not isinstance(data, dict):
            raise ProviderError("Unexpected OpenRouter response shape", response=str(data))
        error = data.get("error")
        if isinstance(error, dict):
            raise ProviderError(
                f"OpenRouter API error: {error.get('message', 'unknown error')}",
                response=str(data),
            )
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ProviderError("No response generated from OpenRouter API", response=str(data))
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise ProviderError("OpenRouter returned an empty response", response=str(data))
        return content.strip()

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        config: Config,
        *,
        model: str | None = None,
        timeout: int | None = None,
    ) -> str:
        """Return the completion for user_message via OpenRouter."""
        api_key = self.api_key(config)
        if not api_key:
            raise ProviderError(
                "OpenRouter API key is missing. Set OPENROUTER_API_KEY.",
                kind=ErrorKind.UNAUTHORIZED,
            )
        model = model or config.enhancement_model
        url = f"{config.openrouter_base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": config.http_referer,
            "X-Title": config.app_title,
        }
        payload = self._build_payload(system_prompt, user_message, model, config)
        logger.debug("OpenRouter completion model=%s", model)
        data = post_json(
            url,
            headers,
            payload,
            timeout or config.enhancement_timeout,
            debug=config.debug_api,
        )
        return self._parse_response(data)
