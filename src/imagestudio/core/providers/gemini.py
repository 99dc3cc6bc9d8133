"""
Gemini text completion provider.

Uses the generateContent endpoint with a text-only body. Gemini has no
separate system role in this call shape, so the system prompt and the user
message are sent as one text part.
"""

from typing import Any

from imagestudio.core.config import Config
from imagestudio.core.parser import extract_text
from imagestudio.core.transport import post_json
from imagestudio.logging_config import get_logger
from imagestudio.utils.exceptions import ErrorKind, ProviderError

logger = get_logger(__name__)

DEFAULT_TEXT_MODEL = "gemini-1.5-flash"


class GeminiTextProvider:
    """Text completion provider for the Gemini API."""

    def api_key(self, config: Config) -> str:
        return config.gemini_api_key

    def _build_payload(self, system_prompt: str, user_message: str, config: Config) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": f"{system_prompt}\n\n{user_message}"}],
                }
            ],
            "generationConfig": {
                "temperature": config.enhancement_temperature,
                "topP": 0.9,
                "topK": 40,
                "maxOutputTokens": config.enhancement_max_tokens,
            },
        }

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        config: Config,
        *,
        model: str | None = None,
        timeout: int | None = None,
    ) -> str:
        """Return the completion for user_message via Gemini generateContent."""
        api_key = self.api_key(config)
        if not api_key:
            raise ProviderError(
                "Gemini API key is missing. Set GEMINI_API_KEY.",
                kind=ErrorKind.UNAUTHORIZED,
            )
        # The shared enhancement_model default names an OpenRouter model; fall back for Gemini
        model = model or config.enhancement_model
        if "/" in model:
            model = DEFAULT_TEXT_MODEL
        url = f"{config.gemini_base_url.rstrip('/')}/models/{model}:generateContent"
        headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
        logger.debug("Gemini completion model=%s", model)
        data = post_json(
            url,
            headers,
            self._build_payload(system_prompt, user_message, config),
            timeout or config.enhancement_timeout,
            debug=config.debug_api,
        )
        if isinstance(data, dict):
            feedback = data.get("promptFeedback")
            if isinstance(feedback, dict) and feedback.get("blockReason"):
                raise ProviderError(
                    f"Prompt blocked: {feedback['blockReason']}",
                    kind=ErrorKind.INVALID_REQUEST,
                    response=str(data),
                )
        text = extract_text(data)
        if not text:
            raise ProviderError("No text generated from Gemini API", response=str(data))
        return text
