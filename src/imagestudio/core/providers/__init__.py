"""
Text completion providers used by prompt enhancement.

Use get_registry().require(config.enhancement_provider) to look one up, or
pass a provider instance straight to enhance_prompt().
"""

from imagestudio.core.config import KNOWN_ENHANCEMENT_PROVIDERS
from imagestudio.core.providers.base import TextCompletionProvider
from imagestudio.core.providers.registry import (
    PROVIDER_GEMINI,
    PROVIDER_OPENROUTER,
    ProviderRegistry,
    get_registry,
    register_builtins,
)

__all__ = [
    "KNOWN_ENHANCEMENT_PROVIDERS",
    "PROVIDER_GEMINI",
    "PROVIDER_OPENROUTER",
    "ProviderRegistry",
    "TextCompletionProvider",
    "get_registry",
    "register_builtins",
]
