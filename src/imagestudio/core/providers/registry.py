"""
Registry for text completion providers.

Provider ids are matched case-insensitively. Built-in providers are registered
as factories and only instantiated the first time they are looked up, so
importing the registry does not import every backend.
"""

from collections.abc import Callable

from imagestudio.core.providers.base import TextCompletionProvider
from imagestudio.utils.exceptions import ConfigurationError

PROVIDER_OPENROUTER = "openrouter"
PROVIDER_GEMINI = "gemini"

ProviderFactory = Callable[[], TextCompletionProvider]


def _normalize(provider_id: str) -> str:
    return provider_id.strip().lower()


class ProviderRegistry:
    """Maps provider ids to TextCompletionProvider instances or factories."""

    def __init__(self) -> None:
        self._impls: dict[str, TextCompletionProvider] = {}
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, provider_id: str, impl: TextCompletionProvider) -> None:
        """Register a ready instance, replacing any earlier entry for the id."""
        key = _normalize(provider_id)
        self._factories.pop(key, None)
        self._impls[key] = impl

    def register_factory(self, provider_id: str, factory: ProviderFactory) -> None:
        """Register a zero-argument factory called on first lookup."""
        key = _normalize(provider_id)
        self._impls.pop(key, None)
        self._factories[key] = factory

    def get(self, provider_id: str) -> TextCompletionProvider | None:
        """Return the provider for provider_id, or None if unknown."""
        key = _normalize(provider_id)
        impl = self._impls.get(key)
        if impl is None and key in self._factories:
            impl = self._factories.pop(key)()
            self._impls[key] = impl
        return impl

    def require(self, provider_id: str) -> TextCompletionProvider:
        """
        Return the provider for provider_id.

        Raises:
            ConfigurationError: If no provider is registered under that id
        """
        impl = self.get(provider_id)
        if impl is None:
            known = ", ".join(self.provider_ids()) or "none"
            raise ConfigurationError(
                f"Unknown enhancement provider: {provider_id!r}. Registered: {known}."
            )
        return impl

    def provider_ids(self) -> list[str]:
        """Return the registered ids, sorted."""
        return sorted(set(self._impls) | set(self._factories))

    def __contains__(self, provider_id: object) -> bool:
        return isinstance(provider_id, str) and _normalize(provider_id) in self.provider_ids()


def _openrouter() -> TextCompletionProvider:
    from imagestudio.core.providers.openrouter import OpenRouterProvider

    return OpenRouterProvider()


def _gemini() -> TextCompletionProvider:
    from imagestudio.core.providers.gemini import GeminiTextProvider

    return GeminiTextProvider()


def register_builtins(registry: ProviderRegistry) -> ProviderRegistry:
    """Add the OpenRouter and Gemini text providers to registry."""
    registry.register_factory(PROVIDER_OPENROUTER, _openrouter)
    registry.register_factory(PROVIDER_GEMINI, _gemini)
    return registry


_registry: ProviderRegistry | None = None


def get_registry() -> ProviderRegistry:
    """Return the global registry, created with the built-in providers on first call."""
    global _registry
    if _registry is None:
        _registry = register_builtins(ProviderRegistry())
    return _registry
