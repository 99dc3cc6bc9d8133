"""
In-memory caching for imagestudio.

This module provides session-scoped caching for enhanced prompts to avoid
redundant API calls when the same instruction is enhanced more than once.
Only successful remote enhancements are cached; fallbacks never are.
"""

import hashlib
from typing import Dict, Optional


class PromptCache:
    """In-memory cache for enhanced prompts."""

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._cache: Dict[str, str] = {}

    def _generate_key(
        self,
        prompt: str,
        model: str,
        mode: str,
        image_hash: Optional[str] = None,
        *,
        provider: Optional[str] = None,
        context: Optional[str] = None,
    ) -> str:
        """
        Generate a cache key from everything that shapes the enhancement request.

        Args:
            prompt: The original instruction text
            model: The enhancement model name
            mode: Enhancement mode ("editing" or "generation")
            image_hash: Hash of the context image (if any)
            provider: Enhancement provider id (if known)
            context: Text description of the context image (if any)

        Returns:
            A hash string to use as cache key
        """
        # Fixed positions, so an empty field never collides with a neighbour
        key_parts = [prompt, model, mode, image_hash or "", provider or "", context or ""]
        key_string = "\x1f".join(key_parts)
        return hashlib.sha256(key_string.encode()).hexdigest()

    def get(
        self,
        prompt: str,
        model: str,
        mode: str,
        image_hash: Optional[str] = None,
        *,
        provider: Optional[str] = None,
        context: Optional[str] = None,
    ) -> Optional[str]:
        """
        Retrieve an enhanced prompt from cache.

        Returns:
            The cached enhanced prompt, or None if not found
        """
        key = self._generate_key(
            prompt, model, mode, image_hash, provider=provider, context=context
        )
        return self._cache.get(key)

    def set(
        self,
        prompt: str,
        model: str,
        mode: str,
        enhanced_prompt: str,
        image_hash: Optional[str] = None,
        *,
        provider: Optional[str] = None,
        context: Optional[str] = None,
    ) -> None:
        """Store an enhanced prompt in cache."""
        key = self._generate_key(
            prompt, model, mode, image_hash, provider=provider, context=context
        )
        self._cache[key] = enhanced_prompt

    def clear(self) -> None:
        """Clear all cached prompts."""
        self._cache.clear()

    def size(self) -> int:
        """
        Get the number of cached prompts.

        Returns:
            Number of items in cache
        """
        return len(self._cache)


# Global cache instance for the application
_global_cache: Optional[PromptCache] = None


def get_cache() -> PromptCache:
    """
    Get the global cache instance.

    Returns:
        The global PromptCache instance
    """
    global _global_cache
    if _global_cache is None:
        _global_cache = PromptCache()
    return _global_cache


def get_cached_prompt(
    prompt: str,
    model: str,
    mode: str,
    image_hash: Optional[str] = None,
    *,
    provider: Optional[str] = None,
    context: Optional[str] = None,
) -> Optional[str]:
    """Return a cached enhancement from the global cache, or None."""
    return get_cache().get(prompt, model, mode, image_hash, provider=provider, context=context)


def clear_cache() -> None:
    """Clear the global cache."""
    cache = get_cache()
    cache.clear()
