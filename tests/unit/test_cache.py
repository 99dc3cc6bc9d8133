"""Unit tests for the enhancement cache."""

import pytest

from imagestudio.utils.cache import (
    PromptCache,
    clear_cache,
    get_cache,
    get_cached_prompt,
)


@pytest.mark.unit
class TestPromptCache:
    def test_get_miss_returns_none(self):
        cache = PromptCache()
        assert cache.get("prompt", "model", "editing") is None
        assert cache.get("prompt", "model", "editing", "imghash") is None

    def test_set_get_roundtrip(self):
        cache = PromptCache()
        cache.set("p", "m", "editing", "enhanced")
        assert cache.get("p", "m", "editing") == "enhanced"

    def test_mode_is_part_of_key(self):
        cache = PromptCache()
        cache.set("p", "m", "editing", "for editing")
        assert cache.get("p", "m", "generation") is None

    def test_image_hash_is_part_of_key(self):
        cache = PromptCache()
        cache.set("p", "m", "editing", "with image", image_hash="abc")
        assert cache.get("p", "m", "editing", "abc") == "with image"
        assert cache.get("p", "m", "editing") is None

    def test_clear_and_size(self):
        cache = PromptCache()
        cache.set("p", "m", "editing", "x")
        cache.set("q", "m", "editing", "y")
        assert cache.size() == 2
        cache.clear()
        assert cache.size() == 0


@pytest.mark.unit
class TestGlobalCache:
    def test_global_instance_shared(self):
        assert get_cache() is get_cache()

    def test_get_cached_prompt_and_clear(self):
        get_cache().set("p", "m", "generation", "global")
        assert get_cached_prompt("p", "m", "generation") == "global"
        clear_cache()
        assert get_cached_prompt("p", "m", "generation") is None


@pytest.mark.unit
class TestCacheKeyFields:
    def test_context_description_is_part_of_key(self):
        cache = PromptCache()
        cache.set("p", "m", "editing", "described", "abc", context="a beach")
        assert cache.get("p", "m", "editing", "abc", context="a beach") == "described"
        assert cache.get("p", "m", "editing", "abc") is None
        assert cache.get("p", "m", "editing", "abc", context="a forest") is None

    def test_provider_is_part_of_key(self):
        cache = PromptCache()
        cache.set("p", "m", "editing", "routed", provider="openrouter")
        assert cache.get("p", "m", "editing", provider="openrouter") == "routed"
        assert cache.get("p", "m", "editing", provider="gemini") is None

    def test_empty_fields_do_not_collide(self):
        cache = PromptCache()
        cache.set("p", "m", "editing", "image only", "abc")
        assert cache.get("p", "m", "editing", None, context="abc") is None
