"""
Prompt validation and enhancement for imagestudio.

enhance_prompt() rewrites a short instruction into a more detailed one using
a secondary text model. It is best-effort: a single attempt, and on any
failure a deterministic local fallback (the instruction plus a fixed,
mode-specific suffix) is returned instead of an error.
"""

import hashlib
import re
from enum import Enum

from imagestudio.core.config import Config, get_config
from imagestudio.core.images import EncodedImage
from imagestudio.core.prompts_loader import get_enhancement_prompts
from imagestudio.core.providers import get_registry
from imagestudio.core.providers.base import TextCompletionProvider
from imagestudio.diagnostics import DiagnosticSink, default_sink
from imagestudio.logging_config import get_logger, log_prompts
from imagestudio.utils.cache import get_cache
from imagestudio.utils.exceptions import ValidationError

logger = get_logger(__name__)


class EnhancementMode(Enum):
    """What the enhanced instruction will be used for."""

    EDITING = "editing"
    GENERATION = "generation"


FALLBACK_SUFFIXES = {
    EnhancementMode.EDITING: (
        " with enhanced detail, professional quality effects, balanced composition"
        " and rich visual texture"
    ),
    EnhancementMode.GENERATION: (
        " with exceptional detail clarity, refined aesthetics, and professional-grade adjustments"
    ),
}

MIN_PROMPT_LENGTH = 3

# Preambles and sign-offs chat models like to add around the prompt
_LEADING_PATTERNS = (
    re.compile(r"^enhanced (?:editing |edit )?prompt:?\s*", re.IGNORECASE),
    re.compile(r"^here's an enhanced version:?\s*", re.IGNORECASE),
    re.compile(r"^here's a refined prompt:?\s*", re.IGNORECASE),
)
_TRAILING_PATTERNS = (
    re.compile(r"\n*I hope this helps!.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\n*Let me know if.*$", re.IGNORECASE | re.DOTALL),
)


def validate_prompt(prompt: str) -> None:
    """
    Validate a text prompt.

    Args:
        prompt: The prompt to validate

    Raises:
        ValidationError: If prompt is invalid
    """
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt cannot be empty", field="prompt")

    if len(prompt.strip()) < MIN_PROMPT_LENGTH:
        raise ValidationError(
            f"Prompt is too short. Please provide at least {MIN_PROMPT_LENGTH} characters.",
            field="prompt",
        )


def fallback_prompt(instruction_text: str, mode: EnhancementMode) -> str:
    """Return the local enhancement used when the remote call fails."""
    return f"{instruction_text}{FALLBACK_SUFFIXES[mode]}"


def clean_enhanced_prompt(text: str) -> str:
    """Strip quotes, preambles and closing remarks from a model's reply."""
    cleaned = text.strip()
    for pattern in _TRAILING_PATTERNS:
        cleaned = pattern.sub("", cleaned).strip()
    for pattern in _LEADING_PATTERNS:
        cleaned = pattern.sub("", cleaned).strip()
    if len(cleaned) >= 2 and cleaned[0] in "\"'" and cleaned[-1] == cleaned[0]:
        cleaned = cleaned[1:-1].strip()
    return cleaned


def _context_summary(
    context_image: EncodedImage | None, context_description: str | None
) -> str | None:
    if context_description and context_description.strip():
        return context_description.strip()
    if context_image is not None:
        return context_image.describe()
    return None


def _build_messages(
    instruction_text: str, mode: EnhancementMode, context: str | None
) -> tuple[str, str]:
    prompts = get_enhancement_prompts(mode.value)
    if context:
        user = prompts.user_with_context.format(instruction=instruction_text, context=context)
    else:
        user = prompts.user.format(instruction=instruction_text)
    return prompts.system, user


def enhance_prompt(
    instruction_text: str,
    context_image: EncodedImage | None = None,
    mode: EnhancementMode = EnhancementMode.EDITING,
    config: Config | None = None,
    *,
    provider: TextCompletionProvider | None = None,
    context_description: str | None = None,
    use_cache: bool = True,
    sink: DiagnosticSink | None = None,
) -> str:
    """
    Rewrite an instruction into a more detailed one (best-effort).

    Args:
        instruction_text: The user's short instruction
        context_image: Optional image the instruction refers to
        mode: EDITING keeps to what the image already shows; GENERATION embellishes
        config: Optional config; if None, uses shared config from get_config()
        provider: Optional text provider (defaults to config.enhancement_provider)
        context_description: Optional text description of the context image
            (e.g. from describe_image); used instead of the image's format/size summary
        use_cache: Reuse earlier successful enhancements of the same input
        sink: Diagnostic sink (defaults to logging)

    Returns:
        The enhanced instruction, or fallback_prompt(instruction_text, mode)
        if the remote call fails for any reason. Never raises.
    """
    sink = sink or default_sink()
    config = config or get_config()
    model = config.enhancement_model
    image_hash = hashlib.sha256(context_image.data).hexdigest() if context_image else None
    provider_id = config.enhancement_provider if provider is None else type(provider).__name__
    description = (context_description or "").strip() or None
    cache_fields = {"provider": provider_id, "context": description}

    if use_cache:
        cached = get_cache().get(instruction_text, model, mode.value, image_hash, **cache_fields)
        if cached:
            sink.emit("enhance.cache_hit", mode=mode.value)
            return cached

    try:
        validate_prompt(instruction_text)
        impl = provider or get_registry().require(config.enhancement_provider)
        context = _context_summary(context_image, context_description)
        system_prompt, user_message = _build_messages(instruction_text, mode, context)
        sink.emit("enhance.request", mode=mode.value, model=model, has_context=context is not None)
        reply = impl.complete(system_prompt, user_message, config, model=model)
        enhanced = clean_enhanced_prompt(reply)
        if not enhanced:
            raise ValidationError("Enhancement model returned an empty prompt")
    except Exception as e:
        # Any failure falls back, including errors raised outside ImageStudioError
        sink.emit("enhance.fallback", mode=mode.value, error=type(e).__name__, detail=str(e))
        return fallback_prompt(instruction_text, mode)

    if use_cache:
        get_cache().set(instruction_text, model, mode.value, enhanced, image_hash, **cache_fields)
    sink.emit("enhance.succeeded", mode=mode.value, chars=len(enhanced))
    if log_prompts():
        logger.info("Prompt (original): %s", instruction_text)
        logger.info("Prompt (enhanced): %s", enhanced)
    return enhanced


__all__ = [
    "EnhancementMode",
    "FALLBACK_SUFFIXES",
    "clean_enhanced_prompt",
    "enhance_prompt",
    "fallback_prompt",
    "validate_prompt",
]
