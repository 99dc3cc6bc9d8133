"""
Load prompt templates from the bundled prompts.yaml file.

Prompts are defined in src/imagestudio/prompts.yaml and loaded once per process.
Add new prompt keys there and access them via get_prompt() or specific getters.
"""

import importlib.resources
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from imagestudio.utils.exceptions import ConfigurationError

# Module-level cache for parsed prompts
_prompts_data: dict[str, Any] | None = None


class EnhancementModePrompt(BaseModel):
    """Schema for one enhancement mode (editing or generation)."""

    system: str = Field(..., min_length=1, description="System instruction for the mode")
    user: str = Field(..., min_length=1, description="User message; must contain {instruction}")
    user_with_context: str = Field(
        ...,
        min_length=1,
        description="User message when image context is known; must contain {instruction} and {context}",
    )


class EnhancementPrompts(BaseModel):
    editing: EnhancementModePrompt
    generation: EnhancementModePrompt


class AnalysisPrompt(BaseModel):
    prompt: str = Field(..., min_length=1)


class PromptsSchema(BaseModel):
    """Schema for prompts.yaml configuration file."""

    model_config = {"extra": "allow"}  # Allow additional keys for future expansion

    enhancement: EnhancementPrompts
    analysis: AnalysisPrompt


def _load_prompts() -> dict[str, Any]:
    """Load and parse prompts.yaml from the package. Cached after first call.

    Returns:
        Dictionary of prompt data.

    Raises:
        ConfigurationError: If YAML is missing, malformed, or fails validation.
    """
    global _prompts_data
    if _prompts_data is not None:
        return _prompts_data

    try:
        with (
            importlib.resources.files("imagestudio")
            .joinpath("prompts.yaml")
            .open(encoding="utf-8") as f
        ):
            raw = f.read()
    except FileNotFoundError as e:
        raise ConfigurationError(
            "prompts.yaml not found. This file is required and should be bundled with the package."
        ) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse prompts.yaml: {e}. Check YAML syntax and formatting."
        ) from e

    if data is None:
        raise ConfigurationError(
            "prompts.yaml is empty. Expected 'enhancement' and 'analysis' sections."
        )

    try:
        PromptsSchema(**data)
    except ValidationError as e:
        errors = "\n".join(
            [f"  - {'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        )
        raise ConfigurationError(
            f"Invalid prompts.yaml structure:\n{errors}\n"
            "Expected 'enhancement.editing', 'enhancement.generation' and 'analysis.prompt'."
        ) from e

    _prompts_data = data
    return _prompts_data


def get_prompt(key: str, *subkeys: str) -> str | None:
    """
    Get a prompt string from prompts.yaml.

    Args:
        key: Top-level key (e.g. "enhancement").
        subkeys: Nested keys (e.g. "editing", "system").

    Returns:
        The prompt string, or None if not found.
    """
    value: Any = _load_prompts().get(key)
    for subkey in subkeys:
        value = value.get(subkey) if isinstance(value, dict) else None
    return value if isinstance(value, str) else None


def get_enhancement_prompts(mode: str) -> EnhancementModePrompt:
    """
    Return the system and user templates for an enhancement mode.

    Args:
        mode: "editing" or "generation"

    Raises:
        ConfigurationError: If the mode is missing or a template lacks its placeholders.
    """
    section = _load_prompts()["enhancement"].get(mode)
    if not isinstance(section, dict):
        raise ConfigurationError(f"enhancement.{mode} not found in prompts.yaml.")
    prompts = EnhancementModePrompt(**section)
    if "{instruction}" not in prompts.user:
        raise ConfigurationError(f"enhancement.{mode}.user must contain {{instruction}}.")
    if (
        "{instruction}" not in prompts.user_with_context
        or "{context}" not in prompts.user_with_context
    ):
        raise ConfigurationError(
            f"enhancement.{mode}.user_with_context must contain {{instruction}} and {{context}}."
        )
    return prompts


def get_analysis_prompt() -> str:
    """
    Return the image analysis prompt.

    Raises:
        ConfigurationError: If the prompt is missing.
    """
    prompt = get_prompt("analysis", "prompt")
    if not prompt:
        raise ConfigurationError("analysis.prompt not found in prompts.yaml. This key is required.")
    return prompt
