"""
Configuration management for imagestudio.

This module handles API keys, endpoints, model selection, retry settings and
other configuration values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from imagestudio.core.retry import RetryPolicy
from imagestudio.logging_config import get_logger
from imagestudio.utils.exceptions import ConfigurationError, ValidationError

logger = get_logger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration constants
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_IMAGE_MODEL = "gemini-2.0-flash-exp-image-generation"
DEFAULT_ANALYSIS_MODEL = "gemini-1.5-flash"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_ENHANCEMENT_PROVIDER = "openrouter"
DEFAULT_ENHANCEMENT_MODEL = "mistralai/mistral-small-3.1-24b-instruct:free"
DEFAULT_COUNTER_PATH = "~/.imagestudio/usage.json"

# Gemini keys are 39 chars; anything shorter than this is certainly not a key
MIN_API_KEY_LENGTH = 20

# Provider ids accepted by validate(); do not import from imagestudio.core.providers (circular import)
KNOWN_ENHANCEMENT_PROVIDERS = ("openrouter", "gemini")


@dataclass
class Config:
    """Configuration for the imagestudio client."""

    # Gemini (image edit/generation and image analysis); key excluded from repr
    gemini_api_key: str = field(default="", repr=False)
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    image_model: str = DEFAULT_IMAGE_MODEL
    analysis_model: str = DEFAULT_ANALYSIS_MODEL

    # Prompt enhancement (secondary text provider)
    openrouter_api_key: str = field(default="", repr=False)
    openrouter_base_url: str = DEFAULT_OPENROUTER_BASE_URL
    enhancement_provider: str = DEFAULT_ENHANCEMENT_PROVIDER
    enhancement_model: str = DEFAULT_ENHANCEMENT_MODEL
    enhancement_temperature: float = 0.4
    enhancement_max_tokens: int = 250
    http_referer: str = "https://imagen.ma"
    app_title: str = "Imagen.ma"

    # Generation parameters (text-to-image only)
    generation_temperature: float = 0.4
    generation_top_p: float = 0.95
    generation_top_k: int = 32

    # Retry policy for image requests: one call plus three retries, 1s doubling
    max_attempts: int = 4
    initial_delay_ms: int = 1000
    backoff_multiplier: float = 2.0

    # Timeout Configuration (seconds)
    generation_timeout: int = 180  # 3 minutes
    enhancement_timeout: int = 30
    analysis_timeout: int = 60

    # Input limits
    min_api_key_length: int = MIN_API_KEY_LENGTH
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MiB

    # Usage counter store
    counter_path: str = DEFAULT_COUNTER_PATH

    # Debug: log raw API payload/response with image data truncated
    debug_api: bool = False

    _validated: bool = field(default=False, repr=False)

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Environment variables:
            GEMINI_API_KEY: Required for image edit/generation and analysis
            GEMINI_BASE_URL: Optional Gemini API base URL
            IMAGESTUDIO_IMAGE_MODEL: Optional image model
            IMAGESTUDIO_ANALYSIS_MODEL: Optional image analysis model
            OPENROUTER_API_KEY: Used by the openrouter enhancement provider
            OPENROUTER_BASE_URL: Optional OpenRouter base URL
            IMAGESTUDIO_ENHANCEMENT_PROVIDER: "openrouter" (default) or "gemini"
            IMAGESTUDIO_ENHANCEMENT_MODEL: Optional enhancement model
            IMAGESTUDIO_MAX_ATTEMPTS / IMAGESTUDIO_RETRY_DELAY_MS /
            IMAGESTUDIO_BACKOFF_MULTIPLIER: Optional retry policy
            IMAGESTUDIO_COUNTER_PATH: Optional usage counter file
            IMAGESTUDIO_DEBUG_API: "1"/"true"/"yes" to log raw payloads

        A missing API key is not an error here; it is reported as an
        unauthorized failure the first time a request needs it.

        Returns:
            Config instance populated from environment

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """

        def _int_env(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None or val == "":
                return default
            try:
                return int(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be an integer, got {val!r}.") from e

        def _float_env(name: str, default: float) -> float:
            val = os.getenv(name)
            if val is None or val == "":
                return default
            try:
                return float(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be a number, got {val!r}.") from e

        debug_api = os.getenv("IMAGESTUDIO_DEBUG_API", "").strip().lower() in ("1", "true", "yes")

        config = cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", "").strip(),
            gemini_base_url=os.getenv("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL,
            image_model=os.getenv("IMAGESTUDIO_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
            analysis_model=os.getenv("IMAGESTUDIO_ANALYSIS_MODEL") or DEFAULT_ANALYSIS_MODEL,
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", "").strip(),
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL") or DEFAULT_OPENROUTER_BASE_URL,
            enhancement_provider=(
                os.getenv("IMAGESTUDIO_ENHANCEMENT_PROVIDER") or DEFAULT_ENHANCEMENT_PROVIDER
            ),
            enhancement_model=(
                os.getenv("IMAGESTUDIO_ENHANCEMENT_MODEL") or DEFAULT_ENHANCEMENT_MODEL
            ),
            max_attempts=_int_env("IMAGESTUDIO_MAX_ATTEMPTS", 4),
            initial_delay_ms=_int_env("IMAGESTUDIO_RETRY_DELAY_MS", 1000),
            backoff_multiplier=_float_env("IMAGESTUDIO_BACKOFF_MULTIPLIER", 2.0),
            counter_path=os.getenv("IMAGESTUDIO_COUNTER_PATH") or DEFAULT_COUNTER_PATH,
            debug_api=debug_api,
        )
        if not config.gemini_api_key:
            logger.debug("GEMINI_API_KEY is not set; image requests will fail as unauthorized")

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        API keys are deliberately not checked here: the request clients report
        a missing or malformed key as an unauthorized failure on first use.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger.debug("Validating config")

        try:
            self.retry_policy()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid retry settings: {e}") from e

        if self.enhancement_provider not in KNOWN_ENHANCEMENT_PROVIDERS:
            raise ConfigurationError(
                f"Unknown enhancement_provider: {self.enhancement_provider!r}. "
                f"Must be one of: {', '.join(KNOWN_ENHANCEMENT_PROVIDERS)}."
            )
        for name in ("generation_timeout", "enhancement_timeout", "analysis_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}.")
        if self.max_upload_bytes <= 0:
            raise ConfigurationError(
                f"max_upload_bytes must be positive, got {self.max_upload_bytes}."
            )
        if not self.image_model:
            raise ConfigurationError("image_model cannot be empty")

        self._validated = True

    def is_valid(self) -> bool:
        """
        Check if configuration has been validated.

        Returns:
            True if validate() has been called successfully
        """
        return self._validated

    def retry_policy(self) -> RetryPolicy:
        """Build a fresh RetryPolicy from the retry settings."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_delay_ms=self.initial_delay_ms,
            backoff_multiplier=self.backoff_multiplier,
        )

    def counter_file(self) -> Path:
        """Return the usage counter file path with ~ expanded."""
        return Path(self.counter_path).expanduser()

    def set_api_key(self, api_key: str) -> None:
        """
        Set the Gemini API key.

        Args:
            api_key: The API key to use

        Raises:
            ConfigurationError: If API key is empty
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError("API key cannot be empty")

        self.gemini_api_key = api_key.strip()
        self._validated = False  # Need to revalidate

    def set_image_model(self, model: str) -> None:
        """
        Set the image edit/generation model.

        Args:
            model: Gemini model name (e.g. 'gemini-2.0-flash-exp-image-generation')

        Raises:
            ConfigurationError: If model is empty
        """
        if not model:
            raise ConfigurationError("Model ID cannot be empty")

        self.image_model = model

    def set_enhancement_model(self, model: str) -> None:
        """
        Set the prompt enhancement model.

        Args:
            model: Model name for the configured enhancement provider

        Raises:
            ConfigurationError: If model name is invalid
        """
        if not model:
            raise ConfigurationError("Model name cannot be empty")

        self.enhancement_model = model


# Global configuration instance
_global_config: Config | None = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        The global Config instance
    """
    global _global_config
    if _global_config is None:
        _global_config = Config.from_env()
    return _global_config


def set_config(config: Config) -> None:
    """
    Set the global configuration instance.

    Args:
        config: The Config instance to use globally
    """
    global _global_config
    _global_config = config
