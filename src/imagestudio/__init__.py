"""
imagestudio - AI image editing and generation client

A Python package for editing images with text instructions and generating
images from prompts via the Gemini API, with optional prompt enhancement
through a secondary text model.

Library usage:
- Configuration can be passed per operation (e.g. edit_image(..., config=my_config))
  or via the shared config: use get_config() / set_config() and omit the config argument.
- edit_image() and generate_image() never raise provider errors; they return a
  GenerationSuccess or GenerationFailure (check ``result.ok``).
- enhance_prompt() is best-effort and falls back to a local rewrite on any failure.
- Logging: control verbosity with set_verbosity(0|1|2) or configure_logging(verbose_level, quiet);
  quiet mode still shows failed requests and enhancement fallbacks;
  IMAGESTUDIO_VERBOSITY env (0/1/2) is read when CLI runs or when logging is configured.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("imagestudio")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source in development)
    __version__ = "0.0.0.dev"

from imagestudio.core.classifier import classify, is_retryable, user_message
from imagestudio.core.config import (
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_ENHANCEMENT_MODEL,
    Config,
    get_config,
    set_config,
)
from imagestudio.core.image_analysis import describe_image, get_description
from imagestudio.core.image_gen import edit_image, generate_image, run_request
from imagestudio.core.images import EncodedImage, validate_upload
from imagestudio.core.parser import parse_generation_response
from imagestudio.core.prompt import EnhancementMode, enhance_prompt, fallback_prompt, validate_prompt
from imagestudio.core.results import (
    GenerationFailure,
    GenerationRequest,
    GenerationResult,
    GenerationSuccess,
)
from imagestudio.core.retry import RetryPolicy, backoff_delays, retry
from imagestudio.core.session import EditorSession, GenerationHistoryEntry
from imagestudio.diagnostics import DiagnosticSink, LoggingSink, NullSink, RecordingSink
from imagestudio.logging_config import configure_logging, set_verbosity
from imagestudio.utils.cache import clear_cache, get_cache, get_cached_prompt
from imagestudio.utils.counters import FileStore, MemoryStore, UsageCounters
from imagestudio.utils.exceptions import (
    CancellationError,
    ConfigurationError,
    ErrorKind,
    ImageProcessingError,
    ImageStudioError,
    ProviderError,
    ValidationError,
)

__all__ = [
    "CancellationError",
    "Config",
    "ConfigurationError",
    "DEFAULT_ENHANCEMENT_MODEL",
    "DEFAULT_GEMINI_BASE_URL",
    "DEFAULT_IMAGE_MODEL",
    "DiagnosticSink",
    "EditorSession",
    "EncodedImage",
    "EnhancementMode",
    "ErrorKind",
    "FileStore",
    "GenerationFailure",
    "GenerationHistoryEntry",
    "GenerationRequest",
    "GenerationResult",
    "GenerationSuccess",
    "ImageProcessingError",
    "ImageStudioError",
    "LoggingSink",
    "MemoryStore",
    "NullSink",
    "ProviderError",
    "RecordingSink",
    "RetryPolicy",
    "UsageCounters",
    "ValidationError",
    "backoff_delays",
    "classify",
    "clear_cache",
    "configure_logging",
    "describe_image",
    "edit_image",
    "enhance_prompt",
    "fallback_prompt",
    "generate_image",
    "get_cache",
    "get_cached_prompt",
    "get_config",
    "get_description",
    "is_retryable",
    "parse_generation_response",
    "retry",
    "run_request",
    "set_config",
    "set_verbosity",
    "user_message",
    "validate_prompt",
    "validate_upload",
]
