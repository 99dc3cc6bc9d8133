"""
Image edit and generation via the Gemini generateContent API.

edit_image() sends a source image plus an instruction; generate_image() sends
the instruction alone. Both validate the API key up front, run the HTTP call
through the backoff retrier, and convert every outcome into a
GenerationResult: callers never see a transport exception.
"""

import functools
import time
from collections.abc import Callable
from typing import Any

from imagestudio.core.classifier import user_message
from imagestudio.core.config import Config, get_config
from imagestudio.core.images import EncodedImage
from imagestudio.core.parser import parse_generation_response
from imagestudio.core.results import (
    GenerationFailure,
    GenerationRequest,
    GenerationResult,
    GenerationSuccess,
)
from imagestudio.core.retry import is_retryable_error, retry
from imagestudio.core.transport import Transport, post_json
from imagestudio.diagnostics import DiagnosticSink, default_sink
from imagestudio.logging_config import get_logger, log_prompts
from imagestudio.utils.exceptions import CancellationError, ErrorKind, ProviderError

logger = get_logger(__name__)

# Max prompt length for logging (large so prompts are effectively never truncated)
_PROMPT_LOG_MAX = 50_000

EDIT_PREFIX = "Edit this image: "

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"


def check_api_key(api_key: str | None, min_length: int) -> str | None:
    """Return a problem description if the key is missing or implausible, else None."""
    if not api_key or not api_key.strip():
        return "Gemini API key is not configured. Set GEMINI_API_KEY."
    if len(api_key.strip()) < min_length:
        return "Invalid API key format. Please check your API key."
    return None


def build_edit_payload(source_image: EncodedImage, instruction_text: str) -> dict[str, Any]:
    """Build the generateContent body for editing source_image."""
    return {
        "contents": [
            {
                "parts": [
                    {"text": f"{EDIT_PREFIX}{instruction_text}"},
                    {
                        "inline_data": {
                            "mime_type": source_image.mime_type,
                            "data": source_image.to_base64(),
                        }
                    },
                ]
            }
        ],
        "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
    }


def build_generate_payload(instruction_text: str, config: Config) -> dict[str, Any]:
    """Build the generateContent body for text-to-image generation."""
    return {
        "contents": [{"parts": [{"text": instruction_text}]}],
        "generationConfig": {
            "responseModalities": ["TEXT", "IMAGE"],
            "temperature": config.generation_temperature,
            "topP": config.generation_top_p,
            "topK": config.generation_top_k,
        },
        "safetySettings": [
            {"category": category, "threshold": SAFETY_THRESHOLD}
            for category in SAFETY_CATEGORIES
        ],
    }


def _endpoint(config: Config) -> str:
    model = config.image_model.removeprefix("models/")
    return f"{config.gemini_base_url.rstrip('/')}/models/{model}:generateContent"


def _execute(
    operation: str,
    payload: dict[str, Any],
    config: Config,
    api_key: str,
    transport: Transport | None,
    sleep: Callable[[float], None],
    cancel_check: Callable[[], bool] | None,
    sink: DiagnosticSink,
) -> GenerationResult:
    """Run the request through the retrier and turn the outcome into a GenerationResult."""
    url = _endpoint(config)
    headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
    send = transport or functools.partial(post_json, debug=config.debug_api)
    attempts = 0

    def attempt() -> Any:
        nonlocal attempts
        attempts += 1
        sink.emit("request.attempt", operation=operation, attempt=attempts)
        try:
            return send(url, headers, payload, config.generation_timeout)
        except (ProviderError, CancellationError):
            raise
        except Exception as e:
            # Custom transports may raise anything; treat it as an unclassified failure
            raise ProviderError(
                f"Transport error ({type(e).__name__}): {e}", kind=ErrorKind.UNKNOWN
            ) from e

    start_time = time.time()
    try:
        body = retry(
            attempt,
            config.retry_policy(),
            should_retry=is_retryable_error,
            sleep=sleep,
            cancel_check=cancel_check,
            sink=sink,
        )
    except ProviderError as e:
        sink.emit(
            "request.failed",
            operation=operation,
            kind=e.kind.value,
            status=e.status_code,
            attempts=attempts,
            detail=str(e),
        )
        return GenerationFailure(kind=e.kind, message=user_message(e.kind), detail=str(e))

    result = parse_generation_response(body)
    elapsed = time.time() - start_time
    if isinstance(result, GenerationSuccess):
        sink.emit(
            "request.succeeded",
            operation=operation,
            mime_type=result.image.mime_type,
            bytes=result.image.size,
            attempts=attempts,
            seconds=round(elapsed, 2),
        )
    else:
        sink.emit(
            "request.failed",
            operation=operation,
            kind=result.kind.value,
            attempts=attempts,
            detail=result.detail,
        )
    return result


def _preflight(
    instruction_text: str, config: Config, api_key: str | None
) -> tuple[GenerationFailure | None, str]:
    """Validate inputs before any network call. Returns (failure, effective_key)."""
    key = api_key if api_key is not None else config.gemini_api_key
    problem = check_api_key(key, config.min_api_key_length)
    if problem is not None:
        return GenerationFailure(
            kind=ErrorKind.UNAUTHORIZED,
            message=user_message(ErrorKind.UNAUTHORIZED),
            detail=problem,
        ), ""
    if not instruction_text or not instruction_text.strip():
        return GenerationFailure(
            kind=ErrorKind.INVALID_REQUEST,
            message="Please enter an instruction.",
            detail="empty instruction",
        ), ""
    return None, (key or "").strip()


def _log_instruction(operation: str, instruction_text: str, config: Config) -> None:
    logger.info("Requesting image operation=%s model=%s", operation, config.image_model)
    if log_prompts():
        truncated = (
            instruction_text
            if len(instruction_text) <= _PROMPT_LOG_MAX
            else instruction_text[:_PROMPT_LOG_MAX] + "..."
        )
        logger.info("Instruction (used): %s", truncated)


def edit_image(
    source_image: EncodedImage,
    instruction_text: str,
    config: Config | None = None,
    *,
    api_key: str | None = None,
    transport: Transport | None = None,
    sleep: Callable[[float], None] = time.sleep,
    cancel_check: Callable[[], bool] | None = None,
    sink: DiagnosticSink | None = None,
) -> GenerationResult:
    """
    Edit an image according to a text instruction.

    Args:
        source_image: Image to edit
        instruction_text: What to change
        config: Optional config; if None, uses shared config from get_config()
        api_key: Optional API key (defaults to config.gemini_api_key)
        transport: Optional replacement for the HTTP POST (url, headers, payload, timeout)
        sleep: Delay function used between retries
        cancel_check: Optional callable returning True to stop retrying
        sink: Diagnostic sink (defaults to logging)

    Returns:
        GenerationSuccess with the edited image, or GenerationFailure.
        An invalid API key fails as UNAUTHORIZED without any network call.

    Raises:
        CancellationError: If cancel_check returned True between attempts
    """
    config = config or get_config()
    sink = sink or default_sink()
    failure, key = _preflight(instruction_text, config, api_key)
    if failure is not None:
        sink.emit("request.rejected", operation="edit", kind=failure.kind.value, detail=failure.detail)
        return failure

    _log_instruction("edit", instruction_text, config)
    payload = build_edit_payload(source_image, instruction_text)
    return _execute("edit", payload, config, key, transport, sleep, cancel_check, sink)


def generate_image(
    instruction_text: str,
    config: Config | None = None,
    *,
    api_key: str | None = None,
    transport: Transport | None = None,
    sleep: Callable[[float], None] = time.sleep,
    cancel_check: Callable[[], bool] | None = None,
    sink: DiagnosticSink | None = None,
) -> GenerationResult:
    """
    Generate an image from a text prompt alone.

    Args:
        instruction_text: Description of the desired image
        config: Optional config; if None, uses shared config from get_config()
        api_key: Optional API key (defaults to config.gemini_api_key)
        transport: Optional replacement for the HTTP POST (url, headers, payload, timeout)
        sleep: Delay function used between retries
        cancel_check: Optional callable returning True to stop retrying
        sink: Diagnostic sink (defaults to logging)

    Returns:
        GenerationSuccess with the generated image, or GenerationFailure.

    Raises:
        CancellationError: If cancel_check returned True between attempts
    """
    config = config or get_config()
    sink = sink or default_sink()
    failure, key = _preflight(instruction_text, config, api_key)
    if failure is not None:
        sink.emit(
            "request.rejected", operation="generate", kind=failure.kind.value, detail=failure.detail
        )
        return failure

    _log_instruction("generate", instruction_text, config)
    payload = build_generate_payload(instruction_text, config)
    return _execute("generate", payload, config, key, transport, sleep, cancel_check, sink)


def run_request(
    request: GenerationRequest,
    config: Config | None = None,
    **kwargs: Any,
) -> GenerationResult:
    """Dispatch a GenerationRequest to edit_image or generate_image."""
    if request.source_image is not None:
        return edit_image(request.source_image, request.instruction_text, config, **kwargs)
    return generate_image(request.instruction_text, config, **kwargs)


__all__ = [
    "build_edit_payload",
    "build_generate_payload",
    "check_api_key",
    "edit_image",
    "generate_image",
    "run_request",
]
