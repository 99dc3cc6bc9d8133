"""
Image description via the Gemini API.

describe_image() asks a Gemini vision model for a prompt-ready description of
an image. get_description() adds an in-memory cache keyed by image hash so the
same upload is only analyzed once per process.
"""

from __future__ import annotations

import hashlib
import re
import threading
from typing import Any

from imagestudio.core.config import Config, get_config
from imagestudio.core.images import EncodedImage
from imagestudio.core.parser import extract_text
from imagestudio.core.prompts_loader import get_analysis_prompt
from imagestudio.core.transport import post_json
from imagestudio.diagnostics import DiagnosticSink, default_sink
from imagestudio.utils.exceptions import ErrorKind, ProviderError

_PREFIX_PATTERNS = (
    re.compile(r"^Description:?\s*", re.IGNORECASE),
    re.compile(r"^Prompt:?\s*", re.IGNORECASE),
    re.compile(r"^Image description:?\s*", re.IGNORECASE),
)

_lock = threading.Lock()
_description_cache: dict[str, str] = {}


def clean_description(text: str) -> str:
    """Turn a model description into a single-line prompt."""
    cleaned = text.strip()
    for pattern in _PREFIX_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = re.sub(r"\n{2,}", " ", cleaned)
    cleaned = cleaned.replace("**", "").replace("\n", " ")
    return re.sub(r" {2,}", " ", cleaned).strip()


def _build_payload(image: EncodedImage, prompt: str) -> dict[str, Any]:
    return {
        "contents": [
            {
                "parts": [
                    {"text": prompt},
                    {"inline_data": {"mime_type": image.mime_type, "data": image.to_base64()}},
                ]
            }
        ],
        "generationConfig": {
            "temperature": 0.1,
            "topK": 32,
            "topP": 0.9,
            "maxOutputTokens": 400,
        },
    }


def describe_image(
    image: EncodedImage,
    config: Config | None = None,
    *,
    sink: DiagnosticSink | None = None,
) -> str:
    """
    Describe an image in prose suitable for use as a generation prompt.

    Raises ProviderError when the key is missing, the request fails, or the
    model returns no text. Unlike prompt enhancement there is no fallback:
    the caller explicitly asked for an analysis.
    """
    config = config or get_config()
    sink = sink or default_sink()
    if not config.gemini_api_key:
        raise ProviderError(
            "Gemini API key is missing. Set GEMINI_API_KEY.", kind=ErrorKind.UNAUTHORIZED
        )
    model = config.analysis_model.removeprefix("models/")
    url = f"{config.gemini_base_url.rstrip('/')}/models/{model}:generateContent"
    headers = {"Content-Type": "application/json", "x-goog-api-key": config.gemini_api_key}
    sink.emit("analysis.request", model=model, mime_type=image.mime_type, bytes=image.size)
    try:
        data = post_json(
            url,
            headers,
            _build_payload(image, get_analysis_prompt()),
            config.analysis_timeout,
            debug=config.debug_api,
        )
    except ProviderError as e:
        sink.emit("analysis.failed", kind=e.kind.value, status=e.status_code, detail=str(e))
        raise
    description = clean_description(extract_text(data))
    if not description:
        sink.emit("analysis.failed", kind=ErrorKind.UNKNOWN.value, detail="empty description")
        raise ProviderError("No response generated from Gemini API", response=str(data))
    sink.emit("analysis.succeeded", chars=len(description))
    return description


def get_description(
    image: EncodedImage,
    config: Config | None = None,
    *,
    sink: DiagnosticSink | None = None,
) -> str:
    """Return the description of image, from cache if it was analyzed before."""
    key = hashlib.sha256(image.data).hexdigest()
    with _lock:
        cached = _description_cache.get(key)
    if cached is not None:
        return cached
    desc = describe_image(image, config, sink=sink)
    with _lock:
        _description_cache[key] = desc
    return desc


def clear_description_cache() -> None:
    """Forget all cached descriptions."""
    with _lock:
        _description_cache.clear()
