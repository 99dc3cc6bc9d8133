"""
HTTP transport shared by the request clients.

post_json() performs one JSON POST with requests and returns the decoded
body. Every failure is raised as a ProviderError whose kind comes from the
error classifier, so callers (and the retrier) only deal with one exception
type.
"""

import json
import time
from collections.abc import Callable
from typing import Any

import requests

from imagestudio.core.classifier import classify
from imagestudio.core.parser import extract_error_message
from imagestudio.logging_config import get_logger
from imagestudio.utils.exceptions import ErrorKind, ProviderError

logger = get_logger(__name__)

# (url, headers, payload, timeout) -> decoded JSON body
Transport = Callable[[str, dict[str, str], dict[str, Any], int], Any]

_DEBUG_TRUNCATE_THRESHOLD = 200
_DEBUG_NEVER_TRUNCATE_KEYS = frozenset({"text", "message", "content"})


def truncate_image_data_for_log(obj: Any, parent_key: str | None = None) -> Any:
    """Recursively replace long base64/data URL strings with placeholders for safe logging."""
    if isinstance(obj, dict):
        return {k: truncate_image_data_for_log(v, k) for k, v in obj.items()}
    if isinstance(obj, list):
        return [truncate_image_data_for_log(v, None) for v in obj]
    if isinstance(obj, str) and len(obj) >= _DEBUG_TRUNCATE_THRESHOLD:
        if parent_key in _DEBUG_NEVER_TRUNCATE_KEYS:
            return obj
        if obj.startswith("data:"):
            return f"<data URL, {len(obj)} chars>"
        return f"<string, {len(obj)} chars>"
    return obj


def post_json(
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: int,
    *,
    debug: bool = False,
) -> Any:
    """
    POST a JSON payload and return the decoded JSON response.

    Args:
        url: Endpoint URL
        headers: Request headers (auth included)
        payload: JSON body
        timeout: Timeout in seconds
        debug: Log the payload and response with image data truncated

    Returns:
        Decoded JSON body of a 2xx response

    Raises:
        ProviderError: On non-2xx status (kind from classify), network failure,
            timeout or a body that is not JSON (kind UNKNOWN)
    """
    logger.debug("API request url=%s timeout=%s", url, timeout)
    if debug:
        logger.info(
            "API request payload (image data truncated): %s",
            json.dumps(truncate_image_data_for_log(payload), indent=2, default=str),
        )
    start_time = time.time()
    try:
        response = requests.post(url, headers=headers, json=payload, timeout=timeout)
    except requests.exceptions.Timeout as e:
        raise ProviderError(
            f"Request timed out after {timeout} seconds.", kind=ErrorKind.UNKNOWN
        ) from e
    except requests.exceptions.ConnectionError as e:
        raise ProviderError(
            f"Failed to connect to {url.split('?', 1)[0]}: {e}", kind=ErrorKind.UNKNOWN
        ) from e
    except requests.exceptions.RequestException as e:
        raise ProviderError(
            f"Network error during API request: {e}", kind=ErrorKind.UNKNOWN
        ) from e
    elapsed = time.time() - start_time
    logger.debug("API response status=%s time=%.2fs", response.status_code, elapsed)

    if not 200 <= response.status_code < 300:
        body = response.text
        logger.debug("API error body: %s", body)
        raise ProviderError(
            extract_error_message(body) or f"API request failed with status {response.status_code}",
            kind=classify(response.status_code, body),
            status_code=response.status_code,
            response=body,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise ProviderError(
            f"Failed to parse API response as JSON: {e}",
            kind=ErrorKind.UNKNOWN,
            status_code=response.status_code,
            response=response.text,
        ) from e
    if debug:
        logger.info(
            "API response (image data truncated): %s",
            json.dumps(truncate_image_data_for_log(data), indent=2, default=str),
        )
    return data


__all__ = ["Transport", "post_json", "truncate_image_data_for_log"]
