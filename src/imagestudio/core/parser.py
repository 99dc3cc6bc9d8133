"""
Parsing of Gemini generateContent responses.

A response holds a list of candidates, each with a list of heterogeneous
parts: text fragments and inline base64 blobs tagged with a MIME type. The
functions here are pure and never raise on JSON-shaped input; anything
malformed degrades to an UNKNOWN failure.
"""

import json
from typing import Any

from imagestudio.core.images import EncodedImage
from imagestudio.core.results import GenerationFailure, GenerationResult, GenerationSuccess
from imagestudio.utils.exceptions import ErrorKind, ValidationError

NO_CONTENT_MESSAGE = "no content in response"
NOTE_SEPARATOR = " "


def _inline_blob(part: dict[str, Any]) -> dict[str, Any] | None:
    """Return the inline binary blob of a part, if any.

    Compatibility shim: the API has returned both camelCase (inlineData,
    mimeType) and snake_case (inline_data, mime_type) field names.
    """
    blob = part.get("inlineData")
    if not isinstance(blob, dict):
        blob = part.get("inline_data")
    return blob if isinstance(blob, dict) else None


def _decode_blob(blob: dict[str, Any]) -> EncodedImage | None:
    data = blob.get("data")
    if not isinstance(data, str) or not data:
        return None
    mime = blob.get("mimeType") or blob.get("mime_type")
    try:
        return EncodedImage.from_base64(data, mime if isinstance(mime, str) else None)
    except ValidationError:
        return None


def _iter_parts(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, dict):
        return []
    candidates = raw.get("candidates")
    if not isinstance(candidates, list):
        return []
    parts: list[dict[str, Any]] = []
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        content = candidate.get("content")
        if not isinstance(content, dict):
            continue
        candidate_parts = content.get("parts")
        if not isinstance(candidate_parts, list):
            continue
        parts.extend(p for p in candidate_parts if isinstance(p, dict))
    return parts


def parse_generation_response(raw: Any) -> GenerationResult:
    """
    Extract the image (and any text) from a generateContent response body.

    Args:
        raw: Decoded JSON response body

    Returns:
        GenerationSuccess with the first inline image and all text joined as the note;
        GenerationFailure(INVALID_REQUEST) with the text when no image came back;
        GenerationFailure(UNKNOWN) when the response carries neither.
    """
    image: EncodedImage | None = None
    texts: list[str] = []
    for part in _iter_parts(raw):
        text = part.get("text")
        if isinstance(text, str) and text.strip():
            texts.append(text.strip())
            continue
        if image is None:
            blob = _inline_blob(part)
            if blob is not None:
                image = _decode_blob(blob)

    note = NOTE_SEPARATOR.join(texts)
    if image is not None:
        return GenerationSuccess(image=image, note=note)
    if note:
        return GenerationFailure(kind=ErrorKind.INVALID_REQUEST, message=note, detail=note)

    block_reason = _block_reason(raw)
    if block_reason:
        message = f"Prompt blocked: {block_reason}"
        return GenerationFailure(kind=ErrorKind.INVALID_REQUEST, message=message, detail=message)
    return GenerationFailure(
        kind=ErrorKind.UNKNOWN, message=NO_CONTENT_MESSAGE, detail=NO_CONTENT_MESSAGE
    )


def _block_reason(raw: Any) -> str | None:
    if not isinstance(raw, dict):
        return None
    feedback = raw.get("promptFeedback")
    if not isinstance(feedback, dict):
        return None
    reason = feedback.get("blockReason")
    return reason if isinstance(reason, str) and reason else None


def extract_text(raw: Any) -> str:
    """Return all text parts of a generateContent response joined by spaces ('' if none)."""
    texts = []
    for part in _iter_parts(raw):
        text = part.get("text")
        if isinstance(text, str) and text.strip():
            texts.append(text.strip())
    return NOTE_SEPARATOR.join(texts)


def extract_error_message(body: Any) -> str:
    """
    Pull a readable message out of a provider error body.

    Handles ``{"error": {"message": ...}}`` as a dict or JSON string and falls
    back to the raw text.
    """
    data = body
    if isinstance(body, (str, bytes)):
        try:
            data = json.loads(body)
        except ValueError:
            return body.decode("utf-8", "replace") if isinstance(body, bytes) else body
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
    return "" if data is None else str(data)


__all__ = [
    "NO_CONTENT_MESSAGE",
    "extract_error_message",
    "extract_text",
    "parse_generation_response",
]
