"""Unit tests for generateContent response parsing."""

import base64
import io

import pytest
from PIL import Image

from imagestudio.core.parser import (
    NO_CONTENT_MESSAGE,
    extract_error_message,
    extract_text,
    parse_generation_response,
)
from imagestudio.core.results import GenerationFailure, GenerationSuccess
from imagestudio.utils.exceptions import ErrorKind

_PNG_BUF = io.BytesIO()
Image.new("RGB", (1, 1), color=(0, 0, 0)).save(_PNG_BUF, format="PNG")
PNG = _PNG_BUF.getvalue()
PNG_B64 = base64.b64encode(PNG).decode("ascii")


def _response(*parts):
    return {"candidates": [{"content": {"parts": list(parts)}}]}


@pytest.mark.unit
class TestParseGenerationResponse:
    def test_camel_case_image(self):
        result = parse_generation_response(
            _response({"inlineData": {"mimeType": "image/png", "data": PNG_B64}})
        )
        assert isinstance(result, GenerationSuccess)
        assert result.image.data == PNG
        assert result.image.mime_type == "image/png"
        assert result.note == ""

    def test_snake_case_image(self):
        result = parse_generation_response(
            _response({"inline_data": {"mime_type": "image/png", "data": PNG_B64}})
        )
        assert isinstance(result, GenerationSuccess)
        assert result.image.data == PNG

    def test_text_and_image_in_either_order(self):
        text = {"text": "Here is your sunset."}
        image = {"inlineData": {"mimeType": "image/png", "data": PNG_B64}}
        for parts in ((text, image), (image, text)):
            result = parse_generation_response(_response(*parts))
            assert isinstance(result, GenerationSuccess)
            assert result.note == "Here is your sunset."
            assert result.image.data == PNG

    def test_multiple_texts_joined_with_space(self):
        result = parse_generation_response(
            _response(
                {"text": " First. "},
                {"inlineData": {"mimeType": "image/png", "data": PNG_B64}},
                {"text": "Second."},
            )
        )
        assert result.note == "First. Second."

    def test_first_image_wins(self):
        other = base64.b64encode(b"\xff\xd8" + b"\x00" * 20).decode("ascii")
        result = parse_generation_response(
            _response(
                {"inlineData": {"mimeType": "image/png", "data": PNG_B64}},
                {"inlineData": {"mimeType": "image/jpeg", "data": other}},
            )
        )
        assert result.image.mime_type == "image/png"

    def test_declared_mime_type_is_kept(self):
        result = parse_generation_response(
            _response({"inlineData": {"mimeType": "image/webp", "data": PNG_B64}})
        )
        assert result.image.mime_type == "image/webp"

    def test_text_only_is_invalid_request_with_text(self):
        result = parse_generation_response(_response({"text": "I can't edit people."}))
        assert isinstance(result, GenerationFailure)
        assert result.kind is ErrorKind.INVALID_REQUEST
        assert result.message == "I can't edit people."

    def test_empty_parts_is_unknown(self):
        result = parse_generation_response(_response())
        assert isinstance(result, GenerationFailure)
        assert result.kind is ErrorKind.UNKNOWN
        assert result.message == NO_CONTENT_MESSAGE

    def test_blocked_prompt(self):
        result = parse_generation_response({"promptFeedback": {"blockReason": "SAFETY"}})
        assert isinstance(result, GenerationFailure)
        assert result.kind is ErrorKind.INVALID_REQUEST
        assert "SAFETY" in result.message

    def test_undecodable_blob_is_skipped(self):
        result = parse_generation_response(
            _response(
                {"inlineData": {"mimeType": "image/png", "data": "%%%not base64%%%"}},
                {"inlineData": {"mimeType": "image/png", "data": PNG_B64}},
            )
        )
        assert isinstance(result, GenerationSuccess)
        assert result.image.data == PNG

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "text",
            42,
            [],
            {},
            {"candidates": None},
            {"candidates": ["x", None, 3]},
            {"candidates": [{"content": None}]},
            {"candidates": [{"content": {"parts": "nope"}}]},
            {"candidates": [{"content": {"parts": [None, 1, {"inlineData": "x"}]}}]},
            {"candidates": [{"content": {"parts": [{"inlineData": {"data": ""}}]}}]},
        ],
    )
    def test_malformed_input_never_raises(self, raw):
        result = parse_generation_response(raw)
        assert isinstance(result, GenerationFailure)
        assert result.kind is ErrorKind.UNKNOWN

    def test_parts_across_candidates(self):
        raw = {
            "candidates": [
                {"content": {"parts": [{"text": "note"}]}},
                {"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": PNG_B64}}]}},
            ]
        }
        result = parse_generation_response(raw)
        assert isinstance(result, GenerationSuccess)
        assert result.note == "note"


@pytest.mark.unit
class TestExtractText:
    def test_joins_text_parts(self):
        assert extract_text(_response({"text": "a "}, {"text": "b"})) == "a b"

    def test_no_text(self):
        assert extract_text({}) == ""


@pytest.mark.unit
class TestExtractErrorMessage:
    def test_dict_body(self):
        assert extract_error_message({"error": {"message": "API key not valid"}}) == (
            "API key not valid"
        )

    def test_json_string_body(self):
        assert extract_error_message('{"error": {"message": "quota"}}') == "quota"

    def test_bytes_body(self):
        assert extract_error_message(b'{"error": {"message": "quota"}}') == "quota"

    def test_string_error(self):
        assert extract_error_message({"error": "nope"}) == "nope"

    def test_plain_text_body(self):
        assert extract_error_message("Bad Gateway") == "Bad Gateway"

    def test_none(self):
        assert extract_error_message(None) == ""
