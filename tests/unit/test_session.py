"""Unit tests for EditorSession (history and counters around the request clients)."""

import base64
from datetime import datetime, timezone

import pytest

from imagestudio.core.config import Config
from imagestudio.core.images import EncodedImage
from imagestudio.core.session import EditorSession
from imagestudio.diagnostics import NullSink
from imagestudio.utils.counters import FileStore, MemoryStore, UsageCounters
from imagestudio.utils.exceptions import ErrorKind, ProviderError, ValidationError

VALID_KEY = "AIzaSyTestKey0123456789abcdef"
FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _image_response(data: bytes, note: str = "") -> dict:
    parts = [{"inlineData": {"mimeType": "image/png", "data": base64.b64encode(data).decode()}}]
    if note:
        parts.insert(0, {"text": note})
    return {"candidates": [{"content": {"parts": parts}}]}


class FakeTransport:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    def __call__(self, url, headers, payload, timeout):
        self.calls += 1
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def session():
    return EditorSession(
        Config(gemini_api_key=VALID_KEY),
        counters=UsageCounters(MemoryStore()),
        sink=NullSink(),
        clock=lambda: FIXED_TIME,
    )


@pytest.mark.unit
class TestEditorSession:
    def test_edit_requires_image(self, session):
        with pytest.raises(ValidationError) as exc_info:
            session.apply_edit("make it a sunset", transport=FakeTransport())
        assert exc_info.value.field == "image"

    def test_load_image_validates_size(self, png_bytes):
        session = EditorSession(
            Config(max_upload_bytes=10), counters=UsageCounters(MemoryStore()), sink=NullSink()
        )
        with pytest.raises(ValidationError):
            session.load_image(EncodedImage.from_bytes(png_bytes))
        assert session.source_image is None

    def test_successful_edit_updates_state(self, session, png_bytes, jpeg_bytes):
        session.load_image(EncodedImage.from_bytes(png_bytes))
        transport = FakeTransport(_image_response(jpeg_bytes, note="Done."))
        result = session.apply_edit("make it a sunset", transport=transport)
        assert result.ok
        assert session.result_image == result.image
        assert session.last_instruction == "make it a sunset"
        assert session.counters.edit_count == 1
        assert session.counters.generation_count == 0
        (entry,) = session.history
        assert entry.instruction_text == "make it a sunset"
        assert entry.note == "Done."
        assert entry.created_at == FIXED_TIME

    def test_failed_edit_changes_nothing(self, session, png_bytes):
        session.load_image(EncodedImage.from_bytes(png_bytes))
        transport = FakeTransport(ProviderError("401", kind=ErrorKind.UNAUTHORIZED, status_code=401))
        result = session.apply_edit("make it a sunset", transport=transport)
        assert not result.ok
        assert session.result_image is None
        assert session.history == ()
        assert session.counters.edit_count == 0

    def test_generate_counts_separately(self, session, png_bytes):
        transport = FakeTransport(_image_response(png_bytes), _image_response(png_bytes))
        session.generate("a lighthouse", transport=transport)
        session.generate("a lighthouse at night", transport=transport)
        assert session.counters.generation_count == 2
        assert session.counters.edit_count == 0
        assert [e.instruction_text for e in session.history] == [
            "a lighthouse",
            "a lighthouse at night",
        ]

    def test_continue_editing(self, session, png_bytes, jpeg_bytes):
        assert session.continue_editing() is False
        session.load_image(EncodedImage.from_bytes(png_bytes))
        session.apply_edit("sunset", transport=FakeTransport(_image_response(jpeg_bytes)))
        result_image = session.result_image
        assert session.continue_editing() is True
        assert session.source_image == result_image
        assert session.result_image is None

    def test_history_is_read_only_snapshot(self, session, png_bytes):
        session.generate("a cat", transport=FakeTransport(_image_response(png_bytes)))
        snapshot = session.history
        session.generate("a dog", transport=FakeTransport(_image_response(png_bytes)))
        assert len(snapshot) == 1
        assert len(session.history) == 2

    def test_reset_keeps_counters(self, session, png_bytes):
        session.load_image(EncodedImage.from_bytes(png_bytes))
        session.apply_edit("sunset", transport=FakeTransport(_image_response(png_bytes)))
        session.reset()
        assert session.source_image is None
        assert session.history == ()
        assert session.last_instruction == ""
        assert session.counters.edit_count == 1

    def test_remove_image(self, session, png_bytes):
        session.load_image(EncodedImage.from_bytes(png_bytes))
        session.remove_image()
        assert session.source_image is None


@pytest.mark.unit
class TestDefaultCounters:
    def test_default_session_persists_counts(self, tmp_path, png_bytes, jpeg_bytes):
        counter_path = tmp_path / "usage.json"
        config = Config(gemini_api_key=VALID_KEY, counter_path=str(counter_path))

        first = EditorSession(config, sink=NullSink())
        first.load_image(EncodedImage.from_bytes(png_bytes))
        edit = first.apply_edit(
            "make it a sunset", transport=FakeTransport(_image_response(jpeg_bytes))
        )
        assert edit.ok
        assert first.generate("a cat", transport=FakeTransport(_image_response(png_bytes))).ok
        assert counter_path.exists()

        second = EditorSession(config, sink=NullSink())
        assert second.counters.edit_count == 1
        assert second.counters.generation_count == 1
        assert isinstance(second.counters.store, FileStore)
        assert second.counters.store.path == counter_path
