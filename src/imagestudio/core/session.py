"""
Editor session: source/result images, generation history and usage counters.

The request clients are stateless; EditorSession is the caller that owns the
state around them. History and counters change only after a confirmed
success.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from imagestudio.core.config import Config, get_config
from imagestudio.core.image_gen import edit_image, generate_image
from imagestudio.core.images import EncodedImage, validate_upload
from imagestudio.core.results import GenerationResult, GenerationSuccess
from imagestudio.diagnostics import DiagnosticSink, default_sink
from imagestudio.utils.counters import FileStore, UsageCounters
from imagestudio.utils.exceptions import ValidationError


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GenerationHistoryEntry:
    """One successful edit or generation."""

    image: EncodedImage
    instruction_text: str
    created_at: datetime = field(default_factory=_now)
    note: str = ""


class EditorSession:
    """State for one interactive editing session.

    Counters default to the JSON file at config.counter_file(), so counts
    survive across sessions; pass UsageCounters(MemoryStore()) to keep them
    in memory.
    """

    def __init__(
        self,
        config: Config | None = None,
        counters: UsageCounters | None = None,
        sink: DiagnosticSink | None = None,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self.config = config or get_config()
        self.counters = counters or UsageCounters(FileStore(self.config.counter_file()))
        self.sink = sink or default_sink()
        self._clock = clock
        self.source_image: EncodedImage | None = None
        self.result_image: EncodedImage | None = None
        self.last_instruction: str = ""
        self._history: list[GenerationHistoryEntry] = []

    @property
    def history(self) -> tuple[GenerationHistoryEntry, ...]:
        """Successful results of this session, oldest first."""
        return tuple(self._history)

    def load_image(self, image: EncodedImage) -> None:
        """Set the image to edit. Clears any previous result."""
        validate_upload(image, self.config.max_upload_bytes)
        self.source_image = image
        self.result_image = None

    def remove_image(self) -> None:
        self.source_image = None
        self.result_image = None

    def _record(self, result: GenerationResult, instruction_text: str) -> None:
        if isinstance(result, GenerationSuccess):
            self._history.append(
                GenerationHistoryEntry(
                    image=result.image,
                    instruction_text=instruction_text,
                    created_at=self._clock(),
                    note=result.note,
                )
            )

    def apply_edit(self, instruction_text: str, **kwargs: Any) -> GenerationResult:
        """
        Edit the current source image.

        Extra keyword arguments are passed to edit_image (transport, sleep, ...).

        Raises:
            ValidationError: If no source image is loaded
        """
        if self.source_image is None:
            raise ValidationError("Please upload an image first", field="image")
        self.last_instruction = instruction_text
        kwargs.setdefault("sink", self.sink)
        result = edit_image(self.source_image, instruction_text, self.config, **kwargs)
        if isinstance(result, GenerationSuccess):
            self.result_image = result.image
            self._record(result, instruction_text)
            self.counters.record_edit()
        return result

    def generate(self, instruction_text: str, **kwargs: Any) -> GenerationResult:
        """Generate a new image from text. The source image is left untouched."""
        self.last_instruction = instruction_text
        kwargs.setdefault("sink", self.sink)
        result = generate_image(instruction_text, self.config, **kwargs)
        if isinstance(result, GenerationSuccess):
            self.result_image = result.image
            self._record(result, instruction_text)
            self.counters.record_generation()
        return result

    def continue_editing(self) -> bool:
        """Make the last result the new source image. Returns False when there is no result."""
        if self.result_image is None:
            return False
        self.source_image = self.result_image
        self.result_image = None
        self.sink.emit("session.continue_editing", history=len(self._history))
        return True

    def reset(self) -> None:
        """Discard images and history. Counters are persistent and stay as they are."""
        self.source_image = None
        self.result_image = None
        self.last_instruction = ""
        self._history.clear()


__all__ = ["EditorSession", "GenerationHistoryEntry"]
