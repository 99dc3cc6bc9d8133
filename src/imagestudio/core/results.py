"""
Request and result types for image edit/generation.

GenerationResult is a tagged union of GenerationSuccess and
GenerationFailure; callers branch on ``result.ok`` or use isinstance.
"""

from dataclasses import dataclass
from typing import Literal, Union

from imagestudio.core.images import EncodedImage
from imagestudio.utils.exceptions import ErrorKind

Operation = Literal["edit", "generate"]


@dataclass(frozen=True)
class GenerationRequest:
    """An instruction plus optional source image. A source image makes it an edit."""

    instruction_text: str
    source_image: EncodedImage | None = None

    @property
    def operation(self) -> Operation:
        return "edit" if self.source_image is not None else "generate"


@dataclass(frozen=True)
class GenerationSuccess:
    """The provider returned an image. ``note`` holds any accompanying text."""

    image: EncodedImage
    note: str = ""

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class GenerationFailure:
    """The request produced no image.

    ``message`` is safe to show to users; ``detail`` keeps the provider's own
    text for logs and debugging.
    """

    kind: ErrorKind
    message: str
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False


GenerationResult = Union[GenerationSuccess, GenerationFailure]

__all__ = [
    "GenerationFailure",
    "GenerationRequest",
    "GenerationResult",
    "GenerationSuccess",
    "Operation",
]
