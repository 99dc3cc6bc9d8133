"""
Encoded image payloads.

EncodedImage is the immutable byte payload plus MIME type that flows between
the caller, the request clients and the response parser. This module also
handles loading images from files and data URLs, MIME inference from magic
bytes, and upload validation.
"""

import base64
import binascii
import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from imagestudio.logging_config import get_logger
from imagestudio.utils.exceptions import ImageProcessingError, ValidationError

logger = get_logger(__name__)

# Supported MIME types and the file extension used when saving
SUPPORTED_MIME_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
}

_EXTENSION_TO_MIME = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
    "heic": "image/heic",
    "heif": "image/heic",
}

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def infer_mime_type(data: bytes) -> str | None:
    """Infer image MIME type from magic bytes. Returns e.g. 'image/png' or None."""
    if len(data) < 12:
        return None
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:2] == b"\xff\xd8":
        return "image/jpeg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[4:12] in (b"ftypheic", b"ftypheix", b"ftypmif1"):
        return "image/heic"
    return None


def normalize_mime_type(mime_type: str | None) -> str | None:
    """Normalize a MIME type or bare format name ('JPG', 'image/jpg') to a supported MIME type."""
    if not mime_type:
        return None
    s = mime_type.strip().lower().split(";")[0].strip()
    if s.startswith("image/"):
        s = s.split("/", 1)[1]
    mime = _EXTENSION_TO_MIME.get(s)
    return mime


@dataclass(frozen=True)
class EncodedImage:
    """An image as raw encoded bytes plus its MIME type. Immutable."""

    data: bytes
    mime_type: str

    def __post_init__(self) -> None:
        if not self.data:
            raise ValidationError("Image data is empty", field="image")
        if not self.mime_type:
            raise ValidationError("Image MIME type is required", field="mime_type")

    def __repr__(self) -> str:
        return f"EncodedImage(mime_type={self.mime_type!r}, size={len(self.data)})"

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str | None = None) -> "EncodedImage":
        """
        Wrap raw image bytes.

        Args:
            data: Encoded image bytes (PNG, JPEG, WEBP, GIF or HEIC)
            mime_type: Optional declared MIME type; inferred from magic bytes when omitted

        Raises:
            ValidationError: If data is empty or the format cannot be determined
        """
        if not data:
            raise ValidationError("Image data is empty", field="image")
        mime = normalize_mime_type(mime_type) or infer_mime_type(data)
        if mime is None:
            raise ValidationError(
                "Could not determine image format from bytes. "
                "Pass mime_type (e.g. 'image/png', 'image/jpeg').",
                field="mime_type",
            )
        return cls(data=bytes(data), mime_type=mime)

    @classmethod
    def from_base64(cls, encoded: str, mime_type: str | None = None) -> "EncodedImage":
        """Decode a base64 payload (no data: prefix) into an EncodedImage."""
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Invalid base64 image data: {e}", field="image") from e
        if not data:
            raise ValidationError("Image data is empty", field="image")
        declared = (mime_type or "").strip().lower()
        # Provider-declared image types are kept even when not in SUPPORTED_MIME_TYPES
        mime = normalize_mime_type(declared) or (declared if declared.startswith("image/") else None)
        if mime is None:
            return cls.from_bytes(data)
        return cls(data=data, mime_type=mime)

    @classmethod
    def from_data_url(cls, data_url: str) -> "EncodedImage":
        """
        Parse a data URL (data:image/xxx;base64,yyy).

        Raises:
            ValidationError: If the string is not a base64 image data URL
        """
        data_url = data_url.strip()
        if not data_url.startswith("data:"):
            raise ValidationError("Not a data URL", field="image")
        idx = data_url.find(";base64,")
        if idx == -1:
            raise ValidationError("Data URL missing ;base64, part", field="image")
        mime = data_url[5:idx].strip().lower() or None
        return cls.from_base64(data_url[idx + 8 :], mime)

    @classmethod
    def from_path(cls, path: str | Path) -> "EncodedImage":
        """
        Read an image file. The MIME type comes from the content, then the suffix.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValidationError: If the format is unsupported
        """
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Image file not found: {p}")
        data = p.read_bytes()
        mime = infer_mime_type(data) or normalize_mime_type(p.suffix.lstrip("."))
        if mime is None:
            raise ValidationError(
                f"Unsupported image format: {p.suffix or '(none)'}. "
                f"Supported formats: {', '.join(sorted(SUPPORTED_MIME_TYPES.values()))}",
                field="image_format",
            )
        return cls.from_bytes(data, mime)

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)

    @property
    def extension(self) -> str:
        """File extension (without dot) for this MIME type; 'png' when unknown."""
        return SUPPORTED_MIME_TYPES.get(self.mime_type, "png")

    def to_base64(self) -> str:
        """Return the payload as a base64 string."""
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        """Return the payload as a data URL."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def to_pil(self) -> Image.Image:
        """
        Decode the payload with Pillow.

        Raises:
            ImageProcessingError: If the bytes cannot be decoded
        """
        try:
            image = Image.open(io.BytesIO(self.data))
            image.load()
            return image
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            raise ImageProcessingError(f"Failed to decode image: {e}") from e

    def dimensions(self) -> tuple[int, int] | None:
        """Return (width, height), or None when Pillow cannot read the payload."""
        try:
            with Image.open(io.BytesIO(self.data)) as image:
                return image.size
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
            return None

    def describe(self) -> str:
        """Short human-readable summary, e.g. 'PNG image, 640x480, 12.3 KB'."""
        fmt = self.mime_type.split("/", 1)[-1].upper()
        dims = self.dimensions()
        parts = [f"{fmt} image"]
        if dims is not None:
            parts.append(f"{dims[0]}x{dims[1]}")
        parts.append(f"{self.size / 1024:.1f} KB")
        return ", ".join(parts)

    def save(self, path: str | Path) -> Path:
        """Write the payload unchanged to path, creating parent directories."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(self.data)
        logger.debug("Saved image path=%s bytes=%d", p, self.size)
        return p


def validate_upload(image: EncodedImage, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> None:
    """
    Check that an image is acceptable as an upload.

    Args:
        image: Image to check
        max_bytes: Maximum payload size

    Raises:
        ValidationError: If the MIME type is not an image type or the payload is too large
    """
    if not image.mime_type.startswith("image/"):
        raise ValidationError("Please upload an image file", field="image")
    if image.size > max_bytes:
        raise ValidationError(
            f"Image size should be less than {max_bytes // (1024 * 1024)}MB "
            f"(got {image.size / (1024 * 1024):.1f}MB)",
            field="image",
        )


__all__ = [
    "EncodedImage",
    "infer_mime_type",
    "normalize_mime_type",
    "validate_upload",
]
