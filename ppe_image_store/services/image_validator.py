"""Upload content reading and image type validation."""

import io
from dataclasses import dataclass
from typing import Any, Sequence

from PIL import Image, UnidentifiedImageError

from ..logging_config import get_logger
from ..utils import format_file_size
from .error_handler import InvalidInputError

logger = get_logger("image_validator")


@dataclass(frozen=True)
class ValidatedImage:
    """Uploaded bytes that passed validation, with what Pillow found in them."""
    content: bytes
    format: str
    mimetype: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.content)


def read_content(content: Any) -> bytes:
    """Read upload content from bytes-like or binary file-like input."""
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)
    if hasattr(content, "read"):
        try:
            data = content.read()
        except (OSError, ValueError) as e:
            raise InvalidInputError(f"Could not read uploaded content: {e}") from e
        if isinstance(data, str):
            raise InvalidInputError("Uploaded content must be opened in binary mode")
        return bytes(data)
    raise InvalidInputError(f"Unsupported upload content type: {type(content).__name__}")


class ImageValidator:
    """Rejects empty, oversized or non-image uploads before the store is touched."""

    def __init__(self,
                 allowed_formats: Sequence[str] = ("JPEG", "PNG", "GIF", "BMP", "WEBP", "TIFF"),
                 max_upload_size_mb: float = 16.0):
        self.allowed_formats = tuple(fmt.upper() for fmt in allowed_formats)
        self.max_upload_size_bytes = int(max_upload_size_mb * 1024 * 1024)

    def validate(self, content: Any) -> ValidatedImage:
        data = read_content(content)

        if not data:
            raise InvalidInputError("Uploaded content is empty")
        if self.max_upload_size_bytes and len(data) > self.max_upload_size_bytes:
            raise InvalidInputError(
                f"Upload of {format_file_size(len(data))} exceeds the "
                f"{format_file_size(self.max_upload_size_bytes)} limit"
            )

        try:
            with Image.open(io.BytesIO(data)) as image:
                image_format = image.format
                width, height = image.size
                image.verify()
        except Image.DecompressionBombError as e:
            raise InvalidInputError(f"Uploaded image dimensions are too large: {e}") from e
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise InvalidInputError(f"Uploaded content is not a readable image: {e}") from e

        if not image_format or image_format.upper() not in self.allowed_formats:
            raise InvalidInputError(
                f"Image format {image_format or 'unknown'} is not allowed; "
                f"expected one of {', '.join(self.allowed_formats)}"
            )

        mimetype = Image.MIME.get(image_format, f"image/{image_format.lower()}")
        logger.debug(f"Validated {image_format} image {width}x{height} ({len(data)} bytes)")
        return ValidatedImage(
            content=data,
            format=image_format,
            mimetype=mimetype,
            width=width,
            height=height,
        )
