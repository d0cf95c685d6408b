"""
Raster Crop Editor - Image IO Service

Loads source images into ImageSource values and writes export results.
Separates file operations from the editing engines.
"""

import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from constants import (
    DEFAULT_EXPORT_BASENAME, EXPORT_FORMATS, EXT_TO_MIME, UNKNOWN_MIME,
)
from utils.errors import UnsupportedSource

logger = logging.getLogger(__name__)


@dataclass
class ImageSource:
    """A decoded bitmap plus the metadata the editor displays."""
    image: Image.Image
    width: int
    height: int
    byte_size: int
    mime_type: str
    display_name: str


@dataclass(frozen=True)
class ExportRequest:
    """Encoded output ready to be written or offered as a download."""
    data: bytes
    default_name: str
    mime_type: str


def infer_mime_type(name: str) -> str:
    """Guess a MIME type from a file name's extension."""
    ext = os.path.splitext(name.lower())[1]
    return EXT_TO_MIME.get(ext, UNKNOWN_MIME)


def default_export_name(name, export_format: str) -> str:
    """Suggested output file name: source stem plus the format's extension."""
    ext = EXPORT_FORMATS.get(export_format, EXPORT_FORMATS['image/png'])[1]
    stem = os.path.splitext(name)[0] if name else DEFAULT_EXPORT_BASENAME
    return f"{stem or DEFAULT_EXPORT_BASENAME}.{ext}"


def load_image_from_bytes(data: bytes, name: str) -> ImageSource:
    """Decode image bytes into an RGBA ImageSource.

    Raises:
        UnsupportedSource: If Pillow cannot decode the data
    """
    try:
        with Image.open(io.BytesIO(data)) as opened:
            opened.load()
            decoded_format = opened.format
            image = opened.convert('RGBA')
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise UnsupportedSource(f"Could not decode image: {name}") from e

    mime_type = Image.MIME.get(decoded_format) if decoded_format else None
    source = ImageSource(
        image=image,
        width=image.width,
        height=image.height,
        byte_size=len(data),
        mime_type=mime_type or infer_mime_type(name),
        display_name=name,
    )
    logger.debug("Loaded %s (%dx%d, %d bytes)", name, source.width, source.height, source.byte_size)
    return source


def load_image_from_path(path) -> ImageSource:
    """Read and decode an image file."""
    path = Path(path)
    return load_image_from_bytes(path.read_bytes(), path.name)


def write_export(request: ExportRequest, directory, filename=None) -> Path:
    """Write an export result to disk.

    Args:
        request: ExportRequest from the export pipeline
        directory: Target directory (created if missing)
        filename: Override for request.default_name

    Returns:
        Path of the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / (filename or request.default_name)
    target.write_bytes(request.data)
    logger.info("Export saved to %s", target)
    return target
