"""
Raster Crop Editor - Export Pipeline

Composes the current TransformState onto the source bitmap and encodes the
result:

    adjust -> rotate 90s -> flip -> straighten -> crop -> encode

The geometric part is one affine matrix built in canvas order (translate to
centre, straighten, flip, right-angle rotation, draw centred) and applied
with a single resample, so the output matches the on-screen composition in
display space.
"""

import io
import logging
import math

import numpy as np
from PIL import Image

from constants import ADJUSTMENT_EPSILON, EXPORT_FORMATS, DEFAULT_EXPORT_FORMAT
from models.transform import normalize_adjustments, normalize_rotation
from services.adjustments import apply_adjustments_to_bitmap, is_default_adjustments
from services.crop_engine import get_oriented_size
from services.image_io import ExportRequest, default_export_name
from utils.errors import EncodingFailed, SurfaceCreationFailed
from utils.transform_math import clamp, rotated_bounds

logger = logging.getLogger(__name__)

# Exact cos/sin for right angles so quarter turns stay pixel exact
_QUARTER_TURNS = {0: (1.0, 0.0), 90: (0.0, 1.0), 180: (-1.0, 0.0), 270: (0.0, -1.0)}

TRANSPARENT = (0, 0, 0, 0)


def _round_px(value):
    """Round half up to a whole pixel count."""
    return int(math.floor(value + 0.5))


def _translate(tx, ty):
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


def _rotate(cos_r, sin_r):
    return np.array([[cos_r, -sin_r, 0.0], [sin_r, cos_r, 0.0], [0.0, 0.0, 1.0]])


def _scale(sx, sy):
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])


def composition_matrix(source_size, canvas_size, rotation, straighten, flip_h, flip_v):
    """3x3 matrix mapping source pixel coordinates to display canvas coordinates.

    The order is load-bearing: flips are applied after the right-angle
    rotation and before straighten, so flip_h always mirrors the displayed
    horizontal axis.

    Args:
        source_size: (width, height) of the source bitmap
        canvas_size: (width, height) of the display canvas
        rotation: Right-angle rotation, clockwise degrees
        straighten: Fine rotation in degrees, clockwise positive
        flip_h: Mirror horizontally
        flip_v: Mirror vertically
    """
    src_w, src_h = source_size
    canvas_w, canvas_h = canvas_size
    rad = math.radians(straighten)
    quarter = _QUARTER_TURNS[normalize_rotation(rotation)]
    return (_translate(canvas_w / 2, canvas_h / 2)
            @ _rotate(math.cos(rad), math.sin(rad))
            @ _scale(-1.0 if flip_h else 1.0, -1.0 if flip_v else 1.0)
            @ _rotate(*quarter)
            @ _translate(-src_w / 2, -src_h / 2))


def _create_surface(width, height):
    try:
        return Image.new('RGBA', (width, height), TRANSPARENT)
    except (ValueError, MemoryError, Image.DecompressionBombError) as e:
        raise SurfaceCreationFailed(f"Unable to create {width}x{height} surface") from e


def display_size(source_width, source_height, transform):
    """Pixel size of the display canvas for a transform (oriented + straighten bounds)."""
    oriented_w, oriented_h = get_oriented_size(source_width, source_height, transform.rotation)
    bounds_w, bounds_h = rotated_bounds(oriented_w, oriented_h, transform.straighten)
    return max(1, _round_px(bounds_w)), max(1, _round_px(bounds_h))


def render_display(image, transform):
    """Draw image into a new display-space canvas with rotation, flip and straighten."""
    canvas_w, canvas_h = display_size(image.width, image.height, transform)

    matrix = composition_matrix(
        image.size, (canvas_w, canvas_h),
        transform.rotation, transform.straighten,
        transform.flip_h, transform.flip_v,
    )
    inverse = np.linalg.inv(matrix)
    coeffs = tuple(float(v) for v in inverse[:2].ravel())

    if abs(transform.straighten) < ADJUSTMENT_EPSILON:
        resample = Image.Resampling.NEAREST
    else:
        resample = Image.Resampling.BICUBIC

    rgba = image if image.mode == 'RGBA' else image.convert('RGBA')
    try:
        return rgba.transform(
            (canvas_w, canvas_h), Image.Transform.AFFINE, coeffs,
            resample=resample, fillcolor=TRANSPARENT,
        )
    except (ValueError, MemoryError, Image.DecompressionBombError) as e:
        raise SurfaceCreationFailed(f"Unable to create {canvas_w}x{canvas_h} surface") from e


def crop_display(display, crop_rect):
    """Copy crop_rect out of a display canvas into a crop-sized surface.

    Parts of the rect beyond the canvas come out transparent.
    """
    out_w = max(1, _round_px(crop_rect.w))
    out_h = max(1, _round_px(crop_rect.h))
    surface = _create_surface(out_w, out_h)
    surface.paste(display, (-_round_px(crop_rect.x), -_round_px(crop_rect.y)))
    return surface


def jpeg_quality(quality):
    """Map a 0-1 quality factor onto Pillow's 1-100 JPEG scale."""
    return max(1, min(100, _round_px(clamp(float(quality), 0.0, 1.0) * 100)))


def encode_image(image, export_format=DEFAULT_EXPORT_FORMAT, quality=None) -> bytes:
    """Encode a surface to bytes.

    Raises:
        EncodingFailed: Unknown format, encoder error or empty output
    """
    format_info = EXPORT_FORMATS.get(export_format)
    if format_info is None:
        raise EncodingFailed(f"Unsupported export format: {export_format}")
    pil_format = format_info[0]

    params = {}
    if pil_format == 'JPEG':
        image = image.convert('RGB')
        if quality is not None:
            params['quality'] = jpeg_quality(quality)

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=pil_format, **params)
    except (OSError, KeyError, ValueError) as e:
        raise EncodingFailed(f"Encoding to {export_format} failed") from e

    data = buffer.getvalue()
    if not data:
        raise EncodingFailed(f"Encoding to {export_format} produced no output")
    return data


def export_transformed_image(image, transform, export_format=DEFAULT_EXPORT_FORMAT, quality=None) -> bytes:
    """Compose transform onto image and encode the result.

    Args:
        image: Source PIL image at full resolution
        transform: TransformState to apply
        export_format: 'image/png', 'image/jpeg' or 'image/webp'
        quality: 0-1 quality factor, used for JPEG only

    Returns:
        Encoded image bytes

    Raises:
        SurfaceCreationFailed: A canvas could not be allocated
        EncodingFailed: The encoder produced no output
    """
    adjustments = normalize_adjustments(transform.adjustments)
    adjusted = None
    source = image
    try:
        if not is_default_adjustments(adjustments):
            adjusted = apply_adjustments_to_bitmap(image, adjustments)
            source = adjusted

        output = render_display(source, transform)
        if transform.crop_rect is not None:
            output = crop_display(output, transform.crop_rect)

        data = encode_image(output, export_format, quality if export_format == 'image/jpeg' else None)
        logger.info("Exported %dx%d %s (%d bytes)", output.width, output.height, export_format, len(data))
        return data
    finally:
        if adjusted is not None:
            adjusted.close()


def build_export_request(source, transform, export_format=DEFAULT_EXPORT_FORMAT, quality=None) -> ExportRequest:
    """Export an ImageSource and attach the suggested filename and MIME type."""
    data = export_transformed_image(source.image, transform, export_format, quality)
    return ExportRequest(
        data=data,
        default_name=default_export_name(source.display_name, export_format),
        mime_type=export_format,
    )
