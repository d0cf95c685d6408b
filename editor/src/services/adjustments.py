"""
Raster Crop Editor - Adjustment Engine

Brightness / contrast / tone-curve pixel math. Per RGB channel the order is
fixed: contrast and brightness first, then the curve lookup table. Alpha is
never touched.
"""

import numpy as np
from PIL import Image

from constants import ADJUSTMENT_EPSILON, CURVE_STEEPNESS
from models.transform import normalize_adjustments
from utils.transform_math import clamp


def _round_half_up(values):
    return np.floor(values + 0.5)


def is_default_adjustments(adjustments=None) -> bool:
    """True when every slider is within epsilon of zero (missing fields count as 0)."""
    adj = normalize_adjustments(adjustments)
    return (abs(adj.brightness) < ADJUSTMENT_EPSILON
            and abs(adj.contrast) < ADJUSTMENT_EPSILON
            and abs(adj.curve) < ADJUSTMENT_EPSILON)


def build_curve_lut(amount: float) -> np.ndarray:
    """256-entry uint8 table for a logistic S-curve.

    Positive amounts steepen midtones, negative amounts flatten them.
    The sigmoid is rescaled so 0 maps to 0 and 255 maps to 255.
    """
    a = clamp(amount, -1.0, 1.0) * CURVE_STEEPNESS
    if abs(a) < ADJUSTMENT_EPSILON:
        return np.arange(256, dtype=np.uint8)

    lo = 1.0 / (1.0 + np.exp(a / 2))
    hi = 1.0 / (1.0 + np.exp(-a / 2))
    x = np.arange(256, dtype=np.float64) / 255.0
    y = 1.0 / (1.0 + np.exp(-a * (x - 0.5)))
    normalized = np.clip((y - lo) / (hi - lo), 0.0, 1.0)
    return _round_half_up(normalized * 255.0).astype(np.uint8)


def adjust_channels(rgb: np.ndarray, adjustments) -> np.ndarray:
    """Apply the adjustment math to an (..., 3) array of 0-255 values.

    Returns:
        uint8 array of the same shape
    """
    adj = normalize_adjustments(adjustments)
    brightness = clamp(adj.brightness, -1.0, 1.0)
    contrast = clamp(adj.contrast, -1.0, 1.0)
    curve = clamp(adj.curve, -1.0, 1.0)

    values = rgb.astype(np.float64)
    values = (values - 128.0) * (1.0 + contrast) + 128.0 + brightness * 255.0
    values = _round_half_up(np.clip(values, 0.0, 255.0)).astype(np.uint8)

    if abs(curve) > ADJUSTMENT_EPSILON:
        values = build_curve_lut(curve)[values]
    return values


def apply_adjustments_to_bitmap(image: Image.Image, adjustments) -> Image.Image:
    """Return an adjusted RGBA copy of image. The input is left untouched."""
    rgba = np.array(image.convert('RGBA'))
    rgba[..., :3] = adjust_channels(rgba[..., :3], adjustments)
    return Image.fromarray(rgba)
