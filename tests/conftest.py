"""
Shared fixtures for Raster Crop Editor tests.

Provides reusable rects, small synthetic bitmaps and ImageSource values.
"""
import sys
import os
import pytest

# Ensure editor/src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'editor', 'src'))

# Session tests construct a QObject; no display is needed
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

import numpy as np  # noqa: E402
from PIL import Image  # noqa: E402


# ── Synthetic bitmaps ────────────────────────────────────────────────────

def make_gradient_array(width, height):
    """RGBA array where every pixel is unique: R = x, G = y, B = x + y."""
    ys, xs = np.mgrid[0:height, 0:width]
    rgba = np.zeros((height, width, 4), dtype=np.uint8)
    rgba[..., 0] = xs * 10
    rgba[..., 1] = ys * 10
    rgba[..., 2] = (xs + ys) * 5
    rgba[..., 3] = 255
    return rgba


@pytest.fixture
def base_rect():
    """Crop rect used by the end-to-end resize scenarios"""
    from models.transform import Rect
    return Rect(10, 10, 100, 50)


@pytest.fixture
def bounds():
    """Image bounds used by clamping tests"""
    from models.transform import Rect
    return Rect(0, 0, 200, 120)


@pytest.fixture
def gradient_array():
    """6x4 RGBA array with unique pixels"""
    return make_gradient_array(6, 4)


@pytest.fixture
def gradient_image(gradient_array):
    """6x4 RGBA PIL image with unique pixels"""
    return Image.fromarray(gradient_array)


@pytest.fixture
def png_bytes(gradient_image):
    """gradient_image encoded as PNG"""
    import io
    buffer = io.BytesIO()
    gradient_image.save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def image_source(png_bytes):
    """ImageSource decoded from png_bytes"""
    from services.image_io import load_image_from_bytes
    return load_image_from_bytes(png_bytes, 'photo.png')
