"""
Raster Crop Editor - Data Models

Immutable value types shared by the engines and the session.
This is the MODEL in MVC architecture.
"""

from .transform import (
    Vec2, Rect, Handle, CropModifiers, Adjustments, TransformState,
    DEFAULT_ADJUSTMENTS, INITIAL_TRANSFORM,
    normalize_rotation, normalize_adjustments,
)
from .settings import EditorSettings, resolve_aspect_ratio

__all__ = [
    'Vec2', 'Rect', 'Handle', 'CropModifiers', 'Adjustments', 'TransformState',
    'DEFAULT_ADJUSTMENTS', 'INITIAL_TRANSFORM',
    'normalize_rotation', 'normalize_adjustments',
    'EditorSettings', 'resolve_aspect_ratio',
]
