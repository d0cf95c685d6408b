"""Editor configuration: aspect presets, bounds policy, guides and export options."""
from dataclasses import dataclass
from typing import Optional, Tuple

from constants import (
    ASPECT_PRESETS, DEFAULT_CUSTOM_ASPECT,
    DEFAULT_EXPORT_FORMAT, DEFAULT_JPEG_QUALITY,
)


def resolve_aspect_ratio(preset: str, custom: Tuple[float, float] = DEFAULT_CUSTOM_ASPECT) -> Optional[float]:
    """Map a preset key to a width/height ratio, or None for free cropping.

    Unknown keys fall back to free. A custom ratio with a non-positive side
    is also treated as free.
    """
    if preset == 'custom':
        w, h = custom
        if w > 0 and h > 0:
            return w / h
        return None
    return ASPECT_PRESETS.get(preset)


@dataclass(frozen=True)
class EditorSettings:
    """Runtime options the interaction layer hands to the session."""
    aspect_preset: str = 'free'
    custom_aspect: Tuple[float, float] = DEFAULT_CUSTOM_ASPECT
    allow_outside: bool = False
    show_grid: bool = True
    snap_enabled: bool = True
    export_format: str = DEFAULT_EXPORT_FORMAT
    jpeg_quality: float = DEFAULT_JPEG_QUALITY

    @property
    def aspect_ratio(self) -> Optional[float]:
        return resolve_aspect_ratio(self.aspect_preset, self.custom_aspect)
