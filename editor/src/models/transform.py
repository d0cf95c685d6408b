"""Transform data structures for coordinate and document state representation."""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from constants import ROTATIONS, STRAIGHTEN_LIMIT


@dataclass(frozen=True)
class Vec2:
    """2D vector for coordinate pairs and deltas.

    Used for any x/y pair across the editor's spaces:
    - Screen pixels (pointer positions)
    - Oriented / display image pixels (crop authoring)
    - Source image pixels (export)
    """
    x: float
    y: float

    def __iter__(self):
        """Allow tuple unpacking: x, y = vec2"""
        return iter((self.x, self.y))

    def __add__(self, other):
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        return Vec2(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle: top-left corner plus width and height."""
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self):
        return self.x + self.w

    @property
    def bottom(self):
        return self.y + self.h

    def __iter__(self):
        return iter((self.x, self.y, self.w, self.h))

    def to_dict(self):
        return {'x': self.x, 'y': self.y, 'w': self.w, 'h': self.h}

    @classmethod
    def from_dict(cls, data):
        return cls(float(data['x']), float(data['y']), float(data['w']), float(data['h']))


class Handle(str, Enum):
    """Resize anchor: which edges of a rect a gesture drags."""
    N = 'n'
    S = 's'
    E = 'e'
    W = 'w'
    NE = 'ne'
    NW = 'nw'
    SE = 'se'
    SW = 'sw'

    def has(self, direction: str) -> bool:
        """True if this handle moves the edge named by a compass letter."""
        return direction in self.value


def normalize_rotation(rotation) -> int:
    """Fold any angle into {0, 90, 180, 270}; non right angles become 0."""
    normalized = int(rotation) % 360
    return normalized if normalized in ROTATIONS else 0


@dataclass(frozen=True)
class CropModifiers:
    """Per-gesture resize options (shift -> square, alt -> symmetric)."""
    square: bool = False
    symmetric: bool = False
    aspect_ratio: Optional[float] = None


@dataclass(frozen=True)
class Adjustments:
    """Tonal sliders, each in [-1, 1]. All zero is the identity."""
    brightness: float = 0.0
    contrast: float = 0.0
    curve: float = 0.0

    def to_dict(self):
        return {'brightness': self.brightness, 'contrast': self.contrast, 'curve': self.curve}


DEFAULT_ADJUSTMENTS = Adjustments()


def normalize_adjustments(adjustments=None) -> Adjustments:
    """Accept None, a partial dict or an Adjustments; missing fields are 0."""
    if adjustments is None:
        return DEFAULT_ADJUSTMENTS
    if isinstance(adjustments, Adjustments):
        return adjustments
    return Adjustments(
        brightness=float(adjustments.get('brightness') or 0.0),
        contrast=float(adjustments.get('contrast') or 0.0),
        curve=float(adjustments.get('curve') or 0.0),
    )


def _clamp_unit(value):
    return max(-1.0, min(1.0, float(value)))


@dataclass(frozen=True)
class TransformState:
    """The single persisted document value.

    crop_rect is authored in display space: the canvas after the right-angle
    rotation, expanded to the bounding box of the straighten angle. It is
    never stored in screen space or source-pixel space.
    """
    crop_rect: Optional[Rect] = None
    rotation: int = 0
    straighten: float = 0.0
    flip_h: bool = False
    flip_v: bool = False
    adjustments: Adjustments = field(default_factory=Adjustments)

    def with_changes(self, **changes):
        return replace(self, **changes)

    def to_dict(self):
        return {
            'cropRect': self.crop_rect.to_dict() if self.crop_rect else None,
            'rotation': self.rotation,
            'straighten': self.straighten,
            'flipH': self.flip_h,
            'flipV': self.flip_v,
            'adjustments': self.adjustments.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        """Build a state from a JSON-style dict; missing keys mean identity."""
        data = data or {}
        crop = data.get('cropRect')
        adjustments = normalize_adjustments(data.get('adjustments'))
        straighten = float(data.get('straighten', 0.0))
        return cls(
            crop_rect=Rect.from_dict(crop) if crop else None,
            rotation=normalize_rotation(data.get('rotation', 0)),
            straighten=max(-STRAIGHTEN_LIMIT, min(STRAIGHTEN_LIMIT, straighten)),
            flip_h=bool(data.get('flipH', False)),
            flip_v=bool(data.get('flipV', False)),
            adjustments=Adjustments(
                brightness=_clamp_unit(adjustments.brightness),
                contrast=_clamp_unit(adjustments.contrast),
                curve=_clamp_unit(adjustments.curve),
            ),
        )


INITIAL_TRANSFORM = TransformState()
