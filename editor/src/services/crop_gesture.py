"""Pointer gesture handling for the crop tool.

One drag at a time, modelled as a closed set of frozen dataclasses instead
of boolean flags, so creating / moving / resizing / panning are mutually
exclusive by construction.

Points arrive already converted to image space by the caller; only the
panning drag works in screen space.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from constants import HANDLE_HIT_PX, SNAP_MIN_ZOOM, SNAP_THRESHOLD_PX
from models.transform import CropModifiers, Handle, Rect, Vec2
from services.crop_engine import move_crop_rect, resize_crop_rect
from services.snap_engine import Guide, maybe_snap
from utils.transform_math import clamp_rect_edges, point_in_rect, rect_from_points_with_aspect


@dataclass(frozen=True)
class PointerModifiers:
    """Keyboard state during a pointer event."""
    shift: bool = False  # square
    alt: bool = False    # symmetric
    space: bool = False  # pan instead of crop


@dataclass(frozen=True)
class GestureContext:
    """Everything a gesture step needs from the session."""
    bounds: Rect
    allow_outside: bool = False
    aspect_ratio: Optional[float] = None
    snap_enabled: bool = True
    zoom: float = 1.0
    pan: Vec2 = Vec2(0.0, 0.0)


@dataclass(frozen=True)
class CreatingDrag:
    start: Vec2
    aspect: Optional[float]


@dataclass(frozen=True)
class MovingDrag:
    start: Vec2
    start_rect: Rect


@dataclass(frozen=True)
class ResizingDrag:
    start: Vec2
    start_rect: Rect
    handle: Handle


@dataclass(frozen=True)
class PanningDrag:
    start_screen: Vec2
    start_pan: Vec2


DragState = Union[CreatingDrag, MovingDrag, ResizingDrag, PanningDrag]


@dataclass(frozen=True)
class GestureUpdate:
    """Result of one pointer-move step. Fields not touched by the drag are None."""
    rect: Optional[Rect] = None
    guides: Tuple[Guide, ...] = ()
    pan: Optional[Vec2] = None


def snap_threshold(zoom):
    """Snap distance in image units for the current zoom."""
    return SNAP_THRESHOLD_PX / max(SNAP_MIN_ZOOM, zoom)


def handle_positions(rect):
    """(handle, point) pairs for the 8 resize handles, clockwise from nw."""
    cx = rect.x + rect.w / 2
    cy = rect.y + rect.h / 2
    right = rect.x + rect.w
    bottom = rect.y + rect.h
    return [
        (Handle.NW, Vec2(rect.x, rect.y)),
        (Handle.N, Vec2(cx, rect.y)),
        (Handle.NE, Vec2(right, rect.y)),
        (Handle.E, Vec2(right, cy)),
        (Handle.SE, Vec2(right, bottom)),
        (Handle.S, Vec2(cx, bottom)),
        (Handle.SW, Vec2(rect.x, bottom)),
        (Handle.W, Vec2(rect.x, cy)),
    ]


def handle_at_point(rect_screen, point, hit=HANDLE_HIT_PX):
    """Handle under a screen point, or None. First match clockwise from nw wins."""
    if rect_screen is None:
        return None
    for handle, pos in handle_positions(rect_screen):
        if abs(point.x - pos.x) <= hit and abs(point.y - pos.y) <= hit:
            return handle
    return None


_CURSORS = {
    Handle.N: 'ns-resize',
    Handle.S: 'ns-resize',
    Handle.E: 'ew-resize',
    Handle.W: 'ew-resize',
    Handle.NE: 'nesw-resize',
    Handle.SW: 'nesw-resize',
    Handle.NW: 'nwse-resize',
    Handle.SE: 'nwse-resize',
}


def cursor_for_handle(handle):
    return _CURSORS.get(handle, 'default')


def begin_gesture(point, screen_point, handle, draft_rect, context, modifiers=PointerModifiers()):
    """Start a drag on pointer-down.

    Args:
        point: Pointer in image space
        screen_point: Pointer in screen space (used for panning)
        handle: Handle under the pointer, from handle_at_point
        draft_rect: Current draft crop rect or None
        context: GestureContext
        modifiers: PointerModifiers

    Returns:
        Tuple of (drag_state or None, draft rect after the press)
    """
    if modifiers.space:
        return PanningDrag(screen_point, context.pan), draft_rect

    if not context.allow_outside and not point_in_rect(point, context.bounds):
        return None, draft_rect

    if handle is not None and draft_rect is not None:
        return ResizingDrag(point, draft_rect, handle), draft_rect

    if draft_rect is not None and point_in_rect(point, draft_rect):
        return MovingDrag(point, draft_rect), draft_rect

    aspect = 1.0 if modifiers.shift else context.aspect_ratio
    return CreatingDrag(point, aspect), Rect(point.x, point.y, 1, 1)


def update_gesture(drag, point, screen_point, context, modifiers=PointerModifiers()):
    """Advance a drag on pointer-move.

    Returns:
        GestureUpdate with the new draft rect and guides, or the new pan offset
    """
    if isinstance(drag, PanningDrag):
        delta = screen_point - drag.start_screen
        return GestureUpdate(pan=drag.start_pan + delta)

    bounds = context.bounds
    threshold = snap_threshold(context.zoom)

    if isinstance(drag, CreatingDrag):
        aspect = 1.0 if modifiers.shift else drag.aspect
        rect = rect_from_points_with_aspect(drag.start, point, aspect)
        if not context.allow_outside:
            rect = clamp_rect_edges(rect, bounds)
        return GestureUpdate(rect=rect)

    if isinstance(drag, MovingDrag):
        rect = move_crop_rect(drag.start_rect, point - drag.start, bounds, context.allow_outside)
        snapped = maybe_snap(rect, bounds, threshold, 'move', enabled=context.snap_enabled)
        return GestureUpdate(rect=snapped.rect, guides=snapped.guides)

    if isinstance(drag, ResizingDrag):
        aspect = 1.0 if modifiers.shift else context.aspect_ratio
        crop_modifiers = CropModifiers(
            square=aspect == 1.0,
            symmetric=modifiers.alt,
            aspect_ratio=aspect if aspect and aspect != 1.0 else None,
        )
        rect = resize_crop_rect(
            drag.start_rect, drag.handle, point - drag.start, crop_modifiers, bounds, context.allow_outside)
        snapped = maybe_snap(rect, bounds, threshold, 'resize', drag.handle, enabled=context.snap_enabled)
        rect = snapped.rect
        if not context.allow_outside:
            rect = clamp_rect_edges(rect, bounds)
        return GestureUpdate(rect=rect, guides=snapped.guides)

    raise TypeError(f"Unknown drag state: {drag!r}")
