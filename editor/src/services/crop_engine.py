"""
Raster Crop Editor - Crop Rect Engine

Move, resize and rotate crop rectangles under the editor's constraints:
minimum size, square / custom aspect, symmetric vs. anchored resize and
bounds clamping. Every function is pure and returns a new Rect.
"""

from dataclasses import dataclass

from constants import MIN_CROP_SIZE
from models.transform import CropModifiers, Rect, normalize_rotation
from utils.transform_math import clamp_rect_edges, clamp_rect_inside


@dataclass(frozen=True)
class _ActiveEdges:
    """Edges under direct or symmetric control for one resize gesture."""
    left: bool
    right: bool
    top: bool
    bottom: bool


def _active_edges(handle, symmetric):
    affects_x = handle.has('e') or handle.has('w')
    affects_y = handle.has('n') or handle.has('s')
    return _ActiveEdges(
        left=affects_x and (handle.has('w') or symmetric),
        right=affects_x and (handle.has('e') or symmetric),
        top=affects_y and (handle.has('n') or symmetric),
        bottom=affects_y and (handle.has('s') or symmetric),
    )


def _ensure_axis_min(lo, hi, lo_active, hi_active):
    """Grow one axis back to MIN_CROP_SIZE.

    A single controlled edge is pushed away from the pinned one; otherwise
    the axis expands around its current centre.
    """
    if hi - lo >= MIN_CROP_SIZE:
        return lo, hi
    if lo_active and not hi_active:
        return hi - MIN_CROP_SIZE, hi
    if hi_active and not lo_active:
        return lo, lo + MIN_CROP_SIZE
    mid = (lo + hi) / 2
    return mid - MIN_CROP_SIZE / 2, mid + MIN_CROP_SIZE / 2


def _ensure_min_size(left, right, top, bottom, active):
    left, right = _ensure_axis_min(left, right, active.left, active.right)
    top, bottom = _ensure_axis_min(top, bottom, active.top, active.bottom)
    return left, right, top, bottom


def _apply_aspect_ratio(left, right, top, bottom, handle, aspect, symmetric):
    has_e, has_w = handle.has('e'), handle.has('w')
    has_n, has_s = handle.has('n'), handle.has('s')
    is_corner = (has_e or has_w) and (has_n or has_s)

    width = abs(right - left)
    height = abs(bottom - top)
    new_w, new_h = width, height

    if is_corner:
        # The dimension that is already "too small" for the ratio binds
        if width / height > aspect:
            new_w = height * aspect
        else:
            new_h = width / aspect
    elif has_e or has_w:
        new_h = width / aspect
    elif has_n or has_s:
        new_w = height * aspect

    if symmetric:
        cx = (left + right) / 2
        cy = (top + bottom) / 2
        return cx - new_w / 2, cx + new_w / 2, cy - new_h / 2, cy + new_h / 2

    if has_e and not has_w:
        right = left + new_w
    elif has_w and not has_e:
        left = right - new_w

    if has_s and not has_n:
        bottom = top + new_h
    elif has_n and not has_s:
        top = bottom - new_h

    if not is_corner:
        # Edge drags keep the perpendicular pair centred on the old centre-line
        if has_e or has_w:
            cy = (top + bottom) / 2
            top, bottom = cy - new_h / 2, cy + new_h / 2
        if has_n or has_s:
            cx = (left + right) / 2
            left, right = cx - new_w / 2, cx + new_w / 2

    return left, right, top, bottom


def move_crop_rect(rect, delta, bounds=None, allow_outside=False):
    """Translate rect by delta, sliding along bounds unless outside is allowed."""
    moved = Rect(rect.x + delta.x, rect.y + delta.y, rect.w, rect.h)
    if not allow_outside and bounds is not None:
        return clamp_rect_inside(moved, bounds)
    return moved


def resize_crop_rect(rect, handle, delta, modifiers=None, bounds=None, allow_outside=False):
    """Resize rect by dragging the edges named by handle.

    Args:
        rect: Rect at the start of the gesture
        handle: Handle being dragged
        delta: Pointer movement since gesture start (image units)
        modifiers: CropModifiers; square forces aspect 1, symmetric mirrors
            the delta onto the opposite edge
        bounds: Rect the result must stay inside, or None
        allow_outside: Skip bounds clamping when True

    Returns:
        New Rect with w >= 1 and h >= 1
    """
    modifiers = modifiers or CropModifiers()
    symmetric = modifiers.symmetric
    aspect = 1.0 if modifiers.square else modifiers.aspect_ratio

    left, right = rect.x, rect.x + rect.w
    top, bottom = rect.y, rect.y + rect.h

    if handle.has('e'):
        right += delta.x
        if symmetric:
            left -= delta.x
    if handle.has('w'):
        left += delta.x
        if symmetric:
            right -= delta.x
    if handle.has('s'):
        bottom += delta.y
        if symmetric:
            top -= delta.y
    if handle.has('n'):
        top += delta.y
        if symmetric:
            bottom -= delta.y

    active = _active_edges(handle, symmetric)
    left, right, top, bottom = _ensure_min_size(left, right, top, bottom, active)

    if aspect and aspect > 0:
        left, right, top, bottom = _apply_aspect_ratio(
            left, right, top, bottom, handle, aspect, symmetric)

    # Aspect can reintroduce a sub-minimum side
    left, right, top, bottom = _ensure_min_size(left, right, top, bottom, active)

    result = Rect(left, top, right - left, bottom - top)
    if not allow_outside and bounds is not None:
        result = clamp_rect_edges(result, bounds)
    return result


def get_oriented_size(width, height, rotation):
    """Canvas size after a right-angle rotation: (w, h) swapped for 90/270."""
    if normalize_rotation(rotation) in (90, 270):
        return height, width
    return width, height


def inverse_rotation(rotation):
    return (360 - normalize_rotation(rotation)) % 360


def rotate_rect(rect, rotation, width, height):
    """Remap rect from a width x height canvas into the same canvas rotated
    clockwise by rotation degrees.

    Accepts any multiple of 90 (including negatives); other values leave
    the rect unchanged.
    """
    rot = int(rotation) % 360
    if rot == 90:
        return Rect(height - (rect.y + rect.h), rect.x, rect.h, rect.w)
    if rot == 180:
        return Rect(width - (rect.x + rect.w), height - (rect.y + rect.h), rect.w, rect.h)
    if rot == 270:
        return Rect(rect.y, width - (rect.x + rect.w), rect.h, rect.w)
    return Rect(rect.x, rect.y, rect.w, rect.h)


def source_crop_rect(rect, rotation, source_width, source_height):
    """Map an oriented-space rect back to source bitmap pixels.

    Args:
        rect: Rect in the canvas rotated by rotation
        rotation: Right-angle rotation applied to the source
        source_width: Source bitmap width
        source_height: Source bitmap height
    """
    oriented_w, oriented_h = get_oriented_size(source_width, source_height, rotation)
    return rotate_rect(rect, inverse_rotation(rotation), oriented_w, oriented_h)
