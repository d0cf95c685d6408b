"""
Raster Crop Editor - Transform Math Utilities

This module provides the geometry primitives used by the crop, snap and
export engines: clamping, rect construction from drag points, bounds
clamping policies and rotated bounding boxes.

These pure math functions work on immutable Vec2/Rect values and have no
UI dependencies.
"""

import math

from models.transform import Rect, Vec2


def clamp(value, lo, hi):
    """Clamp value into [lo, hi]. Assumes lo <= hi."""
    return min(hi, max(lo, value))


def rect_from_points(a, b):
    """Normalize two arbitrary corner points into a positive-size rect."""
    return Rect(
        x=min(a.x, b.x),
        y=min(a.y, b.y),
        w=abs(b.x - a.x),
        h=abs(b.y - a.y),
    )


def rect_from_points_with_aspect(a, b, aspect):
    """Rect spanning a drag from a to b, constrained to w/h == aspect.

    The longer dimension is shrunk. The result stays anchored at the drag
    start: the sign of b - a decides which corner of the rect a occupies.

    Args:
        a: Drag start point
        b: Current pointer point
        aspect: Width/height ratio, or None/<=0 for unconstrained

    Returns:
        Rect with non-negative size
    """
    dx = b.x - a.x
    dy = b.y - a.y
    w = abs(dx)
    h = abs(dy)

    if aspect and aspect > 0:
        if h == 0:
            w = 0.0
        elif w / h > aspect:
            w = h * aspect
        else:
            h = w / aspect

    x = a.x if dx >= 0 else a.x - w
    y = a.y if dy >= 0 else a.y - h
    return Rect(x, y, w, h)


def rect_center(rect):
    return Vec2(rect.x + rect.w / 2, rect.y + rect.h / 2)


def point_in_rect(point, rect):
    """Inclusive containment test."""
    return (rect.x <= point.x <= rect.x + rect.w
            and rect.y <= point.y <= rect.y + rect.h)


def clamp_rect_inside(rect, bounds):
    """Translate a rect so it lies inside bounds, preserving its size.

    Size is capped to the bounds size first, then the position is clamped.
    Used for pure translation (move) so a dragged rect slides along walls.
    """
    w = min(rect.w, bounds.w)
    h = min(rect.h, bounds.h)
    x = clamp(rect.x, bounds.x, bounds.x + bounds.w - w)
    y = clamp(rect.y, bounds.y, bounds.y + bounds.h - h)
    return Rect(x, y, w, h)


def clamp_rect_edges(rect, bounds):
    """Clamp each edge independently to bounds (intersection).

    Used for resize: a dragged edge stops at the wall while the opposite
    edge stays put. Width and height are floored at 1.
    """
    left = max(rect.x, bounds.x)
    top = max(rect.y, bounds.y)
    right = min(rect.x + rect.w, bounds.x + bounds.w)
    bottom = min(rect.y + rect.h, bounds.y + bounds.h)
    return Rect(left, top, max(1, right - left), max(1, bottom - top))


def rotated_bounds(width, height, angle_deg):
    """Size of the axis-aligned bounding box of a rotated width x height rect.

    Returns:
        Tuple of (bounds_w, bounds_h)
    """
    rad = math.radians(angle_deg)
    sin_r = abs(math.sin(rad))
    cos_r = abs(math.cos(rad))
    return (width * cos_r + height * sin_r,
            width * sin_r + height * cos_r)


def center_rect_at(rect, center):
    return Rect(center.x - rect.w / 2, center.y - rect.h / 2, rect.w, rect.h)


def rect_from_center_and_size(center, w, h):
    return Rect(center.x - w / 2, center.y - h / 2, w, h)


def rect_for_aspect_from_center(center, size, aspect):
    """Rect of height `size` and width `size * aspect` centred on center."""
    return rect_from_center_and_size(center, size * aspect, size)


def fit_rect_with_aspect(bounds, aspect):
    """Largest rect of the given aspect centred inside bounds."""
    if not aspect or aspect <= 0:
        return Rect(bounds.x, bounds.y, bounds.w, bounds.h)
    if bounds.w / bounds.h > aspect:
        return rect_for_aspect_from_center(rect_center(bounds), bounds.h, aspect)
    return rect_for_aspect_from_center(rect_center(bounds), bounds.w / aspect, aspect)
