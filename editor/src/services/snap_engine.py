"""
Raster Crop Editor - Snap Engine

Aligns a crop rect being moved or resized with the edges, thirds and
centre of the bounds, and reports the guide lines that were hit.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from constants import MIN_CROP_SIZE
from models.transform import Rect


@dataclass(frozen=True)
class Guide:
    axis: str    # 'x' or 'y'
    value: float
    kind: str    # 'edge', 'center' or 'third'


@dataclass(frozen=True)
class SnapResult:
    rect: Rect
    guides: Tuple[Guide, ...] = ()


def _make_targets(size, offset):
    """Snap targets along one axis, in tie-break order."""
    return [
        (offset, 'edge'),
        (offset + size / 3, 'third'),
        (offset + 2 * size / 3, 'third'),
        (offset + size / 2, 'center'),
        (offset + size, 'edge'),
    ]


def _choose_snap(positions, targets, threshold, limits=None):
    """Closest (candidate, target) pair within threshold, or None.

    Args:
        limits: Optional {key: (low, high)}; targets outside a candidate's
            range are skipped for that candidate

    Returns:
        Tuple of (key, candidate_value, delta, kind)
    """
    limits = limits or {}
    best = None
    for key, value in positions:
        low, high = limits.get(key, (-math.inf, math.inf))
        for target, kind in targets:
            if not low <= target <= high:
                continue
            delta = target - value
            if abs(delta) <= threshold and (best is None or abs(delta) < abs(best[2])):
                best = (key, value, delta, kind)
    return best


def snap_rect(rect, bounds, threshold, mode, handle=None):
    """Snap rect to bounds guides along each axis independently.

    Args:
        rect: Rect produced by the move/resize step
        bounds: Rect whose edges, thirds and centre are snap targets
        threshold: Maximum snapping distance (image units)
        mode: 'move' shifts the whole rect; 'resize' moves only the
            snapped edge so the size changes, never closer than
            MIN_CROP_SIZE to the opposite edge
        handle: Handle being dragged, required for 'resize'

    Returns:
        SnapResult with the adjusted rect and at most one guide per axis
    """
    x, y, w, h = rect.x, rect.y, rect.w, rect.h
    left, right = x, x + w
    top, bottom = y, y + h
    guides: List[Guide] = []

    active_x = []
    active_y = []
    if mode == 'move':
        active_x = [('left', left), ('center', x + w / 2), ('right', right)]
        active_y = [('top', top), ('center', y + h / 2), ('bottom', bottom)]
    elif handle is not None:
        if handle.has('w'):
            active_x.append(('left', left))
        if handle.has('e'):
            active_x.append(('right', right))
        if handle.has('n'):
            active_y.append(('top', top))
        if handle.has('s'):
            active_y.append(('bottom', bottom))

    # resized edges stay on their own side of the fixed edge
    limits = {
        'left': (-math.inf, right - MIN_CROP_SIZE),
        'right': (left + MIN_CROP_SIZE, math.inf),
        'top': (-math.inf, bottom - MIN_CROP_SIZE),
        'bottom': (top + MIN_CROP_SIZE, math.inf),
    } if mode != 'move' else None

    x_snap = _choose_snap(active_x, _make_targets(bounds.w, bounds.x), threshold, limits)
    if x_snap:
        key, value, delta, kind = x_snap
        guides.append(Guide('x', value + delta, kind))
        if mode == 'move':
            x += delta
        elif key == 'left':
            x += delta
            w = right - x
        elif key == 'right':
            w = right + delta - x

    y_snap = _choose_snap(active_y, _make_targets(bounds.h, bounds.y), threshold, limits)
    if y_snap:
        key, value, delta, kind = y_snap
        guides.append(Guide('y', value + delta, kind))
        if mode == 'move':
            y += delta
        elif key == 'top':
            y += delta
            h = bottom - y
        elif key == 'bottom':
            h = bottom + delta - y

    return SnapResult(Rect(x, y, w, h), tuple(guides))


def no_snap(rect) -> SnapResult:
    return SnapResult(rect, ())


def maybe_snap(rect, bounds, threshold, mode, handle=None, enabled: Optional[bool] = True):
    """snap_rect when enabled, otherwise pass the rect through with no guides."""
    if not enabled:
        return no_snap(rect)
    return snap_rect(rect, bounds, threshold, mode, handle)
