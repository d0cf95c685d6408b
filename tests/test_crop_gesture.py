"""
Tests for pointer gestures on the crop tool.

Covers:
- Handle layout, hit testing and cursors
- Which drag a pointer-down starts
- Create / move / resize / pan updates with modifiers and snapping
"""
import pytest

from models.transform import Handle, Rect, Vec2
from services.crop_gesture import (
    CreatingDrag, GestureContext, MovingDrag, PanningDrag, PointerModifiers,
    ResizingDrag, begin_gesture, cursor_for_handle, handle_at_point,
    handle_positions, snap_threshold, update_gesture,
)


@pytest.fixture
def context():
    return GestureContext(bounds=Rect(0, 0, 200, 120), snap_enabled=False)


@pytest.fixture
def draft():
    return Rect(50, 40, 60, 30)


# ══════════════════════════════════════════════════════════════════════════
# Handles
# ══════════════════════════════════════════════════════════════════════════

class TestHandles:

    def test_eight_handles_clockwise_from_nw(self, draft):
        handles = [h for h, _ in handle_positions(draft)]
        assert handles == [Handle.NW, Handle.N, Handle.NE, Handle.E,
                           Handle.SE, Handle.S, Handle.SW, Handle.W]

    def test_handle_positions(self, draft):
        positions = dict(handle_positions(draft))
        assert positions[Handle.NW] == Vec2(50, 40)
        assert positions[Handle.E] == Vec2(110, 55)
        assert positions[Handle.S] == Vec2(80, 70)

    def test_hit_within_radius(self, draft):
        assert handle_at_point(draft, Vec2(108, 53), hit=5) == Handle.E

    def test_miss(self, draft):
        assert handle_at_point(draft, Vec2(80, 55), hit=5) is None

    def test_no_rect(self):
        assert handle_at_point(None, Vec2(0, 0)) is None

    def test_cursors(self):
        assert cursor_for_handle(Handle.N) == 'ns-resize'
        assert cursor_for_handle(Handle.W) == 'ew-resize'
        assert cursor_for_handle(Handle.NE) == 'nesw-resize'
        assert cursor_for_handle(Handle.SE) == 'nwse-resize'
        assert cursor_for_handle(None) == 'default'

    @pytest.mark.parametrize("zoom,expected", [(1.0, 8.0), (2.0, 4.0), (0.1, 32.0)])
    def test_snap_threshold(self, zoom, expected):
        assert snap_threshold(zoom) == expected


# ══════════════════════════════════════════════════════════════════════════
# Pointer down
# ══════════════════════════════════════════════════════════════════════════

class TestBeginGesture:

    def test_space_starts_pan(self, context, draft):
        drag, rect = begin_gesture(Vec2(60, 50), Vec2(300, 300), Handle.E, draft, context,
                                   PointerModifiers(space=True))
        assert drag == PanningDrag(Vec2(300, 300), Vec2(0, 0))
        assert rect == draft

    def test_outside_bounds_starts_nothing(self, context, draft):
        drag, rect = begin_gesture(Vec2(250, 50), Vec2(250, 50), None, draft, context)
        assert drag is None
        assert rect == draft

    def test_outside_bounds_allowed(self, draft):
        context = GestureContext(bounds=Rect(0, 0, 200, 120), allow_outside=True)
        drag, _ = begin_gesture(Vec2(250, 50), Vec2(250, 50), None, draft, context)
        assert isinstance(drag, CreatingDrag)

    def test_handle_starts_resize(self, context, draft):
        drag, _ = begin_gesture(Vec2(110, 55), Vec2(110, 55), Handle.E, draft, context)
        assert drag == ResizingDrag(Vec2(110, 55), draft, Handle.E)

    def test_inside_draft_starts_move(self, context, draft):
        drag, _ = begin_gesture(Vec2(70, 50), Vec2(70, 50), None, draft, context)
        assert drag == MovingDrag(Vec2(70, 50), draft)

    def test_elsewhere_starts_new_draft(self, context, draft):
        drag, rect = begin_gesture(Vec2(10, 10), Vec2(10, 10), None, draft, context)
        assert isinstance(drag, CreatingDrag)
        assert rect == Rect(10, 10, 1, 1)

    def test_shift_creates_square(self, context):
        drag, _ = begin_gesture(Vec2(10, 10), Vec2(10, 10), None, None, context,
                                PointerModifiers(shift=True))
        assert drag.aspect == 1.0


# ══════════════════════════════════════════════════════════════════════════
# Pointer move
# ══════════════════════════════════════════════════════════════════════════

class TestUpdateGesture:

    def test_pan_offsets_by_screen_delta(self, context):
        drag = PanningDrag(Vec2(100, 100), Vec2(5, 5))
        update = update_gesture(drag, Vec2(0, 0), Vec2(130, 90), context)
        assert update.pan == Vec2(35, -5)
        assert update.rect is None

    def test_create_follows_pointer(self, context):
        drag = CreatingDrag(Vec2(10, 10), None)
        update = update_gesture(drag, Vec2(70, 40), Vec2(70, 40), context)
        assert update.rect == Rect(10, 10, 60, 30)

    def test_create_with_aspect(self, context):
        drag = CreatingDrag(Vec2(10, 10), 1.0)
        update = update_gesture(drag, Vec2(70, 40), Vec2(70, 40), context)
        assert update.rect == Rect(10, 10, 30, 30)

    def test_create_clamped_to_bounds(self, context):
        drag = CreatingDrag(Vec2(150, 100), None)
        update = update_gesture(drag, Vec2(400, 400), Vec2(400, 400), context)
        assert update.rect == Rect(150, 100, 50, 20)

    def test_move_slides_inside_bounds(self, context, draft):
        drag = MovingDrag(Vec2(60, 50), draft)
        update = update_gesture(drag, Vec2(260, 50), Vec2(260, 50), context)
        assert update.rect == Rect(140, 40, 60, 30)

    def test_move_snaps_and_reports_guides(self, draft):
        context = GestureContext(bounds=Rect(0, 0, 200, 120), snap_enabled=True)
        drag = MovingDrag(Vec2(60, 50), draft)
        # left edge lands at 3, within 8 of the bounds edge
        update = update_gesture(drag, Vec2(13, 50), Vec2(13, 50), context)
        assert update.rect.x == 0
        assert any(g.axis == 'x' and g.value == 0 for g in update.guides)

    def test_resize_from_handle(self, context, draft):
        drag = ResizingDrag(Vec2(110, 55), draft, Handle.E)
        update = update_gesture(drag, Vec2(130, 55), Vec2(130, 55), context)
        assert update.rect == Rect(50, 40, 80, 30)

    def test_resize_alt_is_symmetric(self, context, draft):
        drag = ResizingDrag(Vec2(110, 55), draft, Handle.E)
        update = update_gesture(drag, Vec2(120, 55), Vec2(120, 55), context,
                                PointerModifiers(alt=True))
        assert update.rect == Rect(40, 40, 80, 30)

    def test_resize_shift_is_square(self, context, draft):
        drag = ResizingDrag(Vec2(110, 70), draft, Handle.SE)
        update = update_gesture(drag, Vec2(120, 80), Vec2(120, 80), context,
                                PointerModifiers(shift=True))
        assert round(update.rect.w) == round(update.rect.h)

    def test_resize_uses_context_aspect(self, draft):
        context = GestureContext(bounds=Rect(0, 0, 200, 120), aspect_ratio=2.0, snap_enabled=False)
        drag = ResizingDrag(Vec2(110, 55), draft, Handle.E)
        update = update_gesture(drag, Vec2(110, 55), Vec2(110, 55), context)
        assert update.rect.w / update.rect.h == pytest.approx(2.0)

    def test_snapped_resize_keeps_positive_size(self):
        context = GestureContext(bounds=Rect(0, 0, 200, 120), snap_enabled=True)
        start = Rect(193, 10, 2, 50)
        drag = ResizingDrag(Vec2(193, 30), start, Handle.W)
        update = update_gesture(drag, Vec2(193, 30), Vec2(193, 30), context)
        assert update.rect == start
        assert update.rect.w >= 1

    def test_snapped_resize_stays_inside_bounds(self):
        context = GestureContext(bounds=Rect(0, 0, 200, 120), snap_enabled=True)
        drag = ResizingDrag(Vec2(110, 55), Rect(50, 40, 60, 30), Handle.E)
        update = update_gesture(drag, Vec2(400, 55), Vec2(400, 55), context)
        assert update.rect.x + update.rect.w <= 200
        assert update.rect.w >= 1

    def test_unknown_drag_rejected(self, context):
        with pytest.raises(TypeError):
            update_gesture(object(), Vec2(0, 0), Vec2(0, 0), context)
