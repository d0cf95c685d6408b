"""
Raster Crop Editor - Editor Session

Owns the per-image editing state for an interaction layer: the loaded
source, the undo/redo history of TransformState values, the draft crop rect
being drawn, the active pointer drag and the editor settings. Emits Qt
signals so views can repaint without polling.

Durable edits (apply/reset crop, rotate, flip, reset) are history commits.
Slider drags (straighten, adjustments) replace the present live and are
squashed into one commit when the slider is released.
"""

import logging
from dataclasses import replace

from PyQt5.QtCore import QObject, pyqtSignal

from constants import ASPECT_PRESETS_ORDERED, STRAIGHTEN_LIMIT
from models.settings import EditorSettings
from models.transform import INITIAL_TRANSFORM, Rect, Vec2, normalize_adjustments, normalize_rotation
from services.crop_engine import get_oriented_size, rotate_rect
from services.crop_gesture import GestureContext, PointerModifiers, begin_gesture, update_gesture
from services.export_pipeline import build_export_request, display_size
from utils.errors import ExportFailed
from utils.history_manager import HistoryManager
from utils.logger import loggerRaise
from utils.transform_math import clamp, clamp_rect_edges

logger = logging.getLogger(__name__)


class EditorSession(QObject):
    """Editing state for one loaded image"""

    # Signals
    transformChanged = pyqtSignal(object)   # TransformState
    cropDraftChanged = pyqtSignal(object)   # Rect or None
    guidesChanged = pyqtSignal(object)      # tuple of Guide
    panChanged = pyqtSignal(object)         # Vec2
    historyChanged = pyqtSignal(bool, bool)  # can_undo, can_redo

    def __init__(self, settings=None, parent=None):
        super().__init__(parent)
        self.settings = settings or EditorSettings()
        self.source = None
        self.history = HistoryManager(INITIAL_TRANSFORM)
        self.history.add_listener(self.historyChanged.emit)
        self.crop_draft = None
        self.guides = ()
        self.zoom = 1.0
        self.pan = Vec2(0.0, 0.0)
        self._drag = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def has_image(self):
        return self.source is not None

    @property
    def transform(self):
        return self.history.present

    @property
    def oriented_size(self):
        if not self.source:
            return 0, 0
        return get_oriented_size(self.source.width, self.source.height, self.transform.rotation)

    @property
    def display_size(self):
        """Canvas size crop rects are authored in (oriented + straighten bounds)."""
        if not self.source:
            return 0, 0
        return display_size(self.source.width, self.source.height, self.transform)

    @property
    def active_bounds(self):
        """Rect a new draft must stay inside: the applied crop, else the display canvas."""
        if self.transform.crop_rect is not None:
            return self.transform.crop_rect
        w, h = self.display_size
        return Rect(0, 0, w, h)

    @property
    def aspect_ratio(self):
        return self.settings.aspect_ratio

    @property
    def drag(self):
        return self._drag

    # ------------------------------------------------------------------
    # Image lifecycle
    # ------------------------------------------------------------------

    def load_image(self, source):
        """Start a fresh document: identity transform, empty history, default crop options."""
        self.source = source
        self.settings = replace(self.settings, allow_outside=False, aspect_preset='free')
        self.history.reset(INITIAL_TRANSFORM)
        self._drag = None
        self._set_guides(())
        self.pan = Vec2(0.0, 0.0)
        self._set_draft(None)
        self._emit_transform()
        logger.info("Loaded %s (%dx%d)", source.display_name, source.width, source.height)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_allow_outside(self, allow):
        self.settings = replace(self.settings, allow_outside=bool(allow))
        if self.crop_draft is not None:
            self.set_crop_draft(self.crop_draft)

    def set_aspect_preset(self, preset, custom=None):
        if preset not in ASPECT_PRESETS_ORDERED:
            logger.warning("Unknown aspect preset %r, using free", preset)
            preset = 'free'
        changes = {'aspect_preset': preset}
        if custom is not None:
            changes['custom_aspect'] = tuple(custom)
        self.settings = replace(self.settings, **changes)

    def set_snap_enabled(self, enabled):
        self.settings = replace(self.settings, snap_enabled=bool(enabled))

    def set_show_grid(self, show):
        self.settings = replace(self.settings, show_grid=bool(show))

    def set_export_options(self, export_format=None, jpeg_quality=None):
        changes = {}
        if export_format is not None:
            changes['export_format'] = export_format
        if jpeg_quality is not None:
            changes['jpeg_quality'] = float(jpeg_quality)
        self.settings = replace(self.settings, **changes)

    # ------------------------------------------------------------------
    # Draft crop and pointer gestures
    # ------------------------------------------------------------------

    def set_crop_draft(self, rect):
        """Replace the draft crop, clamped to the active bounds unless outside is allowed."""
        if rect is not None and not self.settings.allow_outside and self.source:
            rect = clamp_rect_edges(rect, self.active_bounds)
        self._set_draft(rect)

    def _gesture_context(self):
        return GestureContext(
            bounds=self.active_bounds,
            allow_outside=self.settings.allow_outside,
            aspect_ratio=self.aspect_ratio,
            snap_enabled=self.settings.snap_enabled,
            zoom=self.zoom,
            pan=self.pan,
        )

    def pointer_press(self, point, screen_point=None, handle=None, modifiers=PointerModifiers()):
        """Begin a drag. Returns the new drag state or None if nothing started."""
        if not self.source or self._drag is not None:
            return None
        drag, draft = begin_gesture(
            point, screen_point or point, handle, self.crop_draft,
            self._gesture_context(), modifiers)
        self._drag = drag
        if draft is not self.crop_draft:
            self._set_draft(draft)
        return drag

    def pointer_move(self, point, screen_point=None, modifiers=PointerModifiers()):
        if self._drag is None:
            return None
        update = update_gesture(
            self._drag, point, screen_point or point, self._gesture_context(), modifiers)
        if update.pan is not None:
            self.pan = update.pan
            self.panChanged.emit(self.pan)
        if update.rect is not None:
            self._set_draft(update.rect)
        self._set_guides(update.guides)
        return update

    def pointer_release(self):
        self._drag = None
        self._set_guides(())

    # ------------------------------------------------------------------
    # Durable edits
    # ------------------------------------------------------------------

    def apply_crop(self):
        if self.crop_draft is None:
            return False
        committed = self.history.push(self.transform.with_changes(crop_rect=self.crop_draft), "Apply crop")
        self._set_draft(None)
        self._emit_transform()
        return committed

    def reset_crop(self):
        """Drop the draft; if a crop is applied, commit its removal."""
        if not self.source:
            return False
        committed = False
        if self.transform.crop_rect is not None:
            committed = self.history.push(self.transform.with_changes(crop_rect=None), "Reset crop")
            self._emit_transform()
        self._set_draft(None)
        return committed

    def rotate_by(self, delta):
        """Rotate a quarter turn (delta = 90 or -90), remapping applied and draft crops.

        The flip is composed after the quarter turn, so with exactly one
        flip set the displayed image turns the opposite way and the crops
        follow it.
        """
        if not self.source:
            return False
        current = self.transform
        canvas_w, canvas_h = self.display_size
        step = 90 if delta == 90 else 270
        if current.flip_h != current.flip_v:
            step = 360 - step
        crop = current.crop_rect
        next_state = current.with_changes(
            rotation=normalize_rotation(current.rotation + delta),
            crop_rect=rotate_rect(crop, step, canvas_w, canvas_h) if crop else None,
        )
        draft = self.crop_draft
        committed = self.history.push(next_state, f"Rotate {delta:+d}")
        if draft is not None:
            self._set_draft(rotate_rect(draft, step, canvas_w, canvas_h))
        self._emit_transform()
        return committed

    def rotate_right(self):
        return self.rotate_by(90)

    def rotate_left(self):
        return self.rotate_by(-90)

    def flip_horizontal(self):
        return self._commit(self.transform.with_changes(flip_h=not self.transform.flip_h), "Flip horizontal")

    def flip_vertical(self):
        return self._commit(self.transform.with_changes(flip_v=not self.transform.flip_v), "Flip vertical")

    def reset_transform(self):
        """Return to the identity transform as a single undoable step."""
        self._set_draft(None)
        return self._commit(INITIAL_TRANSFORM, "Reset")

    def _commit(self, state, description):
        if not self.source:
            return False
        committed = self.history.push(state, description)
        self._emit_transform()
        return committed

    # ------------------------------------------------------------------
    # Live edits (sliders)
    # ------------------------------------------------------------------

    def begin_live_edit(self):
        self.history.begin_live()

    def preview_straighten(self, degrees):
        """Live straighten. Crop rects shift so they stay on the same content."""
        if not self.source:
            return
        degrees = clamp(float(degrees), -STRAIGHTEN_LIMIT, STRAIGHTEN_LIMIT)
        current = self.transform
        next_state = current.with_changes(straighten=degrees)

        old_w, old_h = display_size(self.source.width, self.source.height, current)
        new_w, new_h = display_size(self.source.width, self.source.height, next_state)
        shift = Vec2((new_w - old_w) / 2, (new_h - old_h) / 2)

        if current.crop_rect is not None:
            next_state = next_state.with_changes(crop_rect=_translated(current.crop_rect, shift))
        self.history.preview(next_state)
        if self.crop_draft is not None:
            self._set_draft(_translated(self.crop_draft, shift))
        self._emit_transform()

    def preview_adjustments(self, **changes):
        """Live adjustment sliders: brightness, contrast and/or curve in [-1, 1]."""
        if not self.source:
            return
        current = normalize_adjustments(self.transform.adjustments)
        clamped = {k: clamp(float(v), -1.0, 1.0) for k, v in changes.items()}
        self.history.preview(self.transform.with_changes(adjustments=replace(current, **clamped)))
        self._emit_transform()

    def end_live_edit(self, description="Adjust"):
        """Squash the slider drag into one history entry (none if unchanged)."""
        committed = self.history.end_live(description)
        self._emit_transform()
        return committed

    # ------------------------------------------------------------------
    # Undo / redo
    # ------------------------------------------------------------------

    def undo(self):
        restored = self.history.undo()
        self._set_draft(None)
        self._emit_transform()
        return restored

    def redo(self):
        restored = self.history.redo()
        self._set_draft(None)
        self._emit_transform()
        return restored

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self, export_format=None, quality=None):
        """Encode the current state (including an unapplied draft crop).

        Returns:
            ExportRequest, or None when no image is loaded

        Raises:
            ExportFailed: Surface or encoder failure; history is left untouched
        """
        if not self.source:
            return None
        export_format = export_format or self.settings.export_format
        if quality is None:
            quality = self.settings.jpeg_quality
        state = self.transform
        if self.crop_draft is not None:
            state = state.with_changes(crop_rect=self.crop_draft)
        try:
            return build_export_request(self.source, state, export_format, quality)
        except ExportFailed as e:
            loggerRaise(e, f"Could not export {self.source.display_name}: {e}", "Export failed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_draft(self, rect):
        if rect != self.crop_draft:
            self.crop_draft = rect
            self.cropDraftChanged.emit(rect)

    def _set_guides(self, guides):
        guides = tuple(guides)
        if guides != self.guides:
            self.guides = guides
            self.guidesChanged.emit(guides)

    def _emit_transform(self):
        self.transformChanged.emit(self.transform)


def _translated(rect, offset):
    return Rect(rect.x + offset.x, rect.y + offset.y, rect.w, rect.h)
