"""
Undo/Redo History for the Raster Crop Editor

Linear history as three ordered sequences: past (oldest first), present,
future (next redo first). Every state is a plain comparable value, so the
functions here are pure and return new HistoryState objects.

HistoryManager wraps one HistoryState for callers that want a mutable owner
with change listeners.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Generic, Optional, Tuple, TypeVar

from constants import MAX_HISTORY

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class HistoryState(Generic[T]):
    past: Tuple[Any, ...]
    present: Any
    future: Tuple[Any, ...]


def create_history(present):
    return HistoryState(past=(), present=present, future=())


def push_history(state, present, limit: Optional[int] = None):
    """Commit a new present. The redo chain is discarded.

    Args:
        state: Current HistoryState
        present: Value to become the new present
        limit: Optional cap on past entries; oldest entries are dropped
    """
    past = state.past + (state.present,)
    if limit is not None and len(past) > limit:
        past = past[len(past) - limit:]
    return HistoryState(past=past, present=present, future=())


def undo_history(state):
    """Step back one commit. Returns state unchanged if there is no past."""
    if not state.past:
        return state
    return HistoryState(
        past=state.past[:-1],
        present=state.past[-1],
        future=(state.present,) + state.future,
    )


def redo_history(state):
    """Step forward one commit. Returns state unchanged if there is no future."""
    if not state.future:
        return state
    return HistoryState(
        past=state.past + (state.present,),
        present=state.future[0],
        future=state.future[1:],
    )


def replace_present(state, present):
    """Swap the present without recording an entry (live previews)."""
    return replace(state, present=present)


def squash_commit(state, base, limit: Optional[int] = None):
    """Collapse a run of live previews into a single entry on top of base.

    state.present holds the last previewed value and base the value from
    before the gesture. If nothing changed the base is restored and no
    entry is recorded.
    """
    restored = replace_present(state, base)
    if state.present == base:
        return restored
    return push_history(restored, state.present, limit)


def can_undo(state):
    return bool(state.past)


def can_redo(state):
    return bool(state.future)


class HistoryManager:
    """Owns a HistoryState and notifies listeners when it changes"""

    def __init__(self, present=None, max_history=MAX_HISTORY):
        """
        Initialize the history manager

        Args:
            present: Initial present value
            max_history: Maximum number of undo steps to keep
        """
        self.max_history = max_history
        self.state = create_history(present)
        self._listeners = []  # Callbacks receiving (can_undo, can_redo)
        self._live_base = None

    @property
    def present(self):
        return self.state.present

    def reset(self, present):
        """Discard all history and start over from present"""
        self.state = create_history(present)
        self._live_base = None
        self._notify_listeners()
        logger.debug("[History] History reset")

    def push(self, present, description=""):
        """Commit a new state. No-op if it equals the current present."""
        if present == self.state.present:
            return False
        self.state = push_history(self.state, present, self.max_history)
        self._notify_listeners()
        logger.debug("[History] State saved: %s (past: %d)", description, len(self.state.past))
        return True

    def undo(self):
        """
        Move back one state in history

        Returns:
            The restored present, or None if at beginning
        """
        if not self.can_undo():
            logger.debug("[History] Cannot undo - at beginning of history")
            return None
        self.state = undo_history(self.state)
        self._notify_listeners()
        logger.debug("[History] Undo (past: %d, future: %d)", len(self.state.past), len(self.state.future))
        return self.state.present

    def redo(self):
        """
        Move forward one state in history

        Returns:
            The restored present, or None if at end
        """
        if not self.can_redo():
            logger.debug("[History] Cannot redo - at end of history")
            return None
        self.state = redo_history(self.state)
        self._notify_listeners()
        logger.debug("[History] Redo (past: %d, future: %d)", len(self.state.past), len(self.state.future))
        return self.state.present

    def can_undo(self):
        return can_undo(self.state)

    def can_redo(self):
        return can_redo(self.state)

    # ------------------------------------------------------------------
    # Live edits (slider drags)
    # ------------------------------------------------------------------

    @property
    def in_live_edit(self):
        return self._live_base is not None

    def begin_live(self):
        """Remember the pre-gesture present. Nested calls keep the first base."""
        if self._live_base is None:
            self._live_base = self.state.present

    def preview(self, present):
        """Replace the present without a history entry"""
        if self._live_base is None:
            self.begin_live()
        self.state = replace_present(self.state, present)

    def end_live(self, description=""):
        """Squash the live run into one entry. Returns True if one was recorded."""
        if self._live_base is None:
            return False
        committed = self.state.present != self._live_base
        self.state = squash_commit(self.state, self._live_base, self.max_history)
        self._live_base = None
        if committed:
            self._notify_listeners()
            logger.debug("[History] Live edit committed: %s", description)
        return committed

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, callback):
        """
        Add a listener to be notified when history state changes

        Args:
            callback: Function to call when history changes (receives can_undo, can_redo)
        """
        self._listeners.append(callback)

    def remove_listener(self, callback):
        """Remove a listener"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self):
        """Notify all listeners of history state change"""
        for callback in self._listeners:
            callback(self.can_undo(), self.can_redo())
