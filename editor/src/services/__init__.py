"""Editor engines: crop, snap, adjustments, export, gestures and the session."""
