"""Error kinds surfaced by the editor core.

Geometry never raises: degenerate rects and aspects are clamped. Only
resource acquisition (surfaces, encoders, decoders) fails loudly.
"""


class EditorError(RuntimeError):
    """Base class for editor core failures."""


class ExportFailed(EditorError):
    """An export call could not produce output. State is left unchanged."""


class SurfaceCreationFailed(ExportFailed):
    """No drawable surface could be allocated for compositing."""


class EncodingFailed(ExportFailed):
    """The target format encoder produced no output."""


class UnsupportedSource(EditorError):
    """The input bytes could not be decoded as an image."""
