"""
Raster Crop Editor - Constants and Configuration

This module contains the constant values used throughout the editor core:
- Crop geometry limits
- Snapping and hit-testing tolerances
- Adjustment and straighten ranges
- Aspect ratio presets
- Export defaults
"""

# ======================================================================
# CROP GEOMETRY
# ======================================================================

# Smallest width/height any crop operation may produce (image units)
MIN_CROP_SIZE = 1

# Right-angle rotations, clockwise
ROTATIONS = (0, 90, 180, 270)

# Straighten slider range in degrees (symmetric around 0)
STRAIGHTEN_LIMIT = 15.0

# ======================================================================
# INTERACTION
# ======================================================================

# Snap distance in screen pixels, divided by zoom before use
SNAP_THRESHOLD_PX = 8.0
SNAP_MIN_ZOOM = 0.25

# Handle hit radius in screen pixels
HANDLE_HIT_PX = 10

# ======================================================================
# ADJUSTMENTS
# ======================================================================

# Values closer to zero than this count as "no adjustment"
ADJUSTMENT_EPSILON = 1e-4

# Logistic steepness at curve amount 1.0
CURVE_STEEPNESS = 8.0

# ======================================================================
# ASPECT PRESETS
# ======================================================================
# Preset key -> width/height ratio. None means unconstrained.
# 'custom' is resolved from the user's (w, h) pair at runtime.

ASPECT_PRESETS = {
    'free': None,
    '1:1': 1.0,
    '3:2': 3.0 / 2.0,
    '4:3': 4.0 / 3.0,
    '16:9': 16.0 / 9.0,
    'custom': None,
}

ASPECT_PRESETS_ORDERED = ['free', '1:1', '3:2', '4:3', '16:9', 'custom']

DEFAULT_CUSTOM_ASPECT = (4, 5)

# ======================================================================
# HISTORY
# ======================================================================

MAX_HISTORY = 100

# ======================================================================
# EXPORT
# ======================================================================

DEFAULT_EXPORT_FORMAT = 'image/png'
DEFAULT_JPEG_QUALITY = 0.92
DEFAULT_EXPORT_BASENAME = 'export'

# Export MIME type -> (Pillow format name, file extension)
EXPORT_FORMATS = {
    'image/png': ('PNG', 'png'),
    'image/jpeg': ('JPEG', 'jpg'),
    'image/webp': ('WEBP', 'webp'),
}

# Loader: file extension -> MIME type
EXT_TO_MIME = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.webp': 'image/webp',
    '.gif': 'image/gif',
    '.bmp': 'image/bmp',
}
UNKNOWN_MIME = 'application/octet-stream'
