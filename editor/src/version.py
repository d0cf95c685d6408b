"""Editor version module.

Installed builds report the package metadata version. Source checkouts fall
back to the VERSION file at the project root.
"""

from pathlib import Path

# Overwritten by release tooling; None in source checkouts
_BAKED_VERSION = None

DIST_NAME = "raster-crop-editor"


def get_version() -> str:
    """Get the editor version string (e.g. '0.1.0')."""
    if _BAKED_VERSION is not None:
        return _BAKED_VERSION

    from importlib import metadata
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return _file_version()


def _file_version() -> str:
    # editor/src/version.py -> ../../VERSION
    version_file = Path(__file__).resolve().parent.parent.parent / "VERSION"
    try:
        return version_file.read_text().strip() or "0.0.0"
    except FileNotFoundError:
        return "0.0.0"
