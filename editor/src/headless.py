"""Headless Crop Exporter - CLI entry point.

Applies a saved TransformState (JSON, as produced by TransformState.to_dict)
to an image and writes the exported result, without any UI.

Usage:
    python editor/src/headless.py <input_image> [-t TRANSFORM_JSON] [-o OUTPUT_DIR]

Examples:
    python editor/src/headless.py photo.jpg -t edit.json
    python editor/src/headless.py photo.jpg -t '{"rotation": 90, "flipH": true}' -o out/
    python editor/src/headless.py photo.png --format image/jpeg --quality 0.8
"""

import sys
import os
import argparse
import json
import logging

# Add editor/src to path so imports work
_src_dir = os.path.dirname(os.path.abspath(__file__))
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from constants import DEFAULT_EXPORT_FORMAT, DEFAULT_JPEG_QUALITY, EXPORT_FORMATS  # noqa: E402
from models.transform import TransformState  # noqa: E402
from services.export_pipeline import build_export_request  # noqa: E402
from services.image_io import load_image_from_path, write_export  # noqa: E402
from utils.errors import EditorError  # noqa: E402
from version import get_version  # noqa: E402

logger = logging.getLogger(__name__)


def _load_transform(value) -> TransformState:
    """Read a transform from inline JSON or a path to a JSON file.

    Args:
        value: None, a JSON object literal, or a file path

    Returns:
        TransformState (identity when value is None)
    """
    if not value:
        return TransformState()
    text = value
    if not value.lstrip().startswith('{'):
        with open(value, "r", encoding="utf-8-sig") as f:
            text = f.read()
    return TransformState.from_dict(json.loads(text))


def build_parser():
    parser = argparse.ArgumentParser(
        description='Apply a crop/rotate/flip/adjust transform to an image (headless).',
    )
    parser.add_argument(
        'input_file',
        help='Path to the source image.',
    )
    parser.add_argument(
        '-t', '--transform',
        help='Transform as a JSON object or a path to a JSON file (default: identity).',
    )
    parser.add_argument(
        '-o', '--output',
        default='./output',
        help='Output directory (default: ./output).',
    )
    parser.add_argument(
        '-n', '--name',
        help='Output file name (default: source name with the format extension).',
    )
    parser.add_argument(
        '--format',
        default=DEFAULT_EXPORT_FORMAT,
        choices=sorted(EXPORT_FORMATS),
        help=f'Export MIME type (default: {DEFAULT_EXPORT_FORMAT}).',
    )
    parser.add_argument(
        '--quality',
        type=float,
        default=DEFAULT_JPEG_QUALITY,
        help=f'JPEG quality 0-1 (default: {DEFAULT_JPEG_QUALITY}).',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging.',
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {get_version()}',
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    input_path = os.path.abspath(args.input_file)
    output_dir = os.path.abspath(args.output)

    if not os.path.isfile(input_path):
        print(f"Error: Input file not found: {input_path}")
        return 1

    try:
        transform = _load_transform(args.transform)
    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"Error: Invalid transform: {e}")
        return 1

    try:
        source = load_image_from_path(input_path)
        print(f"Loaded {source.display_name} ({source.width}x{source.height})")
        request = build_export_request(source, transform, args.format, args.quality)
        target = write_export(request, output_dir, args.name)
    except EditorError as e:
        print(f"  [FAIL] {os.path.basename(input_path)}: {e}")
        if args.verbose:
            logger.exception("Export failed")
        return 1

    print(f"Done. Wrote {len(request.data)} bytes to {target}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
