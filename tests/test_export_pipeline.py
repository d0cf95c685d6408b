"""
Tests for the export pipeline.

Covers:
- Pixel-exact right-angle rotation and flips
- Crop extraction in display space
- Straighten canvas growth and transparent fill
- Encoding to PNG / JPEG / WEBP and encoder failures
- Adjusted bitmap released on every exit path
"""
import io

import numpy as np
import pytest
from PIL import Image

from models.transform import Adjustments, Rect, TransformState
from services import export_pipeline
from services.export_pipeline import (
    build_export_request, composition_matrix, display_size, encode_image,
    export_transformed_image, jpeg_quality, render_display,
)
from utils.errors import EncodingFailed, ExportFailed, SurfaceCreationFailed


def decode(data):
    with Image.open(io.BytesIO(data)) as image:
        return np.array(image.convert('RGBA'))


def export_array(image, **changes):
    data = export_transformed_image(image, TransformState(**changes))
    return decode(data)


# ══════════════════════════════════════════════════════════════════════════
# Geometry
# ══════════════════════════════════════════════════════════════════════════

class TestCompositionMatrix:

    def test_identity_when_nothing_changes(self):
        m = composition_matrix((6, 4), (6, 4), 0, 0.0, False, False)
        assert np.allclose(m, np.eye(3))

    def test_quarter_turn_maps_top_left_to_top_right(self):
        m = composition_matrix((6, 4), (4, 6), 90, 0.0, False, False)
        x, y, _ = m @ np.array([0.0, 0.0, 1.0])
        assert (x, y) == pytest.approx((4.0, 0.0))

    def test_flip_h_mirrors_display_axis_after_rotation(self):
        m = composition_matrix((6, 4), (4, 6), 90, 0.0, True, False)
        x, y, _ = m @ np.array([0.0, 0.0, 1.0])
        assert (x, y) == pytest.approx((0.0, 0.0))


class TestDisplaySize:

    def test_unrotated(self):
        assert display_size(6, 4, TransformState()) == (6, 4)

    def test_quarter_turn_swaps(self):
        assert display_size(6, 4, TransformState(rotation=270)) == (4, 6)

    def test_straighten_grows_canvas(self):
        w, h = display_size(40, 30, TransformState(straighten=10.0))
        assert (w, h) == (45, 36)


# ══════════════════════════════════════════════════════════════════════════
# Pixel checks
# ══════════════════════════════════════════════════════════════════════════

class TestExportPixels:

    def test_identity_reproduces_source(self, gradient_image, gradient_array):
        assert np.array_equal(export_array(gradient_image), gradient_array)

    def test_rotate_90_is_clockwise(self, gradient_image, gradient_array):
        out = export_array(gradient_image, rotation=90)
        assert np.array_equal(out, np.rot90(gradient_array, -1))

    def test_rotate_270_is_counter_clockwise(self, gradient_image, gradient_array):
        out = export_array(gradient_image, rotation=270)
        assert np.array_equal(out, np.rot90(gradient_array, 1))

    def test_rotate_180(self, gradient_image, gradient_array):
        out = export_array(gradient_image, rotation=180)
        assert np.array_equal(out, np.rot90(gradient_array, 2))

    def test_flip_h_mirrors_columns(self, gradient_image, gradient_array):
        out = export_array(gradient_image, flip_h=True)
        assert np.array_equal(out, np.fliplr(gradient_array))

    def test_flip_v_mirrors_rows(self, gradient_image, gradient_array):
        out = export_array(gradient_image, flip_v=True)
        assert np.array_equal(out, np.flipud(gradient_array))

    def test_flip_h_applies_to_displayed_axis(self, gradient_image, gradient_array):
        out = export_array(gradient_image, rotation=90, flip_h=True)
        assert np.array_equal(out, np.fliplr(np.rot90(gradient_array, -1)))

    def test_crop_extracts_sub_rect(self, gradient_image, gradient_array):
        out = export_array(gradient_image, crop_rect=Rect(1, 1, 3, 2))
        assert np.array_equal(out, gradient_array[1:3, 1:4])

    def test_crop_is_in_display_space(self, gradient_image, gradient_array):
        out = export_array(gradient_image, rotation=90, crop_rect=Rect(0, 0, 2, 3))
        assert np.array_equal(out, np.rot90(gradient_array, -1)[0:3, 0:2])

    def test_crop_outside_canvas_is_transparent(self, gradient_image, gradient_array):
        out = export_array(gradient_image, crop_rect=Rect(4, 0, 4, 2))
        assert out.shape == (2, 4, 4)
        assert np.array_equal(out[:, :2], gradient_array[0:2, 4:6])
        assert np.all(out[:, 2:, 3] == 0)

    def test_straighten_fills_corners_transparent(self):
        image = Image.new('RGBA', (40, 30), (200, 100, 50, 255))
        out = export_array(image, straighten=10.0)
        assert out.shape == (36, 45, 4)
        assert out[0, 0, 3] == 0
        assert out[18, 22, 3] == 255

    def test_adjustments_are_applied(self):
        image = Image.new('RGBA', (4, 4), (100, 100, 100, 255))
        out = export_array(image, adjustments=Adjustments(brightness=0.1))
        assert out[0, 0].tolist() == [126, 126, 126, 255]


# ══════════════════════════════════════════════════════════════════════════
# Encoding
# ══════════════════════════════════════════════════════════════════════════

class TestEncoding:

    def test_png_signature(self, gradient_image):
        data = export_transformed_image(gradient_image, TransformState(), 'image/png')
        assert data.startswith(b'\x89PNG')

    def test_jpeg_output(self, gradient_image):
        data = export_transformed_image(gradient_image, TransformState(), 'image/jpeg', 0.8)
        assert data.startswith(b'\xff\xd8')
        with Image.open(io.BytesIO(data)) as decoded:
            assert decoded.mode == 'RGB'
            assert decoded.size == (6, 4)

    def test_webp_output(self, gradient_image):
        data = export_transformed_image(gradient_image, TransformState(), 'image/webp')
        assert data[:4] == b'RIFF'
        assert data[8:12] == b'WEBP'

    def test_unknown_format_raises(self, gradient_image):
        with pytest.raises(EncodingFailed):
            encode_image(gradient_image, 'image/tiff')

    def test_encoding_failed_is_export_failed(self):
        assert issubclass(EncodingFailed, ExportFailed)

    @pytest.mark.parametrize("quality,expected", [(0.92, 92), (0.0, 1), (1.0, 100), (2.0, 100)])
    def test_jpeg_quality_scale(self, quality, expected):
        assert jpeg_quality(quality) == expected


class TestAdjustedBitmapRelease:

    @pytest.fixture
    def closed(self, monkeypatch):
        """Track close() calls on the adjusted copy"""
        calls = []
        original = export_pipeline.apply_adjustments_to_bitmap

        def spy(image, adjustments):
            adjusted = original(image, adjustments)
            close = adjusted.close

            def tracked_close():
                calls.append(adjusted)
                close()

            adjusted.close = tracked_close
            return adjusted

        monkeypatch.setattr(export_pipeline, 'apply_adjustments_to_bitmap', spy)
        return calls

    def test_closed_after_success(self, gradient_image, closed):
        export_transformed_image(gradient_image, TransformState(adjustments=Adjustments(contrast=0.3)))
        assert len(closed) == 1

    def test_closed_after_encoder_failure(self, gradient_image, closed, monkeypatch):
        def fail(*args, **kwargs):
            raise EncodingFailed("no output")

        monkeypatch.setattr(export_pipeline, 'encode_image', fail)
        with pytest.raises(EncodingFailed):
            export_transformed_image(gradient_image, TransformState(adjustments=Adjustments(curve=0.5)))
        assert len(closed) == 1

    def test_no_copy_for_default_adjustments(self, gradient_image, closed):
        export_transformed_image(gradient_image, TransformState())
        assert closed == []


class TestBuildExportRequest:

    def test_png_request(self, image_source):
        request = build_export_request(image_source, TransformState())
        assert request.default_name == 'photo.png'
        assert request.mime_type == 'image/png'
        assert request.data.startswith(b'\x89PNG')

    def test_jpeg_request_name(self, image_source):
        request = build_export_request(image_source, TransformState(), 'image/jpeg', 0.5)
        assert request.default_name == 'photo.jpg'
        assert request.mime_type == 'image/jpeg'


class TestSurfaceFailure:

    def test_display_canvas_is_the_warped_image(self, gradient_image):
        out = render_display(gradient_image, TransformState(rotation=90))
        assert out.size == (4, 6)
        assert out.mode == 'RGBA'

    def test_warp_allocation_failure(self, gradient_image, monkeypatch):
        def fail(*args, **kwargs):
            raise MemoryError()

        monkeypatch.setattr(Image.Image, 'transform', fail)
        with pytest.raises(SurfaceCreationFailed):
            export_transformed_image(gradient_image, TransformState(rotation=90))
