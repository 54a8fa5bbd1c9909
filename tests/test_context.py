"""Tests for scanprep.context — RenderContext and the shared context."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from scanprep.context import RenderContext, reset_shared_context, shared_context
from scanprep.frame import Frame
from scanprep.geometry import AffineTransform, Rect


class TestRender:
    def test_full_frame_rgba8_length(self, context, quadrant_frame):
        data = context.render(quadrant_frame, quadrant_frame.extent)
        assert len(data) == 40 * 20 * 4

    def test_single_pixel_of_solid_frame(self, context):
        frame = Frame.solid(8, 8, (12, 34, 56))
        assert context.render(frame, Rect(0, 0, 1, 1)) == bytes([12, 34, 56, 255])

    def test_rgb8_drops_alpha(self, context):
        frame = Frame.solid(2, 2, (1, 2, 3))
        assert context.render(frame, Rect(0, 0, 1, 1), fmt="RGB8") == bytes([1, 2, 3])

    def test_uncovered_area_is_transparent(self, context):
        frame = Frame.solid(2, 2, (200, 200, 200)).transformed(AffineTransform.translation(10, 10))
        assert context.render(frame, Rect(0, 0, 1, 1)) == bytes(4)

    def test_partial_overlap_is_positioned(self, context):
        frame = Frame.solid(1, 1, (9, 9, 9))
        # 2×1 bounds starting one pixel to the left: frame lands in the right pixel
        data = context.render(frame, Rect(-1, 0, 2, 1))
        assert data == bytes([0, 0, 0, 0, 9, 9, 9, 255])

    def test_empty_bounds_render_nothing(self, context, quadrant_frame):
        assert context.render(quadrant_frame, Rect.empty()) == b""

    def test_unknown_format_raises(self, context, quadrant_frame):
        with pytest.raises(ValueError, match="Unsupported"):
            context.render(quadrant_frame, quadrant_frame.extent, fmt="BGRA16")


class TestCreateBitmap:
    def test_bitmap_matches_extent(self, context, quadrant_frame):
        bitmap = context.create_bitmap(quadrant_frame)
        assert bitmap.size == (40, 20)
        assert bitmap.getpixel((0, 0)) == (255, 0, 0, 255)

    def test_empty_frame_has_no_bitmap(self, context):
        assert context.create_bitmap(Frame.empty()) is None


class TestSharedContext:
    def test_same_instance_is_reused(self):
        reset_shared_context()
        assert shared_context() is shared_context()

    def test_reset_builds_a_new_instance(self):
        first = shared_context()
        reset_shared_context()
        assert shared_context() is not first

    def test_concurrent_renders_on_one_context(self):
        ctx = RenderContext()
        frames = [Frame.solid(16, 16, (i, i, i)) for i in range(32)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda f: ctx.render(f, Rect(0, 0, 1, 1)), frames))
        assert results == [bytes([i, i, i, 255]) for i in range(32)]
