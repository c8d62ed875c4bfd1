"""Unit tests for multicam_inspector.layout module."""

import math

import pytest
from hypothesis import given, strategies as st

from multicam_inspector.layout import DrawRect, resolve_contain_fit


class TestResolveContainFit:
    """Tests for the contain-fit layout resolver."""

    def test_wide_image_in_wide_display_fills_height(self) -> None:
        """4:3 image in a 16:9 tile is pillarboxed."""
        rect = resolve_contain_fit(4000, 3000, 800, 450)

        assert rect.width == pytest.approx(600.0)
        assert rect.height == pytest.approx(450.0)
        assert rect.offset_x == pytest.approx(100.0)
        assert rect.offset_y == pytest.approx(0.0)

    def test_wider_image_fills_width(self) -> None:
        """16:9 image in a 4:3 tile is letterboxed."""
        rect = resolve_contain_fit(1920, 1080, 800, 600)

        assert rect.width == pytest.approx(800.0)
        assert rect.height == pytest.approx(450.0)
        assert rect.offset_x == pytest.approx(0.0)
        assert rect.offset_y == pytest.approx(75.0)

    def test_equal_aspect_fills_exactly(self) -> None:
        rect = resolve_contain_fit(1600, 900, 800, 450)

        assert rect == DrawRect(800.0, 450.0, 0.0, 0.0)

    @pytest.mark.parametrize(
        "dims",
        [
            (0, 3000, 800, 450),
            (4000, 0, 800, 450),
            (4000, 3000, 0, 450),
            (4000, 3000, 800, 0),
            (-4000, 3000, 800, 450),
            (math.nan, 3000, 800, 450),
            (4000, 3000, math.inf, 450),
        ],
        ids=["zero-iw", "zero-ih", "zero-dw", "zero-dh", "negative", "nan", "inf"],
    )
    def test_degenerate_input_gives_empty_rect(self, dims: tuple) -> None:
        """Degenerate sizes never raise and produce a zero-area rect."""
        rect = resolve_contain_fit(*dims)

        assert rect.is_empty
        assert rect == DrawRect.empty()

    def test_center_is_display_center(self) -> None:
        rect = resolve_contain_fit(4000, 3000, 800, 450)

        assert rect.center == pytest.approx((400.0, 225.0))

    @given(
        iw=st.integers(min_value=1, max_value=10000),
        ih=st.integers(min_value=1, max_value=10000),
        dw=st.floats(min_value=1.0, max_value=4000.0),
        dh=st.floats(min_value=1.0, max_value=4000.0),
    )
    def test_fit_preserves_aspect_and_stays_inside(
        self, iw: int, ih: int, dw: float, dh: float
    ) -> None:
        """The drawn rect keeps the image aspect, fits and is centered."""
        rect = resolve_contain_fit(iw, ih, dw, dh)

        assert rect.width <= dw + 1e-6
        assert rect.height <= dh + 1e-6
        assert rect.width / rect.height == pytest.approx(iw / ih, rel=1e-9)
        assert rect.offset_x >= -1e-6
        assert rect.offset_y >= -1e-6
        assert rect.center[0] == pytest.approx(dw / 2.0)
        assert rect.center[1] == pytest.approx(dh / 2.0)
        # One side always fills the display
        assert math.isclose(rect.width, dw) or math.isclose(rect.height, dh)
