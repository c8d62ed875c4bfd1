"""
Tests for multicam_inspector.coordinate_mapper.

Property-based tests verify that screen -> image -> screen mapping round-trips
within a pixel for any zoom, pan and calibration (including rotation and
mirroring), so a box drawn under any view lands on the same image pixels.
"""

import pytest
from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from multicam_inspector.annotation import ValidationBox
from multicam_inspector.calibration import CalibrationTransform
from multicam_inspector.coordinate_mapper import CoordinateMapper
from multicam_inspector.geometry import PanOffset, PixelPoint, ScreenPoint, ViewportSize
from multicam_inspector.transform_composer import DrawTransform, resolve_draw_transform
from multicam_inspector.viewport.view_state import clamp_pan

VIEWPORT = ViewportSize(800.0, 450.0)


def _mapper(
    image_width: int = 1000,
    image_height: int = 800,
    zoom: float = 1.0,
    pan: PanOffset = PanOffset(),
    calibration: CalibrationTransform = CalibrationTransform(),
) -> CoordinateMapper:
    return CoordinateMapper(
        resolve_draw_transform(image_width, image_height, VIEWPORT, zoom, pan, calibration)
    )


@composite
def calibrations(draw) -> CalibrationTransform:
    return CalibrationTransform(
        x=draw(st.floats(min_value=-200, max_value=200)),
        y=draw(st.floats(min_value=-200, max_value=200)),
        scale=draw(st.floats(min_value=0.5, max_value=2.0)),
        rotation=draw(st.floats(min_value=-180, max_value=180)),
        flipped=draw(st.booleans()),
    )


@composite
def mappers(draw) -> CoordinateMapper:
    zoom = draw(st.floats(min_value=1.0, max_value=10.0))
    pan = clamp_pan(
        PanOffset(
            draw(st.floats(min_value=-20000, max_value=20000)),
            draw(st.floats(min_value=-20000, max_value=20000)),
        ),
        zoom,
        VIEWPORT,
    )
    return _mapper(
        image_width=draw(st.integers(min_value=100, max_value=6000)),
        image_height=draw(st.integers(min_value=100, max_value=6000)),
        zoom=zoom,
        pan=pan,
        calibration=draw(calibrations()),
    )


class TestScreenToImage:
    """Tests for inverse mapping."""

    def test_tile_center_is_image_center(self) -> None:
        point = _mapper().screen_to_image(ScreenPoint(400.0, 225.0))

        assert point is not None
        assert point.pixel.x == pytest.approx(500.0)
        assert point.pixel.y == pytest.approx(400.0)
        assert (point.normalized_x, point.normalized_y) == pytest.approx((0.5, 0.5))

    def test_drawn_top_left_is_image_origin(self) -> None:
        # 1000x800 in 800x450: drawn 562.5x450 at x offset 118.75
        point = _mapper().screen_to_image(ScreenPoint(118.75, 0.0))

        assert point is not None
        assert (point.pixel.x, point.pixel.y) == pytest.approx((0.0, 0.0))

    def test_zoom_and_pan(self) -> None:
        mapper = _mapper(zoom=2.0, pan=PanOffset(200.0, 0.0))

        # Image center moved 100 px right of the tile center
        point = mapper.screen_to_image(ScreenPoint(500.0, 225.0))

        assert point is not None
        assert point.pixel.x == pytest.approx(500.0)

    def test_flip_mirrors_x(self) -> None:
        mapper = _mapper(calibration=CalibrationTransform(flipped=True))

        point = mapper.screen_to_image(ScreenPoint(118.75, 0.0))

        assert point is not None
        assert point.pixel.x == pytest.approx(1000.0)
        assert point.pixel.y == pytest.approx(0.0)

    def test_outside_image_is_not_clamped(self) -> None:
        point = _mapper().screen_to_image(ScreenPoint(0.0, 0.0))

        assert point is not None
        assert point.normalized_x < 0.0

    def test_empty_transform_maps_nothing(self) -> None:
        mapper = CoordinateMapper(DrawTransform.empty())

        assert not mapper.is_active
        assert mapper.screen_to_image(ScreenPoint(10.0, 10.0)) is None
        assert mapper.image_to_screen(PixelPoint(10.0, 10.0)) is None
        assert mapper.rect_to_screen(0.1, 0.1, 0.2, 0.2) is None

    @settings(max_examples=200)
    @given(
        mapper=mappers(),
        sx=st.floats(min_value=0.0, max_value=800.0),
        sy=st.floats(min_value=0.0, max_value=450.0),
    )
    def test_round_trip_within_one_pixel(self, mapper: CoordinateMapper, sx: float, sy: float) -> None:
        image_point = mapper.screen_to_image(ScreenPoint(sx, sy))
        assert image_point is not None

        screen = mapper.image_to_screen(image_point.pixel)
        assert screen is not None
        assert abs(screen.x - sx) < 1.0
        assert abs(screen.y - sy) < 1.0

    @given(mapper=mappers(), nx=st.floats(0.0, 1.0), ny=st.floats(0.0, 1.0))
    def test_normalized_round_trip(self, mapper: CoordinateMapper, nx: float, ny: float) -> None:
        screen = mapper.normalized_to_screen(nx, ny)
        assert screen is not None

        back = mapper.screen_to_image(screen)
        assert back is not None
        assert back.normalized_x == pytest.approx(nx, abs=1e-6)
        assert back.normalized_y == pytest.approx(ny, abs=1e-6)


class TestBoxToScreen:
    """Tests for forward mapping of boxes."""

    def test_axis_aligned_box(self) -> None:
        mapper = _mapper(image_width=1600, image_height=900)  # fills the tile exactly
        box = ValidationBox(id="vb_1", x=0.25, y=0.5, width=0.5, height=0.25)

        quad = mapper.box_to_screen(box)

        assert quad is not None
        assert quad.bounds() == pytest.approx((200.0, 225.0, 600.0, 337.5))

    def test_rotated_box_is_rotated_quad(self) -> None:
        mapper = _mapper(image_width=1600, image_height=900, calibration=CalibrationTransform(rotation=30.0))
        box = ValidationBox(id="vb_1", x=0.4, y=0.4, width=0.2, height=0.2)

        quad = mapper.box_to_screen(box)

        assert quad is not None
        # Area is preserved by rotation: (0.2 * 800) * (0.2 * 450)
        assert quad.area == pytest.approx(160.0 * 90.0)
        left, top, right, bottom = quad.bounds()
        assert (right - left) * (bottom - top) > quad.area

    def test_image_outline_matches_draw_rect(self) -> None:
        quad = _mapper(image_width=4000, image_height=3000).image_outline()

        assert quad is not None
        assert quad.bounds() == pytest.approx((100.0, 0.0, 700.0, 450.0))
