"""Unit tests for multicam_inspector.calibration.session module."""

import pytest

from multicam_inspector.calibration import (
    AdjustmentSteps,
    CalibrationSession,
    CalibrationTransform,
    get_default_config,
)


@pytest.fixture
def session() -> CalibrationSession:
    return CalibrationSession(get_default_config(), "hangar_rouen_vpn")


class TestCalibrationSession:
    """Tests for staged calibration editing."""

    def test_starts_clean(self, session: CalibrationSession) -> None:
        assert not session.is_dirty
        assert session.transform(0).x == 42.0

    def test_nudge_applies_steps(self, session: CalibrationSession) -> None:
        updated = session.nudge(3, dx=5, dy=-2, dscale=3, drotation=-4)

        assert updated.x == pytest.approx(-32.0 + 5.0)
        assert updated.y == pytest.approx(-14.0 - 2.0)
        assert updated.scale == pytest.approx(1.05 + 0.03)
        assert updated.rotation == pytest.approx(-1.1 - 0.4)
        assert session.is_dirty

    def test_custom_steps(self) -> None:
        session = CalibrationSession(
            get_default_config(), "hangar_sisjon_vpn", AdjustmentSteps(offset=10.0)
        )

        assert session.nudge(0, dx=1).x == 10.0

    def test_scale_never_below_minimum(self, session: CalibrationSession) -> None:
        updated = session.nudge(0, dscale=-1000)

        assert updated.scale == pytest.approx(0.1)

    def test_toggle_flip(self, session: CalibrationSession) -> None:
        assert session.toggle_flip(1).flipped
        assert not session.toggle_flip(1).flipped

    def test_reset_slot(self, session: CalibrationSession) -> None:
        session.reset(2)

        assert session.transform(2).is_identity
        assert session.is_dirty

    def test_discard_restores_loaded_values(self, session: CalibrationSession) -> None:
        session.nudge(0, dx=10)
        session.discard()

        assert not session.is_dirty
        assert session.transform(0).x == 42.0

    def test_commit_returns_updated_config(self, session: CalibrationSession) -> None:
        config = get_default_config()
        session.set_transform(4, CalibrationTransform(x=1.0))

        committed = session.commit()

        assert committed.get_transform("hangar_rouen_vpn", 4) == CalibrationTransform(x=1.0)
        assert config.get_transform("hangar_rouen_vpn", 4).x == 28.0
        assert not session.is_dirty

    def test_unknown_installation_starts_from_identity(self) -> None:
        session = CalibrationSession(get_default_config(), "new_site")
        session.nudge(6, dx=1)

        assert session.commit().get_transform("new_site", 6).x == 1.0

    @pytest.mark.parametrize("slot", [-1, 8], ids=["negative", "too-high"])
    def test_slot_out_of_range(self, session: CalibrationSession, slot: int) -> None:
        with pytest.raises(ValueError, match="range 0-7"):
            session.transform(slot)
