"""Unit tests for multicam_inspector.camera_config module."""

import pytest

from multicam_inspector.camera_config import (
    CAMERA_COUNT,
    get_camera_layout,
    get_camera_name,
    get_camera_slot,
    get_installation_configs,
)


class TestCameraLayout:
    def test_eight_slots_in_order(self) -> None:
        layout = get_camera_layout()

        assert len(layout) == CAMERA_COUNT
        assert [c["slot"] for c in layout] == list(range(CAMERA_COUNT))

    @pytest.mark.parametrize(
        "slot,name",
        [(0, "RUR"), (3, "RUL"), (4, "RDR"), (7, "RDL")],
        ids=["top-left", "top-right", "bottom-left", "bottom-right"],
    )
    def test_name_slot_round_trip(self, slot: int, name: str) -> None:
        assert get_camera_name(slot) == name
        assert get_camera_slot(name) == slot

    def test_unknown(self) -> None:
        assert get_camera_name(12) == "Camera12"
        assert get_camera_slot("XYZ") is None


class TestInstallations:
    def test_baseline_is_identity(self) -> None:
        baseline = next(i for i in get_installation_configs() if i["id"] == "hangar_sisjon_vpn")

        assert all(t == {"x": 0, "y": 0, "scale": 1.0, "rotation": 0} for t in baseline["transforms"].values())

    def test_ids_unique(self) -> None:
        ids = [i["id"] for i in get_installation_configs()]

        assert len(ids) == len(set(ids))
