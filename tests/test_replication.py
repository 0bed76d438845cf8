"""Tests for radial replication of a pattern solid."""

import pytest

from gdml_builder.contracts import BooleanSolid, SolidRef
from gdml_builder.errors import DuplicateNameError, InvalidReplicationCountError
from gdml_builder.replication import (
    replicate_radially,
    replication_angles,
    replication_angles_for,
)
from gdml_builder.solids import SolidRegistry


@pytest.fixture
def solids():
    registry = SolidRegistry()
    registry.tube(45, 1, "disk", rmin=8.5)
    registry.box(0.3, 17, 1, "line")
    registry.tube(4.25, 1, "hub", rmin=3.95)
    return registry


DISK = SolidRef("disk")
LINE = SolidRef("line")
HUB = SolidRef("hub")


class TestReplicationAngles:
    """Resolving copy angles from count, step or explicit angles."""

    def test_default_step_covers_full_turn(self):
        assert replication_angles_for(count=6) == pytest.approx([0, 60, 120, 180, 240, 300])

    def test_partial_pattern(self):
        assert replication_angles_for(count=4, step=45) == [0, 45, 90, 135]

    def test_explicit_angles(self):
        assert replication_angles_for(angles=[10, 200]) == [10, 200]

    @pytest.mark.parametrize("count", [0, -2, None])
    def test_non_positive_count(self, count):
        with pytest.raises(InvalidReplicationCountError):
            replication_angles_for(count=count)

    def test_empty_angles(self):
        with pytest.raises(InvalidReplicationCountError):
            replication_angles_for(angles=[])

    def test_count_and_angles_disagree(self):
        with pytest.raises(ValueError):
            replication_angles_for(count=3, angles=[0, 90])


class TestReplicateRadially:
    """Union chain built by replicate_radially."""

    def test_four_lines_at_45_degrees_with_hub(self, solids):
        ref = replicate_radially(solids, DISK, LINE, "pattern", count=4, step=45, hub=HUB)
        assert ref == SolidRef("pattern")

        recipe = solids.recipe(ref)
        assert [s.op for s in recipe] == ["base", "union", "union", "union", "union", "union"]
        assert recipe[0].solid == DISK
        assert [s.solid for s in recipe[1:5]] == [LINE] * 4
        assert recipe[-1].solid == HUB
        assert recipe[-1].transform.rotation.is_zero
        assert replication_angles(solids, ref, LINE) == [0, 45, 90, 135]

    def test_union_names(self, solids):
        replicate_radially(solids, DISK, LINE, "pattern", count=4, step=45, hub=HUB)
        names = [s.name for s in solids if isinstance(s, BooleanSolid)]
        assert names == ["patternAux0", "patternAux1", "patternAux2", "patternAux3", "pattern"]

    def test_without_hub_last_copy_takes_the_name(self, solids):
        replicate_radially(solids, DISK, LINE, "pattern", count=3)
        final = solids.get(SolidRef("pattern"))
        assert final.second == LINE
        assert final.transform.rotation.z == pytest.approx(240)

    def test_single_copy(self, solids):
        ref = replicate_radially(solids, DISK, LINE, "one", count=1)
        assert replication_angles(solids, ref, LINE) == [0]

    def test_rotation_axis(self, solids):
        ref = replicate_radially(solids, DISK, LINE, "about_x", count=2, step=90, axis="x")
        final = solids.get(ref)
        assert final.transform.rotation.x == 90
        assert final.transform.rotation.z == 0
        assert replication_angles(solids, ref, LINE, axis="x") == [0, 90]

    def test_explicit_angle_order_is_kept(self, solids):
        ref = replicate_radially(solids, DISK, LINE, "custom", angles=[90, 0, 45])
        assert replication_angles(solids, ref, LINE) == [90, 0, 45]

    def test_invalid_count_registers_nothing(self, solids):
        before = len(solids)
        with pytest.raises(InvalidReplicationCountError):
            replicate_radially(solids, DISK, LINE, "pattern", count=0)
        assert len(solids) == before

    def test_name_collision_registers_nothing(self, solids):
        solids.box(1, 1, 1, "patternAux2")
        before = len(solids)
        with pytest.raises(DuplicateNameError):
            replicate_radially(solids, DISK, LINE, "pattern", count=4, step=45)
        assert len(solids) == before
        assert "patternAux0" not in solids

    def test_angle_set_is_order_independent(self, solids):
        forward = replicate_radially(solids, DISK, LINE, "forward", count=4, step=45)
        shuffled = replicate_radially(solids, DISK, LINE, "shuffled", angles=[135, 0, 90, 45])
        assert set(replication_angles(solids, forward, LINE)) == set(
            replication_angles(solids, shuffled, LINE)
        )
