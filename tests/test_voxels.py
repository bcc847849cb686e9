import pytest

from supera.voxels import (
    INVALID_VOXEL,
    INVALID_VOXELID,
    FastVoxelSet,
    RecoVoxel3D,
    TrackVoxel,
    TrueHit,
    Voxel,
    Voxel3DMeta,
    VoxelSet,
)


@pytest.fixture
def meta():
    return Voxel3DMeta(0.0, 0.0, 0.0, 10.0, 20.0, 30.0, 10, 20, 30)


def test_track_voxel_ordering():
    items = sorted([TrackVoxel(2, 1), TrackVoxel(1, 5), TrackVoxel(1, 3)])
    assert items == [TrackVoxel(1, 3), TrackVoxel(1, 5), TrackVoxel(2, 1)]
    assert TrackVoxel(1, 3) == TrackVoxel(1, 3)
    assert len({TrackVoxel(1, 3), TrackVoxel(1, 3)}) == 1


def test_true_hit_orders_by_time():
    hits = sorted([TrueHit(3.0), TrueHit(1.0), TrueHit(2.0)])
    assert [h.time for h in hits] == [1.0, 2.0, 3.0]


def test_reco_voxel_set_charge():
    voxel = RecoVoxel3D(4, 1.5)
    voxel.set_charge(2.0, is_add=True)
    assert voxel.charge == 3.5
    voxel.set_charge(0.5)
    assert voxel.charge == 0.5


def test_reco_voxel_identity_by_id():
    assert RecoVoxel3D(4, 1.0) == RecoVoxel3D(4, 9.0)
    assert RecoVoxel3D(3) < RecoVoxel3D(4)
    assert len({RecoVoxel3D(4, 1.0), RecoVoxel3D(4, 2.0), RecoVoxel3D(5)}) == 2


def test_voxel_set_emplace_replace_and_add():
    vs = VoxelSet()
    vs.emplace(5, 1.0, False)
    vs.emplace(5, 2.0, True)
    assert vs.find(5) == Voxel(5, 3.0)
    vs.emplace(5, 7.0, False)
    assert vs.find(5) == Voxel(5, 7.0)


def test_voxel_set_sorted_and_find_missing():
    vs = VoxelSet([Voxel(9, 1.0), Voxel(2, 2.0), Voxel(4, 3.0)])
    assert [v.id for v in vs.as_vector()] == [2, 4, 9]
    assert vs.find(3) == INVALID_VOXEL
    assert vs.find(3).id == INVALID_VOXELID
    assert len(vs) == 3


def test_voxel_set_clear():
    vs = VoxelSet([Voxel(1, 1.0)])
    vs.clear_data()
    assert len(vs) == 0
    assert vs.as_vector() == []


def test_fast_voxel_set_keeps_existing_without_add():
    fast = FastVoxelSet()
    fast.emplace(3, 1.0, False)
    fast.emplace(3, 5.0, False)
    fast.emplace(3, 2.0, True)
    out = VoxelSet()
    fast.move_to(out)
    assert out.as_vector() == [Voxel(3, 3.0)]


def test_fast_voxel_set_move_empties():
    fast = FastVoxelSet()
    for i in (8, 1, 5):
        fast.emplace(i, float(i), False)
    assert len(fast) == 3
    out = VoxelSet()
    fast.move_to(out)
    assert len(fast) == 0
    assert [v.id for v in out.as_vector()] == [1, 5, 8]


def test_meta_id_of_min_corner_is_zero(meta):
    assert meta.id(0.0, 0.0, 0.0) == 0


def test_meta_outside_is_invalid(meta):
    assert meta.id(-0.1, 1.0, 1.0) == INVALID_VOXELID
    assert meta.id(1.0, 25.0, 1.0) == INVALID_VOXELID


def test_meta_position_round_trip(meta):
    for voxel_id in (0, 1, 10, 199, 5999):
        assert meta.id(*meta.position(voxel_id)) == voxel_id


def test_meta_position_invalid(meta):
    with pytest.raises(ValueError):
        meta.position(meta.num_voxels)


def test_default_meta_is_empty():
    empty_meta = Voxel3DMeta()
    assert empty_meta.empty is True
    assert empty_meta.id(0.0, 0.0, 0.0) == INVALID_VOXELID