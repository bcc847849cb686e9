from types import SimpleNamespace

import pytest

from supera.bbox import BBox3D, BBoxInteraction, Point3D
from supera.genrandom import GenRandom


class _FixedUniform:
    def __init__(self, pick_high: bool) -> None:
        self.pick_high = pick_high

    def uniform(self, a, b):
        return b if self.pick_high else a


@pytest.fixture
def rng():
    gen = GenRandom.get()
    yield gen
    gen.set_flat_gen(None)


def _world():
    return BBox3D(-1000, -1000, -1000, 1000, 1000, 1000)


def _interaction(**kwargs):
    args = dict(
        bbox_size=(10, 10, 10),
        voxel_size=(1, 1, 1),
        world_bounds=_world(),
    )
    args.update(kwargs)
    return BBoxInteraction(**args)


def _extent(bbox):
    lo, hi = bbox.bottom_left, bbox.top_right
    return (hi.x - lo.x, hi.y - lo.y, hi.z - lo.z)


def _recording_deposits(points, seen):
    for pt in points:
        seen.append(pt)
        yield SimpleNamespace(x=pt[0], y=pt[1], z=pt[2])


def test_bbox_empty_and_contains():
    box = BBox3D()
    assert box.empty
    box.update(Point3D(0, 0, 0), Point3D(2, 2, 2))
    assert not box.empty
    assert box.contains(Point3D(1, 1, 1))
    assert box.contains(Point3D(2, 0, 2))
    assert not box.contains(Point3D(3, 1, 1))


def test_update_copies_points():
    lo = Point3D(0, 0, 0)
    box = BBox3D()
    box.update(lo, Point3D(1, 1, 1))
    lo.x = 5
    assert box.bottom_left.x == 0


def test_update_bbox_on_empty_defines_minimal_box():
    inter = _interaction()
    box = BBox3D()
    assert inter.update_bbox(box, Point3D(3, 4, 5)) is True
    assert box.bottom_left == Point3D(3, 4, 5)
    assert box.contains(Point3D(3, 4, 5))
    assert all(0 < e < 1e-6 for e in _extent(box))


def test_update_bbox_grows_then_caps():
    inter = _interaction()
    box = BBox3D()
    inter.update_bbox(box, Point3D(0, 0, 0))
    inter.update_bbox(box, Point3D(5, 0, 0))
    assert box.top_right.x == 5
    inter.update_bbox(box, Point3D(50, 0, 0))
    assert box.top_right.x == pytest.approx(box.bottom_left.x + 10)
    assert box.bottom_left.x == 0


def test_update_bbox_grows_downward():
    inter = _interaction()
    box = BBox3D()
    inter.update_bbox(box, Point3D(0, 0, 0))
    inter.update_bbox(box, Point3D(0, -50, 0))
    assert box.bottom_left.y == pytest.approx(box.top_right.y - 10)


def test_update_bbox_ignores_point_outside_world():
    inter = _interaction(world_bounds=BBox3D(-1, -1, -1, 1, 1, 1))
    box = BBox3D()
    inter.update_bbox(box, Point3D(0, 0, 0))
    before = (box.bottom_left, box.top_right)
    assert inter.update_bbox(box, Point3D(5, 5, 5)) is True
    assert (box.bottom_left, box.top_right) == before


def test_update_bbox_returns_false_when_full():
    inter = _interaction()
    box = BBox3D()
    inter.update_bbox(box, Point3D(0, 0, 0))
    assert inter.update_bbox(box, Point3D(20, 20, 20)) is False
    assert _extent(box) == pytest.approx((10, 10, 10))


def test_adapt_stops_once_full():
    inter = _interaction()
    box = BBox3D()
    inter.update_bbox(box, Point3D(0, 0, 0))
    seen = []
    points = [(20, 20, 20), (-30, -30, -30), (1, 1, 1)]
    inter.adapt_bbox_to_deposits(_recording_deposits(points, seen), box)
    assert len(seen) == 1
    assert box.bottom_left == Point3D(0, 0, 0)


@pytest.mark.parametrize("pick_high", [True, False])
def test_randomize_fills_full_size(rng, pick_high):
    rng.set_flat_gen(_FixedUniform(pick_high))
    inter = _interaction()
    box = BBox3D(0, 0, 0, 2, 2, 2)
    inter.randomize_bbox_center(box)
    assert _extent(box) == pytest.approx((10, 10, 10))


def test_randomize_without_generator_raises(rng):
    inter = _interaction()
    with pytest.raises(RuntimeError):
        inter.randomize_bbox_center(BBox3D(0, 0, 0, 1, 1, 1))


def test_make_meta_fixed_box():
    inter = _interaction(
        bbox_size=(10, 20, 30),
        voxel_size=(1, 2, 3),
        use_fixed_bbox=True,
        bbox_bottom=(1, 2, 3),
    )
    meta = inter.make_meta([], [])
    assert (meta.min_x, meta.min_y, meta.min_z) == (1, 2, 3)
    assert (meta.max_x, meta.max_y, meta.max_z) == (11, 22, 33)
    assert (meta.num_x, meta.num_y, meta.num_z) == (10, 10, 10)


def test_make_meta_from_truth(rng):
    rng.set_flat_gen(_FixedUniform(True))
    inter = _interaction(origin=1)
    vertex = SimpleNamespace(x=3.0, y=4.0, z=5.0)
    far = SimpleNamespace(x=-500.0, y=-500.0, z=-500.0)
    truths = [
        SimpleNamespace(
            origin=1,
            particles=[
                SimpleNamespace(status_code=1, pdg_code=13, position=vertex),
                SimpleNamespace(status_code=0, pdg_code=2112, position=far),
            ],
        ),
        SimpleNamespace(
            origin=2,
            particles=[SimpleNamespace(status_code=1, pdg_code=11, position=far)],
        ),
    ]
    meta = inter.make_meta(truths, [SimpleNamespace(x=4.0, y=4.0, z=5.0)])
    assert meta.max_x - meta.min_x == pytest.approx(10)
    assert meta.max_z - meta.min_z == pytest.approx(10)
    assert meta.min_x <= 3.0 <= meta.max_x
    assert meta.min_y > -500.0
    assert meta.num_voxels == 1000


@pytest.mark.parametrize(
    "kwargs",
    [
        {"bbox_size": (1, 2)},
        {"voxel_size": (1, 2, 3, 4)},
        {"bbox_bottom": (0,)},
    ],
)
def test_invalid_sizes_raise(kwargs):
    with pytest.raises(ValueError):
        _interaction(**kwargs)