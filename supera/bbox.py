"""Choosing a fixed-size 3D bounding box around an interaction and the voxel grid inside it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence, Tuple

from supera.genrandom import GenRandom
from supera.voxels import Voxel3DMeta

logger = logging.getLogger(__name__)

_MIN_EXTENT = 1.0e-9


@dataclass
class Point3D:
    """A point in space."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def copy(self) -> "Point3D":
        return Point3D(self.x, self.y, self.z)


class BBox3D:
    """An axis-aligned box given by its lowest and highest corners."""

    def __init__(
        self,
        x1: float = 0.0,
        y1: float = 0.0,
        z1: float = 0.0,
        x2: float = 0.0,
        y2: float = 0.0,
        z2: float = 0.0,
    ) -> None:
        self._min = Point3D(x1, y1, z1)
        self._max = Point3D(x2, y2, z2)

    @property
    def bottom_left(self) -> Point3D:
        """The lowest corner (a copy)."""
        return self._min.copy()

    @property
    def top_right(self) -> Point3D:
        """The highest corner (a copy)."""
        return self._max.copy()

    @property
    def empty(self) -> bool:
        """True when both corners coincide."""
        return self._min == self._max

    def update(self, min_pt: Point3D, max_pt: Point3D) -> None:
        """Replace both corners."""
        self._min = min_pt.copy()
        self._max = max_pt.copy()

    def contains(self, pt: Point3D) -> bool:
        """True when the point lies inside the box or on its surface."""
        return (
            self._min.x <= pt.x <= self._max.x
            and self._min.y <= pt.y <= self._max.y
            and self._min.z <= pt.z <= self._max.z
        )

    def dump(self) -> str:
        lo, hi = self._min, self._max
        return f"({lo.x},{lo.y},{lo.z}) => ({hi.x},{hi.y},{hi.z})\n"

    def __repr__(self) -> str:
        return f"BBox3D({self._min!r}, {self._max!r})"


class _Position(Protocol):
    x: float
    y: float
    z: float


class TruthParticle(Protocol):
    """The fields of a generator-level particle that the box needs."""

    status_code: int
    pdg_code: int
    position: _Position


class Truth(Protocol):
    """A generator-level interaction record."""

    origin: int
    particles: Sequence[TruthParticle]


def _grow_axis(lo: float, hi: float, p: float, length: float) -> Tuple[float, float]:
    """Stretch [lo, hi] towards p without exceeding length."""
    if hi - lo >= length:
        return lo, hi
    if p < lo:
        lo = p if hi - p < length else hi - length
    elif p > hi:
        hi = p if p - lo < length else lo + length
    return lo, hi


class BBoxInteraction:
    """Fits a box of fixed size around an interaction's vertices and energy deposits."""

    def __init__(
        self,
        bbox_size: Sequence[float],
        voxel_size: Sequence[float],
        world_bounds: BBox3D,
        use_fixed_bbox: bool = False,
        bbox_bottom: Sequence[float] = (0.0, 0.0, 0.0),
        origin: int = 0,
    ) -> None:
        if len(bbox_size) != 3:
            raise ValueError("bbox_size must have 3 elements")
        if len(voxel_size) != 3:
            raise ValueError("voxel_size must have 3 elements")
        if len(bbox_bottom) != 3:
            raise ValueError("bbox_bottom must have 3 elements")
        self.xlen, self.ylen, self.zlen = (float(v) for v in bbox_size)
        self.xvox, self.yvox, self.zvox = (float(v) for v in voxel_size)
        self.world_bounds = world_bounds
        self.use_fixed_bbox = use_fixed_bbox
        self.bbox_bottom = tuple(float(v) for v in bbox_bottom)
        self.origin = origin

    def update_bbox(self, bbox: BBox3D, pt: Point3D) -> bool:
        """Grow the box towards the point; return True while any axis is below full size."""
        if bbox.empty:
            min_pt = pt.copy()
            max_pt = Point3D(pt.x + _MIN_EXTENT, pt.y + _MIN_EXTENT, pt.z + _MIN_EXTENT)
            bbox.update(min_pt, max_pt)
            logger.info("Defining minimal BBox:%s", bbox.dump())
            return True

        min_pt = bbox.bottom_left
        max_pt = bbox.top_right
        if not self.world_bounds.contains(pt):
            logger.debug("No update in BBox: point outside the world boundary")
        elif bbox.contains(pt):
            logger.debug("No update in BBox: point already contained!")
        else:
            logger.debug("Updating BBox:%s", bbox.dump())
            min_pt.x, max_pt.x = _grow_axis(min_pt.x, max_pt.x, pt.x, self.xlen)
            min_pt.y, max_pt.y = _grow_axis(min_pt.y, max_pt.y, pt.y, self.ylen)
            min_pt.z, max_pt.z = _grow_axis(min_pt.z, max_pt.z, pt.z, self.zlen)
            bbox.update(min_pt, max_pt)
            logger.debug(" ... to:%s", bbox.dump())

        return (
            max_pt.x - min_pt.x < self.xlen
            or max_pt.y - min_pt.y < self.ylen
            or max_pt.z - min_pt.z < self.zlen
        )

    def randomize_bbox_center(self, bbox: BBox3D) -> None:
        """Expand every short axis to full size, shifting the box by a random amount."""
        rng = GenRandom.get()
        min_pt = bbox.bottom_left
        max_pt = bbox.top_right
        logger.info("Randomize before:%s", bbox.dump())
        # The y and z axes are widened by the x length, as the box has always been built.
        axes = (("x", self.xlen), ("y", self.ylen), ("z", self.zlen))
        for axis, length in axes:
            lo = getattr(min_pt, axis)
            hi = getattr(max_pt, axis)
            if hi - lo >= length:
                continue
            shift = rng.flat(0.0, length - (hi - lo))
            shift *= 1.0 if rng.flat(-1.0, 1.0) > 0.0 else -1.0
            if shift > 0:
                hi += shift
                lo = hi - self.xlen
            else:
                lo += shift
                hi = lo + self.xlen
            setattr(min_pt, axis, lo)
            setattr(max_pt, axis, hi)
        bbox.update(min_pt, max_pt)
        logger.info("Randomize after:%s", bbox.dump())

    def adapt_bbox_to_deposits(self, deposits: Iterable[_Position], bbox: BBox3D) -> None:
        """Grow the box over deposit positions, stopping once it reaches full size."""
        for dep in deposits:
            if not self.update_bbox(bbox, Point3D(dep.x, dep.y, dep.z)):
                break

    def make_meta(
        self, truths: Sequence[Truth], deposits: Iterable[_Position]
    ) -> Voxel3DMeta:
        """Choose the box for an event and return the voxel grid spanning it."""
        bbox = BBox3D()
        if self.use_fixed_bbox:
            x0, y0, z0 = self.bbox_bottom
            bbox.update(
                Point3D(x0, y0, z0),
                Point3D(x0 + self.xlen, y0 + self.ylen, z0 + self.zlen),
            )
        else:
            logger.info("Processing MCTruth: %d records", len(truths))
            for truth in truths:
                if self.origin and truth.origin != self.origin:
                    logger.info("Skipping MCTruth of origin type: %s", truth.origin)
                    continue
                for part in truth.particles:
                    if part.status_code != 1:
                        logger.info(
                            "Skipping MCTruth particle of status code: %s", part.status_code
                        )
                        continue
                    pos = part.position
                    logger.info(
                        "Registering vertex: (%s,%s,%s) ... PDG %s",
                        pos.x, pos.y, pos.z, part.pdg_code,
                    )
                    self.update_bbox(bbox, Point3D(pos.x, pos.y, pos.z))
            self.adapt_bbox_to_deposits(deposits, bbox)
            self.randomize_bbox_center(bbox)

        lo = bbox.bottom_left
        hi = bbox.top_right
        meta = Voxel3DMeta(
            min_x=lo.x,
            min_y=lo.y,
            min_z=lo.z,
            max_x=hi.x,
            max_y=hi.y,
            max_z=hi.z,
            num_x=int(self.xlen / self.xvox),
            num_y=int(self.ylen / self.yvox),
            num_z=int(self.zlen / self.zvox),
        )
        logger.info("3D Meta: %s", meta)
        return meta