"""Voxel containers, reconstructed voxels and the 3D voxel grid definition."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Tuple

INVALID_VOXELID = 2**64 - 1


@dataclass(frozen=True, order=True)
class TrackVoxel:
    """Composite key of a voxel id and a track id, ordered by voxel then track."""

    voxel_id: int
    track_id: int


@dataclass
class TrueHit:
    """Minimal true hit information; hits order by time."""

    time: float
    track_voxel_ids: List[TrackVoxel] = field(default_factory=list)
    n_electrons: List[float] = field(default_factory=list)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TrueHit):
            return NotImplemented
        return self.time < other.time


@functools.total_ordering
class RecoVoxel3D:
    """A reconstructed voxel with a charge; identity is the voxel id alone."""

    __slots__ = ("id", "charge")

    def __init__(self, voxel_id: int, charge: float = 0.0) -> None:
        self.id = voxel_id
        self.charge = charge

    def set_charge(self, charge: float, is_add: bool = False) -> None:
        """Set the charge, or add to it when is_add is true."""
        if is_add:
            self.charge += charge
        else:
            self.charge = charge

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecoVoxel3D):
            return NotImplemented
        return self.id == other.id

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RecoVoxel3D):
            return NotImplemented
        return self.id < other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"RecoVoxel3D(id={self.id}, charge={self.charge})"


@dataclass(frozen=True)
class Voxel:
    """A voxel id with its value."""

    id: int
    value: float


INVALID_VOXEL = Voxel(INVALID_VOXELID, 0.0)


class VoxelSet:
    """A set of voxels keyed by id, listed in increasing id order."""

    def __init__(self, voxels: Iterable[Voxel] = ()) -> None:
        self._values: Dict[int, float] = {}
        for voxel in voxels:
            self.emplace(voxel.id, voxel.value, False)

    def emplace(self, voxel_id: int, value: float, add: bool = False) -> None:
        """Insert a voxel; an existing one is summed into when add is true, else replaced."""
        if add and voxel_id in self._values:
            self._values[voxel_id] += value
        else:
            self._values[voxel_id] = value

    def find(self, voxel_id: int) -> Voxel:
        """Return the voxel with this id, or INVALID_VOXEL when absent."""
        value = self._values.get(voxel_id)
        if value is None:
            return INVALID_VOXEL
        return Voxel(voxel_id, value)

    def clear_data(self) -> None:
        """Remove every voxel."""
        self._values.clear()

    def as_vector(self) -> List[Voxel]:
        """Return the voxels sorted by id."""
        return [Voxel(i, self._values[i]) for i in sorted(self._values)]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Voxel]:
        return iter(self.as_vector())

    def __contains__(self, voxel_id: object) -> bool:
        return voxel_id in self._values


class FastVoxelSet:
    """Accumulator for many voxel insertions, later moved into a VoxelSet.

    Unlike VoxelSet, emplacing an existing id without ``add`` keeps the
    value already stored.
    """

    def __init__(self) -> None:
        self._values: Dict[int, float] = {}

    def emplace(self, voxel_id: int, value: float, add: bool = False) -> None:
        """Insert a voxel, summing into an existing one when add is true."""
        if voxel_id in self._values:
            if add:
                self._values[voxel_id] += value
        else:
            self._values[voxel_id] = value

    def move_to(self, voxel_set: VoxelSet) -> None:
        """Move every voxel into ``voxel_set`` and leave this set empty."""
        for voxel_id in sorted(self._values):
            voxel_set.emplace(voxel_id, self._values[voxel_id], False)
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)


@dataclass
class Voxel3DMeta:
    """A regular 3D voxel grid spanning a box."""

    min_x: float = 0.0
    min_y: float = 0.0
    min_z: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0
    max_z: float = 0.0
    num_x: int = 0
    num_y: int = 0
    num_z: int = 0

    @property
    def size_x(self) -> float:
        return (self.max_x - self.min_x) / self.num_x if self.num_x else 0.0

    @property
    def size_y(self) -> float:
        return (self.max_y - self.min_y) / self.num_y if self.num_y else 0.0

    @property
    def size_z(self) -> float:
        return (self.max_z - self.min_z) / self.num_z if self.num_z else 0.0

    @property
    def num_voxels(self) -> int:
        return self.num_x * self.num_y * self.num_z

    @property
    def empty(self) -> bool:
        return self.num_voxels == 0

    @staticmethod
    def _axis_index(value: float, low: float, high: float, count: int) -> int:
        if value < low or value > high:
            return -1
        index = int((value - low) / (high - low) * count)
        return min(index, count - 1)

    def id(self, x: float, y: float, z: float) -> int:
        """Return the voxel id containing the point, or INVALID_VOXELID outside."""
        if self.empty:
            return INVALID_VOXELID
        ix = self._axis_index(x, self.min_x, self.max_x, self.num_x)
        iy = self._axis_index(y, self.min_y, self.max_y, self.num_y)
        iz = self._axis_index(z, self.min_z, self.max_z, self.num_z)
        if ix < 0 or iy < 0 or iz < 0:
            return INVALID_VOXELID
        return ix + iy * self.num_x + iz * self.num_x * self.num_y

    def position(self, voxel_id: int) -> Tuple[float, float, float]:
        """Return the centre of the voxel with this id."""
        if voxel_id < 0 or voxel_id >= self.num_voxels:
            raise ValueError(f"Invalid voxel id {voxel_id}")
        ix = voxel_id % self.num_x
        iy = (voxel_id // self.num_x) % self.num_y
        iz = voxel_id // (self.num_x * self.num_y)
        return (
            self.min_x + (ix + 0.5) * self.size_x,
            self.min_y + (iy + 0.5) * self.size_y,
            self.min_z + (iz + 0.5) * self.size_z,
        )