"""Particle records, grouped energy depositions and conversion of simulated tracks and showers."""

from __future__ import annotations

import dataclasses
import enum
import logging
import math
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence, Tuple

from supera.mcparticle_tree import Vertex
from supera.voxels import INVALID_VOXELID, Voxel3DMeta, VoxelSet

logger = logging.getLogger(__name__)

INVALID_DOUBLE = sys.float_info.max

_VERBOSITY_LEVELS = {
    0: logging.DEBUG,
    1: logging.INFO,
    2: logging.INFO,
    3: logging.WARNING,
    4: logging.ERROR,
    5: logging.CRITICAL,
}

SpaceChargeCorrection = Callable[[float, float, float], Tuple[float, float, float]]


class ShapeType(enum.IntEnum):
    """Semantic classification of a particle's energy deposition."""

    SHOWER = 0
    TRACK = 1
    MICHEL = 2
    DELTA = 3
    LESCATTER = 4
    GHOST = 5
    UNKNOWN = 6


class ProcessType(enum.IntEnum):
    """How a particle group was produced, used for merging and classification."""

    TRACK = 0
    NEUTRON = 1
    PHOTON = 2
    PRIMARY = 3
    COMPTON = 4
    COMPTON_HE = 5
    DELTA = 6
    CONVERSION = 7
    IONIZATION = 8
    PHOTO_ELECTRON = 9
    DECAY = 10
    OTHER_SHOWER = 11
    OTHER_SHOWER_HE = 12
    NUCLEAR = 13
    INVALID_PROCESS = 14


@dataclass
class Particle:
    """Truth information stored for one particle."""

    shape: ShapeType = ShapeType.UNKNOWN
    pdg_code: int = 0
    parent_pdg_code: int = 0
    track_id: Optional[int] = None
    parent_track_id: Optional[int] = None
    energy_init: float = 0.0
    energy_deposit: float = 0.0
    position: Vertex = field(default_factory=Vertex)
    end_position: Vertex = field(default_factory=Vertex)
    first_step: Vertex = field(default_factory=Vertex)
    last_step: Vertex = field(default_factory=Vertex)
    parent_position: Vertex = field(default_factory=Vertex)
    momentum: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    distance_travel: float = -1.0
    creation_process: str = ""
    mcst_index: Optional[int] = None
    mct_index: Optional[int] = None

    def dump(self) -> str:
        """Return a multi-line description of the particle."""

        def vtx(v: Vertex) -> str:
            return f"({v.x},{v.y},{v.z},{v.t})"

        px, py, pz = self.momentum
        return (
            f"  TrackID {self.track_id} PDG {self.pdg_code} Shape {self.shape.name}"
            f" Process {self.creation_process}\n"
            f"  Parent TrackID {self.parent_track_id} PDG {self.parent_pdg_code}"
            f" at {vtx(self.parent_position)}\n"
            f"  Position {vtx(self.position)} => {vtx(self.end_position)}\n"
            f"  First step {vtx(self.first_step)} Last step {vtx(self.last_step)}\n"
            f"  Momentum ({px},{py},{pz})\n"
            f"  Initial energy {self.energy_init} Deposited energy {self.energy_deposit}"
            f" Distance travelled {self.distance_travel}\n"
        )


@dataclass
class EDep:
    """A single energy deposition point; coordinates default to an invalid marker."""

    x: float = INVALID_DOUBLE
    y: float = INVALID_DOUBLE
    z: float = INVALID_DOUBLE
    t: float = INVALID_DOUBLE
    e: float = INVALID_DOUBLE
    dedx: float = INVALID_DOUBLE


class ParticleGroup:
    """A particle with the voxels it deposited into and its earliest and latest points."""

    def __init__(self, num_planes: int = 0) -> None:
        self.part = Particle()
        self.track_ids: List[int] = []
        self.valid = False
        self.type = ProcessType.INVALID_PROCESS
        self.add_to_parent = False
        self.vs = VoxelSet()
        self.dedx = VoxelSet()
        self.vs2d: List[VoxelSet] = [VoxelSet() for _ in range(num_planes)]
        self.last_pt = EDep(t=-1.0e9)
        self.first_pt = EDep()

    def add_edep(self, pt: EDep) -> None:
        """Update the first and last points with a deposition; invalid points are ignored."""
        if pt.x == INVALID_DOUBLE:
            return
        if pt.t < self.first_pt.t:
            self.first_pt = dataclasses.replace(pt)
        if pt.t > self.last_pt.t:
            self.last_pt = dataclasses.replace(pt)

    def size_check(self) -> None:
        """Raise ValueError when dE/dx voxels exist but do not match the energy voxels."""
        if len(self.dedx) and len(self.vs) != len(self.dedx):
            raise ValueError(f"Size mismatch: {len(self.vs)} v.s. {len(self.dedx)}")

    def size_all(self) -> int:
        """Number of 3D voxels plus the voxels of every 2D plane."""
        return len(self.vs) + sum(len(vs2d) for vs2d in self.vs2d)

    def merge(self, child: "ParticleGroup", verbose: bool = False) -> None:
        """Absorb a child group's voxels, points and track ids; the child is emptied and invalidated."""
        for vox in child.vs.as_vector():
            self.vs.emplace(vox.id, vox.value, True)
        for vox in child.dedx.as_vector():
            self.dedx.emplace(vox.id, vox.value, True)

        if verbose:
            print(
                f"Parent track id {self.part.track_id} PDG {self.part.pdg_code} "
                f"{self.part.creation_process}\n"
                f"  ... merging {child.part.track_id} PDG {child.part.pdg_code} "
                f"{child.part.creation_process}"
            )

        self.add_edep(child.last_pt)
        self.add_edep(child.first_pt)
        self.track_ids.append(child.part.track_id)
        self.track_ids.extend(child.track_ids)
        for vs2d, child_vs2d in zip(self.vs2d, child.vs2d):
            for vox in child_vs2d.as_vector():
                vs2d.emplace(vox.id, vox.value, True)
            child_vs2d.clear_data()
        child.vs.clear_data()
        child.dedx.clear_data()
        child.valid = False

    def shape(self) -> ShapeType:
        """Semantic class of the group from its process type and particle."""
        if self.type == ProcessType.INVALID_PROCESS:
            return ShapeType.UNKNOWN
        if self.type == ProcessType.DELTA:
            return ShapeType.DELTA
        if self.type == ProcessType.NEUTRON:
            return ShapeType.LESCATTER
        if self.part.pdg_code in (11, -11, 22):
            if self.type in (
                ProcessType.COMPTON_HE,
                ProcessType.PHOTON,
                ProcessType.PRIMARY,
                ProcessType.CONVERSION,
                ProcessType.OTHER_SHOWER_HE,
            ):
                return ShapeType.SHOWER
            if self.type == ProcessType.DECAY:
                if self.part.parent_pdg_code in (13, -13):
                    return ShapeType.MICHEL
                return ShapeType.SHOWER
            return ShapeType.LESCATTER
        return ShapeType.TRACK


class _Step(Protocol):
    x: float
    y: float
    z: float
    t: float
    e: float


class _MomentumStep(_Step, Protocol):
    px: float
    py: float
    pz: float


class SimTrack(Protocol):
    """The fields of a simulated track the helper reads."""

    track_id: int
    pdg_code: int
    mother_track_id: int
    mother_pdg_code: int
    process: str
    start: _MomentumStep
    end: _Step
    mother_start: _Step
    steps: Sequence[_Step]


class SimShower(Protocol):
    """The fields of a simulated shower the helper reads."""

    track_id: int
    pdg_code: int
    mother_track_id: int
    mother_pdg_code: int
    process: str
    start: _MomentumStep
    end: _Step
    mother_start: _Step
    det_profile: _Step


def _step_distance(a: _Step, b: _Step) -> float:
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.z - b.z) ** 2)


class MCParticleHelper:
    """Turns simulated tracks and showers into Particle records.

    ``sce`` is an optional space-charge correction mapping (x, y, z) to the
    corrected position; it is applied when ``ApplySCE`` is configured.
    """

    def __init__(self, sce: Optional[SpaceChargeCorrection] = None) -> None:
        self._sce = sce
        self._apply_sce = False

    def configure(self, cfg: Mapping[str, Any]) -> None:
        """Read ApplySCE (required) and Verbosity (optional) from a configuration."""
        if "Verbosity" in cfg:
            logger.setLevel(_VERBOSITY_LEVELS.get(int(cfg["Verbosity"]), logging.CRITICAL))
        apply_sce = bool(cfg["ApplySCE"])
        if apply_sce and self._sce is None:
            raise ValueError("ApplySCE requested but no space-charge correction is available")
        self._apply_sce = apply_sce

    def _vertex(self, step: _Step, correct: bool = True) -> Vertex:
        x, y, z = step.x, step.y, step.z
        if correct and self._apply_sce and self._sce is not None:
            x, y, z = self._sce(x, y, z)
        return Vertex(x, y, z, step.t)

    def _fill_common(self, res: Particle, obj: Any) -> None:
        res.momentum = (obj.start.px, obj.start.py, obj.start.pz)
        res.pdg_code = obj.pdg_code
        res.parent_pdg_code = obj.mother_pdg_code
        res.track_id = obj.track_id
        res.parent_track_id = obj.mother_track_id
        res.parent_position = self._vertex(obj.mother_start)

    def make_track_particle(self, mct: SimTrack, meta: Voxel3DMeta) -> Particle:
        """Build a track Particle; with a non-empty meta, steps are limited to the grid."""
        logger.info(
            "Assessing MCTrack G4Track ID = %s PdgCode %s", mct.track_id, mct.pdg_code
        )
        steps = mct.steps
        res = Particle(shape=ShapeType.TRACK)
        res.energy_deposit = steps[0].e - steps[-1].e if steps else 0.0
        res.energy_init = mct.start.e
        res.position = self._vertex(mct.start)
        res.end_position = self._vertex(mct.end)
        res.creation_process = mct.process

        if meta.empty:
            if steps:
                res.first_step = self._vertex(steps[0])
            if len(steps) > 1:
                res.last_step = self._vertex(steps[-1], correct=False)
                res.distance_travel = sum(
                    _step_distance(a, b) for a, b in zip(steps, steps[1:])
                )
        else:
            def inside(step: _Step) -> bool:
                return meta.id(step.x, step.y, step.z) != INVALID_VOXELID

            first = next((i for i, step in enumerate(steps) if inside(step)), None)
            if first is not None:
                res.first_step = self._vertex(steps[first])
                last = first
                for i in range(first, len(steps)):
                    if not inside(steps[i]):
                        break
                    res.last_step = self._vertex(steps[i])
                    last = i
                if first > 0 and first != last:
                    segment = steps[first : last + 1]
                    res.distance_travel = sum(
                        _step_distance(a, b) for a, b in zip(segment, segment[1:])
                    )

        self._fill_common(res, mct)
        logger.info("%s", res.dump())
        return res

    def make_shower_particle(self, mcs: SimShower) -> Particle:
        """Build a shower Particle; its first step is the detector profile start."""
        logger.info(
            "Assessing MCShower G4Track ID = %s PdgCode %s", mcs.track_id, mcs.pdg_code
        )
        res = Particle(shape=ShapeType.SHOWER)
        res.energy_deposit = mcs.det_profile.e
        res.energy_init = mcs.start.e
        res.position = self._vertex(mcs.start)
        res.end_position = self._vertex(mcs.end)
        res.creation_process = mcs.process
        res.first_step = self._vertex(mcs.det_profile)
        self._fill_common(res, mcs)
        logger.info("%s", res.dump())
        return res