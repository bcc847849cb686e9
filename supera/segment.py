"""Voxel labelling of space points and ghosts, and energy filtering of particle tree nodes."""

from __future__ import annotations

import logging
import math
from typing import Protocol, Sequence, Tuple

from supera.mcparticle_tree import MCNode, SourceType
from supera.voxels import INVALID_VOXELID, Voxel3DMeta, VoxelSet

logger = logging.getLogger(__name__)

_FAR_AWAY = 1.0e9

GHOST = 1
NOT_GHOST = 0


def label_ghost(
    reco: VoxelSet, mc: VoxelSet, min_voxel_count: int = 0
) -> Tuple[VoxelSet, bool]:
    """Mark each reconstructed voxel as ghost (1) when absent from the true set, else 0.

    Returns the labelled voxels and whether the event is kept: when
    ``min_voxel_count`` is at least 1, events with fewer labelled voxels
    are rejected.
    """
    out = VoxelSet()
    for voxel in reco.as_vector():
        found = mc.find(voxel.id)
        label = GHOST if found.id == INVALID_VOXELID else NOT_GHOST
        out.emplace(voxel.id, float(label), False)

    if min_voxel_count < 1:
        return out, True
    if len(out) < min_voxel_count:
        logger.info(
            "Skipping event due to voxel count (%d < %d)", len(out), min_voxel_count
        )
        return out, False
    return out, True


def segment_spacepoints(
    spacepoints: VoxelSet,
    data: VoxelSet,
    meta: Voxel3DMeta,
    distance_threshold: float,
) -> VoxelSet:
    """Label each space point 1 when a data voxel lies within the threshold, else 0."""
    data_positions = [meta.position(voxel.id) for voxel in data.as_vector()]
    out = VoxelSet()
    for spacepoint in spacepoints.as_vector():
        here = meta.position(spacepoint.id)
        min_distance = min(
            (math.dist(here, there) for there in data_positions), default=_FAR_AWAY
        )
        min_distance = min(min_distance, _FAR_AWAY)
        value = 1.0 if min_distance <= distance_threshold else 0.0
        out.emplace(spacepoint.id, value, False)
    return out


class SpacePoint(Protocol):
    """The fields of a reconstructed space point that clustering reads."""

    id: int
    xyz: Sequence[float]
    err_xyz: Sequence[float]


def cluster_spacepoints(spacepoints: Sequence[SpacePoint], meta: Voxel3DMeta) -> VoxelSet:
    """Voxelize space points; each voxel holds the point's x error. Points off the grid are skipped."""
    logger.info("Processing SpacePoint array: %d", len(spacepoints))
    out = VoxelSet()
    for spacepoint in spacepoints:
        x, y, z = spacepoint.xyz[0], spacepoint.xyz[1], spacepoint.xyz[2]
        voxel_id = meta.id(x, y, z)
        if voxel_id == INVALID_VOXELID:
            logger.debug(
                "Skipping SpacePoint from id %s pos=(%s,%s,%s)", spacepoint.id, x, y, z
            )
            continue
        out.emplace(voxel_id, float(spacepoint.err_xyz[0]), False)
    return out


class NodeFilter:
    """Decides whether a particle tree node carries enough energy to be kept.

    Generic thresholds apply to every track or shower; the per-PDG lists
    add thresholds for particles of a given PDG code.
    """

    def __init__(
        self,
        filter_pdg: Sequence[int],
        filter_min_einit: Sequence[float],
        filter_min_edep: Sequence[float],
        shower_min_einit: float,
        shower_min_edep: float,
        track_min_einit: float,
        track_min_edep: float,
    ) -> None:
        if len(filter_pdg) != len(filter_min_einit):
            raise ValueError("FilterTargetPDG and FilterTargetInitEMin not the same length!")
        if len(filter_pdg) != len(filter_min_edep):
            raise ValueError("FilterTargetPDG and FilterTargetDepEMin not the same length!")
        self.targets = list(zip(filter_pdg, filter_min_einit, filter_min_edep))
        self.shower_min_einit = shower_min_einit
        self.shower_min_edep = shower_min_edep
        self.track_min_einit = track_min_einit
        self.track_min_edep = track_min_edep

    @staticmethod
    def _track_edep_passes(steps: Sequence, min_edep: float) -> bool:
        if min_edep <= 0:
            return True
        if len(steps) < 2:
            return False
        return steps[0].e - steps[-1].e >= min_edep

    def _accepts_track(self, mctrack) -> bool:
        steps = mctrack.steps
        init_e = mctrack.start.e
        logger.debug(
            "MCTrack InitE %s ... DepE %s",
            init_e,
            steps[0].e - steps[-1].e if len(steps) > 1 else 0,
        )
        if init_e < self.track_min_einit:
            return False
        if not self._track_edep_passes(steps, self.track_min_edep):
            return False
        for pdg, min_einit, min_edep in self.targets:
            if pdg != mctrack.pdg_code:
                continue
            if init_e < min_einit:
                return False
            if not self._track_edep_passes(steps, min_edep):
                return False
        return True

    def _accepts_shower(self, mcshower) -> bool:
        init_e = mcshower.start.e
        dep_e = mcshower.det_profile.e
        logger.debug("MCShower InitE %s ... DepE %s", init_e, dep_e)
        if init_e < self.shower_min_einit or dep_e < self.shower_min_edep:
            return False
        for pdg, min_einit, min_edep in self.targets:
            if pdg != mcshower.pdg_code:
                continue
            if init_e < min_einit or dep_e < min_edep:
                return False
        return True

    def accepts(self, node: MCNode, mctracks: Sequence, mcshowers: Sequence) -> bool:
        """True when the node's source track or shower passes every energy threshold."""
        if node.source_type == SourceType.MCTRACK:
            return self._accepts_track(mctracks[node.source_index])
        if node.source_type == SourceType.MCSHOWER:
            return self._accepts_shower(mcshowers[node.source_index])
        return True