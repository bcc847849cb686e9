"""Grouping of simulated tracks and showers into primary particle trees."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

_VERBOSITY_LEVELS = {
    0: logging.DEBUG,
    1: logging.INFO,
    2: logging.INFO,
    3: logging.WARNING,
    4: logging.ERROR,
    5: logging.CRITICAL,
}


@dataclass(frozen=True)
class Vertex:
    """A point in space and time."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    t: float = 0.0


class SourceType(enum.IntEnum):
    """Which simulated collection a node was made from."""

    MCTRACK = 0
    MCSHOWER = 1
    UNKNOWN = 2


class _Step(Protocol):
    x: float
    y: float
    z: float
    t: float


class SimObject(Protocol):
    """The fields of a simulated track or shower that the tree needs."""

    track_id: int
    mother_track_id: int
    ancestor_track_id: int
    pdg_code: int
    origin: int
    start: _Step
    end: _Step


@dataclass
class MCNode:
    """A simulated track or shower reduced to what tree building needs."""

    origin: int = 0
    pdg: int = 0
    track_id: Optional[int] = None
    start: Vertex = field(default_factory=Vertex)
    end: Vertex = field(default_factory=Vertex)
    source_index: Optional[int] = None
    source_type: SourceType = SourceType.UNKNOWN

    def dump(self) -> str:
        """Return a one-line description of the node."""
        return (
            f"Source {int(self.source_type)} Origin: {self.origin} "
            f"PDG {self.pdg} TrackID {self.track_id}\n"
        )


@dataclass
class MCRoot(MCNode):
    """A primary node together with the nodes attached to it."""

    daughters: List[MCNode] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: MCNode) -> "MCRoot":
        """Make a root with no daughters from a node."""
        return cls(
            origin=node.origin,
            pdg=node.pdg,
            track_id=node.track_id,
            start=node.start,
            end=node.end,
            source_index=node.source_index,
            source_type=node.source_type,
        )

    def is_daughter(self, parent_id: int) -> bool:
        """True when the track id is this root's or one of its daughters'."""
        if self.track_id == parent_id:
            return True
        return any(d.track_id == parent_id for d in self.daughters)

    def is_daughter_vertex(self, vertex: Vertex) -> bool:
        """True when the vertex matches the start or end of any node in this tree."""
        if vertex in (self.start, self.end):
            return True
        return any(vertex in (d.start, d.end) for d in self.daughters)

    def dt(self, node: MCNode) -> float:
        """Smallest positive time from any node in this tree to the node's start; -1 if none."""
        times = [self.start.t, self.end.t]
        for daughter in self.daughters:
            times.extend((daughter.start.t, daughter.end.t))
        positive = [node.start.t - t for t in times if node.start.t - t > 0]
        return min(positive) if positive else -1.0


class MCParticleTree:
    """Builds primaries from tracks and showers and attaches secondaries to them."""

    def __init__(self) -> None:
        self._primaries: List[MCRoot] = []
        self._used_tracks: List[bool] = []
        self._used_showers: List[bool] = []
        self._origin_filter = 0
        self._dt_max = 0.0

    def configure(self, cfg: Mapping[str, Any]) -> None:
        """Read DTMax (required) and Verbosity (optional) from a configuration."""
        if "Verbosity" in cfg:
            level = int(cfg["Verbosity"])
            logger.setLevel(_VERBOSITY_LEVELS.get(level, logging.CRITICAL))
        self._dt_max = float(cfg["DTMax"])

    @property
    def dt_max(self) -> float:
        return self._dt_max

    def filter_origin(self, flag: int) -> None:
        """Only consider objects of this origin; 0 accepts every origin."""
        self._origin_filter = flag

    @property
    def primaries(self) -> List[MCRoot]:
        return self._primaries

    def _passes_origin(self, obj: SimObject) -> bool:
        return not self._origin_filter or obj.origin == self._origin_filter

    @staticmethod
    def _fill_node(obj: SimObject, source_type: SourceType, index: int) -> MCNode:
        return MCNode(
            origin=obj.origin,
            pdg=obj.pdg_code,
            track_id=obj.track_id,
            start=Vertex(obj.start.x, obj.start.y, obj.start.z, obj.start.t),
            end=Vertex(obj.end.x, obj.end.y, obj.end.z, obj.end.t),
            source_index=index,
            source_type=source_type,
        )

    def register(
        self, mctracks: Sequence[SimObject], mcshowers: Sequence[SimObject]
    ) -> None:
        """Rebuild the trees from an event's tracks and showers."""
        self._primaries = []
        self._used_tracks = [False] * len(mctracks)
        self._used_showers = [False] * len(mcshowers)

        self._define_primary(mctracks, mcshowers)
        self._define_secondary(mctracks, mcshowers)
        self._estimate_secondary(mctracks, mcshowers)

        if logger.isEnabledFor(logging.INFO):
            lines = []
            for idx, primary in enumerate(self._primaries):
                lines.append(
                    f"      Primary {idx} Source {int(primary.source_type)} @ "
                    f"{primary.source_index} ... PDG {primary.pdg} TrackID "
                    f"{primary.track_id} with {len(primary.daughters)} children"
                )
                for child_idx, node in enumerate(primary.daughters):
                    lines.append(
                        f"          Child {child_idx} Source {int(node.source_type)} @ "
                        f"{node.source_index} ... PDG {node.pdg} TrackID {node.track_id}"
                    )
                lines.append("")
            logger.info("Particle tree summary...\n%s", "\n".join(lines))

    def _collections(self, mctracks, mcshowers):
        return (
            (mctracks, self._used_tracks, SourceType.MCTRACK),
            (mcshowers, self._used_showers, SourceType.MCSHOWER),
        )

    def _define_primary(self, mctracks, mcshowers) -> None:
        for objects, used, source_type in self._collections(mctracks, mcshowers):
            for index, obj in enumerate(objects):
                if not self._passes_origin(obj):
                    continue
                if obj.track_id != obj.mother_track_id:
                    continue
                logger.info(
                    "Registering primary %s PDG %s track %s origin %s",
                    source_type.name, obj.pdg_code, obj.track_id, obj.origin,
                )
                node = self._fill_node(obj, source_type, index)
                self._primaries.append(MCRoot.from_node(node))
                used[index] = True

    def _used_count(self) -> int:
        return sum(self._used_tracks) + sum(self._used_showers)

    def _define_secondary(self, mctracks, mcshowers) -> None:
        last_count = None
        count = self._used_count()
        while count != last_count:
            last_count = count
            for objects, used, source_type in self._collections(mctracks, mcshowers):
                for index, obj in enumerate(objects):
                    if used[index] or not self._passes_origin(obj):
                        continue
                    primary_idx = self.find_primary(
                        obj.mother_track_id, obj.ancestor_track_id
                    )
                    if primary_idx is None:
                        continue
                    node = self._fill_node(obj, source_type, index)
                    self._primaries[primary_idx].daughters.append(node)
                    used[index] = True
            count = self._used_count()

    def _estimate_secondary(self, mctracks, mcshowers) -> None:
        if self._dt_max <= 0:
            return
        primary_min_time = min((p.start.t for p in self._primaries), default=1.0e20)

        for objects, used, source_type in self._collections(mctracks, mcshowers):
            for index, obj in enumerate(objects):
                if used[index] or not self._passes_origin(obj):
                    continue
                node = self._fill_node(obj, source_type, index)
                if node.start.t < primary_min_time:
                    logger.info(
                        "Ignoring %s (track id %s) as it comes before any primary in time",
                        source_type.name, node.track_id,
                    )
                    continue
                best_idx = None
                min_dt = 1.0e20
                for idx, primary in enumerate(self._primaries):
                    dt = primary.dt(node)
                    if 0 <= dt < min_dt:
                        min_dt = dt
                        best_idx = idx
                if best_idx is None or min_dt > self._dt_max:
                    continue
                self._primaries[best_idx].daughters.append(node)
                used[index] = True

    def find_primary(
        self, parent_id: Optional[int], ancestor_id: Optional[int]
    ) -> Optional[int]:
        """Index of the primary owning the parent id, else the ancestor id; None if neither."""
        for track_id in (parent_id, ancestor_id):
            if track_id is None:
                continue
            for idx, primary in enumerate(self._primaries):
                if primary.is_daughter(track_id):
                    return idx
        return None

    def dump(self) -> str:
        """Describe every primary and its secondaries; the text is also logged."""
        parts = []
        for idx, primary in enumerate(self._primaries):
            parts.append(f"Primary {idx}\n as MCNode: {primary.dump()}")
            parts.append("Dumping secondaries...\n")
            parts.extend(f"    {d.dump()}" for d in primary.daughters)
        parts.append("... all dumped\n")
        text = "".join(parts)
        logger.debug("%s", text)
        return text