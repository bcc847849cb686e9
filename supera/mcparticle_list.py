"""Parent and ancestor bookkeeping for a list of simulated particles."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence


class SimParticle(Protocol):
    """The fields of a simulated particle that the list needs."""

    track_id: int
    pdg_code: int
    mother: int


class MCParticleList:
    """Per-particle parentage tables, indexed like the particle list.

    Each table holds -1 where the information is not available.
    """

    def __init__(self) -> None:
        self._run: Optional[int] = None
        self._event: Optional[int] = None
        self.track_id: List[int] = []
        self.pdg_code: List[int] = []
        self.parent_index: List[int] = []
        self.parent_track_id: List[int] = []
        self.parent_pdg_code: List[int] = []
        self.ancestor_index: List[int] = []
        self.ancestor_track_id: List[int] = []
        self.trackid_to_index: List[int] = []

    def update(self, particles: Sequence[SimParticle], run: int, event: int) -> None:
        """Rebuild the tables for an event; repeated calls for the same event do nothing."""
        if run == self._run and event == self._event:
            return
        self._run = run
        self._event = event

        count = len(particles)
        self.track_id = [-1] * count
        self.pdg_code = [-1] * count
        self.parent_index = [-1] * count
        self.parent_track_id = [-1] * count
        self.parent_pdg_code = [-1] * count
        self.ancestor_index = [-1] * count
        self.ancestor_track_id = [-1] * count
        self.trackid_to_index = [-1] * max(len(self.trackid_to_index), count)

        lookup = self.trackid_to_index
        for index, part in enumerate(particles):
            self.track_id[index] = abs(part.track_id)
            self.pdg_code[index] = abs(part.pdg_code)
            self.parent_track_id[index] = part.mother
            if part.track_id < 0:
                continue
            if part.track_id >= len(lookup):
                lookup.extend([-1] * (part.track_id + 1 - len(lookup)))
            lookup[part.track_id] = index

        for index, part in enumerate(particles):
            mother_id = part.mother
            if mother_id == 0:
                mother_id = abs(part.track_id)
            if 0 <= mother_id < len(lookup):
                mother_index = lookup[mother_id]
                if mother_index >= 0:
                    self.parent_pdg_code[index] = particles[mother_index].pdg_code
                    self.parent_index[index] = mother_index

            self.ancestor_index[index], self.ancestor_track_id[index] = self._ancestor(
                particles, part
            )

    def _ancestor(self, particles: Sequence[SimParticle], part: SimParticle) -> tuple:
        """Follow the mother chain to its root; (-1, -1) if the chain is broken."""
        lookup = self.trackid_to_index
        subject = abs(part.track_id)
        parent = abs(part.mother)
        seen = set()
        while parent < len(lookup):
            if parent == 0 or parent == subject:
                root_index = lookup[subject] if subject < len(lookup) else -1
                return root_index, subject
            if parent in seen:
                break
            seen.add(parent)
            parent_index = lookup[parent]
            if parent_index < 0:
                break
            ancestor = particles[parent_index]
            subject = abs(ancestor.track_id)
            parent = abs(ancestor.mother)
        return -1, -1