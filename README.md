# supera

Pure-Python building blocks for turning liquid-argon TPC simulation
records (tracks, showers, energy deposits, space points) into voxelised
data and particle labels. It has no dependencies outside the standard
library.

## Installation

    pip install .

To run the test suite:

    pip install ".[test]"
    pytest

## Modules

- `supera.genrandom` – `GenRandom`, a process-wide singleton
  (`GenRandom.get()`) holding a flat random generator. Install any object
  with a `uniform(a, b)` method, such as `random.Random`, through
  `set_flat_gen`; `flat(low, high)` raises `RuntimeError` until one is set.
- `supera.voxels` – `Voxel`, `VoxelSet` (voxels keyed by id, listed in id
  order by `as_vector`, looked up with `find`), `FastVoxelSet` (an
  accumulator emptied into a `VoxelSet` with `move_to`), `Voxel3DMeta`
  (a regular grid with `id(x, y, z)` and `position(voxel_id)`), plus
  `RecoVoxel3D`, `TrackVoxel` and `TrueHit`. `INVALID_VOXELID` marks a
  point off the grid or a missing voxel.
- `supera.mcparticle_list` – `MCParticleList.update(particles, run, event)`
  builds per-particle tables of track id, PDG code, parent index, parent
  track id, parent PDG code and ancestor index / track id (`-1` where
  unknown). Repeated calls for the same run and event do nothing.
- `supera.mcparticle_tree` – `MCParticleTree` groups simulated tracks and
  showers under their primaries (`MCRoot`, holding `MCNode` daughters),
  first by exact parentage and then, when `DTMax` is positive, by the
  closest positive time difference. `filter_origin` restricts the objects
  considered; `find_primary` and `dump` inspect the result.
- `supera.particle` – `Particle` records, `EDep` deposition points,
  `ParticleGroup` (voxel sets per particle, with `merge`, `add_edep`,
  `size_all`, `size_check` and semantic classification through `shape()`
  returning a `ShapeType`), the `ProcessType` enum, and `MCParticleHelper`,
  which builds particles from tracks (`make_track_particle`) and showers
  (`make_shower_particle`), optionally through a space-charge correction
  callable.
- `supera.bbox` – `Point3D`, `BBox3D` and `BBoxInteraction`, which fits a
  box of fixed size around an interaction's generator vertices and energy
  deposits (or uses a fixed box), randomises its placement with
  `GenRandom`, and returns the `Voxel3DMeta` spanning it (`make_meta`).
- `supera.base` – `SuperaBase`, a process that reads producer labels from
  a configuration mapping, records requested data per `LArDataType`, and
  hands out the data provided for the event (`lar_data`), raising
  `DataNotAvailableError` when something was not provided.
- `supera.segment` – ghost labelling (`label_ghost`), distance-based
  space-point labelling (`segment_spacepoints`), voxelisation of space
  points (`cluster_spacepoints`), and `NodeFilter`, which applies energy
  thresholds to particle-tree nodes.

Simulated objects are read by attribute (`track_id`, `pdg_code`, `start`,
`steps`, ...), so any objects carrying those fields can be passed in.

## Examples

```python
from supera.voxels import VoxelSet

vs = VoxelSet()
vs.emplace(10, 1.5, False)
vs.emplace(10, 0.5, True)   # accumulates to 2.0
print(vs.find(10).value)
```

```python
from types import SimpleNamespace as NS
from supera.mcparticle_tree import MCParticleTree

def step(t):
    return NS(x=0.0, y=0.0, z=0.0, t=t)

muon = NS(track_id=1, mother_track_id=1, ancestor_track_id=1,
          pdg_code=13, origin=1, start=step(0.0), end=step(1.0))
delta = NS(track_id=2, mother_track_id=1, ancestor_track_id=1,
           pdg_code=11, origin=1, start=step(0.5), end=step(0.6))

tree = MCParticleTree()
tree.configure({"DTMax": 0})
tree.register([muon, delta], [])
print(tree.primaries[0].daughters[0].track_id)   # 2
```

```python
import random
from supera.genrandom import GenRandom
from supera.bbox import BBox3D, BBoxInteraction

GenRandom.get().set_flat_gen(random.Random(1))
world = BBox3D(-100, -100, -100, 100, 100, 100)
fitter = BBoxInteraction((50, 50, 50), (1, 1, 1), world,
                         use_fixed_bbox=True, bbox_bottom=(0, 0, 0))
meta = fitter.make_meta([], [])
print(meta.num_x, meta.id(0.5, 0.5, 0.5))   # 50 0
```

## What this package does not do

It provides the processing steps only. It does not read or write event
files, does not read run/subrun/event constraint files, does not drive a
sequence of processes over a stream of events, and has no command-line
program. The caller supplies the simulated records and keeps the
results.