"""Voxel containers, particle trees, particle labels, bounding boxes and segmentation for liquid-argon TPC simulation data."""

__version__ = "0.1.0"

__all__ = [
    "base",
    "bbox",
    "genrandom",
    "mcparticle_list",
    "mcparticle_tree",
    "particle",
    "segment",
    "voxels",
]