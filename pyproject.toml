[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "supera"
version = "0.1.0"
description = "Building blocks for turning liquid-argon TPC simulation records into voxelised data and particle labels"
requires-python = ">=3.10"
dependencies = []
keywords = ["lartpc", "voxel", "particle physics", "simulation", "machine learning"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["supera"]

[tool.pytest.ini_options]
addopts = "-ra"
