"""
Monte Carlo Trajectory Sampler

Searches a time-indexed stack of astronomical images for faint moving
objects by co-adding pixels along many random straight-line trajectories:

- Cube: bounds-checked (x, y, frame) view over a pixel store plus per-frame
  metadata (timestamp, exposure, PSF, sky noise)
- Trajectory: linear track, slope distributions, and the frame walker
- Pipeline: SNR accumulation, parallel shooting, and the CSV catalog
"""

from .cube import Cube, FrameMetadata, allocate_pixel_store
from .errors import ConfigurationError
from .pipeline import ShootingEngine, shoot_vectors, vector_info, write_catalog
from .trajectory import Trajectory, CubeTrajectoryWalker

__all__ = [
    "Cube",
    "FrameMetadata",
    "allocate_pixel_store",
    "ConfigurationError",
    "ShootingEngine",
    "shoot_vectors",
    "vector_info",
    "write_catalog",
    "Trajectory",
    "CubeTrajectoryWalker",
]
