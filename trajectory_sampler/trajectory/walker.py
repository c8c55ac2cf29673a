"""
Walk a cube along a trajectory.

For every frame the walker computes where the trajectory lands and yields
either the pixel sample found there or None when there is no usable data
(the position is outside the cube or the pixel is NaN).
"""

import math
from typing import TYPE_CHECKING, Iterator, NamedTuple, Optional, Tuple

from .vector import Trajectory

if TYPE_CHECKING:
    from ..cube.cube import Cube


class PixelSample(NamedTuple):
    """Pixel data for one frame of a trajectory."""

    value: float
    pixel_count: int
    exposure: float


class CubeTrajectoryWalker:
    """
    Restartable, forward-only iterable over the frames of a cube.

    Each call to ``iter()`` starts a fresh pass, so a walker can be reused
    for repeated traversal. Walkers only read the cube and can run
    concurrently.

    Args:
        cube: Cube to sample
        trajectory: Track to follow
        start_time_offset: Skip frames whose elapsed time since frame 0 is
            below this value
    """

    def __init__(self, cube: "Cube", trajectory: Trajectory, start_time_offset: float = 0.0):
        self.cube = cube
        self.trajectory = trajectory
        self.start_time_offset = start_time_offset

    def _first_frame(self) -> int:
        offsets = self.cube.time_offsets
        for k in range(len(offsets)):
            if offsets[k] >= self.start_time_offset:
                return k
        return len(offsets)

    def positions(self) -> Iterator[Tuple[int, int, int]]:
        """Yield (k, x, y) for every frame visited."""
        first = self._first_frame()
        xy = self.trajectory.positions(self.cube.time_offsets[first:])
        for k, (x, y) in enumerate(xy, start=first):
            yield (k, int(x), int(y))

    def __iter__(self) -> Iterator[Optional[PixelSample]]:
        cube = self.cube
        for k, x, y in self.positions():
            if cube.out_of_range(x, y, k):
                yield None
                continue

            value = cube.get_pixel_value(x, y, k)
            if math.isnan(value):
                yield None
            else:
                yield PixelSample(value, 1, cube.exposure(k))
