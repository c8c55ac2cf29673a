"""
Linear trajectory model.

A trajectory is a straight line through the image plane parametrised by
elapsed time since the first frame:

    x(t) = x_intercept + x_slope * t
    y(t) = y_intercept + y_slope * t

Pixel positions are rounded half away from zero.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(frozen=True)
class Trajectory:
    """
    Straight-line track across the frames of a cube.

    Attributes:
        x_slope: Pixels per time unit along x
        x_intercept: x position at frame 0
        y_slope: Pixels per time unit along y
        y_intercept: y position at frame 0
    """
    x_slope: float
    x_intercept: float
    y_slope: float
    y_intercept: float

    def position(self, time_offset: float) -> Tuple[int, int]:
        """
        Pixel position after ``time_offset`` has elapsed since frame 0.

        Returns:
            (x, y) integer pixel coordinate
        """
        x = round_half_away(self.x_intercept + self.x_slope * time_offset)
        y = round_half_away(self.y_intercept + self.y_slope * time_offset)
        return (x, y)

    def positions(self, time_offsets: np.ndarray) -> np.ndarray:
        """
        Pixel positions for an array of time offsets.

        Returns:
            (N, 2) integer array of (x, y)
        """
        t = np.asarray(time_offsets, dtype=np.float64)
        xy = np.stack([
            self.x_intercept + self.x_slope * t,
            self.y_intercept + self.y_slope * t,
        ], axis=-1)
        return (np.sign(xy) * np.floor(np.abs(xy) + 0.5)).astype(np.int64)

    @property
    def speed(self) -> float:
        """Magnitude of the slope vector."""
        return float(np.hypot(self.x_slope, self.y_slope))
