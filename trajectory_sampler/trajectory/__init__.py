"""
Trajectory module.

Straight-line tracks through the cube and how they are drawn and walked:
- Trajectory (slopes and intercepts)
- Slope distributions (Beta and empirical)
- Cube walker (per-frame pixel samples)
"""

from .vector import Trajectory
from .slope_distribution import (
    SlopeDistribution,
    BetaSlopeDistribution,
    EmpiricalSlopeDistribution,
    beta_slope_factory,
    empirical_slope_factory,
)
from .walker import CubeTrajectoryWalker, PixelSample

__all__ = [
    "Trajectory",
    "SlopeDistribution",
    "BetaSlopeDistribution",
    "EmpiricalSlopeDistribution",
    "beta_slope_factory",
    "empirical_slope_factory",
    "CubeTrajectoryWalker",
    "PixelSample",
]
