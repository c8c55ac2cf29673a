"""
Sampling pipeline module.

Provides the statistics accumulator, the parallel shooting engine and the
catalog writer.
"""

from .statistics import InstrumentNoise, VectorInfo, vector_info
from .shoot import ShootingEngine, ShootResult, StartMode, TrajectoryResult, shoot_vectors
from .catalog import format_top_report, top_results, write_catalog

__all__ = [
    "InstrumentNoise",
    "VectorInfo",
    "vector_info",
    "ShootingEngine",
    "ShootResult",
    "StartMode",
    "TrajectoryResult",
    "shoot_vectors",
    "format_top_report",
    "top_results",
    "write_catalog",
]
