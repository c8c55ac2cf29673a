"""
Trajectory catalog output.

Writes shooting results as a CSV catalog, one row per draw, and builds a
ranked text report of the best trajectories with the pixel values found
along each one.
"""

import csv
import logging
import math
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..cube.cube import Cube
from ..trajectory.vector import Trajectory
from ..trajectory.walker import CubeTrajectoryWalker
from .shoot import TrajectoryResult

log = logging.getLogger(__name__)


CATALOG_COLUMNS = [
    "ID",
    "X_INTERCEPT",
    "Y_INTERCEPT",
    "X_SLOPE",
    "Y_SLOPE",
    "SNR",
    "SUM",
    "NUMBER_OF_FRAMES_HIT",
]

DEFAULT_CATALOG_NAME = "vector_output.csv"


def catalog_rows(results: Sequence[TrajectoryResult]) -> Iterable[list]:
    """Yield catalog rows in draw order; ID is the draw index."""
    for i, result in enumerate(results):
        traj = result.trajectory
        yield [
            i,
            traj.x_intercept,
            traj.y_intercept,
            traj.x_slope,
            traj.y_slope,
            result.snr,
            result.total_signal,
            result.frames_hit,
        ]


def write_catalog(
    results: Sequence[TrajectoryResult],
    path: Union[str, Path] = DEFAULT_CATALOG_NAME,
) -> Path:
    """
    Write results to a CSV catalog.

    Args:
        results: Shooting results, results[i] from draw i
        path: Output file

    Returns:
        Path of the written catalog
    """
    path = Path(path)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CATALOG_COLUMNS)
        writer.writerows(catalog_rows(results))

    log.info("Wrote %d catalog rows to %s", len(results), path)
    return path


def read_catalog(path: Union[str, Path]) -> List[dict]:
    """Read a catalog back as a list of dicts with numeric values."""
    rows = []
    with open(path, newline="") as f:
        for row in csv.DictReader(f):
            rows.append({
                "ID": int(row["ID"]),
                "X_INTERCEPT": float(row["X_INTERCEPT"]),
                "Y_INTERCEPT": float(row["Y_INTERCEPT"]),
                "X_SLOPE": float(row["X_SLOPE"]),
                "Y_SLOPE": float(row["Y_SLOPE"]),
                "SNR": float(row["SNR"]),
                "SUM": float(row["SUM"]),
                "NUMBER_OF_FRAMES_HIT": int(row["NUMBER_OF_FRAMES_HIT"]),
            })
    return rows


def top_results(
    results: Sequence[TrajectoryResult],
    n: int,
) -> List[Tuple[int, TrajectoryResult]]:
    """
    Best ``n`` results by descending SNR.

    NaN SNRs rank last.

    Returns:
        List of (draw index, result)
    """
    def key(item):
        snr = item[1].snr
        return (math.isnan(snr), -snr if not math.isnan(snr) else 0.0)

    ranked = sorted(enumerate(results), key=key)
    return ranked[:max(n, 0)]


def trace_trajectory(
    cube: Cube,
    trajectory: Trajectory,
) -> List[Tuple[int, int, int, Optional[float]]]:
    """
    Pixel values along a trajectory, one entry per frame.

    Returns:
        List of (k, x, y, value); value is None where the trajectory leaves
        the cube. NaN pixels are reported as NaN.
    """
    trace = []
    for k, x, y in CubeTrajectoryWalker(cube, trajectory).positions():
        if cube.out_of_range(x, y, k):
            trace.append((k, x, y, None))
        else:
            trace.append((k, x, y, cube.get_pixel_value(x, y, k)))
    return trace


def format_top_report(
    cube: Cube,
    results: Sequence[TrajectoryResult],
    n: int = 10,
) -> str:
    """
    Text report of the top ``n`` trajectories with their per-frame values.
    """
    lines = [f"Top {n} SNR values and pixel values (OOR = out of range)"]
    for rank, (index, result) in enumerate(top_results(results, n)):
        traj = result.trajectory
        lines.append(f"[{rank}] ID {index}")
        lines.append(
            f"SNR: {result.snr:.6g}  SUM: {result.total_signal:.6g}  "
            f"frames hit: {result.frames_hit}"
        )
        lines.append(
            "Vector (x-slope, x-intercept, y-slope, y-intercept): "
            f"{traj.x_slope}, {traj.x_intercept}, {traj.y_slope}, {traj.y_intercept} "
            f"(speed {traj.speed:.4g})"
        )
        lines.append("Values (x, y, k):")
        for k, x, y, value in trace_trajectory(cube, traj):
            shown = "OOR" if value is None else f"{value}"
            lines.append(f" [ {x}, {y}, {k} ] = {shown}")
        lines.append("")
    return "\n".join(lines)
