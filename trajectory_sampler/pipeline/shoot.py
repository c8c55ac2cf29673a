"""
Parallel Monte Carlo shooting of random trajectories.

Draws N random trajectories through a cube, walks each one and records its
detection statistics. Work is split into contiguous index chunks, one per
worker thread. Every worker owns its random generator (seeded with
``base_seed + worker_id``) and its slope distribution, and writes only the
result slots of its own chunk, so the result list needs no locking.

Results are reproducible for a fixed worker count. Changing the worker
count changes which seed stream produces which draw, but each result still
depends only on its own slopes and intercepts.
"""

import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Union

import numpy as np

from ..cube.cube import Cube
from ..trajectory.slope_distribution import SlopeFactory, beta_slope_factory
from ..trajectory.vector import Trajectory
from ..trajectory.walker import CubeTrajectoryWalker
from .statistics import DECAM_NOISE, InstrumentNoise, vector_info

log = logging.getLogger(__name__)


DEFAULT_NUM_VECTORS = 100000
DEFAULT_BASE_SEED = 123


class TrajectoryResult(NamedTuple):
    """Statistics recorded for one random trajectory."""

    trajectory: Trajectory
    snr: float
    total_signal: float
    frames_hit: int


class ShootResult(NamedTuple):
    """
    Output of a shooting run.

    ``elapsed_time`` is the summed per-draw time spent walking and
    accumulating, across all workers, not the wall time of the whole run.
    """

    elapsed_time: float
    results: List[TrajectoryResult]

    @property
    def vectors_per_second(self) -> float:
        if self.elapsed_time <= 0:
            return float("inf") if self.results else 0.0
        return len(self.results) / self.elapsed_time


class StartMode(Enum):
    """How trajectory start points are chosen."""

    # Uniform integer x/y intercepts over the first frame
    UNIFORM = "uniform"
    # Random stored pixel projected back to frame 0 along the drawn slopes
    RESIDENT = "resident"


def partition(num_vectors: int, num_workers: int) -> List[range]:
    """
    Split draw indices 0..num_vectors-1 into contiguous per-worker chunks.

    Chunk sizes differ by at most one. Workers beyond ``num_vectors`` get
    empty chunks.
    """
    base, extra = divmod(num_vectors, num_workers)
    chunks = []
    start = 0
    for worker_id in range(num_workers):
        stop = start + base + (1 if worker_id < extra else 0)
        chunks.append(range(start, stop))
        start = stop
    return chunks


@dataclass
class ShootingEngine:
    """
    Monte Carlo driver.

    Attributes:
        slope_factory: Builds a worker's slope distribution from its generator
        num_workers: Number of worker threads
        base_seed: Worker w seeds its generator with base_seed + w
        noise: Detector noise constants for the SNR
        start_mode: How start points are drawn
        log_every: Log worker progress every this many draws (0 disables)
    """
    slope_factory: SlopeFactory = field(default_factory=beta_slope_factory)
    num_workers: int = 1
    base_seed: int = DEFAULT_BASE_SEED
    noise: InstrumentNoise = DECAM_NOISE
    start_mode: Union[StartMode, str] = StartMode.UNIFORM
    log_every: int = 0

    def __post_init__(self):
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {self.num_workers}")
        if self.log_every < 0:
            raise ValueError(f"log_every must be >= 0, got {self.log_every}")
        if isinstance(self.start_mode, str):
            self.start_mode = StartMode(self.start_mode)

    def shoot(self, cube: Cube, num_vectors: int = DEFAULT_NUM_VECTORS) -> ShootResult:
        """
        Draw and evaluate ``num_vectors`` random trajectories.

        Args:
            cube: Cube to sample; read-only for the whole run
            num_vectors: Number of trajectories N

        Returns:
            ShootResult whose results[i] belongs to draw i
        """
        if num_vectors < 0:
            raise ValueError(f"num_vectors must be >= 0, got {num_vectors}")
        self._check_cube(cube, num_vectors)

        results: List[Optional[TrajectoryResult]] = [None] * num_vectors
        chunks = partition(num_vectors, self.num_workers)

        if self.num_workers == 1:
            worker_times = [self._run_worker(cube, 0, chunks[0], results)]
        else:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.num_workers,
                thread_name_prefix="shooter",
            ) as executor:
                futures = [
                    executor.submit(self._run_worker, cube, worker_id, chunk, results)
                    for worker_id, chunk in enumerate(chunks)
                ]
                worker_times = [future.result() for future in futures]

        elapsed = float(sum(worker_times))
        log.info(
            "Shot %d vectors with %d worker(s) in %.3f s",
            num_vectors, self.num_workers, elapsed,
        )
        return ShootResult(elapsed, results)

    def _check_cube(self, cube: Cube, num_vectors: int) -> None:
        if num_vectors == 0:
            return
        size_x, size_y, _ = cube.size()
        if size_x == 0 or size_y == 0:
            raise ValueError(f"Cannot place trajectories in an empty frame ({size_x}x{size_y})")
        if self.start_mode is StartMode.RESIDENT and cube.cube_size() == 0:
            raise ValueError("Resident start mode needs a cube with at least one pixel")

    def _run_worker(
        self,
        cube: Cube,
        worker_id: int,
        indices: Sequence[int],
        results: List[Optional[TrajectoryResult]],
    ) -> float:
        """Process one chunk of draws; returns the summed per-draw time."""
        rng = np.random.default_rng(self.base_seed + worker_id)
        slopes = self.slope_factory(rng)
        size_x, size_y, _ = cube.size()
        cube_size = cube.cube_size()

        log.debug(
            "Worker %d: %d draws starting at index %d",
            worker_id, len(indices), indices[0] if len(indices) else 0,
        )

        elapsed = 0.0
        for n, i in enumerate(indices, start=1):
            x_slope, y_slope = slopes.draw()

            if self.start_mode is StartMode.RESIDENT:
                index = int(rng.integers(cube_size))
                x_intercept, y_intercept, _ = cube.get_random_coordinate(index, x_slope, y_slope)
            else:
                x_intercept = int(rng.integers(size_x))
                y_intercept = int(rng.integers(size_y))

            trajectory = Trajectory(x_slope, float(x_intercept), y_slope, float(y_intercept))

            start = time.perf_counter()
            info = vector_info(CubeTrajectoryWalker(cube, trajectory, 0.0), self.noise)
            results[i] = TrajectoryResult(trajectory, info.snr, info.total_signal, info.frames_hit)
            elapsed += time.perf_counter() - start

            if self.log_every and n % self.log_every == 0:
                log.debug("Worker %d: %d/%d draws done", worker_id, n, len(indices))

        return elapsed


def shoot_vectors(
    cube: Cube,
    num_vectors: int = DEFAULT_NUM_VECTORS,
    **engine_kwargs,
) -> ShootResult:
    """
    Convenience function to run a ShootingEngine once.

    Args:
        cube: Cube to sample
        num_vectors: Number of random trajectories
        **engine_kwargs: Arguments passed to ShootingEngine

    Returns:
        ShootResult
    """
    return ShootingEngine(**engine_kwargs).shoot(cube, num_vectors)
