"""
Slope distributions for random trajectories.

Every distribution produces one (x_slope, y_slope) pair per draw. The
distribution is chosen once when a run is configured; each sampling worker
then builds its own instance around its own random generator, so no state
is shared between threads.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

import numpy as np
from scipy import stats

from ..errors import ConfigurationError

log = logging.getLogger(__name__)


class SlopeDistribution(ABC):
    """Abstract base class for slope distributions."""

    @abstractmethod
    def draw(self) -> Tuple[float, float]:
        """
        Draw one pair of slopes.

        Returns:
            (x_slope, y_slope)
        """
        pass

    def __call__(self) -> Tuple[float, float]:
        return self.draw()


@dataclass
class BetaSlopeDistribution(SlopeDistribution):
    """
    Independent Beta draws for each axis, remapped to a slope range.

    Attributes:
        alpha: First Beta shape parameter
        beta: Second Beta shape parameter
        slope_min: Slope that a draw of 0 maps to
        slope_max: Slope that a draw of 1 maps to
        rng: Random generator owned by this instance
    """
    alpha: float = 3.0
    beta: float = 2.0
    slope_min: float = 0.0
    slope_max: float = 1.0
    rng: np.random.Generator = field(default_factory=np.random.default_rng, repr=False)

    def __post_init__(self):
        if self.alpha <= 0 or self.beta <= 0:
            raise ValueError(f"Beta shape parameters must be positive, got ({self.alpha}, {self.beta})")
        if self.slope_min > self.slope_max:
            raise ValueError(f"slope_min ({self.slope_min}) > slope_max ({self.slope_max})")
        self._dist = stats.beta(self.alpha, self.beta)

    def draw(self) -> Tuple[float, float]:
        u = self._dist.rvs(size=2, random_state=self.rng)
        slopes = self.slope_min + u * (self.slope_max - self.slope_min)
        return (float(slopes[0]), float(slopes[1]))


class EmpiricalSlopeDistribution(SlopeDistribution):
    """
    Slopes drawn from a table of observed or desired values.

    The table has two or three columns. With two columns each row is a raw
    (x_slope, y_slope) sample and rows are drawn uniformly with replacement.
    A third column gives each row a weight; rows are then drawn by inverse
    CDF sampling over the normalised cumulative weights.

    Args:
        slopes: (N, 2) array of slope pairs
        weights: Optional (N,) non-negative weights
        rng: Random generator owned by this instance
    """

    def __init__(
        self,
        slopes: np.ndarray,
        weights: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        slopes = np.asarray(slopes, dtype=np.float64)
        if slopes.ndim != 2 or slopes.shape[1] != 2 or len(slopes) == 0:
            raise ValueError(f"Slope table must have shape (N, 2), got {slopes.shape}")

        self.slopes = slopes
        self.rng = rng if rng is not None else np.random.default_rng()
        self._cdf: Optional[np.ndarray] = None

        if weights is not None:
            weights = np.asarray(weights, dtype=np.float64)
            if weights.shape != (len(slopes),):
                raise ValueError(f"Expected {len(slopes)} weights, got shape {weights.shape}")
            if np.any(weights < 0) or not np.isfinite(weights).all():
                raise ValueError("Slope weights must be finite and non-negative")
            total = weights.sum()
            if total <= 0:
                raise ValueError("Slope weights sum to zero")
            self._cdf = np.cumsum(weights) / total

    @property
    def weighted(self) -> bool:
        """True if rows are drawn by their weights."""
        return self._cdf is not None

    def __len__(self) -> int:
        return len(self.slopes)

    def draw(self) -> Tuple[float, float]:
        if self._cdf is None:
            row = self.rng.integers(len(self.slopes))
        else:
            row = int(np.searchsorted(self._cdf, self.rng.random(), side="right"))
            row = min(row, len(self.slopes) - 1)
        x_slope, y_slope = self.slopes[row]
        return (float(x_slope), float(y_slope))

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        rng: Optional[np.random.Generator] = None,
    ) -> "EmpiricalSlopeDistribution":
        """
        Load a slope table from a text file.

        Columns may be separated by whitespace or commas; lines starting with
        '#' are ignored.

        Raises:
            ConfigurationError: If the file is missing, unreadable or malformed
        """
        table = load_slope_table(path)
        if table.shape[1] == 3:
            return cls(table[:, :2], weights=table[:, 2], rng=rng)
        return cls(table, rng=rng)


def load_slope_table(path: Union[str, Path]) -> np.ndarray:
    """
    Read and validate a slope table file.

    Returns:
        (N, 2) or (N, 3) float64 array
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Cannot open slope distribution file {path}")

    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigurationError(f"Cannot open slope distribution file {path}: {exc}") from exc

    rows = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        try:
            rows.append([float(tok) for tok in line.replace(",", " ").split()])
        except ValueError as exc:
            raise ConfigurationError(f"Malformed slope distribution file {path}, line {lineno}: {exc}") from exc

    if not rows:
        raise ConfigurationError(f"Slope distribution file {path} is empty")

    widths = {len(r) for r in rows}
    if len(widths) != 1 or widths.pop() not in (2, 3):
        raise ConfigurationError(
            f"Slope distribution file {path} must have 2 or 3 columns on every line"
        )

    table = np.array(rows, dtype=np.float64)
    if table.shape[1] == 3:
        weights = table[:, 2]
        if np.any(weights < 0) or weights.sum() <= 0:
            raise ConfigurationError(
                f"Slope distribution file {path} has negative weights or zero total weight"
            )
    return table


SlopeFactory = Callable[[np.random.Generator], SlopeDistribution]


def beta_slope_factory(
    alpha: float = 3.0,
    beta: float = 2.0,
    slope_min: float = 0.0,
    slope_max: float = 1.0,
) -> SlopeFactory:
    """Factory building a BetaSlopeDistribution around a worker's generator."""
    # Validate once, before any worker starts
    BetaSlopeDistribution(alpha, beta, slope_min, slope_max)

    def factory(rng: np.random.Generator) -> SlopeDistribution:
        return BetaSlopeDistribution(alpha, beta, slope_min, slope_max, rng=rng)

    return factory


def empirical_slope_factory(path: Union[str, Path]) -> SlopeFactory:
    """
    Factory sharing one loaded table between per-worker distributions.

    The file is read here, at configuration time, so a missing or malformed
    file is reported before sampling starts. Workers only read the table.
    """
    table = load_slope_table(path)
    slopes = table[:, :2]
    weights = table[:, 2] if table.shape[1] == 3 else None
    log.info("Loaded %d slope rows from %s (%s)", len(table), path,
             "weighted" if weights is not None else "raw samples")

    def factory(rng: np.random.Generator) -> SlopeDistribution:
        return EmpiricalSlopeDistribution(slopes, weights=weights, rng=rng)

    return factory
