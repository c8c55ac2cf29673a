"""
Per-frame observational metadata.

Each frame of a cube carries a timestamp, an exposure time, a PSF width
and a sky background level. Values are loaded from plain text files with
one value per line, or filled with defaults when no file is given.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from ..errors import ConfigurationError

log = logging.getLogger(__name__)


# Defaults used when a metadata file is not supplied
DEFAULT_FRAME_INTERVAL = 1.0
DEFAULT_EXPOSURE_S = 40.0
DEFAULT_PSF = 1.0
DEFAULT_NOISE = 0.0


@dataclass(frozen=True)
class FrameMetadata:
    """
    Metadata table for the K frames of a cube.

    Attributes:
        timestamp: Frame times in hundredths of a second (non-decreasing by
            convention, not enforced)
        exposure: Exposure time of each frame in seconds, positive
        psf: PSF width of each frame, positive
        noise: Average background sky level of each frame
        ra_dec: Optional (K, 2) array of boresight RA/Dec per frame
    """
    timestamp: np.ndarray
    exposure: np.ndarray
    psf: np.ndarray
    noise: np.ndarray
    ra_dec: Optional[np.ndarray] = None

    def __post_init__(self):
        for name in ("timestamp", "exposure", "psf", "noise"):
            values = np.array(getattr(self, name), dtype=np.float64)
            values.setflags(write=False)
            object.__setattr__(self, name, values)
        if self.ra_dec is not None:
            ra_dec = np.array(self.ra_dec, dtype=np.float64).reshape(-1, 2)
            ra_dec.setflags(write=False)
            object.__setattr__(self, "ra_dec", ra_dec)
        for name in ("exposure", "psf"):
            values = getattr(self, name)
            if not (values > 0).all():
                raise ValueError(f"{name} values must be positive, got {values.tolist()}")

    @property
    def num_frames(self) -> int:
        """Number of frames every column can serve."""
        lengths = [len(self.timestamp), len(self.exposure), len(self.psf), len(self.noise)]
        if self.ra_dec is not None:
            lengths.append(len(self.ra_dec))
        return min(lengths)

    def covers(self, size_k: int) -> bool:
        """True if every column has at least ``size_k`` entries."""
        return self.num_frames >= size_k

    @classmethod
    def defaults(cls, size_k: int) -> "FrameMetadata":
        """Metadata for ``size_k`` frames spaced one unit apart."""
        return cls(
            timestamp=np.arange(size_k, dtype=np.float64) * DEFAULT_FRAME_INTERVAL,
            exposure=np.full(size_k, DEFAULT_EXPOSURE_S),
            psf=np.full(size_k, DEFAULT_PSF),
            noise=np.full(size_k, DEFAULT_NOISE),
        )

    @classmethod
    def from_files(
        cls,
        size_k: int,
        timestamp_file: Optional[Union[str, Path]] = None,
        exposure_file: Optional[Union[str, Path]] = None,
        psf_file: Optional[Union[str, Path]] = None,
        noise_file: Optional[Union[str, Path]] = None,
        ra_dec_file: Optional[Union[str, Path]] = None,
    ) -> "FrameMetadata":
        """
        Build the table from per-frame text files.

        Any file left as None falls back to the column default. A file that
        is given must hold exactly ``size_k`` values.

        Raises:
            ConfigurationError: If a file cannot be read, holds a value that
                is not a number, has the wrong number of lines, or holds a
                non-positive exposure time or PSF width
        """
        return cls(
            timestamp=read_frame_values(
                timestamp_file, size_k,
                default=np.arange(size_k, dtype=np.float64) * DEFAULT_FRAME_INTERVAL,
                label="timestamp",
            ),
            exposure=read_frame_values(
                exposure_file, size_k, DEFAULT_EXPOSURE_S, "exposure time", positive=True,
            ),
            psf=read_frame_values(psf_file, size_k, DEFAULT_PSF, "psf", positive=True),
            noise=read_frame_values(noise_file, size_k, DEFAULT_NOISE, "noise"),
            ra_dec=read_ra_dec(ra_dec_file, size_k) if ra_dec_file is not None else None,
        )


def read_frame_values(
    path: Optional[Union[str, Path]],
    size_k: int,
    default: Union[float, Sequence[float], np.ndarray],
    label: str = "metadata",
    positive: bool = False,
) -> np.ndarray:
    """
    Read one value per frame from a text file.

    Values may be separated by any whitespace; the file must contain exactly
    one value for each of the ``size_k`` frames.

    Args:
        path: File to read, or None to use ``default``
        size_k: Number of frames in the cube
        default: Scalar fill value or full array used when ``path`` is None
        label: Column name used in log and error messages
        positive: Reject zero, negative and NaN values

    Returns:
        Array of ``size_k`` float64 values
    """
    if path is None:
        log.info("No %s file given; using defaults", label)
        values = np.broadcast_to(np.asarray(default, dtype=np.float64), (size_k,))
        return np.array(values)

    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigurationError(f"Cannot open {label} file {path}: {exc}") from exc

    try:
        values = np.array([float(tok) for tok in text.split()], dtype=np.float64)
    except ValueError as exc:
        raise ConfigurationError(f"Malformed {label} file {path}: {exc}") from exc

    if len(values) != size_k:
        raise ConfigurationError(
            f"#of lines in {path} ({len(values)}) is not the same as "
            f"#of frames ({size_k})"
        )

    if positive:
        bad = np.flatnonzero(~(values > 0))
        if bad.size:
            raise ConfigurationError(
                f"Non-positive {label} in {path} (frame {bad[0]}): {values[bad[0]]}"
            )

    log.info("Loaded %d %s values from %s", size_k, label, path)
    return values


def read_ra_dec(path: Union[str, Path], size_k: int) -> np.ndarray:
    """
    Read a boresight RA/Dec pair for each frame.

    Returns:
        (size_k, 2) array of RA/Dec values
    """
    path = Path(path)
    try:
        table = np.loadtxt(path, dtype=np.float64, ndmin=2)
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Cannot read RA/Dec file {path}: {exc}") from exc

    if table.shape != (size_k, 2):
        raise ConfigurationError(
            f"RA/Dec file {path} has shape {table.shape}, expected ({size_k}, 2)"
        )
    return table


def frame_time_offsets(timestamp: np.ndarray) -> np.ndarray:
    """Elapsed time of every frame relative to frame 0."""
    timestamp = np.asarray(timestamp, dtype=np.float64)
    if timestamp.size == 0:
        return timestamp.copy()
    return timestamp - timestamp[0]
