"""
Detection statistics for a sampled trajectory.

Folds the per-frame samples of a trajectory walk into a co-added signal,
the number of frames that contributed, and a CCD-equation style SNR:

    SNR = S * sqrt(T) / sqrt(S + B + D + R)

where S is the summed signal, T the summed exposure time, B a background
term, D the dark current term and R the readout term.
"""

from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional

import numpy as np

from ..trajectory.walker import PixelSample


@dataclass(frozen=True)
class InstrumentNoise:
    """
    Detector noise constants.

    Defaults are DECam values.

    Attributes:
        readout_noise_e: Readout noise in electrons
        dark_noise_e_per_px_s: Dark current in electrons per pixel per second
        background_fraction: Background term taken as this fraction of each
            pixel value
    """
    readout_noise_e: float = 7.0
    dark_noise_e_per_px_s: float = 0.417
    background_fraction: float = 1.0 / 3.0

    def __post_init__(self):
        if self.readout_noise_e < 0 or self.dark_noise_e_per_px_s < 0:
            raise ValueError("Noise constants must be non-negative")


DECAM_NOISE = InstrumentNoise()


class VectorInfo(NamedTuple):
    """SNR, summed signal and number of frames hit for one trajectory."""

    snr: float
    total_signal: float
    frames_hit: int


EMPTY_VECTOR_INFO = VectorInfo(0.0, 0.0, 0)


def vector_info(
    samples: Iterable[Optional[PixelSample]],
    noise: InstrumentNoise = DECAM_NOISE,
) -> VectorInfo:
    """
    Compute detection statistics from a trajectory walk.

    Frames without data (None) are skipped and do not count as hits.

    Args:
        samples: Per-frame samples, e.g. a CubeTrajectoryWalker
        noise: Detector noise constants

    Returns:
        VectorInfo(snr, total_signal, frames_hit). Exactly (0, 0, 0) when no
        frame had data.
    """
    readout_sq = noise.readout_noise_e ** 2

    total_signal = 0.0
    total_exposure = 0.0
    total_b = 0.0
    total_r = 0.0
    total_d = 0.0
    frames_hit = 0

    for sample in samples:
        if sample is None:
            continue

        value, num_pixels, exposure = sample
        total_signal += value
        frames_hit += 1

        # TODO: replace with the per-frame sky level once the noise column is validated
        total_b += value * noise.background_fraction * num_pixels
        total_r += num_pixels * readout_sq / exposure
        total_d += noise.dark_noise_e_per_px_s * num_pixels
        total_exposure += exposure

    if frames_hit == 0:
        return EMPTY_VECTOR_INFO

    with np.errstate(invalid="ignore", divide="ignore"):
        snr = (
            np.float64(total_signal) * np.sqrt(total_exposure)
            / np.sqrt(np.float64(total_signal + total_b + total_d + total_r))
        )
    return VectorInfo(float(snr), total_signal, frames_hit)
