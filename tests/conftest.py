"""Shared fixtures for the sampler tests."""

import numpy as np
import pytest

from trajectory_sampler.cube import ArrayPixelStore, Cube, FrameMetadata
from trajectory_sampler.configs import ENV_VARS


def make_cube(data, timestamp=None, exposure=None, psf=None, noise=None):
    """Build a Cube over a (k, y, x) array with optional metadata columns."""
    data = np.asarray(data, dtype=np.float32)
    size_k = data.shape[0]
    defaults = FrameMetadata.defaults(size_k)
    metadata = FrameMetadata(
        timestamp=defaults.timestamp if timestamp is None else timestamp,
        exposure=defaults.exposure if exposure is None else exposure,
        psf=defaults.psf if psf is None else psf,
        noise=defaults.noise if noise is None else noise,
    )
    return Cube(ArrayPixelStore(data), metadata)


@pytest.fixture
def constant_cube():
    """4x4x3 cube of constant 10 with 40 s exposures."""
    return make_cube(np.full((3, 4, 4), 10.0), exposure=[40.0, 40.0, 40.0])


@pytest.fixture
def ramp_cube():
    """8x6x5 cube whose pixel value encodes its coordinate: 100k + 10y + x."""
    k, y, x = np.mgrid[0:5, 0:6, 0:8]
    return make_cube(100 * k + 10 * y + x, timestamp=[0.0, 10.0, 20.0, 30.0, 40.0])


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep sampler environment variables from leaking into tests."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
