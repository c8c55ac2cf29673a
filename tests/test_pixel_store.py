"""Tests for pixel store adapters."""

import math

import numpy as np
import pytest
from astropy.io import fits

from trajectory_sampler.cube.pixel_store import (
    INVALID_INDEX,
    ArrayPixelStore,
    FitsPixelStore,
    allocate_pixel_store,
)
from trajectory_sampler.errors import ConfigurationError


def test_resolve_and_index_round_trip():
    store = ArrayPixelStore(np.zeros((3, 4, 5), dtype=np.float32))
    assert store.shape == (5, 4, 3)
    for index in (0, 7, 19, 20, 59):
        x, y, k = store.index_to_coordinate(index)
        assert store.resolve(x, y, k) == index


@pytest.mark.parametrize("coord", [(-1, 0, 0), (5, 0, 0), (0, -1, 0), (0, 4, 0), (0, 0, -1), (0, 0, 3)])
def test_invalid_coordinates_resolve_to_sentinel(coord):
    store = ArrayPixelStore(np.zeros((3, 4, 5), dtype=np.float32))
    assert store.resolve(*coord) == INVALID_INDEX
    assert math.isnan(store.read(*coord))


def test_index_outside_store_raises():
    store = ArrayPixelStore(np.zeros((1, 2, 2), dtype=np.float32))
    with pytest.raises(IndexError):
        store.index_to_coordinate(4)


def test_read_uses_k_y_x_layout():
    data = np.arange(24, dtype=np.float32).reshape(2, 3, 4)
    store = ArrayPixelStore(data)
    assert store.read(3, 2, 1) == data[1, 2, 3]


def test_rejects_non_3d_array():
    with pytest.raises(ValueError):
        ArrayPixelStore(np.zeros((4, 4), dtype=np.float32))


def test_allocate_npy_memory_maps(tmp_path):
    data = np.random.default_rng(0).random((3, 4, 5)).astype(np.float32)
    path = tmp_path / "cube.npy"
    np.save(path, data)

    with allocate_pixel_store(path) as store:
        assert store.shape == (5, 4, 3)
        assert store.element_size == 4
        assert store.read(2, 1, 0) == pytest.approx(float(data[0, 1, 2]))


def test_allocate_rejects_wrong_element_size(tmp_path):
    path = tmp_path / "cube.npy"
    np.save(path, np.zeros((2, 2, 2), dtype=np.float64))
    with pytest.raises(ConfigurationError, match="element size"):
        allocate_pixel_store(path)


def test_allocate_missing_source(tmp_path):
    with pytest.raises(ConfigurationError, match="Failed to allocate"):
        allocate_pixel_store(tmp_path / "missing.npy")


def test_allocate_unsupported_suffix(tmp_path):
    path = tmp_path / "cube.txt"
    path.write_text("1 2 3")
    with pytest.raises(ConfigurationError, match="Unsupported"):
        allocate_pixel_store(path)


def _write_frames(directory, frames):
    for i, frame in enumerate(frames):
        fits.PrimaryHDU(frame).writeto(directory / f"frame_{i:03d}.fits")


def test_allocate_fits_directory(tmp_path):
    frames = [np.full((4, 6), float(i), dtype=np.float32) for i in range(3)]
    frames[1][2, 5] = np.nan
    _write_frames(tmp_path, frames)

    store = allocate_pixel_store(tmp_path)
    try:
        assert isinstance(store, FitsPixelStore)
        assert store.shape == (6, 4, 3)
        assert store.read(0, 0, 2) == 2.0
        assert math.isnan(store.read(5, 2, 1))
    finally:
        store.release()


def test_fits_frames_must_share_shape(tmp_path):
    _write_frames(tmp_path, [
        np.zeros((4, 6), dtype=np.float32),
        np.zeros((5, 6), dtype=np.float32),
    ])
    with pytest.raises(ConfigurationError, match="shape"):
        allocate_pixel_store(tmp_path)


def test_empty_fits_directory(tmp_path):
    with pytest.raises(ConfigurationError, match="No FITS files"):
        allocate_pixel_store(tmp_path)


def test_release_drops_array():
    store = ArrayPixelStore(np.zeros((1, 1, 1), dtype=np.float32))
    store.release()
    with pytest.raises(RuntimeError):
        store.data
