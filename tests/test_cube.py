"""Tests for the Cube view."""

import math

import numpy as np
import pytest

from trajectory_sampler.cube import ArrayPixelStore, Cube, FrameMetadata

from conftest import make_cube


def test_size_and_cube_size(constant_cube):
    assert constant_cube.size() == (4, 4, 3)
    assert constant_cube.cube_size() == 48


@pytest.mark.parametrize("coord", [
    (-1, 0, 0), (4, 0, 0), (0, -1, 0), (0, 4, 0), (0, 0, -1), (0, 0, 3), (100, 100, 100),
])
def test_out_of_range(constant_cube, coord):
    assert constant_cube.out_of_range(*coord)


def test_every_valid_coordinate_is_in_range(constant_cube):
    for k in range(3):
        for y in range(4):
            for x in range(4):
                assert not constant_cube.out_of_range(x, y, k)
                assert constant_cube.get_pixel_value(x, y, k) == 10.0


def test_nan_pixel_is_returned_not_raised():
    data = np.ones((2, 2, 2), dtype=np.float32)
    data[1, 0, 1] = np.nan
    cube = make_cube(data)
    assert math.isnan(cube.get_pixel_value(1, 0, 1))


def test_frame_accessors():
    cube = make_cube(
        np.zeros((2, 2, 2)),
        timestamp=[100.0, 350.0],
        exposure=[30.0, 45.0],
        psf=[1.2, 1.4],
        noise=[5.0, 6.0],
    )
    assert cube.timestamp(1) == 350.0
    assert cube.exposure(0) == 30.0
    assert cube.psf(1) == 1.4
    assert cube.noise(0) == 5.0
    assert cube.time_offset(1) == 250.0


def test_frame_accessor_past_last_frame_is_contract_violation(constant_cube):
    with pytest.raises(AssertionError):
        constant_cube.exposure(3)
    with pytest.raises(AssertionError):
        constant_cube.timestamp(3)


def test_metadata_must_cover_frames():
    store = ArrayPixelStore(np.zeros((3, 2, 2), dtype=np.float32))
    with pytest.raises(AssertionError):
        Cube(store, FrameMetadata.defaults(2))


def test_size_k_limits_frames():
    store = ArrayPixelStore(np.zeros((3, 2, 2), dtype=np.float32))
    cube = Cube(store, size_k=2)
    assert cube.size() == (2, 2, 2)
    assert cube.out_of_range(0, 0, 2)
    with pytest.raises(ValueError):
        Cube(store, size_k=4)


def test_ra_dec_accessor():
    store = ArrayPixelStore(np.zeros((2, 2, 2), dtype=np.float32))
    meta = FrameMetadata([0, 1], [40, 40], [1, 1], [0, 0], ra_dec=[[10.0, 20.0], [10.5, 20.5]])
    assert Cube(store, meta).ra_dec(1) == (10.5, 20.5)


def test_random_coordinate_projects_back_to_frame_zero():
    cube = make_cube(np.zeros((3, 4, 4)), timestamp=[0.0, 10.0, 20.0])
    # Flat index of (x=3, y=2, k=2)
    index = 3 + 2 * 4 + 2 * 16
    assert cube.get_random_coordinate(index, 0.1, 0.05) == (1, 1, 0)


def test_random_coordinate_with_zero_slope_keeps_position(ramp_cube):
    index = 5 + 3 * 8 + 4 * 48
    assert ramp_cube.get_random_coordinate(index, 0.0, 0.0) == (5, 3, 0)


def test_negative_frame_index_is_contract_violation(constant_cube):
    with pytest.raises(AssertionError):
        constant_cube.timestamp(-1)
    with pytest.raises(AssertionError):
        constant_cube.exposure(-1)
    with pytest.raises(AssertionError):
        constant_cube.time_offset(-1)


def test_pixel_read_outside_cube_is_contract_violation():
    store = ArrayPixelStore(np.ones((3, 2, 2), dtype=np.float32))
    cube = Cube(store, size_k=2)
    # Frame 2 exists in the store but not in the cube
    with pytest.raises(AssertionError):
        cube.get_pixel_value(0, 0, 2)
    with pytest.raises(AssertionError):
        cube.get_pixel_value(-1, 0, 0)
