"""
Time-indexed image cube.

A bounds-checked (x, y, k) view over a borrowed pixel store, combined with
the per-frame metadata table. The cube is read-only once built and can be
shared between sampling threads.
"""

from typing import Optional, Tuple

import numpy as np

from .metadata import FrameMetadata, frame_time_offsets
from .pixel_store import INVALID_INDEX, PixelStore
from ..trajectory.vector import round_half_away


class Cube:
    """
    Image cube of ``size_k`` frames of ``size_x`` by ``size_y`` pixels.

    The cube holds a reference to ``store`` but never releases it; the store
    must outlive the cube.

    Args:
        store: Pixel store providing resolve/read
        metadata: Frame metadata; defaults to FrameMetadata.defaults(size_k)
        size_k: Number of frames to use, at most store.size_k. Defaults to
            every frame in the store.
    """

    def __init__(
        self,
        store: PixelStore,
        metadata: Optional[FrameMetadata] = None,
        size_k: Optional[int] = None,
    ):
        self._store = store
        self._size_x = store.size_x
        self._size_y = store.size_y
        self._size_k = store.size_k if size_k is None else int(size_k)

        if not 0 <= self._size_k <= store.size_k:
            raise ValueError(
                f"size_k={self._size_k} outside the store's {store.size_k} frames"
            )

        if metadata is None:
            metadata = FrameMetadata.defaults(self._size_k)
        assert metadata.covers(self._size_k), (
            f"metadata covers {metadata.num_frames} frames, cube has {self._size_k}"
        )
        self._metadata = metadata
        self._time_offsets = frame_time_offsets(metadata.timestamp[:self._size_k])

    @property
    def store(self) -> PixelStore:
        return self._store

    @property
    def metadata(self) -> FrameMetadata:
        return self._metadata

    @property
    def time_offsets(self) -> np.ndarray:
        """Elapsed time of each frame since frame 0."""
        return self._time_offsets

    def size(self) -> Tuple[int, int, int]:
        """Cube dimensions as (size_x, size_y, size_k)."""
        return (self._size_x, self._size_y, self._size_k)

    def cube_size(self) -> int:
        """Total number of pixels in the cube."""
        return self._size_x * self._size_y * self._size_k

    def out_of_range(self, x: int, y: int, k: int) -> bool:
        """True if (x, y, k) does not address a pixel of this cube."""
        if not 0 <= k < self._size_k:
            return True
        return self._store.resolve(x, y, k) == INVALID_INDEX

    def get_pixel_value(self, x: int, y: int, k: int) -> float:
        """
        Pixel value at (x, y, k).

        The coordinate must be in range. The value may be NaN for masked or
        missing pixels.
        """
        assert not self.out_of_range(x, y, k), f"({x}, {y}, {k}) is outside the cube"
        return self._store.read(x, y, k)

    def timestamp(self, k: int) -> float:
        assert 0 <= k < self._size_k, f"frame {k} out of range"
        return float(self._metadata.timestamp[k])

    def exposure(self, k: int) -> float:
        assert 0 <= k < self._size_k, f"frame {k} out of range"
        return float(self._metadata.exposure[k])

    def psf(self, k: int) -> float:
        assert 0 <= k < self._size_k, f"frame {k} out of range"
        return float(self._metadata.psf[k])

    def noise(self, k: int) -> float:
        assert 0 <= k < self._size_k, f"frame {k} out of range"
        return float(self._metadata.noise[k])

    def ra_dec(self, k: int) -> Tuple[float, float]:
        assert 0 <= k < self._size_k, f"frame {k} out of range"
        assert self._metadata.ra_dec is not None, "cube has no RA/Dec metadata"
        ra, dec = self._metadata.ra_dec[k]
        return (float(ra), float(dec))

    def time_offset(self, k: int) -> float:
        """Elapsed time between frame 0 and frame k."""
        assert 0 <= k < self._size_k, f"frame {k} out of range"
        return float(self._time_offsets[k])

    def get_random_coordinate(
        self,
        index: int,
        x_slope: float,
        y_slope: float,
    ) -> Tuple[int, int, int]:
        """
        Project a stored pixel back to frame 0 along the given slopes.

        The flat store index is mapped to its (x, y, k) coordinate, then
        moved back by the elapsed time of frame k. Starting trajectories from
        pixels that are already resident keeps sampling close to the data.

        Args:
            index: Flat pixel store index in [0, cube_size())
            x_slope: Trajectory x slope
            y_slope: Trajectory y slope

        Returns:
            (x, y, 0) start coordinate; may fall outside the frame
        """
        x, y, k = self._store.index_to_coordinate(index)
        time_offset = self.time_offset(k)
        x0 = round_half_away(x - x_slope * time_offset)
        y0 = round_half_away(y - y_slope * time_offset)
        return (x0, y0, 0)

    def __repr__(self) -> str:
        return f"Cube(size_x={self._size_x}, size_y={self._size_y}, size_k={self._size_k})"
