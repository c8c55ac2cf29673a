"""
Pixel store adapters.

The cube never owns its pixels. It borrows a store that can resolve a
cube coordinate to a flat index (or report that the coordinate is invalid)
and read the pixel value behind it. Two stores are provided:

- ArrayPixelStore: wraps any (k, y, x) numpy array, including a read-only
  memory map of a ``.npy`` file
- FitsPixelStore: memory maps one 2D FITS image per frame with astropy

Both are safe for concurrent reads once allocated.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np
from astropy.io import fits

from ..errors import ConfigurationError

log = logging.getLogger(__name__)


INVALID_INDEX = -1

# Pixels are single precision floats
PIXEL_DTYPE = np.dtype(np.float32)

FITS_SUFFIXES = (".fits", ".fit", ".fts")


class PixelStore(ABC):
    """
    Abstract base class for pixel stores.

    Coordinates are (x, y, k) with x the column, y the row and k the frame.
    Flat indices run x fastest, then y, then k.
    """

    def __init__(self, size_x: int, size_y: int, size_k: int, element_size: int):
        self.size_x = int(size_x)
        self.size_y = int(size_y)
        self.size_k = int(size_k)
        self.element_size = int(element_size)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Store dimensions as (size_x, size_y, size_k)."""
        return (self.size_x, self.size_y, self.size_k)

    @property
    def num_pixels(self) -> int:
        """Total number of addressable pixels."""
        return self.size_x * self.size_y * self.size_k

    def resolve(self, x: int, y: int, k: int) -> int:
        """
        Resolve a coordinate to its flat index.

        Returns:
            Flat index, or INVALID_INDEX if the coordinate is outside the store
        """
        if not (0 <= x < self.size_x and 0 <= y < self.size_y and 0 <= k < self.size_k):
            return INVALID_INDEX
        return int(x) + int(y) * self.size_x + int(k) * self.size_x * self.size_y

    def index_to_coordinate(self, index: int) -> Tuple[int, int, int]:
        """Inverse of resolve for a valid flat index."""
        if not 0 <= index < self.num_pixels:
            raise IndexError(f"Flat index {index} outside store of {self.num_pixels} pixels")
        frame_pixels = self.size_x * self.size_y
        k, remainder = divmod(int(index), frame_pixels)
        y, x = divmod(remainder, self.size_x)
        return (x, y, k)

    def read(self, x: int, y: int, k: int) -> float:
        """
        Read the pixel at (x, y, k).

        Invalid coordinates read as NaN, the same marker used for masked
        pixels, so a read never faults.
        """
        if self.resolve(x, y, k) == INVALID_INDEX:
            return float("nan")
        return self._read_valid(int(x), int(y), int(k))

    @abstractmethod
    def _read_valid(self, x: int, y: int, k: int) -> float:
        """Read a coordinate already known to be valid."""
        pass

    @abstractmethod
    def release(self) -> None:
        """Release the underlying pixel memory."""
        pass

    def __enter__(self) -> "PixelStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


class ArrayPixelStore(PixelStore):
    """
    Pixel store over a (k, y, x) numpy array.

    Args:
        data: Array of shape (size_k, size_y, size_x). Memory mapped arrays
            are paged in lazily by the operating system.
    """

    def __init__(self, data: np.ndarray):
        if data.ndim != 3:
            raise ValueError(f"Pixel array must be 3D (k, y, x), got shape {data.shape}")
        size_k, size_y, size_x = data.shape
        super().__init__(size_x, size_y, size_k, data.dtype.itemsize)
        self._data = data

    @property
    def data(self) -> np.ndarray:
        """The backing (k, y, x) array."""
        if self._data is None:
            raise RuntimeError("Pixel store has been released")
        return self._data

    def _read_valid(self, x: int, y: int, k: int) -> float:
        return float(self.data[k, y, x])

    def release(self) -> None:
        if self._data is not None:
            mm = getattr(self._data, "_mmap", None)
            self._data = None
            if mm is not None:
                mm.close()


class FitsPixelStore(PixelStore):
    """
    Pixel store over a list of single-frame FITS files.

    Every file is opened with ``memmap=True`` and its primary image is
    accessed up front, so frames are paged in lazily but the HDU state is
    never mutated during concurrent reads.

    Args:
        paths: One FITS file per frame, in frame order
    """

    def __init__(self, paths: Sequence[Union[str, Path]]):
        if len(paths) == 0:
            raise ConfigurationError("No FITS files given for the pixel store")

        self._hdulists: List[fits.HDUList] = []
        self._frames: List[np.ndarray] = []
        try:
            for path in paths:
                hdul = fits.open(path, memmap=True)
                self._hdulists.append(hdul)
                self._frames.append(_first_image(hdul, path))
        except OSError as exc:
            self._close_all()
            raise ConfigurationError(f"Failed to allocate memory for cube: {exc}") from exc
        except ConfigurationError:
            self._close_all()
            raise

        size_y, size_x = self._frames[0].shape
        for path, frame in zip(paths, self._frames):
            if frame.shape != (size_y, size_x):
                self._close_all()
                raise ConfigurationError(
                    f"Frame {path} has shape {frame.shape}, expected {(size_y, size_x)}"
                )

        super().__init__(size_x, size_y, len(self._frames), self._frames[0].dtype.itemsize)

    def _read_valid(self, x: int, y: int, k: int) -> float:
        return float(self._frames[k][y, x])

    def _close_all(self) -> None:
        for hdul in self._hdulists:
            hdul.close()
        self._hdulists = []
        self._frames = []

    def release(self) -> None:
        self._close_all()


def _first_image(hdul: fits.HDUList, path: Union[str, Path]) -> np.ndarray:
    """Return the first 2D image in a FITS file."""
    for hdu in hdul:
        if hdu.data is not None and hdu.data.ndim == 2:
            return hdu.data
    raise ConfigurationError(f"No 2D image found in {path}")


def allocate_pixel_store(
    source: Union[str, Path, Sequence[Union[str, Path]]],
    expected_dtype: np.dtype = PIXEL_DTYPE,
) -> PixelStore:
    """
    Allocate a pixel store from a source descriptor.

    Args:
        source: A ``.npy`` file holding a (k, y, x) cube, a directory of FITS
            files (one frame each, ordered by file name), a single FITS file,
            or an explicit list of FITS files
        expected_dtype: Pixel type the sampler works with; the store's element
            size must match it

    Returns:
        Allocated pixel store. The caller is responsible for release().

    Raises:
        ConfigurationError: If the source cannot be mapped or its element size
            does not match ``expected_dtype``
    """
    store = _open_source(source)

    expected_size = np.dtype(expected_dtype).itemsize
    if store.element_size != expected_size:
        store.release()
        raise ConfigurationError(
            f"Pixel element size is {store.element_size} bytes, "
            f"expected {expected_size} ({np.dtype(expected_dtype).name})"
        )

    log.info(
        "Allocated pixel store: size_x=%d size_y=%d size_k=%d",
        store.size_x, store.size_y, store.size_k,
    )
    return store


def _open_source(source: Union[str, Path, Sequence[Union[str, Path]]]) -> PixelStore:
    if isinstance(source, (list, tuple)):
        return FitsPixelStore([Path(p) for p in source])

    path = Path(source)
    if path.is_dir():
        paths = sorted(p for p in path.iterdir() if p.suffix.lower() in FITS_SUFFIXES)
        if not paths:
            raise ConfigurationError(f"No FITS files found in {path}")
        return FitsPixelStore(paths)

    if not path.exists():
        raise ConfigurationError(f"Failed to allocate memory for cube: {path} does not exist")

    if path.suffix.lower() == ".npy":
        try:
            data = np.load(path, mmap_mode="r")
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"Failed to allocate memory for cube: {exc}") from exc
        try:
            return ArrayPixelStore(data)
        except ValueError as exc:
            raise ConfigurationError(f"Bad cube in {path}: {exc}") from exc

    if path.suffix.lower() in FITS_SUFFIXES:
        return FitsPixelStore([path])

    raise ConfigurationError(f"Unsupported pixel store source: {path}")
