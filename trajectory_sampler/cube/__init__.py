"""
Image cube module.

A cube combines a borrowed pixel store with the per-frame metadata table:
- Pixel stores (numpy array / memory mapped .npy, FITS via astropy)
- Frame metadata (timestamps, exposure times, PSF, sky noise)
- Cube (bounds-checked coordinate access)
"""

from .cube import Cube
from .metadata import FrameMetadata, read_frame_values
from .pixel_store import (
    INVALID_INDEX,
    ArrayPixelStore,
    FitsPixelStore,
    PixelStore,
    allocate_pixel_store,
)

__all__ = [
    "Cube",
    "FrameMetadata",
    "read_frame_values",
    "INVALID_INDEX",
    "ArrayPixelStore",
    "FitsPixelStore",
    "PixelStore",
    "allocate_pixel_store",
]
