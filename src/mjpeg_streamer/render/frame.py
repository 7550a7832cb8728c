"""
Frame Data Model
=================

Raster frame representation passed from the generator to the encoder.

Design Rules:
    - Single plane of palette indices plus an RGB palette
    - Immutable: dataclass is frozen and the pixel array is read-only
    - No identity beyond the inputs that produced it
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np


RGB = Tuple[int, int, int]


@dataclass(frozen=True, slots=True, eq=False)
class Frame:
    """
    Indexed-color raster frame.

    Attributes:
        pixels: Palette indices, shape (height, width), dtype=uint8
        palette: RGB colors addressed by the pixel indices
    """

    pixels: np.ndarray
    palette: Tuple[RGB, ...]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return self.palette == other.palette and np.array_equal(self.pixels, other.pixels)

    def __hash__(self) -> int:
        return hash((self.palette, self.pixels.shape, self.pixels.tobytes()))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_bgr(self) -> np.ndarray:
        """
        Expand palette indices into a BGR image for OpenCV.

        Returns:
            BGR image as np.ndarray (H, W, 3), dtype=uint8
        """
        lut = np.array([(b, g, r) for r, g, b in self.palette], dtype=np.uint8)
        return lut[self.pixels]

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the raster."""
        return (
            f"Frame(width={self.width}, "
            f"height={self.height}, "
            f"colors={len(self.palette)})"
        )
