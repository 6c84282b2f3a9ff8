import math
from dataclasses import dataclass

import numpy as np

from errors import AllocationError, DegenerateGeometryError, FormatError


@dataclass(eq=False)
class PixelBuffer:
    """
    Row-major RGB image, 8 bits per channel.

    data has shape (height, width, 3) and dtype uint8, so pixel (x, y) is
    data[y, x] and its flat index is y * width + x.
    """

    width: int
    height: int
    data: np.ndarray

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise FormatError(f"Invalid image size {self.width}x{self.height}")
        if self.data.dtype != np.uint8:
            raise FormatError(f"Pixel data must be uint8, got {self.data.dtype}")
        if self.data.shape != (self.height, self.width, 3):
            raise FormatError(
                f"Pixel data shape {self.data.shape} does not match "
                f"{self.width}x{self.height}x3"
            )

    @property
    def samples(self) -> np.ndarray:
        """(width * height, 3) view in row-major order."""
        return self.data.reshape(-1, 3)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "PixelBuffer":
        h, w = arr.shape[:2]
        return cls(width=w, height=h, data=arr)


def allocate_image(width: int, height: int) -> PixelBuffer:
    """Allocate a zero-filled buffer of exactly width x height pixels."""
    if width < 1 or height < 1:
        raise DegenerateGeometryError(f"Cannot allocate a {width}x{height} image")
    try:
        data = np.zeros((height, width, 3), dtype=np.uint8)
    except (MemoryError, ValueError, OverflowError) as e:
        raise AllocationError(f"Unable to allocate memory for {width}x{height} image: {e}") from e
    return PixelBuffer(width=width, height=height, data=data)


def destination_size(width: int, height: int, factor: float) -> tuple[int, int]:
    """floor(width * factor) x floor(height * factor); both must be >= 1."""
    scaled_w = width * factor
    scaled_h = height * factor
    if not (math.isfinite(scaled_w) and math.isfinite(scaled_h)):
        raise AllocationError(f"Scale {factor} overflows the size of a {width}x{height} image")
    dest_w = int(scaled_w)
    dest_h = int(scaled_h)
    if dest_w < 1 or dest_h < 1:
        raise DegenerateGeometryError(
            f"Scale {factor} turns {width}x{height} into {dest_w}x{dest_h}"
        )
    return dest_w, dest_h


def calculate_psnr(img1, img2):
    """
    Peak signal-to-noise ratio between two same-shaped uint8 images.
    Identical images return 100.
    """
    diff = np.asarray(img1, dtype=np.float64) - np.asarray(img2, dtype=np.float64)
    mse = np.mean(diff ** 2)
    if mse == 0:
        return 100
    pixel_max = 255.0
    return 20 * np.log10(pixel_max / np.sqrt(mse))
