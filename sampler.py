import math

import numpy as np

from errors import DegenerateGeometryError
from utils import PixelBuffer, allocate_image, destination_size

# neighborhood offsets around (xint, yint) read by the bicubic kernel
TAPS = (-1, 0, 1, 2)

# destination rows processed per step by the vectorized resampler
CHUNK_ROWS = 64


# ==========================================
# Part 1: Kernel & edge policy
# ==========================================

def get_pixel_clamped(image: PixelBuffer, x: int, y: int) -> np.ndarray:
    """
    Return the (r, g, b) sample at (x, y) with both coordinates clamped to
    the image, so any integer is a valid read (replicate-border policy).
    """
    x = min(max(x, 0), image.width - 1)
    y = min(max(y, 0), image.height - 1)
    return image.data[y, x]


def cubic_hermite(A, B, C, D, t):
    """
    Catmull-Rom cubic through B (t=0) and C (t=1). No clamping.
    Accepts floats or numpy arrays (element-wise).
    """
    a = -A / 2.0 + (3.0 * B) / 2.0 - (3.0 * C) / 2.0 + D / 2.0
    b = A - (5.0 * B) / 2.0 + 2.0 * C - D / 2.0
    c = -A / 2.0 + C / 2.0
    d = B

    return a * t * t * t + b * t * t + c * t + d


def _source_coord(n: int):
    """Normalized destination coordinates 0..1 for a row/column of n pixels."""
    if n == 1:
        return np.zeros(1)
    return np.arange(n) / (n - 1)


# ==========================================
# Part 2: Bicubic resampling
# ==========================================

def sample_bicubic(image: PixelBuffer, u: float, v: float) -> np.ndarray:
    """
    Bicubic sample at normalized (u, v).

    u, v map to source pixel centers via x = u * width - 0.5. The 4x4
    neighborhood is interpolated horizontally first, then vertically, per
    channel; the result is clamped to 0..255 and truncated.
    """
    x = u * image.width - 0.5
    xint = math.floor(x)
    xfract = x - xint

    y = v * image.height - 0.5
    yint = math.floor(y)
    yfract = y - yint

    # p[row, col, channel]
    p = np.empty((4, 4, 3), dtype=np.float64)
    for j, dy in enumerate(TAPS):
        for i, dx in enumerate(TAPS):
            p[j, i] = get_pixel_clamped(image, xint + dx, yint + dy)

    # 先水平再垂直 (separable)
    cols = cubic_hermite(p[:, 0], p[:, 1], p[:, 2], p[:, 3], xfract)
    value = cubic_hermite(cols[0], cols[1], cols[2], cols[3], yfract)

    return np.clip(value, 0.0, 255.0).astype(np.uint8)


def resize_image(image: PixelBuffer, factor: float) -> PixelBuffer:
    """
    [Baseline] Bicubic resize by `factor`, one sample_bicubic call per
    destination pixel. Destination size is floor(size * factor).
    """
    dest_w, dest_h = destination_size(image.width, image.height, factor)
    dest = allocate_image(dest_w, dest_h)

    us = _source_coord(dest_w)
    vs = _source_coord(dest_h)

    for y in range(dest_h):
        v = float(vs[y])
        for x in range(dest_w):
            dest.data[y, x] = sample_bicubic(image, float(us[x]), v)

    return dest


def resize_image_vectorized(image: PixelBuffer, factor: float) -> PixelBuffer:
    """
    [Method A] Same result as resize_image, computed over whole coordinate
    grids with numpy. Rows are processed in chunks to bound memory.
    """
    dest_w, dest_h = destination_size(image.width, image.height, factor)
    dest = allocate_image(dest_w, dest_h)

    src = image.data

    x = _source_coord(dest_w) * image.width - 0.5
    xint = np.floor(x)
    xfract = (x - xint)[None, :, None]
    # clamped column indices for each tap, shape (4, dest_w)
    xidx = np.stack([np.clip(xint.astype(np.int64) + dx, 0, image.width - 1) for dx in TAPS])

    y = _source_coord(dest_h) * image.height - 0.5
    yint = np.floor(y)
    yfract = y - yint
    yidx = np.stack([np.clip(yint.astype(np.int64) + dy, 0, image.height - 1) for dy in TAPS])

    for y0 in range(0, dest_h, CHUNK_ROWS):
        y1 = min(y0 + CHUNK_ROWS, dest_h)
        rows = []
        for j in range(4):
            r = yidx[j, y0:y1, None]
            p = [src[r, xidx[i][None, :]].astype(np.float64) for i in range(4)]
            rows.append(cubic_hermite(p[0], p[1], p[2], p[3], xfract))

        t = yfract[y0:y1, None, None]
        value = cubic_hermite(rows[0], rows[1], rows[2], rows[3], t)
        dest.data[y0:y1] = np.clip(value, 0.0, 255.0).astype(np.uint8)

    return dest


# ==========================================
# Part 3: Quick 2x downsample
# ==========================================

def _half_geometry(image: PixelBuffer) -> tuple[int, int]:
    if image.width < 2 or image.height < 2:
        raise DegenerateGeometryError(
            f"2x downsample needs at least 2x2 pixels, got {image.width}x{image.height}"
        )
    return image.width // 2, image.height // 2


def downsample_half(image: PixelBuffer) -> PixelBuffer:
    """
    [Baseline] 2x2 box filter: sum the four samples, truncate once.
    Odd trailing rows/columns are dropped.
    """
    dest_w, dest_h = _half_geometry(image)
    dest = allocate_image(dest_w, dest_h)

    cut = image.data[: 2 * dest_h, : 2 * dest_w].astype(np.uint16)
    total = cut.reshape(dest_h, 2, dest_w, 2, 3).sum(axis=(1, 3))
    dest.data[...] = (total // 4).astype(np.uint8)
    return dest


def downsample_half_legacy(image: PixelBuffer) -> PixelBuffer:
    """
    [Method B] 2x2 box filter matching the old C tool bit for bit: each
    sample is divided by 4 (truncating) before summing, so results can be
    up to 3 below the true mean.
    """
    dest_w, dest_h = _half_geometry(image)
    dest = allocate_image(dest_w, dest_h)

    q = image.data[: 2 * dest_h, : 2 * dest_w] // 4
    # 4 terms of at most 63 each, fits in uint8
    dest.data[...] = q[0::2, 0::2] + q[0::2, 1::2] + q[1::2, 0::2] + q[1::2, 1::2]
    return dest
