from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from numba import njit

from .config import ImageBounds, PlaneRegion

__all__ = ["pixel_to_point", "escape_time", "render_band", "ESCAPE_LIMIT"]

ESCAPE_LIMIT = 255


# numpy error model: zero bounds give inf/nan instead of ZeroDivisionError
@njit(error_model="numpy", nogil=True)
def _pixel_to_point(
    width: int,
    height: int,
    col: int,
    row: int,
    ul_re: float,
    ul_im: float,
    lr_re: float,
    lr_im: float,
) -> Tuple[float, float]:
    plane_width = lr_re - ul_re
    plane_height = ul_im - lr_im
    re = ul_re + col * plane_width / width
    im = ul_im - row * plane_height / height
    return re, im


@njit(nogil=True)
def _escape_time(re: float, im: float, limit: int) -> int:
    c = complex(re, im)
    z = 0.0 + 0.0j
    for i in range(limit):
        if z.real * z.real + z.imag * z.imag > 4.0:
            return i
        z = z * z + c
    return -1


@njit(error_model="numpy", nogil=True)
def _render_band(
    pixels: np.ndarray,
    width: int,
    height: int,
    ul_re: float,
    ul_im: float,
    lr_re: float,
    lr_im: float,
    limit: int,
) -> None:
    for row in range(height):
        for col in range(width):
            re, im = _pixel_to_point(width, height, col, row, ul_re, ul_im, lr_re, lr_im)
            count = _escape_time(re, im, limit)
            if count < 0:
                pixels[row * width + col] = 0
            else:
                pixels[row * width + col] = 255 - count


def pixel_to_point(bounds: ImageBounds, pixel: Tuple[int, int], region: PlaneRegion) -> complex:
    """Map a ``(col, row)`` pixel of ``bounds`` onto the plane ``region``.

    Linear along each axis: column 0 is ``upper_left.real`` and row 0 is
    ``upper_left.imag``; rows grow downward while the imaginary axis points up.
    The pixel is not checked against ``bounds``.
    """
    col, row = pixel
    re, im = _pixel_to_point(
        bounds.width,
        bounds.height,
        col,
        row,
        region.upper_left.real,
        region.upper_left.imag,
        region.lower_right.real,
        region.lower_right.imag,
    )
    return complex(re, im)


def escape_time(c: complex, limit: int) -> Optional[int]:
    """Return the iteration at which ``z -> z*z + c`` leaves the radius-2 circle.

    ``None`` means no escape within ``limit`` iterations, and the point is
    assumed to belong to the set.
    """
    count = _escape_time(c.real, c.imag, limit)
    return None if count < 0 else count


def render_band(
    pixels: np.ndarray,
    bounds: ImageBounds,
    region: PlaneRegion,
    limit: int = ESCAPE_LIMIT,
) -> None:
    """Fill ``pixels`` in place with the grayscale escape times of ``region``.

    Escaping points are written as ``255 - escape_time`` and bounded points
    as ``0``. ``pixels`` must be a flat ``uint8`` buffer of exactly
    ``bounds.width * bounds.height`` bytes, owned by the caller for the
    duration of the call.
    """
    assert pixels.size == bounds.width * bounds.height, (
        f"band holds {pixels.size} pixels, bounds {bounds.width}x{bounds.height} "
        f"need {bounds.width * bounds.height}"
    )
    _render_band(
        pixels,
        bounds.width,
        bounds.height,
        region.upper_left.real,
        region.upper_left.imag,
        region.lower_right.real,
        region.lower_right.imag,
        limit,
    )
