"""Baseline Mandelbrot implementation."""

from __future__ import annotations

import numpy as np

from .config import ImageBounds, PlaneRegion


def compute_mandelbrot(bounds: ImageBounds, region: PlaneRegion, limit: int = 255) -> np.ndarray:
    """Render ``region`` in plain Python, one pixel at a time.

    Pixels are mapped with the same operation order as the compiled kernel,
    so both renderers agree bit for bit.
    """
    width, height = bounds.width, bounds.height
    image = np.zeros(width * height, dtype=np.uint8)

    ul, lr = region.upper_left, region.lower_right
    plane_width = lr.real - ul.real
    plane_height = ul.imag - lr.imag

    for y in range(height):
        for x in range(width):
            c = complex(ul.real + x * plane_width / width, ul.imag - y * plane_height / height)
            z = 0j
            for i in range(limit):
                if z.real * z.real + z.imag * z.imag > 4.0:
                    image[y * width + x] = 255 - i
                    break
                z = z * z + c

    return image
