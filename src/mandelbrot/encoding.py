"""Grayscale PNG output for rendered rasters."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

import numpy as np
from PIL import Image

from .config import ImageBounds

__all__ = ["write_image", "read_image"]


def write_image(path: str | Path, raster: np.ndarray, bounds: ImageBounds) -> None:
    """Write ``raster`` as an 8-bit single-channel PNG of ``bounds`` size.

    Raises ``OSError`` when the file cannot be created or written.
    """
    if raster.size != bounds.width * bounds.height:
        raise ValueError(
            f"raster holds {raster.size} pixels, bounds {bounds.width}x{bounds.height} "
            f"need {bounds.width * bounds.height}"
        )
    pixels = np.ascontiguousarray(raster, dtype=np.uint8).reshape(bounds.height, bounds.width)
    # 2-D uint8 arrays map to Pillow mode "L"
    Image.fromarray(pixels).save(path, format="PNG")


def read_image(path: str | Path) -> Tuple[np.ndarray, ImageBounds]:
    """Load a grayscale image back into a flat raster and its bounds."""
    with Image.open(path) as img:
        width, height = img.size
        pixels = np.asarray(img.convert("L"), dtype=np.uint8)
    return pixels.reshape(-1).copy(), ImageBounds(width, height)
