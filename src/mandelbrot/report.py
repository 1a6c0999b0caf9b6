"""Structured results returned from a parallel render."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from .config import ImageBounds


@dataclass(frozen=True)
class RenderReport:
    """Container for outputs produced by ``render_parallel``."""

    raster: np.ndarray
    bounds: ImageBounds
    timing: Dict[str, Any]
    bands: Optional[List[Dict[str, Any]]]

    def image(self) -> np.ndarray:
        """The flat raster viewed as ``(height, width)`` rows."""
        return self.raster.reshape(self.bounds.height, self.bounds.width)

    def copy_bands(self) -> Optional[List[Dict[str, Any]]]:
        if self.bands is None:
            return None
        return [record.copy() for record in self.bands]
