"""Band partitioning and threaded rendering of a full Mandelbrot raster."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np

from .computation import ESCAPE_LIMIT, pixel_to_point, render_band
from .config import ImageBounds, PlaneRegion
from .report import RenderReport

__all__ = ["Band", "plan_bands", "band_region", "allocate_raster", "render_parallel"]


@dataclass(frozen=True)
class Band:
    """Contiguous run of raster rows owned by a single worker."""

    index: int
    top: int
    height: int
    width: int

    @property
    def bounds(self) -> ImageBounds:
        return ImageBounds(self.width, self.height)

    @property
    def start(self) -> int:
        return self.top * self.width

    @property
    def stop(self) -> int:
        return (self.top + self.height) * self.width

    def view(self, raster: np.ndarray) -> np.ndarray:
        """The writable slice of ``raster`` this band covers."""
        return raster[self.start:self.stop]


def rows_per_band(height: int, threads: int) -> int:
    return max(1, (height + threads - 1) // threads)


def plan_bands(bounds: ImageBounds, threads: int) -> List[Band]:
    """Split ``bounds`` into at most ``threads`` disjoint horizontal bands.

    Every band but the last holds ``ceil(height / threads)`` rows; the last
    takes whatever remains. No empty band is produced.
    """
    if threads < 1:
        raise ValueError(f"threads must be >= 1, got {threads}")

    step = rows_per_band(bounds.height, threads)
    bands: List[Band] = []
    top = 0
    while top < bounds.height:
        height = min(step, bounds.height - top)
        bands.append(Band(len(bands), top, height, bounds.width))
        top += height
    return bands


def band_region(bounds: ImageBounds, region: PlaneRegion, band: Band) -> PlaneRegion:
    """Slice of ``region`` spanned by ``band`` within the full image."""
    upper_left = pixel_to_point(bounds, (0, band.top), region)
    lower_right = pixel_to_point(bounds, (bounds.width, band.top + band.height), region)
    return PlaneRegion(upper_left, lower_right)


def allocate_raster(bounds: ImageBounds) -> np.ndarray:
    return np.zeros(bounds.width * bounds.height, dtype=np.uint8)


def _band_log(index: int, message: str) -> None:
    """Emit a progress message from a given band worker."""
    print(f"[Band {index}] {message}", flush=True)


def _render_band_timed(
    pixels: np.ndarray,
    band: Band,
    region: PlaneRegion,
    limit: int,
    verbose: bool,
) -> Dict[str, Any]:
    comp_start = time.perf_counter()
    render_band(pixels, band.bounds, region, limit)
    comp_time = time.perf_counter() - comp_start
    if verbose:
        _band_log(
            band.index,
            f"Rendering rows {band.top}:{band.top + band.height} took {comp_time:.4f}s",
        )
    return _band_record(band, comp_time)


def _band_record(band: Band, comp_time: float) -> Dict[str, Any]:
    """Create a uniform band metadata record."""
    return {
        "band": band.index,
        "top": band.top,
        "rows": band.height,
        "comp_time": comp_time,
    }


def render_parallel(
    bounds: ImageBounds,
    region: PlaneRegion,
    threads: int,
    limit: int = ESCAPE_LIMIT,
    *,
    verbose: bool = False,
) -> RenderReport:
    """Render the full image with one worker thread per band.

    A fresh pool is created for the call and joined before returning. Each
    worker receives only the raster slice of its own band, so no locking is
    needed. The first worker exception is re-raised and no image is returned.
    """
    raster = allocate_raster(bounds)
    bands = plan_bands(bounds, threads)

    start_time = time.perf_counter()
    records: List[Dict[str, Any]] = []
    if bands:
        with ThreadPoolExecutor(max_workers=len(bands)) as pool:
            futures = [
                pool.submit(
                    _render_band_timed,
                    band.view(raster),
                    band,
                    band_region(bounds, region, band),
                    limit,
                    verbose,
                )
                for band in bands
            ]
            # in band order, so the first failing band is the one reported
            records = [future.result() for future in futures]
    wall_time = time.perf_counter() - start_time

    return RenderReport(
        raster=raster,
        bounds=bounds,
        timing=_aggregate_timing(records, wall_time),
        bands=records or None,
    )


def _aggregate_timing(records: List[Dict[str, Any]], wall_time: float) -> Dict[str, Any]:
    comp_total = sum(float(record["comp_time"]) for record in records)
    return {
        "wall_time": float(wall_time),
        "comp_total": comp_total,
        "total_bands": len(records),
    }
