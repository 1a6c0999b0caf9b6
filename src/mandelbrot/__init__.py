"""Mandelbrot band renderer - threaded escape-time rendering to grayscale PNG."""

__version__ = "3.0.0"

# Core computation and config - lightweight, no tracking stack
from .computation import escape_time, pixel_to_point, render_band
from .config import (
    ImageBounds,
    PlaneRegion,
    RenderConfig,
    default_render_config,
    get_config_by_index,
    load_sweep_configs,
)
from .encoding import read_image, write_image
from .report import RenderReport
from .scheduling import Band, plan_bands, render_parallel


# Conditional imports - only loaded when needed
def __getattr__(name):
    """Lazy loading of heavy modules."""
    if name == "log_to_mlflow":
        from .logging import log_to_mlflow

        return log_to_mlflow
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Band",
    "ImageBounds",
    "PlaneRegion",
    "RenderConfig",
    "RenderReport",
    "default_render_config",
    "escape_time",
    "get_config_by_index",
    "load_sweep_configs",
    "log_to_mlflow",
    "pixel_to_point",
    "plan_bands",
    "read_image",
    "render_band",
    "render_parallel",
    "write_image",
]
