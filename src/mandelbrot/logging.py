"""MLflow tracking for Mandelbrot renders."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import mlflow
import pandas as pd
from matplotlib import pyplot as plt

from .config import RenderConfig
from .report import RenderReport

EXPERIMENT_NAME = "mandelbrot"


def log_to_mlflow(
    config: RenderConfig,
    report: RenderReport,
    suite_name: str = "default",
    tracking_uri: Optional[str] = None,
) -> str:
    """Log a finished render to MLflow and return the run id.

    Records the configuration as params, the timing totals as metrics, the
    per-band timings as a table, a preview figure and the written image.

    Args:
        config: Render configuration
        report: Raster, timing stats and band table of the render
        suite_name: Name of the sweep suite, used as a tag for filtering
        tracking_uri: Tracking server; MLflow's own default when omitted
    """
    if tracking_uri:
        mlflow.set_tracking_uri(tracking_uri)
    mlflow.set_experiment(EXPERIMENT_NAME)

    with mlflow.start_run(run_name=config.run_name) as run:
        mlflow.set_tags(
            {
                "node_name": os.uname().nodename,
                "suite": suite_name,
            }
        )
        mlflow.log_params(config.to_dict())

        band_records = report.copy_bands()
        if band_records:
            mlflow.log_table(_records_to_table(band_records), "bands.json")

        timing_stats = report.timing or {}
        metrics = {
            "wall_time": float(timing_stats.get("wall_time", 0.0)),
            "comp_total": float(timing_stats.get("comp_total", 0.0)),
            "total_bands": float(timing_stats.get("total_bands", 0)),
        }
        for key, value in metrics.items():
            mlflow.log_metric(key, value)

        fig, ax = plt.subplots(figsize=(6, 6))
        ax.imshow(report.image(), cmap="gray", vmin=0, vmax=255)
        mlflow.log_figure(fig, "figures/mandelbrot.png")
        plt.close(fig)

        if Path(config.output).exists():
            mlflow.log_artifact(config.output, "renders")

        print(f"[MLflow] Logged run: {config.run_name} (suite: {suite_name})", flush=True)
        print(f"[MLflow] Run ID: {run.info.run_id}", flush=True)
        return run.info.run_id


def _records_to_table(band_records: Sequence[Dict[str, Any]]) -> Dict[str, List[Any]]:
    """Convert row-wise band records into MLflow table format."""

    frame = pd.DataFrame.from_records(band_records)
    return frame.to_dict(orient="list")
