"""Execution helpers for Mandelbrot CLI workflows."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from .config import RenderConfig
from .encoding import write_image
from .report import RenderReport
from .scheduling import render_parallel


def run_single_render(
    config: RenderConfig,
    suite_name: Optional[str] = None,
    *,
    track: bool = False,
    tracking_uri: Optional[str] = None,
    verbose: bool = True,
) -> RenderReport:
    """Render one configuration, write it to ``config.output`` and optionally track it."""
    if verbose:
        print(
            f"[Run] Starting render '{config.run_name}' "
            f"(size={config.image_size}, threads={config.threads}, limit={config.limit})",
            flush=True,
        )

    report = render_parallel(
        config.bounds,
        config.region,
        config.threads,
        config.limit,
        verbose=verbose,
    )
    write_image(config.output, report.raster, config.bounds)

    if track:
        if verbose:
            print("[Run] Render finished, logging to MLflow...", flush=True)
        # mlflow is heavy to import; only pay for it when tracking
        from .logging import log_to_mlflow

        log_to_mlflow(config, report, suite_name or "default", tracking_uri)

    if verbose:
        wall_time = report.timing.get("wall_time", 0.0)
        print(f"[Timing] Total: {wall_time:.4f}s -> {config.output}", flush=True)
    return report


def run_sweep(
    configs: list[RenderConfig],
    task_id: Optional[int] = None,
    suite_name: Optional[str] = None,
    descriptor: str = "sweep",
    *,
    track: bool = False,
    tracking_uri: Optional[str] = None,
    verbose: bool = True,
) -> int:
    """Run every configuration of a sweep, or only the one at ``task_id``."""
    if not configs:
        print("ERROR: No configurations found in sweep", file=sys.stderr)
        return 1

    if task_id is not None:
        if task_id < 0 or task_id >= len(configs):
            print(f"ERROR: task-id {task_id} out of range [0, {len(configs) - 1}]", file=sys.stderr)
            return 1
        config = configs[task_id]
        Path(config.output).parent.mkdir(parents=True, exist_ok=True)
        print(f"[Task {task_id}] Running: {config.run_name}")
        run_single_render(config, suite_name, track=track, tracking_uri=tracking_uri, verbose=verbose)
        return 0

    print("=" * 70)
    print(f"Running {len(configs)} configurations from {descriptor}")
    print("=" * 70)

    successes = 0
    failures: list[tuple[int, str]] = []

    for idx, cfg in enumerate(configs):
        print(f"\n[{idx + 1}/{len(configs)}] {cfg.run_name}")
        try:
            Path(cfg.output).parent.mkdir(parents=True, exist_ok=True)
            run_single_render(cfg, suite_name, track=track, tracking_uri=tracking_uri, verbose=verbose)
        except OSError as exc:
            print(f"    ✗ FAILED: {exc}", file=sys.stderr)
            failures.append((idx, cfg.run_name))
            continue
        successes += 1
        print("    ✓ Completed")

    print("\n" + "=" * 70)
    print("Summary")
    print("=" * 70)
    print(f"Total:      {len(configs)}")
    print(f"Successful: {successes}")
    print(f"Failed:     {len(failures)}")

    if failures:
        print("\nFailed configurations:")
        for idx, name in failures:
            print(f"  [{idx}] {name}")
        return 1

    return 0
