"""Single renders, sweeps and MLflow tracking."""

from dataclasses import replace
from pathlib import Path

import numpy as np
from mandelbrot import logging as tracking
from mandelbrot.config import RenderConfig, load_sweep_configs
from mandelbrot.encoding import read_image
from mandelbrot.execution import run_single_render, run_sweep

TEST_CONFIGS = Path(__file__).parent / "test_configs.yaml"


def _config(tmp_path, **overrides):
    base = RenderConfig(
        output=str(tmp_path / "render.png"),
        width=24,
        height=18,
        threads=3,
    )
    return replace(base, **overrides)


def test_run_single_render_writes_report_raster(tmp_path):
    config = _config(tmp_path)
    report = run_single_render(config, verbose=False)

    pixels, bounds = read_image(config.output)
    assert bounds == config.bounds
    np.testing.assert_array_equal(pixels, report.raster)


def test_sweep_renders_every_config(tmp_path, capsys):
    configs = [replace(c, output=str(tmp_path / Path(c.output).name)) for c in load_sweep_configs(TEST_CONFIGS)]

    rc = run_sweep(configs, verbose=False)

    assert rc == 0
    assert all(Path(c.output).exists() for c in configs)
    out = capsys.readouterr().out
    assert f"Successful: {len(configs)}" in out


def test_sweep_results_agree_across_thread_counts(tmp_path):
    configs = [replace(c, output=str(tmp_path / Path(c.output).name)) for c in load_sweep_configs(TEST_CONFIGS)]
    run_sweep(configs, verbose=False)

    groups = {}
    for config in configs:
        key = (config.width, config.height, config.upper_left, config.lower_right)
        groups.setdefault(key, []).append(read_image(config.output)[0].tobytes())
    for images in groups.values():
        assert len(set(images)) == 1


def test_sweep_single_task(tmp_path):
    configs = [_config(tmp_path, output=str(tmp_path / f"{i}.png"), threads=i + 1) for i in range(3)]
    assert run_sweep(configs, task_id=1, verbose=False) == 0
    assert [Path(c.output).exists() for c in configs] == [False, True, False]


def test_sweep_task_out_of_range(tmp_path, capsys):
    assert run_sweep([_config(tmp_path)], task_id=5, verbose=False) == 1
    assert "out of range" in capsys.readouterr().err


def test_empty_sweep(capsys):
    assert run_sweep([]) == 1
    assert "No configurations" in capsys.readouterr().err


def test_sweep_reports_failures(tmp_path, capsys):
    good = _config(tmp_path)
    bad = _config(tmp_path, output=str(tmp_path), threads=2)

    assert run_sweep([good, bad], verbose=False) == 1
    out = capsys.readouterr().out
    assert "Failed:     1" in out
    assert bad.run_name in out


class _FakeRun:
    class info:
        run_id = "run-123"

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class _FakeMlflow:
    def __init__(self):
        self.calls = {}

    def _record(self, name, *args, **kwargs):
        self.calls.setdefault(name, []).append((args, kwargs))

    def set_tracking_uri(self, uri):
        self._record("set_tracking_uri", uri)

    def set_experiment(self, name):
        self._record("set_experiment", name)

    def start_run(self, run_name=None):
        self._record("start_run", run_name=run_name)
        return _FakeRun()

    def set_tags(self, tags):
        self._record("set_tags", tags)

    def log_params(self, params):
        self._record("log_params", params)

    def log_table(self, table, artifact_file):
        self._record("log_table", table, artifact_file)

    def log_metric(self, key, value):
        self._record("log_metric", key, value)

    def log_figure(self, figure, artifact_file):
        self._record("log_figure", artifact_file)

    def log_artifact(self, path, artifact_path=None):
        self._record("log_artifact", path, artifact_path)


def test_tracked_render_logs_to_mlflow(tmp_path, monkeypatch):
    fake = _FakeMlflow()
    monkeypatch.setattr(tracking, "mlflow", fake)
    config = _config(tmp_path)

    run_single_render(config, "TESTS", track=True, tracking_uri="file:///tmp/mlruns", verbose=False)

    assert fake.calls["set_tracking_uri"] == [(("file:///tmp/mlruns",), {})]
    assert fake.calls["start_run"] == [((), {"run_name": config.run_name})]
    (tags,), _ = fake.calls["set_tags"][0]
    assert tags["suite"] == "TESTS"
    (params,), _ = fake.calls["log_params"][0]
    assert params["threads"] == 3
    (table, name), _ = fake.calls["log_table"][0]
    assert name == "bands.json"
    assert table["band"] == [0, 1, 2]
    assert table["rows"] == [6, 6, 6]
    metrics = {args[0]: args[1] for args, _ in fake.calls["log_metric"]}
    assert metrics["total_bands"] == 3.0
    assert fake.calls["log_figure"] == [(("figures/mandelbrot.png",), {})]
    assert fake.calls["log_artifact"] == [((config.output, "renders"), {})]


def test_untracked_render_skips_mlflow(tmp_path, monkeypatch):
    fake = _FakeMlflow()
    monkeypatch.setattr(tracking, "mlflow", fake)
    run_single_render(_config(tmp_path), verbose=False)
    assert fake.calls == {}
