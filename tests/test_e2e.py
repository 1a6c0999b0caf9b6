"""End-to-end test via main.py."""
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent


def _run(*args, cwd=ROOT):
    env = {**os.environ, "PYTHONPATH": str(ROOT / "src")}
    return subprocess.run(
        [sys.executable, str(ROOT / "main.py"), *args],
        cwd=cwd, env=env, capture_output=True, text=True, timeout=120,
    )


def test_batch_render(tmp_path):
    """Render the reference example region end-to-end."""
    output = tmp_path / "mandel.png"
    result = _run(str(output), "160x120", "-1.20,0.35", "-1,0.20")

    assert result.returncode == 0, f"Render failed:\n{result.stdout}\n{result.stderr}"
    assert output.exists()


def test_wrong_argument_count_exits_one():
    result = _run("mandel.png")
    assert result.returncode == 1
    assert "wrong number of arguments" in result.stderr


def test_tests_suite(tmp_path):
    """Run TESTS suite end-to-end - should complete without errors."""
    result = _run("--sweep", str(ROOT / "configs" / "sweeps.yaml"), "--suite", "TESTS", cwd=tmp_path)

    assert result.returncode == 0, f"Suite failed:\n{result.stdout}\n{result.stderr}"
    assert len(list((tmp_path / "renders").glob("*.png"))) == 2
