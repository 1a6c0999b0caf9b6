"""Configuration objects, argument parsers and YAML loading for Mandelbrot renders."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from itertools import product
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

import yaml

T = TypeVar("T")


@dataclass(frozen=True)
class ImageBounds:
    """Pixel dimensions of a raster (or of a band within one)."""

    width: int
    height: int

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class PlaneRegion:
    """Rectangle of the complex plane; imaginary axis points up."""

    upper_left: complex
    lower_right: complex


@dataclass(frozen=True)
class RenderConfig:
    """Runtime configuration for a single Mandelbrot render."""

    output: str
    width: int
    height: int
    upper_left: complex = complex(-2.2, 1.3)
    lower_right: complex = complex(0.75, -1.3)
    threads: int = 8
    limit: int = 255

    def __post_init__(self) -> None:
        if self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")
        # 255 - escape_count has to fit in a byte
        if not 1 <= self.limit <= 256:
            raise ValueError(f"limit must be in [1, 256], got {self.limit}")

    @property
    def bounds(self) -> ImageBounds:
        return ImageBounds(self.width, self.height)

    @property
    def region(self) -> PlaneRegion:
        return PlaneRegion(self.upper_left, self.lower_right)

    @property
    def image_size(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def run_name(self) -> str:
        """Generate unique run name embedding all parameters."""
        return (
            f"t{self.threads}_l{self.limit}_{self.image_size}_"
            f"{_format_complex(self.upper_left)}_{_format_complex(self.lower_right)}"
        )

    def to_dict(self) -> dict:
        """Convert to a flat dictionary for MLflow logging."""
        data = asdict(self)
        data["upper_left"] = _format_complex(self.upper_left)
        data["lower_right"] = _format_complex(self.lower_right)
        return data

    def to_cli_args(self) -> List[str]:
        """Convert config to CLI arguments."""
        return [
            self.output,
            self.image_size,
            _format_complex(self.upper_left),
            _format_complex(self.lower_right),
            f"--threads={self.threads}",
            f"--limit={self.limit}",
        ]


DEFAULT_RENDER_CONFIG = RenderConfig(
    output="mandel.png",
    width=1024,
    height=768,
    upper_left=complex(-1.20, 0.35),
    lower_right=complex(-1.0, 0.20),
    threads=8,
    limit=255,
)


def default_render_config(**overrides: object) -> RenderConfig:
    """Return the canonical default config optionally overridden with kwargs."""
    return replace(DEFAULT_RENDER_CONFIG, **_coerce_fields(overrides))


def parse_pair(s: str, separator: str, kind: Callable[[str], T] = int) -> Optional[Tuple[T, T]]:
    """Parse ``"<left><separator><right>"`` into a pair converted by ``kind``.

    Splits at the first occurrence of ``separator``. Returns ``None`` when the
    separator is missing or either half fails to convert.
    """
    index = s.find(separator)
    if index < 0:
        return None
    try:
        return kind(s[:index]), kind(s[index + 1:])
    except ValueError:
        return None


def parse_unsigned(s: str) -> int:
    """Convert a plain run of ASCII digits; signs, spaces and underscores are rejected."""
    if not (s.isascii() and s.isdigit()):
        raise ValueError(f"invalid unsigned integer: {s!r}")
    return int(s)


def parse_complex(s: str) -> Optional[complex]:
    """Parse ``"RE,IM"`` into a complex number."""
    pair = parse_pair(s, ",", float)
    if pair is None:
        return None
    return complex(pair[0], pair[1])


def parse_image_size(value: str) -> Tuple[int, int]:
    pair = parse_pair(value.lower().strip(), "x", parse_unsigned)
    if pair is None:
        raise ValueError(f"Invalid image size {value!r}, expected WIDTHxHEIGHT")
    return pair


def load_sweep_configs(yaml_path: str | Path) -> List[RenderConfig]:
    """Load YAML config and generate all parameter sweep combinations.

    Supports a top-level ``sweep`` as well as the grouped format that nests
    several named experiments under ``experiments``.
    """
    return [config for _, configs in load_named_sweep_configs(yaml_path) for config in configs]


def get_config_by_index(yaml_path: str | Path, index: int) -> RenderConfig:
    """Get a specific config by index from sweep."""
    configs = load_sweep_configs(yaml_path)
    if index < 0 or index >= len(configs):
        raise ValueError(f"Config index {index} out of range [0, {len(configs) - 1}]")
    return configs[index]


def load_named_sweep_configs(
    yaml_path: str | Path,
    suite: str | None = None,
) -> List[tuple[str, List[RenderConfig]]]:
    with open(yaml_path) as f:
        cfg = yaml.safe_load(f) or {}

    defaults: Dict[str, object] = cfg.get("defaults", {}) or {}
    experiments = cfg.get("experiments")
    results: List[tuple[str, List[RenderConfig]]] = []

    if experiments:
        for exp in experiments:
            name = exp.get("name")
            if not name:
                continue
            if suite and name != suite:
                continue
            sweep = exp.get("sweep") or {}
            exp_defaults = {**defaults, **(exp.get("defaults", {}) or {})}
            results.append((name, _expand_sweep(exp_defaults, sweep)))
        if suite and not results:
            raise ValueError(f"Suite '{suite}' not found in {yaml_path}")
        return results

    sweep: Dict[str, object] = cfg.get("sweep", {}) or {}
    label = cfg.get("name") or Path(yaml_path).stem
    return [(label, _expand_sweep(defaults, sweep))]


def _expand_sweep(defaults: Dict[str, object], sweep: Dict[str, object]) -> List[RenderConfig]:
    """Expand sweep definition into RenderConfig instances."""
    regions = sweep.get("regions")
    shape_options = sweep.get("image_shape")
    param_grid = {k: sweep[k] for k in sweep if k not in {"regions", "image_shape"}}

    keys = list(param_grid.keys())
    combos = list(product(*[_as_list(param_grid[k]) for k in keys])) if keys else [()]

    configs: List[RenderConfig] = []
    for region in regions or [None]:
        for combo in combos:
            data = {**defaults, **dict(zip(keys, combo))}
            if region is not None:
                data["upper_left"], data["lower_right"] = _normalize_region(region)
            configs.extend(_expand_shapes(data, shape_options))
    return configs


def _expand_shapes(base: Dict[str, object], shape_options: object) -> List[RenderConfig]:
    if not shape_options:
        return [_build_render_config(base)]

    shapes: Iterable[Tuple[int, int]]
    if isinstance(shape_options, list) and not _is_shape_pair(shape_options):
        shapes = [_normalize_shape_entry(opt) for opt in shape_options]
    else:
        shapes = [_normalize_shape_entry(shape_options)]

    return [_build_render_config({**base, "width": w, "height": h}) for w, h in shapes]


def _build_render_config(raw_data: Dict[str, object]) -> RenderConfig:
    data = _coerce_fields(raw_data)
    output_dir = data.pop("output_dir", None)
    try:
        if "output" in data:
            return RenderConfig(**data)  # type: ignore[arg-type]
        # run_name depends on every other field, so build once without output
        config = RenderConfig(output="", **data)  # type: ignore[arg-type]
    except TypeError as exc:
        raise ValueError(f"Invalid render configuration {raw_data!r}: {exc}") from exc
    return replace(config, output=str(Path(output_dir or ".") / f"{config.run_name}.png"))


def _coerce_fields(data: Dict[str, object]) -> Dict[str, object]:
    result = dict(data)
    for key in ("image_size", "image_shape"):
        shape = result.pop(key, None)
        if shape is not None:
            width, height = _normalize_shape_entry(shape)
            result.setdefault("width", width)
            result.setdefault("height", height)
    for key in ("width", "height", "threads", "limit"):
        if key in result:
            result[key] = int(result[key])
    for key in ("upper_left", "lower_right"):
        if key in result:
            result[key] = _normalize_point(result[key])
    if "output" in result:
        result["output"] = str(result["output"])
    return result


def _normalize_point(entry: object) -> complex:
    if isinstance(entry, complex):
        return entry
    if isinstance(entry, str):
        point = parse_complex(entry)
        if point is None:
            raise ValueError(f"Unsupported complex point specification: {entry!r}")
        return point
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        return complex(float(entry[0]), float(entry[1]))
    raise ValueError(f"Unsupported complex point specification: {entry!r}")


def _normalize_region(entry: object) -> Tuple[complex, complex]:
    if isinstance(entry, dict):
        return _normalize_point(entry.get("upper_left")), _normalize_point(entry.get("lower_right"))
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        return _normalize_point(entry[0]), _normalize_point(entry[1])
    raise ValueError(f"Unsupported region specification: {entry!r}")


def _normalize_shape_entry(entry: object) -> Tuple[int, int]:
    if isinstance(entry, dict):
        width = entry.get("width")
        height = entry.get("height")
        if width is None or height is None:
            raise ValueError("image_shape dict must include 'width' and 'height'")
        return int(width), int(height)
    if _is_shape_pair(entry):
        return int(entry[0]), int(entry[1])  # type: ignore[index]
    if isinstance(entry, str):
        return parse_image_size(entry)
    raise ValueError(f"Unsupported image shape specification: {entry!r}")


def _is_shape_pair(entry: object) -> bool:
    return (
        isinstance(entry, (list, tuple))
        and len(entry) == 2
        and all(isinstance(v, int) and not isinstance(v, bool) for v in entry)
    )


def _as_list(value: object) -> list:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _format_complex(value: complex) -> str:
    return f"{value.real!r},{value.imag!r}"
