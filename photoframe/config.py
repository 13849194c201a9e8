"""Slideshow configuration loaded from YAML."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

import yaml


class ConfigError(ValueError):
    """Raised when a configuration document is malformed or out of range."""


class BlurBackend(enum.Enum):
    """Implementation used to blur matting backgrounds."""

    CPU = "cpu"
    NEON = "neon"


DEFAULT_BLUR_MAX_SAMPLE_DIM = 2048


@dataclass(frozen=True)
class FixedColorMatting:
    """Fill the mat with a single opaque colour."""

    color: Tuple[int, int, int] = (0, 0, 0)


@dataclass(frozen=True)
class BlurMatting:
    """Fill the mat with a blurred, cover-scaled copy of the photo."""

    sigma: float = 20.0
    max_sample_dim: Optional[int] = None
    backend: BlurBackend = BlurBackend.CPU

    DEFAULT_MAX_SAMPLE_DIM = DEFAULT_BLUR_MAX_SAMPLE_DIM


MattingStyle = Union[FixedColorMatting, BlurMatting]


@dataclass(frozen=True)
class MattingOptions:
    """How displayed photos are framed on the canvas."""

    minimum_mat_percentage: float = 0.0
    max_upscale_factor: float = 1.0
    style: MattingStyle = field(default_factory=FixedColorMatting)


@dataclass(frozen=True)
class Configuration:
    """Top-level runtime settings."""

    photo_library_path: Path = field(default_factory=Path)
    oversample: float = 1.0
    fade_ms: int = 400
    dwell_ms: int = 2000
    viewer_preload_count: int = 3
    loader_max_concurrent_decodes: int = 4
    startup_shuffle_seed: Optional[int] = None
    matting: MattingOptions = field(default_factory=MattingOptions)

    def validated(self) -> "Configuration":
        """Return self if runtime invariants hold, else raise ConfigError."""
        if self.viewer_preload_count <= 0:
            raise ConfigError("viewer-preload-count must be greater than zero")
        if self.loader_max_concurrent_decodes <= 0:
            raise ConfigError("loader-max-concurrent-decodes must be greater than zero")
        if not self.oversample > 0.0:
            raise ConfigError("oversample must be positive")
        if self.fade_ms <= 0:
            raise ConfigError("fade-ms must be greater than zero")
        if self.dwell_ms <= 0:
            raise ConfigError("dwell-ms must be greater than zero")
        return self


def _float(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key}: expected a number, got {value!r}")
    return float(value)


def _unsigned(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key}: expected an integer, got {value!r}")
    if value < 0:
        raise ConfigError(f"{key}: expected a non-negative integer, got {value}")
    return value


def _color(value: Any) -> Tuple[int, int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ConfigError(f"color: expected a list of three bytes, got {value!r}")
    channels = []
    for channel in value:
        number = _unsigned(channel, "color")
        if number > 255:
            raise ConfigError(f"color: channel {number} exceeds 255")
        channels.append(number)
    return (channels[0], channels[1], channels[2])


def _backend(value: Any) -> BlurBackend:
    try:
        return BlurBackend(value)
    except ValueError:
        raise ConfigError(f"backend: unknown variant {value!r}") from None


def _matting_style(data: Mapping[str, Any]) -> MattingStyle:
    kind = data.get("type")
    if kind is None:
        return FixedColorMatting()
    if kind == "fixed-color":
        if "color" in data:
            return FixedColorMatting(color=_color(data["color"]))
        return FixedColorMatting()
    if kind == "blur":
        sigma = _float(data["sigma"], "sigma") if "sigma" in data else 20.0
        raw_dim = data.get("max-sample-dim")
        max_sample_dim = None if raw_dim is None else _unsigned(raw_dim, "max-sample-dim")
        backend = _backend(data["backend"]) if "backend" in data else BlurBackend.CPU
        return BlurMatting(sigma=sigma, max_sample_dim=max_sample_dim, backend=backend)
    raise ConfigError(f"matting type: unknown variant {kind!r}")


def _matting(data: Any) -> MattingOptions:
    if data is None:
        return MattingOptions()
    if not isinstance(data, Mapping):
        raise ConfigError(f"matting: expected a mapping, got {data!r}")
    minimum = (
        _float(data["minimum-mat-percentage"], "minimum-mat-percentage")
        if "minimum-mat-percentage" in data
        else 0.0
    )
    upscale = (
        max(_float(data["max-upscale-factor"], "max-upscale-factor"), 1.0)
        if "max-upscale-factor" in data
        else 1.0
    )
    return MattingOptions(
        minimum_mat_percentage=minimum,
        max_upscale_factor=upscale,
        style=_matting_style(data),
    )


def _from_mapping(data: Mapping[str, Any]) -> Configuration:
    kwargs: dict = {}
    if "photo-library-path" in data and "photo_library_path" in data:
        raise ConfigError("duplicate field photo-library-path")
    for key in ("photo-library-path", "photo_library_path"):
        if key in data:
            raw = data[key]
            if not isinstance(raw, str):
                raise ConfigError(f"{key}: expected a path string, got {raw!r}")
            kwargs["photo_library_path"] = Path(raw)
    if "oversample" in data:
        kwargs["oversample"] = _float(data["oversample"], "oversample")
    for key in (
        "fade-ms",
        "dwell-ms",
        "viewer-preload-count",
        "loader-max-concurrent-decodes",
    ):
        if key in data:
            kwargs[key.replace("-", "_")] = _unsigned(data[key], key)
    seed = data.get("startup-shuffle-seed")
    if seed is not None:
        kwargs["startup_shuffle_seed"] = _unsigned(seed, "startup-shuffle-seed")
    if "matting" in data:
        kwargs["matting"] = _matting(data["matting"])
    return Configuration(**kwargs)


def parse_configuration(text: str) -> Configuration:
    """Parse a YAML document into a Configuration (not yet validated)."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}") from exc
    if data is None:
        return Configuration()
    if not isinstance(data, Mapping):
        raise ConfigError("configuration must be a mapping")
    return _from_mapping(data)


def load_configuration(path: Union[str, Path]) -> Configuration:
    """Read and parse a YAML configuration file."""
    return parse_configuration(Path(path).read_text(encoding="utf-8"))