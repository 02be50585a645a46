"""Configuration for the density heatmap engine and its data sources.

Engine tunables and upstream endpoints are loaded from environment variables,
or from a YAML file for the engine tunables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Vertical 5-tap smoothing kernel (radius 2), symmetric, sums to 1
DEFAULT_KERNEL: tuple[float, ...] = (0.06, 0.24, 0.40, 0.24, 0.06)


@dataclass(frozen=True)
class EngineConfig:
    """Density heatmap engine tunables."""

    price_bins: int = field(default_factory=lambda: int(os.getenv("HEATMAP_PRICE_BINS", "120")))
    ramp_length: int = field(default_factory=lambda: int(os.getenv("HEATMAP_RAMP_LENGTH", "6")))

    # Sub-linear curve applied to notional / max_notional
    weight_exponent: float = field(
        default_factory=lambda: float(os.getenv("HEATMAP_WEIGHT_EXPONENT", "0.65"))
    )

    # Sub-linear curve applied to cell / max_cell
    intensity_exponent: float = field(
        default_factory=lambda: float(os.getenv("HEATMAP_INTENSITY_EXPONENT", "0.55"))
    )

    # Cells below this normalized intensity are dropped as noise
    min_intensity: float = field(
        default_factory=lambda: float(os.getenv("HEATMAP_MIN_INTENSITY", "0.015"))
    )

    lower_percentile: float = field(
        default_factory=lambda: float(os.getenv("HEATMAP_LOWER_PERCENTILE", "0.05"))
    )
    upper_percentile: float = field(
        default_factory=lambda: float(os.getenv("HEATMAP_UPPER_PERCENTILE", "0.95"))
    )
    kernel: tuple[float, ...] = DEFAULT_KERNEL

    def __post_init__(self) -> None:
        """Validate tunables."""
        if self.price_bins < 1:
            raise ValueError(f"price_bins must be >= 1, got {self.price_bins}")
        if self.ramp_length < 1:
            raise ValueError(f"ramp_length must be >= 1, got {self.ramp_length}")
        if self.weight_exponent <= 0 or self.intensity_exponent <= 0:
            raise ValueError("weight_exponent and intensity_exponent must be positive")
        if not 0 <= self.min_intensity <= 1:
            raise ValueError(f"min_intensity must be in [0, 1], got {self.min_intensity}")
        if not 0 <= self.lower_percentile < self.upper_percentile <= 1:
            raise ValueError(
                f"Percentiles must satisfy 0 <= lower < upper <= 1, "
                f"got {self.lower_percentile}, {self.upper_percentile}"
            )
        validate_kernel(self.kernel)

    @property
    def kernel_radius(self) -> int:
        return len(self.kernel) // 2


@dataclass(frozen=True)
class SourceConfig:
    """Upstream API endpoints and HTTP settings."""

    liquidation_api_base_url: str = field(
        default_factory=lambda: os.getenv("LIQUIDATION_API_BASE_URL", "http://localhost:8000/api")
    )
    price_api_base_url: str = field(
        default_factory=lambda: os.getenv("PRICE_API_BASE_URL", "https://api.coingecko.com/api/v3")
    )
    timeout: float = field(default_factory=lambda: float(os.getenv("HTTP_TIMEOUT", "10.0")))
    max_retries: int = field(default_factory=lambda: int(os.getenv("HTTP_MAX_RETRIES", "3")))
    backoff_seconds: float = field(
        default_factory=lambda: float(os.getenv("HTTP_BACKOFF_SECONDS", "1.0"))
    )


def validate_kernel(kernel: tuple[float, ...]) -> None:
    """Check that a smoothing kernel is odd-length, symmetric and non-negative.

    Raises:
        ValueError: If the kernel cannot be centred on a price bin
    """
    if len(kernel) % 2 != 1:
        raise ValueError(f"Kernel must have an odd number of taps, got {len(kernel)}")
    if any(tap < 0 for tap in kernel):
        raise ValueError("Kernel taps must be non-negative")
    if tuple(kernel) != tuple(reversed(kernel)):
        raise ValueError("Kernel must be symmetric")


def load_engine_config(config_path: Path | str) -> EngineConfig:
    """Load engine tunables from a YAML file.

    Keys not present in the file fall back to environment/defaults.

    Args:
        config_path: Path to YAML file with a top-level ``heatmap`` mapping

    Returns:
        Validated EngineConfig

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is malformed or a value is invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data: Any = yaml.safe_load(f)

    if not isinstance(data, dict) or not isinstance(data.get("heatmap"), dict):
        raise ValueError(f"Config file {path} must contain a 'heatmap' mapping")

    section = dict(data["heatmap"])
    if "kernel" in section:
        section["kernel"] = tuple(float(tap) for tap in section["kernel"])

    unknown = set(section) - set(EngineConfig.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown heatmap config keys: {sorted(unknown)}")

    return EngineConfig(**section)


# Global config instances (lazy initialization)
_engine_config: EngineConfig | None = None
_source_config: SourceConfig | None = None


def get_engine_config() -> EngineConfig:
    """Get engine configuration (singleton)."""
    global _engine_config
    if _engine_config is None:
        _engine_config = EngineConfig()
    return _engine_config


def get_source_config() -> SourceConfig:
    """Get data source configuration (singleton)."""
    global _source_config
    if _source_config is None:
        _source_config = SourceConfig()
    return _source_config
