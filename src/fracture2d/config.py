from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import ConfigError
from .geometry import EPS, Bounds


def _check_closeness(value: float) -> None:
    if not 0.0 <= value <= 0.5:
        raise ConfigError(f"impact_closeness must be in [0, 0.5], got {value}")


def _check_bounds(bounds) -> Bounds:
    try:
        return Bounds.from_any(bounds)
    except ValueError as e:
        raise ConfigError(str(e)) from e


@dataclass(frozen=True)
class FractureConfig:
    n_sites: int = 10
    bounds: Tuple[float, float, float, float] = (0.0, 0.0, 10.0, 10.0)
    relax_iterations: int = 1
    impact_closeness: float = 0.5
    full_random: bool = False        # ignore the impact point entirely
    epsilon: float = EPS
    jitter_probability: Optional[float] = None  # None -> 0.1 / n_cells
    seed: Optional[int] = None

    def __post_init__(self):
        if self.n_sites < 0:
            raise ConfigError("n_sites must be >= 0")
        if self.relax_iterations < 0:
            raise ConfigError("relax_iterations must be >= 0")
        if self.epsilon <= 0:
            raise ConfigError("epsilon must be > 0")
        if self.jitter_probability is not None and not 0.0 <= self.jitter_probability <= 1.0:
            raise ConfigError("jitter_probability must be in [0, 1]")
        _check_closeness(self.impact_closeness)
        object.__setattr__(self, "bounds", tuple(_check_bounds(self.bounds)))

    @property
    def box(self) -> Bounds:
        return Bounds(*self.bounds)

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)


@dataclass(frozen=True)
class JumpFloodConfig:
    width: int = 512
    height: int = 512
    n_sites: int = 10
    impact_closeness: float = 0.5
    full_random: bool = False
    bounds: Optional[Tuple[float, float, float, float]] = None  # None -> pixel coordinates
    workers: int = 1
    scan_stride: int = 2
    seed: Optional[int] = None

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ConfigError("grid must be at least 1x1")
        if self.n_sites < 0:
            raise ConfigError("n_sites must be >= 0")
        if self.workers < 1:
            raise ConfigError("workers must be >= 1")
        if self.scan_stride < 1:
            raise ConfigError("scan_stride must be >= 1")
        _check_closeness(self.impact_closeness)
        if self.bounds is not None:
            object.__setattr__(self, "bounds", tuple(_check_bounds(self.bounds)))

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)
