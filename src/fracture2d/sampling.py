from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .geometry import Bounds


def _check_closeness(closeness: float) -> float:
    closeness = float(closeness)
    if not 0.0 <= closeness <= 0.5:
        raise ValueError("closeness must be in [0, 0.5]")
    return closeness


def sample_sites(
    bounds,
    n: int,
    rng: np.random.Generator,
    *,
    impact: Optional[Sequence[float]] = None,
    closeness: float = 0.5,
) -> np.ndarray:
    """
    Uniform sites in ``bounds``; when ``impact`` is given each site is then pulled towards it
    by a fraction drawn from U(closeness, 1), so larger closeness clusters harder.
    """
    b = Bounds.from_any(bounds)
    n = int(n)
    if n < 0:
        raise ValueError("n must be >= 0")
    closeness = _check_closeness(closeness)

    pts = np.empty((n, 2), dtype=np.float64)
    pts[:, 0] = rng.uniform(b.minx, b.maxx, n)
    pts[:, 1] = rng.uniform(b.miny, b.maxy, n)

    if impact is not None:
        target = np.asarray(impact, dtype=np.float64).reshape(2)
        pull = rng.uniform(closeness, 1.0, (n, 2))
        pts += (target[None, :] - pts) * pull

    return pts


def sample_pixel_seeds(
    width: int,
    height: int,
    n: int,
    rng: np.random.Generator,
    *,
    impact: Optional[Sequence[float]] = None,
    closeness: float = 0.5,
) -> np.ndarray:
    """
    Integer (col,row) seed pixels, same distribution as ``sample_sites`` over the grid.
    impact is given in pixel coordinates.
    """
    width, height = int(width), int(height)
    if width < 1 or height < 1:
        raise ValueError("grid must be at least 1x1")
    # half-open pixel extent so floor() stays inside the grid
    pts = sample_sites((0.0, 0.0, float(width), float(height)), n, rng, impact=impact, closeness=closeness)
    px = np.floor(pts).astype(np.int64)
    px[:, 0] = np.clip(px[:, 0], 0, width - 1)
    px[:, 1] = np.clip(px[:, 1], 0, height - 1)
    return px
