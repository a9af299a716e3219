from __future__ import annotations

from typing import Optional

import numpy as np
import structlog

from .datastructures import VoronoiDiagram
from .fortune import FortuneVoronoi

logger = structlog.get_logger()


def relax_sites(
    diagram: VoronoiDiagram,
    rng: np.random.Generator,
    *,
    jitter_probability: Optional[float] = None,
    max_step: float = 2.0,
) -> np.ndarray:
    """
    One Lloyd step: move every site towards the area centroid of its cell.

    - moves longer than ``max_step`` only go half way (slow relaxation)
    - with probability ``jitter_probability`` (default 0.1 / n_cells) a site is instead
      pushed past the centroid, away from where it was, which keeps repeated fractures jagged
    - cells with fewer than three vertices or no area keep their site
    Returns (N,2) sites in cell order, clamped to the diagram bounds.
    """
    cells = diagram.cells
    n = len(cells)
    if n == 0:
        return np.zeros((0, 2), dtype=np.float64)
    p = 0.1 / n if jitter_probability is None else float(jitter_probability)
    if not 0.0 <= p <= 1.0:
        raise ValueError("jitter_probability must be in [0, 1]")

    b = diagram.bounds
    out = np.empty((n, 2), dtype=np.float64)
    draws = rng.random(n)
    jittered = 0
    for i, cell in enumerate(cells):
        site = np.array([cell.site.x, cell.site.y], dtype=np.float64)
        if len(cell.polygon()) < 3:
            out[i] = site
            continue
        poly = cell.to_shapely()
        if poly.is_empty or poly.area <= 0:
            out[i] = site
            continue

        c = np.array(poly.centroid.coords[0], dtype=np.float64)
        d = float(np.linalg.norm(c - site))

        if draws[i] < p and d > 0:
            # two units beyond the centroid, along site -> centroid
            out[i] = c + (c - site) / (d / 2.0)
            jittered += 1
            continue

        if d > max_step:
            c = (c + site) / 2.0
        out[i] = c

    out[:, 0] = np.clip(out[:, 0], b.minx, b.maxx)
    out[:, 1] = np.clip(out[:, 1], b.miny, b.maxy)
    logger.debug("sites_relaxed", cells=n, jittered=jittered)
    return out


def relax_diagram(
    diagram: VoronoiDiagram,
    iterations: int,
    *,
    rng: np.random.Generator,
    engine: Optional[FortuneVoronoi] = None,
    jitter_probability: Optional[float] = None,
    max_step: float = 2.0,
) -> VoronoiDiagram:
    """
    Apply ``iterations`` relaxation steps, recomputing the diagram after each.
    With 0 iterations the input diagram is returned unchanged.
    """
    iterations = int(iterations)
    if iterations < 0:
        raise ValueError("iterations must be >= 0")
    if engine is None:
        engine = FortuneVoronoi()

    for it in range(iterations):
        sites = relax_sites(diagram, rng, jitter_probability=jitter_probability, max_step=max_step)
        diagram = engine.compute(sites, diagram.bounds)
        logger.debug("relax_iteration", iteration=it, cells=diagram.cell_count())
    return diagram
