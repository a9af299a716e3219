from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import structlog

from .config import FractureConfig, JumpFloodConfig
from .datastructures import VoronoiDiagram
from .fortune import FortuneVoronoi
from .jumpflood import JumpFlood
from .raster import RasterDiagram
from .relax import relax_diagram
from .sampling import sample_pixel_seeds, sample_sites

logger = structlog.get_logger()


def fracture_fortune(
    config: FractureConfig,
    impact: Optional[Sequence[float]] = None,
    *,
    rng: Optional[np.random.Generator] = None,
) -> VoronoiDiagram:
    """
    Fracture the config's rectangle around ``impact``.

    Sites are drawn uniformly (``full_random``) or clustered around the impact point;
    without an impact point one is drawn uniformly inside the bounds. The diagram is
    then relaxed ``relax_iterations`` times.
    """
    if rng is None:
        rng = config.rng()
    b = config.box

    target = None
    if not config.full_random:
        if impact is None:
            impact = (rng.uniform(b.minx, b.maxx), rng.uniform(b.miny, b.maxy))
        target = impact

    sites = sample_sites(b, config.n_sites, rng, impact=target, closeness=config.impact_closeness)
    engine = FortuneVoronoi(eps=config.epsilon)
    diagram = engine.compute(sites, b)
    diagram = relax_diagram(
        diagram,
        config.relax_iterations,
        rng=rng,
        engine=engine,
        jitter_probability=config.jitter_probability,
    )
    logger.info(
        "fracture_fortune",
        impact=None if target is None else (float(target[0]), float(target[1])),
        cells=diagram.cell_count(),
        closing_errors=diagram.has_closing_errors,
    )
    return diagram


def fracture_raster(
    config: JumpFloodConfig,
    impact: Optional[Sequence[float]] = None,
    *,
    rng: Optional[np.random.Generator] = None,
) -> RasterDiagram:
    """Raster counterpart of ``fracture_fortune``; ``impact`` is in pixel coordinates."""
    if rng is None:
        rng = config.rng()

    target = None
    if not config.full_random:
        if impact is None:
            impact = (rng.uniform(0, config.width), rng.uniform(0, config.height))
        target = impact

    seeds = sample_pixel_seeds(
        config.width, config.height, config.n_sites, rng, impact=target, closeness=config.impact_closeness
    )
    jfa = JumpFlood(config.width, config.height, workers=config.workers, scan_stride=config.scan_stride)
    return jfa.compute(seeds, bounds=config.bounds)
