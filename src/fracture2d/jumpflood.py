from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import numpy as np
import structlog

from .geometry import Bounds
from .raster import RasterDiagram, build_cell_polygons, default_bounds, extract_vertices
from .sampling import sample_pixel_seeds

logger = structlog.get_logger()


def jump_steps(width: int, height: int) -> List[int]:
    """
    Strides of one JFA+2 run: from the smallest power of two >= max(width, height)
    halving down to 1, then 2 and 1 again.
    """
    n = max(int(width), int(height))
    step = 1
    while step < n:
        step *= 2
    steps = []
    while step >= 1:
        steps.append(step)
        step //= 2
    return steps + [2, 1]


def _shifted(src: np.ndarray, r0: int, r1: int, dx: int, dy: int) -> np.ndarray:
    """Rows r0:r1 of src sampled at (x+dx, y+dy); -1 outside the grid."""
    h, w = src.shape
    out = np.full((r1 - r0, w), -1, dtype=src.dtype)
    y0, y1 = max(r0, -dy), min(r1, h - dy)
    x0, x1 = max(0, -dx), min(w, w - dx)
    if y0 < y1 and x0 < x1:
        out[y0 - r0:y1 - r0, x0:x1] = src[y0 + dy:y1 + dy, x0 + dx:x1 + dx]
    return out


def _seed_distance(labels: np.ndarray, seeds: np.ndarray, rows: np.ndarray, cols: np.ndarray) -> np.ndarray:
    valid = labels >= 0
    idx = np.where(valid, labels, 0)
    sx = seeds[idx, 0]
    sy = seeds[idx, 1]
    d = (sx - cols) ** 2 + (sy - rows) ** 2
    return np.where(valid, d, np.inf)


def flood_band(src: np.ndarray, dst: np.ndarray, seeds: np.ndarray, step: int, r0: int, r1: int) -> None:
    """
    One jump-flood pass over rows r0:r1: every pixel keeps the nearest seed among
    itself and its 8 neighbors at distance ``step``. Reads only src, writes only dst[r0:r1].
    """
    w = src.shape[1]
    rows = np.arange(r0, r1, dtype=np.float64)[:, None]
    cols = np.arange(w, dtype=np.float64)[None, :]

    best = src[r0:r1].copy()
    best_d = _seed_distance(best, seeds, rows, cols)
    for dy in (-step, 0, step):
        for dx in (-step, 0, step):
            if dx == 0 and dy == 0:
                continue
            cand = _shifted(src, r0, r1, dx, dy)
            d = _seed_distance(cand, seeds, rows, cols)
            closer = d < best_d
            best[closer] = cand[closer]
            best_d[closer] = d[closer]
    dst[r0:r1] = best


class JumpFlood:
    """
    Raster Voronoi via the Jump Flood Algorithm (JFA+2) on a width x height label grid.

    workers > 1 splits each pass into row bands run on a thread pool; passes stay
    strictly sequential and always write into a fresh buffer.
    """

    def __init__(self, width: int, height: int, *, workers: int = 1, scan_stride: int = 2):
        self.width = int(width)
        self.height = int(height)
        if self.width < 1 or self.height < 1:
            raise ValueError("grid must be at least 1x1")
        self.workers = max(1, int(workers))
        self.scan_stride = int(scan_stride)

    @property
    def shape(self):
        return self.height, self.width

    def seed(self, seeds: np.ndarray) -> np.ndarray:
        """Label grid with seed k at its pixel and -1 elsewhere. Later seeds overwrite earlier ones."""
        labels = np.full(self.shape, -1, dtype=np.int32)
        for k, (x, y) in enumerate(seeds):
            labels[y, x] = k
        return labels

    def _bands(self) -> List[tuple]:
        n = min(self.workers, self.height)
        edges = np.linspace(0, self.height, n + 1).astype(int)
        return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]

    def propagate(self, labels: np.ndarray, seeds: np.ndarray) -> np.ndarray:
        src = np.asarray(labels, dtype=np.int32)
        if len(seeds) == 0:
            return src.copy()
        seeds = np.asarray(seeds, dtype=np.float64)
        steps = jump_steps(self.width, self.height)

        if self.workers == 1:
            for step in steps:
                dst = np.empty_like(src)
                flood_band(src, dst, seeds, step, 0, self.height)
                src = dst
            return src

        bands = self._bands()
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            for step in steps:
                dst = np.empty_like(src)
                futures = [pool.submit(flood_band, src, dst, seeds, step, r0, r1) for r0, r1 in bands]
                for f in futures:
                    f.result()
                src = dst
        return src

    def _check_seeds(self, seeds) -> np.ndarray:
        S = np.asarray(seeds)
        if S.size == 0:
            return np.zeros((0, 2), dtype=np.int64)
        if S.ndim != 2 or S.shape[1] != 2:
            raise ValueError("seeds must be (N,2) pixel coordinates (col,row)")
        if not np.issubdtype(S.dtype, np.integer):
            if not np.all(np.equal(np.mod(S, 1), 0)):
                raise ValueError("seeds must be integer pixel coordinates")
        S = S.astype(np.int64)
        if np.any(S[:, 0] < 0) or np.any(S[:, 0] >= self.width) or np.any(S[:, 1] < 0) or np.any(S[:, 1] >= self.height):
            raise ValueError("seeds must lie inside the grid")
        return S

    def compute(
        self,
        seeds: Optional[np.ndarray] = None,
        *,
        n_sites: int = 10,
        rng: Optional[np.random.Generator] = None,
        impact: Optional[Sequence[float]] = None,
        closeness: float = 0.5,
        bounds=None,
    ) -> RasterDiagram:
        """
        Seed, flood and extract cell polygons.

        seeds: (N,2) integer (col,row); when None, ``n_sites`` seeds are drawn from ``rng``,
        biased towards ``impact`` (pixel coordinates) if given.
        bounds: world rectangle the grid spans, defaults to pixel coordinates.
        """
        if seeds is None:
            if rng is None:
                rng = np.random.default_rng(0)
            seeds = sample_pixel_seeds(self.width, self.height, n_sites, rng, impact=impact, closeness=closeness)
        seeds = self._check_seeds(seeds)
        b = default_bounds(self.width, self.height) if bounds is None else Bounds.from_any(bounds)

        labels = self.propagate(self.seed(seeds), seeds)
        found = extract_vertices(labels, stride=self.scan_stride)
        cells = build_cell_polygons(found, seeds, self.shape, b)

        logger.info(
            "raster_diagram_computed",
            width=self.width,
            height=self.height,
            seeds=len(seeds),
            cells=len(cells),
            passes=len(jump_steps(self.width, self.height)),
        )
        return RasterDiagram(
            labels=labels,
            seeds=seeds,
            bounds=b,
            vertices=found.as_arrays(),
            cells=cells,
        )
