from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

import numpy as np

from .datastructures import CellPolygon
from .geometry import Bounds, sort_ccw

PixelSet = Dict[Tuple[int, int], None]


def default_bounds(width: int, height: int) -> Bounds:
    """World rectangle equal to pixel coordinates (pixel centers at integers)."""
    return Bounds(0.0, 0.0, float(max(width - 1, 1)), float(max(height - 1, 1)))


def pixel_to_world(px: np.ndarray, shape: Tuple[int, int], bounds: Bounds) -> np.ndarray:
    """
    Map (col,row) pixel coordinates onto ``bounds``; the outermost pixel centers land on the box edges.
    """
    h, w = shape
    P = np.asarray(px, dtype=np.float64).reshape(-1, 2)
    out = np.empty_like(P)
    if w > 1:
        out[:, 0] = bounds.minx + P[:, 0] * (bounds.width / (w - 1))
    else:
        out[:, 0] = 0.5 * (bounds.minx + bounds.maxx)
    if h > 1:
        out[:, 1] = bounds.miny + P[:, 1] * (bounds.height / (h - 1))
    else:
        out[:, 1] = 0.5 * (bounds.miny + bounds.maxy)
    return out


@dataclass
class RasterVertices:
    """Boundary pixels found per label, plus which labels met at those pixels."""
    pixels: Dict[int, PixelSet] = field(default_factory=dict)
    neighbors: Dict[int, Set[int]] = field(default_factory=dict)

    def add(self, label: int, i: int, j: int) -> None:
        if label < 0:
            return
        self.pixels.setdefault(int(label), {})[(int(i), int(j))] = None

    def link(self, labels) -> None:
        labs = [int(x) for x in labels if x >= 0]
        for a in labs:
            self.neighbors.setdefault(a, set()).update(b for b in labs if b != a)

    def as_arrays(self) -> Dict[int, np.ndarray]:
        return {k: np.array(list(v), dtype=np.int64).reshape(-1, 2) for k, v in self.pixels.items()}


def _scan_border_row(labels: np.ndarray, row: int, out: RasterVertices) -> None:
    """Run-length scan, right to left: both row ends plus every label change."""
    h, w = labels.shape
    line = labels[row]
    out.add(line[w - 1], w - 1, row)
    if w > 2:
        changes = np.nonzero(line[1:w - 1] != line[2:w])[0] + 1
        for i in changes[::-1]:
            out.add(line[i + 1], i, row)
            out.add(line[i], i, row)
            out.link((line[i], line[i + 1]))
    out.add(line[0], 0, row)


def distinct_label_counts(labels: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    For every interior pixel, the number of distinct labels in its 3x3 neighborhood.
    Returns (counts (H-2,W-2), sorted neighborhoods (H-2,W-2,9)).
    """
    h, w = labels.shape
    stack = np.stack(
        [labels[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx] for dy in (-1, 0, 1) for dx in (-1, 0, 1)],
        axis=-1,
    )
    stack = np.sort(stack, axis=-1)
    counts = 1 + np.count_nonzero(np.diff(stack, axis=-1), axis=-1)
    return counts, stack


def extract_vertices(labels: np.ndarray, *, stride: int = 2) -> RasterVertices:
    """
    Approximate Voronoi vertices of a converged label grid.

    Interior pixels on a ``stride`` lattice become vertices when their 3x3 neighborhood
    holds at least 3 labels (2 close to the grid border); the first and last rows are
    handled by a run-length scan.
    """
    labels = np.asarray(labels)
    if labels.ndim != 2:
        raise ValueError("labels must be (H,W)")
    stride = int(stride)
    if stride < 1:
        raise ValueError("stride must be >= 1")

    h, w = labels.shape
    out = RasterVertices()
    _scan_border_row(labels, 0, out)

    if h >= 3 and w >= 3:
        counts, stack = distinct_label_counts(labels)
        rows = np.arange(1, h - 2, stride)
        cols = np.arange(w - 2, 0, -stride)
        if len(rows) and len(cols):
            J, I = np.meshgrid(rows, cols, indexing="ij")
            near_edge = (I >= w - 3) | (I <= 2) | (J <= 1) | (J >= h - 3)
            required = np.where(near_edge, 2, 3)
            hit = counts[J - 1, I - 1] >= required
            for j, i in zip(J[hit], I[hit]):
                labs = np.unique(stack[j - 1, i - 1])
                for lab in labs:
                    out.add(lab, i, j)
                out.link(labs)

    if h > 1:
        _scan_border_row(labels, h - 1, out)
    return out


def build_cell_polygons(
    vertices: RasterVertices,
    seeds: np.ndarray,
    shape: Tuple[int, int],
    bounds: Bounds,
) -> List[CellPolygon]:
    """
    One CCW polygon per label: vertices mapped to world space and sorted by angle around their centroid.
    """
    cells = []
    seeds_world = pixel_to_world(seeds, shape, bounds) if len(seeds) else np.zeros((0, 2))
    for label in sorted(vertices.pixels):
        px = np.array(list(vertices.pixels[label]), dtype=np.float64)
        pts = pixel_to_world(px, shape, bounds)
        cells.append(
            CellPolygon(
                index=label,
                site=seeds_world[label].copy(),
                polygon=sort_ccw(pts),
                neighbors=sorted(vertices.neighbors.get(label, ())),
            )
        )
    return cells


@dataclass
class RasterDiagram:
    labels: np.ndarray       # (H,W) int32 seed index, -1 when unlabeled
    seeds: np.ndarray        # (N,2) int (col,row)
    bounds: Bounds
    vertices: Dict[int, np.ndarray]  # label -> (K,2) pixel (col,row)
    cells: List[CellPolygon]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.labels.shape

    def cell_count(self) -> int:
        return len(self.cells)

    def cell_polygons(self) -> List[CellPolygon]:
        return self.cells

    def site_points(self) -> np.ndarray:
        return pixel_to_world(self.seeds, self.shape, self.bounds)
