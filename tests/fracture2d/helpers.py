from __future__ import annotations

import hashlib

import numpy as np
from shapely.geometry import Point, Polygon


def _sha256_bytes(data: bytes) -> str:
    h = hashlib.sha256()
    h.update(data)
    return h.hexdigest()


def hash_array_quantized(arr: np.ndarray, decimals: int = 4) -> str:
    """
    Quantize + sort rows + hash.
    Robust against minor float noise and row ordering.
    """
    if arr.size == 0:
        return _sha256_bytes(b"empty")

    q = np.round(arr.astype(np.float64), decimals=decimals)
    if q.ndim == 1:
        q = q.reshape(-1, 1)

    q2 = q[np.lexsort(q.T[::-1])]
    return _sha256_bytes(q2.tobytes())


def hash_edges(edges, decimals: int = 4) -> str:
    """
    Hash edges as sorted tuples of rounded endpoints plus the site ids on either side.
    """
    tuples = []
    for e in edges:
        a = (round(e.start.x, decimals), round(e.start.y, decimals))
        b = (round(e.end.x, decimals), round(e.end.y, decimals))
        ids = sorted(s.id for s in (e.site_a, e.site_b) if s is not None)
        tuples.append((min(a, b), max(a, b), tuple(ids)))
    tuples.sort()
    return _sha256_bytes(repr(tuples).encode("utf-8"))


def compute_metrics(diagram) -> dict:
    cell_count = diagram.cell_count()
    polys = diagram.cell_polygons()
    avg_neighbors = float(np.mean([len(c.neighbors) for c in polys])) if cell_count else 0.0
    return {
        "cell_count": cell_count,
        "edge_count": diagram.edge_count(),
        "avg_neighbors": avg_neighbors,
        "hash_vertices": hash_array_quantized(diagram.vertices(), decimals=4),
        "hash_edges": hash_edges(diagram.edges),
    }


def jittered_grid(nx: int, ny: int, bounds, rng: np.random.Generator, jitter: float = 0.25) -> np.ndarray:
    """One site per grid cell, offset from the cell center by at most ``jitter`` of the cell size."""
    minx, miny, maxx, maxy = bounds
    sx = (maxx - minx) / nx
    sy = (maxy - miny) / ny
    ii, jj = np.meshgrid(np.arange(nx), np.arange(ny), indexing="ij")
    cx = minx + (ii.ravel() + 0.5) * sx
    cy = miny + (jj.ravel() + 0.5) * sy
    off = rng.uniform(-jitter, jitter, (len(cx), 2))
    return np.column_stack([cx + off[:, 0] * sx, cy + off[:, 1] * sy])


def interior_vertices(diagram, margin: float = 1e-6) -> np.ndarray:
    b = diagram.bounds
    V = diagram.vertices()
    if len(V) == 0:
        return V
    inside = (
        (V[:, 0] > b.minx + margin)
        & (V[:, 0] < b.maxx - margin)
        & (V[:, 1] > b.miny + margin)
        & (V[:, 1] < b.maxy - margin)
    )
    return V[inside]


def polygon_contains(polygon: np.ndarray, xy, tol: float = 1e-9) -> bool:
    return Polygon(polygon).buffer(tol).contains(Point(float(xy[0]), float(xy[1])))


def is_convex(polygon: np.ndarray, tol: float = 1e-6) -> bool:
    poly = Polygon(polygon)
    return poly.is_valid and abs(poly.convex_hull.area - poly.area) <= tol * max(1.0, poly.area)
