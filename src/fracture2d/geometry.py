from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence

import numpy as np

EPS = 1e-1
# vertex snapping when clipping and closing cells, per unit of box extent
SNAP_EPS = 1e-9


class Point(NamedTuple):
    x: float
    y: float


class Bounds(NamedTuple):
    """Axis-aligned rectangle, same ordering as shapely's ``geom.bounds``."""
    minx: float
    miny: float
    maxx: float
    maxy: float

    @classmethod
    def from_any(cls, bounds) -> "Bounds":
        if isinstance(bounds, Bounds):
            return bounds
        vals = [float(b) for b in bounds]
        if len(vals) != 4:
            raise ValueError("bounds must be (minx, miny, maxx, maxy)")
        b = cls(*vals)
        if not (b.maxx > b.minx and b.maxy > b.miny):
            raise ValueError(f"bounds must have positive extent, got {tuple(b)}")
        return b

    @property
    def width(self) -> float:
        return self.maxx - self.minx

    @property
    def height(self) -> float:
        return self.maxy - self.miny

    @property
    def area(self) -> float:
        return self.width * self.height

    def snap_tolerance(self) -> float:
        return SNAP_EPS * max(1.0, self.width, self.height)

    def contains(self, x: float, y: float) -> bool:
        return self.minx <= x <= self.maxx and self.miny <= y <= self.maxy

    def corners(self) -> np.ndarray:
        return np.array([
            [self.minx, self.miny],
            [self.maxx, self.miny],
            [self.maxx, self.maxy],
            [self.minx, self.maxy],
        ], dtype=np.float64)


@dataclass(eq=False)
class Site:
    """
    Input point of the diagram.
    index: position in the caller's input
    id: position in sweep order, key into ``VoronoiDiagram.cells``; None for dropped duplicates
    """
    x: float
    y: float
    index: int = 0
    id: Optional[int] = None

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


def equal_with_eps(a: float, b: float, eps: float = EPS) -> bool:
    return abs(a - b) < eps


def greater_than_with_eps(a: float, b: float, eps: float = EPS) -> bool:
    return a - b > eps


def less_than_with_eps(a: float, b: float, eps: float = EPS) -> bool:
    return b - a > eps


def circumcenter(a: Site, b: Site, c: Site) -> Point:
    """
    Center of the circle through three sites (intersection of the perpendicular bisectors).
    """
    ax, ay = a.x, a.y
    bx, by = b.x - ax, b.y - ay
    cx, cy = c.x - ax, c.y - ay
    d = 2 * (bx * cy - by * cx)
    hb = bx * bx + by * by
    hc = cx * cx + cy * cy
    return Point((cy * hb - by * hc) / d + ax, (bx * hc - cx * hb) / d + ay)


def parabola_intersection_x(site: Site, left: Optional[Site], directrix: float) -> float:
    """
    x of the breakpoint between the parabola of ``left`` and the parabola of ``site``
    (focus on the right) for a horizontal directrix at y=directrix.
    """
    rfocx = site.x
    rfocy = site.y
    pby2 = rfocy - directrix
    # focus on the directrix: degenerate parabola, a vertical ray
    if pby2 == 0:
        return rfocx

    if left is None:
        return -math.inf

    lfocx = left.x
    lfocy = left.y
    plby2 = lfocy - directrix
    if plby2 == 0:
        return lfocx

    hl = lfocx - rfocx
    aby2 = 1 / pby2 - 1 / plby2
    b = hl / plby2
    if aby2:
        disc = b * b - 2 * aby2 * (hl * hl / (-2 * plby2) - lfocy + plby2 / 2 + rfocy - pby2 / 2)
        return (-b + math.sqrt(max(disc, 0.0))) / aby2 + rfocx

    # both foci equally far from the directrix
    return (rfocx + lfocx) / 2


def signed_area(polygon: np.ndarray) -> float:
    """Shoelace area, positive for counter-clockwise vertex order."""
    p = np.asarray(polygon, dtype=np.float64)
    if len(p) < 3:
        return 0.0
    x, y = p[:, 0], p[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def ensure_ccw(polygon: np.ndarray) -> np.ndarray:
    p = np.asarray(polygon, dtype=np.float64)
    return p[::-1].copy() if signed_area(p) < 0 else p


def sort_ccw(points: Sequence[Sequence[float]], center: Optional[Sequence[float]] = None) -> np.ndarray:
    """
    Order points by polar angle around ``center`` (their mean by default).
    """
    P = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(P) == 0:
        return P
    c = P.mean(axis=0) if center is None else np.asarray(center, dtype=np.float64)
    ang = np.arctan2(P[:, 1] - c[1], P[:, 0] - c[0])
    dist = np.hypot(P[:, 0] - c[0], P[:, 1] - c[1])
    return P[np.lexsort((dist, ang))]
