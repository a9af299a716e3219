from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
from shapely.geometry import Polygon

from .geometry import Bounds, Point, Site, ensure_ccw, signed_area


@dataclass(eq=False)
class Edge:
    """
    Segment of the bisector between site_a and site_b.
    site_b is None for border edges created while closing cells.
    start/end are None while the edge is still a ray (or a line) to infinity.
    """
    site_a: Site
    site_b: Optional[Site] = None
    start: Optional[Point] = None
    end: Optional[Point] = None

    def set_start_point(self, left: Site, right: Site, vertex: Point) -> None:
        """
        Resolve the endpoint where the edge begins as seen from ``left`` walking towards ``right``.
        """
        if self.site_a is right:
            self.end = vertex
        else:
            self.start = vertex

    @property
    def is_resolved(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_border(self) -> bool:
        return self.site_b is None

    def other_site(self, site: Site) -> Optional[Site]:
        return self.site_b if self.site_a is site else self.site_a


@dataclass(eq=False)
class HalfEdge:
    edge: Edge
    site: Site
    angle: float

    @classmethod
    def create(cls, edge: Edge, site: Site, other: Optional[Site]) -> "HalfEdge":
        if other is not None:
            angle = math.atan2(other.y - site.y, other.x - site.x)
        else:
            # border edge: use the normal of the segment
            va, vb = edge.start, edge.end
            if edge.site_a is site:
                angle = math.atan2(vb.x - va.x, va.y - vb.y)
            else:
                angle = math.atan2(va.x - vb.x, vb.y - va.y)
        return cls(edge=edge, site=site, angle=angle)

    def start_point(self) -> Optional[Point]:
        return self.edge.start if self.edge.site_a is self.site else self.edge.end

    def end_point(self) -> Optional[Point]:
        return self.edge.end if self.edge.site_a is self.site else self.edge.start


@dataclass(eq=False)
class Cell:
    site: Site
    half_edges: List[HalfEdge] = field(default_factory=list)
    needs_closure: bool = False

    def prepare_half_edges(self) -> int:
        """
        Drop half-edges whose edge was clipped away, sort the rest by descending angle.
        """
        self.half_edges = [h for h in self.half_edges if h.edge.is_resolved]
        self.half_edges.sort(key=lambda h: h.angle, reverse=True)
        return len(self.half_edges)

    def neighbor_ids(self) -> List[int]:
        out = []
        for h in self.half_edges:
            other = h.edge.other_site(self.site)
            if other is not None and other.id is not None and other.id != self.site.id:
                out.append(other.id)
        return out

    def point_intersection(self, x: float, y: float) -> int:
        """
        1 if (x, y) is inside the cell, 0 on its boundary, -1 outside.
        Relies on the cell being convex and its half-edges forming a closed loop.
        """
        for h in self.half_edges:
            a = h.start_point()
            b = h.end_point()
            status = (y - a.y) * (b.x - a.x) - (x - a.x) * (b.y - a.y)
            if status == 0:
                return 0
            if status > 0:
                return -1
        return 1

    def polygon(self) -> np.ndarray:
        """(M,2) boundary vertices, counter-clockwise."""
        if not self.half_edges:
            return np.zeros((0, 2), dtype=np.float64)
        pts = np.array([h.start_point() for h in self.half_edges], dtype=np.float64)
        return ensure_ccw(pts)

    def area(self) -> float:
        return abs(signed_area(self.polygon()))

    def to_shapely(self) -> Polygon:
        return Polygon(self.polygon())


@dataclass
class CellPolygon:
    """
    Engine independent output for one site: what the mesh builder consumes.
    """
    index: int
    site: np.ndarray      # (2,)
    polygon: np.ndarray   # (M,2), counter-clockwise
    neighbors: List[int] = field(default_factory=list)


@dataclass
class VoronoiDiagram:
    sites: List[Site]
    edges: List[Edge]
    cells: List[Cell]
    bounds: Bounds
    has_closing_errors: bool = False

    def cell_count(self) -> int:
        return len(self.cells)

    def edge_count(self) -> int:
        return len(self.edges)

    def site_points(self) -> np.ndarray:
        """(N,2) site coordinates in cell (sweep) order."""
        if not self.cells:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array([[c.site.x, c.site.y] for c in self.cells], dtype=np.float64)

    def vertices(self, weld_decimals: int = 6) -> np.ndarray:
        """Unique edge endpoints, welded by rounding."""
        seen: Dict[Tuple[float, float], None] = {}
        for e in self.edges:
            for p in (e.start, e.end):
                if p is None:
                    continue
                seen[(round(p.x, weld_decimals), round(p.y, weld_decimals))] = None
        if not seen:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array(list(seen), dtype=np.float64)

    def cell_polygons(self) -> List[CellPolygon]:
        return [
            CellPolygon(
                index=int(c.site.id),
                site=np.array([c.site.x, c.site.y], dtype=np.float64),
                polygon=c.polygon(),
                neighbors=sorted(set(c.neighbor_ids())),
            )
            for c in self.cells
        ]
