from __future__ import annotations

from typing import List, Optional

import structlog

from .datastructures import Cell, Edge, HalfEdge
from .geometry import (
    Bounds,
    Point,
    Site,
    equal_with_eps,
    greater_than_with_eps,
    less_than_with_eps,
)

logger = structlog.get_logger()


def connect_edge(edge: Edge, bounds: Bounds, cells: List[Cell]) -> bool:
    """
    Give a dangling edge its missing endpoint(s) on the bounding box.
    Returns False when the bisector misses the box entirely.
    """
    if edge.start is not None and edge.end is not None:
        return True

    # orient so that the known endpoint (if any) is the start of the ray
    flipped = edge.start is None and edge.end is not None
    if flipped:
        l_site, r_site, va = edge.site_b, edge.site_a, edge.end
    else:
        l_site, r_site, va = edge.site_a, edge.site_b, edge.start

    xl, yt, xr, yb = bounds.minx, bounds.miny, bounds.maxx, bounds.maxy
    lx, ly = l_site.x, l_site.y
    rx, ry = r_site.x, r_site.y
    fx = (lx + rx) / 2
    fy = (ly + ry) / 2

    cells[l_site.id].needs_closure = True
    cells[r_site.id].needs_closure = True

    fm: Optional[float] = None
    fb = 0.0
    if ry != ly:
        fm = (lx - rx) / (ry - ly)
        fb = fy - fm * fx

    if fm is None:
        # vertical bisector
        if fx < xl or fx >= xr:
            return False
        if lx > rx:
            if va is None or va.y < yt:
                va = Point(fx, yt)
            elif va.y >= yb:
                return False
            vb = Point(fx, yb)
        else:
            if va is None or va.y > yb:
                va = Point(fx, yb)
            elif va.y < yt:
                return False
            vb = Point(fx, yt)
    elif fm < -1 or fm > 1:
        # steep bisector, connect to top/bottom
        if lx > rx:
            if va is None or va.y < yt:
                va = Point((yt - fb) / fm, yt)
            elif va.y >= yb:
                return False
            vb = Point((yb - fb) / fm, yb)
        else:
            if va is None or va.y > yb:
                va = Point((yb - fb) / fm, yb)
            elif va.y < yt:
                return False
            vb = Point((yt - fb) / fm, yt)
    else:
        # shallow bisector, connect to left/right
        if ly < ry:
            if va is None or va.x < xl:
                va = Point(xl, fm * xl + fb)
            elif va.x >= xr:
                return False
            vb = Point(xr, fm * xr + fb)
        else:
            if va is None or va.x > xr:
                va = Point(xr, fm * xr + fb)
            elif va.x < xl:
                return False
            vb = Point(xl, fm * xl + fb)

    if flipped:
        edge.start, edge.end = vb, va
    else:
        edge.start, edge.end = va, vb
    return True


def clip_edge(edge: Edge, bounds: Bounds, cells: List[Cell]) -> bool:
    """
    Liang-Barsky clip of a resolved edge against the bounding box.
    Returns False when the segment lies fully outside.
    """
    ax, ay = edge.start
    bx, by = edge.end
    t0 = 0.0
    t1 = 1.0
    dx = bx - ax
    dy = by - ay

    # (q, d) pairs for left, right, top, bottom: entry where d < 0 against q >= 0
    for q, d in (
        (ax - bounds.minx, -dx),
        (bounds.maxx - ax, dx),
        (ay - bounds.miny, -dy),
        (bounds.maxy - ay, dy),
    ):
        if d == 0:
            if q < 0:
                return False
            continue
        r = q / d
        if d < 0:
            if r > t1:
                return False
            if r > t0:
                t0 = r
        else:
            if r < t0:
                return False
            if r < t1:
                t1 = r

    if t0 > 0:
        edge.start = Point(ax + t0 * dx, ay + t0 * dy)
    if t1 < 1:
        edge.end = Point(ax + t1 * dx, ay + t1 * dy)

    if t0 > 0 or t1 < 1:
        cells[edge.site_a.id].needs_closure = True
        if edge.site_b is not None:
            cells[edge.site_b.id].needs_closure = True
    return True


def clip_edges(
    edges: List[Edge], bounds: Bounds, cells: List[Cell], eps: Optional[float] = None
) -> List[Edge]:
    """
    Connect and clip every edge; edges that end up outside or collapse to a point are dropped
    (their endpoints cleared so the owning half-edges get pruned).
    ``eps`` defaults to the box's snap tolerance.
    """
    if eps is None:
        eps = bounds.snap_tolerance()
    kept = []
    for edge in edges:
        if (
            not connect_edge(edge, bounds, cells)
            or not clip_edge(edge, bounds, cells)
            or (abs(edge.start.x - edge.end.x) < eps and abs(edge.start.y - edge.end.y) < eps)
        ):
            edge.start = edge.end = None
            continue
        kept.append(edge)
    return kept


# Border walk, in closing order: each side is (on_side(p), ends_here(vz), corner/next point)
def _on_left(p: Point, b: Bounds, eps: float) -> bool:
    return equal_with_eps(p.x, b.minx, eps) and less_than_with_eps(p.y, b.maxy, eps)


def _on_bottom(p: Point, b: Bounds, eps: float) -> bool:
    return equal_with_eps(p.y, b.maxy, eps) and less_than_with_eps(p.x, b.maxx, eps)


def _on_right(p: Point, b: Bounds, eps: float) -> bool:
    return equal_with_eps(p.x, b.maxx, eps) and greater_than_with_eps(p.y, b.miny, eps)


def _on_top(p: Point, b: Bounds, eps: float) -> bool:
    return equal_with_eps(p.y, b.miny, eps) and greater_than_with_eps(p.x, b.minx, eps)


def _walk_side(side: int, vz: Point, b: Bounds, eps: float):
    """Next border point walking along ``side`` towards vz; True when vz is reached."""
    if side == 0:
        last = equal_with_eps(vz.x, b.minx, eps)
        return Point(b.minx, vz.y if last else b.maxy), last
    if side == 1:
        last = equal_with_eps(vz.y, b.maxy, eps)
        return Point(vz.x if last else b.maxx, b.maxy), last
    if side == 2:
        last = equal_with_eps(vz.x, b.maxx, eps)
        return Point(b.maxx, vz.y if last else b.miny), last
    last = equal_with_eps(vz.y, b.miny, eps)
    return Point(vz.x if last else b.minx, b.miny), last


_SIDE_TESTS = (_on_left, _on_bottom, _on_right, _on_top)


def _border_edge(site: Site, va: Point, vb: Point, edges: List[Edge]) -> Edge:
    edge = Edge(site_a=site, site_b=None, start=va, end=vb)
    edges.append(edge)
    return edge


def close_cell(cell: Cell, edges: List[Edge], bounds: Bounds, eps: Optional[float] = None) -> int:
    """
    Bridge every gap between consecutive half-edges with border edges.
    Returns the number of gaps that could not be closed.
    """
    if eps is None:
        eps = bounds.snap_tolerance()
    failures = 0
    half_edges = cell.half_edges
    i = 0
    while i < len(half_edges):
        va = half_edges[i].end_point()
        vz = half_edges[(i + 1) % len(half_edges)].start_point()

        if abs(va.x - vz.x) >= eps or abs(va.y - vz.y) >= eps:
            side = next((k for k, test in enumerate(_SIDE_TESTS) if test(va, bounds, eps)), None)
            closed = False
            if side is not None:
                for step in range(4):
                    vb, closed = _walk_side((side + step) % 4, vz, bounds, eps)
                    edge = _border_edge(cell.site, va, vb, edges)
                    i += 1
                    half_edges.insert(i, HalfEdge.create(edge, cell.site, None))
                    if closed:
                        break
                    va = vb
            if not closed:
                failures += 1
                logger.warning(
                    "cell_closure_failed",
                    site_id=cell.site.id,
                    gap_start=tuple(va),
                    gap_end=tuple(vz),
                )
        i += 1
    return failures


def close_cells(cells: List[Cell], edges: List[Edge], bounds: Bounds, eps: Optional[float] = None) -> int:
    """
    Prune and sort every cell's half-edges, then close the flagged ones against the box.
    Returns the total number of closure failures.
    """
    failures = 0
    for cell in reversed(cells):
        if cell.prepare_half_edges() == 0 or not cell.needs_closure:
            continue
        failures += close_cell(cell, edges, bounds, eps)
        cell.needs_closure = False
    return failures


def box_cell(cell: Cell, edges: List[Edge], bounds: Bounds) -> None:
    """Make the whole bounding box the boundary of ``cell`` (single-site diagrams)."""
    corners = [Point(float(x), float(y)) for x, y in bounds.corners()]
    # same winding as closed cells: left side towards maxy first
    ring = [corners[0], corners[3], corners[2], corners[1]]
    cell.half_edges = []
    for a, b in zip(ring, ring[1:] + ring[:1]):
        edge = _border_edge(cell.site, a, b, edges)
        cell.half_edges.append(HalfEdge.create(edge, cell.site, None))
    cell.needs_closure = False
