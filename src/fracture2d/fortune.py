from __future__ import annotations

import math
from typing import List, Optional, Sequence, Union

import numpy as np
import structlog

from .beachline import Arc, Beachline
from .clipping import box_cell, clip_edges, close_cells
from .datastructures import Cell, Edge, HalfEdge, VoronoiDiagram
from .errors import BeachlineError
from .events import CircleEvent, EventQueue, SiteEvent
from .geometry import EPS, Bounds, Point, Site, circumcenter, parabola_intersection_x
from .pool import Pool

logger = structlog.get_logger()

SitesLike = Union[np.ndarray, Sequence[Sequence[float]], Sequence[Site]]


def _as_sites(sites: SitesLike) -> List[Site]:
    if len(sites) and isinstance(sites[0], Site):
        out = [Site(s.x, s.y, index=i) for i, s in enumerate(sites)]
    else:
        arr = np.asarray(sites, dtype=np.float64)
        if arr.size == 0:
            return []
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ValueError("sites must be (N,2)")
        if not np.all(np.isfinite(arr)):
            raise ValueError("sites must be finite")
        out = [Site(float(x), float(y), index=i) for i, (x, y) in enumerate(arr)]
    return out


class FortuneVoronoi:
    """
    Fortune's sweep-line Voronoi construction, clipped to a bounding box.

    The sweep visits events by increasing y. Arcs and circle events are pooled
    per instance and recycled across calls to ``compute``; an instance must not
    be used for two computations at once.
    """

    def __init__(self, *, eps: float = EPS):
        self.eps = float(eps)
        self._lookup_eps = self.eps
        self.arc_pool: Pool[Arc] = Pool(Arc)
        self.circle_pool: Pool[CircleEvent] = Pool(CircleEvent)

        self._beachline = Beachline()
        self._queue = EventQueue()
        self._edges: List[Edge] = []
        self._cells: List[Cell] = []

    def compute(self, sites: SitesLike, bounds) -> VoronoiDiagram:
        bounds = Bounds.from_any(bounds)
        site_list = _as_sites(sites)

        self._edges = []
        self._cells = []
        for s in site_list:
            self._queue.push_site(s)

        self._lookup_eps = self.lookup_tolerance(bounds)
        try:
            duplicates = self._sweep()

            self._edges = clip_edges(self._edges, bounds, self._cells)
            if len(self._cells) == 1 and not self._edges:
                box_cell(self._cells[0], self._edges, bounds)
            failures = close_cells(self._cells, self._edges, bounds)

            diagram = VoronoiDiagram(
                sites=site_list,
                edges=self._edges,
                cells=self._cells,
                bounds=bounds,
                has_closing_errors=failures > 0,
            )
        finally:
            self._reset()

        logger.info(
            "diagram_computed",
            sites=len(site_list),
            cells=len(diagram.cells),
            edges=len(diagram.edges),
            duplicates=duplicates,
            closing_errors=failures,
        )
        return diagram

    def lookup_tolerance(self, bounds: Bounds) -> float:
        """Beachline tolerance for ``bounds``: ``eps``, capped at 1% of the shorter side."""
        return min(self.eps, 0.01 * min(bounds.width, bounds.height))

    def _sweep(self) -> int:
        """Drain the event queue; returns the number of duplicate sites dropped."""
        next_id = 0
        last_x = last_y = math.inf
        duplicates = 0
        while True:
            event = self._queue.pop()
            if event is None:
                return duplicates
            if isinstance(event, SiteEvent):
                site = event.site
                if site.x == last_x and site.y == last_y:
                    duplicates += 1
                    logger.debug("duplicate_site_dropped", index=site.index, x=site.x, y=site.y)
                    continue
                site.id = next_id
                next_id += 1
                self._cells.append(Cell(site))
                self._add_arc(site)
                last_x, last_y = site.x, site.y
            else:
                self._remove_arc(event.arc)

    def _reset(self) -> None:
        for arc in list(self._beachline):
            self._detach_circle_event(arc)
            self._release_arc(arc)
        self._beachline.root = None
        self._queue.clear()
        self._edges = []
        self._cells = []

    # -- pooled objects --------------------------------------------------

    def _create_arc(self, site: Site) -> Arc:
        arc = self.arc_pool.acquire()
        arc.reset(site)
        return arc

    def _release_arc(self, arc: Arc) -> None:
        self.arc_pool.release(arc)

    def _detach_circle_event(self, arc: Arc) -> None:
        event = arc.circle_event
        if event is not None:
            self._queue.cancel(event)
            self.circle_pool.release(event)
            arc.circle_event = None

    def _detach_arc(self, arc: Arc) -> None:
        self._detach_circle_event(arc)
        self._beachline.remove(arc)
        self._release_arc(arc)

    def _create_edge(self, left: Site, right: Site, start: Optional[Point] = None, end: Optional[Point] = None) -> Edge:
        if start is None and end is not None:
            # only the far end is known: orient the edge from the right site instead
            edge = Edge(site_a=right, site_b=left, start=end)
        else:
            edge = Edge(site_a=left, site_b=right, start=start, end=end)
        self._edges.append(edge)
        self._cells[left.id].half_edges.append(HalfEdge.create(edge, left, right))
        self._cells[right.id].half_edges.append(HalfEdge.create(edge, right, left))
        return edge

    # -- breakpoints -----------------------------------------------------

    @staticmethod
    def _left_break_point(arc: Arc, directrix: float) -> float:
        left = arc.prev.site if arc.prev is not None else None
        return parabola_intersection_x(arc.site, left, directrix)

    def _right_break_point(self, arc: Arc, directrix: float) -> float:
        if arc.next is not None:
            return self._left_break_point(arc.next, directrix)
        return arc.site.x if arc.site.y == directrix else math.inf

    # -- site events -----------------------------------------------------

    def _locate(self, x: float, directrix: float):
        """Arcs left and right of x; the same arc twice when x falls strictly inside it."""
        eps = self._lookup_eps
        l_arc = r_arc = None
        node = self._beachline.root
        while node is not None:
            dxl = self._left_break_point(node, directrix) - x
            if dxl > eps:
                node = node.left
                continue
            dxr = x - self._right_break_point(node, directrix)
            if dxr > eps:
                if node.right is None:
                    l_arc = node
                    break
                node = node.right
                continue
            if dxl > -eps:
                l_arc, r_arc = node.prev, node
            elif dxr > -eps:
                l_arc, r_arc = node, node.next
            else:
                l_arc = r_arc = node
            break
        # zero-width arcs of sites on the sweep line: later sites at that y go to their right
        while r_arc is not None and r_arc is not l_arc and r_arc.site.y == directrix and r_arc.site.x < x:
            l_arc, r_arc = r_arc, r_arc.next
        return l_arc, r_arc

    def _add_arc(self, site: Site) -> None:
        l_arc, r_arc = self._locate(site.x, site.y)

        if l_arc is None and r_arc is not None:
            logger.error("beachline_insert_before_first", site_id=site.id, x=site.x, y=site.y)
            raise BeachlineError(f"site {site.id} at ({site.x}, {site.y}) falls left of the first arc")

        new_arc = self._create_arc(site)
        self._beachline.insert_successor(l_arc, new_arc)

        if l_arc is None and r_arc is None:
            return

        if l_arc is r_arc:
            # split the arc above
            self._detach_circle_event(l_arc)
            r_arc = self._create_arc(l_arc.site)
            self._beachline.insert_successor(new_arc, r_arc)
            new_arc.edge = r_arc.edge = self._create_edge(l_arc.site, new_arc.site)
            self._attach_circle_event(l_arc)
            self._attach_circle_event(r_arc)
            return

        if r_arc is None:
            new_arc.edge = self._create_edge(l_arc.site, new_arc.site)
            return

        # exactly on the breakpoint between two arcs: their edge ends here
        self._detach_circle_event(l_arc)
        self._detach_circle_event(r_arc)
        l_site, r_site = l_arc.site, r_arc.site
        vertex = circumcenter(l_site, site, r_site)
        r_arc.edge.set_start_point(l_site, r_site, vertex)
        new_arc.edge = self._create_edge(l_site, site, None, vertex)
        r_arc.edge = self._create_edge(site, r_site, None, vertex)
        self._attach_circle_event(l_arc)
        self._attach_circle_event(r_arc)

    # -- circle events ---------------------------------------------------

    def _attach_circle_event(self, arc: Arc) -> None:
        l_arc, r_arc = arc.prev, arc.next
        if l_arc is None or r_arc is None:
            return
        l_site, c_site, r_site = l_arc.site, arc.site, r_arc.site
        if l_site is r_site:
            return

        bx, by = c_site.x, c_site.y
        ax, ay = l_site.x - bx, l_site.y - by
        cx, cy = r_site.x - bx, r_site.y - by
        # clockwise or collinear: the breakpoints diverge
        d = 2 * (ax * cy - ay * cx)
        if d >= -2e-12:
            return

        ha = ax * ax + ay * ay
        hc = cx * cx + cy * cy
        x = (cy * ha - ay * hc) / d
        y = (ax * hc - cx * ha) / d
        y_center = y + by

        event = self.circle_pool.acquire()
        event.arc = arc
        event.x = x + bx
        event.y = y_center + math.sqrt(x * x + y * y)
        event.y_center = y_center
        arc.circle_event = event
        self._queue.push_circle(event)

    def _collapses_at(self, arc: Arc, x: float, y: float) -> bool:
        event = arc.circle_event
        return event is not None and abs(x - event.x) < self._lookup_eps and abs(y - event.y_center) < self._lookup_eps

    def _remove_arc(self, arc: Arc) -> None:
        event = arc.circle_event
        x, y = event.x, event.y_center
        vertex = Point(x, y)
        prev, nxt = arc.prev, arc.next

        disappearing = [arc]
        self._detach_arc(arc)

        # other arcs collapsing onto the same vertex (co-circular sites)
        l_arc = prev
        while self._collapses_at(l_arc, x, y):
            prev = l_arc.prev
            disappearing.insert(0, l_arc)
            self._detach_arc(l_arc)
            l_arc = prev
        disappearing.insert(0, l_arc)
        self._detach_circle_event(l_arc)

        r_arc = nxt
        while self._collapses_at(r_arc, x, y):
            nxt = r_arc.next
            disappearing.append(r_arc)
            self._detach_arc(r_arc)
            r_arc = nxt
        disappearing.append(r_arc)
        self._detach_circle_event(r_arc)

        for left, right in zip(disappearing, disappearing[1:]):
            right.edge.set_start_point(left.site, right.site, vertex)

        l_arc = disappearing[0]
        r_arc = disappearing[-1]
        r_arc.edge = self._create_edge(l_arc.site, r_arc.site, None, vertex)

        self._attach_circle_event(l_arc)
        self._attach_circle_event(r_arc)


def compute_voronoi_2d(
    sites: SitesLike,
    bounds,
    *,
    engine: Optional[FortuneVoronoi] = None,
    epsilon: float = EPS,
) -> VoronoiDiagram:
    """
    Compute the Voronoi diagram of ``sites`` clipped to ``bounds`` (minx, miny, maxx, maxy).

    Sites sharing exact coordinates with the previously swept site are dropped.
    Pass an ``engine`` to reuse its pooled arcs and circle events across calls.
    """
    if engine is None:
        engine = FortuneVoronoi(eps=epsilon)
    return engine.compute(sites, bounds)
