from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .geometry import Site

# circle events sort before site events at the same (y, x)
CIRCLE_EVENT = 0
SITE_EVENT = 1


@dataclass(eq=False)
class SiteEvent:
    site: Site

    @property
    def x(self) -> float:
        return self.site.x

    @property
    def y(self) -> float:
        return self.site.y


@dataclass(eq=False)
class CircleEvent:
    """
    Three consecutive arcs converge: ``arc`` vanishes when the sweep reaches ``y``.
    (x, y_center) is the center of the empty circle, y = y_center + radius its far side.
    """
    arc: object = None
    x: float = 0.0
    y: float = 0.0
    y_center: float = 0.0
    active: bool = False
    token: int = -1
    slot: int = -1


Event = Union[SiteEvent, CircleEvent]


class EventQueue:
    """
    Binary heap ordered by (y, x, circle-before-site).

    Circle events are cancelled lazily: the heap entry remembers the token the
    event carried when pushed and is skipped when it no longer matches.
    """

    def __init__(self):
        self._heap: List[Tuple[float, float, int, int, Event]] = []
        self._counter = itertools.count()

    def push_site(self, site: Site) -> None:
        heapq.heappush(self._heap, (site.y, site.x, SITE_EVENT, next(self._counter), SiteEvent(site)))

    def push_circle(self, event: CircleEvent) -> None:
        token = next(self._counter)
        event.token = token
        event.active = True
        heapq.heappush(self._heap, (event.y, event.x, CIRCLE_EVENT, token, event))

    def cancel(self, event: CircleEvent) -> None:
        event.active = False
        event.token = -1

    def pop(self) -> Optional[Event]:
        while self._heap:
            _, _, kind, token, event = heapq.heappop(self._heap)
            if kind == SITE_EVENT:
                return event
            if event.active and event.token == token:
                event.active = False
                return event
        return None

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)
