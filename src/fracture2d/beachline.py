from __future__ import annotations

from typing import Iterator, Optional

from .geometry import Site


class Arc:
    """
    Beachline node: the visible piece of the parabola of ``site``.
    edge is the edge traced by the breakpoint on the arc's left side.
    """
    __slots__ = ("site", "circle_event", "edge", "left", "right", "parent", "red", "prev", "next", "slot")

    def __init__(self, site: Optional[Site] = None):
        self.slot = -1
        self.reset(site)

    def reset(self, site: Optional[Site]) -> None:
        self.site = site
        self.circle_event = None
        self.edge = None
        self.left: Optional[Arc] = None
        self.right: Optional[Arc] = None
        self.parent: Optional[Arc] = None
        self.red = False
        self.prev: Optional[Arc] = None
        self.next: Optional[Arc] = None


class Beachline:
    """
    Red-black tree of arcs ordered left to right.

    Nodes carry no key: the order is defined purely by insertion position, and
    searching by x is done by the sweep, which computes breakpoints for the
    current directrix. In-order neighbors are cached in ``prev``/``next``.
    """

    def __init__(self):
        self.root: Optional[Arc] = None

    def __bool__(self) -> bool:
        return self.root is not None

    def __iter__(self) -> Iterator[Arc]:
        node = self.first()
        while node is not None:
            yield node
            node = node.next

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def first(self) -> Optional[Arc]:
        return self._leftmost(self.root)

    def last(self) -> Optional[Arc]:
        node = self.root
        if node is None:
            return None
        while node.right is not None:
            node = node.right
        return node

    @staticmethod
    def _leftmost(node: Optional[Arc]) -> Optional[Arc]:
        if node is None:
            return None
        while node.left is not None:
            node = node.left
        return node

    def insert_successor(self, node: Optional[Arc], successor: Arc) -> None:
        """
        Insert ``successor`` right after ``node``, or as the leftmost arc when node is None.
        """
        if node is not None:
            successor.prev = node
            successor.next = node.next
            if node.next is not None:
                node.next.prev = successor
            node.next = successor
            if node.right is not None:
                node = self._leftmost(node.right)
                node.left = successor
            else:
                node.right = successor
            parent = node
        elif self.root is not None:
            node = self._leftmost(self.root)
            successor.prev = None
            successor.next = node
            node.prev = successor
            node.left = successor
            parent = node
        else:
            successor.prev = successor.next = None
            self.root = successor
            parent = None

        successor.left = successor.right = None
        successor.parent = parent
        successor.red = True

        node = successor
        while parent is not None and parent.red:
            grandpa = parent.parent
            if parent is grandpa.left:
                uncle = grandpa.right
                if uncle is not None and uncle.red:
                    parent.red = uncle.red = False
                    grandpa.red = True
                    node = grandpa
                else:
                    if node is parent.right:
                        self._rotate_left(parent)
                        node = parent
                        parent = node.parent
                    parent.red = False
                    grandpa.red = True
                    self._rotate_right(grandpa)
            else:
                uncle = grandpa.left
                if uncle is not None and uncle.red:
                    parent.red = uncle.red = False
                    grandpa.red = True
                    node = grandpa
                else:
                    if node is parent.left:
                        self._rotate_right(parent)
                        node = parent
                        parent = node.parent
                    parent.red = False
                    grandpa.red = True
                    self._rotate_left(grandpa)
            parent = node.parent
        self.root.red = False

    def remove(self, node: Arc) -> None:
        if node.next is not None:
            node.next.prev = node.prev
        if node.prev is not None:
            node.prev.next = node.next
        node.next = node.prev = None

        parent = node.parent
        left = node.left
        right = node.right
        if left is None:
            nxt = right
        elif right is None:
            nxt = left
        else:
            nxt = self._leftmost(right)

        if parent is not None:
            if parent.left is node:
                parent.left = nxt
            else:
                parent.right = nxt
        else:
            self.root = nxt

        if left is not None and right is not None:
            is_red = nxt.red
            nxt.red = node.red
            nxt.left = left
            left.parent = nxt
            if nxt is not right:
                parent = nxt.parent
                nxt.parent = node.parent
                node = nxt.right
                parent.left = node
                nxt.right = right
                right.parent = nxt
            else:
                nxt.parent = parent
                parent = nxt
                node = nxt.right
        else:
            is_red = node.red
            node = nxt

        # node is now the successor's only child, parent its new parent
        if node is not None:
            node.parent = parent
        if is_red:
            return
        if node is not None and node.red:
            node.red = False
            return

        while True:
            if node is self.root:
                break
            if node is parent.left:
                sibling = parent.right
                if sibling.red:
                    sibling.red = False
                    parent.red = True
                    self._rotate_left(parent)
                    sibling = parent.right
                if _is_red(sibling.left) or _is_red(sibling.right):
                    if not _is_red(sibling.right):
                        sibling.left.red = False
                        sibling.red = True
                        self._rotate_right(sibling)
                        sibling = parent.right
                    sibling.red = parent.red
                    parent.red = sibling.right.red = False
                    self._rotate_left(parent)
                    node = self.root
                    break
            else:
                sibling = parent.left
                if sibling.red:
                    sibling.red = False
                    parent.red = True
                    self._rotate_right(parent)
                    sibling = parent.left
                if _is_red(sibling.left) or _is_red(sibling.right):
                    if not _is_red(sibling.left):
                        sibling.right.red = False
                        sibling.red = True
                        self._rotate_left(sibling)
                        sibling = parent.left
                    sibling.red = parent.red
                    parent.red = sibling.left.red = False
                    self._rotate_right(parent)
                    node = self.root
                    break
            sibling.red = True
            node = parent
            parent = parent.parent
            if node.red:
                break
        if node is not None:
            node.red = False

    def _rotate_left(self, p: Arc) -> None:
        q = p.right
        parent = p.parent
        if parent is not None:
            if parent.left is p:
                parent.left = q
            else:
                parent.right = q
        else:
            self.root = q
        q.parent = parent
        p.parent = q
        p.right = q.left
        if p.right is not None:
            p.right.parent = p
        q.left = p

    def _rotate_right(self, p: Arc) -> None:
        q = p.left
        parent = p.parent
        if parent is not None:
            if parent.left is p:
                parent.left = q
            else:
                parent.right = q
        else:
            self.root = q
        q.parent = parent
        p.parent = q
        p.left = q.right
        if p.left is not None:
            p.left.parent = p
        q.right = p


def _is_red(node: Optional[Arc]) -> bool:
    return node is not None and node.red
