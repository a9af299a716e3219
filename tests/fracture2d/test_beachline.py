import numpy as np

from src.fracture2d.beachline import Arc, Beachline
from src.fracture2d.geometry import Site


def _in_order(node, out):
    if node is None:
        return out
    _in_order(node.left, out)
    out.append(node)
    _in_order(node.right, out)
    return out


def _black_height(node):
    if node is None:
        return 1
    lh = _black_height(node.left)
    rh = _black_height(node.right)
    assert lh == rh, "black heights differ"
    if node.red:
        assert not (node.left is not None and node.left.red)
        assert not (node.right is not None and node.right.red)
    for child in (node.left, node.right):
        if child is not None:
            assert child.parent is node
    return lh + (0 if node.red else 1)


def _check(tree: Beachline):
    if tree.root is not None:
        assert not tree.root.red
        assert tree.root.parent is None
    _black_height(tree.root)
    # cached neighbor links agree with the tree order
    assert _in_order(tree.root, []) == list(tree)


def _arc(i):
    return Arc(Site(float(i), 0.0, index=i))


def _labels(tree):
    return [a.site.index for a in tree]


def test_insert_after_builds_sequence():
    tree = Beachline()
    a0 = _arc(0)
    tree.insert_successor(None, a0)
    prev = a0
    for i in range(1, 20):
        a = _arc(i)
        tree.insert_successor(prev, a)
        prev = a
        _check(tree)
    assert _labels(tree) == list(range(20))
    assert tree.first() is a0
    assert tree.last() is prev
    assert len(tree) == 20


def test_insert_leftmost():
    tree = Beachline()
    for i in range(10):
        tree.insert_successor(None, _arc(i))
        _check(tree)
    assert _labels(tree) == list(range(9, -1, -1))


def test_insert_in_middle():
    tree = Beachline()
    a = _arc(0)
    c = _arc(2)
    tree.insert_successor(None, a)
    tree.insert_successor(a, c)
    b = _arc(1)
    tree.insert_successor(a, b)
    _check(tree)
    assert _labels(tree) == [0, 1, 2]
    assert b.prev is a and b.next is c


def test_random_insert_remove_keeps_invariants():
    rng = np.random.default_rng(7)
    tree = Beachline()
    live = []
    counter = 0
    for _ in range(400):
        if live and rng.random() < 0.4:
            k = int(rng.integers(len(live)))
            tree.remove(live.pop(k))
        else:
            arc = _arc(counter)
            counter += 1
            if live and rng.random() < 0.9:
                k = int(rng.integers(len(live)))
                tree.insert_successor(live[k], arc)
                live.insert(k + 1, arc)
            else:
                tree.insert_successor(None, arc)
                live.insert(0, arc)
        _check(tree)
        assert list(tree) == live


def test_remove_all():
    tree = Beachline()
    arcs = [_arc(i) for i in range(8)]
    tree.insert_successor(None, arcs[0])
    for a, b in zip(arcs, arcs[1:]):
        tree.insert_successor(a, b)
    for a in arcs:
        tree.remove(a)
        _check(tree)
    assert not tree
    assert tree.first() is None
    assert tree.last() is None
