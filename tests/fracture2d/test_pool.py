from src.fracture2d.beachline import Arc
from src.fracture2d.events import CircleEvent
from src.fracture2d.pool import Pool


def test_acquire_grows_arena():
    pool = Pool(Arc)
    a = pool.acquire()
    b = pool.acquire()
    assert a is not b
    assert (a.slot, b.slot) == (0, 1)
    assert len(pool) == 2
    assert pool.in_use == 2


def test_release_reuses_slot():
    pool = Pool(CircleEvent)
    a = pool.acquire()
    pool.acquire()
    pool.release(a)
    assert pool.in_use == 1
    c = pool.acquire()
    assert c is a
    assert len(pool) == 2


def test_released_object_keeps_fields():
    pool = Pool(CircleEvent)
    ev = pool.acquire()
    ev.x = 3.5
    pool.release(ev)
    assert ev.x == 3.5
