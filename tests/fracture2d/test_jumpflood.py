import numpy as np
import pytest

from src.fracture2d.geometry import Bounds, signed_area
from src.fracture2d.jumpflood import JumpFlood, jump_steps


def _brute_force_dist2(seeds, h, w):
    rows, cols = np.mgrid[0:h, 0:w]
    d = (cols[..., None] - seeds[:, 0]) ** 2 + (rows[..., None] - seeds[:, 1]) ** 2
    return d.min(axis=-1)


def test_steps_start_at_power_of_two():
    assert jump_steps(512, 512) == [512, 256, 128, 64, 32, 16, 8, 4, 2, 1, 2, 1]
    assert jump_steps(100, 30)[0] == 128
    assert jump_steps(1, 1) == [1, 2, 1]


def test_single_seed_labels_everything():
    jfa = JumpFlood(40, 30)
    r = jfa.compute(np.array([[12, 7]]))

    assert r.labels.dtype == np.int32
    assert np.all(r.labels == 0)
    assert r.cell_count() == 1
    # only the four grid corners, no interior vertices
    assert {tuple(p) for p in r.vertices[0]} == {(0, 0), (39, 0), (0, 29), (39, 29)}
    poly = r.cells[0].polygon
    assert signed_area(poly) == pytest.approx(r.bounds.area)


def test_labels_match_brute_force_nearest_seed():
    seeds = np.array([[5, 5], [50, 8], [30, 30], [10, 40], [58, 44], [33, 4]])
    jfa = JumpFlood(64, 48)
    r = jfa.compute(seeds)

    assert np.all(r.labels >= 0)
    rows, cols = np.mgrid[0:48, 0:64]
    own = seeds[r.labels]
    d_own = (cols - own[..., 0]) ** 2 + (rows - own[..., 1]) ** 2
    wrong = d_own != _brute_force_dist2(seeds, 48, 64)
    assert wrong.mean() < 1e-3


def test_threaded_bands_match_sequential():
    rng = np.random.default_rng(42)
    seq = JumpFlood(96, 80).compute(n_sites=25, rng=rng)
    par = JumpFlood(96, 80, workers=4).compute(seeds=seq.seeds)

    assert np.array_equal(seq.labels, par.labels)
    assert seq.vertices.keys() == par.vertices.keys()


def test_later_seed_overwrites_earlier():
    seeds = np.array([[3, 3], [3, 3], [20, 20]])
    r = JumpFlood(32, 32).compute(seeds)
    assert r.labels[3, 3] == 1
    assert set(np.unique(r.labels)) == {1, 2}
    assert sorted(c.index for c in r.cells) == [1, 2]


def test_polygons_are_ccw_and_mapped_to_bounds():
    rng = np.random.default_rng(7)
    bounds = (-1.0, -1.0, 1.0, 1.0)
    r = JumpFlood(64, 64).compute(n_sites=12, rng=rng, bounds=bounds)

    b = Bounds(*bounds)
    for cp in r.cell_polygons():
        assert np.all(cp.polygon[:, 0] >= b.minx - 1e-12) and np.all(cp.polygon[:, 0] <= b.maxx + 1e-12)
        assert np.all(cp.polygon[:, 1] >= b.miny - 1e-12) and np.all(cp.polygon[:, 1] <= b.maxy + 1e-12)
        if len(cp.polygon) >= 3:
            assert signed_area(cp.polygon) >= 0


def test_neighbors_are_symmetric():
    r = JumpFlood(64, 64).compute(n_sites=10, rng=np.random.default_rng(3))
    polys = {cp.index: cp for cp in r.cell_polygons()}
    for cp in polys.values():
        for n in cp.neighbors:
            assert cp.index in polys[n].neighbors


def test_no_seeds_leaves_grid_unlabeled():
    r = JumpFlood(8, 8).compute(np.zeros((0, 2), dtype=np.int64))
    assert np.all(r.labels == -1)
    assert r.cells == []


@pytest.mark.parametrize("bad", [np.array([[64, 0]]), np.array([[0, -1]]), np.array([[1.5, 2.0]])])
def test_rejects_bad_seeds(bad):
    with pytest.raises(ValueError):
        JumpFlood(64, 64).compute(bad)


def test_rejects_empty_grid():
    with pytest.raises(ValueError):
        JumpFlood(0, 10)


def test_seeded_rng_is_deterministic():
    a = JumpFlood(48, 48).compute(n_sites=8, rng=np.random.default_rng(5), impact=(10, 10))
    b = JumpFlood(48, 48).compute(n_sites=8, rng=np.random.default_rng(5), impact=(10, 10))
    assert np.array_equal(a.seeds, b.seeds)
    assert np.array_equal(a.labels, b.labels)
