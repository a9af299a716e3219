import numpy as np
import pytest

from src.fracture2d.sampling import sample_pixel_seeds, sample_sites


def test_sites_inside_bounds():
    rng = np.random.default_rng(123)
    pts = sample_sites((-5, 0, 5, 2), 200, rng)
    assert pts.shape == (200, 2)
    assert np.all((pts[:, 0] >= -5) & (pts[:, 0] <= 5))
    assert np.all((pts[:, 1] >= 0) & (pts[:, 1] <= 2))


def test_sites_are_pulled_towards_impact():
    impact = (1.0, 1.0)
    far = sample_sites((0, 0, 10, 10), 500, np.random.default_rng(0))
    near = sample_sites((0, 0, 10, 10), 500, np.random.default_rng(0), impact=impact, closeness=0.5)

    d_far = np.hypot(*(far - impact).T).mean()
    d_near = np.hypot(*(near - impact).T).mean()
    assert d_near < 0.5 * d_far
    # pulled at least half way on each axis
    assert np.all(np.abs(near - impact) <= 0.5 * np.abs(far - impact) + 1e-12)


def test_zero_closeness_still_inside_bounds():
    pts = sample_sites((0, 0, 10, 10), 100, np.random.default_rng(4), impact=(9.0, 9.0), closeness=0.0)
    assert np.all((pts >= 0) & (pts <= 10))


@pytest.mark.parametrize("closeness", [-0.1, 0.6])
def test_closeness_out_of_range(closeness):
    with pytest.raises(ValueError):
        sample_sites((0, 0, 10, 10), 5, np.random.default_rng(0), impact=(1, 1), closeness=closeness)


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        sample_sites((0, 0, 10, 10), -1, np.random.default_rng(0))


def test_sampling_is_deterministic_with_seed():
    a = sample_sites((0, 0, 10, 10), 20, np.random.default_rng(999), impact=(3, 3))
    b = sample_sites((0, 0, 10, 10), 20, np.random.default_rng(999), impact=(3, 3))
    assert np.allclose(a, b)


def test_pixel_seeds_inside_grid():
    px = sample_pixel_seeds(64, 32, 300, np.random.default_rng(1), impact=(63.9, 31.9))
    assert px.dtype == np.int64
    assert np.all((px[:, 0] >= 0) & (px[:, 0] < 64))
    assert np.all((px[:, 1] >= 0) & (px[:, 1] < 32))
