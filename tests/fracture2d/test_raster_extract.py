import numpy as np
import pytest

from src.fracture2d.geometry import Bounds
from src.fracture2d.raster import default_bounds, distinct_label_counts, extract_vertices, pixel_to_world


def _halves(h=8, w=8):
    labels = np.zeros((h, w), dtype=np.int32)
    labels[:, w // 2:] = 1
    return labels


def test_distinct_label_counts():
    labels = np.array([
        [0, 0, 1, 1],
        [0, 0, 1, 1],
        [2, 2, 2, 2],
        [2, 2, 2, 2],
        [2, 2, 2, 2],
    ], dtype=np.int32)
    counts, _ = distinct_label_counts(labels)
    assert counts.tolist() == [[3, 3], [3, 3], [1, 1]]


def test_two_halves_vertices():
    found = extract_vertices(_halves())

    assert set(found.pixels[0]) == {(0, 0), (3, 0), (4, 1), (4, 5), (0, 7), (3, 7)}
    assert set(found.pixels[1]) == {(7, 0), (3, 0), (4, 1), (4, 5), (7, 7), (3, 7)}
    assert found.neighbors == {0: {1}, 1: {0}}


def test_triple_junction_needs_three_labels_inside():
    labels = np.zeros((12, 12), dtype=np.int32)
    labels[:, 6:] = 1
    labels[6:, :] = 2
    found = extract_vertices(labels, stride=1)

    inner = [p for p in found.pixels[2] if 3 <= p[0] <= 8 and 2 <= p[1] <= 8]
    assert inner
    for i, j in inner:
        window = labels[j - 1:j + 2, i - 1:i + 2]
        assert len(np.unique(window)) == 3


def test_uniform_grid_has_only_corners():
    found = extract_vertices(np.full((10, 7), 4, dtype=np.int32))
    assert set(found.pixels) == {4}
    assert set(found.pixels[4]) == {(0, 0), (6, 0), (0, 9), (6, 9)}


def test_bad_stride():
    with pytest.raises(ValueError):
        extract_vertices(_halves(), stride=0)


def test_pixel_to_world_maps_corners_onto_bounds():
    b = Bounds(-2.0, 10.0, 2.0, 12.0)
    px = np.array([[0, 0], [99, 49], [33, 0]])
    out = pixel_to_world(px, (50, 100), b)
    assert out[0] == pytest.approx([-2.0, 10.0])
    assert out[1] == pytest.approx([2.0, 12.0])
    assert out[2] == pytest.approx([-2.0 + 33 * 4.0 / 99, 10.0])


def test_default_bounds_are_pixel_coordinates():
    b = default_bounds(64, 32)
    out = pixel_to_world(np.array([[5, 7]]), (32, 64), b)
    assert out[0] == pytest.approx([5.0, 7.0])
