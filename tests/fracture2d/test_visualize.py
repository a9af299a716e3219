import matplotlib

matplotlib.use("Agg")
from io import BytesIO

import matplotlib.pyplot as plt
import numpy as np
from PIL import Image

from src.fracture2d.fortune import compute_voronoi_2d
from src.fracture2d.jumpflood import JumpFlood
from src.fracture2d.visualize import label_colors, plot_diagram, plot_raster, render_labels_png


def test_plot_diagram_draws_every_cell():
    d = compute_voronoi_2d(np.array([[2.0, 2.0], [8.0, 3.0], [5.0, 8.0]]), (0, 0, 10, 10))
    ax = plot_diagram(d)
    # one outline per cell plus the site markers
    assert len(ax.lines) == d.cell_count() + 1
    assert ax.get_xlim() == (0.0, 10.0)
    plt.close(ax.figure)


def test_plot_raster():
    r = JumpFlood(32, 32).compute(np.array([[4, 4], [20, 25]]))
    ax = plot_raster(r)
    assert len(ax.images) == 1
    plt.close(ax.figure)


def test_label_colors_unlabeled_black():
    labels = np.array([[-1, 0], [1, 1]], dtype=np.int32)
    rgb = label_colors(labels)
    assert rgb.shape == (2, 2, 3)
    assert rgb[0, 0].tolist() == [0, 0, 0]
    assert rgb[1, 0].tolist() == rgb[1, 1].tolist()
    assert rgb[0, 1].tolist() != rgb[1, 0].tolist()


def test_render_labels_png_roundtrip_size():
    labels = np.zeros((24, 40), dtype=np.int32)
    labels[:, 20:] = 3
    png = render_labels_png(labels)
    img = Image.open(BytesIO(png))
    assert img.format == "PNG"
    assert img.size == (40, 24)
