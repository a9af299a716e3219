import io

import matplotlib.pyplot as plt
import numpy as np
from PIL import Image


def _closed(p):
    return np.vstack([p, p[:1]]) if len(p) else p


def plot_diagram(diagram, ax=None):
    if ax is None:
        fig, ax = plt.subplots()

    for cell in diagram.cell_polygons():
        p = _closed(cell.polygon)
        if len(p):
            ax.plot(*p.T, "-k", linewidth=0.8)
    sites = diagram.site_points()
    if len(sites):
        ax.plot(*sites.T, ".r", markersize=3)

    b = diagram.bounds
    ax.set_xlim(b.minx, b.maxx)
    ax.set_ylim(b.miny, b.maxy)
    ax.set_aspect("equal")
    title = "Fortune Voronoi"
    if diagram.has_closing_errors:
        title += " (closing errors)"
    ax.set_title(title)
    return ax


def label_colors(labels: np.ndarray) -> np.ndarray:
    """(H,W,3) uint8 image, one pseudo-random color per label, black where unlabeled."""
    lab = np.asarray(labels, dtype=np.int64)
    h = ((lab + 1) * 2654435761) & 0xFFFFFF
    rgb = np.stack([(h >> 16) & 0xFF, (h >> 8) & 0xFF, h & 0xFF], axis=-1).astype(np.uint8)
    rgb[lab < 0] = 0
    return rgb


def plot_raster(raster, ax=None):
    if ax is None:
        fig, ax = plt.subplots()

    b = raster.bounds
    ax.imshow(label_colors(raster.labels), origin="lower", extent=(b.minx, b.maxx, b.miny, b.maxy))
    for cell in raster.cell_polygons():
        p = _closed(cell.polygon)
        if len(p):
            ax.plot(*p.T, "-k", linewidth=0.8)
    ax.set_aspect("equal")
    ax.set_title("Jump Flood Voronoi")
    return ax


def render_labels_png(labels: np.ndarray) -> bytes:
    img = Image.fromarray(label_colors(labels))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
