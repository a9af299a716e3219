import argparse
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from src.fracture2d.config import FractureConfig, JumpFloodConfig
from src.fracture2d.fracture import fracture_fortune, fracture_raster
from src.fracture2d.log import configure_logging
from src.fracture2d.visualize import plot_diagram, plot_raster, render_labels_png


def main() -> int:
    p = argparse.ArgumentParser(description="Render a Fortune and a Jump Flood fracture pattern")
    p.add_argument("--out", default="out", help="output directory")
    p.add_argument("--sites", type=int, default=20)
    p.add_argument("--relax", type=int, default=1)
    p.add_argument("--size", type=int, default=256, help="raster width and height")
    p.add_argument("--workers", type=int, default=1)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--impact", type=float, nargs=2, default=None, metavar=("X", "Y"))
    p.add_argument("--log-level", default="INFO")
    p.add_argument("--json-logs", action="store_true")
    args = p.parse_args()

    configure_logging(args.log_level, fmt="json" if args.json_logs else "console")
    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)

    cfg = FractureConfig(n_sites=args.sites, relax_iterations=args.relax, seed=args.seed)
    diagram = fracture_fortune(cfg, impact=args.impact)
    ax = plot_diagram(diagram)
    ax.figure.savefig(out / "fortune.png", dpi=150)
    plt.close(ax.figure)

    jcfg = JumpFloodConfig(
        width=args.size,
        height=args.size,
        n_sites=args.sites,
        workers=args.workers,
        seed=args.seed,
        bounds=cfg.bounds,
    )
    raster = fracture_raster(jcfg)
    ax = plot_raster(raster)
    ax.figure.savefig(out / "jumpflood.png", dpi=150)
    plt.close(ax.figure)
    (out / "labels.png").write_bytes(render_labels_png(raster.labels))

    print("Wrote:", ", ".join(str(out / n) for n in ("fortune.png", "jumpflood.png", "labels.png")))
    return 1 if diagram.has_closing_errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
