"""
plot_debug.py
=============
Matplotlib sanity-check plot for the spiral-galaxy generator.

Shows:
  • Galaxy radius circle (extent of the skeleton before loners / clouds)
  • Frame edges (optional; use --no_edges for a pure point view)
  • Nodes coloured by node type, elevation or radius

Usage
-----
    # Default: use ./output/, colour by node type, show edges
    python plot_debug.py

    # Colour by synthetic elevation, no edges
    python plot_debug.py --no_edges --color_by z

    # Save to PNG instead of opening an interactive window
    python plot_debug.py --save galaxy.png
"""

from __future__ import annotations

import argparse
import json
import os
from typing import List, Optional

import matplotlib.patches as mpatches
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.collections import LineCollection

from galaxygen import NodeType

# Display colours per node type (hex; the 16-bit export colours are too garish)
TYPE_COLORS = {
    NodeType.ROOT.value:   "#ffffff",
    NodeType.ARM.value:    "#ff5544",
    NodeType.EXT.value:    "#66dd66",
    NodeType.LONER.value:  "#4488ff",
    NodeType.SYSTEM.value: "#dd66dd",
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="plot_debug.py",
        description="Debug visualisation for the spiral-galaxy generator.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    p.add_argument("--out_dir",  default="output",
                   help="Directory containing nodes.csv and edges.csv.")
    p.add_argument("--save",     default=None, metavar="FILE",
                   help="Save figure to FILE (png/pdf/svg) instead of displaying.")

    p.add_argument("--no_edges", action="store_true",
                   help="Skip drawing frame edges.")
    p.add_argument("--color_by", choices=["node_type", "z", "r"],
                   default="node_type",
                   help="Node colouring scheme.")

    p.add_argument("--node_size",  type=float, default=3.0,
                   help="Scatter marker size.")
    p.add_argument("--edge_alpha", type=float, default=0.35,
                   help="Edge line alpha (0=invisible, 1=solid).")
    p.add_argument("--edge_color", default="#2244aa",
                   help="Edge line colour (any matplotlib colour string).")
    p.add_argument("--edge_width", type=float, default=0.4,
                   help="Edge line width in points.")
    return p


# ---------------------------------------------------------------------------
# Plot
# ---------------------------------------------------------------------------

def draw_galaxy(args: argparse.Namespace) -> plt.Figure:
    """Load CSV files from ``args.out_dir`` and draw the galaxy plot."""
    nodes_path = os.path.join(args.out_dir, "nodes.csv")
    edges_path = os.path.join(args.out_dir, "edges.csv")
    params_path = os.path.join(args.out_dir, "params.json")

    if not os.path.exists(nodes_path):
        raise FileNotFoundError(
            f"nodes.csv not found in '{args.out_dir}'.  "
            "Run run_generate.py first."
        )

    nodes = pd.read_csv(nodes_path)
    edges = pd.read_csv(edges_path) if os.path.exists(edges_path) else pd.DataFrame()

    params = {}
    if os.path.exists(params_path):
        with open(params_path) as f:
            params = json.load(f)
    center = params.get("center", [0.0, 0.0])
    galaxy_radius: Optional[float] = params.get("galaxy_radius")

    # ── Figure setup ─────────────────────────────────────────────────────
    fig, ax = plt.subplots(figsize=(10, 10))
    ax.set_aspect("equal", adjustable="datalim")

    BG = "#09090f"
    ax.set_facecolor(BG)
    fig.patch.set_facecolor(BG)

    # ── Galaxy radius ─────────────────────────────────────────────────────
    if galaxy_radius:
        ax.add_patch(plt.Circle(
            tuple(center), galaxy_radius,
            fill=False, edgecolor="#3a3a5c", linewidth=1.0, linestyle="--", zorder=2,
        ))

    # ── Edges ─────────────────────────────────────────────────────────────
    if not args.no_edges and len(edges) > 0:
        xy  = nodes[["x", "y"]].values
        src = edges["source"].values.astype(int)
        tgt = edges["target"].values.astype(int)
        segs = np.stack([xy[src], xy[tgt]], axis=1)
        ax.add_collection(LineCollection(
            segs,
            colors=args.edge_color,
            linewidths=args.edge_width,
            alpha=args.edge_alpha,
            zorder=5,
        ))

    # ── Nodes ─────────────────────────────────────────────────────────────
    x = nodes["x"].values
    y = nodes["y"].values

    if args.color_by == "node_type":
        c = [TYPE_COLORS.get(t, "#aaccff") for t in nodes["node_type"].values]
        sc = ax.scatter(x, y, c=c, s=args.node_size, alpha=0.85,
                        linewidths=0, zorder=6)
    else:
        label = {"z": "Elevation", "r": "Radius"}[args.color_by]
        sc = ax.scatter(x, y, c=nodes[args.color_by].values, cmap="magma",
                        s=args.node_size, alpha=0.85, linewidths=0, zorder=6)
        cbar = plt.colorbar(sc, ax=ax, pad=0.01, fraction=0.03, shrink=0.85)
        cbar.set_label(label, color="white", fontsize=9)
        cbar.ax.yaxis.set_tick_params(color="white", labelsize=7)
        plt.setp(plt.getp(cbar.ax.axes, "yticklabels"), color="white")

    ax.autoscale_view()

    # ── Decorations ───────────────────────────────────────────────────────
    title = (
        f"Galaxy  —  {len(nodes):,} points  |  {len(edges):,} frame edges"
        + ("  (edges hidden)" if args.no_edges else "")
    )
    ax.set_title(title, color="white", fontsize=11, pad=10)

    for spine in ax.spines.values():
        spine.set_edgecolor("#2a2a3a")
    ax.tick_params(colors="#555566", labelsize=7)

    legend_patches: List[mpatches.Patch] = []
    if args.color_by == "node_type":
        legend_patches += [
            mpatches.Patch(facecolor=color, label=name)
            for name, color in TYPE_COLORS.items()
        ]
    if galaxy_radius:
        legend_patches.append(mpatches.Patch(
            facecolor="#3a3a5c", label=f"Galaxy radius (r={galaxy_radius:.1f})"
        ))
    if legend_patches:
        ax.legend(
            handles=legend_patches,
            loc="upper right",
            fontsize=8,
            facecolor="#111122",
            edgecolor="#333355",
            labelcolor="white",
        )

    return fig


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args   = parser.parse_args(argv)

    fig = draw_galaxy(args)

    if args.save:
        fig.savefig(args.save, dpi=150, bbox_inches="tight",
                    facecolor=fig.get_facecolor())
        print(f"Saved figure to {args.save}")
    else:
        plt.show()


if __name__ == "__main__":
    main()
