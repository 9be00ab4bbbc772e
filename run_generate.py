"""
run_generate.py
===============
CLI entrypoint for the procedural spiral-galaxy generator.

All parameters are optional; unspecified parameters fall back to the defaults
defined in ``GalaxyBuilder``.

Quick start
-----------
    python run_generate.py

A denser, wider galaxy with spacing enforced::

    python run_generate.py \\
        --cloud_population 2 \\
        --cloud_radius 4 \\
        --nb_arms 5 \\
        --nb_arm_bones 32 \\
        --slope_factor 0.4 \\
        --arm_slope 0.785 \\
        --arm_width_factor 0.0417 \\
        --min_distance 2 \\
        --out_dir output

Then visualise the result::

    python plot_debug.py
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import os
import time
from typing import List, Optional

import numpy as np

from galaxygen import GalaxyBuilder
from pointcloud import graph_to_frames, run_checks, write_outputs
from vector2d import Vector

_DEFAULTS = GalaxyBuilder()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="run_generate.py",
        description=(
            "Procedural spiral-galaxy generator.\n"
            "Produces nodes.csv, edges.csv, points.xyz, points.las and "
            "(optionally) graph.gexf in OUT_DIR."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # ── Cloud parameters ──────────────────────────────────────────────────
    p.add_argument(
        "--cloud_population", type=int, default=_DEFAULTS.cloud_population,
        metavar="N",
        help="System points drawn around every skeleton / loner node.",
    )
    p.add_argument(
        "--cloud_radius", type=float, default=_DEFAULTS.cloud_radius,
        metavar="R",
        help="Maximum cloud point distance; also the arm bone length.",
    )

    # ── Arm parameters ────────────────────────────────────────────────────
    p.add_argument(
        "--nb_arms", type=int, default=_DEFAULTS.nb_arms,
        metavar="N",
        help="Number of spiral arms.",
    )
    p.add_argument(
        "--nb_arm_bones", type=int, default=_DEFAULTS.nb_arm_bones,
        metavar="N",
        help="Links per arm.",
    )
    p.add_argument(
        "--arm_slope", type=float, default=_DEFAULTS.arm_slope,
        metavar="RAD",
        help="Base heading change per link, in radians.",
    )
    p.add_argument(
        "--slope_factor", type=float, default=_DEFAULTS.slope_factor,
        metavar="F",
        help="Per-link growth of the slope divisor (larger = straighter arm tips).",
    )
    p.add_argument(
        "--arm_width_factor", type=float, default=_DEFAULTS.arm_width_factor,
        metavar="F",
        help="Lateral extension fan-out rate.",
    )

    # ── Outliers / spacing ────────────────────────────────────────────────
    p.add_argument(
        "--nb_loners", type=int, default=_DEFAULTS.nb_loners,
        metavar="N",
        help="Unattached outlier nodes inside the galaxy radius.",
    )
    p.add_argument(
        "--min_distance", type=float, default=None,
        metavar="D",
        help=(
            "Reject cloud points closer than D to their parent's two-hop "
            "neighbours.  Must not exceed --cloud_radius.  Unset = no filter."
        ),
    )

    # ── Placement / reproducibility ───────────────────────────────────────
    p.add_argument(
        "--center", type=float, nargs=2, default=[0.0, 0.0],
        metavar=("X", "Y"),
        help="Position of the galaxy root.",
    )
    p.add_argument(
        "--seed", type=int, default=None,
        metavar="S",
        help="Random seed for reproducible output (unset = different every run).",
    )

    # ── Point-cloud export ────────────────────────────────────────────────
    p.add_argument(
        "--z_amplitude", type=float, default=16.0,
        metavar="Z",
        help="Half-range of the synthetic elevation at the origin.",
    )
    p.add_argument(
        "--z_falloff", type=float, default=2000.0,
        metavar="S",
        help="Squared-distance scale of the elevation's Gaussian falloff.",
    )

    # ── Output ───────────────────────────────────────────────────────────
    p.add_argument(
        "--out_dir", type=str, default="output",
        metavar="DIR",
        help="Directory to write output files (created if absent).",
    )
    p.add_argument(
        "--no_gexf", action="store_true",
        help="Skip GEXF export.",
    )

    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args   = parser.parse_args(argv)

    cfg = GalaxyBuilder().configure(
        cloud_population = args.cloud_population,
        cloud_radius     = args.cloud_radius,
        nb_arms          = args.nb_arms,
        nb_arm_bones     = args.nb_arm_bones,
        arm_slope        = args.arm_slope,
        slope_factor     = args.slope_factor,
        arm_width_factor = args.arm_width_factor,
        nb_loners        = args.nb_loners,
        min_distance     = args.min_distance,
        seed             = args.seed,
    )

    error = cfg.validation_error()
    if error is not None:
        parser.error(error)

    # Print config so the user can confirm parameters before waiting
    print("Configuration")
    print("─" * 40)
    for field in dataclasses.fields(cfg):
        print(f"  {field.name:<22} = {getattr(cfg, field.name)}")
    print()

    t_start = time.perf_counter()

    # ── Generation ───────────────────────────────────────────────────────
    print("Building galaxy …")
    galaxy = cfg.build(Vector(*args.center))
    center = galaxy.center
    galaxy_radius = galaxy.galaxy_radius
    graph = galaxy.into_inner()
    print(f"  {graph.node_count:,} nodes, {graph.edge_count:,} frame edges "
          f"in {time.perf_counter() - t_start:.2f}s  "
          f"(galaxy radius {galaxy_radius:.2f})")

    # ── Tabulation / elevation ────────────────────────────────────────────
    rng = np.random.default_rng(None if args.seed is None else args.seed + 1)
    nodes_df, edges_df = graph_to_frames(
        graph, rng, amplitude=args.z_amplitude, falloff=args.z_falloff,
        center=tuple(center),
    )

    run_checks(nodes_df, edges_df, cfg, galaxy_radius, center=tuple(center))

    # ── Write outputs ─────────────────────────────────────────────────────
    write_outputs(nodes_df, edges_df, args.out_dir,
                  graph=None if args.no_gexf else graph)

    # Persist generation parameters so plot_debug.py can read them automatically
    params_path = os.path.join(args.out_dir, "params.json")
    params = dataclasses.asdict(cfg)
    params.update(center=list(center), galaxy_radius=galaxy_radius)
    with open(params_path, "w") as f:
        json.dump(params, f, indent=2)
    print(f"Wrote {params_path}")

    print(f"\nTotal time: {time.perf_counter() - t_start:.2f}s")

    # Remind user of next steps
    print(
        f"\nNext steps:\n"
        f"  • Debug plot  : python plot_debug.py --out_dir {args.out_dir}\n"
        f"  • Point cloud : open {args.out_dir}/points.las in CloudCompare"
    )


if __name__ == "__main__":
    main()
