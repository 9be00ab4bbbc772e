"""
pointcloud.py
=============
Turns a generated galaxy into tabular / point-cloud outputs.

Every node becomes one coloured 3-D point: the planar position comes from the
generator, the colour from its :class:`~galaxygen.NodeType`, and a synthetic
elevation ``z`` gives the disk some thickness (largest near the origin,
Gaussian falloff outwards).

Outputs written by :func:`write_outputs`
----------------------------------------
  • nodes.csv   – id, x, y, z, r, node_type, red, green, blue
  • edges.csv   – source, target, length (structural parent -> child links)
  • points.xyz  – ``x y z red green blue`` per line, no header (ASCII point
                  cloud readable by CloudCompare, MeshLab, …)
  • points.las  – the same points as a LAS 1.2 file with 16-bit RGB
  • graph.gexf  – optional, for Gephi
"""

from __future__ import annotations

import os
from typing import Dict, List, Optional, Tuple

import laspy
import networkx as nx
import numpy as np
import pandas as pd
from scipy.spatial import cKDTree

from galaxygen import Galaxy, GalaxyBuilder, NodeType
from typed_graph import TypedGraph
from vector2d import DataPoint

U16_MAX = 65_535

# 16-bit RGB per node type
NODE_COLORS: Dict[NodeType, Tuple[int, int, int]] = {
    NodeType.ROOT:   (U16_MAX, 0, 0),
    NodeType.ARM:    (U16_MAX, 0, 0),
    NodeType.EXT:    (0, U16_MAX, 0),
    NodeType.LONER:  (0, 0, U16_MAX),
    NodeType.SYSTEM: (U16_MAX, 0, U16_MAX),
}

NODE_COLUMNS = ["id", "x", "y", "z", "r", "node_type", "red", "green", "blue"]
EDGE_COLUMNS = ["source", "target", "length"]


def node_color(node_type: NodeType) -> Tuple[int, int, int]:
    return NODE_COLORS[node_type]


# ---------------------------------------------------------------------------
# Elevation
# ---------------------------------------------------------------------------

def elevation(
    xy: np.ndarray,
    rng: np.random.Generator,
    amplitude: float = 16.0,
    falloff: float = 2000.0,
) -> np.ndarray:
    """Synthetic disk thickness for each point.

    ``z = U(-amplitude, amplitude) * exp(-(x² + y²) / falloff)``

    Parameters
    ----------
    xy        : (N, 2) planar positions
    rng       : numpy Generator
    amplitude : half-range of the uniform draw at the origin
    falloff   : squared-distance scale of the Gaussian attenuation

    Returns
    -------
    z : (N,) array
    """
    xy = np.asarray(xy, dtype=np.float64).reshape(-1, 2)
    gauss = np.exp(-np.sum(xy * xy, axis=1) / falloff)
    return rng.uniform(-amplitude, amplitude, len(xy)) * gauss


# ---------------------------------------------------------------------------
# Graph -> DataFrames
# ---------------------------------------------------------------------------

def graph_to_frames(
    graph: TypedGraph[DataPoint[NodeType]],
    rng: Optional[np.random.Generator] = None,
    amplitude: float = 16.0,
    falloff: float = 2000.0,
    center: Tuple[float, float] = (0.0, 0.0),
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Tabulate a structural galaxy graph.

    ``r`` is the planar distance from *center*, the position of the root.

    Returns
    -------
    nodes_df : DataFrame  (id, x, y, z, r, node_type, red, green, blue)
    edges_df : DataFrame  (source, target, length)
    """
    rng = rng if rng is not None else np.random.default_rng()

    points = list(graph.nodes())
    if not points:
        return pd.DataFrame(columns=NODE_COLUMNS), pd.DataFrame(columns=EDGE_COLUMNS)

    xy = np.array([(p.x, p.y) for p in points], dtype=np.float64)
    colors = np.array([node_color(p.data) for p in points], dtype=np.int64)

    nodes = pd.DataFrame({
        "id":        np.arange(len(points), dtype=np.int64),
        "x":         xy[:, 0],
        "y":         xy[:, 1],
        "z":         elevation(xy, rng, amplitude, falloff),
        "r":         np.hypot(xy[:, 0] - center[0], xy[:, 1] - center[1]),
        "node_type": [p.data.value for p in points],
        "red":       colors[:, 0],
        "green":     colors[:, 1],
        "blue":      colors[:, 2],
    })

    pairs = np.array([(s, t) for s, t, _ in graph.edges()], dtype=np.int64).reshape(-1, 2)
    lengths = np.linalg.norm(xy[pairs[:, 0]] - xy[pairs[:, 1]], axis=1)
    edges = pd.DataFrame({
        "source": pairs[:, 0],
        "target": pairs[:, 1],
        "length": lengths,
    })
    return nodes, edges


def galaxy_to_frames(
    galaxy: Galaxy,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Consume *galaxy* and tabulate it (see :func:`graph_to_frames`)."""
    return graph_to_frames(galaxy.into_inner(), rng, center=tuple(galaxy.center))


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------

def write_xyz(nodes: pd.DataFrame, path: str) -> None:
    """Write ``x y z red green blue`` rows with no header."""
    nodes[["x", "y", "z", "red", "green", "blue"]].to_csv(
        path, sep=" ", header=False, index=False, float_format="%.6f"
    )


def write_las(nodes: pd.DataFrame, path: str) -> None:
    """Write a LAS 1.2 point cloud (point format 2, RGB).

    Scales are 1 and offsets 0, so coordinates are stored rounded to whole
    units.
    """
    header = laspy.LasHeader(point_format=2, version="1.2")
    header.scales = np.ones(3)
    header.offsets = np.zeros(3)

    las = laspy.LasData(header)
    las.x = nodes["x"].to_numpy(dtype=np.float64)
    las.y = nodes["y"].to_numpy(dtype=np.float64)
    las.z = nodes["z"].to_numpy(dtype=np.float64)
    las.red = nodes["red"].to_numpy(dtype=np.uint16)
    las.green = nodes["green"].to_numpy(dtype=np.uint16)
    las.blue = nodes["blue"].to_numpy(dtype=np.uint16)
    las.write(path)


def write_gexf(graph: TypedGraph[DataPoint[NodeType]], path: str) -> None:
    """Export the structural graph for Gephi."""
    G = nx.DiGraph(graph.to_networkx(
        lambda p: {"x": float(p.x), "y": float(p.y), "node_type": p.data.value}
    ))
    nx.write_gexf(G, path)


def write_outputs(
    nodes: pd.DataFrame,
    edges: pd.DataFrame,
    out_dir: str,
    graph: Optional[TypedGraph[DataPoint[NodeType]]] = None,
) -> List[str]:
    """Write CSV / XYZ / LAS files (and GEXF when *graph* is given) into *out_dir*.

    Returns the list of written paths.
    """
    os.makedirs(out_dir, exist_ok=True)
    written = []

    nodes_path = os.path.join(out_dir, "nodes.csv")
    edges_path = os.path.join(out_dir, "edges.csv")
    xyz_path = os.path.join(out_dir, "points.xyz")
    las_path = os.path.join(out_dir, "points.las")
    nodes.to_csv(nodes_path, index=False)
    edges.to_csv(edges_path, index=False)
    write_xyz(nodes, xyz_path)
    write_las(nodes, las_path)
    written += [nodes_path, edges_path, xyz_path, las_path]

    if graph is not None:
        gexf_path = os.path.join(out_dir, "graph.gexf")
        write_gexf(graph, gexf_path)
        written.append(gexf_path)

    for path in written:
        print(f"Wrote {path}")
    return written


# ---------------------------------------------------------------------------
# Acceptance tests
# ---------------------------------------------------------------------------

def run_checks(
    nodes: pd.DataFrame,
    edges: pd.DataFrame,
    cfg: GalaxyBuilder,
    galaxy_radius: float,
    center: Tuple[float, float] = (0.0, 0.0),
) -> Dict[str, bool]:
    """Print acceptance test results to stdout and return them by name."""
    sep = "─" * 52
    results: Dict[str, bool] = {}

    print(f"\n{sep}")
    print("  ACCEPTANCE TESTS")
    print(sep)

    counts = nodes["node_type"].value_counts()

    def count(node_type: NodeType) -> int:
        return int(counts.get(node_type.value, 0))

    # Root / arm counts are exact
    n_root = count(NodeType.ROOT)
    results["root"] = n_root == 1
    print(f"  Root nodes : {n_root:>6,}  (expected 1)  "
          f"{'✓' if results['root'] else '✗ FAIL'}")

    n_arm = count(NodeType.ARM)
    expected_arm = cfg.nb_arms * cfg.nb_arm_bones
    results["arms"] = n_arm == expected_arm
    print(f"  Arm nodes  : {n_arm:>6,}  (expected {expected_arm:,})  "
          f"{'✓' if results['arms'] else '✗ FAIL'}")

    # Loners inside the skeleton radius
    loners = nodes[nodes["node_type"] == NodeType.LONER.value]
    if len(loners) > 0:
        loner_r = np.hypot(loners["x"].values - center[0], loners["y"].values - center[1])
        results["loners"] = bool(loner_r.max() <= galaxy_radius + 1e-9)
        print(f"  Loner max r: {loner_r.max():>9.4f}  <= {galaxy_radius:.4f}  "
              f"{'✓' if results['loners'] else '✗ FAIL'}")
    else:
        results["loners"] = cfg.nb_loners == 0
        print(f"  Loners     : none  {'✓' if results['loners'] else '✗ FAIL'}")

    # Clouds are an upper bound
    n_system = count(NodeType.SYSTEM)
    max_system = cfg.cloud_population * (len(nodes) - n_system)
    results["clouds"] = n_system <= max_system
    print(f"  System     : {n_system:>6,}  <= {max_system:,}  "
          f"{'✓' if results['clouds'] else '✗ FAIL'}")

    # Structure: one component per loner plus the main body
    G = nx.Graph()
    G.add_nodes_from(nodes["id"].values.tolist())
    G.add_edges_from(zip(edges["source"].values.tolist(), edges["target"].values.tolist()))
    n_components = nx.number_connected_components(G) if len(G) > 0 else 0
    expected_components = 1 + cfg.nb_loners
    results["components"] = n_components == expected_components
    print(f"  Components : {n_components:>6,}  (expected {expected_components:,})  "
          f"{'✓' if results['components'] else '✗ FAIL'}")

    # Spacing diagnostics (informational: the filter is approximate)
    systems = nodes[nodes["node_type"] == NodeType.SYSTEM.value]
    if len(systems) >= 2:
        sys_xy = systems[["x", "y"]].values
        tree = cKDTree(sys_xy)
        nn_dist, _ = tree.query(sys_xy, k=2)
        nearest = nn_dist[:, 1]
        print("\n  System spacing (nearest neighbour):")
        print(f"    min={nearest.min():.3f}  "
              f"median={np.median(nearest):.3f}  "
              f"max={nearest.max():.3f}")
        if cfg.min_distance is not None:
            n_close = int((nearest < cfg.min_distance).sum())
            print(f"    {n_close:,} of {len(nearest):,} closer than "
                  f"min_distance={cfg.min_distance}")

    print(sep + "\n")
    return results
