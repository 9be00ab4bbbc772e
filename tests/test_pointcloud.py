"""
Point-cloud Export Tests
========================
"""

import os

import laspy
import networkx as nx
import numpy as np
import pandas as pd
import pytest

from galaxygen import GalaxyBuilder, NodeType
from pointcloud import (
    EDGE_COLUMNS,
    NODE_COLUMNS,
    U16_MAX,
    elevation,
    galaxy_to_frames,
    graph_to_frames,
    node_color,
    run_checks,
    write_las,
    write_outputs,
)
from typed_graph import TypedGraph
from vector2d import Vector

CFG = GalaxyBuilder(nb_arms=3, nb_arm_bones=6, nb_loners=4, cloud_radius=4.0, seed=3)


@pytest.fixture
def frames():
    galaxy = CFG.build(Vector(0.0, 0.0))
    return galaxy_to_frames(galaxy, np.random.default_rng(0))


class TestColorsAndElevation:

    def test_node_colors(self):
        assert node_color(NodeType.ROOT) == (U16_MAX, 0, 0)
        assert node_color(NodeType.ARM) == (U16_MAX, 0, 0)
        assert node_color(NodeType.EXT) == (0, U16_MAX, 0)
        assert node_color(NodeType.LONER) == (0, 0, U16_MAX)
        assert node_color(NodeType.SYSTEM) == (U16_MAX, 0, U16_MAX)

    def test_elevation_bounded_by_gaussian_envelope(self):
        rng = np.random.default_rng(1)
        xy = rng.uniform(-100, 100, size=(500, 2))
        z = elevation(xy, rng, amplitude=16.0, falloff=2000.0)
        envelope = 16.0 * np.exp(-np.sum(xy * xy, axis=1) / 2000.0)
        assert z.shape == (500,)
        assert np.all(np.abs(z) <= envelope)

    def test_elevation_vanishes_far_out(self):
        z = elevation(np.array([[1e4, 1e4]]), np.random.default_rng(0))
        assert z[0] == pytest.approx(0.0, abs=1e-12)


class TestFrames:

    def test_columns_and_counts(self, frames):
        nodes, edges = frames
        assert list(nodes.columns) == NODE_COLUMNS
        assert list(edges.columns) == EDGE_COLUMNS
        assert (nodes["node_type"] == "root").sum() == 1
        assert (nodes["node_type"] == "arm").sum() == CFG.nb_arms * CFG.nb_arm_bones
        assert len(edges) == len(nodes) - (1 + CFG.nb_loners)

    def test_edge_lengths(self, frames):
        nodes, edges = frames
        xy = nodes[["x", "y"]].values
        expected = np.linalg.norm(xy[edges["source"]] - xy[edges["target"]], axis=1)
        np.testing.assert_allclose(edges["length"].values, expected)

    def test_radius_measured_from_center(self):
        center = Vector(50.0, -20.0)
        nodes, _ = galaxy_to_frames(CFG.build(center), np.random.default_rng(0))
        root = nodes[nodes["node_type"] == "root"].iloc[0]
        assert root["r"] == 0.0
        expected = np.hypot(nodes["x"] - 50.0, nodes["y"] + 20.0)
        np.testing.assert_allclose(nodes["r"].values, expected.values)

    def test_empty_graph(self):
        nodes, edges = graph_to_frames(TypedGraph())
        assert len(nodes) == 0 and len(edges) == 0
        assert list(nodes.columns) == NODE_COLUMNS


class TestWriters:

    def test_write_outputs(self, tmp_path):
        graph = CFG.build(Vector(0.0, 0.0)).into_inner()
        nodes, edges = graph_to_frames(graph, np.random.default_rng(0))
        written = write_outputs(nodes, edges, str(tmp_path / "out"), graph=graph)

        names = sorted(os.path.basename(p) for p in written)
        assert names == ["edges.csv", "graph.gexf", "nodes.csv", "points.las", "points.xyz"]

        reloaded = pd.read_csv(tmp_path / "out" / "nodes.csv")
        assert len(reloaded) == len(nodes)

        xyz = np.loadtxt(tmp_path / "out" / "points.xyz")
        assert xyz.shape == (len(nodes), 6)
        np.testing.assert_allclose(xyz[:, 0], nodes["x"].values, atol=1e-6)

        G = nx.read_gexf(tmp_path / "out" / "graph.gexf")
        assert G.number_of_nodes() == graph.node_count
        assert G.number_of_edges() == graph.edge_count

    def test_las_round_trip(self, tmp_path, frames):
        nodes, _ = frames
        path = str(tmp_path / "points.las")
        write_las(nodes, path)

        las = laspy.read(path)
        assert las.header.point_format.id == 2
        assert len(las.points) == len(nodes)
        np.testing.assert_allclose(las.header.scales, [1.0, 1.0, 1.0])
        np.testing.assert_allclose(las.header.offsets, [0.0, 0.0, 0.0])
        np.testing.assert_array_equal(np.asarray(las.red), nodes["red"].values)
        np.testing.assert_array_equal(np.asarray(las.green), nodes["green"].values)
        np.testing.assert_array_equal(np.asarray(las.blue), nodes["blue"].values)
        # whole-unit storage
        np.testing.assert_allclose(np.asarray(las.x), nodes["x"].values, atol=1.0)
        np.testing.assert_allclose(np.asarray(las.y), nodes["y"].values, atol=1.0)

    def test_write_outputs_without_graph_skips_gexf(self, tmp_path, frames):
        nodes, edges = frames
        written = write_outputs(nodes, edges, str(tmp_path))
        assert not any(p.endswith(".gexf") for p in written)


class TestChecks:

    def test_generated_galaxy_passes(self, capsys):
        galaxy = CFG.configure(min_distance=1.0).build(Vector(0.0, 0.0))
        radius = galaxy.galaxy_radius
        nodes, edges = galaxy_to_frames(galaxy, np.random.default_rng(0))
        results = run_checks(nodes, edges, CFG.configure(min_distance=1.0), radius)
        assert all(results.values()), results
        assert "ACCEPTANCE TESTS" in capsys.readouterr().out

    def test_detects_wrong_arm_count(self, frames):
        nodes, edges = frames
        results = run_checks(nodes, edges, CFG.configure(nb_arms=4), 1e9)
        assert results["arms"] is False
        assert results["root"] is True
