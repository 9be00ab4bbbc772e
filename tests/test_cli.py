"""
CLI Tests
=========

End-to-end runs of ``run_generate`` followed by ``plot_debug`` on its output.
"""

import json

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

import plot_debug
import run_generate


def generate(out_dir, *extra):
    run_generate.main([
        "--nb_arms", "3", "--nb_arm_bones", "6", "--nb_loners", "4",
        "--cloud_radius", "4", "--seed", "9", "--out_dir", str(out_dir), *extra,
    ])


class TestRunGenerate:

    def test_writes_outputs_and_params(self, tmp_path, capsys):
        generate(tmp_path, "--min_distance", "1.5", "--center", "10", "-5")

        names = ["nodes.csv", "edges.csv", "points.xyz", "points.las", "graph.gexf", "params.json"]
        for name in names:
            assert (tmp_path / name).exists(), name

        params = json.loads((tmp_path / "params.json").read_text())
        assert params["nb_arms"] == 3
        assert params["min_distance"] == 1.5
        assert params["center"] == [10.0, -5.0]
        assert params["galaxy_radius"] > 0

        nodes = pd.read_csv(tmp_path / "nodes.csv")
        assert (nodes["node_type"] == "arm").sum() == 18
        root = nodes[nodes["node_type"] == "root"].iloc[0]
        assert (root["x"], root["y"]) == (10.0, -5.0)
        assert root["r"] == 0.0

        out = capsys.readouterr().out
        assert "ACCEPTANCE TESTS" in out
        assert "FAIL" not in out

    def test_no_gexf(self, tmp_path):
        generate(tmp_path, "--no_gexf")
        assert not (tmp_path / "graph.gexf").exists()
        assert (tmp_path / "nodes.csv").exists()

    def test_invalid_min_distance_exits(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            generate(tmp_path, "--min_distance", "5")
        assert exc.value.code == 2
        assert "min_distance" in capsys.readouterr().err
        assert not (tmp_path / "nodes.csv").exists()


class TestPlotDebug:

    @pytest.mark.parametrize("color_by", ["node_type", "z", "r"])
    def test_saves_figure(self, tmp_path, color_by):
        generate(tmp_path)
        image = tmp_path / f"galaxy_{color_by}.png"
        plot_debug.main(["--out_dir", str(tmp_path), "--color_by", color_by,
                         "--save", str(image)])
        assert image.exists() and image.stat().st_size > 0

    def test_no_edges(self, tmp_path):
        generate(tmp_path)
        args = plot_debug.build_parser().parse_args(["--out_dir", str(tmp_path), "--no_edges"])
        fig = plot_debug.draw_galaxy(args)
        assert "edges hidden" in fig.axes[0].get_title()

    def test_missing_output_dir(self, tmp_path):
        args = plot_debug.build_parser().parse_args(["--out_dir", str(tmp_path / "nope")])
        with pytest.raises(FileNotFoundError):
            plot_debug.draw_galaxy(args)
