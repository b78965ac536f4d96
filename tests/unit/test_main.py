"""
Tests for the command-line runner.
"""

import json

import pytest
from PIL import Image

from node_studio.core.workspace import create_starter_graph, save_workspace
from node_studio.main import main


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr("node_studio.core.project.CONFIG_PATH", tmp_path / "settings.json")


def test_runs_starter_graph(tmp_path):
    out_dir = tmp_path / "out"

    assert main(["-o", str(out_dir), "--preview-size", "64"]) == 0

    files = list(out_dir.glob("*.png"))
    assert len(files) == 1
    with Image.open(files[0]) as image:
        assert image.size == (64, 64)


def test_runs_saved_graph(tmp_path):
    path = save_workspace(create_starter_graph(), tmp_path / "graph.json")
    out_dir = tmp_path / "out"

    assert main([str(path), "-o", str(out_dir)]) == 0

    files = list(out_dir.glob("*.png"))
    assert len(files) == 1
    with Image.open(files[0]) as image:
        assert image.size == (256, 256)
        assert image.mode == "RGBA"


def test_save_starter(tmp_path):
    starter = tmp_path / "starter.json"

    assert main(["-o", str(tmp_path / "out"), "--save-starter", str(starter)]) == 0

    data = json.loads(starter.read_text())
    assert len(data["nodes"]) == 4


def test_missing_graph_fails(tmp_path):
    assert main([str(tmp_path / "missing.json"), "-o", str(tmp_path)]) == 1


def test_unknown_node_type_fails(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({"version": 1, "nodes": [{"id": "n1", "type": "Nope"}]}))

    assert main([str(path), "-o", str(tmp_path)]) == 1
