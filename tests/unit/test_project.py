"""
Tests for project settings and the Project model.
"""

import json
from pathlib import Path

from node_studio.core.project import (
    Project,
    ProjectSettings,
    load_settings,
    save_settings,
)


class TestProjectSettings:
    """Tests for ProjectSettings."""

    def test_defaults(self):
        settings = ProjectSettings()
        assert settings.default_width == 256
        assert settings.preview_max_width == 260
        assert settings.debounce_delay == 0.0
        assert settings.output_directory is None

    def test_from_dict_fills_missing(self):
        settings = ProjectSettings.from_dict({"default_width": 64, "log_level": "debug"})
        assert settings.default_width == 64
        assert settings.default_height == 256
        assert settings.log_level == "DEBUG"

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "cfg" / "settings.json"
        settings = ProjectSettings(preview_max_width=128, output_directory=Path("/tmp/out"))

        save_settings(settings, path)

        assert load_settings(path) == settings

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "none.json") == ProjectSettings()

    def test_bad_file_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2")

        assert load_settings(path) == ProjectSettings()
        assert "Failed to load settings" in caplog.text

    def test_wrong_types_give_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"default_width": "wide"}))

        assert load_settings(path) == ProjectSettings()


class TestProject:
    """Tests for Project."""

    def test_graph_mutation_marks_modified(self):
        project = Project.create("Demo")
        assert not project.is_modified

        project.graph.add_node("Display")

        assert project.is_modified
        assert project.display_name == "* Demo"

    def test_mark_saved(self, tmp_path):
        project = Project.create("Demo")
        project.graph.add_node("Display")

        project.mark_saved(tmp_path / "demo.json")

        assert not project.is_modified
        assert project.is_saved
        assert project.display_name == "Demo"

    def test_dict_round_trip(self):
        project = Project.create("Demo")
        node_id = project.graph.add_node("PerlinNoise")
        project.settings.default_width = 32

        restored = Project.from_dict(project.to_dict())

        assert restored.id == project.id
        assert restored.name == "Demo"
        assert restored.settings.default_width == 32
        assert node_id in restored.graph
        assert not restored.is_modified
