"""
Project Model - Project structure and settings.

This module defines the project data structure (a graph plus its
settings) and the user settings file that configures evaluation and
the command-line runner.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

from node_studio.core.graph import NodeGraph


logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "node_studio" / "settings.json"


@dataclass
class ProjectSettings:
    """
    Project-level settings.

    These settings affect evaluation and output and are saved with the
    project or in the user settings file.
    """
    # Size of the blank buffer produced when a node has nothing to work on
    default_width: int = 256
    default_height: int = 256

    # Preview settings
    preview_max_width: int = 260

    # Output settings
    output_directory: Path | None = None

    # Seconds to wait before running a requested pass (0 = next loop turn)
    debounce_delay: float = 0.0

    log_level: str = "INFO"

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "default_width": self.default_width,
            "default_height": self.default_height,
            "preview_max_width": self.preview_max_width,
            "output_directory": str(self.output_directory) if self.output_directory else None,
            "debounce_delay": self.debounce_delay,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectSettings:
        """Create settings from dictionary."""
        return cls(
            default_width=int(data.get("default_width", 256)),
            default_height=int(data.get("default_height", 256)),
            preview_max_width=int(data.get("preview_max_width", 260)),
            output_directory=Path(data["output_directory"]) if data.get("output_directory") else None,
            debounce_delay=float(data.get("debounce_delay", 0.0)),
            log_level=str(data.get("log_level", "INFO")).upper(),
        )


def load_settings(path: Path | None = None) -> ProjectSettings:
    """
    Load settings from file.

    A missing file yields defaults; an unreadable file is logged and
    also yields defaults.
    """
    if path is None:
        path = CONFIG_PATH

    if not path.exists():
        return ProjectSettings()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return ProjectSettings.from_dict(data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Failed to load settings from %s: %s", path, e)
        return ProjectSettings()


def save_settings(settings: ProjectSettings, path: Path | None = None) -> Path:
    """Save settings to file, creating the directory if needed."""
    if path is None:
        path = CONFIG_PATH

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
    return path


@dataclass
class Project:
    """
    A complete project containing the node graph and settings.

    Projects can be saved to and loaded from disk through the
    workspace module.
    """
    id: UUID
    name: str
    graph: NodeGraph
    settings: ProjectSettings = field(default_factory=ProjectSettings)

    # File location (None for unsaved projects)
    path: Path | None = None

    # Timestamps
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)

    # State
    is_modified: bool = False

    @classmethod
    def create(cls, name: str = "Untitled", graph: NodeGraph | None = None) -> Project:
        """Create a new project, tracking modifications of its graph."""
        project = cls(
            id=uuid4(),
            name=name,
            graph=graph or NodeGraph(name=name),
        )
        project.graph.add_listener(lambda _graph: project.mark_modified())
        return project

    def mark_modified(self) -> None:
        """Mark the project as having unsaved changes."""
        self.is_modified = True
        self.modified_at = datetime.now()

    def mark_saved(self, path: Path | None = None) -> None:
        """Mark the project as saved."""
        self.is_modified = False
        if path:
            self.path = path

    @property
    def display_name(self) -> str:
        """Get the display name with modified indicator."""
        modified = "* " if self.is_modified else ""
        return f"{modified}{self.name}"

    @property
    def is_saved(self) -> bool:
        """Check if this project has been saved to disk."""
        return self.path is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert project to dictionary for serialization."""
        from node_studio.core.workspace import graph_to_dict

        return {
            "id": str(self.id),
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
            "settings": self.settings.to_dict(),
            "graph": graph_to_dict(self.graph),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        """Restore a project written by to_dict."""
        from node_studio.core.workspace import graph_from_dict

        name = data.get("name", "Untitled")
        project = cls.create(name, graph_from_dict(data.get("graph", {}), name=name))
        project.settings = ProjectSettings.from_dict(data.get("settings", {}))
        if data.get("id"):
            project.id = UUID(data["id"])
        project.is_modified = False
        return project
