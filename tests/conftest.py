from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """
    Ensure `src/` is on sys.path so tests can import `node_studio`
    without requiring an editable install.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"
    sys.path.insert(0, str(src_root))


@pytest.fixture(autouse=True)
def registry():
    """Fresh singleton registry holding only the built-in node types."""
    from node_studio.core.node_types import NodeRegistry
    from node_studio.nodes import register_all_nodes

    reg = NodeRegistry.instance()
    reg.clear()
    register_all_nodes(reg)
    yield reg
    reg.clear()
