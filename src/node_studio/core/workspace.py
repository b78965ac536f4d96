"""
Workspace Persistence - Save and load node graphs to/from disk.

This module serializes a graph to a plain structural snapshot (nodes
with id/type/position/parameters, edges with id/source/destination) and
restores graphs from such snapshots. Restoring rejects snapshots that
reference unknown node types.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Any

from node_studio.core.errors import NodeConstructionError, WorkspaceError
from node_studio.core.graph import (
    Connection,
    ConnectionId,
    InputSocket,
    Node,
    NodeGraph,
    NodeId,
    OutputSocket,
    Point2D,
)
from node_studio.core.node_types import NodeRegistry


logger = logging.getLogger(__name__)

WORKSPACE_VERSION = 1

# Workspace storage directory
WORKSPACE_DIR = Path.home() / ".local" / "share" / "node_studio" / "workspaces"


def get_workspace_dir() -> Path:
    """Get the workspace storage directory, creating if needed."""
    WORKSPACE_DIR.mkdir(parents=True, exist_ok=True)
    return WORKSPACE_DIR


def graph_to_dict(graph: NodeGraph) -> dict[str, Any]:
    """Build a JSON-compatible snapshot of the graph."""
    nodes_data = [
        {
            "id": node.id,
            "type": node.type_id,
            "x": node.position.x,
            "y": node.position.y,
            "params": dict(node.parameters),
        }
        for node in graph.nodes.values()
    ]

    edges_data = [
        {
            "id": conn.id,
            "from": {"nodeId": conn.source.node_id, "port": conn.source.output_name},
            "to": {"nodeId": conn.target.node_id, "port": conn.target.input_name},
        }
        for conn in graph.connections
    ]

    return {
        "version": WORKSPACE_VERSION,
        "name": graph.name,
        "saved_at": datetime.now().isoformat(),
        "nodes": nodes_data,
        "edges": edges_data,
    }


def _position(entry: dict[str, Any]) -> Point2D:
    coords = []
    for key in ("x", "y"):
        value = entry.get(key, 0.0)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise WorkspaceError(f"Invalid {key!r} coordinate for node {entry['id']!r}: {value!r}")
        coords.append(float(value))
    return Point2D(*coords)


def graph_from_dict(
    data: dict[str, Any],
    name: str | None = None,
    registry: NodeRegistry | None = None,
) -> NodeGraph:
    """
    Rebuild a graph from a snapshot.

    Parameters missing from the snapshot are filled from the node type's
    defaults. Edges go through the normal connection checks (see
    NodeGraph.add_connection) and edges failing them are dropped (and logged).
    Keys other than nodes, edges and name (e.g. a saved view) are ignored.

    Raises:
        NodeConstructionError: If a node references an unknown type.
        WorkspaceError: If the snapshot structure is malformed.
    """
    if not isinstance(data, dict):
        raise WorkspaceError("Invalid workspace format: expected an object")
    nodes_data = data.get("nodes", [])
    edges_data = data.get("edges", [])
    if not isinstance(nodes_data, list):
        raise WorkspaceError("Invalid workspace format: expected a 'nodes' list")
    if not isinstance(edges_data, list):
        raise WorkspaceError("Invalid workspace format: expected an 'edges' list")

    graph = NodeGraph(name or data.get("name", "Untitled"), registry=registry)
    registry = graph.registry

    # Validate every entry before touching the graph
    seen: set[str] = set()
    nodes: list[Node] = []
    for entry in nodes_data:
        if not isinstance(entry, dict) or "id" not in entry or not isinstance(entry.get("type"), str):
            raise WorkspaceError(f"Invalid node entry: {entry!r}")
        node_id = str(entry["id"])
        if node_id in seen:
            raise WorkspaceError(f"Duplicate node id: {node_id!r}")
        seen.add(node_id)

        node_type = registry.get(entry["type"])
        if node_type is None:
            raise NodeConstructionError(entry["type"])

        params = entry.get("params") or {}
        if not isinstance(params, dict):
            raise WorkspaceError(f"Invalid params for node {node_id!r}: {params!r}")
        parameters = node_type.get_default_parameters()
        parameters.update(params)

        nodes.append(Node(
            id=NodeId(node_id),
            type_id=entry["type"],
            position=_position(entry),
            parameters=parameters,
        ))

    for node in nodes:
        graph.insert_node(node)

    for entry in edges_data:
        try:
            conn = Connection(
                id=ConnectionId(str(entry["id"])),
                source=OutputSocket(NodeId(str(entry["from"]["nodeId"])), entry["from"]["port"]),
                target=InputSocket(NodeId(str(entry["to"]["nodeId"])), entry["to"]["port"]),
            )
        except (KeyError, TypeError) as e:
            raise WorkspaceError(f"Invalid edge entry: {entry!r}") from e

        if not graph.add_connection(conn):
            logger.warning("Dropped invalid edge %s while loading workspace", conn.id)

    return graph


def save_workspace(graph: NodeGraph, path: Path | None = None) -> Path:
    """
    Save a graph to disk.

    Args:
        graph: The graph to save
        path: Optional specific path, otherwise <workspace dir>/<graph name>.json

    Returns:
        Path where the workspace was saved
    """
    if path is None:
        path = get_workspace_dir() / f"{graph.name}.json"

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(graph_to_dict(graph), f, indent=2)

    logger.info("Saved workspace %r to %s", graph.name, path)
    return path


def load_workspace(path: Path, registry: NodeRegistry | None = None) -> NodeGraph:
    """
    Load a graph from disk.

    Accepts files written by save_workspace as well as bare
    ``{"nodes", "edges"}`` snapshots without a version field.

    Raises:
        FileNotFoundError: If the workspace file doesn't exist
        WorkspaceError: If the file is not a valid workspace
        NodeConstructionError: If it references unknown node types
    """
    if not path.exists():
        raise FileNotFoundError(f"Workspace not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise WorkspaceError(f"Failed to parse workspace {path}: {e}") from e

    if not isinstance(data, dict) or "nodes" not in data:
        raise WorkspaceError(f"Invalid workspace format: {path}")

    return graph_from_dict(data, registry=registry)


def create_starter_graph(registry: NodeRegistry | None = None) -> NodeGraph:
    """
    Build the default first-run graph.

    Perlin noise and a gradient feed a multiply Combine whose result
    goes to a Display node.
    """
    graph = NodeGraph("Starter", registry=registry)
    noise = graph.add_node("PerlinNoise", Point2D(1900, 1920))
    gradient = graph.add_node("Gradient", Point2D(1900, 2100))
    combine = graph.add_node("Combine", Point2D(2100, 2010))
    display = graph.add_node("Display", Point2D(2300, 2010))
    graph.add_edge(noise, "image", combine, "A")
    graph.add_edge(gradient, "image", combine, "B")
    graph.add_edge(combine, "image", display, "image")
    return graph
