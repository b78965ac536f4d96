"""
Node Graph Model - Core data structures for the dataflow graph.

This module defines the fundamental building blocks:
- Node: A single compute unit with a type tag, position and parameters
- Connection: A link from a node output port to a node input port
- NodeGraph: The complete graph containing nodes and connections

The graph is the single source of truth. It guarantees that every
input port has at most one incoming connection, that no connection
references a missing node, and that the connection set stays acyclic.
"""

from __future__ import annotations

import copy
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, NewType
from uuid import UUID, uuid4

from node_studio.core.errors import CycleDetectedError, NodeConstructionError
from node_studio.core.node_types import NodeRegistry


logger = logging.getLogger(__name__)

# Type aliases for clarity
NodeId = NewType("NodeId", str)
ConnectionId = NewType("ConnectionId", str)


def _short_uid(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def new_node_id() -> NodeId:
    """Generate a new unique node ID."""
    return NodeId(_short_uid("node"))


def new_connection_id() -> ConnectionId:
    """Generate a new unique connection ID."""
    return ConnectionId(_short_uid("edge"))


@dataclass
class Point2D:
    """2D point for node positioning on the canvas."""
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class OutputSocket:
    """Reference to an output port on a node."""
    node_id: NodeId
    output_name: str


@dataclass(frozen=True)
class InputSocket:
    """Reference to an input port on a node."""
    node_id: NodeId
    input_name: str


@dataclass(frozen=True)
class Connection:
    """
    A connection (edge) between two nodes.

    Connects an output port of one node to an input port of another.
    """
    id: ConnectionId
    source: OutputSocket
    target: InputSocket

    @classmethod
    def create(
        cls,
        source_node: NodeId,
        source_output: str,
        target_node: NodeId,
        target_input: str,
    ) -> Connection:
        """Factory method to create a new connection."""
        return cls(
            id=new_connection_id(),
            source=OutputSocket(source_node, source_output),
            target=InputSocket(target_node, target_input),
        )


@dataclass
class NodeOutput:
    """Output produced by a node during one evaluation pass."""
    data: dict[str, Any]
    timestamp: float  # Unix timestamp
    execution_time: float  # Seconds


@dataclass
class NodeError:
    """Error information from a failed node computation."""
    node_id: NodeId
    message: str
    details: str | None = None
    recoverable: bool = True


@dataclass
class Node:
    """
    A single node in the processing graph.

    Nodes have:
    - A unique ID
    - A type (references a NodeType in the registry)
    - Position on the canvas (not used by computation)
    - Parameter values
    """
    id: NodeId
    type_id: str  # References NodeType.id in the registry
    position: Point2D = field(default_factory=Point2D)

    # User-configured parameters
    parameters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        type_id: str,
        position: Point2D | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> Node:
        """Factory method to create a new node."""
        return cls(
            id=new_node_id(),
            type_id=type_id,
            position=position or Point2D(),
            parameters=parameters or {},
        )

    def set_parameter(self, name: str, value: Any) -> bool:
        """
        Set a parameter value. Returns True if the value changed.

        This only updates the node itself: the owning graph does not bump
        its version or notify listeners. Edits that should trigger
        evaluation go through NodeGraph.set_parameter.
        """
        if name in self.parameters and self.parameters[name] == value:
            return False
        self.parameters[name] = value
        return True

    def get_parameter(self, name: str, default: Any = None) -> Any:
        """Get a parameter value."""
        return self.parameters.get(name, default)

    def copy(self) -> Node:
        """Deep copy (parameters included)."""
        return Node(
            id=self.id,
            type_id=self.type_id,
            position=Point2D(self.position.x, self.position.y),
            parameters=copy.deepcopy(self.parameters),
        )


GraphListener = Callable[["NodeGraph"], None]


class NodeGraph:
    """
    The complete node graph.

    Contains nodes and the connections between them. Provides the
    mutation interface used by the editor and the ordering used by the
    execution engine. Every mutation bumps ``version`` and notifies
    listeners.
    """

    def __init__(self, name: str = "Untitled", registry: NodeRegistry | None = None):
        self.id: UUID = uuid4()
        self.name: str = name
        self._registry = registry
        self._nodes: dict[NodeId, Node] = {}
        self._connections: dict[ConnectionId, Connection] = {}
        self._version = 0
        self._listeners: list[GraphListener] = []

    @property
    def registry(self) -> NodeRegistry:
        return self._registry if self._registry is not None else NodeRegistry.instance()

    @property
    def version(self) -> int:
        """Monotonic counter incremented on every mutation."""
        return self._version

    # --- Change notification ---

    def add_listener(self, listener: GraphListener) -> None:
        """Call listener(graph) after every mutation."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: GraphListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _touch(self) -> None:
        self._version += 1
        for listener in list(self._listeners):
            listener(self)

    # --- Node operations ---

    @property
    def nodes(self) -> dict[NodeId, Node]:
        """Get all nodes (read-only view)."""
        return self._nodes.copy()

    def add_node(self, type_id: str, position: Point2D | None = None) -> NodeId:
        """
        Create a node of the given type with default parameters.

        Raises:
            NodeConstructionError: If type_id is not registered.
        """
        node_type = self.registry.get(type_id)
        if node_type is None:
            raise NodeConstructionError(type_id)

        node = Node.create(type_id, position, node_type.get_default_parameters())
        self._nodes[node.id] = node
        self._touch()
        return node.id

    def insert_node(self, node: Node) -> None:
        """
        Add a prebuilt node (e.g. restored from a saved workspace).

        Raises:
            NodeConstructionError: If the node's type is not registered.
        """
        if node.type_id not in self.registry:
            raise NodeConstructionError(node.type_id)
        self._nodes[node.id] = node
        self._touch()

    def remove_node(self, node_id: NodeId) -> Node | None:
        """
        Remove a node and all its connections.

        Returns the removed node, or None if not found.
        """
        node = self._nodes.pop(node_id, None)
        if node:
            # Remove all connections involving this node
            self._connections = {
                cid: conn for cid, conn in self._connections.items()
                if conn.source.node_id != node_id and conn.target.node_id != node_id
            }
            self._touch()
        return node

    def get_node(self, node_id: NodeId) -> Node | None:
        """Get a node by ID."""
        return self._nodes.get(node_id)

    def set_parameter(
        self,
        node_id: NodeId,
        name: str,
        value: Any,
        coerce: bool = True,
    ) -> bool:
        """
        Update one parameter of a node in place.

        When coerce is True the value is normalized through the
        parameter's definition (range clamping, integer rounding).
        Returns True if the stored value changed.

        Raises:
            KeyError: If the node does not exist.
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise KeyError(f"Node not found: {node_id}")

        if coerce:
            node_type = self.registry.get(node.type_id)
            definition = node_type.get_parameter(name) if node_type else None
            if definition is not None:
                value = definition.coerce(value)

        changed = node.set_parameter(name, value)
        if changed:
            self._touch()
        return changed

    # --- Connection operations ---

    @property
    def connections(self) -> list[Connection]:
        """Get all connections (read-only copy)."""
        return list(self._connections.values())

    def get_connection(self, connection_id: ConnectionId) -> Connection | None:
        return self._connections.get(connection_id)

    def add_edge(
        self,
        source_node: NodeId,
        source_output: str,
        target_node: NodeId,
        target_input: str,
    ) -> ConnectionId | None:
        """
        Connect an output port to an input port.

        Returns the new connection ID, or None if the edge was rejected
        (self-loop, missing node, or it would create a cycle).
        """
        conn = Connection.create(source_node, source_output, target_node, target_input)
        if self.add_connection(conn):
            return conn.id
        return None

    def add_connection(self, connection: Connection) -> bool:
        """
        Add a connection to the graph.

        Any connection already bound to the same input is removed first
        (inputs can only have one connection). Returns False if the
        connection is a self-loop, references a missing node or
        an undeclared port, joins incompatible data types, or would
        create a cycle.
        """
        source_id = connection.source.node_id
        target_id = connection.target.node_id

        if source_id == target_id:
            logger.debug("Rejected self-loop on %s", source_id)
            return False
        if source_id not in self._nodes or target_id not in self._nodes:
            logger.debug("Rejected connection %s: unknown node", connection.id)
            return False
        if not self._ports_compatible(connection):
            return False

        superseded = [
            cid for cid, conn in self._connections.items()
            if conn.target == connection.target
        ]
        for cid in superseded:
            del self._connections[cid]

        if self._would_create_cycle(connection):
            logger.debug(
                "Rejected connection %s -> %s: would create a cycle",
                source_id, target_id,
            )
            if superseded:
                self._touch()
            return False

        self._connections[connection.id] = connection
        self._touch()
        return True

    def _ports_compatible(self, connection: Connection) -> bool:
        """Both ports must be declared by their node types with matching data types."""
        source_type = self.registry.get(self._nodes[connection.source.node_id].type_id)
        target_type = self.registry.get(self._nodes[connection.target.node_id].type_id)
        output_def = source_type.get_output(connection.source.output_name) if source_type else None
        input_def = target_type.get_input(connection.target.input_name) if target_type else None

        if output_def is None or input_def is None:
            logger.debug("Rejected connection %s: unknown port", connection.id)
            return False
        if not output_def.data_type.is_compatible_with(input_def.data_type):
            logger.debug(
                "Rejected connection %s: %s cannot feed %s",
                connection.id, output_def.data_type.name, input_def.data_type.name,
            )
            return False
        return True

    def remove_edge(self, connection_id: ConnectionId) -> Connection | None:
        """Remove a connection by ID. Returns it, or None if not found."""
        removed = self._connections.pop(connection_id, None)
        if removed is not None:
            self._touch()
        return removed

    def get_input_connection(
        self, node_id: NodeId, input_name: str
    ) -> Connection | None:
        """Get the connection feeding into a specific input."""
        for conn in self._connections.values():
            if conn.target.node_id == node_id and conn.target.input_name == input_name:
                return conn
        return None

    def get_input_connections(self, node_id: NodeId) -> list[Connection]:
        """Get all connections feeding into a node."""
        return [
            conn for conn in self._connections.values()
            if conn.target.node_id == node_id
        ]

    # --- Graph analysis ---

    def _adjacency(self) -> dict[NodeId, list[NodeId]]:
        """Successor lists (source -> targets) for every node."""
        adjacency: dict[NodeId, list[NodeId]] = {nid: [] for nid in self._nodes}
        for conn in self._connections.values():
            adjacency.setdefault(conn.source.node_id, []).append(conn.target.node_id)
        return adjacency

    def get_execution_order(self) -> list[NodeId]:
        """
        Get nodes in topological order for execution.

        Kahn's algorithm: nodes with no incoming connections come first
        (in insertion order), followed by nodes whose inputs are all
        satisfied, and so on.

        Returns:
            List of node IDs in execution order.

        Raises:
            CycleDetectedError: If the graph contains a cycle.
        """
        adjacency = self._adjacency()
        in_degree: dict[NodeId, int] = {nid: 0 for nid in self._nodes}
        for conn in self._connections.values():
            in_degree[conn.target.node_id] += 1

        ready = deque(nid for nid, degree in in_degree.items() if degree == 0)
        result: list[NodeId] = []

        while ready:
            node_id = ready.popleft()
            result.append(node_id)
            for successor in adjacency[node_id]:
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    ready.append(successor)

        if len(result) != len(self._nodes):
            raise CycleDetectedError("Graph contains a cycle")

        return result

    def get_output_nodes(self) -> list[Node]:
        """Get nodes with no outgoing connections."""
        nodes_with_outputs = {
            conn.source.node_id for conn in self._connections.values()
        }
        return [
            node for node_id, node in self._nodes.items()
            if node_id not in nodes_with_outputs
        ]

    def get_upstream_nodes(self, node_id: NodeId) -> set[NodeId]:
        """Get all nodes that this node depends on (directly or indirectly)."""
        upstream: set[NodeId] = set()
        to_visit = [node_id]

        while to_visit:
            current = to_visit.pop()
            for conn in self._connections.values():
                if conn.target.node_id == current:
                    source_id = conn.source.node_id
                    if source_id not in upstream:
                        upstream.add(source_id)
                        to_visit.append(source_id)

        return upstream

    def get_downstream_nodes(self, node_id: NodeId) -> set[NodeId]:
        """Get all nodes that depend on this node (directly or indirectly)."""
        adjacency = self._adjacency()
        downstream: set[NodeId] = set()
        to_visit = [node_id]

        while to_visit:
            current = to_visit.pop()
            for target_id in adjacency.get(current, []):
                if target_id not in downstream:
                    downstream.add(target_id)
                    to_visit.append(target_id)

        return downstream

    def _would_create_cycle(self, connection: Connection) -> bool:
        """Check if adding this connection would create a cycle."""
        source_id = connection.source.node_id
        target_id = connection.target.node_id

        # Self-loop check
        if source_id == target_id:
            return True

        # Simulate the new edge, then search from the target: if the
        # source is reachable, committing would close a loop.
        adjacency = self._adjacency()
        adjacency.setdefault(source_id, []).append(target_id)

        visited: set[NodeId] = set()
        to_visit = [target_id]

        while to_visit:
            current = to_visit.pop()
            if current == source_id:
                return True
            if current in visited:
                continue
            visited.add(current)
            to_visit.extend(adjacency.get(current, []))

        return False

    # --- Snapshots ---

    def snapshot(self) -> NodeGraph:
        """
        Create an independent copy of the graph for evaluation.

        Nodes (parameters included) are deep-copied; listeners are not
        carried over. The copy keeps this graph's version number.
        """
        clone = NodeGraph(self.name, registry=self._registry)
        clone.id = self.id
        clone._nodes = {nid: node.copy() for nid, node in self._nodes.items()}
        clone._connections = dict(self._connections)
        clone._version = self._version
        return clone

    # --- Utility ---

    def clear(self) -> None:
        """Remove all nodes and connections."""
        self._nodes.clear()
        self._connections.clear()
        self._touch()

    def __len__(self) -> int:
        """Return the number of nodes."""
        return len(self._nodes)

    def __contains__(self, node_id: NodeId) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self._nodes
