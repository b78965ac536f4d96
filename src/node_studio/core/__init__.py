"""
Core module - Data structures, execution engine, and persistence.

This module provides the fundamental building blocks for Node Studio:
- Graph: Node graph data structures
- Data Types: RGBA raster buffers
- Node Types: Node definitions and registry
- Noise / Blend: Procedural noise and blend operators
- Execution: Pass scheduling and evaluation
- Project / Workspace: Settings and graph persistence
"""

from node_studio.core.errors import (
    CycleDetectedError,
    NodeConstructionError,
    NodeStudioError,
    WorkspaceError,
)

from node_studio.core.graph import (
    Connection,
    ConnectionId,
    InputSocket,
    Node,
    NodeError,
    NodeGraph,
    NodeId,
    NodeOutput,
    OutputSocket,
    Point2D,
    new_connection_id,
    new_node_id,
)

from node_studio.core.data_types import (
    DataType,
    ImageData,
    ImageMetadata,
    ParameterValue,
    clamp_dimension,
    parse_color,
)

from node_studio.core.node_types import (
    InputDefinition,
    NodeCategory,
    NodeExecutor,
    NodeRegistry,
    NodeType,
    OutputDefinition,
    ParameterDefinition,
    ParameterType,
    node_type,
    register_node,
)

from node_studio.core.noise import (
    PerlinNoise,
    create_perlin,
    create_rng,
    xorshift32,
)

from node_studio.core.blend import (
    BlendMode,
    blend_images,
)

from node_studio.core.execution import (
    EvaluationResult,
    ExecutionContext,
    ExecutionEngine,
    ExecutionProgress,
    ExecutionStatus,
)

from node_studio.core.project import (
    Project,
    ProjectSettings,
    load_settings,
    save_settings,
)

from node_studio.core.workspace import (
    create_starter_graph,
    graph_from_dict,
    graph_to_dict,
    load_workspace,
    save_workspace,
)


__all__ = [
    # errors.py
    "CycleDetectedError",
    "NodeConstructionError",
    "NodeStudioError",
    "WorkspaceError",
    # graph.py
    "Connection",
    "ConnectionId",
    "InputSocket",
    "Node",
    "NodeError",
    "NodeGraph",
    "NodeId",
    "NodeOutput",
    "OutputSocket",
    "Point2D",
    "new_connection_id",
    "new_node_id",
    # data_types.py
    "DataType",
    "ImageData",
    "ImageMetadata",
    "ParameterValue",
    "clamp_dimension",
    "parse_color",
    # node_types.py
    "InputDefinition",
    "NodeCategory",
    "NodeExecutor",
    "NodeRegistry",
    "NodeType",
    "OutputDefinition",
    "ParameterDefinition",
    "ParameterType",
    "node_type",
    "register_node",
    # noise.py
    "PerlinNoise",
    "create_perlin",
    "create_rng",
    "xorshift32",
    # blend.py
    "BlendMode",
    "blend_images",
    # execution.py
    "EvaluationResult",
    "ExecutionContext",
    "ExecutionEngine",
    "ExecutionProgress",
    "ExecutionStatus",
    # project.py
    "Project",
    "ProjectSettings",
    "load_settings",
    "save_settings",
    # workspace.py
    "create_starter_graph",
    "graph_from_dict",
    "graph_to_dict",
    "load_workspace",
    "save_workspace",
]
