"""
Errors - Exception hierarchy for graph construction and evaluation.

Mutation-time errors are raised synchronously to the caller. Compute-time
failures are never raised out of a pass; they are recorded as
``NodeError`` entries (see graph.py) on the pass result instead.
"""

from __future__ import annotations


class NodeStudioError(Exception):
    """Base exception for Node Studio errors."""
    pass


class NodeConstructionError(NodeStudioError):
    """A node could not be created (e.g. unknown node type)."""

    def __init__(self, type_id: str, message: str | None = None):
        self.type_id = type_id
        super().__init__(message or f"Unknown node type: {type_id!r}")


class CycleDetectedError(NodeStudioError, ValueError):
    """The graph contains a cycle, so no execution order exists."""
    pass


class WorkspaceError(NodeStudioError, ValueError):
    """A serialized graph snapshot is malformed."""
    pass
