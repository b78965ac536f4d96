"""
Execution Engine - Async graph evaluation.

This module provides the execution engine that evaluates a node graph
one pass at a time:

- Each pass runs against an immutable snapshot of the graph.
- Nodes are computed in topological order; each node sees the outputs
  its upstream nodes produced earlier in the same pass.
- A failing node is logged and recorded, its outputs are treated as
  absent, and the pass carries on with the remaining nodes.
- Requests are debounced: any number of requests made while a pass is
  pending or running collapse into a single trailing pass.
- If the live graph changes while a pass is running, the pass is
  cancelled without publishing anything and a fresh pass is scheduled.
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable
from uuid import UUID, uuid4

from node_studio.core.data_types import ImageData
from node_studio.core.errors import CycleDetectedError, NodeConstructionError
from node_studio.core.graph import Node, NodeError, NodeGraph, NodeId, NodeOutput
from node_studio.core.node_types import NodeRegistry
from node_studio.core.project import ProjectSettings


logger = logging.getLogger(__name__)


class ExecutionStatus(Enum):
    """Status of the engine / of an evaluation pass."""
    IDLE = auto()
    ORDERING = auto()
    EVALUATING = auto()
    COMPLETED = auto()
    ABORTED = auto()     # Cycle found while ordering; nothing published
    CANCELLED = auto()   # Graph changed mid-pass; nothing published


@dataclass
class ExecutionProgress:
    """Progress information for a pass."""
    pass_id: UUID
    status: ExecutionStatus
    current_node: NodeId | None = None
    current_node_name: str = ""
    nodes_completed: int = 0
    nodes_total: int = 0
    message: str = ""
    error: str | None = None


@dataclass
class EvaluationResult:
    """Outcome of one evaluation pass."""
    id: UUID
    graph_version: int
    status: ExecutionStatus = ExecutionStatus.IDLE
    order: list[NodeId] = field(default_factory=list)
    outputs: dict[NodeId, NodeOutput] = field(default_factory=dict)
    errors: dict[NodeId, NodeError] = field(default_factory=dict)
    previews: dict[NodeId, ImageData | None] = field(default_factory=dict)
    started_at: float = field(default_factory=time.time)
    completed_at: float | None = None
    error: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.status == ExecutionStatus.COMPLETED

    def get_output(self, node_id: NodeId, output_name: str = "image") -> Any:
        """Get one named output of a node, or None if it produced none."""
        output = self.outputs.get(node_id)
        if output is None:
            return None
        return output.data.get(output_name)


class ExecutionContext:
    """
    Context passed to node executors during a pass.

    Provides access to:
    - Project settings (default sizes etc.)
    - Cancellation checking
    - Progress reporting
    """

    def __init__(
        self,
        pass_id: UUID,
        settings: ProjectSettings | None = None,
        on_progress: Callable[[ExecutionProgress], None] | None = None,
        external_cancelled: Callable[[], bool] | None = None,
    ):
        self.pass_id = pass_id
        self.settings = settings or ProjectSettings()
        self._on_progress = on_progress
        self._external_cancelled = external_cancelled
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled or bool(self._external_cancelled and self._external_cancelled())

    def cancel(self) -> None:
        self._cancelled = True

    def check_cancelled(self) -> None:
        """Raise if cancelled."""
        if self.is_cancelled:
            raise asyncio.CancelledError("Evaluation cancelled")

    def report_progress(self, progress: ExecutionProgress) -> None:
        """Report progress to listeners. Listener errors are logged, never raised."""
        if self._on_progress:
            try:
                self._on_progress(progress)
            except Exception:
                logger.exception("Progress callback failed for pass %s", self.pass_id)


OutputCallback = Callable[[NodeId, "ImageData | None"], None]


class ExecutionEngine:
    """
    Async evaluation engine for node graphs.

    Usage:
        engine = ExecutionEngine()
        engine.set_output_callback(lambda node_id, image: ...)
        engine.attach(graph)          # every graph mutation schedules a pass
        engine.request_evaluation()   # or trigger explicitly
        await engine.wait_idle()
    """

    def __init__(
        self,
        registry: NodeRegistry | None = None,
        settings: ProjectSettings | None = None,
    ):
        self._registry = registry
        self.settings = settings or ProjectSettings()
        self._graph: NodeGraph | None = None
        self._status = ExecutionStatus.IDLE
        self._pending = False
        self._worker: asyncio.Task | None = None
        self._current_context: ExecutionContext | None = None
        self._last_result: EvaluationResult | None = None
        self._pass_count = 0

        # Callbacks
        self._on_output: OutputCallback | None = None
        self._on_progress: Callable[[ExecutionProgress], None] | None = None
        self._on_complete: Callable[[EvaluationResult], None] | None = None

    @property
    def registry(self) -> NodeRegistry:
        return self._registry if self._registry is not None else NodeRegistry.instance()

    @property
    def status(self) -> ExecutionStatus:
        return self._status

    @property
    def is_pending(self) -> bool:
        """True if a pass has been requested but not started yet."""
        return self._pending

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def last_result(self) -> EvaluationResult | None:
        """Result of the most recent completed pass."""
        return self._last_result

    @property
    def pass_count(self) -> int:
        """Number of passes started so far."""
        return self._pass_count

    def set_output_callback(self, callback: OutputCallback | None) -> None:
        """Set the per-node preview callback (called once per node per completed pass)."""
        self._on_output = callback

    def set_progress_callback(
        self,
        callback: Callable[[ExecutionProgress], None] | None,
    ) -> None:
        """Set the progress callback."""
        self._on_progress = callback

    def set_completion_callback(
        self,
        callback: Callable[[EvaluationResult], None] | None,
    ) -> None:
        """Set the pass completion callback."""
        self._on_complete = callback

    # --- Scheduling ---

    def attach(self, graph: NodeGraph) -> None:
        """Evaluate this graph and re-evaluate it whenever it changes."""
        self.detach()
        self._graph = graph
        graph.add_listener(self._on_graph_changed)

    def detach(self) -> None:
        if self._graph is not None:
            self._graph.remove_listener(self._on_graph_changed)
        self._graph = None

    def _on_graph_changed(self, graph: NodeGraph) -> None:
        try:
            self.request_evaluation(graph)
        except RuntimeError:
            # Mutations made outside an event loop are picked up by the
            # next explicit request.
            self._pending = True

    def request_evaluation(self, graph: NodeGraph | None = None) -> None:
        """
        Request a pass over the current graph state.

        Requests are coalesced: at most one pass is pending at any time.
        Must be called from within a running event loop.

        Raises:
            ValueError: If no graph is given or attached.
            RuntimeError: If there is no running event loop.
        """
        if graph is not None:
            self._graph = graph
        if self._graph is None:
            raise ValueError("No graph to evaluate")

        self._pending = True
        if not self.is_running:
            loop = asyncio.get_running_loop()
            self._worker = loop.create_task(self._run_worker())

    async def wait_idle(self) -> None:
        """Wait until no pass is pending or running."""
        while self.is_running:
            await asyncio.shield(self._worker)

    async def _run_worker(self) -> None:
        """Background worker: run passes until no request is pending."""
        while self._pending:
            # Yield (or debounce) so requests made in the same burst
            # collapse into this pass.
            await asyncio.sleep(max(0.0, self.settings.debounce_delay))
            self._pending = False

            graph = self._graph
            if graph is None:
                break

            result = await self.evaluate(graph)
            if result.status == ExecutionStatus.CANCELLED:
                self._pending = True

    # --- Evaluation ---

    async def evaluate(self, graph: NodeGraph) -> EvaluationResult:
        """
        Run one evaluation pass over a snapshot of the graph.

        Compute failures are isolated per node. The only abort path is a
        cycle found while ordering. Outputs are published (output
        callback, ``last_result``) only when the pass completes.
        """
        snapshot = graph.snapshot()
        result = EvaluationResult(id=uuid4(), graph_version=snapshot.version)
        self._pass_count += 1

        context = ExecutionContext(
            pass_id=result.id,
            settings=self.settings,
            on_progress=self._on_progress,
            external_cancelled=lambda: graph.version != snapshot.version,
        )
        self._current_context = context

        try:
            self._status = ExecutionStatus.ORDERING
            try:
                order = snapshot.get_execution_order()
            except CycleDetectedError as e:
                logger.error("Evaluation aborted: %s", e)
                result.status = ExecutionStatus.ABORTED
                result.error = str(e)
                context.report_progress(ExecutionProgress(
                    pass_id=result.id,
                    status=ExecutionStatus.ABORTED,
                    error=str(e),
                    message=f"Evaluation aborted: {e}",
                ))
            else:
                result.order = order
                await self._run_nodes(snapshot, result, context)

                result.status = ExecutionStatus.COMPLETED
                result.completed_at = time.time()
                self._publish(snapshot, result)

                context.report_progress(ExecutionProgress(
                    pass_id=result.id,
                    status=ExecutionStatus.COMPLETED,
                    nodes_completed=len(order),
                    nodes_total=len(order),
                    message="Evaluation complete",
                ))

        except asyncio.CancelledError:
            if not context.is_cancelled:
                # The task itself was cancelled, not just this pass
                raise
            result.status = ExecutionStatus.CANCELLED
            result.error = "Graph changed during evaluation"
            result.completed_at = time.time()
            logger.info("Evaluation pass cancelled: graph changed")

            context.report_progress(ExecutionProgress(
                pass_id=result.id,
                status=ExecutionStatus.CANCELLED,
                message="Evaluation cancelled",
            ))

        finally:
            self._status = ExecutionStatus.IDLE
            self._current_context = None

        if self._on_complete:
            try:
                self._on_complete(result)
            except Exception:
                logger.exception("Completion callback failed for pass %s", result.id)

        return result

    async def _run_nodes(
        self,
        graph: NodeGraph,
        result: EvaluationResult,
        context: ExecutionContext,
    ) -> None:
        """Compute every node of result.order, isolating failures per node."""
        total = len(result.order)
        self._status = ExecutionStatus.EVALUATING
        logger.debug("Evaluating %d nodes (graph version %d)", total, graph.version)

        context.report_progress(ExecutionProgress(
            pass_id=result.id,
            status=ExecutionStatus.EVALUATING,
            nodes_total=total,
            message="Starting evaluation",
        ))

        for i, node_id in enumerate(result.order):
            context.check_cancelled()

            node = graph.get_node(node_id)
            if node is None:
                continue

            context.report_progress(ExecutionProgress(
                pass_id=result.id,
                status=ExecutionStatus.EVALUATING,
                current_node=node_id,
                current_node_name=node.type_id,
                nodes_completed=i,
                nodes_total=total,
                message=f"Computing {node.type_id}",
            ))

            started = time.perf_counter()
            try:
                data = await self._execute_node(graph, node, result, context)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception("Compute error for node %s (%s)", node_id, node.type_id)
                result.errors[node_id] = NodeError(
                    node_id=node_id,
                    message=str(e) or e.__class__.__name__,
                    details=traceback.format_exc(),
                    recoverable=not isinstance(e, NodeConstructionError),
                )
                continue

            # The graph may have changed while the node was computing
            context.check_cancelled()

            result.outputs[node_id] = NodeOutput(
                data=self._seal_outputs(node, data),
                timestamp=time.time(),
                execution_time=time.perf_counter() - started,
            )

    async def _execute_node(
        self,
        graph: NodeGraph,
        node: Node,
        result: EvaluationResult,
        context: ExecutionContext,
    ) -> dict[str, Any]:
        """Compute a single node from the outputs gathered so far."""
        node_type = self.registry.get(node.type_id)
        if node_type is None:
            raise NodeConstructionError(node.type_id)

        if not node_type.executor:
            return {}

        # Gather inputs from connected nodes
        inputs: dict[str, Any] = {}
        for input_def in node_type.inputs:
            conn = graph.get_input_connection(node.id, input_def.name)
            if conn:
                inputs[input_def.name] = result.get_output(
                    conn.source.node_id, conn.source.output_name
                )

        # Get parameters
        parameters = node_type.get_default_parameters()
        parameters.update(node.parameters)

        outputs = await node_type.executor(inputs, parameters, context)
        return outputs or {}

    def _seal_outputs(self, node: Node, data: dict[str, Any]) -> dict[str, Any]:
        """Stamp provenance on new buffers and make every buffer read-only."""
        for value in data.values():
            if isinstance(value, ImageData):
                if value.metadata.source_node_id is None:
                    value.metadata.source_node_id = node.id
                    value.metadata.source_type_id = node.type_id
                value.freeze()
        return data

    def _publish(self, graph: NodeGraph, result: EvaluationResult) -> None:
        """Hand each node's preview image to the output callback, in order."""
        for node_id in result.order:
            node = graph.get_node(node_id)
            node_type = self.registry.get(node.type_id) if node else None
            preview_name = node_type.preview_output if node_type else None

            image = result.get_output(node_id, preview_name) if preview_name else None
            if not isinstance(image, ImageData):
                image = None
            result.previews[node_id] = image

            if self._on_output:
                try:
                    self._on_output(node_id, image)
                except Exception:
                    logger.exception("Output callback failed for node %s", node_id)

        self._last_result = result
