"""
Node Studio - Main Entry Point

Evaluates a saved node graph (or the starter graph) once and writes the
image reaching each Display node to a PNG file.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path


logger = logging.getLogger("node_studio")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="node-studio",
        description="Evaluate a node graph and export its Display outputs as PNG files.",
    )
    parser.add_argument(
        "graph",
        type=Path,
        nargs="?",
        help="Workspace JSON file to evaluate (default: the starter graph)",
    )
    parser.add_argument(
        "-o", "--out-dir",
        type=Path,
        default=None,
        help="Output directory (default: settings output_directory or '.')",
    )
    parser.add_argument(
        "--preview-size",
        type=int,
        default=None,
        help="Maximum width of exported images (default: settings preview_max_width)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: settings log_level)",
    )
    parser.add_argument(
        "--save-starter",
        type=Path,
        default=None,
        help="Also write the starter graph to this workspace file",
    )
    return parser


def export_displays(result, graph, out_dir: Path, max_width: int) -> list[Path]:
    """Write one PNG per Display node that received an image."""
    from node_studio.core.data_types import ImageData

    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for index, node_id in enumerate(result.order):
        node = graph.get_node(node_id)
        if node is None or node.type_id != "Display":
            continue

        image = result.get_output(node_id)
        if not isinstance(image, ImageData):
            logger.warning("Display node %s received no image", node_id)
            continue

        path = out_dir / f"display_{index:02d}_{node_id}.png"
        try:
            image.thumbnail(max_width).to_pil().save(path)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            continue
        logger.info("Wrote %s (%dx%d)", path, image.width, image.height)
        written.append(path)
    return written


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for Node Studio.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    # Ensure we're running Python 3.11+
    if sys.version_info < (3, 11):
        print("Error: Node Studio requires Python 3.11 or later")
        return 1

    args = build_parser().parse_args(argv)

    from node_studio.core.errors import NodeStudioError
    from node_studio.core.execution import ExecutionEngine, ExecutionStatus
    from node_studio.core.project import load_settings
    from node_studio.core.workspace import (
        create_starter_graph,
        load_workspace,
        save_workspace,
    )
    from node_studio.nodes import register_all_nodes

    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, (args.log_level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    register_all_nodes()

    try:
        if args.graph is not None:
            graph = load_workspace(args.graph)
        else:
            graph = create_starter_graph()
    except (FileNotFoundError, NodeStudioError) as e:
        logger.error("Could not load graph: %s", e)
        return 1

    if args.save_starter is not None:
        save_workspace(create_starter_graph(), args.save_starter)

    engine = ExecutionEngine(settings=settings)
    result = asyncio.run(engine.evaluate(graph))

    if result.status != ExecutionStatus.COMPLETED:
        logger.error("Evaluation did not complete: %s", result.error)
        return 1

    for node_id, error in result.errors.items():
        logger.warning("Node %s failed: %s", node_id, error.message)

    out_dir = args.out_dir or settings.output_directory or Path(".")
    max_width = args.preview_size or settings.preview_max_width
    written = export_displays(result, graph, out_dir, max_width)

    if not written:
        logger.warning("No Display node produced an image")
    return 0 if not result.errors else 2


if __name__ == "__main__":
    sys.exit(main())
