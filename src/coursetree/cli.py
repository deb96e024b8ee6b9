"""Terminal driver for inspecting and reordering a module's content tree."""

from __future__ import annotations

import argparse
import asyncio

from coursetree.api_client import LearningApiClient
from coursetree.config import COURSETREE_API_BASE_URL, COURSETREE_LOG_LEVEL
from coursetree.engine import ReorderEngine
from coursetree.exceptions import CourseTreeError
from coursetree.output_formatter import format_scope, format_tree
from coursetree.schemas import NodeRef
from coursetree.utils.logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coursetree", description="Inspect and reorder e-learning content.")
    parser.add_argument("--base-url", default=COURSETREE_API_BASE_URL, help="Backend API root")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Print a module's chapters and items")
    show.add_argument("--module", type=int, required=True, help="Module primary key")

    move = commands.add_parser("move", help="Drag one node onto a sibling")
    move.add_argument("--module", type=int, required=True, help="Module primary key")
    move.add_argument("--node", type=NodeRef.parse, required=True, help="Dragged node, e.g. task-4")
    move.add_argument("--target", type=NodeRef.parse, required=True, help="Drop target, e.g. task-1")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else COURSETREE_LOG_LEVEL)
    try:
        return asyncio.run(run(args))
    except CourseTreeError as exc:
        parser.exit(1, f"error: {exc}\n")


async def run(args: argparse.Namespace, client: LearningApiClient | None = None) -> int:
    """Execute a parsed command; returns the process exit code."""
    async with client or LearningApiClient(args.base_url) as backend:
        engine = ReorderEngine(backend)
        module = await engine.load_module(args.module)

        if args.command == "show":
            print(format_tree(engine.tree, [module]))
            return 0

        outcome = engine.move(args.node, args.target)
        if outcome is None:
            print(f"Drop ignored: {args.node} and {args.target} are not siblings")
            return 1

        print(format_scope(outcome.sequence))
        if outcome.sync_task is None:
            print("Order unchanged, nothing to save")
            return 0

        results = await outcome.sync_task
        for result in results:
            status = "saved" if result.ok else f"FAILED ({result.error})"
            print(f"{result.node_id} -> {result.order}: {status}")
        return 0 if all(result.ok for result in results) else 2
