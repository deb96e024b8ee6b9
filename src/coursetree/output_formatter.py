"""Format the content tree as indented text."""

from __future__ import annotations

from typing import Iterable

from coursetree.schemas import Node
from coursetree.tree import TreeModel


def format_node(node: Node) -> str:
    return f"{node.order}. [{node.kind.value}] {node.title} ({node.id})"


def format_scope(nodes: Iterable[Node]) -> str:
    """One line per node of a sibling scope."""
    return "\n".join(format_node(node) for node in nodes)


def format_tree(tree: TreeModel, roots: Iterable[Node] | None = None) -> str:
    """Render modules, chapters and items with their order values."""
    lines: list[str] = []
    for root in tree.roots() if roots is None else roots:
        _render(tree, root, 0, lines)
    return "\n".join(lines)


def _render(tree: TreeModel, node: Node, indent: int, lines: list[str]) -> None:
    lines.append(" " * (indent * 4) + format_node(node))
    for child in tree.children(node.id):
        _render(tree, child, indent + 1, lines)
