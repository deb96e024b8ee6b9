"""Convert backend module payloads into tree nodes."""

from __future__ import annotations

import logging
from typing import Any

from coursetree.schemas import (
    ArticleNode,
    ChapterNode,
    ModuleNode,
    Node,
    NodeKind,
    NodeRef,
    TaskNode,
    VideoNode,
)

logger = logging.getLogger(__name__)


def _order(item: dict[str, Any], position: int) -> int:
    # Articles may come without an order; fall back to list position.
    value = item.get("order")
    return position if value is None else int(value)


def module_from_payload(data: dict[str, Any], position: int = 1) -> ModuleNode:
    """Build a ModuleNode from a module list or detail entry."""
    category = data.get("category")
    if isinstance(category, dict):
        category = category.get("name")
    return ModuleNode(
        pk=data["id"],
        title=data.get("title", ""),
        order=_order(data, position),
        is_public=bool(data.get("is_public", False)),
        category=category,
    )


def modules_from_list(data: list[dict[str, Any]]) -> list[ModuleNode]:
    return [module_from_payload(item, position) for position, item in enumerate(data, start=1)]


def nodes_from_module_detail(data: dict[str, Any], position: int = 1) -> tuple[ModuleNode, list[Node]]:
    """Flatten a module detail payload into its module and descendant nodes.

    Args:
        data: Module detail JSON with ``chapters`` and, per chapter,
            ``contents`` (videos), ``articles`` and ``tasks``.
        position: Fallback order for the module when the payload has none.

    Returns:
        Tuple of (module, descendants) where descendants lists chapters
        before their items.
    """
    module = module_from_payload(data, position)
    nodes: list[Node] = []
    if data.get("articles"):
        logger.debug("Ignoring module-level articles", extra={"module_id": str(module.id)})

    for chapter_pos, chapter_data in enumerate(data.get("chapters") or [], start=1):
        chapter = ChapterNode(
            pk=chapter_data["id"],
            title=chapter_data.get("title", ""),
            order=_order(chapter_data, chapter_pos),
            parent=module.id,
        )
        nodes.append(chapter)
        parent = NodeRef(NodeKind.CHAPTER, chapter.pk)

        for pos, item in enumerate(chapter_data.get("contents") or [], start=1):
            nodes.append(
                VideoNode(
                    pk=item["id"],
                    title=item.get("title", ""),
                    order=_order(item, pos),
                    parent=parent,
                    description=item.get("description"),
                    video_url=item.get("video_url") or item.get("url"),
                )
            )
        for pos, item in enumerate(chapter_data.get("articles") or [], start=1):
            nodes.append(
                ArticleNode(
                    pk=item["id"],
                    title=item.get("title", ""),
                    order=_order(item, pos),
                    parent=parent,
                    url=item.get("url"),
                )
            )
        for pos, item in enumerate(chapter_data.get("tasks") or [], start=1):
            nodes.append(
                TaskNode(
                    pk=item["id"],
                    title=item.get("title", ""),
                    order=_order(item, pos),
                    parent=parent,
                    description=item.get("description"),
                    difficulty=item.get("difficulty"),
                )
            )
    return module, nodes
