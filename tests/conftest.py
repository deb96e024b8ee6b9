"""Test setup for coursetree."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from coursetree.exceptions import PersistenceError  # noqa: E402
from coursetree.schemas import (  # noqa: E402
    ChapterNode,
    ModuleNode,
    Node,
    NodeKind,
    NodeRef,
    TaskNode,
    VideoNode,
)
from coursetree.tree import TreeModel  # noqa: E402

MODULE_A = NodeRef(NodeKind.MODULE, 1)
MODULE_B = NodeRef(NodeKind.MODULE, 2)
CHAPTER_A1 = NodeRef(NodeKind.CHAPTER, 10)
CHAPTER_B1 = NodeRef(NodeKind.CHAPTER, 20)


def video(pk: int) -> NodeRef:
    return NodeRef(NodeKind.VIDEO, pk)


def task(pk: int) -> NodeRef:
    return NodeRef(NodeKind.TASK, pk)


def chapter(pk: int) -> NodeRef:
    return NodeRef(NodeKind.CHAPTER, pk)


def build_nodes() -> list[Node]:
    """Two modules; module 1 holds four chapters, chapter 10 holds items."""
    nodes: list[Node] = [
        ModuleNode(pk=1, title="Python Basics", order=1, is_public=True),
        ModuleNode(pk=2, title="Data Science", order=2),
    ]
    for order, (pk, title) in enumerate([(10, "A"), (11, "B"), (12, "C"), (13, "D")], start=1):
        nodes.append(ChapterNode(pk=pk, title=title, order=order, parent=MODULE_A))
    for order, pk in enumerate([20, 21], start=1):
        nodes.append(ChapterNode(pk=pk, title=f"Chapter {pk}", order=order, parent=MODULE_B))
    for order, (pk, title) in enumerate([(100, "A"), (101, "B"), (102, "C"), (103, "D")], start=1):
        nodes.append(VideoNode(pk=pk, title=title, order=order, parent=CHAPTER_A1, video_url=f"https://v/{pk}"))
    for order, (pk, title) in enumerate([(1, "Intro"), (2, "Quiz"), (3, "Wrap-up")], start=1):
        nodes.append(TaskNode(pk=pk, title=title, order=order, parent=CHAPTER_A1, difficulty="easy"))
    nodes.append(VideoNode(pk=200, title="Other", order=1, parent=CHAPTER_B1))
    return nodes


@pytest.fixture
def tree() -> TreeModel:
    return TreeModel(build_nodes())


def titles(nodes: list[Node] | tuple[Node, ...]) -> list[str]:
    return [node.title for node in nodes]


def orders(nodes: list[Node] | tuple[Node, ...]) -> list[int]:
    return [node.order for node in nodes]


class FakeBackend:
    """In-memory stand-in for LearningApiClient.

    ``fail`` maps node ids to the status code their update should fail with.
    When ``gate`` is set, every update waits for it before answering.
    """

    def __init__(self, *, fail: dict[NodeRef, int] | None = None, detail: dict[str, Any] | None = None) -> None:
        self.fail = fail or {}
        self.detail = detail
        self.calls: list[tuple[NodeRef, int]] = []
        self.detail_calls = 0
        self.gate: asyncio.Event | None = None

    async def update_order(self, node: Node) -> int:
        self.calls.append((node.id, node.order))
        if self.gate is not None:
            await self.gate.wait()
        if node.id in self.fail:
            raise PersistenceError(f"HTTP {self.fail[node.id]}", status_code=self.fail[node.id])
        return 200

    async def list_modules(self) -> list[dict[str, Any]]:
        return [{"id": 1, "title": "Python Basics", "is_public": True}]

    async def get_module_detail(self, pk: int) -> dict[str, Any]:
        self.detail_calls += 1
        assert self.detail is not None
        return self.detail


@pytest.fixture
def module_detail() -> dict[str, Any]:
    """Module detail payload in the backend's shape."""
    return {
        "id": 7,
        "title": "Onboarding",
        "category": {"id": 3, "name": "HR"},
        "is_public": False,
        "chapters": [
            {
                "id": 70,
                "title": "Welcome",
                "order": 1,
                "contents": [
                    {"id": 700, "title": "Hello", "video_url": "https://v/700", "order": 2},
                    {"id": 701, "title": "Tour", "url": "https://v/701", "order": 1},
                ],
                "articles": [{"id": 710, "title": "Handbook", "url": "https://a/710"}],
                "tasks": [
                    {"id": 720, "title": "Intro", "difficulty": "easy", "order": 1},
                    {"id": 721, "title": "Quiz", "difficulty": "medium", "order": 2},
                    {"id": 722, "title": "Wrap-up", "difficulty": "hard", "order": 3},
                ],
            },
            {"id": 71, "title": "Tools", "order": 2, "contents": [], "articles": [], "tasks": []},
        ],
    }
