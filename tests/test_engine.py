"""Tests for the reorder engine wiring."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import patch

import pytest

from conftest import CHAPTER_A1, MODULE_A, FakeBackend, chapter, orders, task, titles, video
from coursetree.cache_utils import MODULES_KEY, ReadCache, module_detail_key
from coursetree.drag import DragState
from coursetree.engine import ReorderEngine
from coursetree.exceptions import NoEventLoopError
from coursetree.schemas import ChapterNode, ModuleNode, NodeKind, NodeRef, TaskNode
from coursetree.tree import TreeModel


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def engine(backend: FakeBackend, tree: TreeModel) -> ReorderEngine:
    return ReorderEngine(backend, tree=tree)


class TestMove:
    """Tests for drag and drop through the engine."""

    @pytest.mark.asyncio
    async def test_optimistic_order_precedes_confirmation(self, engine: ReorderEngine, backend: FakeBackend) -> None:
        """The tree shows the new order while every request is still pending."""
        backend.gate = asyncio.Event()

        outcome = engine.move(chapter(10), chapter(12))

        assert outcome is not None
        assert titles(engine.get_sibling_scope(NodeKind.CHAPTER, MODULE_A)) == ["B", "C", "A", "D"]
        assert outcome.sync_task is not None
        assert not outcome.sync_task.done()

        backend.gate.set()
        results = await outcome.sync_task
        assert {r.node_id for r in results} == {chapter(10), chapter(11), chapter(12)}

    @pytest.mark.asyncio
    async def test_failed_request_keeps_local_order(self, tree: TreeModel) -> None:
        """A failed update does not roll the tree back."""
        engine = ReorderEngine(FakeBackend(fail={task(1): 500}), tree=tree)

        outcome = engine.move(task(3), task(1))
        assert outcome is not None and outcome.sync_task is not None
        results = await outcome.sync_task

        assert [r.ok for r in results if r.node_id == task(1)] == [False]
        scope = engine.get_sibling_scope(NodeKind.TASK, CHAPTER_A1)
        assert titles(scope) == ["Wrap-up", "Intro", "Quiz"]
        assert orders(scope) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_sync_invalidates_cached_views(self, engine: ReorderEngine) -> None:
        engine.cache.set(MODULES_KEY, [])
        engine.cache.set(module_detail_key(1), {})
        engine.cache.set(module_detail_key(2), {})

        outcome = engine.move(video(100), video(101))
        await engine.drain()

        assert outcome is not None
        assert engine.cache.is_stale(MODULES_KEY)
        assert engine.cache.is_stale(module_detail_key(1))
        assert not engine.cache.is_stale(module_detail_key(2))

    @pytest.mark.asyncio
    async def test_self_drop_sends_nothing(self, engine: ReorderEngine, backend: FakeBackend) -> None:
        engine.cache.set(module_detail_key(1), {})

        outcome = engine.move(video(101), video(101))
        await engine.drain()

        assert outcome is not None
        assert outcome.sync_task is None
        assert backend.calls == []
        assert not engine.cache.is_stale(module_detail_key(1))

    @pytest.mark.asyncio
    async def test_cross_scope_move_is_ignored(self, engine: ReorderEngine, backend: FakeBackend) -> None:
        assert engine.move(video(100), video(200)) is None
        await engine.drain()

        assert backend.calls == []
        assert engine.drag_state is DragState.IDLE

    @pytest.mark.asyncio
    async def test_module_reorder(self, engine: ReorderEngine, backend: FakeBackend) -> None:
        engine.move(NodeRef(NodeKind.MODULE, 2), MODULE_A)
        await engine.drain()

        assert titles(engine.get_sibling_scope(NodeKind.MODULE, None)) == ["Data Science", "Python Basics"]
        assert sorted(backend.calls) == [(MODULE_A, 2), (NodeRef(NodeKind.MODULE, 2), 1)]


class TestLifecycle:
    """Tests for add and remove."""

    def test_add_appends_to_scope(self, engine: ReorderEngine) -> None:
        node = engine.add(TaskNode(pk=9, title="Extra", parent=CHAPTER_A1))

        assert node.order == 4
        assert engine.get_node(node.id).order == 4

    @pytest.mark.asyncio
    async def test_remove_compacts_and_persists(self, engine: ReorderEngine, backend: FakeBackend) -> None:
        sync_task = engine.remove(chapter(11))

        assert sync_task is not None
        scope = engine.get_sibling_scope(NodeKind.CHAPTER, MODULE_A)
        assert titles(scope) == ["A", "C", "D"]
        assert orders(scope) == [1, 2, 3]

        await sync_task
        assert sorted(backend.calls) == [(chapter(12), 2), (chapter(13), 3)]

    @pytest.mark.asyncio
    async def test_remove_last_only_invalidates(self, engine: ReorderEngine, backend: FakeBackend) -> None:
        engine.cache.set(module_detail_key(1), {})

        assert engine.remove(task(3)) is None

        assert backend.calls == []
        assert engine.cache.is_stale(module_detail_key(1))


class TestLoad:
    """Tests for the read side."""

    @pytest.mark.asyncio
    async def test_load_module_builds_subtree(self, module_detail: dict[str, Any]) -> None:
        backend = FakeBackend(detail=module_detail)
        engine = ReorderEngine(backend)

        module = await engine.load_module(7)

        assert module.title == "Onboarding"
        chapters = engine.get_sibling_scope(NodeKind.CHAPTER, module.id)
        assert titles(chapters) == ["Welcome", "Tools"]
        videos = engine.get_sibling_scope(NodeKind.VIDEO, chapters[0].id)
        assert titles(videos) == ["Tour", "Hello"]

    @pytest.mark.asyncio
    async def test_load_module_uses_cache_until_invalidated(self, module_detail: dict[str, Any]) -> None:
        backend = FakeBackend(detail=module_detail)
        engine = ReorderEngine(backend, cache=ReadCache(ttl_seconds=0))

        await engine.load_module(7)
        await engine.load_module(7)
        assert backend.detail_calls == 1

        engine.cache.invalidate(module_detail_key(7))
        await engine.load_module(7)
        assert backend.detail_calls == 2

    @pytest.mark.asyncio
    async def test_reload_after_move_keeps_module_position(self, engine: ReorderEngine, module_detail: dict[str, Any]) -> None:
        module_detail["id"] = 2
        engine.backend.detail = module_detail  # type: ignore[attr-defined]

        module = await engine.load_module(2)

        assert module.order == 2
        assert titles(engine.get_sibling_scope(NodeKind.MODULE, None)) == ["Python Basics", "Onboarding"]

    @pytest.mark.asyncio
    async def test_load_modules_adds_unknown_modules(self) -> None:
        engine = ReorderEngine(FakeBackend())

        roots = await engine.load_modules()

        assert titles(roots) == ["Python Basics"]


class TestGappedSnapshot:
    """Tests for scopes loaded with non-contiguous order values."""

    @pytest.fixture
    def gapped(self) -> TreeModel:
        return TreeModel(
            [
                ModuleNode(pk=1, title="Python Basics", order=1),
                ChapterNode(pk=10, title="A", order=1, parent=MODULE_A),
                ChapterNode(pk=11, title="B", order=3, parent=MODULE_A),
                ChapterNode(pk=12, title="C", order=5, parent=MODULE_A),
            ]
        )

    @pytest.mark.asyncio
    async def test_self_drop_keeps_gaps_and_sends_nothing(self, gapped: TreeModel) -> None:
        backend = FakeBackend()
        engine = ReorderEngine(backend, tree=gapped)

        outcome = engine.move(chapter(11), chapter(11))
        await engine.drain()

        assert outcome is not None and outcome.sync_task is None
        assert orders(engine.get_sibling_scope(NodeKind.CHAPTER, MODULE_A)) == [1, 3, 5]
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_real_move_closes_gaps(self, gapped: TreeModel) -> None:
        backend = FakeBackend()
        engine = ReorderEngine(backend, tree=gapped)

        engine.move(chapter(12), chapter(10))
        await engine.drain()

        scope = engine.get_sibling_scope(NodeKind.CHAPTER, MODULE_A)
        assert titles(scope) == ["C", "A", "B"]
        assert orders(scope) == [1, 2, 3]
        assert sorted(backend.calls) == [(chapter(10), 2), (chapter(12), 1)]


class TestWithoutEventLoop:
    """Tests for reorders requested outside a running event loop."""

    def test_drop_refuses_before_mutating(self, engine: ReorderEngine, backend: FakeBackend) -> None:
        engine.start_drag(chapter(10))

        with pytest.raises(NoEventLoopError):
            engine.drop(chapter(12))

        assert titles(engine.get_sibling_scope(NodeKind.CHAPTER, MODULE_A)) == ["A", "B", "C", "D"]
        assert engine.drag_state is DragState.DRAGGING
        assert backend.calls == []

    def test_move_refuses_before_dragging(self, engine: ReorderEngine) -> None:
        with pytest.raises(NoEventLoopError):
            engine.move(chapter(10), chapter(12))

        assert engine.drag_state is DragState.IDLE
        assert orders(engine.get_sibling_scope(NodeKind.CHAPTER, MODULE_A)) == [1, 2, 3, 4]

    def test_remove_refuses_before_mutating(self, engine: ReorderEngine) -> None:
        with pytest.raises(NoEventLoopError):
            engine.remove(chapter(11))

        assert chapter(11) in engine.tree


class TestConsecutiveMoves:
    """Tests for a second reorder while the first is still being saved."""

    @pytest.mark.asyncio
    async def test_second_move_builds_on_first(self, engine: ReorderEngine, backend: FakeBackend) -> None:
        backend.gate = asyncio.Event()

        with patch.object(engine.invalidator, "invalidate", wraps=engine.invalidator.invalidate) as invalidate:
            first = engine.move(chapter(10), chapter(12))
            second = engine.move(chapter(13), chapter(11))

            assert first is not None and second is not None
            assert titles(second.previous) == ["B", "C", "A", "D"]
            assert titles(engine.get_sibling_scope(NodeKind.CHAPTER, MODULE_A)) == ["D", "B", "C", "A"]
            assert invalidate.call_count == 0

            backend.gate.set()
            first_results = await first.sync_task
            second_results = await second.sync_task

        assert {(r.node_id, r.order) for r in first_results} == {
            (chapter(11), 1),
            (chapter(12), 2),
            (chapter(10), 3),
        }
        assert {(r.node_id, r.order) for r in second_results} == {
            (chapter(13), 1),
            (chapter(11), 2),
            (chapter(12), 3),
            (chapter(10), 4),
        }
        assert invalidate.call_count == 2
        assert orders(engine.get_sibling_scope(NodeKind.CHAPTER, MODULE_A)) == [1, 2, 3, 4]
