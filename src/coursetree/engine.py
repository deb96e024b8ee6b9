"""Reorder engine: one tree shared by the drag, persistence and cache layers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from coursetree import reconciler
from coursetree.cache_utils import MODULES_KEY, ReadCache, module_detail_key
from coursetree.drag import DragSession, DragSessionController, DragState, DropOutcome
from coursetree.invalidator import CacheInvalidator
from coursetree.mutator import OptimisticMutator
from coursetree.schemas import ModuleNode, Node, NodeKind, NodeRef, PersistenceOutcome, ScopeKey
from coursetree.snapshot import modules_from_list, nodes_from_module_detail
from coursetree.synchronizer import PersistenceSynchronizer
from coursetree.tree import TreeModel

logger = logging.getLogger(__name__)


class LearningBackend(Protocol):
    async def update_order(self, node: Node) -> int: ...

    async def list_modules(self) -> list[dict[str, Any]]: ...

    async def get_module_detail(self, pk: int) -> dict[str, Any]: ...


class ReorderEngine:
    """Owns the TreeModel and wires the reorder components around it.

    The drag entry points are synchronous: by the time ``drop`` returns the
    tree already shows the new order and persistence runs as a background
    task. ``drain`` waits for those tasks.
    """

    def __init__(
        self,
        backend: LearningBackend,
        *,
        tree: TreeModel | None = None,
        cache: ReadCache | None = None,
    ) -> None:
        self.backend = backend
        self.tree = tree if tree is not None else TreeModel()
        self.cache = cache if cache is not None else ReadCache()
        self.invalidator = CacheInvalidator(self.cache, self.tree)
        self.synchronizer = PersistenceSynchronizer(backend, self.invalidator)
        self.mutator = OptimisticMutator(self.tree)
        self.controller = DragSessionController(self.tree, self.mutator, on_commit=self._persist_drop)

    # Drag entry points

    @property
    def drag_state(self) -> DragState:
        return self.controller.state

    def start_drag(self, node_id: NodeRef) -> DragSession:
        return self.controller.start_drag(node_id)

    def hover(self, target_id: NodeRef) -> bool:
        return self.controller.hover(target_id)

    def drop(self, target_id: NodeRef) -> DropOutcome | None:
        """Drop onto ``target_id``; must run inside an event loop."""
        self.synchronizer.check_loop()
        return self.controller.drop(target_id)

    def cancel(self) -> None:
        self.controller.cancel()

    def move(self, node_id: NodeRef, target_id: NodeRef) -> DropOutcome | None:
        """Run a complete drag of ``node_id`` onto ``target_id``."""
        self.synchronizer.check_loop()
        self.start_drag(node_id)
        self.hover(target_id)
        return self.drop(target_id)

    # Tree views

    def get_sibling_scope(self, kind: NodeKind, parent: NodeRef | None) -> tuple[Node, ...]:
        return self.tree.get_sibling_scope(kind, parent)

    def get_node(self, node_id: NodeRef) -> Node:
        return self.tree.get_node(node_id)

    def scope_of(self, scope_key: ScopeKey) -> tuple[Node, ...]:
        return self.tree.scope_of(scope_key)

    # Lifecycle hooks for the create/delete collaborators

    def add(self, node: Node) -> Node:
        """Register a node created elsewhere at the end of its scope."""
        return self.tree.append(node)

    def remove(self, node_id: NodeRef) -> asyncio.Task[list[PersistenceOutcome]] | None:
        """Drop a deleted node locally and compact its scope.

        Siblings whose order shifted are persisted in the background. The
        delete request itself belongs to the caller.
        """
        self.synchronizer.check_loop()
        node = self.tree.get_node(node_id)
        previous = list(self.tree.scope_of(node.scope))
        remaining = reconciler.remove(previous, node_id)
        self.tree.remove(node_id)
        self.mutator.commit(node.scope, remaining)
        if reconciler.changed_orders(previous, remaining):
            return self.synchronizer.schedule(node.scope, remaining, previous)
        self.invalidator.invalidate(node.scope)
        return None

    # Read side

    async def load_modules(self) -> tuple[Node, ...]:
        """Fetch the module list and add modules the tree does not know yet."""
        data = await self.cache.get(MODULES_KEY, self.backend.list_modules)
        for module in modules_from_list(data):
            if module.id not in self.tree:
                self.tree.replace_module(module, ())
        return self.tree.roots()

    async def load_module(self, pk: int) -> ModuleNode:
        """Fetch one module's detail view and replace its subtree with it."""
        data = await self.cache.get(module_detail_key(pk), lambda: self.backend.get_module_detail(pk))
        ref = NodeRef(NodeKind.MODULE, pk)
        if ref in self.tree:
            position = self.tree.get_node(ref).order
        else:
            position = len(self.tree.roots()) + 1
        module, descendants = nodes_from_module_detail(data, position)
        self.tree.replace_module(module, descendants)
        logger.info("Loaded module", extra={"module_id": str(module.id), "nodes": len(descendants)})
        return module

    async def drain(self) -> None:
        await self.synchronizer.drain()

    def _persist_drop(self, outcome: DropOutcome) -> None:
        if not outcome.changed:
            return
        outcome.sync_task = self.synchronizer.schedule(outcome.scope, outcome.sequence, outcome.previous)
