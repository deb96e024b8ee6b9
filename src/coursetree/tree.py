"""In-memory content tree addressed by node id."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Sequence

from coursetree.exceptions import InvariantViolationError, NodeNotFoundError
from coursetree.schemas import ModuleNode, Node, NodeKind, NodeRef, ScopeKey

logger = logging.getLogger(__name__)

_DEPTH = {
    NodeKind.MODULE: 0,
    NodeKind.CHAPTER: 1,
    NodeKind.VIDEO: 2,
    NodeKind.ARTICLE: 2,
    NodeKind.TASK: 2,
}


class TreeModel:
    """Owner of every node in the Module -> Chapter -> item hierarchy.

    Readers get frozen nodes and tuples; the only writers are ``append``,
    ``remove``, ``replace_module`` and ``apply_ordering``. Members of each
    sibling scope are tracked in insertion order so equal ``order`` values
    (possible in raw backend snapshots) still sort deterministically.
    """

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._nodes: dict[NodeRef, Node] = {}
        self._scopes: dict[ScopeKey, list[NodeRef]] = {}
        for node in sorted(nodes, key=lambda n: _DEPTH[n.kind]):
            self._insert(node)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def get_node(self, node_id: NodeRef) -> Node:
        """Return the node for ``node_id``.

        Raises:
            NodeNotFoundError: If the id is not part of the tree.
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(f"Unknown node: {node_id}") from None

    def get_sibling_scope(self, kind: NodeKind, parent: NodeRef | None) -> tuple[Node, ...]:
        """Return the nodes of ``kind`` under ``parent`` sorted by order."""
        members = self._scopes.get(ScopeKey(kind, parent), [])
        nodes = [self._nodes[ref] for ref in members]
        return tuple(sorted(nodes, key=lambda n: n.order))

    def scope_of(self, scope_key: ScopeKey) -> tuple[Node, ...]:
        return self.get_sibling_scope(scope_key.kind, scope_key.parent)

    def scopes(self) -> list[ScopeKey]:
        return [key for key, members in self._scopes.items() if members]

    def roots(self) -> tuple[Node, ...]:
        return self.get_sibling_scope(NodeKind.MODULE, None)

    def children(self, node_id: NodeRef, kind: NodeKind | None = None) -> tuple[Node, ...]:
        """Return the direct children of a node, grouped by kind then order."""
        self.get_node(node_id)
        kinds = [kind] if kind else list(NodeKind)
        result: list[Node] = []
        for child_kind in kinds:
            result.extend(self.get_sibling_scope(child_kind, node_id))
        return tuple(result)

    def module_of(self, node_id: NodeRef) -> ModuleNode:
        """Walk up the parent chain to the owning module."""
        node = self.get_node(node_id)
        while node.parent is not None:
            node = self.get_node(node.parent)
        if not isinstance(node, ModuleNode):
            raise InvariantViolationError(f"Root of {node_id} is {node.id}, not a module")
        return node

    def append(self, node: Node) -> Node:
        """Add a newly created node at the end of its sibling scope.

        The node's ``order`` is set to ``N + 1`` where N is the current size
        of the scope.

        Raises:
            NodeNotFoundError: If the node's parent is not in the tree.
            InvariantViolationError: If a node with the same id exists.
        """
        size = len(self._scopes.get(node.scope, []))
        return self._insert(node.model_copy(update={"order": size + 1}))

    def remove(self, node_id: NodeRef) -> Node:
        """Remove a node and all of its descendants.

        The remaining siblings keep their order values; compacting them is
        the caller's job.
        """
        node = self.get_node(node_id)
        for child in self.children(node_id):
            self.remove(child.id)
        self._scopes[node.scope].remove(node_id)
        del self._nodes[node_id]
        return node

    def replace_module(self, module: ModuleNode, descendants: Iterable[Node]) -> None:
        """Swap a whole module subtree for a fresh backend snapshot."""
        if module.id in self._nodes:
            for child in self.children(module.id):
                self.remove(child.id)
            self._nodes[module.id] = module
        else:
            self._insert(module)
        for node in sorted(descendants, key=lambda n: _DEPTH[n.kind]):
            self._insert(node)
        logger.debug("Replaced module subtree", extra={"module_id": str(module.id), "nodes": len(self)})

    def apply_ordering(self, scope_key: ScopeKey, ordered_ids: Sequence[NodeRef]) -> None:
        """Renumber a sibling scope to ``1..N`` following ``ordered_ids``.

        Raises:
            InvariantViolationError: If ``ordered_ids`` is not exactly the
                current membership of the scope.
        """
        members = self._scopes.get(scope_key, [])
        if len(set(ordered_ids)) != len(ordered_ids) or set(ordered_ids) != set(members):
            raise InvariantViolationError(
                f"Ordering for {scope_key} does not match scope membership: "
                f"got {[str(r) for r in ordered_ids]}, have {[str(r) for r in members]}"
            )
        for position, ref in enumerate(ordered_ids, start=1):
            node = self._nodes[ref]
            if node.order != position:
                self._nodes[ref] = node.model_copy(update={"order": position})
        self._scopes[scope_key] = list(ordered_ids)

    def _insert(self, node: Node) -> Node:
        if node.id in self._nodes:
            raise InvariantViolationError(f"Node {node.id} is already in the tree")
        if node.parent is not None and node.parent not in self._nodes:
            raise NodeNotFoundError(f"Parent {node.parent} of {node.id} is not in the tree")
        self._nodes[node.id] = node
        self._scopes.setdefault(node.scope, []).append(node.id)
        return node
